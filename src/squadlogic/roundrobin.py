"""Round-robin fixture generation for SquadLogic divisions."""

import logging

from squadlogic.models import Matchup, RoundRobinWeek, Team

logger = logging.getLogger(__name__)

BYE = "__BYE__"


def generate_round_robin_weeks(team_ids: list[str]) -> list[RoundRobinWeek]:
    """Generate a full round robin using the circle method.

    Teams are sorted first and no randomness is involved, so the same ids
    always produce the same weeks. For N teams: N-1 weeks if even; with an
    odd count a bye marker is added and every week has exactly one bye.

    Within each pair the lower id is home. Matchups and byes are sorted per
    week.
    """
    if not isinstance(team_ids, (list, tuple)):
        raise TypeError("team_ids must be a list")
    if len(set(team_ids)) != len(team_ids):
        raise ValueError("team_ids must not contain duplicates")
    if len(team_ids) < 2:
        raise ValueError("at least two teams are required for a round-robin schedule")

    rotation = sorted(team_ids)
    if len(rotation) % 2 == 1:
        rotation.append(BYE)

    n = len(rotation)
    weeks = []
    for week in range(n - 1):
        matchups = []
        byes = []
        for i in range(n // 2):
            t1 = rotation[i]
            t2 = rotation[n - 1 - i]
            if t1 == BYE:
                byes.append(t2)
            elif t2 == BYE:
                byes.append(t1)
            else:
                home, away = sorted([t1, t2])
                matchups.append(Matchup(home, away))

        matchups.sort(key=lambda m: (m.home_team_id, m.away_team_id))
        byes.sort()
        weeks.append(RoundRobinWeek(week_index=week + 1, matchups=matchups, byes=byes))

        # Rotate: keep position 0 fixed, last moves to position 1
        rotation = [rotation[0]] + [rotation[-1]] + rotation[1:-1]

    return weeks


def build_round_robin_by_division(
        teams_by_division: dict[str, list[Team]]) -> dict[str, list[RoundRobinWeek]]:
    """Round robin weeks for every division that has at least two teams."""
    result = {}
    for division, teams in teams_by_division.items():
        team_ids = [t.id for t in teams]
        if len(team_ids) < 2:
            logger.warning("Division %s has %d team(s); no fixtures generated",
                           division, len(team_ids))
            continue
        result[division] = generate_round_robin_weeks(team_ids)
        logger.debug("Division %s: %d weeks of fixtures", division, len(result[division]))
    return result


def verify_round_robin(weeks: list[RoundRobinWeek], team_ids: list[str]) -> dict:
    """Verify a round-robin schedule is valid and complete.

    Returns dict with:
    - valid: bool
    - errors: list of error strings
    - matchup_counts: dict of (team_a, team_b) -> count
    - games_per_team: dict of team -> game count
    - byes_per_team: dict of team -> bye count
    """
    errors = []
    matchup_counts: dict[tuple[str, str], int] = {}
    games_per_team: dict[str, int] = {t: 0 for t in team_ids}
    byes_per_team: dict[str, int] = {t: 0 for t in team_ids}

    for week in weeks:
        teams_in_week = set()
        for m in week.matchups:
            for team in (m.home_team_id, m.away_team_id):
                if team in teams_in_week:
                    errors.append(f"Week {week.week_index}: {team} appears twice")
                teams_in_week.add(team)

            key = tuple(sorted([m.home_team_id, m.away_team_id]))
            matchup_counts[key] = matchup_counts.get(key, 0) + 1
            games_per_team[m.home_team_id] = games_per_team.get(m.home_team_id, 0) + 1
            games_per_team[m.away_team_id] = games_per_team.get(m.away_team_id, 0) + 1

        for team in week.byes:
            if team in teams_in_week:
                errors.append(f"Week {week.week_index}: {team} has a bye and a game")
            teams_in_week.add(team)
            byes_per_team[team] = byes_per_team.get(team, 0) + 1

    # Every pair plays exactly once
    for i, t1 in enumerate(team_ids):
        for t2 in team_ids[i + 1:]:
            key = tuple(sorted([t1, t2]))
            count = matchup_counts.get(key, 0)
            if count != 1:
                errors.append(f"{t1} vs {t2}: played {count} times (expected 1)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "matchup_counts": matchup_counts,
        "games_per_team": games_per_team,
        "byes_per_team": byes_per_team,
    }
