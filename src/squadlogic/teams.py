"""Team generation: balanced rosters that honor buddy and coach requests.

Players may name a `buddy_id`; two players naming each other are placed as a
single unit. A `coach_id` means the player's household coaches and the player
must land on that coach's team. Placement failures never raise: they become
overflow entries so a partial roster is always produced.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import replace

from squadlogic.models import DivisionConfig, OverflowEntry, OverflowReason, Player, Team
from squadlogic.rng import RandomFn, resolve_random
from squadlogic.validation import require_list

logger = logging.getLogger(__name__)


def generate_teams(players: list[Player], division_configs: Mapping,
                   random: RandomFn | None = None,
                   seed: str | int | None = None) -> dict:
    """Generate teams for every division present in `players`.

    `division_configs` maps division id -> DivisionConfig (plain dicts are
    converted). A non-empty `seed` replaces `random` with a deterministic
    stream, so the same seed always yields the same rosters.

    Returns dict with:
    - teams_by_division: division -> list[Team]
    - overflow_by_division: division -> list[OverflowEntry]
    - overflow_summary_by_division
    - buddy_diagnostics_by_division
    - coach_coverage_by_division
    - roster_balance_by_division
    - skill_balance_by_division
    """
    players = require_list(players, "players")
    if not isinstance(division_configs, Mapping):
        raise TypeError("division_configs must be a mapping")
    rng = resolve_random(random, seed)

    players_by_division: dict[str, list[Player]] = {}
    player_divisions: dict[str, str] = {}
    for player in players:
        if not isinstance(player, Player):
            raise TypeError("each player must be a Player record")
        previous = player_divisions.get(player.id)
        if previous is not None:
            raise ValueError(
                f"duplicate player id detected: {player.id} "
                f"(divisions {previous} and {player.division})"
            )
        player_divisions[player.id] = player.division
        players_by_division.setdefault(player.division, []).append(replace(player))

    result = {
        "teams_by_division": {},
        "overflow_by_division": {},
        "overflow_summary_by_division": {},
        "buddy_diagnostics_by_division": {},
        "coach_coverage_by_division": {},
        "roster_balance_by_division": {},
        "skill_balance_by_division": {},
    }

    for division, division_players in players_by_division.items():
        config = _resolve_config(division_configs, division)
        teams, overflow, buddy_diagnostics = _build_teams_for_division(
            division, division_players, config, rng)

        result["teams_by_division"][division] = teams
        result["overflow_by_division"][division] = overflow
        result["overflow_summary_by_division"][division] = summarize_overflow(overflow)
        result["buddy_diagnostics_by_division"][division] = buddy_diagnostics
        result["coach_coverage_by_division"][division] = _coach_coverage(teams)
        roster_balance = _roster_balance(teams, config.max_roster_size)
        result["roster_balance_by_division"][division] = roster_balance
        result["skill_balance_by_division"][division] = _skill_balance(
            teams, roster_balance["summary"]["total_players"])

        logger.info(
            "Division %s: %d players -> %d teams, %d overflow unit(s)",
            division, len(division_players), len(teams), len(overflow),
        )

    return result


def _resolve_config(division_configs: Mapping, division: str) -> DivisionConfig:
    config = division_configs.get(division)
    if config is None:
        raise ValueError(f"missing max_roster_size for division {division}")
    if isinstance(config, dict):
        config = DivisionConfig.from_dict(config)
    if not isinstance(config, DivisionConfig):
        raise TypeError(f"config for division {division} must be a DivisionConfig")
    return config


def required_team_count(player_count: int, coach_count: int,
                        config: DivisionConfig) -> int:
    """Teams needed for a division.

    The largest of the volunteer coach count, the target-size estimate and
    team_count_override, and never so few that a roster would exceed
    max_roster_size. An override can add teams but never remove them.
    """
    target_size = config.target_team_size or config.max_roster_size
    calculated = math.ceil(player_count / target_size) or 1
    required = max(coach_count, calculated, config.team_count_override or 0)
    return max(required, math.ceil(player_count / config.max_roster_size))


def team_name(division: str, index: int, config: DivisionConfig) -> str:
    names = [n.strip() for n in config.team_names
             if isinstance(n, str) and n.strip()]
    if len(names) >= index:
        return names[index - 1]
    prefix = config.team_name_prefix.strip() if config.team_name_prefix else ""
    if prefix:
        return f"{prefix} {index:02d}"
    return f"{division} Team {index:02d}"


def _build_teams_for_division(division: str, players: list[Player],
                              config: DivisionConfig, rng: RandomFn):
    max_roster = config.max_roster_size

    coach_ids: list[str] = []
    for p in players:
        if p.coach_id and p.coach_id not in coach_ids:
            coach_ids.append(p.coach_id)

    required = required_team_count(len(players), len(coach_ids), config)

    teams: list[Team] = []
    overflow: list[OverflowEntry] = []

    def _create_team(coach_id=None) -> Team:
        index = len(teams) + 1
        team = Team(
            id=f"{division}-T{index:02d}",
            division=division,
            name=team_name(division, index, config),
            coach_id=coach_id,
        )
        teams.append(team)
        return team

    for coach_id in coach_ids:
        _create_team(coach_id)
    while len(teams) < required:
        _create_team()

    units, buddy_diagnostics = create_assignment_units(players)

    coach_units = []
    general_units = []
    for unit in units:
        skill_total = unit_skill(unit)
        coached = [p for p in unit if p.coach_id or p.assistant_coach_id]
        if not coached:
            general_units.append((unit, skill_total))
            continue

        head_ids = {p.coach_id for p in coached if p.coach_id}
        if len(head_ids) > 1:
            raise ValueError(
                "Conflicting coach assignments for players in unit: "
                + ", ".join(p.id for p in unit)
            )
        head_coach = next(iter(head_ids)) if head_ids else None
        assistants: list[str] = []
        for p in coached:
            if p.assistant_coach_id and p.assistant_coach_id not in assistants:
                assistants.append(p.assistant_coach_id)
        coach_units.append((unit, skill_total, head_coach, assistants))

    # Coach-bound units go first so their teams still have room.
    for unit, skill_total, head_coach, assistants in coach_units:
        if head_coach:
            target = next((t for t in teams if t.coach_id == head_coach), None)
            if target is None:
                target = _create_team(head_coach)
        else:
            # Assistant-only units: join a team that already has one of the
            # named assistants, otherwise start a new team around them.
            target = next(
                (t for t in teams
                 if any(a in t.assistant_coach_ids for a in assistants)),
                None,
            )
            if target is None:
                target = _create_team()

        for assistant in assistants:
            if assistant not in target.assistant_coach_ids:
                target.assistant_coach_ids.append(assistant)

        if not _assign_unit(unit, skill_total, target, max_roster):
            overflow.append(OverflowEntry(
                players=unit,
                reason=OverflowReason.COACH_CAPACITY.value,
                metadata={"coach_id": head_coach},
            ))

    general_units.sort(key=lambda entry: -entry[1])

    for unit, skill_total in general_units:
        team = pick_team(teams, len(unit), skill_total, max_roster, rng)
        if team is None:
            overflow.append(OverflowEntry(
                players=unit,
                reason=OverflowReason.BUDDY_REQUEST.value,
                metadata={"unit_size": len(unit)},
            ))
            continue
        _assign_unit(unit, skill_total, team, max_roster)

    return teams, overflow, buddy_diagnostics


def create_assignment_units(players: list[Player]):
    """Group players into placement units.

    Returns (units, buddy_diagnostics). Only mutual, unconsumed buddy pairs
    form a two-player unit; every other request is reported, not enforced.
    """
    units: list[list[Player]] = []
    visited: set[str] = set()
    by_id = {p.id: p for p in players}
    diagnostics = {"mutual_pairs": [], "unmatched_requests": []}
    recorded: set[str] = set()

    def _unmatched(player_id: str, requested: str, reason: str):
        key = f"{player_id}::self" if reason == "self-reference" else f"{player_id}::{requested}"
        if key in recorded:
            return
        recorded.add(key)
        diagnostics["unmatched_requests"].append({
            "player_id": player_id,
            "requested_buddy_id": requested,
            "reason": reason,
        })

    for player in players:
        if player.id in visited:
            continue

        buddy_id = player.buddy_id
        if buddy_id:
            if buddy_id == player.id:
                _unmatched(player.id, buddy_id, "self-reference")
            elif buddy_id in by_id:
                buddy = by_id[buddy_id]
                if buddy.buddy_id == player.id and buddy.id not in visited:
                    units.append([player, buddy])
                    visited.add(player.id)
                    visited.add(buddy.id)
                    diagnostics["mutual_pairs"].append(
                        {"player_ids": sorted([player.id, buddy.id])})
                    continue
                _unmatched(player.id, buddy_id, "not-reciprocated")
            else:
                _unmatched(player.id, buddy_id, "missing-player")

        units.append([player])
        visited.add(player.id)

    return units, diagnostics


def unit_skill(unit: list[Player]) -> float:
    return sum(p.skill for p in unit)


def _assign_unit(unit: list[Player], skill_total: float, team: Team,
                 max_roster: int) -> bool:
    if len(team.players) + len(unit) > max_roster:
        return False
    existing = {p.id for p in team.players}
    for player in unit:
        if player.id in existing:
            raise ValueError(f"player {player.id} is already assigned to team {team.id}")
        team.players.append(player)
    team.skill_total += skill_total
    return True


def pick_team(teams: list[Team], unit_size: int, unit_skill_total: float,
              max_roster: int, rng: RandomFn) -> Team | None:
    """Choose the team for a general unit.

    Fewest players first, then lowest resulting average skill, then a random
    draw among the remaining ties. None when no team has room.
    """
    candidates = [t for t in teams if len(t.players) + unit_size <= max_roster]
    if not candidates:
        return None

    min_size = min(len(t.players) for t in candidates)
    smallest = [t for t in candidates if len(t.players) == min_size]
    if len(smallest) == 1:
        return smallest[0]

    def _future_average(team: Team) -> float:
        count = len(team.players) + unit_size
        return (team.skill_total + unit_skill_total) / count if count else 0

    lowest = min(_future_average(t) for t in smallest)
    pool = [t for t in smallest if _future_average(t) == lowest] or smallest
    return pool[math.floor(rng() * len(pool))]


def summarize_overflow(entries: list[OverflowEntry]) -> dict:
    summary = {"total_units": len(entries), "total_players": 0, "by_reason": {}}
    for entry in entries:
        count = len(entry.players)
        summary["total_players"] += count
        bucket = summary["by_reason"].setdefault(
            entry.reason or "unknown", {"units": 0, "players": 0})
        bucket["units"] += 1
        bucket["players"] += count
    return summary


def _coach_coverage(teams: list[Team]) -> dict:
    total = len(teams)
    with_coach = sum(1 for t in teams if t.coach_id)
    without_coach = total - with_coach
    return {
        "total_teams": total,
        "volunteer_coaches": len({t.coach_id for t in teams if t.coach_id}),
        "teams_with_coach": with_coach,
        "teams_without_coach": without_coach,
        "coverage_rate": round(with_coach / total, 4) if total else 0,
        "needs_additional_coaches": without_coach > 0,
    }


def _roster_balance(teams: list[Team], max_roster: int) -> dict:
    team_stats = []
    for t in teams:
        count = len(t.players)
        team_stats.append({
            "team_id": t.id,
            "coach_id": t.coach_id,
            "player_count": count,
            "max_roster_size": max_roster,
            "slots_remaining": max(0, max_roster - count),
            "fill_rate": round(count / max_roster, 4),
        })

    total_players = sum(s["player_count"] for s in team_stats)
    total_capacity = sum(s["max_roster_size"] for s in team_stats)
    return {
        "team_stats": team_stats,
        "summary": {
            "total_players": total_players,
            "total_capacity": total_capacity,
            "average_fill_rate": (round(total_players / total_capacity, 4)
                                  if total_capacity else 0),
            "teams_needing_players": [s["team_id"] for s in team_stats
                                      if s["slots_remaining"] > 0],
        },
    }


def _skill_balance(teams: list[Team], total_players: int) -> dict:
    team_stats = []
    for t in teams:
        count = len(t.players)
        team_stats.append({
            "team_id": t.id,
            "coach_id": t.coach_id,
            "player_count": count,
            "skill_total": t.skill_total,
            "average_skill": round(t.skill_total / count, 4) if count else 0,
        })

    averages = [s["average_skill"] for s in team_stats]
    total_skill = sum(s["skill_total"] for s in team_stats)
    min_avg = min(averages) if averages else 0
    max_avg = max(averages) if averages else 0
    return {
        "team_stats": team_stats,
        "summary": {
            "total_skill": total_skill,
            "average_skill_per_player": (round(total_skill / total_players, 4)
                                         if total_players else 0),
            "min_average_skill": min_avg,
            "max_average_skill": max_avg,
            "spread": round(max_avg - min_avg, 4),
        },
    }
