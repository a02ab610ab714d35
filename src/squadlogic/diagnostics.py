"""Team generation summaries and the plain-text team report."""

from collections import defaultdict

_EMPTY_BUDDY = {"mutual_pairs": [], "unmatched_requests": []}
_EMPTY_COVERAGE = {
    "total_teams": 0,
    "volunteer_coaches": 0,
    "teams_with_coach": 0,
    "teams_without_coach": 0,
    "coverage_rate": 0,
    "needs_additional_coaches": False,
}
_EMPTY_ROSTER = {
    "team_stats": [],
    "summary": {"total_players": 0, "total_capacity": 0,
                "average_fill_rate": 0, "teams_needing_players": []},
}

_REQUIRED_KEYS = ("teams_by_division", "overflow_by_division",
                  "buddy_diagnostics_by_division", "coach_coverage_by_division",
                  "roster_balance_by_division")


def summarize_team_generation(result: dict) -> dict:
    """Flatten a generate_teams() result into per-division rows.

    Returns dict with:
    - divisions: list of per-division dicts, sorted by division id
    - totals: league-wide counts
    """
    if not isinstance(result, dict):
        raise TypeError("result must be a dict")
    for key in _REQUIRED_KEYS:
        if not isinstance(result.get(key), dict):
            raise TypeError(f"{key} must be a dict")
    overflow_summaries = result.get("overflow_summary_by_division") or {}

    division_ids = set()
    for key in _REQUIRED_KEYS:
        division_ids.update(result[key])

    totals = {
        "divisions": len(division_ids),
        "teams": 0,
        "players_assigned": 0,
        "overflow_players": 0,
        "divisions_needing_coaches": 0,
        "divisions_with_open_roster_slots": 0,
    }
    divisions = []

    for division in sorted(division_ids):
        teams = result["teams_by_division"].get(division, [])
        overflow = result["overflow_by_division"].get(division, [])
        buddy = result["buddy_diagnostics_by_division"].get(division, _EMPTY_BUDDY)
        coverage = result["coach_coverage_by_division"].get(division, _EMPTY_COVERAGE)
        roster = result["roster_balance_by_division"].get(division, _EMPTY_ROSTER)

        players_assigned = sum(s["player_count"] for s in roster["team_stats"])
        total_capacity = sum(s["max_roster_size"] for s in roster["team_stats"])
        slots_remaining = sum(max(0, s["slots_remaining"]) for s in roster["team_stats"])

        unmatched_reasons: dict[str, int] = defaultdict(int)
        for request in buddy["unmatched_requests"]:
            unmatched_reasons[request["reason"]] += 1

        units_by_reason: dict[str, int] = defaultdict(int)
        players_by_reason: dict[str, int] = defaultdict(int)
        for entry in overflow:
            units_by_reason[entry.reason] += 1
            players_by_reason[entry.reason] += len(entry.players)
        summary = overflow_summaries.get(division)
        overflow_units = summary["total_units"] if summary else len(overflow)
        overflow_players = (summary["total_players"] if summary
                            else sum(players_by_reason.values()))

        divisions.append({
            "division": division,
            "total_teams": len(teams),
            "players_assigned": players_assigned,
            "total_capacity": total_capacity,
            "average_fill_rate": roster["summary"]["average_fill_rate"],
            "teams_needing_players": list(roster["summary"]["teams_needing_players"]),
            "slots_remaining": slots_remaining,
            "needs_additional_coaches": bool(coverage["needs_additional_coaches"]),
            "coach_coverage": coverage,
            "mutual_buddy_pairs": len(buddy["mutual_pairs"]),
            "unmatched_buddy_count": len(buddy["unmatched_requests"]),
            "unmatched_buddy_reasons": dict(unmatched_reasons),
            "overflow_units": overflow_units,
            "overflow_players": overflow_players,
            "overflow_by_reason": dict(units_by_reason),
            "overflow_players_by_reason": dict(players_by_reason),
        })

        totals["teams"] += len(teams)
        totals["players_assigned"] += players_assigned
        totals["overflow_players"] += overflow_players
        if coverage["needs_additional_coaches"]:
            totals["divisions_needing_coaches"] += 1
        if slots_remaining > 0:
            totals["divisions_with_open_roster_slots"] += 1

    return {"divisions": divisions, "totals": totals}


def format_team_report(result: dict) -> str:
    """Format a generate_teams() result as a human-readable report."""
    summary = summarize_team_generation(result)
    skill = result.get("skill_balance_by_division", {})

    lines = []
    lines.append("=" * 70)
    lines.append("TEAM GENERATION REPORT")
    lines.append("=" * 70)

    lines.append(f"\n{'Division':<10} {'Teams':>5} {'Players':>7} {'Cap':>5} "
                 f"{'Fill':>6} {'Open':>5} {'Coach%':>7} {'Pairs':>5} {'Ovfl':>5}")
    lines.append("-" * 70)
    for row in summary["divisions"]:
        lines.append(
            f"{row['division']:<10} {row['total_teams']:>5} "
            f"{row['players_assigned']:>7} {row['total_capacity']:>5} "
            f"{row['average_fill_rate']:>6.0%} {row['slots_remaining']:>5} "
            f"{row['coach_coverage']['coverage_rate']:>7.0%} "
            f"{row['mutual_buddy_pairs']:>5} {row['overflow_players']:>5}"
        )

    for row in summary["divisions"]:
        division = row["division"]
        lines.append(f"\n--- {division} ---")
        for team in result["teams_by_division"].get(division, []):
            coach = team.coach_id or "(no coach)"
            lines.append(f"  {team.id:<12} {team.name:<20} {len(team.players):>3} players  "
                         f"coach: {coach}")

        balance = skill.get(division)
        if balance:
            s = balance["summary"]
            lines.append(f"  Skill spread: {s['spread']} "
                         f"(avg {s['min_average_skill']} - {s['max_average_skill']})")
        if row["needs_additional_coaches"]:
            missing = row["coach_coverage"]["teams_without_coach"]
            lines.append(f"  WARN: {missing} team(s) without a head coach")
        for reason, count in sorted(row["unmatched_buddy_reasons"].items()):
            lines.append(f"  WARN: {count} buddy request(s) unmatched ({reason})")
        for reason, count in sorted(row["overflow_players_by_reason"].items()):
            lines.append(f"  WARN: {count} player(s) in overflow ({reason})")

    t = summary["totals"]
    lines.append(f"\nTotals: {t['divisions']} divisions, {t['teams']} teams, "
                 f"{t['players_assigned']} players assigned, "
                 f"{t['overflow_players']} in overflow")
    return "\n".join(lines)
