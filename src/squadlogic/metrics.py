"""Schedule evaluation: load metrics and conflict detection.

Everything here is recomputed from the assignment list itself. Nothing is
trusted from the allocator's bookkeeping, so the same checks can be run on
a schedule that was edited by hand.
"""

from collections import defaultdict

from squadlogic.models import (
    Bye,
    GameAssignment,
    ScheduleWarning,
    SharedSlotUsage,
    Team,
    UnscheduledMatchup,
)
from squadlogic.validation import isoformat_utc

UNASSIGNED_FIELD = "unassigned"

ERROR_WARNING_TYPES = ("team-double-booked", "coach-conflict", "field-overlap")


def _require_records(value, label: str, record_type) -> list:
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{label} must be a list")
    for item in value:
        if not isinstance(item, record_type):
            raise TypeError(f"{label} entries must be {record_type.__name__} records")
    return list(value)


def evaluate_game_schedule(assignments: list[GameAssignment], teams: list[Team],
                           byes=(), unscheduled=(), shared_slot_usage=()) -> dict:
    """Evaluate a completed schedule.

    Returns dict with:
    - summary: per-division, per-field and per-team metrics
    - warnings: list[ScheduleWarning], advisory only
    """
    assignments = _require_records(assignments, "assignments", GameAssignment)
    teams = _require_records(teams, "teams", Team)
    byes = _require_records(byes, "byes", Bye)
    unscheduled = _require_records(unscheduled, "unscheduled", UnscheduledMatchup)
    shared_slot_usage = _require_records(shared_slot_usage, "shared_slot_usage",
                                         SharedSlotUsage)

    teams_by_id = {t.id: t for t in teams}
    warnings: list[ScheduleWarning] = []
    seen_unknown: set[str] = set()

    by_division: dict[str, dict] = {}
    field_usage: dict[str, dict] = {}
    load: dict[str, dict] = {}
    team_games = defaultdict(list)
    coach_games = defaultdict(list)
    field_games = defaultdict(list)

    for a in assignments:
        field_key = a.field_id or UNASSIGNED_FIELD

        division = by_division.setdefault(a.division, {"games": 0, "teams": set()})
        division["games"] += 1
        division["teams"].update((a.home_team_id, a.away_team_id))

        field = field_usage.setdefault(field_key, {"games": 0, "divisions": set()})
        field["games"] += 1
        field["divisions"].add(a.division)

        for team_id, role in ((a.home_team_id, "home"), (a.away_team_id, "away")):
            team = teams_by_id.get(team_id)
            if team is None:
                if team_id not in seen_unknown:
                    seen_unknown.add(team_id)
                    warnings.append(ScheduleWarning(
                        type="unknown-team",
                        message=f"Scheduled game references unknown team {team_id}",
                        details={"team_id": team_id, "week_index": a.week_index,
                                 "slot_id": a.slot_id},
                    ))
                continue

            team_games[team_id].append((a, team_id))
            if team.coach_id:
                coach_games[team.coach_id].append((a, team_id))

            record = load.setdefault(team_id, {
                "total_games": 0, "home_games": 0, "away_games": 0,
                "fields": set(), "weeks": set(), "earliest": None, "latest": None,
            })
            record["total_games"] += 1
            record[f"{role}_games"] += 1
            if field_key != UNASSIGNED_FIELD:
                record["fields"].add(field_key)
            record["weeks"].add(a.week_index)
            if record["earliest"] is None or a.start < record["earliest"]:
                record["earliest"] = a.start
            if record["latest"] is None or a.start > record["latest"]:
                record["latest"] = a.start

        field_games[field_key].append((a, None))

    teams_with_byes: dict[str, int] = defaultdict(int)
    for bye in byes:
        teams_with_byes[bye.division] += 1

    unscheduled_by_reason: dict[str, int] = defaultdict(int)
    unscheduled_by_division: dict[str, int] = defaultdict(int)
    for entry in unscheduled:
        unscheduled_by_reason[entry.reason] += 1
        unscheduled_by_division[entry.division] += 1

    shared_summaries, field_distribution, imbalance = _analyze_shared_usage(
        shared_slot_usage)
    warnings.extend(imbalance)

    warnings.extend(_detect_overlaps(
        team_games, "team-double-booked", "team_id",
        lambda i: f"Team {i} has overlapping games"))
    warnings.extend(_detect_overlaps(
        coach_games, "coach-conflict", "coach_id",
        lambda i: f"Coach {i} has overlapping games across teams"))
    warnings.extend(_detect_overlaps(
        field_games, "field-overlap", "field_id",
        lambda i: f"Field {i} has overlapping games",
        skip=UNASSIGNED_FIELD))

    if unscheduled:
        breakdown = ", ".join(f"{reason}: {count}"
                              for reason, count in sorted(unscheduled_by_reason.items()))
        warnings.append(ScheduleWarning(
            type="unscheduled-matchups",
            message=f"{len(unscheduled)} matchup(s) could not be scheduled ({breakdown}).",
            details={"breakdown": dict(unscheduled_by_reason),
                     "division_breakdown": dict(unscheduled_by_division)},
        ))

    summary = {
        "total_assignments": len(assignments),
        "assignments_by_division": {
            d: {"games": r["games"], "teams": sorted(r["teams"])}
            for d, r in by_division.items()
        },
        "field_usage": {
            f: {"games": r["games"], "divisions": sorted(r["divisions"])}
            for f, r in field_usage.items()
        },
        "team_game_load": {
            t: {
                "total_games": r["total_games"],
                "home_games": r["home_games"],
                "away_games": r["away_games"],
                "unique_fields": sorted(r["fields"]),
                "weeks_scheduled": sorted(r["weeks"]),
                "earliest_start": isoformat_utc(r["earliest"]),
                "latest_start": isoformat_utc(r["latest"]),
            }
            for t, r in load.items()
        },
        "teams_with_byes": dict(teams_with_byes),
        "unscheduled_by_reason": dict(unscheduled_by_reason),
        "unscheduled_by_division": dict(unscheduled_by_division),
        "shared_slot_usage": shared_summaries,
        "shared_field_distribution": field_distribution,
    }
    return {"summary": summary, "warnings": warnings}


def _analyze_shared_usage(records: list[SharedSlotUsage]):
    summaries = []
    by_field: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for record in records:
        usage = sorted(({"division": u.division, "count": u.count}
                        for u in record.division_usage),
                       key=lambda u: u["division"])
        summaries.append({
            "slot_id": record.slot_id,
            "field_id": record.field_id,
            "week_index": record.week_index,
            "start": isoformat_utc(record.start) if record.start else None,
            "end": isoformat_utc(record.end) if record.end else None,
            "total_assignments": record.total_assignments,
            "division_usage": usage,
        })
        for u in usage:
            by_field[record.field_id or UNASSIGNED_FIELD][u["division"]] += u["count"]

    summaries.sort(key=lambda s: s["slot_id"])
    distribution = {field: dict(sorted(counts.items()))
                    for field, counts in by_field.items()}

    warnings = []
    for s in summaries:
        field_key = s["field_id"] or UNASSIGNED_FIELD
        divisions = by_field.get(field_key, {})
        if len(divisions) <= 1:
            continue
        slot_counts = {u["division"]: u["count"] for u in s["division_usage"]}
        spread_rows = [{"division": d, "count": slot_counts.get(d, 0)}
                       for d in sorted(divisions)]
        counts = [row["count"] for row in spread_rows]
        spread = max(counts) - min(counts)
        if spread > 1:
            warnings.append(ScheduleWarning(
                type="shared-slot-imbalance",
                message=f"Shared field {field_key} is imbalanced across divisions",
                details={"slot_id": s["slot_id"], "field_id": s["field_id"],
                         "distribution": spread_rows, "spread": spread},
            ))

    return summaries, distribution, warnings


def _describe(assignment: GameAssignment, team_id: str | None) -> dict:
    return {
        "slot_id": assignment.slot_id,
        "start": isoformat_utc(assignment.start),
        "end": isoformat_utc(assignment.end),
        "week_index": assignment.week_index,
        "division": assignment.division,
        "team_id": team_id,
        "teams": [assignment.home_team_id, assignment.away_team_id],
    }


def _detect_overlaps(groups: dict, warning_type: str, id_key: str, message,
                     skip: str | None = None) -> list[ScheduleWarning]:
    """One warning per id, naming its first overlapping adjacent pair."""
    warnings = []
    for group_id, entries in groups.items():
        if group_id == skip:
            continue
        ordered = sorted(entries, key=lambda e: (e[0].start, e[0].slot_id))
        for prev, curr in zip(ordered, ordered[1:]):
            if curr[0].start < prev[0].end:
                warnings.append(ScheduleWarning(
                    type=warning_type,
                    message=message(group_id),
                    details={id_key: group_id,
                             "conflicts": [_describe(*prev), _describe(*curr)]},
                ))
                break
    return warnings


def format_evaluation_report(result: dict) -> str:
    """Format evaluate_game_schedule() output as text."""
    summary = result["summary"]
    warnings = result["warnings"]

    lines = []
    lines.append("=" * 60)
    lines.append("SCHEDULE EVALUATION REPORT")
    lines.append("=" * 60)

    errors = [w for w in warnings if w.type in ERROR_WARNING_TYPES]
    if errors:
        lines.append(f"\nRESULT: CONFLICTS FOUND ({len(errors)})")
    else:
        lines.append("\nRESULT: NO CONFLICTS")

    lines.append(f"\nGames scheduled: {summary['total_assignments']}")
    for division, record in sorted(summary["assignments_by_division"].items()):
        byes = summary["teams_with_byes"].get(division, 0)
        unsched = summary["unscheduled_by_division"].get(division, 0)
        lines.append(f"  {division:<10} {record['games']:>4} games  "
                     f"{len(record['teams']):>3} teams  {byes:>3} byes  "
                     f"{unsched:>3} unscheduled")

    if summary["field_usage"]:
        lines.append("\n--- FIELD USAGE ---")
        for field, record in sorted(summary["field_usage"].items()):
            lines.append(f"  {field:<16} {record['games']:>4} games  "
                         f"({', '.join(record['divisions'])})")

    if summary["team_game_load"]:
        lines.append("\n--- TEAM LOAD ---")
        lines.append(f"  {'Team':<14} {'Games':>5} {'Home':>5} {'Away':>5} {'Fields':>6}")
        for team_id, record in sorted(summary["team_game_load"].items()):
            lines.append(f"  {team_id:<14} {record['total_games']:>5} "
                         f"{record['home_games']:>5} {record['away_games']:>5} "
                         f"{len(record['unique_fields']):>6}")

    if errors:
        lines.append(f"\n--- ERRORS ({len(errors)}) ---")
        for w in errors:
            lines.append(f"  ERROR: {w.message}")

    advisories = [w for w in warnings if w.type not in ERROR_WARNING_TYPES]
    if advisories:
        lines.append(f"\n--- WARNINGS ({len(advisories)}) ---")
        for w in advisories:
            lines.append(f"  WARN: {w.message}")

    return "\n".join(lines)
