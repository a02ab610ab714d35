"""Slot allocation: bind round-robin fixtures to concrete field/time slots.

Fixtures are placed greedily, one at a time, in division then week order.
For each fixture the allocator prefers slots reserved for the division and
only falls back to shared slots when none of those is usable. Ranking is a
single comparator composed of ordered criteria so each tie-break can be
tested on its own.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cmp_to_key

from squadlogic.models import (
    Bye,
    DivisionUsage,
    GameAssignment,
    GameSlot,
    Matchup,
    RoundRobinWeek,
    SharedSlotUsage,
    Team,
    UnscheduledMatchup,
    UnscheduledReason,
)
from squadlogic.validation import intervals_overlap, require_list, time_of_day_key

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A selectable slot plus the metrics it is ranked on."""
    slot: GameSlot
    consistency: int = 0
    slot_usage: int = 0
    field_usage: int = 0


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def ascending(key):
    return lambda a, b: _cmp(key(a), key(b))


def descending(key):
    return lambda a, b: _cmp(key(b), key(a))


def compose(*criteria):
    """Comparator that returns the first non-zero criterion result."""
    def compare(a, b) -> int:
        for criterion in criteria:
            result = criterion(a, b)
            if result:
                return result
        return 0
    return compare


by_priority = descending(lambda c: c.slot.priority)
by_consistency = descending(lambda c: c.consistency)
by_slot_usage = ascending(lambda c: c.slot_usage)
by_field_usage = ascending(lambda c: c.field_usage)
by_start = ascending(lambda c: c.slot.start)
by_field = ascending(lambda c: c.slot.field_id or "")
by_slot_id = ascending(lambda c: c.slot.id)

compare_division_candidates = compose(
    by_priority, by_consistency, by_start, by_field, by_slot_id)
compare_shared_candidates = compose(
    by_priority, by_slot_usage, by_field_usage, by_consistency,
    by_start, by_field, by_slot_id)


class _TimePreference:
    """Kickoff time-of-day counts for one team; newest key wins ties."""

    def __init__(self):
        self.counts: dict[str, int] = defaultdict(int)
        self.preferred: str | None = None

    def record(self, key: str):
        self.counts[key] += 1
        if self.preferred is None or self.counts[key] >= self.counts[self.preferred]:
            self.preferred = key


def schedule_games(teams: list[Team], slots: list[GameSlot],
                   round_robin_by_division: Mapping) -> dict:
    """Allocate every division's round-robin fixtures into slots.

    Returns dict with:
    - assignments: list[GameAssignment]
    - byes: list[Bye]
    - unscheduled: list[UnscheduledMatchup]
    - shared_slot_usage: list[SharedSlotUsage]
    """
    teams = require_list(teams, "teams")
    slots = require_list(slots, "slots")
    if not isinstance(round_robin_by_division, Mapping):
        raise TypeError("round_robin_by_division must be a mapping")

    teams_by_id: dict[str, Team] = {}
    for team in teams:
        if not isinstance(team, Team):
            raise TypeError("each team must be a Team record")
        if team.id in teams_by_id:
            raise ValueError(f"duplicate team id detected: {team.id}")
        teams_by_id[team.id] = team

    division_slots: dict[tuple[str, int], list[GameSlot]] = defaultdict(list)
    shared_slots: dict[int, list[GameSlot]] = defaultdict(list)
    remaining: dict[str, int] = {}
    for slot in slots:
        if not isinstance(slot, GameSlot):
            raise TypeError("each slot must be a GameSlot record")
        if slot.id in remaining:
            raise ValueError(f"duplicate slot id detected: {slot.id}")
        remaining[slot.id] = slot.capacity
        if slot.is_shared:
            shared_slots[slot.week_index].append(slot)
        else:
            division_slots[(slot.division, slot.week_index)].append(slot)

    coach_bookings: dict[str, list[tuple]] = defaultdict(list)
    team_weeks: set[tuple[str, int]] = set()
    slot_usage: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    field_usage: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    preferences: dict[str, _TimePreference] = defaultdict(_TimePreference)

    assignments: list[GameAssignment] = []
    byes: list[Bye] = []
    unscheduled: list[UnscheduledMatchup] = []

    def _has_coach_conflict(slot: GameSlot, coaches) -> bool:
        for coach_id in coaches:
            for start, end in coach_bookings.get(coach_id, ()):
                if intervals_overlap(slot.start, slot.end, start, end):
                    return True
        return False

    def _consistency(slot: GameSlot, team_ids) -> int:
        key = time_of_day_key(slot.start)
        return sum(1 for t in team_ids
                   if t in preferences and preferences[t].preferred == key)

    def _select(division, week_index, team_ids, coaches):
        """Returns (slot or None, rejection counts)."""
        rejections = {"capacity": 0, "coach": 0}

        def _usable(pool):
            usable = []
            for slot in pool:
                if remaining[slot.id] <= 0:
                    rejections["capacity"] += 1
                    continue
                if _has_coach_conflict(slot, coaches):
                    rejections["coach"] += 1
                    continue
                usable.append(slot)
            return usable

        candidates = [
            Candidate(slot, consistency=_consistency(slot, team_ids))
            for slot in _usable(division_slots.get((division, week_index), []))
        ]
        if candidates:
            best = min(candidates, key=cmp_to_key(compare_division_candidates))
            return best.slot, rejections

        candidates = [
            Candidate(
                slot,
                consistency=_consistency(slot, team_ids),
                slot_usage=slot_usage[slot.id][division] if slot.id in slot_usage else 0,
                field_usage=(field_usage[slot.field_id or "unassigned"][division]
                             if (slot.field_id or "unassigned") in field_usage else 0),
            )
            for slot in _usable(shared_slots.get(week_index, []))
        ]
        if candidates:
            best = min(candidates, key=cmp_to_key(compare_shared_candidates))
            return best.slot, rejections
        return None, rejections

    def _reject(week_index, division, matchup, reason: UnscheduledReason):
        unscheduled.append(UnscheduledMatchup(week_index, division, matchup, reason))

    for division, weeks in round_robin_by_division.items():
        if not isinstance(weeks, (list, tuple)):
            raise TypeError(f"weeks for division {division} must be a list")

        for week in weeks:
            if not isinstance(week, RoundRobinWeek):
                raise TypeError(f"week entries for division {division} must be RoundRobinWeek")
            w = week.week_index

            for team_id in week.byes:
                if team_id in teams_by_id:
                    byes.append(Bye(w, division, team_id))

            for matchup in week.matchups:
                if not isinstance(matchup, Matchup):
                    raise TypeError(f"matchups for division {division} must be Matchup records")
                home = teams_by_id.get(matchup.home_team_id)
                away = teams_by_id.get(matchup.away_team_id)

                if home is None or away is None:
                    _reject(w, division, matchup, UnscheduledReason.UNKNOWN_TEAM)
                    continue
                if home.division != division or away.division != division:
                    _reject(w, division, matchup, UnscheduledReason.DIVISION_MISMATCH)
                    continue
                if (home.id, w) in team_weeks or (away.id, w) in team_weeks:
                    _reject(w, division, matchup, UnscheduledReason.DUPLICATE_MATCHUP)
                    continue
                if home.coach_id and home.coach_id == away.coach_id:
                    _reject(w, division, matchup, UnscheduledReason.COACH_COACHES_BOTH_TEAMS)
                    continue

                team_ids = (home.id, away.id)
                coaches = [c for c in (home.coach_id, away.coach_id) if c]
                slot, rejections = _select(division, w, team_ids, coaches)

                if slot is None:
                    if rejections["coach"] and not rejections["capacity"]:
                        reason = UnscheduledReason.COACH_SCHEDULING_CONFLICT
                    else:
                        reason = UnscheduledReason.NO_SLOT_AVAILABLE
                    _reject(w, division, matchup, reason)
                    continue

                remaining[slot.id] -= 1
                team_weeks.add((home.id, w))
                team_weeks.add((away.id, w))
                for coach_id in coaches:
                    coach_bookings[coach_id].append((slot.start, slot.end))
                key = time_of_day_key(slot.start)
                for team_id in team_ids:
                    preferences[team_id].record(key)
                if slot.is_shared:
                    slot_usage[slot.id][division] += 1
                    field_usage[slot.field_id or "unassigned"][division] += 1

                assignments.append(GameAssignment(
                    week_index=w,
                    division=division,
                    slot_id=slot.id,
                    start=slot.start,
                    end=slot.end,
                    home_team_id=home.id,
                    away_team_id=away.id,
                    field_id=slot.field_id,
                ))

    assignments.sort(key=lambda a: (a.week_index, a.division, a.start, a.slot_id,
                                    a.home_team_id))
    byes.sort(key=lambda b: (b.week_index, b.division, b.team_id))
    unscheduled.sort(key=lambda u: (u.week_index, u.division, u.matchup.label, u.reason))

    slots_by_id = {s.id: s for s in slots}
    shared_summary = []
    for slot_id in sorted(slot_usage):
        slot = slots_by_id[slot_id]
        usage = [DivisionUsage(d, count) for d, count in sorted(slot_usage[slot_id].items())]
        shared_summary.append(SharedSlotUsage(
            slot_id=slot_id,
            week_index=slot.week_index,
            field_id=slot.field_id,
            start=slot.start,
            end=slot.end,
            division_usage=usage,
        ))

    logger.info(
        "Scheduled %d game(s), %d bye(s), %d unscheduled across %d division(s)",
        len(assignments), len(byes), len(unscheduled), len(round_robin_by_division),
    )
    for entry in unscheduled:
        logger.debug("Unscheduled week %d %s %s: %s", entry.week_index,
                     entry.division, entry.matchup.label, entry.reason)

    return {
        "assignments": assignments,
        "byes": byes,
        "unscheduled": unscheduled,
        "shared_slot_usage": shared_summary,
    }
