"""Tests for scheduler.py — slot allocation and ranking criteria."""

from datetime import datetime, timedelta, timezone

import pytest

from squadlogic.models import GameSlot, Matchup, RoundRobinWeek, Team
from squadlogic.roundrobin import generate_round_robin_weeks
from squadlogic.scheduler import (
    Candidate,
    compare_division_candidates,
    compare_shared_candidates,
    compose,
    schedule_games,
)
from squadlogic.validation import intervals_overlap

SEASON_START = datetime(2026, 3, 7, tzinfo=timezone.utc)


def _make_team(team_id, division="U10", coach_id=None):
    return Team(id=team_id, division=division, coach_id=coach_id)


def _make_slot(slot_id, week=1, hour=9, minute=0, capacity=1, division="U10",
               field_id="F1", priority=1, minutes=60):
    start = SEASON_START + timedelta(weeks=week - 1, hours=hour, minutes=minute)
    return GameSlot(
        id=slot_id, week_index=week, start=start, end=start + timedelta(minutes=minutes),
        capacity=capacity, division=division, field_id=field_id, priority=priority,
    )


def _week(index, *pairs, byes=()):
    return RoundRobinWeek(index, [Matchup(h, a) for h, a in pairs], list(byes))


def _reasons(result):
    return [(u.matchup.label, u.reason) for u in result["unscheduled"]]


class TestComparators:
    def test_compose_first_non_zero(self):
        cmp = compose(lambda a, b: 0, lambda a, b: -1, lambda a, b: 1)
        assert cmp(None, None) == -1

    def test_division_priority_beats_start(self):
        early = Candidate(_make_slot("a", hour=9, priority=1))
        late = Candidate(_make_slot("b", hour=11, priority=2))
        assert compare_division_candidates(late, early) < 0

    def test_division_consistency_beats_start(self):
        early = Candidate(_make_slot("a", hour=9), consistency=0)
        late = Candidate(_make_slot("b", hour=11), consistency=2)
        assert compare_division_candidates(late, early) < 0

    def test_division_field_then_id(self):
        f2 = Candidate(_make_slot("a", field_id="F2"))
        f1 = Candidate(_make_slot("b", field_id="F1"))
        assert compare_division_candidates(f1, f2) < 0
        same_a = Candidate(_make_slot("a"))
        same_b = Candidate(_make_slot("b"))
        assert compare_division_candidates(same_a, same_b) < 0

    def test_shared_usage_beats_consistency(self):
        busy = Candidate(_make_slot("a", division=None), consistency=2, slot_usage=1)
        idle = Candidate(_make_slot("b", division=None), consistency=0, slot_usage=0)
        assert compare_shared_candidates(idle, busy) < 0

    def test_shared_field_usage_beats_start(self):
        early = Candidate(_make_slot("a", hour=9, division=None), field_usage=3)
        late = Candidate(_make_slot("b", hour=11, division=None), field_usage=0)
        assert compare_shared_candidates(late, early) < 0


class TestScheduleGames:
    def test_full_round_robin(self):
        teams = [_make_team(t) for t in ("A", "B", "C", "D")]
        slots = [_make_slot(f"s{w}{f}", week=w, field_id=f)
                 for w in (1, 2, 3) for f in ("F1", "F2")]
        weeks = generate_round_robin_weeks(["A", "B", "C", "D"])
        result = schedule_games(teams, slots, {"U10": weeks})

        assert len(result["assignments"]) == 6
        assert result["unscheduled"] == []
        assert result["byes"] == []

        slot_use = {}
        for a in result["assignments"]:
            assert a.home_team_id != a.away_team_id
            assert a.division == "U10"
            slot_use[a.slot_id] = slot_use.get(a.slot_id, 0) + 1
        assert all(count <= 1 for count in slot_use.values())

        by_team = {}
        for a in result["assignments"]:
            for t in (a.home_team_id, a.away_team_id):
                by_team.setdefault(t, []).append(a)
        for games in by_team.values():
            for i, g1 in enumerate(games):
                for g2 in games[i + 1:]:
                    assert not intervals_overlap(g1.start, g1.end, g2.start, g2.end)

    def test_byes_recorded(self):
        teams = [_make_team(t) for t in ("A", "B", "C")]
        weeks = generate_round_robin_weeks(["A", "B", "C"])
        slots = [_make_slot(f"s{w}", week=w) for w in (1, 2, 3)]
        result = schedule_games(teams, slots, {"U10": weeks})
        assert [(b.week_index, b.team_id) for b in result["byes"]] == [
            (1, "A"), (2, "B"), (3, "C")]

    def test_shared_coach_rejected(self):
        teams = [_make_team("A", coach_id="c1"), _make_team("B", coach_id="c1")]
        result = schedule_games(teams, [_make_slot("s1")], {"U10": [_week(1, ("A", "B"))]})
        assert result["assignments"] == []
        assert _reasons(result) == [("A-B", "coach-coaches-both-teams")]

    def test_unknown_team(self):
        teams = [_make_team("A")]
        result = schedule_games(teams, [_make_slot("s1")], {"U10": [_week(1, ("A", "X"))]})
        assert _reasons(result) == [("A-X", "unknown-team")]

    def test_division_mismatch(self):
        teams = [_make_team("A"), _make_team("B", division="U12")]
        result = schedule_games(teams, [_make_slot("s1")], {"U10": [_week(1, ("A", "B"))]})
        assert _reasons(result) == [("A-B", "division-mismatch")]

    def test_team_twice_in_week(self):
        teams = [_make_team(t) for t in ("A", "B", "C")]
        slots = [_make_slot("s1"), _make_slot("s2", field_id="F2")]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"), ("A", "C"))]})
        assert len(result["assignments"]) == 1
        assert _reasons(result) == [("A-C", "duplicate-matchup")]

    def test_coach_scheduling_conflict(self):
        teams = [_make_team("A", coach_id="c1"), _make_team("B"),
                 _make_team("C", coach_id="c1"), _make_team("D")]
        slots = [_make_slot("s1", capacity=2)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"), ("C", "D"))]})
        assert len(result["assignments"]) == 1
        assert _reasons(result) == [("C-D", "coach-scheduling-conflict")]

    def test_coach_can_play_later_slot(self):
        teams = [_make_team("A", coach_id="c1"), _make_team("B"),
                 _make_team("C", coach_id="c1"), _make_team("D")]
        slots = [_make_slot("s1", capacity=2), _make_slot("s2", hour=10)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"), ("C", "D"))]})
        assert [a.slot_id for a in result["assignments"]] == ["s1", "s2"]

    def test_no_slot_available(self):
        teams = [_make_team("A"), _make_team("B")]
        result = schedule_games(teams, [], {"U10": [_week(1, ("A", "B"))]})
        assert _reasons(result) == [("A-B", "no-slot-available")]

    def test_capacity_respected(self):
        teams = [_make_team(t) for t in ("A", "B", "C", "D")]
        result = schedule_games(teams, [_make_slot("s1")],
                                {"U10": [_week(1, ("A", "B"), ("C", "D"))]})
        assert len(result["assignments"]) == 1
        assert _reasons(result) == [("C-D", "no-slot-available")]

    def test_division_slot_preferred_over_shared(self):
        teams = [_make_team("A"), _make_team("B")]
        slots = [_make_slot("shared", division=None, priority=5, hour=8),
                 _make_slot("mine", priority=1)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"))]})
        assert result["assignments"][0].slot_id == "mine"
        assert result["shared_slot_usage"] == []

    def test_priority_wins(self):
        teams = [_make_team("A"), _make_team("B")]
        slots = [_make_slot("early", hour=9, priority=1),
                 _make_slot("late", hour=11, priority=2)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"))]})
        assert result["assignments"][0].slot_id == "late"

    def test_earliest_start_on_tie(self):
        teams = [_make_team("A"), _make_team("B")]
        slots = [_make_slot("late", hour=11), _make_slot("early", hour=9)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"))]})
        assert result["assignments"][0].slot_id == "early"

    def test_kickoff_consistency(self):
        teams = [_make_team(t) for t in ("A", "B", "C")]
        slots = [_make_slot("w1", week=1, hour=10),
                 _make_slot("w2-09", week=2, hour=9),
                 _make_slot("w2-10", week=2, hour=10)]
        weeks = [_week(1, ("A", "B")), _week(2, ("A", "C"))]
        result = schedule_games(teams, slots, {"U10": weeks})
        assert [a.slot_id for a in result["assignments"]] == ["w1", "w2-10"]

    def test_shared_slots_balanced(self):
        teams = [_make_team(t) for t in ("A", "B", "C", "D")]
        slots = [_make_slot("s1", division=None, capacity=2, field_id="F1"),
                 _make_slot("s2", division=None, capacity=2, field_id="F2")]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"), ("C", "D"))]})
        assert [a.slot_id for a in result["assignments"]] == ["s1", "s2"]

        usage = result["shared_slot_usage"]
        assert [u.slot_id for u in usage] == ["s1", "s2"]
        assert usage[0].division_usage[0].division == "U10"
        assert usage[0].division_usage[0].count == 1
        assert usage[0].total_assignments == 1

    def test_shared_slot_across_divisions(self):
        teams = [_make_team("A"), _make_team("B"),
                 _make_team("X", division="U12"), _make_team("Y", division="U12")]
        slots = [_make_slot("s1", division=None, capacity=2)]
        result = schedule_games(teams, slots, {"U10": [_week(1, ("A", "B"))],
                                               "U12": [_week(1, ("X", "Y"))]})
        usage = result["shared_slot_usage"][0]
        assert [(u.division, u.count) for u in usage.division_usage] == [("U10", 1), ("U12", 1)]
        assert usage.total_assignments == 2

    def test_outputs_sorted(self):
        teams = [_make_team(t) for t in ("A", "B", "C", "D")]
        slots = [_make_slot(f"s{w}{f}", week=w, field_id=f)
                 for w in (1, 2, 3) for f in ("F1", "F2")]
        result = schedule_games(teams, slots,
                                {"U10": generate_round_robin_weeks(["A", "B", "C", "D"])})
        keys = [(a.week_index, a.division, a.start, a.slot_id) for a in result["assignments"]]
        assert keys == sorted(keys)

    def test_duplicate_slot_id(self):
        with pytest.raises(ValueError):
            schedule_games([], [_make_slot("s1"), _make_slot("s1")], {})

    def test_structural_errors(self):
        with pytest.raises(TypeError):
            schedule_games("teams", [], {})
        with pytest.raises(TypeError):
            schedule_games([], [], [])
        with pytest.raises(TypeError):
            schedule_games([], [], {"U10": [{"week_index": 1}]})
