"""Tests for models.py — record construction and validation."""

from datetime import datetime, timezone

import pytest

from squadlogic.models import (
    DivisionConfig,
    DivisionUsage,
    GameAssignment,
    GameSlot,
    Matchup,
    OverflowEntry,
    Player,
    SharedSlotUsage,
    UnscheduledMatchup,
    UnscheduledReason,
)


class TestPlayer:
    def test_from_dict_camel_case(self):
        p = Player.from_dict({"id": "p1", "division": "U10", "buddyId": "p2",
                              "coachId": "c1", "skillRating": 4})
        assert p.buddy_id == "p2"
        assert p.coach_id == "c1"
        assert p.skill == 4

    def test_from_dict_snake_case(self):
        p = Player.from_dict({"id": "p1", "division": "U10",
                              "assistant_coach_id": "a1"})
        assert p.assistant_coach_id == "a1"

    def test_unrated_skill_is_zero(self):
        assert Player("p1", "U10").skill == 0

    def test_missing_division(self):
        with pytest.raises(TypeError):
            Player("p1", None)

    def test_blank_buddy_is_none(self):
        assert Player("p1", "U10", buddy_id="  ").buddy_id is None

    def test_bad_skill(self):
        with pytest.raises(TypeError):
            Player("p1", "U10", skill_rating="high")


class TestDivisionConfig:
    def test_requires_positive_roster(self):
        with pytest.raises(ValueError):
            DivisionConfig(max_roster_size=0)

    def test_from_dict(self):
        config = DivisionConfig.from_dict({"maxRosterSize": 12, "teamNamePrefix": "Blue"})
        assert config.max_roster_size == 12
        assert config.team_name_prefix == "Blue"


class TestGameSlot:
    def test_parses_strings(self):
        slot = GameSlot("s1", 1, "2026-03-07T09:00:00Z", "2026-03-07T10:00:00Z", 1)
        assert slot.start == datetime(2026, 3, 7, 9, tzinfo=timezone.utc)
        assert slot.is_shared

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            GameSlot("s1", 1, "2026-03-07T10:00:00Z", "2026-03-07T09:00:00Z", 1)

    def test_negative_capacity(self):
        with pytest.raises(ValueError):
            GameSlot("s1", 1, "2026-03-07T09:00:00Z", "2026-03-07T10:00:00Z", -1)

    def test_week_index_positive(self):
        with pytest.raises(ValueError):
            GameSlot("s1", 0, "2026-03-07T09:00:00Z", "2026-03-07T10:00:00Z", 1)

    def test_from_dict_defaults_priority(self):
        slot = GameSlot.from_dict({"id": "s1", "weekIndex": 2, "start": "2026-03-07T09:00:00Z",
                                   "end": "2026-03-07T10:00:00Z", "capacity": 2,
                                   "division": "U10", "fieldId": "F1"})
        assert slot.priority == 1
        assert slot.field_id == "F1"
        assert not slot.is_shared


class TestAssignments:
    def test_home_equals_away(self):
        with pytest.raises(ValueError):
            GameAssignment(1, "U10", "s1", "2026-03-07T09:00:00Z",
                           "2026-03-07T10:00:00Z", "A", "A")

    def test_matchup_label(self):
        m = Matchup("A", "B")
        assert m.label == "A-B"
        assert m.involves("B")
        assert not m.involves("C")

    def test_unscheduled_reason_enum_normalized(self):
        entry = UnscheduledMatchup(1, "U10", Matchup("A", "B"),
                                   UnscheduledReason.NO_SLOT_AVAILABLE)
        assert entry.reason == "no-slot-available"

    def test_overflow_requires_players(self):
        with pytest.raises(ValueError):
            OverflowEntry(players=[], reason="buddy request")


class TestSharedSlotUsage:
    def test_total_defaults_to_sum(self):
        usage = SharedSlotUsage("s1", division_usage=[DivisionUsage("U10", 3),
                                                      DivisionUsage("U12", 1)])
        assert usage.total_assignments == 4

    def test_total_must_match_usage(self):
        usage = [DivisionUsage("U10", 3), DivisionUsage("U12", 1)]
        assert SharedSlotUsage("s1", division_usage=usage,
                               total_assignments=4).total_assignments == 4
        with pytest.raises(ValueError):
            SharedSlotUsage("s1", division_usage=usage, total_assignments=5)

    def test_negative_count(self):
        with pytest.raises(ValueError):
            DivisionUsage("U10", -1)
