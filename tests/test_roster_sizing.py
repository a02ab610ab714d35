"""Tests for roster_sizing.py — division config derivation."""

import pytest

from squadlogic.roster_sizing import (
    calculate_max_roster_size,
    derive_division_configs,
    parse_playable_count,
)


class TestParsePlayableCount:
    def test_formats(self):
        assert parse_playable_count("7v7") == 7
        assert parse_playable_count(" 9V9 ") == 9
        assert parse_playable_count("11 v 11") == 11

    def test_errors(self):
        with pytest.raises(TypeError):
            parse_playable_count(7)
        with pytest.raises(ValueError):
            parse_playable_count("")
        with pytest.raises(ValueError):
            parse_playable_count("seven a side")


class TestCalculateMaxRosterSize:
    def test_formula(self):
        assert calculate_max_roster_size(7) == 12
        assert calculate_max_roster_size(4) == 6

    def test_buffer_capped_by_playable(self):
        assert calculate_max_roster_size(1, buffer=5) == 1

    def test_minimum_floor(self):
        assert calculate_max_roster_size(4, minimum=10) == 10

    def test_invalid(self):
        with pytest.raises(TypeError):
            calculate_max_roster_size(0)
        with pytest.raises(TypeError):
            calculate_max_roster_size(5, buffer=-1)


class TestDeriveDivisionConfigs:
    def test_precedence(self):
        divisions = [
            {"id": "U8", "play_format": "4v4"},
            {"id": "U10", "max_roster_size": 11, "play_format": "7v7"},
            {"code": "U12", "play_format": "9v9"},
        ]
        configs = derive_division_configs(divisions, {"U12": {"max_roster_size": 14}})

        assert configs["U8"].max_roster_size == 6
        assert configs["U8"].source == "formula"
        assert configs["U8"].playable_count == 4
        assert configs["U10"].max_roster_size == 11
        assert configs["U10"].source == "division-record"
        assert configs["U12"].max_roster_size == 14
        assert configs["U12"].source == "override"

    def test_carries_team_settings(self):
        configs = derive_division_configs([
            {"id": "U10", "playable_count": 7, "target_team_size": 10,
             "team_names": ["Sharks"], "team_name_prefix": "Blue"},
        ])
        assert configs["U10"].target_team_size == 10
        assert configs["U10"].team_names == ["Sharks"]
        assert configs["U10"].team_name_prefix == "Blue"

    def test_missing_identifier(self):
        with pytest.raises(ValueError):
            derive_division_configs([{"play_format": "7v7"}])

    def test_missing_sizing_data(self):
        with pytest.raises(ValueError):
            derive_division_configs([{"id": "U10"}])

    def test_bad_override(self):
        with pytest.raises(ValueError):
            derive_division_configs([{"id": "U10"}], {"U10": {"max_roster_size": 0}})

    def test_override_not_a_mapping(self):
        with pytest.raises(TypeError, match="override for U10 must be a mapping"):
            derive_division_configs([{"id": "U10", "play_format": "7v7"}], {"U10": 10})

    def test_not_a_list(self):
        with pytest.raises(TypeError):
            derive_division_configs({"id": "U10"})
