"""Tests for validation.py — shared guard clauses and time helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from squadlogic.validation import (
    intervals_overlap,
    isoformat_utc,
    normalize_id,
    normalize_optional_id,
    parse_timestamp,
    require_list,
    require_number,
    require_positive_int,
    time_of_day_key,
    validate_interval,
)


class TestIds:
    def test_trims(self):
        assert normalize_id("  p1 ") == "p1"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            normalize_id("   ")

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            normalize_id(12)

    def test_optional_blank_is_none(self):
        assert normalize_optional_id(None) is None
        assert normalize_optional_id("  ") is None
        assert normalize_optional_id(" c1 ") == "c1"


class TestNumbers:
    def test_positive_int(self):
        assert require_positive_int(3, "n") == 3
        with pytest.raises(ValueError):
            require_positive_int(0, "n")
        with pytest.raises(TypeError):
            require_positive_int(2.5, "n")

    def test_bool_is_not_a_number(self):
        with pytest.raises(TypeError):
            require_number(True, "n")
        with pytest.raises(TypeError):
            require_positive_int(True, "n")

    def test_require_list(self):
        assert require_list((1, 2), "x") == [1, 2]
        with pytest.raises(TypeError):
            require_list("ab", "x")


class TestTimestamps:
    def test_z_suffix(self):
        dt = parse_timestamp("2026-03-07T09:00:00Z")
        assert dt == datetime(2026, 3, 7, 9, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        dt = parse_timestamp(datetime(2026, 3, 7, 9, 0))
        assert dt.tzinfo is not None
        assert dt.hour == 9

    def test_offset_converted(self):
        dt = parse_timestamp("2026-03-07T09:00:00-05:00")
        assert dt.hour == 14

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a date")
        with pytest.raises(TypeError):
            parse_timestamp(12345)

    def test_interval(self):
        start = parse_timestamp("2026-03-07T09:00:00Z")
        with pytest.raises(ValueError):
            validate_interval(start, start, "slot")
        validate_interval(start, start + timedelta(hours=1), "slot")

    def test_overlap_is_half_open(self):
        a = parse_timestamp("2026-03-07T09:00:00Z")
        b = a + timedelta(hours=1)
        c = b + timedelta(hours=1)
        assert not intervals_overlap(a, b, b, c)
        assert intervals_overlap(a, c, b, c)

    def test_time_of_day_key(self):
        assert time_of_day_key(parse_timestamp("2026-03-07T09:05:00Z")) == "09:05"

    def test_isoformat_utc(self):
        assert isoformat_utc(parse_timestamp("2026-03-07T09:00:00Z")) == "2026-03-07T09:00:00Z"
