"""Roster sizing: derive per-division DivisionConfig from league metadata."""

import math
import re
from numbers import Real

from squadlogic.models import DivisionConfig

DEFAULT_BUFFER = 2

_FORMAT_RE = re.compile(r"(\d+)\s*v\s*(\d+)", re.IGNORECASE)
_IDENTIFIER_KEYS = ("id", "code", "slug", "name")
_CARRIED_KEYS = ("target_team_size", "team_count_override", "team_names",
                 "team_name_prefix")


def parse_playable_count(play_format: str) -> int:
    """Players per side from a format string like '7v7' or '9V9'."""
    if not isinstance(play_format, str):
        raise TypeError("play_format must be a string")
    trimmed = play_format.strip()
    if not trimmed:
        raise ValueError("play_format cannot be empty")
    match = _FORMAT_RE.search(trimmed)
    if not match:
        raise ValueError(f"unable to parse playable count from format: {play_format}")
    playable = int(match.group(1))
    if playable <= 0:
        raise ValueError(f"invalid playable count extracted from format: {play_format}")
    return playable


def calculate_max_roster_size(playable_count, buffer=DEFAULT_BUFFER,
                              minimum=None) -> int:
    """Recommended roster cap: twice the on-field count, less a small buffer.

    The buffer never removes more than the playable count itself, and
    `minimum` (when given) acts as a floor.
    """
    if isinstance(playable_count, bool) or not isinstance(playable_count, Real) \
            or not math.isfinite(playable_count) or playable_count <= 0:
        raise TypeError("playable_count must be a positive number")
    if isinstance(buffer, bool) or not isinstance(buffer, Real) or buffer < 0:
        raise TypeError("buffer must be a non-negative number")
    if minimum is not None and (isinstance(minimum, bool)
                                or not isinstance(minimum, Real) or minimum <= 0):
        raise TypeError("minimum must be a positive number when provided")

    baseline = playable_count * 2 - min(buffer, playable_count)
    if baseline <= 0:
        raise ValueError("calculated baseline roster size must be positive")
    return math.trunc(max(baseline, minimum or 0))


def derive_division_configs(divisions: list[dict],
                            overrides: dict | None = None) -> dict[str, DivisionConfig]:
    """Build division id -> DivisionConfig.

    Roster size precedence per division:
    1. an entry in `overrides` keyed by the division's id/code/slug/name
    2. an explicit max_roster_size on the division record
    3. the playable_count / play_format formula
    The chosen path is recorded as `source`.
    """
    if not isinstance(divisions, (list, tuple)):
        raise TypeError("divisions must be a list")
    if overrides is None:
        overrides = {}
    if not isinstance(overrides, dict):
        raise TypeError("overrides must be a mapping")

    configs: dict[str, DivisionConfig] = {}
    for division in divisions:
        if not isinstance(division, dict):
            raise TypeError("each division entry must be a mapping")

        identifier = _division_identifier(division)
        carried = {k: division[k] for k in _CARRIED_KEYS if division.get(k) is not None}
        override = _find_override(overrides, division, identifier)
        if override is not None and not isinstance(override, dict):
            raise TypeError(f"override for {identifier} must be a mapping")

        if override:
            configs[identifier] = DivisionConfig(
                max_roster_size=_roster_size(override.get("max_roster_size"),
                                             f"override for {identifier}"),
                playable_count=override.get("playable_count"),
                source="override",
                **carried,
            )
        elif division.get("max_roster_size") is not None:
            configs[identifier] = DivisionConfig(
                max_roster_size=_roster_size(division["max_roster_size"],
                                             f"division {identifier}"),
                playable_count=division.get("playable_count"),
                source="division-record",
                **carried,
            )
        else:
            playable = _playable_count(division, identifier)
            configs[identifier] = DivisionConfig(
                max_roster_size=calculate_max_roster_size(playable),
                playable_count=playable,
                source="formula",
                **carried,
            )

    return configs


def _division_identifier(division: dict) -> str:
    for key in _IDENTIFIER_KEYS:
        value = division.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise ValueError("division entry is missing an identifier")


def _find_override(overrides: dict, division: dict, identifier: str):
    keys = [identifier] + [division.get(k) for k in _IDENTIFIER_KEYS]
    for key in keys:
        if isinstance(key, str) and key.strip() and overrides.get(key):
            return overrides[key]
    return None


def _roster_size(value, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Real) or value <= 0:
        raise ValueError(f"invalid max_roster_size provided by {context}")
    return math.trunc(value)


def _playable_count(division: dict, identifier: str) -> int:
    playable = division.get("playable_count")
    if playable is not None:
        if isinstance(playable, bool) or not isinstance(playable, Real) or playable <= 0:
            raise ValueError(f"invalid playable_count for division {identifier}")
        return math.trunc(playable)
    if division.get("play_format"):
        return parse_playable_count(division["play_format"])
    raise ValueError(f"division {identifier} is missing roster sizing data")
