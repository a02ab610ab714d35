"""Guard-clause checks shared by every scheduling component.

All helpers raise immediately on malformed input: TypeError when a value is
the wrong kind of thing, ValueError when it is the right kind but unusable.
"""

from datetime import datetime, timezone
from numbers import Real


def normalize_id(value, label: str = "id") -> str:
    """Return a trimmed, non-empty identifier string."""
    if not isinstance(value, str):
        raise TypeError(f"{label} must be a string, got {type(value).__name__}")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{label} cannot be empty")
    return trimmed


def normalize_optional_id(value, label: str = "id") -> str | None:
    """Like normalize_id, but None and blank strings collapse to None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{label} must be a string when provided")
    trimmed = value.strip()
    return trimmed or None


def require_positive_int(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{label} must be an integer")
    if value <= 0:
        raise ValueError(f"{label} must be positive")
    return value


def require_non_negative_int(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{label} must be an integer")
    if value < 0:
        raise ValueError(f"{label} must be non-negative")
    return value


def require_number(value, label: str) -> float | int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{label} must be a number")
    return value


def require_list(value, label: str) -> list:
    """Accept lists and tuples; anything else is a structural error."""
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{label} must be a list")
    return list(value)


def parse_timestamp(value, label: str = "timestamp") -> datetime:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime.

    Naive values are taken to be UTC. A trailing 'Z' is accepted.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError(f"{label} cannot be empty")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"{label} is not a valid timestamp: {value!r}") from None
    else:
        raise TypeError(f"{label} must be a datetime or ISO string")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_interval(start: datetime, end: datetime, label: str) -> None:
    if end <= start:
        raise ValueError(f"{label} must end after it starts")


def intervals_overlap(a_start: datetime, a_end: datetime,
                      b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) overlap test."""
    return a_start < b_end and b_start < a_end


def time_of_day_key(dt: datetime) -> str:
    """Kickoff time-of-day in UTC, e.g. '09:30'."""
    utc = dt.astimezone(timezone.utc)
    return f"{utc.hour:02d}:{utc.minute:02d}"


def isoformat_utc(dt: datetime) -> str:
    """ISO string with a 'Z' suffix, matching what clients send us."""
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
