"""Config loading for SquadLogic season runs."""

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from pathlib import Path

import yaml

from squadlogic.models import GameSlot, Player
from squadlogic.roster_sizing import derive_division_configs


class DayOfWeek(Enum):
    Mon = 0
    Tue = 1
    Wed = 2
    Thu = 3
    Fri = 4
    Sat = 5
    Sun = 6

    @classmethod
    def from_str(cls, s: str) -> "DayOfWeek":
        return cls[s[:3].capitalize()]


def parse_time(s: str) -> time:
    """Parse time strings like '5:30pm', '10am', '17:00'."""
    s_lower = s.strip().lower()

    is_pm = s_lower.endswith("pm")
    is_am = s_lower.endswith("am")
    s_clean = s_lower[:-2].strip() if (is_pm or is_am) else s_lower

    if ":" in s_clean:
        parts = s_clean.split(":")
        h = int(parts[0])
        m = int(parts[1])
    else:
        h = int(s_clean)
        m = 0

    if is_pm and h < 12:
        h += 12
    elif is_am and h == 12:
        h = 0

    return time(h, m)


def parse_date(s: str) -> date:
    """Parse date string YYYY-MM-DD."""
    parts = s.strip().split("-")
    return date(int(parts[0]), int(parts[1]), int(parts[2]))


def first_weekday_on_or_after(start: date, day: DayOfWeek) -> date:
    return start + timedelta(days=(day.value - start.weekday()) % 7)


def expand_recurring_slot(spec: dict, season_start: date) -> list[GameSlot]:
    """One GameSlot per week for a weekly field booking.

    `weeks` is either a count (weeks 1..N) or an explicit list of week
    numbers. Times are taken as UTC.
    """
    field_id = spec["field_id"]
    day = DayOfWeek.from_str(str(spec["day"]))
    kickoff = parse_time(str(spec["time"]))
    duration = timedelta(minutes=int(spec.get("duration_minutes", 60)))

    weeks = spec.get("weeks", 1)
    week_numbers = list(range(1, int(weeks) + 1)) if isinstance(weeks, int) else list(weeks)

    first = first_weekday_on_or_after(season_start, day)
    slots = []
    for week in week_numbers:
        start = datetime.combine(first + timedelta(weeks=week - 1), kickoff,
                                 tzinfo=timezone.utc)
        slots.append(GameSlot(
            id=f"{field_id}-w{week}-{kickoff:%H%M}",
            week_index=week,
            start=start,
            end=start + duration,
            capacity=spec.get("capacity", 1),
            division=spec.get("division"),
            field_id=field_id,
            priority=spec.get("priority", 1),
        ))
    return slots


def load_config(path: str | Path) -> dict:
    """Load a season config YAML, returning structured data.

    Returns dict with:
    - season: {id, name, start_date, seed}
    - division_configs: dict[division -> DivisionConfig]
    - players: list[Player]
    - slots: list[GameSlot] (explicit slots, then expanded recurring slots)
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"config {path} must be a mapping")

    season_raw = raw.get("season") or {}
    start_raw = season_raw.get("start_date")
    season = {
        "id": str(season_raw.get("id", "")),
        "name": season_raw.get("name", ""),
        "start_date": parse_date(str(start_raw)) if start_raw else None,
        "seed": season_raw.get("seed"),
    }

    division_configs = derive_division_configs(
        raw.get("divisions") or [], raw.get("roster_overrides") or {})

    players = [Player.from_dict(p) for p in raw.get("players") or []]

    slots = [GameSlot.from_dict(s) for s in raw.get("slots") or []]
    recurring = raw.get("recurring_slots") or []
    if recurring and season["start_date"] is None:
        raise ValueError("recurring_slots require season.start_date")
    for spec in recurring:
        slots.extend(expand_recurring_slot(spec, season["start_date"]))

    return {
        "season": season,
        "division_configs": division_configs,
        "players": players,
        "slots": slots,
    }
