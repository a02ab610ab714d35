"""Data models for the SquadLogic scheduling engine.

Every record validates itself on construction, so the engine never has to
probe loosely shaped payloads for missing fields.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from squadlogic.validation import (
    normalize_id,
    normalize_optional_id,
    parse_timestamp,
    require_list,
    require_non_negative_int,
    require_number,
    require_positive_int,
    validate_interval,
)


class UnscheduledReason(str, Enum):
    UNKNOWN_TEAM = "unknown-team"
    DIVISION_MISMATCH = "division-mismatch"
    DUPLICATE_MATCHUP = "duplicate-matchup"
    COACH_COACHES_BOTH_TEAMS = "coach-coaches-both-teams"
    COACH_SCHEDULING_CONFLICT = "coach-scheduling-conflict"
    NO_SLOT_AVAILABLE = "no-slot-available"


class OverflowReason(str, Enum):
    COACH_CAPACITY = "coach-capacity"
    BUDDY_REQUEST = "buddy request"


def _pick(data: dict, *keys, default=None):
    """First present key wins, so camelCase and snake_case both work."""
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass
class Player:
    """A registrant waiting to be placed on a team."""
    id: str
    division: str
    buddy_id: Optional[str] = None
    coach_id: Optional[str] = None
    assistant_coach_id: Optional[str] = None
    skill_rating: Optional[float] = None
    name: str = ""

    def __post_init__(self):
        self.id = normalize_id(self.id, "player id")
        if self.division is None:
            raise TypeError(f"player {self.id} is missing a division")
        self.division = normalize_id(self.division, f"player {self.id} division")
        self.buddy_id = normalize_optional_id(self.buddy_id, "buddy_id")
        self.coach_id = normalize_optional_id(self.coach_id, "coach_id")
        self.assistant_coach_id = normalize_optional_id(
            self.assistant_coach_id, "assistant_coach_id")
        if self.skill_rating is not None:
            require_number(self.skill_rating, f"player {self.id} skill_rating")

    @property
    def skill(self) -> float:
        """Skill rating used for balancing; unrated players count as 0."""
        return self.skill_rating if self.skill_rating is not None else 0

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        if not isinstance(data, dict):
            raise TypeError("each player must be a mapping")
        return cls(
            id=_pick(data, "id"),
            division=_pick(data, "division"),
            buddy_id=_pick(data, "buddy_id", "buddyId"),
            coach_id=_pick(data, "coach_id", "coachId"),
            assistant_coach_id=_pick(data, "assistant_coach_id", "assistantCoachId"),
            skill_rating=_pick(data, "skill_rating", "skillRating"),
            name=_pick(data, "name", default="") or "",
        )


@dataclass
class DivisionConfig:
    """Roster sizing and naming policy for one division."""
    max_roster_size: int
    target_team_size: Optional[int] = None
    team_count_override: Optional[int] = None
    team_names: list[str] = field(default_factory=list)
    team_name_prefix: str = ""
    playable_count: Optional[int] = None
    source: str = "explicit"

    def __post_init__(self):
        require_positive_int(self.max_roster_size, "max_roster_size")
        if self.target_team_size is not None:
            require_positive_int(self.target_team_size, "target_team_size")
        if self.team_count_override is not None:
            require_non_negative_int(self.team_count_override, "team_count_override")
        self.team_names = require_list(self.team_names, "team_names")

    @classmethod
    def from_dict(cls, data: dict) -> "DivisionConfig":
        if not isinstance(data, dict):
            raise TypeError("division config must be a mapping")
        return cls(
            max_roster_size=_pick(data, "max_roster_size", "maxRosterSize"),
            target_team_size=_pick(data, "target_team_size", "targetTeamSize"),
            team_count_override=_pick(data, "team_count_override", "teamCountOverride"),
            team_names=_pick(data, "team_names", "teamNames", default=[]) or [],
            team_name_prefix=_pick(data, "team_name_prefix", "teamNamePrefix",
                                   default="") or "",
            playable_count=_pick(data, "playable_count", "playableCount"),
            source=_pick(data, "source", default="explicit"),
        )


@dataclass
class Team:
    """A generated (or caller-supplied) roster."""
    id: str
    division: str
    name: str = ""
    coach_id: Optional[str] = None
    assistant_coach_ids: list[str] = field(default_factory=list)
    players: list[Player] = field(default_factory=list)
    skill_total: float = 0

    def __post_init__(self):
        self.id = normalize_id(self.id, "team id")
        if self.division is None:
            raise TypeError(f"team {self.id} is missing a division")
        self.division = normalize_id(self.division, f"team {self.id} division")
        self.coach_id = normalize_optional_id(self.coach_id, "coach_id")
        self.assistant_coach_ids = require_list(self.assistant_coach_ids,
                                                "assistant_coach_ids")
        self.players = require_list(self.players, "players")


@dataclass
class OverflowEntry:
    """A unit that could not be placed on any team."""
    players: list[Player]
    reason: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.players:
            raise ValueError("overflow entries require at least one player")


@dataclass
class GameSlot:
    """A bookable field/time window. division=None means shared."""
    id: str
    week_index: int
    start: datetime
    end: datetime
    capacity: int
    division: Optional[str] = None
    field_id: Optional[str] = None
    priority: int = 1

    def __post_init__(self):
        self.id = normalize_id(self.id, "slot id")
        require_positive_int(self.week_index, f"slot {self.id} week_index")
        self.start = parse_timestamp(self.start, f"slot {self.id} start")
        self.end = parse_timestamp(self.end, f"slot {self.id} end")
        validate_interval(self.start, self.end, f"slot {self.id}")
        require_non_negative_int(self.capacity, f"slot {self.id} capacity")
        self.division = normalize_optional_id(self.division, "division")
        self.field_id = normalize_optional_id(self.field_id, "field_id")
        require_number(self.priority, f"slot {self.id} priority")

    @property
    def is_shared(self) -> bool:
        return self.division is None

    @classmethod
    def from_dict(cls, data: dict) -> "GameSlot":
        if not isinstance(data, dict):
            raise TypeError("each slot must be a mapping")
        priority = _pick(data, "priority")
        return cls(
            id=_pick(data, "id"),
            week_index=_pick(data, "week_index", "weekIndex"),
            start=_pick(data, "start"),
            end=_pick(data, "end"),
            capacity=_pick(data, "capacity"),
            division=_pick(data, "division"),
            field_id=_pick(data, "field_id", "fieldId"),
            priority=1 if priority is None else priority,
        )


@dataclass
class Matchup:
    """A fixture with home/away already decided."""
    home_team_id: str
    away_team_id: str

    def __post_init__(self):
        self.home_team_id = normalize_id(self.home_team_id, "home_team_id")
        self.away_team_id = normalize_id(self.away_team_id, "away_team_id")

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    @property
    def label(self) -> str:
        return f"{self.home_team_id}-{self.away_team_id}"


@dataclass
class RoundRobinWeek:
    """One week of a division's round robin."""
    week_index: int
    matchups: list[Matchup] = field(default_factory=list)
    byes: list[str] = field(default_factory=list)

    def __post_init__(self):
        require_positive_int(self.week_index, "week_index")
        self.matchups = require_list(self.matchups, "matchups")
        self.byes = require_list(self.byes, "byes")


@dataclass
class GameAssignment:
    """A fixture bound to a slot."""
    week_index: int
    division: str
    slot_id: str
    start: datetime
    end: datetime
    home_team_id: str
    away_team_id: str
    field_id: Optional[str] = None

    def __post_init__(self):
        require_positive_int(self.week_index, "assignment week_index")
        self.division = normalize_id(self.division, "assignment division")
        self.slot_id = normalize_id(self.slot_id, "assignment slot_id")
        self.home_team_id = normalize_id(self.home_team_id, "assignment home_team_id")
        self.away_team_id = normalize_id(self.away_team_id, "assignment away_team_id")
        if self.home_team_id == self.away_team_id:
            raise ValueError(
                f"assignment in slot {self.slot_id} pairs {self.home_team_id} with itself")
        self.start = parse_timestamp(self.start, "assignment start")
        self.end = parse_timestamp(self.end, "assignment end")
        validate_interval(self.start, self.end, f"assignment in slot {self.slot_id}")
        self.field_id = normalize_optional_id(self.field_id, "field_id")


@dataclass
class Bye:
    week_index: int
    division: str
    team_id: str

    def __post_init__(self):
        require_positive_int(self.week_index, "bye week_index")
        self.division = normalize_id(self.division, "bye division")
        self.team_id = normalize_id(self.team_id, "bye team_id")


@dataclass
class UnscheduledMatchup:
    """A fixture the allocator could not place, with the reason code."""
    week_index: int
    division: str
    matchup: Matchup
    reason: str

    def __post_init__(self):
        require_positive_int(self.week_index, "unscheduled week_index")
        self.division = normalize_id(self.division, "unscheduled division")
        if not isinstance(self.matchup, Matchup):
            raise TypeError("unscheduled entries require a Matchup")
        if isinstance(self.reason, UnscheduledReason):
            self.reason = self.reason.value
        self.reason = normalize_id(self.reason, "unscheduled reason")


@dataclass
class DivisionUsage:
    division: str
    count: int

    def __post_init__(self):
        self.division = normalize_id(self.division, "division usage division")
        require_non_negative_int(self.count, "division usage count")


@dataclass
class SharedSlotUsage:
    """How many games each division placed on one shared slot."""
    slot_id: str
    week_index: Optional[int] = None
    field_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    division_usage: list[DivisionUsage] = field(default_factory=list)
    total_assignments: Optional[int] = None

    def __post_init__(self):
        self.slot_id = normalize_id(self.slot_id, "shared slot usage slot_id")
        self.division_usage = require_list(self.division_usage, "division_usage")
        for record in self.division_usage:
            if not isinstance(record, DivisionUsage):
                raise TypeError("division_usage entries must be DivisionUsage records")
        if self.start is not None:
            self.start = parse_timestamp(self.start, "shared slot usage start")
        if self.end is not None:
            self.end = parse_timestamp(self.end, "shared slot usage end")
        counted = sum(r.count for r in self.division_usage)
        if self.total_assignments is None:
            self.total_assignments = counted
        elif require_non_negative_int(self.total_assignments,
                                      "total_assignments") != counted:
            raise ValueError(
                f"shared slot {self.slot_id} total_assignments "
                f"{self.total_assignments} does not match division usage {counted}")


@dataclass
class ScheduleWarning:
    """An advisory finding from schedule evaluation."""
    type: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
