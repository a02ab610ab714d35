"""Contract with the surrounding persistence layer.

Nothing here talks to a database. Snapshots are plain dicts of rows ready
for an upsert, and the actual write is delegated to a `persist` callable
supplied by the caller.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from squadlogic.models import GameAssignment, Team
from squadlogic.validation import isoformat_utc, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ROLES = ("admin", "service_role")


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    BLOCKED = "blocked"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    ERROR = "error"


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"


def authorize_request(user: dict | None,
                      allowed_roles=DEFAULT_ALLOWED_ROLES) -> dict:
    """Role check for a persistence request.

    The effective role is app_metadata.role, else role, else 'authenticated'.
    """
    if not user:
        return {"status": AuthorizationStatus.UNAUTHORIZED.value,
                "message": "Authentication required to persist schedule data."}

    role = (user.get("app_metadata") or {}).get("role") or user.get("role") or "authenticated"
    if role not in allowed_roles:
        return {"status": AuthorizationStatus.FORBIDDEN.value,
                "message": f'User role "{role}" is not authorized to persist schedule data.'}
    return {"status": AuthorizationStatus.AUTHORIZED.value}


def count_pending_overrides(overrides) -> int:
    if overrides is None:
        return 0
    if not isinstance(overrides, (list, tuple)):
        raise TypeError("overrides must be a list")
    return sum(1 for o in overrides
               if isinstance(o, dict) and str(o.get("status", "")).lower() == "pending")


def _run_metadata(season_id: str, run_id, parameters, metrics, started_at,
                  completed_at) -> dict:
    if not isinstance(season_id, str) or not season_id.strip():
        raise ValueError("season_id is required")
    now = datetime.now(timezone.utc)
    return {
        "run_id": run_id,
        "season_id": season_id.strip(),
        "parameters": dict(parameters or {}),
        "metrics": dict(metrics or {}),
        "started_at": isoformat_utc(parse_timestamp(started_at) if started_at else now),
        "completed_at": isoformat_utc(parse_timestamp(completed_at) if completed_at else now),
    }


def build_game_snapshot(assignments: list[GameAssignment], season_id: str,
                        run_id: str | None = None, parameters: dict | None = None,
                        metrics: dict | None = None, started_at=None,
                        completed_at=None) -> dict:
    """Snapshot of scheduled games, one upsert row per assignment."""
    rows = []
    for a in assignments:
        if not isinstance(a, GameAssignment):
            raise TypeError("assignments must contain GameAssignment records")
        rows.append({
            "week_index": a.week_index,
            "division_id": a.division,
            "slot_id": a.slot_id,
            "start": isoformat_utc(a.start),
            "end": isoformat_utc(a.end),
            "field_id": a.field_id,
            "home_team_id": a.home_team_id,
            "away_team_id": a.away_team_id,
            "run_id": run_id,
        })
    return {
        "run_id": run_id,
        "prepared_rows": len(rows),
        "run_metadata": _run_metadata(season_id, run_id, parameters, metrics,
                                      started_at, completed_at),
        "payload": {"assignment_rows": rows},
    }


def build_team_snapshot(teams_by_division: dict[str, list[Team]], season_id: str,
                        run_id: str | None = None, parameters: dict | None = None,
                        metrics: dict | None = None, started_at=None,
                        completed_at=None) -> dict:
    """Snapshot of generated rosters: team rows plus team/player link rows."""
    team_rows = []
    player_rows = []
    for division, teams in teams_by_division.items():
        for team in teams:
            if not isinstance(team, Team):
                raise TypeError("teams_by_division must contain Team records")
            team_rows.append({
                "id": team.id,
                "name": team.name,
                "division_id": division,
                "coach_id": team.coach_id,
                "run_id": run_id,
            })
            for player in team.players:
                player_rows.append({
                    "team_id": team.id,
                    "player_id": player.id,
                    "role": "player",
                    "source": "auto",
                    "run_id": run_id,
                })
    return {
        "run_id": run_id,
        "prepared_rows": len(team_rows) + len(player_rows),
        "run_metadata": _run_metadata(season_id, run_id, parameters, metrics,
                                      started_at, completed_at),
        "payload": {"team_rows": team_rows, "team_player_rows": player_rows},
    }


def _snapshot_problem(snapshot) -> str | None:
    if not isinstance(snapshot, dict):
        return "Invalid snapshot payload."
    payload = snapshot.get("payload")
    if not isinstance(payload, dict):
        return "Snapshot is missing its payload."
    row_lists = [v for k, v in payload.items() if k.endswith("_rows")]
    if not row_lists or not all(isinstance(v, list) for v in row_lists):
        return "Snapshot payload must contain row lists."
    return None


def handle_persistence_request(authorization: dict, snapshot: dict, overrides,
                               persist: Callable[[dict], dict | None]) -> dict:
    """Gate and hand a snapshot to the persistence collaborator.

    Order: authorization, pending overrides, snapshot shape, persist. The
    collaborator is never called unless every earlier gate passes.
    """
    status = (authorization or {}).get("status")
    if status != AuthorizationStatus.AUTHORIZED.value:
        if status not in (AuthorizationStatus.UNAUTHORIZED.value,
                          AuthorizationStatus.FORBIDDEN.value):
            status = ResponseStatus.UNAUTHORIZED.value
        return {"status": status,
                "message": (authorization or {}).get("message", "Request not authorized.")}

    pending = count_pending_overrides(overrides)
    if pending:
        verb = " is" if pending == 1 else "s are"
        return {
            "status": ResponseStatus.BLOCKED.value,
            "message": f"{pending} manual override{verb} still pending review.",
            "pending_overrides": pending,
            "run_id": snapshot.get("run_id") if isinstance(snapshot, dict) else None,
        }

    problem = _snapshot_problem(snapshot)
    if problem:
        return {"status": ResponseStatus.ERROR.value, "message": problem}

    try:
        outcome = persist(snapshot) or {}
    except Exception as exc:
        logger.exception("Persisting snapshot for run %s failed", snapshot.get("run_id"))
        return {"status": ResponseStatus.ERROR.value, "message": str(exc)}

    if outcome.get("status", ResponseStatus.SUCCESS.value) != ResponseStatus.SUCCESS.value:
        return {"status": ResponseStatus.ERROR.value,
                "message": outcome.get("message", "Persistence failed.")}

    return {
        "status": ResponseStatus.SUCCESS.value,
        "message": outcome.get("message", "Snapshot persisted."),
        "run_id": snapshot.get("run_id"),
        "synced_at": isoformat_utc(datetime.now(timezone.utc)),
        "data": outcome.get("data", {}),
    }
