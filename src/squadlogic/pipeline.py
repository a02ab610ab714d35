"""Dashboard payload: schedule evaluation rolled up into a single status."""

import logging
from datetime import datetime, timezone

from squadlogic.metrics import ERROR_WARNING_TYPES, evaluate_game_schedule
from squadlogic.validation import isoformat_utc

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ATTENTION = "attention-needed"
STATUS_ACTION = "action-required"


def run_schedule_evaluation(games: dict, now: datetime | None = None) -> dict:
    """Evaluate a game schedule and classify its warnings.

    `games` carries the keyword arguments of evaluate_game_schedule
    (assignments and teams required; byes, unscheduled and shared_slot_usage
    optional).

    Returns dict with:
    - generated_at: UTC ISO timestamp
    - status: ok | attention-needed | action-required
    - issues: list of {category, severity, message, details}
    - games: the raw evaluation result
    """
    if not isinstance(games, dict):
        raise TypeError("games must be a dict")
    for key in ("assignments", "teams"):
        if key not in games:
            raise TypeError(f"games is missing {key}")

    result = evaluate_game_schedule(
        games["assignments"],
        games["teams"],
        byes=games.get("byes") or [],
        unscheduled=games.get("unscheduled") or [],
        shared_slot_usage=games.get("shared_slot_usage") or [],
    )

    issues = []
    for warning in result["warnings"]:
        issues.append({
            "category": "games",
            "severity": "error" if warning.type in ERROR_WARNING_TYPES else "warning",
            "message": warning.message,
            "details": warning.details,
        })

    if any(i["severity"] == "error" for i in issues):
        status = STATUS_ACTION
    elif issues:
        status = STATUS_ATTENTION
    else:
        status = STATUS_OK

    logger.info("Schedule evaluation: %s (%d issue(s))", status, len(issues))
    return {
        "generated_at": isoformat_utc(now or datetime.now(timezone.utc)),
        "status": status,
        "issues": issues,
        "games": result,
    }
