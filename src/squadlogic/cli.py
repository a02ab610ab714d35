#!/usr/bin/env python3
"""SquadLogic season builder.

    squadlogic [config.yaml] [--seed S] [--log-level LEVEL] [--json OUT]

Generates teams from the registration list in the YAML config, builds a
round robin per division, places fixtures into field slots and prints the
team and evaluation reports.

Examples:
    squadlogic                            # default config, unseeded
    squadlogic spring.yaml --seed spring  # reproducible rosters
    squadlogic --json output/run.json     # also dump the full result
"""

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path

from squadlogic.config import load_config
from squadlogic.diagnostics import format_team_report, summarize_team_generation
from squadlogic.logging_config import default_log_level, get_logger, setup_logging
from squadlogic.metrics import format_evaluation_report
from squadlogic.pipeline import STATUS_ACTION, run_schedule_evaluation
from squadlogic.roundrobin import build_round_robin_by_division
from squadlogic.scheduler import schedule_games
from squadlogic.teams import generate_teams
from squadlogic.validation import isoformat_utc

logger = get_logger(__name__)


def _json_default(value):
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, tuple)):
        return sorted(value)
    raise TypeError(f"cannot serialize {type(value).__name__}")


def run(config: dict, seed=None) -> dict:
    """Teams, fixtures, allocation and evaluation for one loaded config."""
    if seed is None:
        seed = config["season"].get("seed")

    team_result = generate_teams(config["players"], config["division_configs"], seed=seed)
    teams_by_division = team_result["teams_by_division"]
    all_teams = [t for teams in teams_by_division.values() for t in teams]

    round_robin = build_round_robin_by_division(teams_by_division)
    games = schedule_games(all_teams, config["slots"], round_robin)
    evaluation = run_schedule_evaluation({"teams": all_teams, **games})

    return {
        "season": config["season"],
        "teams": team_result,
        "team_summary": summarize_team_generation(team_result),
        "games": games,
        "evaluation": evaluation,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="SquadLogic season builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Exit codes:
  0  Schedule built (status ok or attention-needed)
  1  Conflicts found (action-required), or a config/data error
""",
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "--seed", default=None,
        help="Seed for reproducible rosters (overrides season.seed)"
    )
    parser.add_argument(
        "--log-level", default=default_log_level(),
        help="Logging level (default: $SQUADLOGIC_LOG_LEVEL or WARNING)"
    )
    parser.add_argument(
        "--json", metavar="OUT",
        help="Also write the full result as JSON to this path"
    )
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        return 1

    print(f"Loading config from {config_path}...")
    try:
        config = load_config(config_path)
        result = run(config, seed=args.seed)
    except (TypeError, ValueError, KeyError) as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {exc}")
        return 1

    print(format_team_report(result["teams"]))
    print("\n" + format_evaluation_report(result["evaluation"]["games"]))

    if args.json:
        out = Path(args.json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(result, default=_json_default, indent=2))
        print(f"\nWritten: {out}")

    status = result["evaluation"]["status"]
    print(f"\nStatus: {status}")
    return 1 if status == STATUS_ACTION else 0


if __name__ == "__main__":
    sys.exit(main())
