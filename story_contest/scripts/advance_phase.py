#!/usr/bin/env python
"""
Advance competition phases.

Entry point for the scheduler (cron, systemd timer, k8s CronJob). Safe to
run repeatedly or concurrently: each transition is claimed by exactly one
process and a run with nothing due is a no-op.

Usage:
    story-contest-advance
    story-contest-advance --competition 3f1c...        # one competition
    story-contest-advance --now 2026-03-26T00:00:00Z   # evaluate at a given instant
    story-contest-advance --finalize 3f1c...           # re-run ranking only
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from story_contest.core.exceptions import ContestException
from story_contest.core.logging_config import configure_logging
from story_contest.models.competition import Period
from story_contest.services.competition_service import CompetitionService
from story_contest.services.database import init_db

logger = structlog.get_logger(__name__)


def parse_instant(value: str) -> datetime:
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Advance due story competitions")
    parser.add_argument(
        "--competition",
        default=None,
        help="Advance a single competition by id (default: every active competition)",
    )
    parser.add_argument(
        "--finalize",
        default=None,
        metavar="COMPETITION_ID",
        help="Only re-run ranking and winner selection for a competition",
    )
    parser.add_argument(
        "--now",
        type=parse_instant,
        default=None,
        help="ISO-8601 instant to evaluate boundaries against (default: current time)",
    )
    parser.add_argument(
        "--skip-quota-rollover",
        action="store_true",
        help="Keep quota counters of past periods",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    init_db()
    service = CompetitionService()

    try:
        if args.finalize:
            result = service.finalize_results(args.finalize)
            print(result.model_dump_json(indent=2))
            return 0

        if args.competition:
            competition = service.advance_phase(args.competition, now=args.now)
            output = [{"competition_id": competition.id, "phase": competition.phase.value}]
        else:
            output = service.advance_due_competitions(now=args.now)

        if not args.skip_quota_rollover:
            service.roll_over_quotas(Period.from_datetime(args.now) if args.now else None)
    except ContestException as e:
        logger.error("advance_command_failed", error_code=e.error_code, error=e.message)
        return 1

    print(json.dumps(output, indent=2))
    return 0 if all(item.get("status") != "failed" for item in output) else 2


if __name__ == "__main__":
    sys.exit(main())
