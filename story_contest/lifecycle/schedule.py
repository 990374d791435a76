"""
Scheduling Policy
story_contest/lifecycle/schedule.py

Derives the four ordered boundaries of a monthly competition.

    submission_start = 1st of the month, 00:00 UTC
    judging_start    = submission_start + SUBMISSION_PHASE_DAYS
    results_date     = min(judging_start + JUDGING_PHASE_DAYS, 1st of next month)
    archive_after    = results_date + ARCHIVE_AFTER_DAYS

Transitions fire when now ≥ boundary:
    submission → judging   at judging_start
    judging    → results   at results_date
    results    → archived  at archive_after
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from story_contest.config import settings
from story_contest.models.competition import Competition, CompetitionSchedule, Period
from story_contest.models.enumerations import Phase


@dataclass(frozen=True)
class SchedulePolicy:
    submission_days: int
    judging_days: int
    archive_after_days: int

    @classmethod
    def from_settings(cls) -> "SchedulePolicy":
        return cls(
            submission_days=settings.SUBMISSION_PHASE_DAYS,
            judging_days=settings.JUDGING_PHASE_DAYS,
            archive_after_days=settings.ARCHIVE_AFTER_DAYS,
        )

    def schedule_for(self, period: Period) -> CompetitionSchedule:
        start = datetime(period.year, period.month, 1, tzinfo=timezone.utc)
        following = period.next()
        month_end = datetime(following.year, following.month, 1, tzinfo=timezone.utc)

        judging_start = start + timedelta(days=self.submission_days)
        results_date = min(judging_start + timedelta(days=self.judging_days), month_end)
        return CompetitionSchedule(
            submission_start=start,
            judging_start=judging_start,
            results_date=results_date,
            archive_after=results_date + timedelta(days=self.archive_after_days),
        )


def boundary_for(competition: Competition) -> Optional[datetime]:
    """Boundary that gates the next transition; None once archived."""
    schedule = competition.schedule
    return {
        Phase.SUBMISSION: schedule.judging_start,
        Phase.JUDGING: schedule.results_date,
        Phase.RESULTS: schedule.archive_after,
    }.get(competition.phase)


def is_due(competition: Competition, now: datetime) -> bool:
    boundary = boundary_for(competition)
    return boundary is not None and now >= boundary
