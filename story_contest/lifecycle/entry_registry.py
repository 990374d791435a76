"""
Entry Registry
story_contest/lifecycle/entry_registry.py

Registers published stories as competition entries.

submit() validates the submission and asks the quota guard first so callers
get a precise error, then writes in one transaction:

    1. conditional UPDATE of the competition row (still in submission phase)
    2. bounded quota increment              (count < cap)
    3. entry INSERT                         (unique (competition_id, submission_id))

Any step failing rolls back the others, so the counter never counts an
entry that does not exist and never exceeds the cap under concurrency.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

import structlog

from story_contest.core.exceptions import (
    DuplicateEntityException,
    DuplicateSubmissionException,
    NotFoundException,
    PhaseViolationException,
    QuotaExceededException,
    ValidationException,
)
from story_contest.lifecycle.quota_guard import (
    REASON_NO_COMPETITION,
    REASON_WRONG_PHASE,
    SubmissionQuotaGuard,
)
from story_contest.models.competition import Entry
from story_contest.models.submission import Submission
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.repositories.entry_repository import EntryRepository
from story_contest.repositories.quota_repository import QuotaRepository
from story_contest.repositories.submission_repository import SubmissionRepository
from story_contest.services.notifications import Notifier

logger = structlog.get_logger(__name__)


class EntryRegistry:
    def __init__(
        self,
        competitions: CompetitionRepository,
        entries: EntryRepository,
        submissions: SubmissionRepository,
        quotas: QuotaRepository,
        guard: SubmissionQuotaGuard,
        notifier: Notifier,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.competitions = competitions
        self.entries = entries
        self.submissions = submissions
        self.quotas = quotas
        self.guard = guard
        self.notifier = notifier
        self.clock = clock

    def submit(self, competition_id: str, user_id: str, submission_id: str) -> Entry:
        """
        Enter a submission into a competition.

        Raises:
            ValidationException: submission missing, not owned, unpublished or empty
            NotFoundException: competition does not exist
            PhaseViolationException: competition is not accepting entries
            QuotaExceededException: user already used every entry of the period
            DuplicateSubmissionException: submission already entered
        """
        submission = self._eligible_submission(user_id, submission_id)

        decision = self.guard.can_submit(user_id, competition_id)
        if decision.reason == REASON_NO_COMPETITION:
            raise NotFoundException("Competition", competition_id)
        if decision.reason == REASON_WRONG_PHASE:
            raise PhaseViolationException(
                "Competition is not accepting submissions",
                current_phase=decision.phase.value if decision.phase else None,
            )
        if not decision.allowed:
            raise QuotaExceededException(used=decision.used, cap=decision.cap)

        if self.entries.get_by_submission(competition_id, submission_id):
            raise DuplicateSubmissionException(
                "This story has already been submitted to this competition",
                {"competition_id": competition_id, "submission_id": submission_id},
            )

        competition = self.competitions.get_by_id(competition_id)
        now = self.clock()
        try:
            with self.entries.transaction() as conn:
                if not self.competitions.lock_for_entry(competition_id, now, conn):
                    raise PhaseViolationException(
                        "Competition closed for submissions",
                        current_phase=competition.phase.value,
                    )
                if not self.quotas.try_increment(
                    user_id, competition.period.key, self.guard.cap, now, conn=conn
                ):
                    raise QuotaExceededException(used=self.guard.cap, cap=self.guard.cap)
                entry = self.entries.create(competition_id, user_id, submission_id, now, conn=conn)
        except DuplicateEntityException:
            raise DuplicateSubmissionException(
                "This story has already been submitted to this competition",
                {"competition_id": competition_id, "submission_id": submission_id},
            )

        logger.info(
            "entry_submitted",
            competition_id=competition_id,
            entry_id=entry.id,
            user_id=user_id,
            submission_id=submission_id,
            period=competition.period.key,
        )
        self.notifier.notify(
            "submission_confirmed",
            {
                "competition_id": competition_id,
                "entry_id": entry.id,
                "user_id": user_id,
                "submission_id": submission_id,
                "title": submission.title,
            },
        )
        return entry

    def _eligible_submission(self, user_id: str, submission_id: str) -> Submission:
        submission = self.submissions.get_by_id(submission_id)
        if submission is None:
            raise ValidationException(
                "Submission not found", {"submission_id": submission_id}
            )
        if submission.user_id != user_id:
            raise ValidationException(
                "Submission does not belong to this user", {"submission_id": submission_id}
            )
        if not submission.is_published:
            raise ValidationException(
                "Only published stories can be entered", {"submission_id": submission_id}
            )
        if not submission.content.strip():
            raise ValidationException(
                "Story content is empty", {"submission_id": submission_id}
            )
        return submission

    def list_user_entries(self, user_id: str, competition_id: Optional[str] = None) -> List[Entry]:
        return self.entries.list_by_user(user_id, competition_id)

    def get_eligible_submissions(self, user_id: str, competition_id: str) -> List[Submission]:
        """Published, non-empty stories of the user not yet entered in the competition."""
        entered = {e.submission_id for e in self.entries.list_by_user(user_id, competition_id)}
        return [
            s
            for s in self.submissions.list_published_by_user(user_id)
            if s.content.strip() and s.id not in entered
        ]
