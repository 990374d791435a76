"""
Submission Quota Guard
story_contest/lifecycle/quota_guard.py

Advisory answer to "may this user enter this competition right now?".
The binding check is the bounded increment inside EntryRegistry.submit();
this read never reserves a slot.
"""

from typing import Optional

import structlog

from story_contest.config import settings
from story_contest.models.competition import QuotaDecision
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.repositories.quota_repository import QuotaRepository

logger = structlog.get_logger(__name__)

REASON_NO_COMPETITION = "no such competition"
REASON_WRONG_PHASE = "wrong phase"
REASON_QUOTA_EXCEEDED = "quota exceeded"


class SubmissionQuotaGuard:
    """Per-user, per-period entry cap."""

    def __init__(
        self,
        competitions: CompetitionRepository,
        quotas: QuotaRepository,
        cap: Optional[int] = None,
    ):
        self.competitions = competitions
        self.quotas = quotas
        self.cap = cap or settings.MAX_ENTRIES_PER_PERIOD

    def can_submit(self, user_id: str, competition_id: str) -> QuotaDecision:
        competition = self.competitions.get_by_id(competition_id)
        if competition is None:
            return QuotaDecision(allowed=False, reason=REASON_NO_COMPETITION, cap=self.cap)

        used = self.quotas.get_count(user_id, competition.period.key)
        if not competition.accepts_entries:
            return QuotaDecision(
                allowed=False,
                reason=REASON_WRONG_PHASE,
                used=used,
                cap=self.cap,
                phase=competition.phase,
            )
        if used >= self.cap:
            logger.debug("quota_exhausted", user_id=user_id, period=competition.period.key, used=used)
            return QuotaDecision(
                allowed=False,
                reason=REASON_QUOTA_EXCEEDED,
                used=used,
                cap=self.cap,
                phase=competition.phase,
            )
        return QuotaDecision(allowed=True, used=used, cap=self.cap, phase=competition.phase)
