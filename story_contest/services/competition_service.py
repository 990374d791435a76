"""
Competition Service - Story Contest Platform
story_contest/services/competition_service.py

Facade wiring repositories, the lifecycle components and the assessment
engine together. Routers and the scheduler script talk only to this class.

    CompetitionService
      ├── PhaseStateMachine ──► BatchJudge ──► AssessmentEngine
      │                    └──► RankingAndWinnerSelector
      ├── EntryRegistry ──► SubmissionQuotaGuard
      └── integrity_classifier.classify()

Competition snapshots are cached in Redis (when reachable) and invalidated
after every write that changes phase or winners.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import structlog
from sqlalchemy.engine import Engine

from story_contest.core.exceptions import NotFoundException
from story_contest.lifecycle.entry_registry import EntryRegistry
from story_contest.lifecycle.judging import BatchJudge
from story_contest.lifecycle.phase_machine import PhaseStateMachine
from story_contest.lifecycle.quota_guard import SubmissionQuotaGuard
from story_contest.lifecycle.ranking import RankingAndWinnerSelector, judging_score
from story_contest.models.assessment import AssessmentContext, AssessmentResult, IntegrityAnalysis
from story_contest.models.competition import (
    Competition,
    CompetitionStats,
    Entry,
    FinalizeResult,
    Period,
    QuotaDecision,
)
from story_contest.models.enumerations import AILikelihood, Disposition, RiskTier
from story_contest.models.submission import Submission
from story_contest.repositories.assessment_repository import AssessmentRepository
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.repositories.entry_repository import EntryRepository
from story_contest.repositories.quota_repository import QuotaRepository
from story_contest.repositories.submission_repository import SubmissionRepository
from story_contest.scoring.assessment_engine import AssessmentEngine, get_assessment_engine
from story_contest.scoring.integrity_classifier import classify, submission_status_for
from story_contest.services.cache import (
    cache_competition,
    competition_key,
    current_competition_key,
    get_cached_competition,
    invalidate_all_competitions,
    invalidate_competition,
)
from story_contest.services.notifications import Notifier, get_notifier

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CompetitionService:
    """Lifecycle and assessment operations for the monthly story competition."""

    def __init__(
        self,
        engine: Optional[Engine] = None,
        notifier: Optional[Notifier] = None,
        assessment_engine: Optional[AssessmentEngine] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.clock = clock
        self.notifier = notifier or get_notifier()
        self.assessment_engine = assessment_engine or get_assessment_engine()

        self.competitions = CompetitionRepository(engine)
        self.entries = EntryRepository(engine)
        self.submissions = SubmissionRepository(engine)
        self.quotas = QuotaRepository(engine)
        self.assessments = AssessmentRepository(engine)

        self.quota_guard = SubmissionQuotaGuard(self.competitions, self.quotas)
        self.registry = EntryRegistry(
            self.competitions,
            self.entries,
            self.submissions,
            self.quotas,
            self.quota_guard,
            self.notifier,
            clock=clock,
        )
        self.judge = BatchJudge(
            self.entries, self.submissions, self.assessments, self.assessment_engine
        )
        self.ranking = RankingAndWinnerSelector(
            self.competitions,
            self.entries,
            self.submissions,
            self.assessments,
            notifier=self.notifier,
        )
        self.phase_machine = PhaseStateMachine(
            self.competitions, self.judge, self.ranking, self.notifier, clock=clock
        )

    # ── Competitions ────────────────────────────────────────────────

    def get_or_create_current_competition(self, period: Optional[Period] = None) -> Competition:
        period = period or Period.from_datetime(self.clock())
        key = current_competition_key(period)
        cached = get_cached_competition(key)
        if cached:
            return cached

        competition = self.phase_machine.get_or_create_current(period)
        cache_competition(competition, key, competition_key(competition.id))
        return competition

    def get_competition(self, competition_id: str) -> Competition:
        key = competition_key(competition_id)
        cached = get_cached_competition(key)
        if cached:
            return cached

        competition = self.phase_machine.get(competition_id)
        cache_competition(competition, key)
        return competition

    def advance_phase(self, competition_id: str, now: Optional[datetime] = None) -> Competition:
        competition = self.phase_machine.advance(competition_id, now=now)
        invalidate_competition(competition)
        return competition

    def advance_due_competitions(self, now: Optional[datetime] = None) -> List[Dict[str, str]]:
        summary = self.phase_machine.advance_due(now=now)
        invalidate_all_competitions()
        return summary

    def finalize_results(self, competition_id: str) -> FinalizeResult:
        result = self.ranking.finalize(competition_id)
        invalidate_competition(self.phase_machine.get(competition_id))
        return result

    def get_competition_stats(self, competition_id: str) -> CompetitionStats:
        competition = self.phase_machine.get(competition_id)
        counts = self.entries.count_stats(competition_id)
        return CompetitionStats(
            competition_id=competition_id,
            period=competition.period.key,
            phase=competition.phase,
            **counts,
        )

    # ── Entries ─────────────────────────────────────────────────────

    def can_submit(self, user_id: str, competition_id: str) -> QuotaDecision:
        return self.quota_guard.can_submit(user_id, competition_id)

    def submit_entry(self, competition_id: str, user_id: str, submission_id: str) -> Entry:
        return self.registry.submit(competition_id, user_id, submission_id)

    def list_user_entries(self, user_id: str, competition_id: Optional[str] = None) -> List[Entry]:
        return self.registry.list_user_entries(user_id, competition_id)

    def get_eligible_submissions(
        self, user_id: str, competition_id: Optional[str] = None
    ) -> List[Submission]:
        if competition_id is None:
            competition_id = self.get_or_create_current_competition().id
        return self.registry.get_eligible_submissions(user_id, competition_id)

    def roll_over_quotas(self, period: Optional[Period] = None) -> int:
        """Delete quota counters of every period before `period` (default: current)."""
        period = period or Period.from_datetime(self.clock())
        removed = self.quotas.delete_before(period.key)
        logger.info("quotas_rolled_over", period=period.key, removed=removed)
        return removed

    # ── Assessment ──────────────────────────────────────────────────

    def compute_assessment(
        self,
        text: str,
        context: Optional[AssessmentContext] = None,
        detailed: bool = False,
    ) -> AssessmentResult:
        return self.assessment_engine.compute_assessment(text, context, detailed=detailed)

    def classify_integrity(
        self,
        plagiarism_score: float,
        ai_likelihood: AILikelihood,
        plagiarism_risk: Optional[RiskTier] = None,
        ai_likelihood_score: Optional[float] = None,
    ) -> IntegrityAnalysis:
        return classify(
            plagiarism_score,
            ai_likelihood,
            plagiarism_risk=plagiarism_risk,
            ai_likelihood_score=ai_likelihood_score,
        )

    def reassess_submission(self, submission_id: str, detailed: bool = False) -> AssessmentResult:
        """Re-run the engine over a stored story and overwrite its assessment."""
        submission = self.submissions.get_by_id(submission_id)
        if submission is None:
            raise NotFoundException("Submission", submission_id)

        context = AssessmentContext(age_bracket=submission.age_bracket, title=submission.title or None)
        result = self.assessment_engine.assess_or_fallback(submission.content, context, detailed=detailed)
        result = self.assessments.upsert(submission_id, result)

        outcome = submission_status_for(result.integrity)
        self.submissions.update_assessment_status(
            submission_id,
            status=outcome.status,
            needs_review=outcome.needs_review,
            review_status=outcome.review_status,
            needs_manual_assessment=result.needs_manual_assessment,
            assessed_at=self.clock(),
        )

        # Judged entries follow the new assessment; unjudged ones wait for the batch.
        excluded = result.integrity.disposition == Disposition.FLAG
        score = judging_score(result.category_scores, self.ranking.judging_weights)
        judged = [e for e in self.entries.list_by_submission(submission_id) if e.score is not None]
        for entry in judged:
            self.entries.update_score(
                entry.id,
                score=score,
                excluded=excluded,
                needs_manual_assessment=result.needs_manual_assessment,
            )
        logger.info(
            "submission_reassessed",
            submission_id=submission_id,
            overall_score=result.overall_score,
            status=outcome.status.value,
            needs_manual_assessment=result.needs_manual_assessment,
            entries_updated=len(judged),
        )
        return result
