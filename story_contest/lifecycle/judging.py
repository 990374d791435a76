"""
Batch Judging
story_contest/lifecycle/judging.py

Scores every entry of a competition when it enters the judging phase.

    entries ─► ThreadPoolExecutor(JUDGING_MAX_WORKERS) ─► compute_assessment()
                                                          │ error / timeout
                                                          ▼
                                                    fallback_result()

The batch waits on a single deadline: ASSESSMENT_TIMEOUT_SECONDS per round of
workers, capped at JUDGING_BATCH_TIMEOUT_SECONDS (kept below the transition
lease). Assessments still running at the deadline take the fallback. Results
are persisted on the calling thread after the deadline or once every future
has finished, so the phase write that follows never sees a partially judged
competition.
"""

import math
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog

from story_contest.config import settings
from story_contest.lifecycle.ranking import judging_score
from story_contest.models.assessment import AssessmentContext, AssessmentResult
from story_contest.models.competition import Competition, Entry
from story_contest.models.enumerations import Disposition
from story_contest.repositories.assessment_repository import AssessmentRepository
from story_contest.repositories.entry_repository import EntryRepository
from story_contest.repositories.submission_repository import SubmissionRepository
from story_contest.scoring.assessment_engine import AssessmentEngine
from story_contest.scoring.integrity_classifier import submission_status_for

logger = structlog.get_logger(__name__)


@dataclass
class JudgingSummary:
    competition_id: str
    total: int = 0
    scored: int = 0
    excluded: int = 0
    fallbacks: int = 0


class BatchJudge:
    """Runs the assessment engine over all entries of a competition."""

    def __init__(
        self,
        entries: EntryRepository,
        submissions: SubmissionRepository,
        assessments: AssessmentRepository,
        engine: AssessmentEngine,
        max_workers: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        batch_timeout_seconds: Optional[float] = None,
        judging_weights: Optional[Dict[str, float]] = None,
    ):
        self.entries = entries
        self.submissions = submissions
        self.assessments = assessments
        self.engine = engine
        self.max_workers = max_workers or settings.JUDGING_MAX_WORKERS
        self.timeout_seconds = timeout_seconds or settings.ASSESSMENT_TIMEOUT_SECONDS
        self.batch_timeout_seconds = batch_timeout_seconds or settings.JUDGING_BATCH_TIMEOUT_SECONDS
        self.judging_weights = judging_weights or dict(settings.JUDGING_WEIGHTS)

    def run(self, competition: Competition) -> JudgingSummary:
        entries = self.entries.list_by_competition(competition.id)
        summary = JudgingSummary(competition_id=competition.id, total=len(entries))
        if not entries:
            logger.info("judging_no_entries", competition_id=competition.id)
            return summary

        results: Dict[str, AssessmentResult] = {}
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="judging")
        try:
            futures: Dict[Future, str] = {}
            for entry in entries:
                submission = self.submissions.get_by_id(entry.submission_id)
                if submission is None:
                    results[entry.id] = self.engine.fallback_result("Submission not found")
                    continue
                context = AssessmentContext(
                    age_bracket=submission.age_bracket,
                    title=submission.title or None,
                )
                future = executor.submit(self.engine.compute_assessment, submission.content, context)
                futures[future] = entry.id

            # Barrier: one deadline for the whole batch
            budget = self.batch_budget(len(futures))
            done, not_done = wait(futures, timeout=budget)
            for future in done:
                entry_id = futures[future]
                try:
                    results[entry_id] = future.result()
                except Exception as e:
                    logger.warning("assessment_failed", entry_id=entry_id, error=str(e))
                    results[entry_id] = self.engine.fallback_result(f"Assessment failed: {e}")
            for future in not_done:
                entry_id = futures[future]
                future.cancel()
                logger.warning("assessment_timed_out", entry_id=entry_id, budget=budget)
                results[entry_id] = self.engine.fallback_result(
                    f"Assessment timed out after {budget:g}s"
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for entry in entries:
            self._persist(entry, results[entry.id], summary)

        logger.info(
            "judging_completed",
            competition_id=competition.id,
            total=summary.total,
            scored=summary.scored,
            excluded=summary.excluded,
            fallbacks=summary.fallbacks,
        )
        return summary

    def batch_budget(self, pending: int) -> float:
        """
        Seconds the batch waits for its assessments.

        One assessment allowance per round of workers, never more than
        `batch_timeout_seconds`.
        """
        rounds = max(1, math.ceil(pending / self.max_workers))
        return min(self.timeout_seconds * rounds, self.batch_timeout_seconds)

    def _persist(self, entry: Entry, result: AssessmentResult, summary: JudgingSummary) -> None:
        self.assessments.upsert(entry.submission_id, result)

        outcome = submission_status_for(result.integrity)
        self.submissions.update_assessment_status(
            entry.submission_id,
            status=outcome.status,
            needs_review=outcome.needs_review,
            review_status=outcome.review_status,
            needs_manual_assessment=result.needs_manual_assessment,
            assessed_at=datetime.now(timezone.utc),
        )

        excluded = result.integrity.disposition == Disposition.FLAG
        self.entries.update_score(
            entry.id,
            score=judging_score(result.category_scores, self.judging_weights),
            excluded=excluded,
            needs_manual_assessment=result.needs_manual_assessment,
        )
        summary.scored += 1
        summary.excluded += int(excluded)
        summary.fallbacks += int(result.needs_manual_assessment)
