"""
Ranking and Winner Selection
story_contest/lifecycle/ranking.py

Orders scored entries and picks the winners of a competition.

Judging score (from stored category scores):
    score = Σ(category_k × JUDGING_WEIGHTS_k)
          = 0.20·grammar + 0.25·creativity + 0.15·structure
          + 0.15·character_development + 0.15·plot_development + 0.10·vocabulary

Sort key: score DESC, submitted_at ASC, entry id ASC
    Ties go to the earlier submission; the id makes the order total.

Excluded (integrity-flagged) entries keep rank=None and never win. Entries
scored by the fallback path are ranked like any other.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from story_contest.config import settings
from story_contest.core.exceptions import NotFoundException, PhaseViolationException
from story_contest.models.competition import Entry, FinalizeResult, Winner
from story_contest.models.enumerations import Disposition, Phase
from story_contest.repositories.assessment_repository import AssessmentRepository
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.repositories.entry_repository import EntryRepository
from story_contest.repositories.submission_repository import SubmissionRepository
from story_contest.scoring.utils import weighted_score
from story_contest.services.notifications import Notifier

logger = structlog.get_logger(__name__)

FINALIZE_PHASES = (Phase.JUDGING, Phase.RESULTS)


def judging_score(category_scores: Dict[str, int], weights: Optional[Dict[str, float]] = None) -> float:
    return float(weighted_score(category_scores, weights or settings.JUDGING_WEIGHTS))


@dataclass
class RankedEntry:
    entry: Entry
    score: float
    rank: int


def rank_entries(scored: Sequence[tuple]) -> List[RankedEntry]:
    """
    Assign ranks 1..N to (entry, score) pairs using the documented tie-break.
    Input order does not matter.
    """
    ordered = sorted(
        scored,
        key=lambda pair: (-pair[1], pair[0].submitted_at, pair[0].id),
    )
    return [RankedEntry(entry=e, score=s, rank=i) for i, (e, s) in enumerate(ordered, start=1)]


class RankingAndWinnerSelector:
    def __init__(
        self,
        competitions: CompetitionRepository,
        entries: EntryRepository,
        submissions: SubmissionRepository,
        assessments: AssessmentRepository,
        notifier: Optional[Notifier] = None,
        judging_weights: Optional[Dict[str, float]] = None,
        max_winners: Optional[int] = None,
    ):
        self.competitions = competitions
        self.entries = entries
        self.submissions = submissions
        self.assessments = assessments
        self.notifier = notifier
        self.judging_weights = judging_weights or dict(settings.JUDGING_WEIGHTS)
        self.max_winners = max_winners or settings.MAX_WINNERS

    def finalize(self, competition_id: str) -> FinalizeResult:
        """
        Rank every scored entry and write winners + ranks in one transaction.

        Idempotent: the same stored scores produce the same ranks and winners.

        Raises:
            NotFoundException: unknown competition
            PhaseViolationException: not in judging/results, or an eligible
                entry has no score yet
        """
        competition = self.competitions.get_by_id(competition_id)
        if competition is None:
            raise NotFoundException("Competition", competition_id)
        if competition.phase not in FINALIZE_PHASES:
            raise PhaseViolationException(
                f"Cannot finalize a competition in phase '{competition.phase.value}'",
                current_phase=competition.phase.value,
            )

        entries = self.entries.list_by_competition(competition_id)
        stored = self.assessments.get_judging_inputs([e.submission_id for e in entries])

        # Exclusion follows the stored assessment; entries without one keep their own flag
        excluded_ids = set()
        scored = []
        unscored = []
        for entry in entries:
            if entry.submission_id in stored:
                categories, disposition = stored[entry.submission_id]
                if disposition == Disposition.FLAG:
                    excluded_ids.add(entry.id)
                    continue
                scored.append((entry, judging_score(categories, self.judging_weights)))
            elif entry.excluded:
                excluded_ids.add(entry.id)
            elif entry.score is not None:
                scored.append((entry, entry.score))
            else:
                unscored.append(entry.id)
        if unscored:
            raise PhaseViolationException(
                f"{len(unscored)} entries have not been scored yet",
                current_phase=competition.phase.value,
            )

        ranked = rank_entries(scored)
        winners = [self._winner_snapshot(item) for item in ranked[: self.max_winners]]

        rankings = [
            {"id": r.entry.id, "score": r.score, "rank": r.rank, "excluded": False} for r in ranked
        ]
        rankings += [
            {"id": e.id, "score": e.score, "rank": None, "excluded": True}
            for e in entries
            if e.id in excluded_ids
        ]
        with self.entries.transaction() as conn:
            self.entries.update_rankings(rankings, conn=conn)
            self.competitions.replace_winners(competition_id, winners, conn=conn)

        result = FinalizeResult(
            competition_id=competition_id,
            winners=winners,
            total_participants=len({e.user_id for e in entries}),
            total_submissions=len(entries),
            ranked_entries=len(ranked),
        )
        logger.info(
            "results_finalized",
            competition_id=competition_id,
            winners=len(winners),
            ranked_entries=result.ranked_entries,
            excluded_entries=len(excluded_ids),
            total_participants=result.total_participants,
        )
        if self.notifier and winners:
            self.notifier.notify(
                "winners_announced",
                {
                    "competition_id": competition_id,
                    "period": competition.period.key,
                    "winners": [w.model_dump() for w in winners],
                },
            )
        return result

    def _winner_snapshot(self, ranked: RankedEntry) -> Winner:
        submission = self.submissions.get_by_id(ranked.entry.submission_id)
        return Winner(
            position=ranked.rank,
            entry_id=ranked.entry.id,
            submission_id=ranked.entry.submission_id,
            user_id=ranked.entry.user_id,
            author_name=submission.author_name if submission else None,
            title=submission.title if submission else None,
            score=ranked.score,
        )
