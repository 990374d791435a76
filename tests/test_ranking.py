"""
Ranking & Winner Selection Tests - Story Contest Platform
tests/test_ranking.py

Tie-break order, exclusion of flagged entries, winner snapshots, idempotent
finalize and its phase / completeness preconditions.
"""

from datetime import datetime, timedelta, timezone

import pytest

from story_contest.core.exceptions import NotFoundException, PhaseViolationException
from story_contest.lifecycle.ranking import judging_score, rank_entries
from story_contest.models.assessment import AssessmentResult
from story_contest.models.competition import Entry
from story_contest.models.enumerations import AILikelihood, Disposition, Phase
from story_contest.scoring.integrity_classifier import classify

CATEGORIES = [
    "grammar", "creativity", "structure", "character_development",
    "plot_development", "vocabulary",
]


ASSISTANT_STORY = (
    "As an AI language model, I cannot have personal experiences, "
    "but here is a story about a dragon who learned to share his treasure with the village."
)


def uniform_result(score: int) -> AssessmentResult:
    return AssessmentResult(
        category_scores={name: score for name in CATEGORIES},
        overall_score=float(score),
        integrity=classify(100.0, AILikelihood.VERY_LOW),
    )


def flagged_result(score: int) -> AssessmentResult:
    return uniform_result(score).model_copy(
        update={"integrity": classify(100.0, AILikelihood.VERY_HIGH)}
    )


@pytest.fixture
def enter(service, competition, make_submission, clock):
    """Submit a story for `user` and store an assessment with a uniform score."""

    def _enter(user: str, score: int, minutes_later: int = 1, title: str = "Story", **overrides) -> Entry:
        clock.advance(minutes=minutes_later)
        submission = make_submission(user, title=title, **overrides)
        entry = service.submit_entry(competition.id, user, submission.id)
        service.assessments.upsert(submission.id, uniform_result(score))
        service.entries.update_score(entry.id, float(score), excluded=False, needs_manual_assessment=False)
        return entry

    return _enter


def to_judging(service, competition_id):
    service.competitions.execute_query(
        "UPDATE competitions SET phase = 'judging' WHERE id = :id", {"id": competition_id}
    )


class TestJudgingScore:

    def test_weights(self):
        scores = {"grammar": 100, "creativity": 0, "structure": 0,
                  "character_development": 0, "plot_development": 0, "vocabulary": 0}
        assert judging_score(scores) == 20.0
        scores["creativity"] = 100
        assert judging_score(scores) == 45.0

    def test_uniform_scores_preserved(self):
        assert judging_score({name: 88 for name in CATEGORIES}) == 88.0


class TestRankEntries:

    def _entry(self, entry_id, minute):
        return Entry(
            id=entry_id,
            competition_id="c",
            user_id="u",
            submission_id=f"s-{entry_id}",
            submitted_at=datetime(2026, 3, 5, 10, minute, tzinfo=timezone.utc),
        )

    def test_earlier_submission_wins_tie(self):
        late, early = self._entry("a", 30), self._entry("b", 10)
        ranked = rank_entries([(late, 88.0), (early, 88.0)])
        assert [r.entry.id for r in ranked] == ["b", "a"]
        assert [r.rank for r in ranked] == [1, 2]

    def test_id_breaks_identical_timestamps(self):
        ranked = rank_entries([(self._entry("z", 1), 70.0), (self._entry("m", 1), 70.0)])
        assert [r.entry.id for r in ranked] == ["m", "z"]

    def test_score_dominates(self):
        ranked = rank_entries([(self._entry("a", 1), 60.0), (self._entry("b", 59), 61.0)])
        assert ranked[0].entry.id == "b"


class TestFinalize:

    def test_tie_is_resolved_by_submission_time_and_is_stable(self, service, competition, enter):
        first = enter("user-1", 88)
        second = enter("user-2", 88, minutes_later=5)
        to_judging(service, competition.id)

        runs = [service.finalize_results(competition.id) for _ in range(3)]

        for result in runs:
            assert [w.entry_id for w in result.winners] == [first.id, second.id]
            assert [w.position for w in result.winners] == [1, 2]
        assert service.entries.get_by_id(first.id).rank == 1
        assert service.entries.get_by_id(second.id).rank == 2

    def test_at_most_three_winners_sorted_desc(self, service, competition, enter):
        entries = [enter(f"user-{i}", score) for i, score in enumerate([55, 91, 73, 88, 60])]
        to_judging(service, competition.id)

        result = service.finalize_results(competition.id)

        assert len(result.winners) == 3
        scores = [w.score for w in result.winners]
        assert scores == sorted(scores, reverse=True) == [91.0, 88.0, 73.0]
        winner_ids = {w.entry_id for w in result.winners}
        losers = [service.entries.get_by_id(e.id).score for e in entries if e.id not in winner_ids]
        assert min(scores) >= max(losers)
        assert result.total_submissions == 5
        assert result.total_participants == 5
        assert result.ranked_entries == 5

    def test_winner_snapshot(self, service, competition, enter):
        entry = enter("user-7", 80, title="Dragons of the Deep")
        to_judging(service, competition.id)

        winner = service.finalize_results(competition.id).winners[0]
        assert winner.user_id == "user-7"
        assert winner.author_name == "Author user-7"
        assert winner.title == "Dragons of the Deep"
        assert winner.submission_id == entry.submission_id

        stored = service.get_competition(competition.id)
        assert [w.entry_id for w in stored.winners] == [entry.id]

    def test_excluded_entries_not_ranked(self, service, competition, enter):
        good = enter("user-1", 70)
        flagged = enter("user-2", 99)
        service.assessments.upsert(flagged.submission_id, flagged_result(99))
        service.entries.update_score(flagged.id, 99.0, excluded=True, needs_manual_assessment=False)
        to_judging(service, competition.id)

        result = service.finalize_results(competition.id)

        assert [w.entry_id for w in result.winners] == [good.id]
        assert service.entries.get_by_id(flagged.id).rank is None
        assert result.total_submissions == 2
        assert result.ranked_entries == 1

    def test_fallback_entries_are_ranked(self, service, competition, enter):
        entry = enter("user-1", 50)
        service.entries.update_score(entry.id, 50.0, excluded=False, needs_manual_assessment=True)
        to_judging(service, competition.id)

        result = service.finalize_results(competition.id)
        assert result.winners[0].entry_id == entry.id

    def test_score_recomputed_from_stored_categories(self, service, competition, enter):
        entry = enter("user-1", 80)
        service.entries.update_score(entry.id, 10.0, excluded=False, needs_manual_assessment=False)
        to_judging(service, competition.id)

        service.finalize_results(competition.id)
        assert service.entries.get_by_id(entry.id).score == 80.0

    def test_unscored_entry_blocks_finalize(self, service, competition, make_submission):
        service.submit_entry(competition.id, "user-1", make_submission("user-1").id)
        to_judging(service, competition.id)

        with pytest.raises(PhaseViolationException):
            service.finalize_results(competition.id)

    def test_wrong_phase(self, service, competition):
        with pytest.raises(PhaseViolationException) as exc:
            service.finalize_results(competition.id)
        assert exc.value.current_phase == Phase.SUBMISSION.value

    def test_unknown_competition(self, service):
        with pytest.raises(NotFoundException):
            service.finalize_results("missing")

    def test_empty_competition(self, service, competition):
        to_judging(service, competition.id)
        result = service.finalize_results(competition.id)
        assert result.winners == []
        assert result.total_participants == 0

    def test_announces_winners(self, service, competition, enter, notifier):
        enter("user-1", 75)
        to_judging(service, competition.id)
        service.finalize_results(competition.id)
        assert "winners_announced" in notifier.names()


class TestReassessmentBeforeFinalize:
    """Exclusion and score both follow the latest stored assessment."""

    def test_stale_flag_on_entry_is_ignored(self, service, competition, enter):
        entry = enter("user-1", 82)
        service.entries.update_score(entry.id, 82.0, excluded=True, needs_manual_assessment=False)
        to_judging(service, competition.id)

        result = service.finalize_results(competition.id)

        assert [w.entry_id for w in result.winners] == [entry.id]
        stored = service.entries.get_by_id(entry.id)
        assert stored.rank == 1
        assert stored.excluded is False

    def test_reassessed_to_critical_is_excluded(self, service, competition, enter):
        clean = enter("user-1", 60)
        suspect = enter("user-2", 95, content=ASSISTANT_STORY)
        to_judging(service, competition.id)

        reassessed = service.reassess_submission(suspect.submission_id)
        assert reassessed.integrity.disposition == Disposition.FLAG
        assert service.entries.get_by_id(suspect.id).excluded is True

        result = service.finalize_results(competition.id)

        assert [w.entry_id for w in result.winners] == [clean.id]
        assert result.ranked_entries == 1
        stored = service.entries.get_by_id(suspect.id)
        assert stored.rank is None
        assert stored.excluded is True

    def test_reassessed_to_clean_is_ranked_again(self, service, competition, enter, monkeypatch):
        other = enter("user-1", 60)
        entry = enter("user-2", 40)
        service.assessments.upsert(entry.submission_id, flagged_result(40))
        service.entries.update_score(entry.id, 40.0, excluded=True, needs_manual_assessment=False)
        to_judging(service, competition.id)

        first = service.finalize_results(competition.id)
        assert [w.entry_id for w in first.winners] == [other.id]

        monkeypatch.setattr(
            service.assessment_engine,
            "compute_assessment",
            lambda text, context=None, detailed=False: uniform_result(85),
        )
        service.reassess_submission(entry.submission_id)
        assert service.entries.get_by_id(entry.id).excluded is False

        second = service.finalize_results(competition.id)

        assert [w.entry_id for w in second.winners] == [entry.id, other.id]
        stored = service.entries.get_by_id(entry.id)
        assert stored.rank == 1
        assert stored.score == 85.0

    def test_unjudged_entry_untouched_by_reassessment(self, service, competition, make_submission):
        submission = make_submission("user-1", content=ASSISTANT_STORY)
        entry = service.submit_entry(competition.id, "user-1", submission.id)

        service.reassess_submission(submission.id)

        stored = service.entries.get_by_id(entry.id)
        assert stored.score is None
        assert stored.excluded is False
