# tests/test_models.py

"""
Model Validation Tests - Tests for the Pydantic models, enumerations
and settings validation
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from story_contest.config import JUDGING_WEIGHTS, Settings
from story_contest.models.assessment import AssessmentRequest, IntegrityClassifyRequest
from story_contest.models.competition import (
    CompetitionSchedule,
    Entry,
    Period,
    QuotaDecision,
    Winner,
)
from story_contest.models.enumerations import AgeBracket, Phase, RiskTier
from story_contest.models.submission import EntryCreate, Submission


# ENUMERATION TESTS


class TestPhaseEnum:
    """Tests for Phase enumeration."""

    def test_phase_order(self):
        assert [p.value for p in Phase] == ["submission", "judging", "results", "archived"]

    def test_next_phase_moves_one_step(self):
        assert Phase.SUBMISSION.next_phase == Phase.JUDGING
        assert Phase.JUDGING.next_phase == Phase.RESULTS
        assert Phase.RESULTS.next_phase == Phase.ARCHIVED

    def test_archived_is_terminal(self):
        assert Phase.ARCHIVED.is_terminal
        assert Phase.ARCHIVED.next_phase == Phase.ARCHIVED
        assert not any(p.is_terminal for p in Phase if p != Phase.ARCHIVED)


class TestRiskTierEnum:

    def test_severity_is_ordered(self):
        severities = [t.severity for t in RiskTier]
        assert severities == sorted(severities)
        assert RiskTier.CRITICAL.severity > RiskTier.LOW.severity


class TestAgeBracket:

    @pytest.mark.parametrize("age,expected", [
        (6, AgeBracket.EARLY),
        (8, AgeBracket.EARLY),
        (9, AgeBracket.MIDDLE),
        (12, AgeBracket.MIDDLE),
        (13, AgeBracket.TEEN),
        (17, AgeBracket.TEEN),
    ])
    def test_from_age(self, age, expected):
        assert AgeBracket.from_age(age) == expected


# PERIOD TESTS


class TestPeriod:
    """Tests for Period keys and arithmetic."""

    def test_key_is_zero_padded(self):
        assert Period(year=2026, month=3).key == "2026-03"

    def test_parse_round_trips_key(self):
        assert Period.parse("2026-11") == Period(year=2026, month=11)

    @pytest.mark.parametrize("key", ["2026", "2026-13", "march-2026", "2026-03-01", ""])
    def test_parse_rejects_bad_keys(self, key):
        with pytest.raises(ValueError):
            Period.parse(key)

    def test_next_rolls_over_year(self):
        assert Period(year=2026, month=12).next() == Period(year=2027, month=1)
        assert Period(year=2026, month=4).next() == Period(year=2026, month=5)

    def test_label(self):
        assert Period(year=2026, month=3).label == "March 2026"

    def test_from_datetime_normalizes_to_utc(self):
        # 23:30 on Mar 31 in UTC-5 is already April in UTC
        moment = datetime(2026, 3, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert Period.from_datetime(moment) == Period(year=2026, month=4)

    def test_period_is_hashable(self):
        assert len({Period(year=2026, month=3), Period(year=2026, month=3)}) == 1

    def test_month_out_of_range(self):
        with pytest.raises(ValidationError):
            Period(year=2026, month=0)


# SCHEDULE TESTS


class TestCompetitionSchedule:

    def _start(self):
        return datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_valid_schedule(self):
        start = self._start()
        schedule = CompetitionSchedule(
            submission_start=start,
            judging_start=start + timedelta(days=21),
            results_date=start + timedelta(days=28),
            archive_after=start + timedelta(days=35),
        )
        assert schedule.submission_end == schedule.judging_start
        assert schedule.judging_end == schedule.results_date

    def test_boundaries_must_increase(self):
        start = self._start()
        with pytest.raises(ValidationError) as exc_info:
            CompetitionSchedule(
                submission_start=start,
                judging_start=start + timedelta(days=21),
                results_date=start + timedelta(days=21),
                archive_after=start + timedelta(days=35),
            )
        assert "submission_start < judging_start" in str(exc_info.value)


# ENTRY / WINNER / QUOTA TESTS


class TestEntryModels:

    def test_entry_defaults(self):
        entry = Entry(
            id="e-1",
            competition_id="c-1",
            user_id="u-1",
            submission_id="s-1",
            submitted_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
        )
        assert entry.score is None
        assert entry.rank is None
        assert entry.excluded is False
        assert entry.phase_at_submission == Phase.SUBMISSION

    def test_entry_score_bounds(self):
        with pytest.raises(ValidationError):
            Entry(
                id="e-1",
                competition_id="c-1",
                user_id="u-1",
                submission_id="s-1",
                submitted_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
                score=101,
            )

    def test_winner_position_positive(self):
        with pytest.raises(ValidationError):
            Winner(position=0, entry_id="e", submission_id="s", user_id="u", score=80)

    def test_quota_decision_serializes_phase(self):
        decision = QuotaDecision(allowed=True, used=1, cap=3, phase=Phase.SUBMISSION)
        assert decision.model_dump(mode="json")["phase"] == "submission"

    def test_entry_create_requires_ids(self):
        with pytest.raises(ValidationError):
            EntryCreate(user_id="", submission_id="s-1")


class TestSubmission:

    def test_defaults(self):
        submission = Submission(id="s-1", user_id="u-1")
        assert submission.is_published is False
        assert submission.age_bracket == AgeBracket.MIDDLE
        assert submission.word_count == 0

    def test_word_count(self):
        assert Submission(id="s-1", user_id="u-1", content="One two  three\nfour").word_count == 4


# REQUEST MODEL TESTS


class TestRequestModels:

    def test_assessment_request_rejects_empty_text(self):
        with pytest.raises(ValidationError):
            AssessmentRequest(text="")

    def test_assessment_request_default_context(self):
        request = AssessmentRequest(text="Once upon a time.")
        assert request.context.age_bracket == AgeBracket.MIDDLE
        assert request.detailed is False

    def test_integrity_request_score_bounds(self):
        with pytest.raises(ValidationError):
            IntegrityClassifyRequest(plagiarism_score=120, ai_likelihood="low")


# SETTINGS TESTS


class TestSettings:

    def test_default_weights_sum_to_one(self):
        settings = Settings()
        assert abs(sum(settings.JUDGING_WEIGHTS.values()) - 1.0) < 1e-9
        assert abs(sum(settings.AGGREGATE_WEIGHTS.values()) - 1.0) < 1e-9

    def test_judging_weights_must_sum_to_one(self):
        weights = dict(JUDGING_WEIGHTS)
        weights["creativity"] = 0.5
        with pytest.raises(ValidationError, match="JUDGING_WEIGHTS must sum to 1.0"):
            Settings(JUDGING_WEIGHTS=weights)

    def test_negative_weight_rejected(self):
        weights = {"grammar": 1.2, "creativity": -0.2}
        with pytest.raises(ValidationError, match="negative"):
            Settings(JUDGING_WEIGHTS=weights)

    def test_production_requires_cron_token(self):
        with pytest.raises(ValidationError, match="CRON_SECRET_TOKEN"):
            Settings(APP_ENV="production", DEBUG=False, CRON_SECRET_TOKEN=None)

    def test_production_rejects_debug(self):
        with pytest.raises(ValidationError, match="DEBUG"):
            Settings(APP_ENV="production", DEBUG=True, CRON_SECRET_TOKEN="s3cret")

    def test_entry_cap_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(MAX_ENTRIES_PER_PERIOD=0)
