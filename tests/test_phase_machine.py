"""
Phase State Machine Tests - Story Contest Platform
tests/test_phase_machine.py

Schedule derivation, lazy creation, one-step advances, batch judging on
entering the judging phase, claim handling under concurrency and archival.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from story_contest.core.exceptions import NotFoundException
from story_contest.lifecycle.phase_machine import PhaseStateMachine
from story_contest.lifecycle.schedule import SchedulePolicy, boundary_for, is_due
from story_contest.models.competition import Period
from story_contest.models.enumerations import Phase

PHASE_ORDER = [Phase.SUBMISSION, Phase.JUDGING, Phase.RESULTS, Phase.ARCHIVED]


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestSchedulePolicy:

    def test_default_boundaries(self):
        schedule = SchedulePolicy(25, 5, 7).schedule_for(Period(year=2026, month=3))
        assert schedule.submission_start == utc(2026, 3, 1)
        assert schedule.judging_start == utc(2026, 3, 26)
        assert schedule.results_date == utc(2026, 3, 31)
        assert schedule.archive_after == utc(2026, 4, 7)

    def test_results_clamped_to_month_end(self):
        schedule = SchedulePolicy(25, 5, 7).schedule_for(Period(year=2026, month=2))
        assert schedule.judging_start == utc(2026, 2, 26)
        assert schedule.results_date == utc(2026, 3, 1)

    def test_december_rolls_into_next_year(self):
        schedule = SchedulePolicy(25, 10, 7).schedule_for(Period(year=2026, month=12))
        assert schedule.results_date == utc(2027, 1, 1)
        assert schedule.archive_after == utc(2027, 1, 8)

    def test_archive_boundary_differs_from_results(self, competition):
        assert competition.schedule.archive_after > competition.schedule.results_date

    def test_is_due(self, competition):
        boundary = boundary_for(competition)
        assert boundary == competition.schedule.judging_start
        assert not is_due(competition, boundary - timedelta(microseconds=1))
        assert is_due(competition, boundary)


class TestGetOrCreate:

    def test_creates_in_submission_phase(self, competition, period):
        assert competition.phase == Phase.SUBMISSION
        assert competition.period == period
        assert competition.is_active
        assert competition.judging_criteria["creativity"] == 0.25

    def test_returns_existing(self, service, competition, period):
        again = service.phase_machine.get_or_create_current(period)
        assert again.id == competition.id

    def test_defaults_to_clock_period(self, service, clock):
        created = service.phase_machine.get_or_create_current()
        assert created.period == Period.from_datetime(clock.now)

    def test_concurrent_creation_yields_one_competition(self, service, period):
        results = []
        barrier = threading.Barrier(4)

        def create():
            barrier.wait()
            results.append(service.phase_machine.get_or_create_current(period).id)

        threads = [threading.Thread(target=create) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 1
        rows = service.competitions.execute_query(
            "SELECT COUNT(*) AS n FROM competitions WHERE period_key = :key",
            {"key": period.key},
            fetch_one=True,
        )
        assert rows["n"] == 1


class TestAdvance:

    def test_unknown_competition(self, service):
        with pytest.raises(NotFoundException):
            service.advance_phase("missing")

    def test_noop_before_boundary(self, service, competition, notifier):
        before = competition.schedule.judging_start - timedelta(seconds=1)
        result = service.advance_phase(competition.id, now=before)
        assert result.phase == Phase.SUBMISSION
        assert "phase_changed" not in notifier.names()

    def test_submission_to_judging_scores_all_entries(self, service, competition, make_submission, notifier):
        """Submission boundary passed, judging boundary in the future: exactly one step."""
        for user in ("user-1", "user-2", "user-3"):
            service.submit_entry(competition.id, user, make_submission(user).id)

        now = competition.schedule.judging_start + timedelta(hours=1)
        advanced = service.advance_phase(competition.id, now=now)
        assert advanced.phase == Phase.JUDGING
        assert advanced.judging_completed is True

        entries = service.entries.list_by_competition(competition.id)
        assert len(entries) == 3
        assert all(e.score is not None for e in entries)
        for entry in entries:
            assert service.assessments.get_by_submission(entry.submission_id) is not None

        again = service.advance_phase(competition.id, now=now)
        assert again.phase == Phase.JUDGING
        assert notifier.names().count("phase_changed") == 1

    def test_one_step_per_call_even_when_far_past(self, service, competition):
        far_future = competition.schedule.archive_after + timedelta(days=30)
        seen = [competition.phase]
        for _ in range(5):
            seen.append(service.advance_phase(competition.id, now=far_future).phase)

        assert seen == [
            Phase.SUBMISSION,
            Phase.JUDGING,
            Phase.RESULTS,
            Phase.ARCHIVED,
            Phase.ARCHIVED,
            Phase.ARCHIVED,
        ]
        for earlier, later in zip(seen, seen[1:]):
            assert PHASE_ORDER.index(later) - PHASE_ORDER.index(earlier) in (0, 1)

    def test_results_phase_finalizes_winners(self, service, competition, make_submission):
        for user in ("user-1", "user-2"):
            service.submit_entry(competition.id, user, make_submission(user).id)
        schedule = competition.schedule

        service.advance_phase(competition.id, now=schedule.judging_start)
        results = service.advance_phase(competition.id, now=schedule.results_date)

        assert results.phase == Phase.RESULTS
        entries = service.entries.list_by_competition(competition.id)
        eligible = [e for e in entries if not e.excluded]
        assert len(results.winners) == len(eligible)
        assert sorted(e.rank for e in eligible) == list(range(1, len(eligible) + 1))
        assert all(e.rank is None for e in entries if e.excluded)

    def test_archive_deactivates(self, service, competition):
        schedule = competition.schedule
        service.advance_phase(competition.id, now=schedule.judging_start)
        service.advance_phase(competition.id, now=schedule.results_date)

        not_yet = service.advance_phase(competition.id, now=schedule.archive_after - timedelta(seconds=1))
        assert not_yet.phase == Phase.RESULTS

        archived = service.advance_phase(competition.id, now=schedule.archive_after)
        assert archived.phase == Phase.ARCHIVED
        assert archived.is_active is False

    def test_new_competition_allowed_after_archive(self, service, competition, period):
        schedule = competition.schedule
        for boundary in (schedule.judging_start, schedule.results_date, schedule.archive_after):
            service.advance_phase(competition.id, now=boundary)

        replacement = service.competitions.create(
            period, SchedulePolicy.from_settings().schedule_for(period), {}, now=schedule.archive_after
        )
        assert replacement.id != competition.id
        assert service.competitions.get_by_period(period).id == replacement.id


class StubJudge:
    def __init__(self, delay=0.0, error=None):
        self.calls = 0
        self.delay = delay
        self.error = error
        self._lock = threading.Lock()

    def run(self, competition):
        with self._lock:
            self.calls += 1
        time.sleep(self.delay)
        if self.error:
            raise self.error


class StubRanking:
    def finalize(self, competition_id):
        return None


@pytest.fixture
def machine_factory(service, notifier, clock):
    def _make(judge, lease_seconds=900):
        return PhaseStateMachine(
            service.competitions, judge, StubRanking(), notifier, clock=clock, lease_seconds=lease_seconds
        )
    return _make


class TestTransitionClaims:

    def test_concurrent_advance_runs_judging_once(self, machine_factory, competition, notifier):
        judge = StubJudge(delay=0.2)
        machine = machine_factory(judge)
        now = competition.schedule.judging_start
        barrier = threading.Barrier(5)
        phases = []

        def advance():
            barrier.wait()
            phases.append(machine.advance(competition.id, now=now).phase)

        threads = [threading.Thread(target=advance) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert judge.calls == 1
        assert notifier.names().count("phase_changed") == 1
        assert machine.get(competition.id).phase == Phase.JUDGING
        assert all(p in (Phase.SUBMISSION, Phase.JUDGING) for p in phases)

    def test_failed_side_effect_releases_claim(self, machine_factory, competition):
        failing = machine_factory(StubJudge(error=RuntimeError("scoring backend down")))
        now = competition.schedule.judging_start

        with pytest.raises(RuntimeError):
            failing.advance(competition.id, now=now)

        stored = failing.get(competition.id)
        assert stored.phase == Phase.SUBMISSION
        assert stored.transitioning_to is None

        retry = machine_factory(StubJudge())
        assert retry.advance(competition.id, now=now).phase == Phase.JUDGING

    def test_live_claim_blocks_other_callers(self, machine_factory, competition, clock):
        judge = StubJudge()
        machine = machine_factory(judge)
        machine.competitions.claim_transition(
            competition.id, Phase.SUBMISSION, Phase.JUDGING,
            now=clock.now, stale_before=clock.now - timedelta(minutes=15),
        )

        result = machine.advance(competition.id, now=competition.schedule.judging_start)
        assert result.phase == Phase.SUBMISSION
        assert judge.calls == 0

    def test_stale_claim_is_taken_over(self, machine_factory, competition, clock):
        judge = StubJudge()
        machine = machine_factory(judge, lease_seconds=60)
        machine.competitions.claim_transition(
            competition.id, Phase.SUBMISSION, Phase.JUDGING,
            now=clock.now, stale_before=clock.now - timedelta(minutes=1),
        )
        clock.advance(minutes=5)

        result = machine.advance(competition.id, now=competition.schedule.judging_start)
        assert result.phase == Phase.JUDGING
        assert judge.calls == 1


class TestAdvanceDue:

    def test_creates_current_and_advances_due(self, service, competition, clock):
        summary = service.advance_due_competitions(now=competition.schedule.judging_start)
        assert summary == [{
            "competition_id": competition.id,
            "period": competition.period.key,
            "from_phase": "submission",
            "to_phase": "judging",
            "status": "advanced",
        }]

    def test_nothing_due(self, service, competition, clock):
        assert service.advance_due_competitions(now=clock.now) == []

    def test_creates_next_month(self, service, competition):
        next_month = utc(2026, 4, 2)
        service.advance_due_competitions(now=next_month)
        created = service.competitions.get_by_period(Period(year=2026, month=4))
        assert created is not None
        assert created.phase == Phase.SUBMISSION
