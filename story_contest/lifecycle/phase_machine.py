"""
Phase State Machine
story_contest/lifecycle/phase_machine.py

Owns a competition's lifecycle: submission → judging → results → archived.
Strictly forward, one step per advance() call.

Concurrency:
    advance() claims the transition with a compare-and-swap on
    (phase, transitioning_to). Only the claimant runs the side effects
    (batch judging, finalize) and then writes the phase with a second CAS.
    Losers return the competition as currently stored. A claim older than
    TRANSITION_LEASE_SECONDS is treated as abandoned and can be taken over.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import structlog

from story_contest.config import settings
from story_contest.core.exceptions import DuplicateEntityException, NotFoundException
from story_contest.lifecycle.schedule import SchedulePolicy, boundary_for, is_due
from story_contest.models.competition import Competition, Period
from story_contest.models.enumerations import Phase
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.services.notifications import Notifier

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PhaseStateMachine:
    """Creates competitions lazily and advances them on schedule."""

    def __init__(
        self,
        competitions: CompetitionRepository,
        judge,
        ranking,
        notifier: Notifier,
        policy: Optional[SchedulePolicy] = None,
        clock: Clock = utc_now,
        lease_seconds: Optional[int] = None,
    ):
        self.competitions = competitions
        self.judge = judge
        self.ranking = ranking
        self.notifier = notifier
        self.policy = policy or SchedulePolicy.from_settings()
        self.clock = clock
        self.lease = timedelta(seconds=lease_seconds or settings.TRANSITION_LEASE_SECONDS)

    def get_or_create_current(self, period: Optional[Period] = None) -> Competition:
        """
        Return the competition for `period` (default: the clock's month),
        creating it in the submission phase if none exists.
        """
        period = period or Period.from_datetime(self.clock())
        existing = self.competitions.get_by_period(period)
        if existing:
            return existing

        try:
            competition = self.competitions.create(
                period=period,
                schedule=self.policy.schedule_for(period),
                judging_criteria=dict(settings.JUDGING_WEIGHTS),
                now=self.clock(),
            )
        except DuplicateEntityException:
            # Lost the creation race; the winner's row is authoritative
            logger.info("competition_create_race_lost", period=period.key)
            return self.competitions.get_by_period(period)

        logger.info(
            "competition_created",
            competition_id=competition.id,
            period=period.key,
            judging_start=competition.schedule.judging_start.isoformat(),
            results_date=competition.schedule.results_date.isoformat(),
            archive_after=competition.schedule.archive_after.isoformat(),
        )
        return competition

    def get(self, competition_id: str) -> Competition:
        competition = self.competitions.get_by_id(competition_id)
        if competition is None:
            raise NotFoundException("Competition", competition_id)
        return competition

    def advance(self, competition_id: str, now: Optional[datetime] = None) -> Competition:
        """
        Move at most one phase forward if its boundary has passed.

        Returns the competition unchanged when no boundary has passed, when
        it is archived, or when another caller holds the transition.

        Raises:
            NotFoundException: unknown competition
            Exception: side-effect failure; the claim is released so the
                scheduler can retry
        """
        now = now or self.clock()
        competition = self.get(competition_id)

        if competition.phase.is_terminal or not is_due(competition, now):
            logger.debug(
                "advance_not_due",
                competition_id=competition_id,
                phase=competition.phase.value,
                boundary=(boundary_for(competition) or now).isoformat(),
            )
            return competition

        current = competition.phase
        target = current.next_phase
        claimed_at = self.clock()
        claimed = self.competitions.claim_transition(
            competition_id, current, target, now=claimed_at, stale_before=claimed_at - self.lease
        )
        if not claimed:
            logger.info(
                "advance_claim_lost",
                competition_id=competition_id,
                phase=current.value,
                target=target.value,
            )
            return self.get(competition_id)

        logger.info(
            "phase_transition_started",
            competition_id=competition_id,
            from_phase=current.value,
            to_phase=target.value,
        )
        try:
            self._run_side_effects(competition, target)
        except Exception as e:
            self.competitions.release_transition(competition_id, target, claimed_at)
            logger.error(
                "phase_transition_failed",
                competition_id=competition_id,
                from_phase=current.value,
                to_phase=target.value,
                error=str(e),
            )
            raise

        completed = self.competitions.complete_transition(
            competition_id, current, target, now=self.clock(), claimed_at=claimed_at
        )
        if not completed:
            logger.warning(
                "phase_transition_claim_expired",
                competition_id=competition_id,
                to_phase=target.value,
            )
            return self.get(competition_id)

        logger.info(
            "phase_transition_completed",
            competition_id=competition_id,
            from_phase=current.value,
            to_phase=target.value,
        )
        self.notifier.notify(
            "phase_changed",
            {"competition_id": competition_id, "from_phase": current.value, "to_phase": target.value},
        )
        return self.get(competition_id)

    def _run_side_effects(self, competition: Competition, target: Phase) -> None:
        if target == Phase.JUDGING:
            self.judge.run(competition)
        elif target == Phase.RESULTS:
            self.ranking.finalize(competition.id)

    def advance_due(self, now: Optional[datetime] = None) -> List[Dict[str, str]]:
        """
        Scheduler entry point: make sure the current month has a competition,
        then advance every active competition whose boundary has passed.

        One failing competition does not stop the others; failures are
        reported in the returned summary.
        """
        now = now or self.clock()
        self.get_or_create_current(Period.from_datetime(now))

        summary = []
        for competition in self.competitions.list_active():
            if not is_due(competition, now):
                continue
            before = competition.phase
            try:
                after = self.advance(competition.id, now=now).phase
                summary.append({
                    "competition_id": competition.id,
                    "period": competition.period.key,
                    "from_phase": before.value,
                    "to_phase": after.value,
                    "status": "advanced" if after != before else "unchanged",
                })
            except Exception as e:
                logger.error("scheduled_advance_failed", competition_id=competition.id, error=str(e))
                summary.append({
                    "competition_id": competition.id,
                    "period": competition.period.key,
                    "from_phase": before.value,
                    "to_phase": before.value,
                    "status": "failed",
                })
        return summary
