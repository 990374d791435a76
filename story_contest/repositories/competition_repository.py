"""
Competition Repository - Story Contest Platform
story_contest/repositories/competition_repository.py

Data access layer for Competition records, their transition claims and winners.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.engine import Connection

from story_contest.models.competition import (
    Competition,
    CompetitionSchedule,
    Period,
    Winner,
)
from story_contest.models.enumerations import Phase
from story_contest.repositories.base import BaseRepository


class CompetitionRepository(BaseRepository):
    """Repository for Competition persistence and compare-and-swap phase updates."""

    TABLE_NAME = "competitions"

    _COLUMNS = """
        id, period_key, year, month, phase, submission_start, judging_start,
        results_date, archive_after, judging_criteria, is_active,
        judging_completed, transitioning_to, transition_started_at,
        created_at, updated_at
    """

    def create(
        self,
        period: Period,
        schedule: CompetitionSchedule,
        judging_criteria: Dict[str, float],
        now: datetime,
    ) -> Competition:
        """
        Insert a new competition in the submission phase.

        Raises:
            DuplicateEntityException: an active competition already exists
                for the period (unique index)
        """
        competition_id = str(uuid4())
        ts = self.to_db_timestamp(now)

        sql = """
            INSERT INTO competitions (id, period_key, year, month, phase,
                                      submission_start, judging_start, results_date,
                                      archive_after, judging_criteria, is_active,
                                      judging_completed, created_at, updated_at)
            VALUES (:id, :period_key, :year, :month, :phase,
                    :submission_start, :judging_start, :results_date,
                    :archive_after, :judging_criteria, 1, 0, :created_at, :updated_at)
        """
        params = {
            "id": competition_id,
            "period_key": period.key,
            "year": period.year,
            "month": period.month,
            "phase": Phase.SUBMISSION.value,
            "submission_start": self.to_db_timestamp(schedule.submission_start),
            "judging_start": self.to_db_timestamp(schedule.judging_start),
            "results_date": self.to_db_timestamp(schedule.results_date),
            "archive_after": self.to_db_timestamp(schedule.archive_after),
            "judging_criteria": self.to_json(judging_criteria),
            "created_at": ts,
            "updated_at": ts,
        }
        self.execute_query(sql, params)
        return self.get_by_id(competition_id)

    def get_by_id(self, competition_id: str) -> Optional[Competition]:
        sql = f"SELECT {self._COLUMNS} FROM competitions WHERE id = :id"
        row = self.execute_query(sql, {"id": competition_id}, fetch_one=True)
        if not row:
            return None
        return self._row_to_model(row, self.get_winners(competition_id))

    def get_by_period(self, period: Period) -> Optional[Competition]:
        """Return the active competition for a period, else the most recent archived one."""
        sql = f"""
            SELECT {self._COLUMNS}
            FROM competitions
            WHERE period_key = :period_key
            ORDER BY is_active DESC, created_at DESC
            LIMIT 1
        """
        row = self.execute_query(sql, {"period_key": period.key}, fetch_one=True)
        if not row:
            return None
        return self._row_to_model(row, self.get_winners(row["id"]))

    def list_active(self) -> List[Competition]:
        """Competitions that are not yet archived, oldest period first."""
        sql = f"""
            SELECT {self._COLUMNS}
            FROM competitions
            WHERE is_active = 1
            ORDER BY period_key ASC
        """
        rows = self.execute_query(sql, fetch_all=True) or []
        return [self._row_to_model(row, []) for row in rows]

    def claim_transition(
        self,
        competition_id: str,
        current: Phase,
        target: Phase,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        """
        Compare-and-swap: mark `current -> target` as in progress.

        Succeeds only if the phase is still `current` and there is no live
        claim. A claim older than `stale_before` is taken over.
        """
        sql = """
            UPDATE competitions
            SET transitioning_to = :target,
                transition_started_at = :now,
                updated_at = :now
            WHERE id = :id
              AND phase = :current
              AND is_active = 1
              AND (transitioning_to IS NULL OR transition_started_at < :stale_before)
        """
        rowcount = self.execute_query(
            sql,
            {
                "id": competition_id,
                "current": current.value,
                "target": target.value,
                "now": self.to_db_timestamp(now),
                "stale_before": self.to_db_timestamp(stale_before),
            },
        )
        return rowcount == 1

    def complete_transition(
        self,
        competition_id: str,
        current: Phase,
        target: Phase,
        now: datetime,
        claimed_at: datetime,
    ) -> bool:
        """
        Compare-and-swap: write the new phase and clear the claim.

        Only the holder of the claim started at `claimed_at` can complete it.
        """
        sql = """
            UPDATE competitions
            SET phase = :target,
                transitioning_to = NULL,
                transition_started_at = NULL,
                judging_completed = CASE WHEN :target = 'judging' THEN 1 ELSE judging_completed END,
                is_active = CASE WHEN :target = 'archived' THEN 0 ELSE is_active END,
                updated_at = :now
            WHERE id = :id
              AND phase = :current
              AND transitioning_to = :target
              AND transition_started_at = :claimed_at
        """
        rowcount = self.execute_query(
            sql,
            {
                "id": competition_id,
                "current": current.value,
                "target": target.value,
                "now": self.to_db_timestamp(now),
                "claimed_at": self.to_db_timestamp(claimed_at),
            },
        )
        return rowcount == 1

    def release_transition(self, competition_id: str, target: Phase, claimed_at: datetime) -> None:
        """Drop a claim after its side effects failed so a retry can take it."""
        sql = """
            UPDATE competitions
            SET transitioning_to = NULL, transition_started_at = NULL
            WHERE id = :id
              AND transitioning_to = :target
              AND transition_started_at = :claimed_at
        """
        self.execute_query(
            sql,
            {
                "id": competition_id,
                "target": target.value,
                "claimed_at": self.to_db_timestamp(claimed_at),
            },
        )

    def lock_for_entry(self, competition_id: str, now: datetime, conn: Connection) -> bool:
        """
        Conditional write inside the submit transaction.

        Returns False when the competition left the submission phase or a
        transition out of it is claimed. Taking the write lock first keeps
        concurrent submitters serialized.
        """
        sql = """
            UPDATE competitions
            SET updated_at = :now
            WHERE id = :id
              AND phase = 'submission'
              AND is_active = 1
              AND transitioning_to IS NULL
        """
        rowcount = self.execute_query(
            sql, {"id": competition_id, "now": self.to_db_timestamp(now)}, conn=conn
        )
        return rowcount == 1

    def get_winners(self, competition_id: str) -> List[Winner]:
        sql = """
            SELECT position, entry_id, submission_id, user_id, author_name, title, score
            FROM competition_winners
            WHERE competition_id = :id
            ORDER BY position ASC
        """
        rows = self.execute_query(sql, {"id": competition_id}, fetch_all=True) or []
        return [Winner(**row) for row in rows]

    def replace_winners(self, competition_id: str, winners: List[Winner], conn: Connection) -> None:
        """Overwrite the winner list inside the caller's transaction."""
        self.execute_query(
            "DELETE FROM competition_winners WHERE competition_id = :id",
            {"id": competition_id},
            conn=conn,
        )
        sql = """
            INSERT INTO competition_winners (competition_id, position, entry_id, submission_id,
                                             user_id, author_name, title, score)
            VALUES (:competition_id, :position, :entry_id, :submission_id,
                    :user_id, :author_name, :title, :score)
        """
        for winner in winners:
            self.execute_query(
                sql,
                {"competition_id": competition_id, **winner.model_dump()},
                conn=conn,
            )

    def _row_to_model(self, row: Dict[str, Any], winners: List[Winner]) -> Competition:
        """Convert a competitions row to a Competition."""
        return Competition(
            id=row["id"],
            period=Period(year=row["year"], month=row["month"]),
            phase=Phase(row["phase"]),
            schedule=CompetitionSchedule(
                submission_start=self.from_db_timestamp(row["submission_start"]),
                judging_start=self.from_db_timestamp(row["judging_start"]),
                results_date=self.from_db_timestamp(row["results_date"]),
                archive_after=self.from_db_timestamp(row["archive_after"]),
            ),
            judging_criteria=self.from_json(row["judging_criteria"]) or {},
            is_active=bool(row["is_active"]),
            judging_completed=bool(row["judging_completed"]),
            transitioning_to=Phase(row["transitioning_to"]) if row["transitioning_to"] else None,
            transition_started_at=self.from_db_timestamp(row["transition_started_at"]),
            winners=winners,
            created_at=self.from_db_timestamp(row["created_at"]),
            updated_at=self.from_db_timestamp(row["updated_at"]),
        )
