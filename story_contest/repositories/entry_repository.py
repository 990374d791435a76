"""
Entry Repository - Story Contest Platform
story_contest/repositories/entry_repository.py

Data access layer for competition entries, their scores and ranks.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.engine import Connection

from story_contest.models.competition import Entry
from story_contest.models.enumerations import Phase
from story_contest.repositories.base import BaseRepository


class EntryRepository(BaseRepository):
    """Repository for Entry CRUD operations."""

    TABLE_NAME = "entries"

    _COLUMNS = """
        id, competition_id, user_id, submission_id, submitted_at,
        phase_at_submission, score, rank, excluded, needs_manual_assessment
    """

    def create(
        self,
        competition_id: str,
        user_id: str,
        submission_id: str,
        submitted_at: datetime,
        conn: Optional[Connection] = None,
    ) -> Entry:
        """
        Insert an entry.

        Raises:
            DuplicateEntityException: (competition_id, submission_id) already entered
        """
        entry = Entry(
            id=str(uuid4()),
            competition_id=competition_id,
            user_id=user_id,
            submission_id=submission_id,
            submitted_at=self.normalize_timestamp(submitted_at),
            phase_at_submission=Phase.SUBMISSION,
        )
        sql = """
            INSERT INTO entries (id, competition_id, user_id, submission_id,
                                 submitted_at, phase_at_submission)
            VALUES (:id, :competition_id, :user_id, :submission_id,
                    :submitted_at, :phase_at_submission)
        """
        self.execute_query(
            sql,
            {
                "id": entry.id,
                "competition_id": competition_id,
                "user_id": user_id,
                "submission_id": submission_id,
                "submitted_at": self.to_db_timestamp(submitted_at),
                "phase_at_submission": entry.phase_at_submission.value,
            },
            conn=conn,
        )
        return entry

    def get_by_id(self, entry_id: str) -> Optional[Entry]:
        sql = f"SELECT {self._COLUMNS} FROM entries WHERE id = :id"
        row = self.execute_query(sql, {"id": entry_id}, fetch_one=True)
        return self._row_to_model(row) if row else None

    def get_by_submission(self, competition_id: str, submission_id: str) -> Optional[Entry]:
        sql = f"""
            SELECT {self._COLUMNS}
            FROM entries
            WHERE competition_id = :competition_id AND submission_id = :submission_id
        """
        row = self.execute_query(
            sql,
            {"competition_id": competition_id, "submission_id": submission_id},
            fetch_one=True,
        )
        return self._row_to_model(row) if row else None

    def list_by_submission(self, submission_id: str) -> List[Entry]:
        sql = f"""
            SELECT {self._COLUMNS}
            FROM entries
            WHERE submission_id = :submission_id
            ORDER BY submitted_at ASC, id ASC
        """
        rows = self.execute_query(sql, {"submission_id": submission_id}, fetch_all=True) or []
        return [self._row_to_model(row) for row in rows]

    def list_by_competition(self, competition_id: str) -> List[Entry]:
        sql = f"""
            SELECT {self._COLUMNS}
            FROM entries
            WHERE competition_id = :competition_id
            ORDER BY submitted_at ASC, id ASC
        """
        rows = self.execute_query(sql, {"competition_id": competition_id}, fetch_all=True) or []
        return [self._row_to_model(row) for row in rows]

    def list_by_user(self, user_id: str, competition_id: Optional[str] = None) -> List[Entry]:
        where = "user_id = :user_id"
        params: Dict[str, Any] = {"user_id": user_id}
        if competition_id:
            where += " AND competition_id = :competition_id"
            params["competition_id"] = competition_id

        sql = f"""
            SELECT {self._COLUMNS}
            FROM entries
            WHERE {where}
            ORDER BY submitted_at DESC
        """
        rows = self.execute_query(sql, params, fetch_all=True) or []
        return [self._row_to_model(row) for row in rows]

    def update_score(
        self,
        entry_id: str,
        score: float,
        excluded: bool,
        needs_manual_assessment: bool,
    ) -> None:
        """Persist the judging outcome of one entry."""
        sql = """
            UPDATE entries
            SET score = :score,
                excluded = :excluded,
                needs_manual_assessment = :needs_manual_assessment
            WHERE id = :id
        """
        self.execute_query(
            sql,
            {
                "id": entry_id,
                "score": score,
                "excluded": int(excluded),
                "needs_manual_assessment": int(needs_manual_assessment),
            },
        )

    def update_rankings(self, rankings: List[Dict[str, Any]], conn: Connection) -> None:
        """
        Write score, rank and exclusion for every entry inside the caller's transaction.

        Each item holds `id`, `score`, `rank` (None for excluded entries) and `excluded`.
        """
        sql = "UPDATE entries SET score = :score, rank = :rank, excluded = :excluded WHERE id = :id"
        for item in rankings:
            self.execute_query(
                sql,
                {
                    "id": item["id"],
                    "score": item["score"],
                    "rank": item["rank"],
                    "excluded": int(item.get("excluded", False)),
                },
                conn=conn,
            )

    def count_stats(self, competition_id: str) -> Dict[str, int]:
        sql = """
            SELECT COUNT(*) AS total_entries,
                   COUNT(DISTINCT user_id) AS unique_participants,
                   SUM(CASE WHEN score IS NOT NULL THEN 1 ELSE 0 END) AS scored_entries,
                   SUM(excluded) AS excluded_entries,
                   SUM(needs_manual_assessment) AS manual_assessment_entries
            FROM entries
            WHERE competition_id = :competition_id
        """
        row = self.execute_query(sql, {"competition_id": competition_id}, fetch_one=True) or {}
        return {key: int(value or 0) for key, value in row.items()}

    def _row_to_model(self, row: Dict[str, Any]) -> Entry:
        """Convert an entries row to an Entry."""
        return Entry(
            id=row["id"],
            competition_id=row["competition_id"],
            user_id=row["user_id"],
            submission_id=row["submission_id"],
            submitted_at=self.from_db_timestamp(row["submitted_at"]),
            phase_at_submission=Phase(row["phase_at_submission"]),
            score=float(row["score"]) if row["score"] is not None else None,
            rank=row["rank"],
            excluded=bool(row["excluded"]),
            needs_manual_assessment=bool(row["needs_manual_assessment"]),
        )
