"""
Submission Repository - Story Contest Platform
story_contest/repositories/submission_repository.py

Read access to stories and write-back of assessment status. Publishing and
authoring happen elsewhere; `create` exists for seeding and tests.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from story_contest.models.enumerations import AgeBracket, ReviewStatus, SubmissionStatus
from story_contest.models.submission import Submission
from story_contest.repositories.base import BaseRepository


class SubmissionRepository(BaseRepository):
    """Repository for Submission records."""

    TABLE_NAME = "submissions"

    _COLUMNS = """
        id, user_id, author_name, title, content, age_bracket, is_published, status,
        needs_review, review_status, needs_manual_assessment,
        last_assessed_at, created_at
    """

    def create(self, submission: Submission) -> Submission:
        sql = """
            INSERT INTO submissions (id, user_id, author_name, title, content, age_bracket,
                                     is_published, status, needs_review, review_status,
                                     needs_manual_assessment, last_assessed_at, created_at)
            VALUES (:id, :user_id, :author_name, :title, :content, :age_bracket,
                    :is_published, :status, :needs_review, :review_status,
                    :needs_manual_assessment, :last_assessed_at, :created_at)
        """
        self.execute_query(
            sql,
            {
                "id": submission.id,
                "user_id": submission.user_id,
                "author_name": submission.author_name,
                "title": submission.title,
                "content": submission.content,
                "age_bracket": submission.age_bracket.value,
                "is_published": int(submission.is_published),
                "status": submission.status.value,
                "needs_review": int(submission.needs_review),
                "review_status": submission.review_status.value,
                "needs_manual_assessment": int(submission.needs_manual_assessment),
                "last_assessed_at": self.to_db_timestamp(submission.last_assessed_at),
                "created_at": self.to_db_timestamp(submission.created_at),
            },
        )
        return self.get_by_id(submission.id)

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        sql = f"SELECT {self._COLUMNS} FROM submissions WHERE id = :id"
        row = self.execute_query(sql, {"id": submission_id}, fetch_one=True)
        return self._row_to_model(row) if row else None

    def list_published_by_user(self, user_id: str) -> List[Submission]:
        sql = f"""
            SELECT {self._COLUMNS}
            FROM submissions
            WHERE user_id = :user_id AND is_published = 1
            ORDER BY created_at DESC
        """
        rows = self.execute_query(sql, {"user_id": user_id}, fetch_all=True) or []
        return [self._row_to_model(row) for row in rows]

    def update_assessment_status(
        self,
        submission_id: str,
        status: SubmissionStatus,
        needs_review: bool,
        review_status: ReviewStatus,
        needs_manual_assessment: bool,
        assessed_at: Optional[datetime] = None,
    ) -> None:
        """Write back the disposition of the latest assessment."""
        sql, params = self.build_update_query(
            self.TABLE_NAME,
            {
                "status": status.value,
                "needs_review": int(needs_review),
                "review_status": review_status.value,
                "needs_manual_assessment": int(needs_manual_assessment),
            },
            "id",
            submission_id,
            additional_set={
                "last_assessed_at": self.to_db_timestamp(
                    assessed_at or datetime.now(timezone.utc)
                )
            },
        )
        self.execute_query(sql, params)

    def _row_to_model(self, row: Dict[str, Any]) -> Submission:
        return Submission(
            id=row["id"],
            user_id=row["user_id"],
            author_name=row["author_name"],
            title=row["title"] or "",
            content=row["content"] or "",
            age_bracket=AgeBracket(row["age_bracket"]),
            is_published=bool(row["is_published"]),
            status=SubmissionStatus(row["status"]),
            needs_review=bool(row["needs_review"]),
            review_status=ReviewStatus(row["review_status"]),
            needs_manual_assessment=bool(row["needs_manual_assessment"]),
            last_assessed_at=self.from_db_timestamp(row["last_assessed_at"]),
            created_at=self.from_db_timestamp(row["created_at"]),
        )
