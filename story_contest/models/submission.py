from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional

from story_contest.models.enumerations import AgeBracket, ReviewStatus, SubmissionStatus


class Submission(BaseModel):
    """
    A story owned by a user. Publishing is decided by an external workflow;
    the core only reads `is_published` and writes back assessment status.
    """

    id: str
    user_id: str
    author_name: Optional[str] = Field(default=None, max_length=255)
    title: str = Field(default="", max_length=255)
    content: str = ""
    age_bracket: AgeBracket = AgeBracket.MIDDLE
    is_published: bool = False
    status: SubmissionStatus = SubmissionStatus.PENDING
    needs_review: bool = False
    review_status: ReviewStatus = ReviewStatus.NONE
    needs_manual_assessment: bool = False
    last_assessed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}

    @property
    def word_count(self) -> int:
        return len(self.content.split())


class EntryCreate(BaseModel):
    """Body of POST /api/v1/competitions/{id}/entries."""

    user_id: str = Field(..., min_length=1)
    submission_id: str = Field(..., min_length=1)
