from pydantic import BaseModel, Field, model_validator
from datetime import datetime, timezone
from typing import Optional, List, Dict

from story_contest.models.enumerations import Phase


class Period(BaseModel):
    """
    A competition period: one calendar month of one year.
    """

    year: int = Field(..., ge=2000, le=9999, description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)")

    model_config = {"frozen": True}

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Period":
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        return cls(year=moment.year, month=moment.month)

    @classmethod
    def parse(cls, key: str) -> "Period":
        """Parse a "YYYY-MM" period key."""
        try:
            year, month = key.split("-")
            return cls(year=int(year), month=int(month))
        except ValueError as e:
            raise ValueError(f"Invalid period key '{key}', expected YYYY-MM") from e

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return datetime(self.year, self.month, 1).strftime("%B %Y")

    def next(self) -> "Period":
        if self.month == 12:
            return Period(year=self.year + 1, month=1)
        return Period(year=self.year, month=self.month + 1)


class CompetitionSchedule(BaseModel):
    """
    Ordered time boundaries of one competition.

    submission_end == judging_start and judging_end == results_date.
    """

    submission_start: datetime
    judging_start: datetime
    results_date: datetime
    archive_after: datetime

    @property
    def submission_end(self) -> datetime:
        return self.judging_start

    @property
    def judging_end(self) -> datetime:
        return self.results_date

    @model_validator(mode="after")
    def validate_order(self):
        """Boundaries must be strictly increasing."""
        if not (
            self.submission_start
            < self.judging_start
            < self.results_date
            < self.archive_after
        ):
            raise ValueError(
                "Schedule boundaries must satisfy "
                "submission_start < judging_start < results_date < archive_after"
            )
        return self


class Winner(BaseModel):
    """Snapshot of a winning entry taken at finalize time."""

    position: int = Field(..., ge=1, le=10)
    entry_id: str
    submission_id: str
    user_id: str
    author_name: Optional[str] = None
    title: Optional[str] = None
    score: float = Field(..., ge=0, le=100)


class Competition(BaseModel):
    """
    Competition record returned by the lifecycle manager.
    """

    id: str
    period: Period
    phase: Phase = Phase.SUBMISSION
    schedule: CompetitionSchedule
    judging_criteria: Dict[str, float]
    is_active: bool = True
    judging_completed: bool = False
    transitioning_to: Optional[Phase] = None
    transition_started_at: Optional[datetime] = None
    winners: List[Winner] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}

    @property
    def accepts_entries(self) -> bool:
        return self.phase == Phase.SUBMISSION and self.is_active and self.transitioning_to is None


class Entry(BaseModel):
    """
    A submission registered against a specific competition.
    """

    id: str
    competition_id: str
    user_id: str
    submission_id: str
    submitted_at: datetime
    phase_at_submission: Phase = Phase.SUBMISSION
    score: Optional[float] = Field(default=None, ge=0, le=100)
    rank: Optional[int] = Field(default=None, ge=1)
    excluded: bool = False
    needs_manual_assessment: bool = False

    model_config = {"from_attributes": True}


class QuotaDecision(BaseModel):
    """Outcome of SubmissionQuotaGuard.can_submit()."""

    allowed: bool
    reason: Optional[str] = None
    used: int = 0
    cap: int
    phase: Optional[Phase] = None


class FinalizeResult(BaseModel):
    """Outcome of RankingAndWinnerSelector.finalize()."""

    competition_id: str
    winners: List[Winner]
    total_participants: int
    total_submissions: int
    ranked_entries: int


class CompetitionStats(BaseModel):
    """Entry counts for a competition."""

    competition_id: str
    period: str
    phase: Phase
    total_entries: int
    unique_participants: int
    scored_entries: int
    excluded_entries: int
    manual_assessment_entries: int
