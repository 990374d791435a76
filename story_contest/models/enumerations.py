from enum import Enum


class Phase(str, Enum):
    SUBMISSION = "submission"
    JUDGING = "judging"
    RESULTS = "results"
    ARCHIVED = "archived"

    @property
    def next_phase(self) -> "Phase":
        order = list(Phase)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else self

    @property
    def is_terminal(self) -> bool:
        return self is Phase.ARCHIVED


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return list(RiskTier).index(self)


class AILikelihood(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Disposition(str, Enum):
    ACCEPT = "accept"    # Submission status "completed"
    REVIEW = "review"    # Submission status "review"
    FLAG = "flag"        # Submission status "flagged", mentor review pending


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REVIEW = "review"
    FLAGGED = "flagged"


class ReviewStatus(str, Enum):
    NONE = "none"
    PENDING_MENTOR_REVIEW = "pending_mentor_review"


class AgeBracket(str, Enum):
    EARLY = "6-8"
    MIDDLE = "9-12"
    TEEN = "13+"

    @classmethod
    def from_age(cls, age: int) -> "AgeBracket":
        if age <= 8:
            return cls.EARLY
        if age <= 12:
            return cls.MIDDLE
        return cls.TEEN


class Genre(str, Enum):
    CREATIVE = "creative"
    FANTASY = "fantasy"
    ADVENTURE = "adventure"
    MYSTERY = "mystery"
