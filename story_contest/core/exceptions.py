"""
Custom Exceptions - Story Contest Platform
story_contest/core/exceptions.py

Domain exceptions for the competition lifecycle and the assessment engine,
plus the repository exceptions raised by the data access layer.
"""


class ContestException(Exception):
    """Base exception for competition and assessment operations."""

    error_code = "CONTEST_ERROR"

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationException(ContestException):
    """Bad or missing input (empty text, non-owner submission, unpublished story)."""

    error_code = "VALIDATION_ERROR"


class NotFoundException(ContestException):
    """Competition, entry or submission does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID {entity_id} not found",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class PhaseViolationException(ContestException):
    """Operation attempted outside the phase it is valid in."""

    error_code = "PHASE_VIOLATION"

    def __init__(self, message: str, current_phase: str = None):
        self.current_phase = current_phase
        super().__init__(message, {"current_phase": current_phase})


class QuotaExceededException(ContestException):
    """User has used every entry allowed for the period."""

    error_code = "QUOTA_EXCEEDED"

    def __init__(self, used: int, cap: int):
        self.used = used
        self.cap = cap
        super().__init__(
            f"Monthly entry limit reached ({cap} max)",
            {"used": used, "cap": cap},
        )


class DuplicateSubmissionException(ContestException):
    """The submission is already entered in this competition."""

    error_code = "DUPLICATE_SUBMISSION"


class AssessmentFailureException(ContestException):
    """Scoring raised or timed out. Recovered through the fallback result."""

    error_code = "ASSESSMENT_FAILURE"


class RepositoryException(Exception):
    """Base exception for repository operations."""

    pass


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    def __init__(self, message: str = "Entity already exists"):
        self.message = message
        super().__init__(message)


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        self.message = message
        super().__init__(message)
