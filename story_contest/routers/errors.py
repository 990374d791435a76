"""
Error Responses - Story Contest Platform
story_contest/routers/errors.py

Shared ErrorResponse schema and the exception handlers registered in main.py.

    ValidationException          → 422
    NotFoundException            → 404
    PhaseViolationException      → 409
    DuplicateSubmissionException → 409
    QuotaExceededException       → 429
    RepositoryException          → 500
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from story_contest.core.exceptions import (
    AssessmentFailureException,
    ContestException,
    DuplicateSubmissionException,
    NotFoundException,
    PhaseViolationException,
    QuotaExceededException,
    RepositoryException,
    ValidationException,
)

logger = structlog.get_logger(__name__)


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


STATUS_BY_EXCEPTION = {
    ValidationException: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundException: status.HTTP_404_NOT_FOUND,
    PhaseViolationException: status.HTTP_409_CONFLICT,
    DuplicateSubmissionException: status.HTTP_409_CONFLICT,
    QuotaExceededException: status.HTTP_429_TOO_MANY_REQUESTS,
    AssessmentFailureException: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error(example_code: str, message: str, description: str) -> dict:
    return {
        "model": ErrorResponse,
        "description": description,
        "content": {
            "application/json": {
                "example": {
                    "error_code": example_code,
                    "message": message,
                    "details": None,
                    "timestamp": "2026-01-28T12:00:00Z",
                }
            }
        },
    }


NOT_FOUND = {404: _error("NOT_FOUND", "Competition with ID 42 not found", "Not found")}
CONFLICT = {409: _error("PHASE_VIOLATION", "Competition is not accepting submissions", "Conflict")}
TOO_MANY = {429: _error("QUOTA_EXCEEDED", "Monthly entry limit reached (3 max)", "Quota exceeded")}
INVALID = {422: _error("VALIDATION_ERROR", "Story text must not be empty", "Validation error")}
SERVER_ERROR = {500: _error("INTERNAL_SERVER_ERROR", "Unexpected server error", "Internal server error")}


def error_response(status_code: int, error_code: str, message: str, details: dict = None) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def contest_exception_handler(request: Request, exc: ContestException) -> JSONResponse:
    status_code = next(
        (code for cls, code in STATUS_BY_EXCEPTION.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.info(
        "request_rejected",
        path=request.url.path,
        error_code=exc.error_code,
        status_code=status_code,
    )
    return error_response(status_code, exc.error_code, exc.message, exc.details)


async def repository_exception_handler(request: Request, exc: RepositoryException) -> JSONResponse:
    logger.error("repository_error", path=request.url.path, error=str(exc))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR", "Unexpected server error"
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Request validation failed"
        )

    err = errors[0]
    error_type = err.get("type", "")
    if "json_invalid" in error_type:
        return error_response(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", "Malformed JSON request body")

    field = ".".join(str(part) for part in err.get("loc", []) if part != "body")
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        err.get("msg", "Invalid value") if not field else f"Invalid value for field '{field}'",
        {"field": field, "type": error_type} if field else None,
    )
