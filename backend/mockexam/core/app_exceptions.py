"""Error types raised by services and turned into the API error envelope.

AppError is rendered as-is by the HTTP exception handler. SubmissionError and
its subclasses carry a category that is logged, then collapsed into one
generic AppError for learners.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import HTTPException, status

from mockexam.core.logging import get_logger

logger = get_logger(__name__)

SUBMISSION_FAILED_MESSAGE = "Submission failed, please retry."


class AppError(HTTPException):
    """HTTPException with a machine-readable `code` for the envelope."""

    def __init__(self, status_code: int, code: str, message: str, details: Any | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


# ============================================================================
# Submission errors
# ============================================================================


class SubmissionError(Exception):
    """Base class for errors raised while starting, saving or submitting an attempt.

    The category is logged; learners only ever see SUBMISSION_FAILED_MESSAGE.
    """

    category = "submission_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(SubmissionError):
    """Test paper or attempt does not exist."""

    category = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(SubmissionError):
    """Actor does not own the attempt or is not enrolled in the exam."""

    category = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(SubmissionError):
    """Test paper inactive, attempt already completed, or attempts exhausted."""

    category = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


class MalformedInputError(SubmissionError):
    """Payload is not a valid question -> option mapping."""

    category = "malformed_input"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


def to_app_error(exc: SubmissionError) -> AppError:
    """Translate a submission error into the generic learner-facing AppError."""
    return AppError(
        status_code=exc.status_code,
        code="SUBMISSION_FAILED",
        message=SUBMISSION_FAILED_MESSAGE,
    )


@contextmanager
def learner_errors(action: str, **ids: Any) -> Iterator[None]:
    """Log a SubmissionError's category and re-raise it as the generic AppError."""
    try:
        yield
    except SubmissionError as exc:
        context = {key: str(value) for key, value in {**ids, **exc.context}.items()}
        logger.warning(
            "Submission rejected",
            extra={
                "event": f"{action}_rejected",
                "category": exc.category,
                "reason": exc.message,
                **context,
            },
        )
        raise to_app_error(exc) from exc
