"""Helpers for taking a test paper through the attempt lifecycle."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from mockexam.models.attempt import TestAttempt
from mockexam.models.user import User
from mockexam.services import submission


def take_paper(db: Session, user: User, test_paper_id: UUID, answers: Any, **kwargs: Any) -> TestAttempt:
    """Start an attempt and submit it straight away."""
    attempt = submission.start_attempt(db, user, test_paper_id)
    return submission.submit_attempt(db, user, test_paper_id, answers, attempt_id=attempt.id, **kwargs)
