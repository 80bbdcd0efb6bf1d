"""Attempt lifecycle: start, save progress, submit and duration expiry.

Every completion (explicit submit or expiry) goes through ``_complete_attempt``,
which scores with the pure engine and persists the aggregates and Answer rows
in one transaction guarded by ``is_completed = false``.
"""

import time
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from mockexam.core.app_exceptions import (
    ForbiddenError,
    InvalidStateError,
    MalformedInputError,
    NotFoundError,
)
from mockexam.core.config import settings
from mockexam.core.logging import get_logger
from mockexam.models.attempt import Answer, TestAttempt
from mockexam.models.test_paper import TestPaper
from mockexam.models.user import User
from mockexam.scoring import (
    PaperKey,
    ScoreSummary,
    ScoringPolicy,
    all_or_nothing,
    negative_marking,
    score_submission,
)
from mockexam.scoring.ranker import as_utc
from mockexam.services.exam_gate import build_paper_key, check_access, load_paper

logger = get_logger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_policy() -> ScoringPolicy:
    if settings.NEGATIVE_MARKING_FRACTION > 0:
        return negative_marking(settings.NEGATIVE_MARKING_FRACTION)
    return all_or_nothing


# ============================================================================
# Input validation
# ============================================================================


def parse_answer_map(
    paper_key: PaperKey,
    raw: Any,
    strict: bool | None = None,
) -> dict[UUID, Any]:
    """
    Validate a question -> option mapping and normalize ids.

    Lenient mode skips keys that are not question ids of this paper and keeps
    option values that are not UUIDs as-is (they grade as incorrect). Strict
    mode rejects both.

    Raises:
        MalformedInputError: If the payload is not a mapping of strings to strings/null
    """
    if strict is None:
        strict = settings.SUBMISSION_STRICT_VALIDATION
    if not isinstance(raw, Mapping):
        raise MalformedInputError("Answers must be a mapping of question id to option id")
    if len(raw) > settings.SUBMISSION_MAX_ANSWERS:
        raise MalformedInputError(
            f"Too many answers: {len(raw)} > {settings.SUBMISSION_MAX_ANSWERS}"
        )

    parsed: dict[UUID, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, (str, UUID)) or (
            value is not None and not isinstance(value, (str, UUID))
        ):
            raise MalformedInputError("Answer keys and values must be strings or null")

        try:
            question_id = key if isinstance(key, UUID) else UUID(key)
        except ValueError:
            if strict:
                raise MalformedInputError(f"Invalid question id: {key!r}") from None
            continue
        if paper_key.question(question_id) is None:
            if strict:
                raise MalformedInputError(f"Unknown question id: {key}")
            continue

        if value is None or isinstance(value, UUID):
            parsed[question_id] = value
            continue
        try:
            parsed[question_id] = UUID(value)
        except ValueError:
            if strict:
                raise MalformedInputError(f"Invalid option id: {value!r}") from None
            parsed[question_id] = value
    return parsed


def _draft_from(answers: Mapping[UUID, Any]) -> dict[str, str | None]:
    return {str(q): (str(o) if o is not None else None) for q, o in answers.items()}


# ============================================================================
# Attempt lookup
# ============================================================================


def get_owned_attempt(db: Session, user: User, attempt_id: UUID, test_paper_id: UUID) -> TestAttempt:
    attempt = db.get(TestAttempt, attempt_id)
    if attempt is None or attempt.test_paper_id != test_paper_id:
        raise NotFoundError("Attempt not found", attempt_id=attempt_id)
    if attempt.user_id != user.id:
        raise ForbiddenError("Attempt belongs to another learner", attempt_id=attempt_id)
    return attempt


def get_in_progress_attempt(db: Session, user_id: UUID, test_paper_id: UUID) -> TestAttempt | None:
    stmt = (
        select(TestAttempt)
        .where(
            TestAttempt.user_id == user_id,
            TestAttempt.test_paper_id == test_paper_id,
            TestAttempt.is_completed.is_(False),
        )
        .order_by(TestAttempt.started_at.desc())
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()


def is_overdue(attempt: TestAttempt, now: datetime | None = None) -> bool:
    expires_at = as_utc(attempt.expires_at)
    if attempt.is_completed or expires_at is None:
        return False
    grace = timedelta(seconds=settings.AUTO_SUBMIT_GRACE_SECONDS)
    return (now or utcnow()) > expires_at + grace


def _create_attempt(db: Session, user: User, paper: TestPaper) -> TestAttempt:
    exam = paper.subject.exam
    if exam.max_attempts is not None:
        used = db.execute(
            select(func.count(TestAttempt.id)).where(
                TestAttempt.user_id == user.id,
                TestAttempt.test_paper_id == paper.id,
                TestAttempt.is_completed.is_(True),
            )
        ).scalar_one()
        if used >= exam.max_attempts:
            raise InvalidStateError(
                "Maximum attempts reached", test_paper_id=paper.id, user_id=user.id
            )

    now = utcnow()
    attempt = TestAttempt(
        user_id=user.id,
        test_paper_id=paper.id,
        started_at=now,
        expires_at=now + timedelta(minutes=paper.duration),
        is_completed=False,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)

    logger.info(
        "Attempt started",
        extra={
            "event": "attempt_started",
            "attempt_id": str(attempt.id),
            "test_paper_id": str(paper.id),
            "user_id": str(user.id),
        },
    )
    return attempt


# ============================================================================
# Completion
# ============================================================================


def _with_retries(db: Session, operation: Callable[[], T]) -> T:
    """Run a unit of work, retrying transient storage failures with backoff."""
    max_tries = settings.SUBMISSION_DB_RETRIES + 1
    for attempt_no in range(1, max_tries + 1):
        try:
            return operation()
        except OperationalError as e:
            db.rollback()
            if attempt_no >= max_tries:
                logger.error(
                    "Submission persistence failed",
                    extra={"event": "submission_db_failed", "tries": attempt_no, "error": str(e)},
                )
                raise
            delay = settings.SUBMISSION_RETRY_BACKOFF_SECONDS * (2 ** (attempt_no - 1))
            logger.warning(
                "Transient database error, retrying",
                extra={
                    "event": "submission_db_retry",
                    "try": attempt_no,
                    "delay_seconds": delay,
                    "error": str(e),
                },
            )
            time.sleep(delay)
    raise RuntimeError("unreachable")


def _complete_attempt(
    db: Session,
    attempt_id: UUID,
    test_paper_id: UUID,
    paper_key: PaperKey,
    answers: Mapping[UUID, Any],
    time_spent: int | None,
    auto_submitted: bool,
    policy: ScoringPolicy,
) -> ScoreSummary:
    """Score and persist in a single transaction; rejects an already completed attempt."""
    prior = [
        pct
        for (pct,) in db.execute(
            select(TestAttempt.percentage).where(
                TestAttempt.test_paper_id == test_paper_id,
                TestAttempt.is_completed.is_(True),
                TestAttempt.id != attempt_id,
            )
        )
        if pct is not None
    ]
    summary = score_submission(paper_key, answers, prior, policy)

    result = db.execute(
        update(TestAttempt)
        .where(TestAttempt.id == attempt_id, TestAttempt.is_completed.is_(False))
        .values(
            is_completed=True,
            auto_submitted=auto_submitted,
            submitted_at=utcnow(),
            time_spent=time_spent,
            total_marks=summary.total_marks,
            obtained_marks=summary.obtained_marks,
            percentage=summary.percentage,
            rank=summary.rank,
            draft_answers=None,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidStateError("Attempt already completed", attempt_id=attempt_id)

    db.add_all(
        Answer(
            attempt_id=attempt_id,
            question_id=grade.question_id,
            selected_option_id=(
                grade.selected_option_id if isinstance(grade.selected_option_id, UUID) else None
            ),
            is_correct=grade.is_correct,
            marks_obtained=grade.marks_obtained,
        )
        for grade in summary.grades
    )
    db.commit()
    return summary


def _finalize(
    db: Session,
    attempt: TestAttempt,
    paper_key: PaperKey,
    answers: Mapping[UUID, Any],
    time_spent: int | None,
    auto_submitted: bool,
    policy: ScoringPolicy | None,
) -> TestAttempt:
    attempt_id, test_paper_id = attempt.id, attempt.test_paper_id
    summary = _with_retries(
        db,
        lambda: _complete_attempt(
            db,
            attempt_id,
            test_paper_id,
            paper_key,
            answers,
            time_spent,
            auto_submitted,
            policy or default_policy(),
        ),
    )
    db.refresh(attempt)

    logger.info(
        "Attempt scored",
        extra={
            "event": "attempt_auto_submitted" if auto_submitted else "attempt_submitted",
            "attempt_id": str(attempt_id),
            "test_paper_id": str(test_paper_id),
            "user_id": str(attempt.user_id),
            "obtained_marks": summary.obtained_marks,
            "total_marks": summary.total_marks,
            "percentage": summary.percentage,
            "rank": summary.rank,
        },
    )
    return attempt


def _expire_attempt(db: Session, attempt: TestAttempt, paper_key: PaperKey) -> TestAttempt:
    answers = parse_answer_map(paper_key, attempt.draft_answers or {}, strict=False)
    started_at = as_utc(attempt.started_at)
    expires_at = as_utc(attempt.expires_at)
    time_spent = int((expires_at - started_at).total_seconds()) if started_at and expires_at else None
    return _finalize(db, attempt, paper_key, answers, time_spent, True, None)


# ============================================================================
# Public operations
# ============================================================================


def expire_overdue_attempts(
    db: Session,
    now: datetime | None = None,
    test_paper_id: UUID | None = None,
    user_id: UUID | None = None,
) -> int:
    """
    Auto-submit in-progress attempts whose duration plus grace has elapsed.

    Saved draft answers are scored through the same path as an explicit submit.

    Returns:
        Number of attempts completed by this pass
    """
    now = now or utcnow()
    cutoff = now - timedelta(seconds=settings.AUTO_SUBMIT_GRACE_SECONDS)
    stmt = select(TestAttempt).where(
        TestAttempt.is_completed.is_(False),
        TestAttempt.expires_at.is_not(None),
        TestAttempt.expires_at < cutoff,
    )
    if test_paper_id is not None:
        stmt = stmt.where(TestAttempt.test_paper_id == test_paper_id)
    if user_id is not None:
        stmt = stmt.where(TestAttempt.user_id == user_id)
    overdue = list(db.execute(stmt).scalars())

    keys: dict[UUID, PaperKey] = {}
    expired = 0
    for attempt in overdue:
        if attempt.test_paper_id not in keys:
            keys[attempt.test_paper_id] = build_paper_key(load_paper(db, attempt.test_paper_id))
        try:
            _expire_attempt(db, attempt, keys[attempt.test_paper_id])
        except InvalidStateError:
            # Submitted concurrently
            continue
        expired += 1

    if expired:
        logger.info(
            "Overdue attempts auto-submitted",
            extra={"event": "attempts_expired", "count": expired},
        )
    return expired


def start_attempt(db: Session, user: User, test_paper_id: UUID) -> TestAttempt:
    """Return the learner's in-progress attempt for the paper, creating one if needed."""
    paper = load_paper(db, test_paper_id)
    check_access(db, user, paper)
    expire_overdue_attempts(db, test_paper_id=paper.id, user_id=user.id)

    attempt = get_in_progress_attempt(db, user.id, paper.id)
    if attempt is not None:
        return attempt
    return _create_attempt(db, user, paper)


def save_progress(
    db: Session,
    user: User,
    test_paper_id: UUID,
    attempt_id: UUID,
    answers: Any,
) -> TestAttempt:
    """Store the in-progress answer map as a draft on the attempt."""
    paper = load_paper(db, test_paper_id)
    check_access(db, user, paper)
    attempt = get_owned_attempt(db, user, attempt_id, paper.id)
    if attempt.is_completed:
        raise InvalidStateError("Attempt already completed", attempt_id=attempt_id)

    paper_key = build_paper_key(paper)
    if is_overdue(attempt):
        _expire_attempt(db, attempt, paper_key)
        raise InvalidStateError("Attempt time is over", attempt_id=attempt_id)

    parsed = parse_answer_map(paper_key, answers)
    attempt.draft_answers = _draft_from(parsed)
    db.commit()
    db.refresh(attempt)
    return attempt


def submit_attempt(
    db: Session,
    user: User,
    test_paper_id: UUID,
    answers: Any,
    attempt_id: UUID | None = None,
    time_spent: int | None = None,
    policy: ScoringPolicy | None = None,
) -> TestAttempt:
    """
    Score and complete an attempt.

    Enrollment and paper state are re-checked and the payload is validated
    before anything is written. Without ``attempt_id`` the learner's
    in-progress attempt is used; with none in progress (never started, or
    already completed) the submission is rejected.

    Raises:
        NotFoundError, ForbiddenError, InvalidStateError, MalformedInputError
    """
    paper = load_paper(db, test_paper_id)
    check_access(db, user, paper)
    paper_key = build_paper_key(paper)
    parsed = parse_answer_map(paper_key, answers)

    if attempt_id is not None:
        attempt = get_owned_attempt(db, user, attempt_id, paper.id)
    else:
        attempt = get_in_progress_attempt(db, user.id, paper.id)
        # Attempts are only created by start_attempt
        if attempt is None:
            raise InvalidStateError("No attempt in progress", test_paper_id=paper.id, user_id=user.id)

    if attempt.is_completed:
        raise InvalidStateError("Attempt already completed", attempt_id=attempt.id)
    if is_overdue(attempt):
        _expire_attempt(db, attempt, paper_key)
        raise InvalidStateError("Attempt time is over", attempt_id=attempt.id)

    if time_spent is None:
        started_at = as_utc(attempt.started_at)
        time_spent = max(0, int((utcnow() - started_at).total_seconds())) if started_at else None

    return _finalize(db, attempt, paper_key, parsed, time_spent, False, policy)
