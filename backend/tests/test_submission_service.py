"""Tests for the attempt lifecycle: start, progress, submit, expiry."""

from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from mockexam.core.app_exceptions import (
    ForbiddenError,
    InvalidStateError,
    MalformedInputError,
    NotFoundError,
)
from mockexam.core.config import settings
from mockexam.models.attempt import Answer, TestAttempt
from mockexam.scoring import negative_marking
from mockexam.services import submission
from mockexam.services.exam_gate import build_paper_key
from tests.helpers.attempts import take_paper
from tests.helpers.seed import create_paper, create_test_student, enroll


def answers_for(db: Session, attempt: TestAttempt) -> list[Answer]:
    return list(db.execute(select(Answer).where(Answer.attempt_id == attempt.id)).scalars())


# ============================================================================
# Submit
# ============================================================================


def test_submit_scores_and_completes(db, student, enrolled_paper):
    attempt = take_paper(
        db, student, enrolled_paper.id, enrolled_paper.answers([True, False]), time_spent=300
    )

    assert attempt.is_completed is True
    assert attempt.total_marks == 4
    assert attempt.obtained_marks == 2
    assert attempt.percentage == 50.0
    assert attempt.rank == 1
    assert attempt.time_spent == 300
    assert attempt.submitted_at is not None
    assert attempt.auto_submitted is False

    answers = {a.question_id: a for a in answers_for(db, attempt)}
    assert answers[enrolled_paper.questions[0].id].is_correct is True
    assert answers[enrolled_paper.questions[0].id].marks_obtained == 2
    assert answers[enrolled_paper.questions[1].id].is_correct is False
    assert answers[enrolled_paper.questions[1].id].selected_option_id == enrolled_paper.wrong_option(1).id


def test_second_submit_is_rejected_and_scores_unchanged(db, student, enrolled_paper):
    attempt = take_paper(db, student, enrolled_paper.id, enrolled_paper.answers([True, False]))

    with pytest.raises(InvalidStateError):
        submission.submit_attempt(
            db, student, enrolled_paper.id, enrolled_paper.answers([True, True]), attempt_id=attempt.id
        )

    db.refresh(attempt)
    assert attempt.percentage == 50.0
    assert attempt.obtained_marks == 2
    assert len(answers_for(db, attempt)) == 2


def completed_attempts(db: Session, user_id) -> list[TestAttempt]:
    stmt = select(TestAttempt).where(TestAttempt.user_id == user_id, TestAttempt.is_completed.is_(True))
    return list(db.execute(stmt).scalars())


def test_submit_without_started_attempt_is_rejected(db, student, enrolled_paper):
    with pytest.raises(InvalidStateError):
        submission.submit_attempt(db, student, enrolled_paper.id, enrolled_paper.answers([True, True]))
    assert db.execute(select(TestAttempt)).first() is None


def test_repeat_submit_without_attempt_id_does_not_rescore(db, student, enrolled_paper):
    submission.start_attempt(db, student, enrolled_paper.id)
    first = submission.submit_attempt(db, student, enrolled_paper.id, enrolled_paper.answers([True, False]))

    with pytest.raises(InvalidStateError):
        submission.submit_attempt(db, student, enrolled_paper.id, enrolled_paper.answers([True, True]))

    (only,) = completed_attempts(db, student.id)
    assert only.id == first.id
    assert only.percentage == 50.0
    assert only.rank == 1


def test_conditional_update_rejects_completed_attempt(db, student, enrolled_paper):
    attempt = take_paper(db, student, enrolled_paper.id, {})
    key = build_paper_key(enrolled_paper.paper)

    with pytest.raises(InvalidStateError):
        submission._complete_attempt(
            db, attempt.id, enrolled_paper.id, key, {}, None, False, submission.default_policy()
        )


def test_submit_uses_in_progress_attempt(db, student, enrolled_paper):
    started = submission.start_attempt(db, student, enrolled_paper.id)
    attempt = submission.submit_attempt(db, student, enrolled_paper.id, enrolled_paper.answers([True, True]))

    assert attempt.id == started.id
    assert attempt.percentage == 100.0


def test_rank_reflects_prior_attempts(db, student, enrolled_paper):
    other = create_test_student(db)
    enroll(db, other, enrolled_paper.exam)
    take_paper(db, other, enrolled_paper.id, enrolled_paper.answers([True, True]))

    mine = take_paper(db, student, enrolled_paper.id, enrolled_paper.answers([True, False]))
    assert mine.rank == 2

    third = create_test_student(db)
    enroll(db, third, enrolled_paper.exam)
    tied = take_paper(db, third, enrolled_paper.id, enrolled_paper.answers([False, True]))
    # Equal percentage: the earlier submission keeps the better rank
    assert tied.rank == 3


def test_submit_requires_enrollment(db, student, history_paper):
    with pytest.raises(ForbiddenError):
        submission.submit_attempt(db, student, history_paper.id, history_paper.answers([True, True]))
    assert db.execute(select(TestAttempt)).first() is None


def test_submit_rechecks_enrollment_after_start(db, student, history_paper):
    enrollment = enroll(db, student, history_paper.exam)
    attempt = submission.start_attempt(db, student, history_paper.id)
    enrollment.is_active = False
    db.flush()

    with pytest.raises(ForbiddenError):
        submission.submit_attempt(db, student, history_paper.id, {}, attempt_id=attempt.id)
    db.refresh(attempt)
    assert attempt.is_completed is False


def test_submit_to_inactive_paper_is_rejected(db, student, enrolled_paper):
    enrolled_paper.paper.is_active = False
    db.flush()
    with pytest.raises(InvalidStateError):
        submission.submit_attempt(db, student, enrolled_paper.id, {})


def test_submit_to_missing_paper(db, student):
    with pytest.raises(NotFoundError):
        submission.submit_attempt(db, student, uuid4(), {})


def test_submit_someone_elses_attempt(db, student, enrolled_paper):
    other = create_test_student(db)
    enroll(db, other, enrolled_paper.exam)
    theirs = submission.start_attempt(db, other, enrolled_paper.id)

    with pytest.raises(ForbiddenError):
        submission.submit_attempt(db, student, enrolled_paper.id, {}, attempt_id=theirs.id)


def test_submit_unknown_attempt(db, student, enrolled_paper):
    with pytest.raises(NotFoundError):
        submission.submit_attempt(db, student, enrolled_paper.id, {}, attempt_id=uuid4())


def test_submit_with_negative_marking_policy(db, student, enrolled_paper):
    attempt = take_paper(
        db, student, enrolled_paper.id, enrolled_paper.answers([True, False]), policy=negative_marking(0.5)
    )
    assert attempt.obtained_marks == 1.0
    assert attempt.percentage == 25.0


def test_advertised_total_does_not_change_the_denominator(db, student):
    fixture = create_paper(
        db,
        questions=[("Capital of France?", 2, ["Paris", "Rome"], 0), ("Capital of Japan?", 2, ["Kyoto", "Tokyo"], 1)],
        total_marks=1,
    )
    enroll(db, student, fixture.exam)

    attempt = take_paper(db, student, fixture.id, fixture.answers([True, True]))

    assert attempt.total_marks == 4
    assert attempt.obtained_marks == 4
    assert attempt.percentage == 100.0


def test_max_attempts_enforced(db, student):
    fixture = create_paper(db, max_attempts=1)
    enroll(db, student, fixture.exam)
    take_paper(db, student, fixture.id, {})

    with pytest.raises(InvalidStateError):
        submission.start_attempt(db, student, fixture.id)
    with pytest.raises(InvalidStateError):
        submission.submit_attempt(db, student, fixture.id, {})


# ============================================================================
# Input validation
# ============================================================================


def test_unknown_ids_degrade_in_lenient_mode(db, student, enrolled_paper):
    answers = enrolled_paper.answers([True, True])
    answers[str(uuid4())] = str(uuid4())
    answers["not-a-uuid"] = "whatever"
    answers[str(enrolled_paper.questions[1].id)] = "garbage-option"

    attempt = take_paper(db, student, enrolled_paper.id, answers)

    assert attempt.obtained_marks == 2
    stored = {a.question_id: a for a in answers_for(db, attempt)}
    assert len(stored) == 2
    assert stored[enrolled_paper.questions[1].id].selected_option_id is None
    assert stored[enrolled_paper.questions[1].id].is_correct is False


def test_strict_mode_rejects_unknown_question(enrolled_paper):
    key = build_paper_key(enrolled_paper.paper)
    with pytest.raises(MalformedInputError):
        submission.parse_answer_map(key, {str(uuid4()): None}, strict=True)
    with pytest.raises(MalformedInputError):
        submission.parse_answer_map(
            key, {str(enrolled_paper.questions[0].id): "nope"}, strict=True
        )


@pytest.mark.parametrize("payload", [["a", "b"], "answers", {"q": 5}, {1: "x"}])
def test_malformed_payload(enrolled_paper, payload):
    key = build_paper_key(enrolled_paper.paper)
    with pytest.raises(MalformedInputError):
        submission.parse_answer_map(key, payload)


def test_too_many_answers(enrolled_paper):
    key = build_paper_key(enrolled_paper.paper)
    payload = {str(uuid4()): None for _ in range(settings.SUBMISSION_MAX_ANSWERS + 1)}
    with pytest.raises(MalformedInputError):
        submission.parse_answer_map(key, payload)


def test_malformed_submit_writes_nothing(db, student, enrolled_paper):
    with pytest.raises(MalformedInputError):
        submission.submit_attempt(db, student, enrolled_paper.id, ["not", "a", "map"])
    assert db.execute(select(TestAttempt)).first() is None


# ============================================================================
# Start / progress / expiry
# ============================================================================


def test_start_returns_same_in_progress_attempt(db, student, enrolled_paper):
    first = submission.start_attempt(db, student, enrolled_paper.id)
    second = submission.start_attempt(db, student, enrolled_paper.id)

    assert first.id == second.id
    assert first.is_completed is False
    expires = submission.as_utc(first.expires_at)
    started = submission.as_utc(first.started_at)
    assert expires - started == timedelta(minutes=enrolled_paper.paper.duration)


def test_start_requires_enrollment(db, student, history_paper):
    with pytest.raises(ForbiddenError):
        submission.start_attempt(db, student, history_paper.id)


def test_save_progress_stores_draft(db, student, enrolled_paper):
    attempt = submission.start_attempt(db, student, enrolled_paper.id)
    answers = enrolled_paper.answers([True, False])

    saved = submission.save_progress(db, student, enrolled_paper.id, attempt.id, answers)

    assert saved.draft_answers == answers
    assert saved.is_completed is False


def test_save_progress_on_completed_attempt(db, student, enrolled_paper):
    attempt = take_paper(db, student, enrolled_paper.id, {})
    with pytest.raises(InvalidStateError):
        submission.save_progress(db, student, enrolled_paper.id, attempt.id, {})


def _backdate(db: Session, attempt: TestAttempt, minutes: int) -> None:
    attempt.started_at = submission.as_utc(attempt.started_at) - timedelta(minutes=minutes)
    attempt.expires_at = submission.as_utc(attempt.expires_at) - timedelta(minutes=minutes)
    db.flush()


def test_expire_overdue_attempts_scores_draft(db, student, enrolled_paper):
    attempt = submission.start_attempt(db, student, enrolled_paper.id)
    submission.save_progress(db, student, enrolled_paper.id, attempt.id, enrolled_paper.answers([True, True]))
    _backdate(db, attempt, enrolled_paper.paper.duration + 5)

    assert submission.expire_overdue_attempts(db) == 1

    db.refresh(attempt)
    assert attempt.is_completed is True
    assert attempt.auto_submitted is True
    assert attempt.percentage == 100.0
    assert attempt.time_spent == enrolled_paper.paper.duration * 60
    assert attempt.draft_answers is None
    assert submission.expire_overdue_attempts(db) == 0


def test_expiry_respects_grace_period(db, student, enrolled_paper):
    attempt = submission.start_attempt(db, student, enrolled_paper.id)
    # Past the duration but still inside the grace window
    _backdate(db, attempt, enrolled_paper.paper.duration)

    assert submission.expire_overdue_attempts(db) == 0
    db.refresh(attempt)
    assert attempt.is_completed is False


def test_late_submit_is_auto_submitted_with_draft(db, student, enrolled_paper):
    attempt = submission.start_attempt(db, student, enrolled_paper.id)
    submission.save_progress(db, student, enrolled_paper.id, attempt.id, enrolled_paper.answers([True, False]))
    _backdate(db, attempt, enrolled_paper.paper.duration + 10)

    with pytest.raises(InvalidStateError):
        submission.submit_attempt(
            db, student, enrolled_paper.id, enrolled_paper.answers([True, True]), attempt_id=attempt.id
        )

    db.refresh(attempt)
    assert attempt.is_completed is True
    assert attempt.auto_submitted is True
    assert attempt.percentage == 50.0


def test_start_lazily_expires_overdue_attempt(db, student, enrolled_paper):
    old = submission.start_attempt(db, student, enrolled_paper.id)
    _backdate(db, old, enrolled_paper.paper.duration + 10)

    fresh = submission.start_attempt(db, student, enrolled_paper.id)

    assert fresh.id != old.id
    db.refresh(old)
    assert old.is_completed is True


# ============================================================================
# Transient storage failures
# ============================================================================


def test_transient_errors_are_retried(db, student, enrolled_paper, monkeypatch):
    monkeypatch.setattr(settings, "SUBMISSION_RETRY_BACKOFF_SECONDS", 0.0)
    real = submission._complete_attempt
    calls = {"n": 0}

    def flaky(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("UPDATE test_attempts", {}, Exception("connection lost"))
        return real(*args, **kwargs)

    with patch.object(submission, "_complete_attempt", side_effect=flaky):
        attempt = take_paper(db, student, enrolled_paper.id, enrolled_paper.answers([True, True]))

    assert calls["n"] == 2
    assert attempt.is_completed is True
    assert attempt.percentage == 100.0


def test_retries_are_bounded(db, student, enrolled_paper, monkeypatch):
    monkeypatch.setattr(settings, "SUBMISSION_RETRY_BACKOFF_SECONDS", 0.0)
    monkeypatch.setattr(settings, "SUBMISSION_DB_RETRIES", 2)
    error = OperationalError("UPDATE test_attempts", {}, Exception("connection lost"))

    with patch.object(submission, "_complete_attempt", side_effect=error) as mocked:
        with pytest.raises(OperationalError):
            take_paper(db, student, enrolled_paper.id, {})

    assert mocked.call_count == 3
