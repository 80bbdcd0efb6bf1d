"""Learner results: history and per-question review of completed attempts."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mockexam.models.attempt import Answer, TestAttempt
from mockexam.models.exam import Subject
from mockexam.models.test_paper import Question, TestPaper
from mockexam.models.user import User


def _summary(attempt: TestAttempt) -> dict:
    paper = attempt.test_paper
    subject = paper.subject
    return {
        "id": attempt.id,
        "test_paper_id": paper.id,
        "test_paper_title": paper.title,
        "subject_name": subject.name,
        "exam": {"name": subject.exam.name, "category": subject.exam.category},
        "total_marks": attempt.total_marks or 0.0,
        "obtained_marks": attempt.obtained_marks or 0.0,
        "percentage": attempt.percentage or 0.0,
        "rank": attempt.rank,
        "time_spent": attempt.time_spent or 0,
        "auto_submitted": attempt.auto_submitted,
        "submitted_at": attempt.submitted_at or attempt.started_at,
    }


def list_results(db: Session, user: User) -> list[dict]:
    """Completed attempts of the learner, newest first."""
    stmt = (
        select(TestAttempt)
        .where(TestAttempt.user_id == user.id, TestAttempt.is_completed.is_(True))
        .options(
            selectinload(TestAttempt.test_paper)
            .selectinload(TestPaper.subject)
            .selectinload(Subject.exam)
        )
        .order_by(TestAttempt.submitted_at.desc())
    )
    return [_summary(a) for a in db.execute(stmt).scalars()]


def get_result(db: Session, user: User, attempt_id: UUID) -> dict:
    """Owner-only review of a completed attempt."""
    stmt = (
        select(TestAttempt)
        .where(TestAttempt.id == attempt_id)
        .options(
            selectinload(TestAttempt.test_paper)
            .selectinload(TestPaper.subject)
            .selectinload(Subject.exam),
            selectinload(TestAttempt.answers)
            .selectinload(Answer.question)
            .selectinload(Question.options),
        )
    )
    attempt = db.execute(stmt).scalar_one_or_none()
    if attempt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test attempt not found")
    if attempt.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your attempt")
    if not attempt.is_completed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Attempt is still in progress")

    # Review follows paper order
    order = {q.id: i for i, q in enumerate(attempt.test_paper.questions)}
    answers = sorted(attempt.answers, key=lambda a: order.get(a.question_id, len(order)))

    questions = []
    for answer in answers:
        question = answer.question
        correct = next((o for o in question.options if o.is_correct), None)
        questions.append(
            {
                "id": question.id,
                "question_text": question.question_text,
                "selected_option_id": answer.selected_option_id,
                "correct_option_id": correct.id if correct else None,
                "is_correct": answer.is_correct,
                "marks_obtained": answer.marks_obtained,
                "marks": question.marks,
                "explanation": question.explanation,
                "options": [
                    {"id": o.id, "option_text": o.option_text, "is_correct": o.is_correct}
                    for o in question.options
                ],
            }
        )

    return {**_summary(attempt), "questions": questions}
