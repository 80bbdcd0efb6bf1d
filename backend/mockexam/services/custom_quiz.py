"""Custom quizzes: learner-defined practice sets over subjects and topics."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mockexam.core.logging import get_logger
from mockexam.models.custom_quiz import CustomQuiz
from mockexam.models.exam import Exam, Subject
from mockexam.models.user import User
from mockexam.schemas.custom_quiz import CustomQuizCreate

logger = get_logger(__name__)


def list_quiz_subjects(db: Session) -> list[dict]:
    """Subjects of active exams with their topics, by name."""
    stmt = (
        select(Subject)
        .join(Exam, Subject.exam_id == Exam.id)
        .where(Exam.is_active.is_(True))
        .options(selectinload(Subject.topics), selectinload(Subject.exam))
        .order_by(Subject.name)
    )
    return [
        {
            "id": s.id,
            "name": s.name,
            "exam_name": s.exam.name,
            "exam_category": s.exam.category,
            "topics": [{"id": t.id, "name": t.name} for t in s.topics],
        }
        for s in db.execute(stmt).scalars()
    ]


def list_custom_quizzes(db: Session, user: User) -> list[CustomQuiz]:
    stmt = (
        select(CustomQuiz)
        .where(CustomQuiz.user_id == user.id)
        .order_by(CustomQuiz.created_at.desc())
    )
    return list(db.execute(stmt).scalars())


def create_custom_quiz(db: Session, user: User, data: CustomQuizCreate) -> CustomQuiz:
    quiz = CustomQuiz(
        user_id=user.id,
        title=data.title,
        description=data.description,
        question_count=data.question_count,
        duration=data.duration,
        subject_ids=[str(s) for s in data.subject_ids],
        topic_ids=[str(t) for t in data.topic_ids],
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info(
        "Custom quiz created",
        extra={"event": "custom_quiz_created", "quiz_id": str(quiz.id), "user_id": str(user.id)},
    )
    return quiz


def delete_custom_quiz(db: Session, user: User, quiz_id: UUID) -> None:
    """Delete one of the learner's quizzes; someone else's quiz reads as not found."""
    quiz = db.execute(
        select(CustomQuiz).where(CustomQuiz.id == quiz_id, CustomQuiz.user_id == user.id)
    ).scalar_one_or_none()
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    db.delete(quiz)
    db.commit()
