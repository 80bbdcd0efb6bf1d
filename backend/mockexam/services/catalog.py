"""Exam catalog: categories, papers by category, enrollment."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from mockexam.core.logging import get_logger
from mockexam.models.exam import Enrollment, Exam, ExamCategory, Subject
from mockexam.models.test_paper import TestPaper
from mockexam.models.user import User

logger = get_logger(__name__)


def list_categories(db: Session) -> list[dict]:
    """Every category with its number of active exams (zero included)."""
    counts = dict(
        db.execute(
            select(Exam.category, func.count(Exam.id))
            .where(Exam.is_active.is_(True))
            .group_by(Exam.category)
        ).all()
    )
    return [{"category": c, "exam_count": counts.get(c.value, 0)} for c in ExamCategory]


def papers_in_category(db: Session, category: str) -> list[TestPaper]:
    """Active test papers whose exam belongs to the category, newest first."""
    try:
        cat = ExamCategory(category.upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown category: {category}"
        ) from None

    stmt = (
        select(TestPaper)
        .join(Subject, TestPaper.subject_id == Subject.id)
        .join(Exam, Subject.exam_id == Exam.id)
        .where(
            Exam.category == cat.value,
            Exam.is_active.is_(True),
            TestPaper.is_active.is_(True),
        )
        .options(selectinload(TestPaper.subject))
        .order_by(TestPaper.created_at.desc(), TestPaper.title)
    )
    return list(db.execute(stmt).scalars())


def enroll(db: Session, user: User, exam_id: UUID) -> Enrollment:
    """Enroll the learner in an active exam; re-enrolling returns the existing row."""
    exam = db.get(Exam, exam_id)
    if exam is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    if not exam.is_active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Exam is not active")

    enrollment = db.execute(
        select(Enrollment).where(Enrollment.user_id == user.id, Enrollment.exam_id == exam_id)
    ).scalar_one_or_none()
    if enrollment is None:
        enrollment = Enrollment(user_id=user.id, exam_id=exam_id, is_active=True)
        db.add(enrollment)
    elif not enrollment.is_active:
        enrollment.is_active = True
    else:
        return enrollment

    db.commit()
    db.refresh(enrollment)
    logger.info(
        "Learner enrolled",
        extra={"event": "enrolled", "user_id": str(user.id), "exam_id": str(exam_id)},
    )
    return enrollment
