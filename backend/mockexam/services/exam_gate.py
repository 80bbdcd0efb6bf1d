"""Access gate for test papers and the answer key built from them.

A learner may fetch or submit a paper only when the paper and its exam are
active and the learner holds an active enrollment in that exam.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mockexam.core.app_exceptions import ForbiddenError, InvalidStateError, NotFoundError
from mockexam.models.exam import Enrollment, Subject
from mockexam.models.test_paper import Question, Section, TestPaper
from mockexam.models.user import User
from mockexam.scoring import OptionKey, PaperKey, QuestionKey


def load_paper(db: Session, test_paper_id: UUID) -> TestPaper:
    """Load a test paper with sections, questions and options."""
    stmt = (
        select(TestPaper)
        .where(TestPaper.id == test_paper_id)
        .options(
            selectinload(TestPaper.sections)
            .selectinload(Section.questions)
            .selectinload(Question.options),
            selectinload(TestPaper.subject).selectinload(Subject.exam),
        )
    )
    paper = db.execute(stmt).scalar_one_or_none()
    if paper is None:
        raise NotFoundError("Test paper not found", test_paper_id=test_paper_id)
    return paper


def is_enrolled(db: Session, user_id: UUID, exam_id: UUID) -> bool:
    stmt = select(Enrollment.id).where(
        Enrollment.user_id == user_id,
        Enrollment.exam_id == exam_id,
        Enrollment.is_active.is_(True),
    )
    return db.execute(stmt).first() is not None


def check_access(db: Session, user: User, paper: TestPaper) -> None:
    """Raise unless the paper is open to this learner."""
    exam = paper.subject.exam
    if not paper.is_active or not exam.is_active:
        raise InvalidStateError("Test paper is not active", test_paper_id=paper.id)
    if not is_enrolled(db, user.id, exam.id):
        raise ForbiddenError(
            "Learner is not enrolled in the exam", test_paper_id=paper.id, user_id=user.id
        )


def build_paper_key(paper: TestPaper) -> PaperKey:
    """Snapshot the paper's questions, marks and correct options for scoring."""
    questions = tuple(
        QuestionKey(
            id=q.id,
            marks=q.marks,
            question_type=q.question_type,
            options=tuple(OptionKey(id=o.id, is_correct=bool(o.is_correct)) for o in q.options),
        )
        for q in paper.questions
    )
    return PaperKey(questions=questions)
