"""Admin content management: exams, subjects, test papers, sections and questions.

Every write is recorded through write_audit in the same transaction.
"""

from enum import Enum
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from mockexam.common.pagination import PaginationParams, paginate
from mockexam.core.audit import write_audit
from mockexam.models.attempt import Answer, TestAttempt
from mockexam.models.exam import Exam, Subject, Topic
from mockexam.models.test_paper import Question, QuestionOption, Section, TestPaper
from mockexam.models.user import User
from mockexam.schemas.exam import ExamCreate, ExamUpdate, SubjectCreate
from mockexam.schemas.test_paper import (
    QuestionCreate,
    QuestionUpdate,
    SectionCreate,
    TestPaperCreate,
    TestPaperUpdate,
    check_question_options,
)


class QuestionEditError(Exception):
    """Raised when a question cannot be changed."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def snapshot_exam(exam: Exam) -> dict[str, Any]:
    return {
        "name": exam.name,
        "category": _jsonable(exam.category),
        "duration": exam.duration,
        "total_marks": exam.total_marks,
        "passing_marks": exam.passing_marks,
        "max_attempts": exam.max_attempts,
        "is_active": exam.is_active,
    }


def snapshot_paper(paper: TestPaper) -> dict[str, Any]:
    return {
        "subject_id": str(paper.subject_id),
        "title": paper.title,
        "duration": paper.duration,
        "total_marks": paper.total_marks,
        "is_active": paper.is_active,
    }


def snapshot_question(question: Question) -> dict[str, Any]:
    return {
        "section_id": str(question.section_id),
        "topic_id": _jsonable(question.topic_id),
        "question_text": question.question_text,
        "question_type": _jsonable(question.question_type),
        "marks": question.marks,
        "difficulty": _jsonable(question.difficulty),
        "explanation": question.explanation,
        "position": question.position,
        "options": [
            {"id": str(o.id), "option_text": o.option_text, "is_correct": o.is_correct}
            for o in question.options
        ],
    }


# ============================================================================
# Exams and subjects
# ============================================================================


def list_exams(db: Session) -> list[Exam]:
    return list(db.execute(select(Exam).order_by(Exam.created_at.desc(), Exam.name)).scalars())


def create_exam(db: Session, data: ExamCreate, actor: User, request: Request | None = None) -> Exam:
    exam = Exam(**{**data.model_dump(), "category": data.category.value})
    db.add(exam)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="exam.create",
        entity_type="EXAM",
        entity_id=exam.id,
        after=snapshot_exam(exam),
        request=request,
    )
    db.commit()
    db.refresh(exam)
    return exam


def update_exam(
    db: Session, exam_id: UUID, data: ExamUpdate, actor: User, request: Request | None = None
) -> Exam:
    exam = db.get(Exam, exam_id)
    if exam is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    before = snapshot_exam(exam)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(exam, field, _column_value(value))
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="exam.update",
        entity_type="EXAM",
        entity_id=exam.id,
        before=before,
        after=snapshot_exam(exam),
        request=request,
    )
    db.commit()
    db.refresh(exam)
    return exam


def list_subjects(db: Session, exam_id: UUID | None = None) -> list[Subject]:
    stmt = select(Subject).options(selectinload(Subject.topics)).order_by(Subject.name)
    if exam_id is not None:
        stmt = stmt.where(Subject.exam_id == exam_id)
    return list(db.execute(stmt).scalars())


def create_subject(
    db: Session, data: SubjectCreate, actor: User, request: Request | None = None
) -> Subject:
    if db.get(Exam, data.exam_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    subject = Subject(exam_id=data.exam_id, name=data.name, description=data.description)
    subject.topics = [Topic(name=name) for name in data.topics]
    db.add(subject)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="subject.create",
        entity_type="SUBJECT",
        entity_id=subject.id,
        after={"exam_id": str(data.exam_id), "name": data.name, "topics": data.topics},
        request=request,
    )
    db.commit()
    db.refresh(subject)
    return subject


# ============================================================================
# Test papers and sections
# ============================================================================


def list_test_papers(db: Session, subject_id: UUID | None = None) -> list[dict[str, Any]]:
    """Test papers with question count, attempt count and average score."""
    stmt = (
        select(TestPaper)
        .options(selectinload(TestPaper.sections))
        .order_by(TestPaper.created_at.desc(), TestPaper.title)
    )
    if subject_id is not None:
        stmt = stmt.where(TestPaper.subject_id == subject_id)
    papers = list(db.execute(stmt).scalars())

    question_counts = dict(
        db.execute(
            select(Section.test_paper_id, func.count(Question.id))
            .join(Question, Question.section_id == Section.id)
            .group_by(Section.test_paper_id)
        ).all()
    )
    attempt_stats = {
        row.test_paper_id: row
        for row in db.execute(
            select(
                TestAttempt.test_paper_id,
                func.count(TestAttempt.id).label("attempts"),
                func.avg(TestAttempt.percentage).label("average_score"),
            )
            .where(TestAttempt.is_completed.is_(True))
            .group_by(TestAttempt.test_paper_id)
        ).all()
    }

    items = []
    for paper in papers:
        stats = attempt_stats.get(paper.id)
        items.append(
            {
                "id": paper.id,
                "subject_id": paper.subject_id,
                "title": paper.title,
                "description": paper.description,
                "duration": paper.duration,
                "total_marks": paper.total_marks,
                "is_active": paper.is_active,
                "created_at": paper.created_at,
                "question_count": question_counts.get(paper.id, 0),
                "attempt_count": stats.attempts if stats else 0,
                "average_score": (
                    round(float(stats.average_score), 2)
                    if stats and stats.average_score is not None
                    else None
                ),
                "sections": paper.sections,
            }
        )
    return items


def create_test_paper(
    db: Session, data: TestPaperCreate, actor: User, request: Request | None = None
) -> TestPaper:
    if db.get(Subject, data.subject_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    paper = TestPaper(**data.model_dump())
    db.add(paper)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="test_paper.create",
        entity_type="TEST_PAPER",
        entity_id=paper.id,
        after=snapshot_paper(paper),
        request=request,
    )
    db.commit()
    db.refresh(paper)
    return paper


def update_test_paper(
    db: Session, test_paper_id: UUID, data: TestPaperUpdate, actor: User, request: Request | None = None
) -> TestPaper:
    paper = db.get(TestPaper, test_paper_id)
    if paper is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test paper not found")

    before = snapshot_paper(paper)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(paper, field, value)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="test_paper.update",
        entity_type="TEST_PAPER",
        entity_id=paper.id,
        before=before,
        after=snapshot_paper(paper),
        request=request,
    )
    db.commit()
    db.refresh(paper)
    return paper


def add_section(
    db: Session, test_paper_id: UUID, data: SectionCreate, actor: User, request: Request | None = None
) -> Section:
    paper = db.get(TestPaper, test_paper_id)
    if paper is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test paper not found")

    position = data.position if data.position is not None else len(paper.sections)
    section = Section(test_paper_id=paper.id, name=data.name, position=position)
    db.add(section)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="section.create",
        entity_type="SECTION",
        entity_id=section.id,
        after={"test_paper_id": str(paper.id), "name": data.name, "position": position},
        request=request,
    )
    db.commit()
    db.refresh(section)
    return section


# ============================================================================
# Questions
# ============================================================================


def _get_question(db: Session, question_id: UUID) -> Question:
    question = db.execute(
        select(Question).where(Question.id == question_id).options(selectinload(Question.options))
    ).scalar_one_or_none()
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return question


def has_completed_answers(db: Session, question_id: UUID) -> bool:
    """True if any completed attempt has graded this question."""
    stmt = (
        select(Answer.id)
        .join(TestAttempt, Answer.attempt_id == TestAttempt.id)
        .where(Answer.question_id == question_id, TestAttempt.is_completed.is_(True))
        .limit(1)
    )
    return db.execute(stmt).first() is not None


def list_questions(
    db: Session,
    pagination: PaginationParams,
    test_paper_id: UUID | None = None,
    section_id: UUID | None = None,
    topic_id: UUID | None = None,
    difficulty: str | None = None,
    question_type: str | None = None,
    search: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    """Filtered, paginated question listing."""
    stmt = select(Question)
    if test_paper_id is not None:
        stmt = stmt.join(Section, Question.section_id == Section.id).where(
            Section.test_paper_id == test_paper_id
        )
    if section_id is not None:
        stmt = stmt.where(Question.section_id == section_id)
    if topic_id is not None:
        stmt = stmt.where(Question.topic_id == topic_id)
    if difficulty:
        stmt = stmt.where(Question.difficulty == difficulty)
    if question_type:
        stmt = stmt.where(Question.question_type == question_type)
    if search:
        stmt = stmt.where(Question.question_text.ilike(f"%{search}%"))

    questions, total = paginate(
        db,
        stmt.options(selectinload(Question.options)).order_by(
            Question.created_at.desc(), Question.position
        ),
        pagination,
    )

    items = [
        {
            "id": q.id,
            "section_id": q.section_id,
            "question_text": q.question_text,
            "question_type": q.question_type,
            "marks": q.marks,
            "difficulty": q.difficulty,
            "option_count": len(q.options),
            "created_at": q.created_at,
        }
        for q in questions
    ]
    return items, total


def get_question(db: Session, question_id: UUID) -> Question:
    return _get_question(db, question_id)


def create_question(
    db: Session, data: QuestionCreate, actor: User, request: Request | None = None
) -> Question:
    section = db.get(Section, data.section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    if data.topic_id is not None and db.get(Topic, data.topic_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")

    position = data.position if data.position is not None else len(section.questions)
    question = Question(
        section_id=section.id,
        topic_id=data.topic_id,
        question_text=data.question_text,
        question_type=data.question_type.value,
        marks=data.marks,
        difficulty=data.difficulty.value,
        explanation=data.explanation,
        position=position,
    )
    question.options = [
        QuestionOption(option_text=o.option_text, is_correct=o.is_correct, position=i)
        for i, o in enumerate(data.options)
    ]
    db.add(question)
    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="question.create",
        entity_type="QUESTION",
        entity_id=question.id,
        after=snapshot_question(question),
        request=request,
    )
    db.commit()
    db.refresh(question)
    return question


def update_question(
    db: Session, question_id: UUID, data: QuestionUpdate, actor: User, request: Request | None = None
) -> Question:
    """Edit a question; refused once completed attempts have been graded against it."""
    question = _get_question(db, question_id)
    if has_completed_answers(db, question.id):
        raise QuestionEditError("Question has graded answers on completed attempts")

    before = snapshot_question(question)
    changes = data.model_dump(exclude_unset=True, exclude={"options"})
    for field, value in changes.items():
        setattr(question, field, _column_value(value))

    if data.options is not None:
        question.options = [
            QuestionOption(option_text=o.option_text, is_correct=o.is_correct, position=i)
            for i, o in enumerate(data.options)
        ]
    try:
        check_question_options(question.question_type, question.options)
    except ValueError as e:
        db.rollback()
        raise QuestionEditError(str(e)) from e

    db.flush()
    write_audit(
        db,
        actor_user_id=actor.id,
        action="question.update",
        entity_type="QUESTION",
        entity_id=question.id,
        before=before,
        after=snapshot_question(question),
        request=request,
    )
    db.commit()
    db.refresh(question)
    return question


def delete_question(
    db: Session, question_id: UUID, actor: User, request: Request | None = None
) -> None:
    question = _get_question(db, question_id)
    if has_completed_answers(db, question.id):
        raise QuestionEditError("Question has graded answers on completed attempts")

    before = snapshot_question(question)
    db.delete(question)
    write_audit(
        db,
        actor_user_id=actor.id,
        action="question.delete",
        entity_type="QUESTION",
        entity_id=question_id,
        before=before,
        request=request,
    )
    db.commit()
