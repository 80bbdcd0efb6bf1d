"""Test paper models: papers, sections, questions and options."""

import uuid
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mockexam.db.base import Base


class QuestionType(str, Enum):
    """Question type enum."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    ESSAY = "ESSAY"


AUTO_SCORABLE_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE})


class Difficulty(str, Enum):
    """Question difficulty enum."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class TestPaper(Base):
    """A timed paper made of ordered sections."""

    __tablename__ = "test_papers"
    __test__ = False  # not a pytest test class

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False)  # minutes
    total_marks = Column(Integer, nullable=True)  # advertised only; scoring sums question marks
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    subject = relationship("Subject", back_populates="test_papers")
    sections = relationship(
        "Section",
        back_populates="test_paper",
        cascade="all, delete-orphan",
        order_by="Section.position",
    )
    attempts = relationship("TestAttempt", back_populates="test_paper", cascade="all, delete-orphan")

    @property
    def questions(self) -> list["Question"]:
        """All questions in section order."""
        return [q for section in self.sections for q in section.questions]

    __table_args__ = (Index("ix_test_papers_subject_active", "subject_id", "is_active"),)


class Section(Base):
    """Ordered section of a test paper."""

    __tablename__ = "sections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    test_paper_id = Column(Uuid, ForeignKey("test_papers.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    test_paper = relationship("TestPaper", back_populates="sections")
    questions = relationship(
        "Question",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )


class Question(Base):
    """Question with marks and ordered options."""

    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id = Column(Uuid, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)
    topic_id = Column(Uuid, ForeignKey("topics.id", ondelete="SET NULL"), nullable=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(32), nullable=False, default=QuestionType.MULTIPLE_CHOICE.value)
    marks = Column(Integer, nullable=False, default=1)
    difficulty = Column(String(16), nullable=False, default=Difficulty.MEDIUM.value)
    explanation = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    section = relationship("Section", back_populates="questions")
    topic = relationship("Topic")
    options = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="QuestionOption.position",
    )

    __table_args__ = (
        Index("ix_questions_section_id", "section_id"),
        Index("ix_questions_difficulty", "difficulty"),
    )


class QuestionOption(Base):
    """Answer option of a question."""

    __tablename__ = "question_options"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="options")
