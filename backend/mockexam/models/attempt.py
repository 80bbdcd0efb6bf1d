"""Test attempt and answer models."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mockexam.db.base import Base


class TestAttempt(Base):
    """A learner's attempt at a test paper.

    In progress until submitted (explicitly or on expiry); the score fields are
    null until then and never change afterwards, except the derived rank.
    """

    __tablename__ = "test_attempts"
    __test__ = False  # not a pytest test class

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    test_paper_id = Column(Uuid, ForeignKey("test_papers.id", ondelete="CASCADE"), nullable=False)

    started_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    time_spent = Column(Integer, nullable=True)  # seconds
    is_completed = Column(Boolean, nullable=False, default=False)
    auto_submitted = Column(Boolean, nullable=False, default=False)

    # Saved progress: {question_id: option_id | null}
    draft_answers = Column(JSON, nullable=True)

    # Scoring (computed at submit)
    total_marks = Column(Float, nullable=True)
    obtained_marks = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
    rank = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    user = relationship("User", back_populates="attempts")
    test_paper = relationship("TestPaper", back_populates="attempts")
    answers = relationship("Answer", back_populates="attempt", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_test_attempts_user_created", "user_id", "created_at"),
        Index("ix_test_attempts_paper_completed", "test_paper_id", "is_completed"),
    )


class Answer(Base):
    """Graded answer for one question of a completed attempt."""

    __tablename__ = "answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attempt_id = Column(Uuid, ForeignKey("test_attempts.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    # Stored as submitted; may reference an option of another question
    selected_option_id = Column(Uuid, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    marks_obtained = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    attempt = relationship("TestAttempt", back_populates="answers")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_attempt_question"),
        Index("ix_answers_attempt_id", "attempt_id"),
    )
