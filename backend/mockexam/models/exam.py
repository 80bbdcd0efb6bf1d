"""Exam catalog models: exams, subjects, topics and enrollments."""

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
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mockexam.db.base import Base


class ExamCategory(str, Enum):
    """Competitive exam categories."""

    UPSC = "UPSC"
    BANKING = "BANKING"
    ENGINEERING = "ENGINEERING"
    MEDICAL = "MEDICAL"
    MANAGEMENT = "MANAGEMENT"
    DEFENSE = "DEFENSE"


class Exam(Base):
    """A competitive exam (e.g. UPSC Civil Services Prelims)."""

    __tablename__ = "exams"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(32), nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # minutes
    total_marks = Column(Integer, nullable=False)
    passing_marks = Column(Integer, nullable=True)
    max_attempts = Column(Integer, nullable=True)  # null = unlimited
    instructions = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    subjects = relationship(
        "Subject", back_populates="exam", cascade="all, delete-orphan", order_by="Subject.name"
    )
    enrollments = relationship("Enrollment", back_populates="exam", cascade="all, delete-orphan")


class Subject(Base):
    """Subject within an exam."""

    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exam = relationship("Exam", back_populates="subjects")
    topics = relationship(
        "Topic", back_populates="subject", cascade="all, delete-orphan", order_by="Topic.name"
    )
    test_papers = relationship("TestPaper", back_populates="subject", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_subjects_exam_id", "exam_id"),)


class Topic(Base):
    """Topic within a subject."""

    __tablename__ = "topics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    subject = relationship("Subject", back_populates="topics")

    __table_args__ = (Index("ix_topics_subject_id", "subject_id"),)


class Enrollment(Base):
    """A learner's enrollment in an exam; gates access to its test papers."""

    __tablename__ = "enrollments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="enrollments")
    exam = relationship("Exam", back_populates="enrollments")

    __table_args__ = (UniqueConstraint("user_id", "exam_id", name="uq_enrollment_user_exam"),)
