"""User model."""

import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mockexam.db.base import Base


class UserRole(str, Enum):
    """User role enum."""

    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class User(Base):
    """Learner or administrator known to the platform.

    Credentials live with the identity provider; only the profile is stored here.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    enrollments = relationship("Enrollment", back_populates="user", cascade="all, delete-orphan")
    attempts = relationship("TestAttempt", back_populates="user", cascade="all, delete-orphan")
    custom_quizzes = relationship("CustomQuiz", back_populates="user", cascade="all, delete-orphan")
