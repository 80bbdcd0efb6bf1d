"""Custom quiz model."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mockexam.db.base import Base


class CustomQuiz(Base):
    """A learner-defined practice quiz over chosen subjects and topics."""

    __tablename__ = "custom_quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    question_count = Column(Integer, nullable=False, default=10)
    duration = Column(Integer, nullable=False, default=15)  # minutes
    subject_ids = Column(JSON, nullable=False, default=list)
    topic_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="custom_quizzes")
