"""Pydantic schemas for custom quizzes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class QuizTopic(BaseModel):
    id: UUID
    name: str


class QuizSubject(BaseModel):
    """Subject available for building a custom quiz."""

    id: UUID
    name: str
    exam_name: str
    exam_category: str
    topics: list[QuizTopic]


class CustomQuizCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    question_count: int = Field(10, ge=1, le=200)
    duration: int = Field(15, ge=1, description="Minutes")
    subject_ids: list[UUID] = Field(..., min_length=1)
    topic_ids: list[UUID] = Field(default_factory=list)


class CustomQuizOut(BaseModel):
    id: UUID
    title: str
    description: str | None
    question_count: int
    duration: int
    subject_ids: list[UUID]
    topic_ids: list[UUID]
    created_at: datetime

    class Config:
        from_attributes = True
