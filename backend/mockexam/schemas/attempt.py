"""Pydantic schemas for attempts, submissions and results."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from mockexam.models.exam import ExamCategory

# ============================================================================
# Taking a test
# ============================================================================


class AttemptOut(BaseModel):
    id: UUID
    test_paper_id: UUID
    started_at: datetime
    expires_at: datetime | None
    is_completed: bool
    draft_answers: dict[str, str | None] | None = None

    class Config:
        from_attributes = True


class SubmitRequest(BaseModel):
    """Answer sheet: question id -> selected option id (null = skipped)."""

    attempt_id: UUID | None = None
    # Shape is validated by the submission service
    answers: Any
    time_spent: int | None = Field(None, ge=0, description="Seconds spent on the paper")


class ProgressRequest(BaseModel):
    attempt_id: UUID
    answers: Any


class SubmitResult(BaseModel):
    attempt_id: UUID
    total_marks: float
    obtained_marks: float
    percentage: float
    rank: int


# ============================================================================
# Results
# ============================================================================


class ExamRef(BaseModel):
    name: str
    category: ExamCategory


class ResultSummary(BaseModel):
    id: UUID
    test_paper_id: UUID
    test_paper_title: str
    subject_name: str
    exam: ExamRef
    total_marks: float
    obtained_marks: float
    percentage: float
    rank: int | None
    time_spent: int
    auto_submitted: bool
    submitted_at: datetime


class ReviewOption(BaseModel):
    id: UUID
    option_text: str
    is_correct: bool


class ReviewQuestion(BaseModel):
    id: UUID
    question_text: str
    selected_option_id: UUID | None
    correct_option_id: UUID | None
    is_correct: bool
    marks_obtained: float
    marks: int
    explanation: str | None
    options: list[ReviewOption]


class ResultDetail(ResultSummary):
    questions: list[ReviewQuestion]
