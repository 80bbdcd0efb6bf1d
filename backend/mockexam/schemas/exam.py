"""Pydantic schemas for the exam catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from mockexam.models.exam import ExamCategory

# ============================================================================
# Catalog (learner)
# ============================================================================


class CategorySummary(BaseModel):
    """Exam category with its active exam count."""

    category: ExamCategory
    exam_count: int


class SubjectRef(BaseModel):
    name: str


class TestPaperListItem(BaseModel):
    """Active test paper listed under a category."""

    id: UUID
    title: str
    description: str | None
    duration: int
    total_marks: int | None
    subject_id: UUID
    subject: SubjectRef
    created_at: datetime

    class Config:
        from_attributes = True


class EnrollmentOut(BaseModel):
    id: UUID
    user_id: UUID
    exam_id: UUID
    is_active: bool
    enrolled_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Admin
# ============================================================================


class ExamCreate(BaseModel):
    """Request to create an exam."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category: ExamCategory
    duration: int = Field(..., ge=1, description="Duration in minutes")
    total_marks: int = Field(..., ge=0)
    passing_marks: int | None = Field(None, ge=0)
    max_attempts: int | None = Field(None, ge=1, description="Null = unlimited")
    instructions: str | None = None
    is_active: bool = True


class ExamUpdate(BaseModel):
    """Partial exam update."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: ExamCategory | None = None
    duration: int | None = Field(None, ge=1)
    total_marks: int | None = Field(None, ge=0)
    passing_marks: int | None = Field(None, ge=0)
    max_attempts: int | None = Field(None, ge=1)
    instructions: str | None = None
    is_active: bool | None = None


class ExamOut(BaseModel):
    id: UUID
    name: str
    description: str | None
    category: ExamCategory
    duration: int
    total_marks: int
    passing_marks: int | None
    max_attempts: int | None
    instructions: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TopicOut(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    exam_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    topics: list[str] = Field(default_factory=list, description="Topic names to create")


class SubjectOut(BaseModel):
    id: UUID
    exam_id: UUID
    name: str
    description: str | None
    topics: list[TopicOut] = []

    class Config:
        from_attributes = True
