"""Admin endpoints for exams and subjects."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from mockexam.core.dependencies import AdminUser
from mockexam.db.session import get_db
from mockexam.schemas.exam import ExamCreate, ExamOut, ExamUpdate, SubjectCreate, SubjectOut
from mockexam.services import exam_admin

router = APIRouter(prefix="/admin", tags=["Admin - Exams"])


# ============================================================================
# Exams
# ============================================================================


@router.get("/exams", response_model=list[ExamOut], summary="List exams")
def list_exams(current_user: AdminUser, db: Session = Depends(get_db)):
    return exam_admin.list_exams(db)


@router.post(
    "/exams",
    response_model=ExamOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create exam",
)
def create_exam(
    payload: ExamCreate, request: Request, current_user: AdminUser, db: Session = Depends(get_db)
):
    return exam_admin.create_exam(db, payload, current_user, request)


@router.patch("/exams/{exam_id}", response_model=ExamOut, summary="Update exam")
def update_exam(
    exam_id: UUID,
    payload: ExamUpdate,
    request: Request,
    current_user: AdminUser,
    db: Session = Depends(get_db),
):
    return exam_admin.update_exam(db, exam_id, payload, current_user, request)


# ============================================================================
# Subjects
# ============================================================================


@router.get("/subjects", response_model=list[SubjectOut], summary="List subjects")
def list_subjects(
    current_user: AdminUser,
    exam_id: Annotated[UUID | None, Query(description="Filter by exam")] = None,
    db: Session = Depends(get_db),
):
    return exam_admin.list_subjects(db, exam_id)


@router.post(
    "/subjects",
    response_model=SubjectOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create subject with topics",
)
def create_subject(
    payload: SubjectCreate, request: Request, current_user: AdminUser, db: Session = Depends(get_db)
):
    return exam_admin.create_subject(db, payload, current_user, request)
