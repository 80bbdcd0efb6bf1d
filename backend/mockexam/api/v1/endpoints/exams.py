"""Exam catalog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mockexam.core.dependencies import CurrentUser, StudentUser
from mockexam.db.session import get_db
from mockexam.schemas.exam import CategorySummary, EnrollmentOut, TestPaperListItem
from mockexam.services import catalog

router = APIRouter(prefix="/exams", tags=["Exams"])


@router.get(
    "/categories",
    response_model=list[CategorySummary],
    summary="List exam categories",
)
def list_categories(current_user: CurrentUser, db: Session = Depends(get_db)) -> list[dict]:
    return catalog.list_categories(db)


@router.get(
    "/category/{category}",
    response_model=list[TestPaperListItem],
    summary="List active test papers in a category",
)
def list_category_papers(
    category: str, current_user: CurrentUser, db: Session = Depends(get_db)
) -> list:
    return catalog.papers_in_category(db, category)


@router.post(
    "/{exam_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_200_OK,
    summary="Enroll in an exam",
)
def enroll(exam_id: UUID, current_user: StudentUser, db: Session = Depends(get_db)):
    return catalog.enroll(db, current_user, exam_id)
