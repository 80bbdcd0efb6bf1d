"""Admin test paper endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from mockexam.core.dependencies import AdminUser
from mockexam.db.session import get_db
from mockexam.models.test_paper import TestPaper
from mockexam.schemas.test_paper import (
    RerankResult,
    SectionCreate,
    SectionOut,
    TestPaperAdminOut,
    TestPaperCreate,
    TestPaperUpdate,
)
from mockexam.services import exam_admin
from mockexam.services.ranking import rerank_test_paper

router = APIRouter(prefix="/admin/test-papers", tags=["Admin - Test Papers"])


@router.get("", response_model=list[TestPaperAdminOut], summary="List test papers")
def list_test_papers(
    current_user: AdminUser,
    subject_id: Annotated[UUID | None, Query(description="Filter by subject")] = None,
    db: Session = Depends(get_db),
) -> list[dict]:
    return exam_admin.list_test_papers(db, subject_id)


@router.post(
    "",
    response_model=TestPaperAdminOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create test paper",
)
def create_test_paper(
    payload: TestPaperCreate, request: Request, current_user: AdminUser, db: Session = Depends(get_db)
):
    return exam_admin.create_test_paper(db, payload, current_user, request)


@router.patch(
    "/{test_paper_id}",
    response_model=TestPaperAdminOut,
    summary="Update or (de)activate a test paper",
)
def update_test_paper(
    test_paper_id: UUID,
    payload: TestPaperUpdate,
    request: Request,
    current_user: AdminUser,
    db: Session = Depends(get_db),
):
    return exam_admin.update_test_paper(db, test_paper_id, payload, current_user, request)


@router.post(
    "/{test_paper_id}/sections",
    response_model=SectionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a section",
)
def add_section(
    test_paper_id: UUID,
    payload: SectionCreate,
    request: Request,
    current_user: AdminUser,
    db: Session = Depends(get_db),
):
    return exam_admin.add_section(db, test_paper_id, payload, current_user, request)


@router.post(
    "/{test_paper_id}/rerank",
    response_model=RerankResult,
    summary="Recompute ranks of completed attempts",
)
def rerank(test_paper_id: UUID, current_user: AdminUser, db: Session = Depends(get_db)) -> RerankResult:
    if db.get(TestPaper, test_paper_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test paper not found")
    ranked, updated = rerank_test_paper(db, test_paper_id)
    return RerankResult(test_paper_id=test_paper_id, ranked=ranked, updated=updated)
