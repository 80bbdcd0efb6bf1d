"""Admin question bank endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from mockexam.common.pagination import PaginatedResponse, PaginationParams, pagination_params
from mockexam.core.app_exceptions import AppError
from mockexam.core.dependencies import AdminUser
from mockexam.db.session import get_db
from mockexam.schemas.test_paper import (
    QuestionCreate,
    QuestionListItem,
    QuestionOut,
    QuestionUpdate,
)
from mockexam.services import exam_admin
from mockexam.services.exam_admin import QuestionEditError

router = APIRouter(prefix="/admin/questions", tags=["Admin - Questions"])


@router.get(
    "",
    response_model=PaginatedResponse[QuestionListItem],
    summary="List questions",
    description="List questions with filtering, pagination, and search.",
)
def list_questions(
    current_user: AdminUser,
    test_paper_id: Annotated[UUID | None, Query(description="Filter by test paper")] = None,
    section_id: Annotated[UUID | None, Query(description="Filter by section")] = None,
    topic_id: Annotated[UUID | None, Query(description="Filter by topic")] = None,
    difficulty: Annotated[str | None, Query(description="EASY, MEDIUM or HARD")] = None,
    question_type: Annotated[str | None, Query(description="Filter by question type")] = None,
    q: Annotated[str | None, Query(description="Text search on question text")] = None,
    pagination: Annotated[PaginationParams, Depends(pagination_params)] = None,
    db: Session = Depends(get_db),
) -> PaginatedResponse[QuestionListItem]:
    items, total = exam_admin.list_questions(
        db,
        pagination,
        test_paper_id=test_paper_id,
        section_id=section_id,
        topic_id=topic_id,
        difficulty=difficulty.upper() if difficulty else None,
        question_type=question_type.upper() if question_type else None,
        search=q,
    )
    return PaginatedResponse[QuestionListItem].of(
        [QuestionListItem(**item) for item in items], total, pagination
    )


@router.post(
    "",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create question",
)
def create_question(
    payload: QuestionCreate, request: Request, current_user: AdminUser, db: Session = Depends(get_db)
):
    return exam_admin.create_question(db, payload, current_user, request)


@router.get("/{question_id}", response_model=QuestionOut, summary="Get question")
def get_question(question_id: UUID, current_user: AdminUser, db: Session = Depends(get_db)):
    return exam_admin.get_question(db, question_id)


@router.patch("/{question_id}", response_model=QuestionOut, summary="Update question")
def update_question(
    question_id: UUID,
    payload: QuestionUpdate,
    request: Request,
    current_user: AdminUser,
    db: Session = Depends(get_db),
):
    try:
        return exam_admin.update_question(db, question_id, payload, current_user, request)
    except QuestionEditError as e:
        raise AppError(status.HTTP_409_CONFLICT, "QUESTION_EDIT_REJECTED", e.detail) from e


@router.delete("/{question_id}", summary="Delete question")
def delete_question(
    question_id: UUID, request: Request, current_user: AdminUser, db: Session = Depends(get_db)
) -> dict:
    try:
        exam_admin.delete_question(db, question_id, current_user, request)
    except QuestionEditError as e:
        raise AppError(status.HTTP_409_CONFLICT, "QUESTION_EDIT_REJECTED", e.detail) from e
    return {"message": "Question deleted"}
