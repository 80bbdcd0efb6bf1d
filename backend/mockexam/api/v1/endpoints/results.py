"""Learner result endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mockexam.core.dependencies import StudentUser
from mockexam.db.session import get_db
from mockexam.schemas.attempt import ResultDetail, ResultSummary
from mockexam.services import results

router = APIRouter(prefix="/results", tags=["Results"])


@router.get("", response_model=list[ResultSummary], summary="List my completed attempts")
def list_results(current_user: StudentUser, db: Session = Depends(get_db)) -> list[dict]:
    return results.list_results(db, current_user)


@router.get("/{attempt_id}", response_model=ResultDetail, summary="Review a completed attempt")
def get_result(attempt_id: UUID, current_user: StudentUser, db: Session = Depends(get_db)) -> dict:
    return results.get_result(db, current_user, attempt_id)
