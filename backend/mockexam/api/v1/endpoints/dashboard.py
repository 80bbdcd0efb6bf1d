"""Learner dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mockexam.core.dependencies import StudentUser
from mockexam.db.session import get_db
from mockexam.schemas.analytics import DashboardStats
from mockexam.services.analytics_service import get_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats, summary="Get my performance summary")
def dashboard_stats(current_user: StudentUser, db: Session = Depends(get_db)) -> dict:
    return get_dashboard_stats(db, current_user)
