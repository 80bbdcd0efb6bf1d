"""Admin statistics and analytics endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mockexam.core.dependencies import AdminUser
from mockexam.db.session import get_db
from mockexam.schemas.analytics import AdminStats, AnalyticsOverview, AnalyticsPeriod
from mockexam.services.analytics_service import get_admin_stats, get_analytics_overview

router = APIRouter(prefix="/admin", tags=["Admin - Analytics"])


@router.get("/stats", response_model=AdminStats, summary="Platform totals")
def admin_stats(current_user: AdminUser, db: Session = Depends(get_db)) -> dict:
    return get_admin_stats(db)


@router.get(
    "/analytics/overview",
    response_model=AnalyticsOverview,
    summary="Analytics overview",
    description="Totals, activity, completion rate and performance by exam and category.",
)
def analytics_overview(
    current_user: AdminUser,
    period: Annotated[AnalyticsPeriod, Query(description="7d, 30d, 90d or 1y")] = "30d",
    db: Session = Depends(get_db),
) -> dict:
    return get_analytics_overview(db, period)
