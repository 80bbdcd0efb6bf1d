"""Liveness and readiness probes."""

from typing import Literal

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mockexam.core.errors import get_request_id
from mockexam.core.logging import get_logger
from mockexam.db.session import get_db
from mockexam.models.test_paper import TestPaper

logger = get_logger(__name__)
router = APIRouter(tags=["Health"])

CheckStatus = Literal["ok", "down"]


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessCheck(BaseModel):
    status: CheckStatus
    message: str | None = None


class ReadinessResponse(BaseModel):
    status: CheckStatus
    checks: dict[str, ReadinessCheck]
    request_id: str


def _check_database(db: Session) -> dict[str, ReadinessCheck]:
    """Connectivity first; the catalog count only runs once the database answers."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness: database down", extra={"event": "ready_db_down", "error": str(e)})
        return {"db": ReadinessCheck(status="down", message=str(e))}

    checks = {"db": ReadinessCheck(status="ok")}
    try:
        active = db.scalar(select(func.count(TestPaper.id)).where(TestPaper.is_active.is_(True))) or 0
        checks["catalog"] = ReadinessCheck(status="ok", message=f"{active} active test papers")
    except SQLAlchemyError as e:
        # Reachable database without the schema
        checks["catalog"] = ReadinessCheck(status="down", message=str(e))
    return checks


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
def health_check() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks database connectivity and that the test paper table is queryable. 503 when any check is down.",
)
def readiness_check(request: Request, response: Response, db: Session = Depends(get_db)) -> ReadinessResponse:
    checks = _check_database(db)
    overall: CheckStatus = "ok" if all(c.status == "ok" for c in checks.values()) else "down"
    if overall == "down":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status=overall, checks=checks, request_id=get_request_id(request))
