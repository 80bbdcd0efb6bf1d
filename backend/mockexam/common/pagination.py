"""Page-based pagination for the admin listings (questions, attempts)."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi import HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100


class PaginationParams(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of items plus the unpaged total and whether another page follows."""

    items: list[T]
    page: int
    page_size: int
    total: int
    has_more: bool = False

    @classmethod
    def of(cls, items: list[Any], total: int, params: PaginationParams) -> "PaginatedResponse":
        return cls(
            items=items,
            page=params.page,
            page_size=params.page_size,
            total=total,
            has_more=params.offset + len(items) < total,
        )


def paginate(db: Session, stmt: Select, params: PaginationParams) -> tuple[list[Any], int]:
    """Run `stmt` for one page; the count ignores the ordering and limit."""
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = db.execute(stmt.offset(params.offset).limit(params.page_size)).scalars().all()
    return list(rows), total


def pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, description=f"Page size (max {MAX_PAGE_SIZE})"),
) -> PaginationParams:
    """Dependency for page-based pagination; oversized pages are a 400, not a silent clamp."""
    if page_size > MAX_PAGE_SIZE:
        raise HTTPException(status_code=400, detail=f"page_size must be <= {MAX_PAGE_SIZE}")
    return PaginationParams(page=page, page_size=page_size)
