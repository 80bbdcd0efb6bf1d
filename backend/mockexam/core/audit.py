"""Audit trail for administrative changes to exams, papers and questions."""

from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from mockexam.core.errors import get_request_id
from mockexam.models.audit import AuditLog


def request_context(request: Request | None) -> dict[str, Any]:
    """Correlation fields taken from the HTTP request, empty for CLI and jobs."""
    if request is None:
        return {}
    return {
        "request_id": get_request_id(request),
        "path": request.url.path,
        "user_agent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
    }


def changed_fields(before: dict[str, Any] | None, after: dict[str, Any] | None) -> list[str]:
    """Top-level keys whose values differ between two snapshots."""
    if before is None or after is None:
        return []
    return sorted(key for key in before.keys() | after.keys() if before.get(key) != after.get(key))


def write_audit(
    db: Session,
    actor_user_id: UUID,
    action: str,
    entity_type: str,
    entity_id: UUID,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None,
    request: Request | None = None,
) -> AuditLog:
    """
    Add an AuditLog row to the session. The caller commits it together with the change.

    `action` is dotted ("question.update"), `entity_type` upper case ("QUESTION").
    For updates the meta also lists the snapshot keys that changed.
    """
    audit_meta = {**request_context(request), **(meta or {})}
    diff = changed_fields(before, after)
    if diff:
        audit_meta["changed"] = diff

    entry = AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
        meta=audit_meta,
    )
    db.add(entry)
    return entry
