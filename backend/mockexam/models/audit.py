"""Audit log model for administrative changes."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.sql import func

from mockexam.db.base import Base


class AuditLog(Base):
    """Append-only record of an admin write."""

    __tablename__ = "audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(64), nullable=False)
    entity_type = Column(String(64), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id"),)
