"""Audit log model."""

import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import JSONType, TenantScopedModel


class AuditAction:
    """Audit action names."""

    IMPORT_COMPLETED = "import.completed"
    IMPORT_ROLLED_BACK = "import.rolled_back"
    INVITATION_SENT = "invitation.sent"


class AuditLog(TenantScopedModel):
    """Who did what to which entity, with free-form context."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_logs_entity", "entity_type", "entity_id"),
    )

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    details: Mapped[dict] = mapped_column("metadata", JSONType, nullable=False, default=dict)
