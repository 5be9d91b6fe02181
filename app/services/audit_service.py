"""Audit trail for tenant-level operations."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AuditLog
from app.utils.tenant_context import get_current_user_id_or_none, get_tenant_id

logger = logging.getLogger(__name__)


class AuditService:
    """Records who did what to which entity."""

    async def log(
        self,
        db: AsyncSession,
        action: str,
        entity_type: str,
        entity_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
        *,
        tenant_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> AuditLog:
        """Record an audit event.

        Tenant and user default to the current request context.
        """
        entry = AuditLog(
            tenant_id=tenant_id or get_tenant_id(),
            user_id=user_id or get_current_user_id_or_none(),
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=metadata or {},
        )
        db.add(entry)
        await db.flush()

        logger.info(f"Audit: {action} on {entity_type} {entity_id} by user {entry.user_id}")
        return entry


# Singleton instance
_audit_service: AuditService | None = None


def get_audit_service() -> AuditService:
    """Get the audit service singleton."""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditService()
    return _audit_service


async def log_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: UUID | None = None,
    metadata: dict[str, Any] | None = None,
    **kwargs: Any,
) -> AuditLog:
    """Shortcut for ``get_audit_service().log(...)``."""
    return await get_audit_service().log(db, action, entity_type, entity_id, metadata, **kwargs)
