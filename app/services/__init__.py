"""Service layer for business logic."""

from app.services.audit_service import AuditService, get_audit_service, log_audit
from app.services.import_service import ImportService, get_import_service

__all__ = [
    "AuditService",
    "get_audit_service",
    "log_audit",
    "ImportService",
    "get_import_service",
]
