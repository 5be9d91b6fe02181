"""SQLAlchemy models."""

from app.models.base import (
    Base,
    GlobalModel,
    JSONType,
    SoftDeleteMixin,
    TenantScopedModel,
    TimestampMixin,
    UUIDKeyMixin,
)
from app.models.tenant import PARENT_ROLE_NAME, Tenant, TenantRole, TenantUser
from app.models.user import Role, User
from app.models.student import (
    EmergencyContact,
    EnrollmentStatus,
    Gender,
    Guardian,
    MedicalCondition,
    Student,
)
from app.models.school_class import Enrollment, SchoolClass
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.invitation import (
    InvitationStatus,
    ParentInvitation,
    StaffInvitation,
    generate_invitation_code,
)
from app.models.import_job import (
    ROLLBACK_ALLOWED_STATUSES,
    ImportJob,
    ImportJobRecord,
    ImportRecordStatus,
    ImportStatus,
    ImportType,
)
from app.models.audit_log import AuditAction, AuditLog

__all__ = [
    # Base
    "Base",
    "GlobalModel",
    "UUIDKeyMixin",
    "JSONType",
    "TenantScopedModel",
    "TimestampMixin",
    "SoftDeleteMixin",
    # Tenant
    "Tenant",
    "TenantRole",
    "TenantUser",
    "PARENT_ROLE_NAME",
    # User
    "User",
    "Role",
    # Student
    "Student",
    "Gender",
    "EnrollmentStatus",
    "Guardian",
    "EmergencyContact",
    "MedicalCondition",
    # School Class
    "SchoolClass",
    "Enrollment",
    # Attendance
    "AttendanceRecord",
    "AttendanceStatus",
    # Invitation
    "ParentInvitation",
    "StaffInvitation",
    "InvitationStatus",
    "generate_invitation_code",
    # Import
    "ImportJob",
    "ImportJobRecord",
    "ImportType",
    "ImportStatus",
    "ImportRecordStatus",
    "ROLLBACK_ALLOWED_STATUSES",
    # Audit
    "AuditLog",
    "AuditAction",
]
