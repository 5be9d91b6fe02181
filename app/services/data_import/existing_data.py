"""Snapshot of tenant records used for referential and duplicate checks."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import (
    AttendanceRecord,
    ImportType,
    SchoolClass,
    Student,
    TenantRole,
    TenantUser,
    User,
)
from app.services.data_import.normalizers import name_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingData:
    """Point-in-time read of what the tenant already has.

    All keys are lower-cased. Student and attendance keys use the
    "first|last" form, with attendance adding "|YYYY-MM-DD".
    """

    student_names: frozenset[str] = frozenset()
    class_names: Mapping[str, UUID] = field(default_factory=dict)
    guardian_emails: frozenset[str] = frozenset()
    role_names: Mapping[str, UUID] = field(default_factory=dict)
    attendance_keys: frozenset[str] = frozenset()


async def fetch_existing_data(
    db: AsyncSession,
    tenant_id: UUID,
    import_type: ImportType | str,
    *,
    today: date | None = None,
) -> ExistingData:
    """Load only the lookups the given import type needs."""
    import_type = ImportType(import_type)

    result = await db.execute(
        select(Student.first_name, Student.last_name).where(
            Student.tenant_id == tenant_id,
            Student.deleted_at.is_(None),
        )
    )
    student_names = frozenset(name_key(first, last) for first, last in result.all())

    class_names: dict[str, UUID] = {}
    if import_type in (ImportType.STUDENTS, ImportType.ATTENDANCE):
        result = await db.execute(
            select(SchoolClass.id, SchoolClass.name).where(
                SchoolClass.tenant_id == tenant_id,
                SchoolClass.deleted_at.is_(None),
            )
        )
        class_names = {name.lower(): class_id for class_id, name in result.all()}

    guardian_emails: frozenset[str] = frozenset()
    if import_type == ImportType.GUARDIANS:
        # Any account that belongs to this school, not only current guardians
        result = await db.execute(
            select(User.email)
            .join(TenantUser, TenantUser.user_id == User.id)
            .where(
                TenantUser.tenant_id == tenant_id,
                TenantUser.deleted_at.is_(None),
                User.deleted_at.is_(None),
            )
        )
        guardian_emails = frozenset(email.lower() for email in result.scalars().all())

    role_names: dict[str, UUID] = {}
    if import_type == ImportType.STAFF:
        result = await db.execute(
            select(TenantRole.id, TenantRole.name).where(
                TenantRole.tenant_id == tenant_id,
                TenantRole.deleted_at.is_(None),
            )
        )
        role_names = {name.lower(): role_id for role_id, name in result.all()}

    attendance_keys: frozenset[str] = frozenset()
    if import_type == ImportType.ATTENDANCE:
        today = today or date.today()
        since = today - timedelta(days=365 * settings.import_attendance_lookback_years)
        result = await db.execute(
            select(Student.first_name, Student.last_name, AttendanceRecord.date)
            .select_from(AttendanceRecord)
            .join(Student, Student.id == AttendanceRecord.student_id)
            .where(
                AttendanceRecord.tenant_id == tenant_id,
                AttendanceRecord.deleted_at.is_(None),
                AttendanceRecord.date >= since,
                Student.deleted_at.is_(None),
            )
        )
        attendance_keys = frozenset(
            f"{name_key(first, last)}|{record_date.isoformat()}"
            for first, last, record_date in result.all()
        )

    logger.debug(
        f"Existing data for {import_type.value} import in tenant {tenant_id}: "
        f"{len(student_names)} students, {len(class_names)} classes, "
        f"{len(guardian_emails)} emails, {len(role_names)} roles, "
        f"{len(attendance_keys)} attendance keys"
    )

    return ExistingData(
        student_names=student_names,
        class_names=class_names,
        guardian_emails=guardian_emails,
        role_names=role_names,
        attendance_keys=attendance_keys,
    )
