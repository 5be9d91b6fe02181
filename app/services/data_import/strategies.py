"""Per-import-type rules: cross-entity validation and database writes.

Each import type is one ``ImportStrategy`` subclass registered in
``STRATEGIES``. The validator calls ``validate_extra`` with the existing-data
snapshot; the executor calls ``insert`` inside a savepoint and rollback calls
``soft_delete``.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Literal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ImportRowError
from app.models import (
    PARENT_ROLE_NAME,
    AttendanceRecord,
    EmergencyContact,
    Enrollment,
    EnrollmentStatus,
    Guardian,
    ImportType,
    InvitationStatus,
    MedicalCondition,
    ParentInvitation,
    SchoolClass,
    StaffInvitation,
    Student,
    TenantRole,
    TenantUser,
    User,
)
from app.schemas.import_job import ImportField, ImportMetadata, RowIssue
from app.services.data_import.existing_data import ExistingData
from app.services.data_import.normalizers import (
    ATTENDANCE_STATUSES,
    name_key,
    normalize_attendance_status,
    normalize_enum_value,
    parse_time_string,
    time_to_timestamp,
)
from app.utils.security import unusable_password_hash

logger = logging.getLogger(__name__)


@dataclass
class RowContext:
    """Mutable state for one row during a validation pass."""

    row_number: int
    data: dict[str, str]
    today: date
    # Keys already seen earlier in the same file, shared across rows
    seen_in_file: set[str]
    errors: list[RowIssue] = field(default_factory=list)
    warnings: list[RowIssue] = field(default_factory=list)
    is_duplicate: bool = False

    def add_error(self, field_key: str, message: str) -> None:
        self.errors.append(RowIssue(row=self.row_number, field=field_key, message=message))

    def add_warning(self, field_key: str, message: str) -> None:
        self.warnings.append(RowIssue(row=self.row_number, field=field_key, message=message))

    def has_error(self, field_key: str) -> bool:
        return any(error.field == field_key for error in self.errors)

    def value(self, key: str) -> str:
        return self.data.get(key, "") or ""


@dataclass(frozen=True)
class InsertContext:
    """Who is importing, for which tenant, with which job options."""

    tenant_id: UUID
    user_id: UUID | None
    metadata: ImportMetadata = field(default_factory=ImportMetadata)
    today: date = field(default_factory=date.today)
    invitation_expiry_days: int = 30


@dataclass(frozen=True)
class InsertOutcome:
    """Result of writing one row.

    ``linked`` created or updated an entity rollback can revert.
    ``deferred`` created a placeholder (an invitation) instead of the entity.
    ``unchanged`` found the entity already in place and wrote nothing.
    """

    kind: Literal["linked", "deferred", "unchanged"]
    entity_id: UUID | None = None
    deferred_entity_type: str | None = None

    @classmethod
    def linked(cls, entity_id: UUID) -> "InsertOutcome":
        return cls(kind="linked", entity_id=entity_id)

    @classmethod
    def deferred(cls, entity_type: str, entity_id: UUID) -> "InsertOutcome":
        return cls(kind="deferred", deferred_entity_type=entity_type, entity_id=entity_id)

    @classmethod
    def unchanged(cls) -> "InsertOutcome":
        return cls(kind="unchanged")


def _blank_to_none(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _student_label(data: Mapping[str, str]) -> str:
    return f"{data.get('student_first_name', '')} {data.get('student_last_name', '')}"


async def find_student(
    db: AsyncSession,
    tenant_id: UUID,
    first_name: str,
    last_name: str,
) -> Student:
    """Resolve a student by case-insensitive name, or raise a row error."""
    result = await db.execute(
        select(Student)
        .where(
            Student.tenant_id == tenant_id,
            Student.deleted_at.is_(None),
            func.lower(Student.first_name) == first_name.strip().lower(),
            func.lower(Student.last_name) == last_name.strip().lower(),
        )
        .order_by(Student.created_at)
        .limit(1)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise ImportRowError(
            f'Student "{first_name} {last_name}" not found. Import students first.',
            field="student_first_name",
        )
    return student


async def _find_class(db: AsyncSession, tenant_id: UUID, name: str) -> SchoolClass | None:
    result = await db.execute(
        select(SchoolClass)
        .where(
            SchoolClass.tenant_id == tenant_id,
            SchoolClass.deleted_at.is_(None),
            func.lower(SchoolClass.name) == name.strip().lower(),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(
        select(User).where(
            func.lower(User.email) == email.strip().lower(),
            User.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def find_membership(db: AsyncSession, tenant_id: UUID, user_id: UUID) -> TenantUser | None:
    """Get the tenant membership for a user, including a soft-deleted one."""
    result = await db.execute(
        select(TenantUser).where(
            TenantUser.tenant_id == tenant_id,
            TenantUser.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def ensure_parent_membership(db: AsyncSession, tenant_id: UUID, user_id: UUID) -> None:
    """Give the account a Parent membership unless it already belongs to the school."""
    membership = await find_membership(db, tenant_id, user_id)
    if membership and membership.deleted_at is None:
        return

    result = await db.execute(
        select(TenantRole).where(
            TenantRole.tenant_id == tenant_id,
            TenantRole.deleted_at.is_(None),
            func.lower(TenantRole.name) == PARENT_ROLE_NAME.lower(),
        )
    )
    parent_role = result.scalars().first()
    if not parent_role:
        parent_role = TenantRole(tenant_id=tenant_id, name=PARENT_ROLE_NAME)
        db.add(parent_role)
        await db.flush()

    if membership:
        membership.deleted_at = None
        membership.role_id = parent_role.id
    else:
        db.add(TenantUser(tenant_id=tenant_id, user_id=user_id, role_id=parent_role.id))
    await db.flush()


async def find_guardian_link(
    db: AsyncSession,
    tenant_id: UUID,
    user_id: UUID,
    student_id: UUID,
) -> Guardian | None:
    """Get the guardian link for an account and student, including a soft-deleted one."""
    result = await db.execute(
        select(Guardian).where(
            Guardian.tenant_id == tenant_id,
            Guardian.user_id == user_id,
            Guardian.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def upsert_guardian(
    db: AsyncSession,
    tenant_id: UUID,
    user_id: UUID,
    student_id: UUID,
    *,
    relationship: str,
    is_primary: bool = False,
    is_emergency_contact: bool = False,
    pickup_authorized: bool = True,
    phone: str | None = None,
) -> Guardian:
    """Link an account to a student as guardian, reviving a removed link."""
    guardian = await find_guardian_link(db, tenant_id, user_id, student_id)
    if not guardian:
        guardian = Guardian(tenant_id=tenant_id, user_id=user_id, student_id=student_id)
        db.add(guardian)

    guardian.relationship_type = relationship
    guardian.is_primary = is_primary
    guardian.is_emergency_contact = is_emergency_contact
    guardian.pickup_authorized = pickup_authorized
    guardian.phone = phone
    guardian.deleted_at = None
    await db.flush()
    return guardian


async def upsert_parent_invitation(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
    email: str,
    *,
    first_name: str,
    last_name: str,
    relationship: str,
    created_by: UUID | None,
    expiry_days: int,
) -> ParentInvitation:
    """Create or re-issue the pending invitation for an email and student."""
    result = await db.execute(
        select(ParentInvitation).where(
            ParentInvitation.tenant_id == tenant_id,
            ParentInvitation.email == email,
            ParentInvitation.student_id == student_id,
        )
    )
    invitation = result.scalar_one_or_none()
    if not invitation:
        invitation = ParentInvitation(tenant_id=tenant_id, email=email, student_id=student_id)
        db.add(invitation)

    invitation.first_name = first_name
    invitation.last_name = last_name
    invitation.relationship_type = relationship
    invitation.status = InvitationStatus.PENDING.value
    invitation.expires_at = datetime.now(timezone.utc) + timedelta(days=expiry_days)
    invitation.created_by = created_by
    invitation.deleted_at = None
    await db.flush()
    return invitation


async def create_staff_account(
    db: AsyncSession,
    tenant_id: UUID,
    email: str,
    *,
    first_name: str,
    last_name: str,
    created_by: UUID | None,
    expiry_days: int,
) -> User:
    """Create a login-less account plus the invitation used to set it up."""
    email = email.strip().lower()
    user = User(
        email=email,
        password_hash=unusable_password_hash(),
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    db.add(
        StaffInvitation(
            tenant_id=tenant_id,
            user_id=user.id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            expires_at=datetime.now(timezone.utc) + timedelta(days=expiry_days),
            created_by=created_by,
        )
    )
    await db.flush()
    logger.info(f"Created staff account {user.id} for tenant {tenant_id}")
    return user


async def grant_staff_membership(
    db: AsyncSession,
    tenant_id: UUID,
    role_id: UUID,
    email: str,
    *,
    first_name: str,
    last_name: str,
    created_by: UUID | None,
    expiry_days: int,
) -> TenantUser | None:
    """Make the email a staff member with the given role.

    Unknown emails get a new account. Returns None, writing nothing, when
    the account already holds a live membership.
    """
    membership = None
    user = await find_user_by_email(db, email)
    if user:
        membership = await find_membership(db, tenant_id, user.id)
        if membership and membership.deleted_at is None:
            return None
    else:
        user = await create_staff_account(
            db,
            tenant_id,
            email,
            first_name=first_name,
            last_name=last_name,
            created_by=created_by,
            expiry_days=expiry_days,
        )

    if membership:
        membership.deleted_at = None
        membership.role_id = role_id
    else:
        membership = TenantUser(tenant_id=tenant_id, user_id=user.id, role_id=role_id)
        db.add(membership)

    user.bind_tenant(tenant_id)
    await db.flush()
    return membership


class ImportStrategy:
    """Base class for an import type.

    Subclasses set ``import_type``, the ``model`` rollback soft-deletes and
    the ``entity_type`` (table name) recorded on job records.
    """

    import_type: ImportType
    model: type
    entity_type: str

    def normalize_enum(self, import_field: ImportField, value: str) -> str | None:
        """Resolve an enum cell to an allowed value, or None."""
        return normalize_enum_value(value, import_field.enum_values)

    def enum_error(self, import_field: ImportField, value: str) -> str:
        return f'Invalid value "{value}". Must be one of: {", ".join(import_field.enum_values)}'

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        """Apply cross-entity and duplicate rules to an already-coerced row."""

    def require_student(self, ctx: RowContext, existing: ExistingData) -> str:
        """Error unless the referenced student exists; returns the student key."""
        key = name_key(ctx.value("student_first_name"), ctx.value("student_last_name"))
        if key != "|" and key not in existing.student_names:
            ctx.add_error(
                "student_first_name",
                f'Student "{_student_label(ctx.data)}" not found. Import students first.',
            )
        return key

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        """Write one validated row."""
        raise NotImplementedError

    async def soft_delete(
        self,
        db: AsyncSession,
        tenant_id: UUID,
        entity_id: UUID,
        deleted_at: datetime,
    ) -> bool:
        """Soft-delete an entity created by an import. Returns False if already gone."""
        result = await db.execute(
            update(self.model)
            .where(
                self.model.id == entity_id,
                self.model.tenant_id == tenant_id,
                self.model.deleted_at.is_(None),
            )
            .values(deleted_at=deleted_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


class StudentImportStrategy(ImportStrategy):
    """Students, with optional class find-or-create and enrollment."""

    import_type = ImportType.STUDENTS
    model = Student
    entity_type = "students"

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        first_name = ctx.value("first_name")
        last_name = ctx.value("last_name")
        key = name_key(first_name, last_name)

        if key != "|":
            if key in ctx.seen_in_file:
                ctx.add_warning(
                    "first_name",
                    f'Duplicate student "{first_name} {last_name}" appears multiple times in this file',
                )
            ctx.seen_in_file.add(key)

            if key in existing.student_names:
                ctx.is_duplicate = True
                ctx.add_warning(
                    "first_name",
                    f'Student "{first_name} {last_name}" already exists in the system',
                )

        class_name = ctx.value("class_name")
        if class_name and class_name.lower() not in existing.class_names:
            ctx.add_warning("class_name", f'Class "{class_name}" doesn\'t exist and will be created')

    def _enrollment_status(self, data: Mapping[str, str], metadata: ImportMetadata) -> str:
        allowed = [status.value for status in EnrollmentStatus]
        for candidate in (data.get("enrollment_status"), metadata.default_enrollment_status):
            if candidate:
                status = normalize_enum_value(candidate, allowed)
                if status:
                    return status
        return EnrollmentStatus.ACTIVE.value

    async def _resolve_class_id(
        self,
        db: AsyncSession,
        ctx: InsertContext,
        class_name: str | None,
    ) -> UUID | None:
        if class_name:
            school_class = await _find_class(db, ctx.tenant_id, class_name)
            if not school_class:
                school_class = SchoolClass(tenant_id=ctx.tenant_id, name=class_name)
                db.add(school_class)
                await db.flush()
                logger.info(f"Created class '{class_name}' for tenant {ctx.tenant_id} during import")
            return school_class.id

        default_class_id = ctx.metadata.default_class_id
        if default_class_id:
            result = await db.execute(
                select(SchoolClass.id).where(
                    SchoolClass.id == default_class_id,
                    SchoolClass.tenant_id == ctx.tenant_id,
                    SchoolClass.deleted_at.is_(None),
                )
            )
            class_id = result.scalar_one_or_none()
            if not class_id:
                raise ImportRowError("Default class not found", field="class_name")
            return class_id
        return None

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        dob = _blank_to_none(data.get("dob"))
        student = Student(
            tenant_id=ctx.tenant_id,
            first_name=data["first_name"],
            last_name=data["last_name"],
            preferred_name=_blank_to_none(data.get("preferred_name")),
            date_of_birth=date.fromisoformat(dob) if dob else None,
            gender=_blank_to_none(data.get("gender")),
            enrollment_status=self._enrollment_status(data, ctx.metadata),
            notes=_blank_to_none(data.get("notes")),
        )
        db.add(student)
        await db.flush()

        class_id = await self._resolve_class_id(db, ctx, _blank_to_none(data.get("class_name")))
        if class_id:
            db.add(
                Enrollment(
                    tenant_id=ctx.tenant_id,
                    student_id=student.id,
                    class_id=class_id,
                    start_date=ctx.today,
                    status="active",
                )
            )
            await db.flush()

        return InsertOutcome.linked(student.id)


class GuardianImportStrategy(ImportStrategy):
    """Guardian links; unknown emails become parent invitations."""

    import_type = ImportType.GUARDIANS
    model = Guardian
    entity_type = "guardians"

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        self.require_student(ctx, existing)

        email = ctx.value("guardian_email")
        if email and email.lower() in existing.guardian_emails:
            ctx.add_warning(
                "guardian_email",
                f'Email "{email}" already exists. Will link existing account to this student.',
            )

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        student = await find_student(
            db, ctx.tenant_id, data["student_first_name"], data["student_last_name"]
        )
        email = data["guardian_email"].strip().lower()
        relationship = data.get("relationship") or "other"

        user = await find_user_by_email(db, email)
        if user:
            guardian = await upsert_guardian(
                db,
                ctx.tenant_id,
                user.id,
                student.id,
                relationship=relationship,
                is_primary=data.get("is_primary") == "true",
                is_emergency_contact=data.get("is_emergency_contact") == "true",
                pickup_authorized=data.get("pickup_authorized") != "false",
                phone=_blank_to_none(data.get("phone")),
            )
            await ensure_parent_membership(db, ctx.tenant_id, user.id)
            return InsertOutcome.linked(guardian.id)

        # No account yet: the link is made when the parent accepts the invitation
        invitation = await upsert_parent_invitation(
            db,
            ctx.tenant_id,
            student.id,
            email,
            first_name=data["guardian_first_name"],
            last_name=data["guardian_last_name"],
            relationship=relationship,
            created_by=ctx.user_id,
            expiry_days=ctx.invitation_expiry_days,
        )
        return InsertOutcome.deferred("parent_invitations", invitation.id)


class EmergencyContactImportStrategy(ImportStrategy):
    """Emergency contacts for existing students."""

    import_type = ImportType.EMERGENCY_CONTACTS
    model = EmergencyContact
    entity_type = "emergency_contacts"

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        self.require_student(ctx, existing)

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        student = await find_student(
            db, ctx.tenant_id, data["student_first_name"], data["student_last_name"]
        )

        raw_priority = data.get("priority_order") or "1"
        try:
            priority_order = int(raw_priority)
        except ValueError:
            raise ImportRowError(f'Invalid priority order "{raw_priority}"', field="priority_order")

        contact = EmergencyContact(
            tenant_id=ctx.tenant_id,
            student_id=student.id,
            name=data["contact_name"],
            relationship_type=data["relationship"],
            phone_primary=data["phone_primary"],
            phone_secondary=_blank_to_none(data.get("phone_secondary")),
            email=_blank_to_none(data.get("email")),
            priority_order=priority_order,
            notes=_blank_to_none(data.get("notes")),
        )
        db.add(contact)
        await db.flush()
        return InsertOutcome.linked(contact.id)


class MedicalConditionImportStrategy(ImportStrategy):
    """Medical conditions for existing students."""

    import_type = ImportType.MEDICAL_CONDITIONS
    model = MedicalCondition
    entity_type = "medical_conditions"

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        self.require_student(ctx, existing)

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        student = await find_student(
            db, ctx.tenant_id, data["student_first_name"], data["student_last_name"]
        )
        condition = MedicalCondition(
            tenant_id=ctx.tenant_id,
            student_id=student.id,
            condition_type=data["condition_type"],
            condition_name=data["condition_name"],
            severity=data["severity"],
            description=_blank_to_none(data.get("description")),
            action_plan=_blank_to_none(data.get("action_plan")),
            requires_medication=data.get("requires_medication") == "true",
            medication_name=_blank_to_none(data.get("medication_name")),
            medication_location=_blank_to_none(data.get("medication_location")),
        )
        db.add(condition)
        await db.flush()
        return InsertOutcome.linked(condition.id)


class StaffImportStrategy(ImportStrategy):
    """Staff memberships, creating accounts for unknown emails.

    The recorded entity is the tenant membership, so rollback removes
    access without deleting the account.
    """

    import_type = ImportType.STAFF
    model = TenantUser
    entity_type = "tenant_users"

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        role = ctx.value("role")
        if role and role.lower() not in existing.role_names:
            ctx.add_error(
                "role",
                f'Role "{role}" doesn\'t exist. Available roles: {", ".join(existing.role_names)}',
            )

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        role_name = data["role"]
        result = await db.execute(
            select(TenantRole).where(
                TenantRole.tenant_id == ctx.tenant_id,
                TenantRole.deleted_at.is_(None),
                func.lower(TenantRole.name) == role_name.strip().lower(),
            )
        )
        role = result.scalars().first()
        if not role:
            raise ImportRowError(f'Role "{role_name}" not found', field="role")

        membership = await grant_staff_membership(
            db,
            ctx.tenant_id,
            role.id,
            data["email"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            created_by=ctx.user_id,
            expiry_days=ctx.invitation_expiry_days,
        )
        if membership is None:
            return InsertOutcome.unchanged()
        return InsertOutcome.linked(membership.id)


class AttendanceImportStrategy(ImportStrategy):
    """Attendance records, upserted on (tenant, student, date)."""

    import_type = ImportType.ATTENDANCE
    model = AttendanceRecord
    entity_type = "attendance_records"

    def normalize_enum(self, import_field: ImportField, value: str) -> str | None:
        if import_field.key == "status":
            return normalize_attendance_status(value)
        return super().normalize_enum(import_field, value)

    def enum_error(self, import_field: ImportField, value: str) -> str:
        if import_field.key == "status":
            return (
                f'Invalid attendance status "{value}". '
                f'Must be one of: {", ".join(ATTENDANCE_STATUSES)}'
            )
        return super().enum_error(import_field, value)

    def validate_extra(self, ctx: RowContext, existing: ExistingData) -> None:
        student_key = self.require_student(ctx, existing)

        record_date = ctx.value("date")
        # Only coerced (ISO) dates compare chronologically as strings
        date_is_valid = bool(record_date) and not ctx.has_error("date")
        if date_is_valid and record_date > ctx.today.isoformat():
            ctx.add_warning("date", f"Date {record_date} is in the future - intentional?")

        class_name = ctx.value("class_name")
        if class_name and class_name.lower() not in existing.class_names:
            ctx.add_warning(
                "class_name",
                f'Class "{class_name}" doesn\'t exist. Attendance will be recorded without a class link.',
            )

        for time_field in ("check_in_time", "check_out_time"):
            time_value = ctx.value(time_field)
            if time_value and not parse_time_string(time_value):
                ctx.add_warning(
                    time_field,
                    f'Invalid time format "{time_value}". Use HH:MM or HH:MM AM/PM. Will be skipped.',
                )

        attendance_key = f"{student_key}|{record_date}"
        if attendance_key != "||":
            if attendance_key in ctx.seen_in_file:
                ctx.add_warning(
                    "date",
                    f"Duplicate attendance record for this student on {record_date}. "
                    "Later row will overwrite.",
                )
            ctx.seen_in_file.add(attendance_key)

        if attendance_key in existing.attendance_keys:
            ctx.is_duplicate = True
            ctx.add_warning(
                "date",
                f"Attendance record already exists for this student on {record_date}. Will be overwritten.",
            )

    async def insert(self, db: AsyncSession, ctx: InsertContext, data: dict[str, str]) -> InsertOutcome:
        student = await find_student(
            db, ctx.tenant_id, data["student_first_name"], data["student_last_name"]
        )
        record_date = data["date"]

        class_id = None
        class_name = _blank_to_none(data.get("class_name"))
        if class_name:
            school_class = await _find_class(db, ctx.tenant_id, class_name)
            class_id = school_class.id if school_class else None

        values: dict[str, Any] = {
            "class_id": class_id,
            "status": data["status"],
            "check_in_time": _to_datetime(time_to_timestamp(record_date, data.get("check_in_time"))),
            "check_out_time": _to_datetime(time_to_timestamp(record_date, data.get("check_out_time"))),
            "recorded_by": ctx.user_id,
            "notes": _blank_to_none(data.get("notes")),
            "deleted_at": None,
        }

        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.tenant_id == ctx.tenant_id,
                AttendanceRecord.student_id == student.id,
                AttendanceRecord.date == date.fromisoformat(record_date),
            )
        )
        record = result.scalar_one_or_none()
        if record:
            for key, value in values.items():
                setattr(record, key, value)
        else:
            record = AttendanceRecord(
                tenant_id=ctx.tenant_id,
                student_id=student.id,
                date=date.fromisoformat(record_date),
                **values,
            )
            db.add(record)
        await db.flush()
        return InsertOutcome.linked(record.id)


def _to_datetime(timestamp: str | None) -> datetime | None:
    if not timestamp:
        return None
    return datetime.fromisoformat(timestamp)


STRATEGIES: Mapping[ImportType, ImportStrategy] = MappingProxyType({
    strategy.import_type: strategy
    for strategy in (
        StudentImportStrategy(),
        GuardianImportStrategy(),
        EmergencyContactImportStrategy(),
        MedicalConditionImportStrategy(),
        StaffImportStrategy(),
        AttendanceImportStrategy(),
    )
})


def get_strategy(import_type: ImportType | str) -> ImportStrategy:
    """Get the strategy registered for an import type."""
    return STRATEGIES[ImportType(import_type)]
