"""Bulk invitations for schools bringing their existing families and staff across.

Each row runs in its own savepoint and ends up invited, skipped (already
invited, linked or a member) or reported as an error. One bad row never
stops the batch, and the batch is audited once at the end.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Literal, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ImportRowError, ValidationException
from app.models import AuditAction, InvitationStatus, ParentInvitation, TenantRole, User
from app.schemas.common import ErrorDetail
from app.schemas.import_job import (
    MassInviteError,
    MassInviteParentRow,
    MassInviteResult,
    MassInviteStaffRow,
)
from app.services.audit_service import log_audit
from app.services.data_import.normalizers import (
    is_valid_email,
    normalize_phone,
    normalize_relationship,
)
from app.services.data_import.strategies import (
    ensure_parent_membership,
    find_guardian_link,
    find_student,
    find_user_by_email,
    grant_staff_membership,
    upsert_guardian,
    upsert_parent_invitation,
)
from app.utils.security import unusable_password_hash

logger = logging.getLogger(__name__)

RowOutcome = Literal["invited", "skipped"]
RowT = TypeVar("RowT", MassInviteParentRow, MassInviteStaffRow)

# Invitations in these states are left alone; expired or revoked ones are re-issued
_LIVE_INVITATION_STATUSES = (InvitationStatus.PENDING.value, InvitationStatus.ACCEPTED.value)


class MassInviter:
    """Invites many parents or staff members of one tenant at once."""

    def __init__(
        self,
        db: AsyncSession,
        tenant_id: UUID,
        user_id: UUID | None,
        *,
        invitation_expiry_days: int | None = None,
        max_rows: int | None = None,
    ):
        self.db = db
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.invitation_expiry_days = invitation_expiry_days or settings.import_invitation_expiry_days
        self.max_rows = max_rows or settings.import_max_rows

    async def invite_parents(self, rows: Sequence[MassInviteParentRow]) -> MassInviteResult:
        """Invite parents of existing students.

        Accounts that already exist are linked to the student straight away;
        unknown emails get a pending parent invitation.
        """
        return await self._run(
            "mass_invite_parents",
            "parent_invitations",
            rows,
            self._invite_parent,
            lambda row: row.guardian_email,
        )

    async def onboard_parents(self, rows: Sequence[MassInviteParentRow]) -> MassInviteResult:
        """Create parent accounts, memberships and guardian links in one pass.

        New accounts also get a pending invitation so the parent can set a
        password.
        """
        return await self._run(
            "mass_onboard_parents",
            "guardians",
            rows,
            self._onboard_parent,
            lambda row: row.guardian_email,
        )

    async def invite_staff(self, rows: Sequence[MassInviteStaffRow]) -> MassInviteResult:
        """Give staff members a membership with a tenant role, creating accounts as needed."""
        roles = await self._load_roles()

        async def invite(row: MassInviteStaffRow, email: str) -> RowOutcome:
            return await self._invite_staff_member(row, email, roles)

        return await self._run("mass_invite_staff", "tenant_users", rows, invite, lambda row: row.email)

    async def _run(
        self,
        batch_type: str,
        entity_type: str,
        rows: Sequence[RowT],
        handle_row: Callable[[RowT, str], Awaitable[RowOutcome]],
        email_of: Callable[[RowT], str],
    ) -> MassInviteResult:
        self._check_batch(rows)
        result = MassInviteResult(total=len(rows))

        for index, row in enumerate(rows):
            row_number = index + 1
            email = (email_of(row) or "").strip().lower()
            try:
                if not is_valid_email(email):
                    raise ImportRowError("Invalid email address", field="email")
                async with self.db.begin_nested():
                    outcome = await handle_row(row, email)
            except ImportRowError as e:
                result.errors.append(MassInviteError(row=row_number, email=email, message=e.message))
                continue
            except Exception as e:
                logger.warning(f"{batch_type} row {row_number} failed: {type(e).__name__}: {e}")
                result.errors.append(MassInviteError(row=row_number, email=email, message=str(e)))
                continue

            if outcome == "invited":
                result.invited += 1
            else:
                result.skipped += 1

        await log_audit(
            self.db,
            AuditAction.INVITATION_SENT,
            entity_type,
            None,
            {
                "batch_type": batch_type,
                "total": result.total,
                "invited": result.invited,
                "skipped": result.skipped,
                "errors": len(result.errors),
            },
            tenant_id=self.tenant_id,
            user_id=self.user_id,
        )
        await self.db.commit()

        logger.info(
            f"{batch_type} for tenant {self.tenant_id}: {result.invited} invited, "
            f"{result.skipped} skipped, {len(result.errors)} errors"
        )
        return result

    def _check_batch(self, rows: Sequence) -> None:
        if not rows:
            raise ValidationException([ErrorDetail(field="rows", message="No rows to invite")])
        if len(rows) > self.max_rows:
            raise ValidationException(
                [
                    ErrorDetail(
                        field="rows",
                        message=f"Too many rows ({len(rows)}). Maximum is {self.max_rows} rows per batch.",
                    )
                ]
            )

    async def _link_guardian(self, user_id: UUID, student_id: UUID, row: MassInviteParentRow) -> None:
        await ensure_parent_membership(self.db, self.tenant_id, user_id)
        await upsert_guardian(
            self.db,
            self.tenant_id,
            user_id,
            student_id,
            relationship=normalize_relationship(row.relationship),
            is_primary=row.is_primary,
            phone=normalize_phone(row.phone) if row.phone else None,
        )

    async def _issue_parent_invitation(self, email: str, student_id: UUID, row: MassInviteParentRow) -> None:
        await upsert_parent_invitation(
            self.db,
            self.tenant_id,
            student_id,
            email,
            first_name=row.guardian_first_name.strip(),
            last_name=row.guardian_last_name.strip(),
            relationship=normalize_relationship(row.relationship),
            created_by=self.user_id,
            expiry_days=self.invitation_expiry_days,
        )

    async def _invite_parent(self, row: MassInviteParentRow, email: str) -> RowOutcome:
        student = await find_student(self.db, self.tenant_id, row.student_first_name, row.student_last_name)

        result = await self.db.execute(
            select(ParentInvitation).where(
                ParentInvitation.tenant_id == self.tenant_id,
                ParentInvitation.email == email,
                ParentInvitation.student_id == student.id,
                ParentInvitation.deleted_at.is_(None),
            )
        )
        invitation = result.scalar_one_or_none()
        if invitation and invitation.status in _LIVE_INVITATION_STATUSES:
            return "skipped"

        user = await find_user_by_email(self.db, email)
        if user:
            link = await find_guardian_link(self.db, self.tenant_id, user.id, student.id)
            if link and link.deleted_at is None:
                return "skipped"
            await self._link_guardian(user.id, student.id, row)
            return "invited"

        await self._issue_parent_invitation(email, student.id, row)
        return "invited"

    async def _onboard_parent(self, row: MassInviteParentRow, email: str) -> RowOutcome:
        student = await find_student(self.db, self.tenant_id, row.student_first_name, row.student_last_name)

        user = await find_user_by_email(self.db, email)
        is_new_user = user is None
        if is_new_user:
            user = User(
                email=email,
                password_hash=unusable_password_hash(),
                first_name=row.guardian_first_name.strip(),
                last_name=row.guardian_last_name.strip(),
                is_active=True,
            )
            self.db.add(user)
            await self.db.flush()

        await self._link_guardian(user.id, student.id, row)
        user.bind_tenant(self.tenant_id)
        await self.db.flush()

        if is_new_user:
            await self._issue_parent_invitation(email, student.id, row)
        return "invited"

    async def _load_roles(self) -> dict[str, UUID]:
        """Tenant roles keyed by lower-cased name, in name order."""
        result = await self.db.execute(
            select(TenantRole.name, TenantRole.id)
            .where(
                TenantRole.tenant_id == self.tenant_id,
                TenantRole.deleted_at.is_(None),
            )
            .order_by(TenantRole.name)
        )
        return {name.lower(): role_id for name, role_id in result.all()}

    async def _invite_staff_member(
        self,
        row: MassInviteStaffRow,
        email: str,
        roles: dict[str, UUID],
    ) -> RowOutcome:
        role_id = roles.get(row.role.strip().lower())
        if not role_id:
            raise ImportRowError(
                f'Role "{row.role}" not found. Available: {", ".join(roles)}',
                field="role",
            )

        membership = await grant_staff_membership(
            self.db,
            self.tenant_id,
            role_id,
            email,
            first_name=row.first_name.strip(),
            last_name=row.last_name.strip(),
            created_by=self.user_id,
            expiry_days=self.invitation_expiry_days,
        )
        return "skipped" if membership is None else "invited"
