"""Invitation models for onboarding parents and staff."""

import secrets
import string
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import TenantScopedModel


class InvitationStatus(str, Enum):
    """Status of an invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


# Ambiguous characters (0/O, 1/I) are left out so codes can be read aloud
_CODE_ALPHABET = "".join(
    c for c in string.ascii_uppercase + string.digits if c not in "0O1I"
)


def generate_invitation_code(length: int = 8) -> str:
    """Generate a random invitation code."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


class _InvitationMixin:
    """Columns shared by every invitation kind."""

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    invitation_code: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        nullable=False,
        default=generate_invitation_code,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvitationStatus.PENDING.value,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ParentInvitation(_InvitationMixin, TenantScopedModel):
    """Invitation for a parent to create an account and be linked to a student.

    Guardian imports create these when no account exists for the email yet.
    """

    __tablename__ = "parent_invitations"
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", "student_id", name="uq_parent_invitations_tenant_email_student"),
        Index(
            "idx_parent_invitations_email",
            "email",
            "tenant_id",
            postgresql_where=text("status = 'pending'"),
        ),
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    relationship_type: Mapped[str | None] = mapped_column("relationship", String(30), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class StaffInvitation(_InvitationMixin, TenantScopedModel):
    """Account-setup invitation for a staff member created by an import."""

    __tablename__ = "staff_invitations"
    __table_args__ = (
        Index(
            "idx_staff_invitations_email",
            "email",
            "tenant_id",
            postgresql_where=text("status = 'pending'"),
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
