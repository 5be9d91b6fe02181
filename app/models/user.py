"""User account model with access-level roles."""

import uuid
from enum import Enum

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import GlobalModel, JSONType


class Role(str, Enum):
    """Access levels carried in the auth token."""

    SUPER_ADMIN = "SUPER_ADMIN"  # Platform-wide admin
    SCHOOL_ADMIN = "SCHOOL_ADMIN"  # Tenant admin
    TEACHER = "TEACHER"
    PARENT = "PARENT"


class User(GlobalModel):
    """Platform account. Tenant access is granted through TenantUser memberships."""

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "idx_users_email",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Account-level claims (e.g. the tenant the account is bound to)
    app_metadata: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Relationships
    memberships = relationship("TenantUser", back_populates="user", lazy="selectin")

    def bind_tenant(self, tenant_id: uuid.UUID) -> None:
        """Record the tenant this account belongs to in its metadata."""
        # Reassign so the JSON column is flagged dirty
        self.app_metadata = {**(self.app_metadata or {}), "tenant_id": str(tenant_id)}
