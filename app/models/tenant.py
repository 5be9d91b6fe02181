"""Tenant, tenant roles and tenant membership models."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import GlobalModel, JSONType, TenantScopedModel

# Name of the tenant role given to guardians linked by an import
PARENT_ROLE_NAME = "Parent"


class Tenant(GlobalModel):
    """Multi-tenant organization (a school)."""

    __tablename__ = "tenants"
    __table_args__ = (
        Index("idx_tenants_slug", "slug", postgresql_where=text("deleted_at IS NULL")),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    settings: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TenantRole(TenantScopedModel):
    """A named role defined by a tenant (e.g. "Guide", "Parent")."""

    __tablename__ = "roles"
    __table_args__ = (
        Index(
            "idx_roles_tenant_name",
            "tenant_id",
            "name",
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)


class TenantUser(TenantScopedModel):
    """Membership of a user in a tenant, with the tenant role they hold."""

    __tablename__ = "tenant_users"
    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_users_tenant_user"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="memberships", lazy="selectin")
    role = relationship("TenantRole", lazy="selectin")
