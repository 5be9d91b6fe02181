"""Declarative base and the column mixins every table is built from."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from uuid_extensions import uuid7

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    # Fetch server-generated timestamps on flush; async sessions can't lazy-load them
    __mapper_args__ = {"eager_defaults": True}


class UUIDKeyMixin:
    """Time-ordered uuid7 primary key, so ids sort by creation."""

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid7)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """Rows are hidden by stamping deleted_at; import rollback relies on this."""

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GlobalModel(Base, UUIDKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Platform-wide rows (tenants, user accounts)."""

    __abstract__ = True


class TenantScopedModel(Base, UUIDKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Rows owned by one school.

    Every query against these tables must filter on tenant_id.
    """

    __abstract__ = True

    @declared_attr
    def tenant_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
