"""Student model and the records hanging off a student."""

import uuid
from datetime import date
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import TenantScopedModel


class Gender(str, Enum):
    """Gender options."""

    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"
    OTHER = "other"


class EnrollmentStatus(str, Enum):
    """Lifecycle of a student at the school."""

    INQUIRY = "inquiry"
    APPLICANT = "applicant"
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"
    GRADUATED = "graduated"


class Student(TenantScopedModel):
    """Student entity."""

    __tablename__ = "students"
    __table_args__ = (
        Index(
            "idx_students_tenant_name",
            "tenant_id",
            "last_name",
            "first_name",
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    preferred_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    enrollment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrollmentStatus.ACTIVE.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Guardian(TenantScopedModel):
    """Link between a parent/carer account and a student."""

    __tablename__ = "guardians"
    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", "student_id", name="uq_guardians_tenant_user_student"),
        Index("idx_guardians_student", "student_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    relationship_type: Mapped[str] = mapped_column(
        "relationship",
        String(30),
        nullable=False,
        default="other",
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_emergency_contact: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pickup_authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)


class EmergencyContact(TenantScopedModel):
    """Person to call for a student when guardians can't be reached."""

    __tablename__ = "emergency_contacts"
    __table_args__ = (Index("idx_emergency_contacts_student", "student_id"),)

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    relationship_type: Mapped[str] = mapped_column("relationship", String(50), nullable=False)
    phone_primary: Mapped[str] = mapped_column(String(50), nullable=False)
    phone_secondary: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    priority_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class MedicalCondition(TenantScopedModel):
    """A medical condition staff need to know about."""

    __tablename__ = "medical_conditions"
    __table_args__ = (Index("idx_medical_conditions_student", "student_id"),)

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    condition_type: Mapped[str] = mapped_column(String(30), nullable=False)
    condition_name: Mapped[str] = mapped_column(String(200), nullable=False)
    severity: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    action_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    requires_medication: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    medication_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    medication_location: Mapped[str | None] = mapped_column(String(200), nullable=True)
