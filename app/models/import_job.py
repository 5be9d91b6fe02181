"""Import job models for CSV data imports."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import JSONType, TenantScopedModel


class ImportType(str, Enum):
    """Entities a CSV import can create."""

    STUDENTS = "students"
    GUARDIANS = "guardians"
    EMERGENCY_CONTACTS = "emergency_contacts"
    MEDICAL_CONDITIONS = "medical_conditions"
    STAFF = "staff"
    ATTENDANCE = "attendance"


class ImportStatus(str, Enum):
    """Status of an import job."""

    PENDING = "pending"
    VALIDATING = "validating"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


# Jobs in these states may be rolled back
ROLLBACK_ALLOWED_STATUSES = frozenset({
    ImportStatus.COMPLETED.value,
    ImportStatus.COMPLETED_WITH_ERRORS.value,
})


class ImportRecordStatus(str, Enum):
    """Outcome of a single CSV row."""

    PENDING = "pending"
    IMPORTED = "imported"
    SKIPPED = "skipped"
    ERROR = "error"


class ImportJob(TenantScopedModel):
    """One import attempt: a CSV file committed for writing."""

    __tablename__ = "import_jobs"
    __table_args__ = (Index("idx_import_jobs_tenant_created", "tenant_id", "created_at"),)

    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    import_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=ImportStatus.PENDING.value,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    column_mapping: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    imported_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    job_metadata: Mapped[dict] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def can_rollback(self) -> bool:
        """Check if the job is in a state that allows rollback."""
        return self.status in ROLLBACK_ALLOWED_STATUSES

    @property
    def processed_rows(self) -> int:
        """Rows that have landed in one of the three outcome buckets."""
        return self.imported_count + self.skipped_count + self.error_count

    def finalize(self, completed_at: datetime) -> str:
        """Derive the terminal status from the counts and stamp completion."""
        if self.error_count == 0:
            self.status = ImportStatus.COMPLETED.value
        elif self.imported_count > 0:
            self.status = ImportStatus.COMPLETED_WITH_ERRORS.value
        else:
            self.status = ImportStatus.FAILED.value
        self.completed_at = completed_at
        return self.status


class ImportJobRecord(TenantScopedModel):
    """Outcome of one CSV row within an import job.

    The only place that knows which entity came from which row, so rollback
    reads it to find what to revert.
    """

    __tablename__ = "import_job_records"
    __table_args__ = (
        Index("idx_import_job_records_job", "import_job_id", "row_number"),
    )

    import_job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("import_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ImportRecordStatus.PENDING.value,
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    # Set when the write was deferred (e.g. a parent invitation instead of a guardian link)
    deferred_entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deferred_entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    raw_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    mapped_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
