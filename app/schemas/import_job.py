"""Data import schemas: parsed CSV, mappings, validation results and jobs."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.import_job import ImportRecordStatus, ImportStatus, ImportType

FieldType = Literal["text", "date", "email", "phone", "enum", "boolean"]

# Column mapping = {csv_header: field_key}; headers mapped to "" or None are dropped
ColumnMapping = dict[str, str | None]


class ImportField(BaseModel):
    """A target field an import type accepts."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    required: bool = False
    description: str = ""
    example: str = ""
    type: FieldType = "text"
    enum_values: tuple[str, ...] = ()


class ParsedCSV(BaseModel):
    """Header/row table produced by the CSV parser."""

    headers: list[str]
    rows: list[dict[str, str]]
    raw_row_count: int = 0


class CSVParseResult(BaseModel):
    """Parser outcome: exactly one of data/error is set."""

    data: ParsedCSV | None = None
    error: str | None = None


class MappingSuggestion(BaseModel):
    """A proposed header -> field mapping with a confidence in (0, 1]."""

    csv_header: str
    target_field: str
    confidence: float


class RowIssue(BaseModel):
    """A row-level validation error or warning."""

    row: int
    field: str = ""
    message: str


class ValidatedRow(BaseModel):
    """One CSV row after mapping, coercion and cross-entity checks."""

    row_number: int
    raw_data: dict[str, str] = Field(default_factory=dict)
    mapped_data: dict[str, str] = Field(default_factory=dict)
    is_valid: bool = True
    errors: list[RowIssue] = Field(default_factory=list)
    warnings: list[RowIssue] = Field(default_factory=list)
    is_duplicate: bool = False


class ValidationSummary(BaseModel):
    """Counts for the pre-import report."""

    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0
    warning_rows: int = 0
    duplicate_rows: int = 0
    errors_by_field: dict[str, int] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Per-row validation outcome plus summary."""

    is_valid: bool
    rows: list[ValidatedRow]
    summary: ValidationSummary


class ImportMetadata(BaseModel):
    """Options stored on the job.

    Only the declared fields change how rows are written; any other keys
    are kept on the job as-is.
    """

    model_config = ConfigDict(extra="allow")

    source_platform: str | None = None
    default_class_id: UUID | None = None
    default_enrollment_status: str | None = None


class MassInviteParentRow(BaseModel):
    """One parent to invite, identified by the student they belong to."""

    guardian_email: str = ""
    guardian_first_name: str = ""
    guardian_last_name: str = ""
    student_first_name: str
    student_last_name: str
    relationship: str = ""
    phone: str | None = None
    is_primary: bool = False


class MassInviteStaffRow(BaseModel):
    """One staff member to invite with a tenant role name."""

    email: str = ""
    first_name: str = ""
    last_name: str = ""
    role: str


class MassInviteError(BaseModel):
    row: int
    email: str
    message: str


class MassInviteResult(BaseModel):
    """Outcome of a bulk invite: every row is invited, skipped or an error."""

    total: int = 0
    invited: int = 0
    skipped: int = 0
    errors: list[MassInviteError] = Field(default_factory=list)


# === Requests ===


class SuggestMappingRequest(BaseModel):
    """Request body for mapping suggestions."""

    import_type: ImportType
    headers: list[str]


class ValidateImportRequest(BaseModel):
    """Request body for a validation pass."""

    import_type: ImportType
    parsed_csv: ParsedCSV
    column_mapping: ColumnMapping


class ExecuteImportRequest(BaseModel):
    """Request body for executing an import."""

    import_type: ImportType
    file_name: str = Field(min_length=1, max_length=255)
    column_mapping: ColumnMapping
    validated_rows: list[ValidatedRow]
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)
    skip_duplicates: bool = True


class MassInviteParentsRequest(BaseModel):
    rows: list[MassInviteParentRow]


class MassInviteStaffRequest(BaseModel):
    rows: list[MassInviteStaffRow]


# === Responses ===


class ParsePreviewResponse(BaseModel):
    """Parsed file plus suggested mapping."""

    parsed_csv: ParsedCSV
    suggestions: list[MappingSuggestion] = Field(default_factory=list)


class ImportJobResponse(BaseModel):
    """Schema for import job response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    created_by: UUID | None = None
    import_type: ImportType
    status: ImportStatus
    file_name: str
    column_mapping: dict[str, str | None] = Field(default_factory=dict)
    total_rows: int = 0
    imported_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[RowIssue] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict, validation_alias="job_metadata")
    created_at: datetime | None = None
    completed_at: datetime | None = None


class ImportJobRecordResponse(BaseModel):
    """Schema for a per-row import outcome."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    import_job_id: UUID
    row_number: int
    status: ImportRecordStatus
    entity_type: str
    entity_id: UUID | None = None
    deferred_entity_type: str | None = None
    deferred_entity_id: UUID | None = None
    raw_data: dict = Field(default_factory=dict)
    mapped_data: dict = Field(default_factory=dict)
    error_message: str | None = None


class RollbackResponse(BaseModel):
    """Result of rolling back a job."""

    rolled_back_count: int
