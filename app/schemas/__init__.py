"""Pydantic schemas for request/response validation."""

from app.schemas.common import APIResponse, ErrorDetail, ErrorResponse, PaginationMeta
from app.schemas.import_job import (
    ColumnMapping,
    CSVParseResult,
    ExecuteImportRequest,
    FieldType,
    ImportField,
    ImportJobRecordResponse,
    ImportJobResponse,
    ImportMetadata,
    MappingSuggestion,
    MassInviteError,
    MassInviteParentRow,
    MassInviteParentsRequest,
    MassInviteResult,
    MassInviteStaffRequest,
    MassInviteStaffRow,
    ParsedCSV,
    ParsePreviewResponse,
    RollbackResponse,
    RowIssue,
    SuggestMappingRequest,
    ValidatedRow,
    ValidateImportRequest,
    ValidationResult,
    ValidationSummary,
)

__all__ = [
    # Common
    "APIResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Import
    "ColumnMapping",
    "CSVParseResult",
    "ExecuteImportRequest",
    "FieldType",
    "ImportField",
    "ImportJobRecordResponse",
    "ImportJobResponse",
    "ImportMetadata",
    "MappingSuggestion",
    "MassInviteError",
    "MassInviteParentRow",
    "MassInviteParentsRequest",
    "MassInviteResult",
    "MassInviteStaffRequest",
    "MassInviteStaffRow",
    "ParsedCSV",
    "ParsePreviewResponse",
    "RollbackResponse",
    "RowIssue",
    "SuggestMappingRequest",
    "ValidatedRow",
    "ValidateImportRequest",
    "ValidationResult",
    "ValidationSummary",
]
