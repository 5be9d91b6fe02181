"""Row validation for CSV imports.

Pure functions of their inputs: the caller supplies the existing-data
snapshot, so nothing here touches the database.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from app.models.import_job import ImportType
from app.schemas.import_job import (
    ImportField,
    ParsedCSV,
    RowIssue,
    ValidatedRow,
    ValidationResult,
    ValidationSummary,
)
from app.services.data_import.existing_data import ExistingData
from app.services.data_import.field_registry import get_fields
from app.services.data_import.normalizers import (
    is_valid_email,
    normalize_phone,
    parse_boolean,
    parse_flexible_date,
)
from app.services.data_import.strategies import ImportStrategy, RowContext, get_strategy


def project_row(raw_row: Mapping[str, str], column_mapping: Mapping[str, str | None]) -> dict[str, str]:
    """Rename CSV columns to field keys, dropping unmapped headers."""
    mapped: dict[str, str] = {}
    for csv_header, field_key in column_mapping.items():
        if field_key and csv_header in raw_row:
            mapped[field_key] = raw_row[csv_header]
    return mapped


def check_required(
    fields: Iterable[ImportField],
    data: Mapping[str, str],
    row_number: int,
) -> list[RowIssue]:
    """Report every required field that is missing or blank."""
    return [
        RowIssue(row=row_number, field=field.key, message=f"{field.label} is required")
        for field in fields
        if field.required and not (data.get(field.key) or "").strip()
    ]


def coerce_fields(
    strategy: ImportStrategy,
    fields: Iterable[ImportField],
    data: dict[str, str],
    row_number: int,
) -> list[RowIssue]:
    """Normalize typed values in place and report the ones that don't parse.

    Coerced values are stable: running this again over its own output
    changes nothing and reports nothing.
    """
    errors: list[RowIssue] = []

    for field in fields:
        value = (data.get(field.key) or "").strip()
        if not value:
            continue

        message = None
        if field.type == "date":
            parsed = parse_flexible_date(value)
            if parsed:
                data[field.key] = parsed
            else:
                message = f'Invalid date format "{value}". Use DD/MM/YYYY, YYYY-MM-DD, or MM/DD/YYYY'
        elif field.type == "email":
            if is_valid_email(value):
                data[field.key] = value.lower()
            else:
                message = f'Invalid email address "{value}"'
        elif field.type == "enum":
            normalized = strategy.normalize_enum(field, value)
            if normalized:
                data[field.key] = normalized
            else:
                message = strategy.enum_error(field, value)
        elif field.type == "boolean":
            parsed_bool = parse_boolean(value)
            if parsed_bool is None:
                message = f'Invalid boolean value "{value}". Use yes/no, true/false, or 1/0'
            else:
                data[field.key] = "true" if parsed_bool else "false"
        elif field.type == "phone":
            data[field.key] = normalize_phone(value)

        if message:
            errors.append(RowIssue(row=row_number, field=field.key, message=message))

    return errors


def build_summary(rows: Sequence[ValidatedRow]) -> ValidationSummary:
    """Count rows per outcome and errors per field."""
    errors_by_field: dict[str, int] = {}
    for row in rows:
        for error in row.errors:
            errors_by_field[error.field] = errors_by_field.get(error.field, 0) + 1

    return ValidationSummary(
        total_rows=len(rows),
        valid_rows=sum(1 for row in rows if row.is_valid),
        error_rows=sum(1 for row in rows if row.errors),
        warning_rows=sum(1 for row in rows if row.warnings),
        duplicate_rows=sum(1 for row in rows if row.is_duplicate),
        errors_by_field=errors_by_field,
    )


def validate_import(
    import_type: ImportType | str,
    parsed_csv: ParsedCSV,
    column_mapping: Mapping[str, str | None],
    existing_data: ExistingData,
    *,
    today: date | None = None,
) -> ValidationResult:
    """Validate every row of a parsed CSV for preview before import.

    Args:
        import_type: Which entity the rows describe.
        parsed_csv: Output of the CSV parser.
        column_mapping: Confirmed {csv_header: field_key} mapping.
        existing_data: Snapshot of the tenant's current records.
        today: Reference date for future-date checks.

    Returns:
        Per-row results (row numbers start at 1) and a summary.
    """
    strategy = get_strategy(import_type)
    fields = get_fields(import_type)
    today = today or date.today()
    seen_in_file: set[str] = set()
    rows: list[ValidatedRow] = []

    for index, raw_row in enumerate(parsed_csv.rows):
        row_number = index + 1
        data = project_row(raw_row, column_mapping)
        ctx = RowContext(row_number=row_number, data=data, today=today, seen_in_file=seen_in_file)

        ctx.errors.extend(check_required(fields, data, row_number))
        ctx.errors.extend(coerce_fields(strategy, fields, data, row_number))
        strategy.validate_extra(ctx, existing_data)

        rows.append(
            ValidatedRow(
                row_number=row_number,
                raw_data=dict(raw_row),
                mapped_data=data,
                is_valid=not ctx.errors,
                errors=ctx.errors,
                warnings=ctx.warnings,
                is_duplicate=ctx.is_duplicate,
            )
        )

    summary = build_summary(rows)
    return ValidationResult(is_valid=summary.error_rows == 0, rows=rows, summary=summary)
