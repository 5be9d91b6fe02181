#!/usr/bin/env python3
"""
CLI script to import a CSV file for a tenant without going through the API.

Usage:
    python scripts/import_csv.py --tenant-id <uuid> --user-id <uuid> --type students --file students.csv

Columns are mapped automatically from confident suggestions; override or add
mappings with --mapping "CSV Header=field_key" (repeatable). Use --dry-run to
validate only.
"""

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import settings
from app.database import engine, get_db_context
from app.models import ImportType
from app.schemas.import_job import ImportMetadata
from app.services.data_import import (
    ImportExecutor,
    fetch_existing_data,
    get_fields,
    parse_csv,
    suggest_column_mapping,
    validate_import,
)
from app.services.data_import.column_mapper import mapping_from_suggestions

AUTO_MAP_CONFIDENCE = 0.7


def parse_mapping_overrides(values: list[str]) -> dict[str, str]:
    """Parse repeated "CSV Header=field_key" arguments."""
    overrides = {}
    for value in values:
        header, sep, field_key = value.partition("=")
        if not sep or not header.strip():
            raise ValueError(f'Invalid mapping "{value}". Use "CSV Header=field_key"')
        overrides[header.strip()] = field_key.strip() or None
    return overrides


async def run_import(
    tenant_id: uuid.UUID,
    user_id: uuid.UUID | None,
    import_type: ImportType,
    file_path: Path,
    mapping_overrides: dict[str, str],
    skip_duplicates: bool = True,
    dry_run: bool = False,
    min_confidence: float = AUTO_MAP_CONFIDENCE,
) -> bool:
    """Parse, validate and (unless dry_run) execute one import."""
    print("\n" + "=" * 50)
    print(f"{settings.app_name} - CSV Import ({import_type.value})")
    print("=" * 50 + "\n")

    raw = file_path.read_text(encoding="utf-8")
    parsed = parse_csv(raw, max_rows=settings.import_max_rows)
    if parsed.error:
        print(f"Parse error: {parsed.error}")
        return False

    fields = get_fields(import_type)
    suggestions = suggest_column_mapping(parsed.data.headers, fields)
    column_mapping = mapping_from_suggestions(suggestions, min_confidence=min_confidence)
    column_mapping.update(mapping_overrides)

    print(f"File: {file_path.name} ({parsed.data.raw_row_count} rows)")
    print("Column mapping:")
    for header in parsed.data.headers:
        print(f"  {header!r:30} -> {column_mapping.get(header) or '(ignored)'}")

    async with get_db_context() as session:
        existing = await fetch_existing_data(session, tenant_id, import_type)
        result = validate_import(import_type, parsed.data, column_mapping, existing)

        summary = result.summary
        print("\nValidation:")
        print(f"  Total rows:     {summary.total_rows}")
        print(f"  Valid rows:     {summary.valid_rows}")
        print(f"  Rows w/ errors: {summary.error_rows}")
        print(f"  Rows w/ warns:  {summary.warning_rows}")
        print(f"  Duplicates:     {summary.duplicate_rows}")
        for row in result.rows:
            for error in row.errors:
                print(f"  Row {error.row}: {error.message}")

        if dry_run:
            print("\nDry run - nothing was imported.")
            return result.is_valid

        executor = ImportExecutor(session, tenant_id, user_id)
        job = await executor.execute(
            import_type,
            file_path.name,
            column_mapping,
            result.rows,
            metadata=ImportMetadata(source_platform="cli"),
            skip_duplicates=skip_duplicates,
        )

        print("\n" + "=" * 50)
        print(f"Import {job.status}")
        print("=" * 50)
        print(f"  Job ID:   {job.id}")
        print(f"  Imported: {job.imported_count}")
        print(f"  Skipped:  {job.skipped_count}")
        print(f"  Errors:   {job.error_count}")
        print("=" * 50 + "\n")

        return job.error_count == 0


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Import a CSV file into a tenant")
    parser.add_argument("--tenant-id", required=True, type=uuid.UUID, help="Tenant ID")
    parser.add_argument("--user-id", type=uuid.UUID, help="User recorded as the importer")
    parser.add_argument(
        "--type",
        "-t",
        required=True,
        choices=[t.value for t in ImportType],
        help="Import type",
    )
    parser.add_argument("--file", "-f", required=True, type=Path, help="CSV file path")
    parser.add_argument(
        "--skip-duplicates",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Skip rows that match existing records (default: on)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate only")
    parser.add_argument(
        "--mapping",
        "-m",
        action="append",
        default=[],
        help='Column mapping override "CSV Header=field_key" (repeatable)',
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=AUTO_MAP_CONFIDENCE,
        help="Minimum suggestion confidence for automatic mapping",
    )

    args = parser.parse_args()

    try:
        success = await run_import(
            tenant_id=args.tenant_id,
            user_id=args.user_id,
            import_type=ImportType(args.type),
            file_path=args.file,
            mapping_overrides=parse_mapping_overrides(args.mapping),
            skip_duplicates=args.skip_duplicates,
            dry_run=args.dry_run,
            min_confidence=args.min_confidence,
        )
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
