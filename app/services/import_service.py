"""CSV data import service."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import CSVParseException, NotFoundException
from app.models import ImportJob, ImportJobRecord, ImportRecordStatus, ImportType
from app.schemas.import_job import (
    ColumnMapping,
    ImportField,
    ImportMetadata,
    MappingSuggestion,
    MassInviteParentRow,
    MassInviteResult,
    MassInviteStaffRow,
    ParsedCSV,
    ParsePreviewResponse,
    ValidatedRow,
    ValidationResult,
)
from app.services.data_import import (
    ImportExecutor,
    MassInviter,
    fetch_existing_data,
    generate_csv_template,
    get_fields,
    parse_csv,
    suggest_column_mapping,
    validate_import,
)
from app.utils.tenant_context import get_current_user_id, get_tenant_id

logger = logging.getLogger(__name__)


class ImportService:
    """Service for the CSV import workflow.

    Parse and suggest are pure. Everything else is scoped to the tenant and
    user of the current request.
    """

    def get_available_fields(self, import_type: ImportType) -> list[ImportField]:
        """Get the target fields for an import type."""
        return list(get_fields(import_type))

    def parse(self, raw: str, import_type: ImportType | None = None) -> ParsePreviewResponse:
        """Parse CSV text and, when the import type is known, suggest a mapping.

        Raises:
            CSVParseException: If the file can't be used.
        """
        result = parse_csv(raw, max_rows=settings.import_max_rows)
        if result.error:
            raise CSVParseException(result.error)

        suggestions = self.suggest_mapping(import_type, result.data.headers) if import_type else []
        return ParsePreviewResponse(parsed_csv=result.data, suggestions=suggestions)

    def suggest_mapping(self, import_type: ImportType, headers: list[str]) -> list[MappingSuggestion]:
        """Suggest CSV header -> field mappings."""
        return suggest_column_mapping(
            headers,
            get_fields(import_type),
            min_confidence=settings.import_min_suggestion_confidence,
        )

    async def validate_import_data(
        self,
        db: AsyncSession,
        import_type: ImportType,
        parsed_csv: ParsedCSV,
        column_mapping: ColumnMapping,
    ) -> ValidationResult:
        """Validate rows against field rules and the tenant's existing data."""
        tenant_id = get_tenant_id()
        existing = await fetch_existing_data(db, tenant_id, import_type)
        result = validate_import(import_type, parsed_csv, column_mapping, existing)

        logger.info(
            f"Validated {result.summary.total_rows} {ImportType(import_type).value} rows "
            f"for tenant {tenant_id}: {result.summary.valid_rows} valid, "
            f"{result.summary.error_rows} with errors"
        )
        return result

    async def execute_import(
        self,
        db: AsyncSession,
        import_type: ImportType,
        file_name: str,
        column_mapping: ColumnMapping,
        validated_rows: list[ValidatedRow],
        metadata: ImportMetadata | None = None,
        skip_duplicates: bool = True,
    ) -> ImportJob:
        """Write validated rows as a new import job."""
        executor = ImportExecutor(db, get_tenant_id(), get_current_user_id())
        return await executor.execute(
            import_type,
            file_name,
            column_mapping,
            validated_rows,
            metadata=metadata,
            skip_duplicates=skip_duplicates,
        )

    async def list_jobs(
        self,
        db: AsyncSession,
        limit: int | None = None,
    ) -> tuple[list[ImportJob], int]:
        """List the most recent import jobs for the current tenant."""
        tenant_id = get_tenant_id()
        limit = limit or settings.import_history_limit

        query = select(ImportJob).where(
            ImportJob.tenant_id == tenant_id,
            ImportJob.deleted_at.is_(None),
        )

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        # uuid7 ids break ties between jobs created in the same instant
        query = query.order_by(ImportJob.created_at.desc(), ImportJob.id.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_job(self, db: AsyncSession, job_id: UUID) -> ImportJob:
        """Get an import job by ID.

        Raises:
            NotFoundException: If the job doesn't exist for this tenant.
        """
        result = await db.execute(
            select(ImportJob).where(
                ImportJob.id == job_id,
                ImportJob.tenant_id == get_tenant_id(),
                ImportJob.deleted_at.is_(None),
            )
        )
        job = result.scalar_one_or_none()
        if not job:
            raise NotFoundException("Import job")
        return job

    async def get_job_records(
        self,
        db: AsyncSession,
        job_id: UUID,
        status: ImportRecordStatus | None = None,
    ) -> list[ImportJobRecord]:
        """List per-row outcomes of a job in row order."""
        job = await self.get_job(db, job_id)

        query = select(ImportJobRecord).where(
            ImportJobRecord.import_job_id == job.id,
            ImportJobRecord.tenant_id == job.tenant_id,
        )
        if status:
            query = query.where(ImportJobRecord.status == ImportRecordStatus(status).value)

        result = await db.execute(query.order_by(ImportJobRecord.row_number))
        return list(result.scalars().all())

    async def rollback_import(self, db: AsyncSession, job_id: UUID) -> int:
        """Soft-delete everything a completed job created."""
        executor = ImportExecutor(db, get_tenant_id(), get_current_user_id())
        return await executor.rollback(job_id)

    async def mass_invite_parents(
        self,
        db: AsyncSession,
        rows: list[MassInviteParentRow],
    ) -> MassInviteResult:
        """Invite the parents of existing students."""
        return await MassInviter(db, get_tenant_id(), get_current_user_id()).invite_parents(rows)

    async def mass_onboard_parents(
        self,
        db: AsyncSession,
        rows: list[MassInviteParentRow],
    ) -> MassInviteResult:
        """Create parent accounts and guardian links without waiting for invitations."""
        return await MassInviter(db, get_tenant_id(), get_current_user_id()).onboard_parents(rows)

    async def mass_invite_staff(
        self,
        db: AsyncSession,
        rows: list[MassInviteStaffRow],
    ) -> MassInviteResult:
        """Invite staff members with a tenant role each."""
        return await MassInviter(db, get_tenant_id(), get_current_user_id()).invite_staff(rows)

    def generate_template(self, import_type: ImportType) -> str:
        """Build the downloadable CSV template for an import type."""
        return generate_csv_template(get_fields(import_type))


# Singleton instance
_import_service: ImportService | None = None


def get_import_service() -> ImportService:
    """Get the import service singleton."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
