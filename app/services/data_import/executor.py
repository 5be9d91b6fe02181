"""Import execution and rollback.

Rows are written one at a time. Each row's entity write and its job record
share a savepoint, so a row is either fully recorded as imported or rolled
back and recorded as an error. One bad row never stops the batch.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ImportRowError, InvalidStateException, NotFoundException
from app.models import (
    AuditAction,
    ImportJob,
    ImportJobRecord,
    ImportRecordStatus,
    ImportStatus,
    ImportType,
)
from app.schemas.import_job import ImportMetadata, RowIssue, ValidatedRow
from app.services.audit_service import log_audit
from app.services.data_import.field_registry import get_fields
from app.services.data_import.strategies import (
    ImportStrategy,
    InsertContext,
    InsertOutcome,
    get_strategy,
)
from app.services.data_import.validator import check_required, coerce_fields

logger = logging.getLogger(__name__)

SKIPPED_DUPLICATE_MESSAGE = "Skipped - duplicate record"


class ImportExecutor:
    """Writes validated rows for one tenant and rolls jobs back."""

    def __init__(
        self,
        db: AsyncSession,
        tenant_id: UUID,
        user_id: UUID | None,
        *,
        commit_interval: int | None = None,
        invitation_expiry_days: int | None = None,
    ):
        self.db = db
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.commit_interval = commit_interval or settings.import_commit_interval
        self.invitation_expiry_days = invitation_expiry_days or settings.import_invitation_expiry_days

    async def execute(
        self,
        import_type: ImportType | str,
        file_name: str,
        column_mapping: Mapping[str, str | None],
        validated_rows: Sequence[ValidatedRow],
        metadata: ImportMetadata | None = None,
        skip_duplicates: bool = True,
        *,
        today: date | None = None,
    ) -> ImportJob:
        """Write validated rows and return the finished job.

        Every row lands in exactly one of imported, skipped or error, and
        gets one job record.
        """
        import_type = ImportType(import_type)
        strategy = get_strategy(import_type)
        metadata = metadata or ImportMetadata()

        job = ImportJob(
            tenant_id=self.tenant_id,
            created_by=self.user_id,
            import_type=import_type.value,
            status=ImportStatus.IMPORTING.value,
            file_name=file_name,
            column_mapping=dict(column_mapping),
            total_rows=len(validated_rows),
            job_metadata={
                **metadata.model_dump(mode="json", exclude_none=True),
                "skip_duplicates": skip_duplicates,
            },
        )
        self.db.add(job)
        await self.db.flush()
        job_id = job.id

        logger.info(
            f"Import job {job_id} started: {import_type.value} from '{file_name}' "
            f"({len(validated_rows)} rows) for tenant {self.tenant_id}"
        )

        ctx = InsertContext(
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            metadata=metadata,
            today=today or date.today(),
            invitation_expiry_days=self.invitation_expiry_days,
        )

        imported = skipped = failed = 0
        job_errors: list[dict] = []

        for processed, row in enumerate(validated_rows, start=1):
            status, errors = await self._process_row(job_id, strategy, ctx, row, skip_duplicates)
            if status == ImportRecordStatus.IMPORTED:
                imported += 1
            elif status == ImportRecordStatus.SKIPPED:
                skipped += 1
            else:
                failed += 1
                job_errors.extend(error.model_dump() for error in errors)

            # Update progress periodically
            if processed % self.commit_interval == 0:
                self._apply_counts(job, imported, skipped, failed, job_errors)
                await self.db.commit()
                logger.debug(f"Import job {job_id}: {job.processed_rows}/{job.total_rows} rows processed")

        self._apply_counts(job, imported, skipped, failed, job_errors)
        final_status = job.finalize(datetime.now(timezone.utc))

        await log_audit(
            self.db,
            AuditAction.IMPORT_COMPLETED,
            "import_jobs",
            job_id,
            {
                "import_type": import_type.value,
                "final_status": final_status,
                "file_name": file_name,
                "total_rows": len(validated_rows),
                "imported": imported,
                "skipped": skipped,
                "errors": failed,
            },
            tenant_id=self.tenant_id,
            user_id=self.user_id,
        )
        await self.db.commit()
        await self.db.refresh(job)

        logger.info(
            f"Import job {job_id} finished with status {final_status}: "
            f"{imported} imported, {skipped} skipped, {failed} errors"
        )
        return job

    @staticmethod
    def _apply_counts(
        job: ImportJob,
        imported: int,
        skipped: int,
        failed: int,
        errors: list[dict],
    ) -> None:
        job.imported_count = imported
        job.skipped_count = skipped
        job.error_count = failed
        # New list so the JSON column is flagged dirty
        job.errors = list(errors)

    def _record(
        self,
        job_id: UUID,
        strategy: ImportStrategy,
        row: ValidatedRow,
        status: ImportRecordStatus,
        mapped_data: dict[str, str] | None = None,
        error_message: str | None = None,
        outcome: InsertOutcome | None = None,
    ) -> ImportJobRecord:
        record = ImportJobRecord(
            tenant_id=self.tenant_id,
            import_job_id=job_id,
            row_number=row.row_number,
            status=status.value,
            entity_type=strategy.entity_type,
            raw_data=dict(row.raw_data),
            mapped_data=dict(mapped_data if mapped_data is not None else row.mapped_data),
            error_message=error_message,
        )
        if outcome and outcome.kind == "linked":
            record.entity_id = outcome.entity_id
        elif outcome and outcome.kind == "deferred":
            record.deferred_entity_type = outcome.deferred_entity_type
            record.deferred_entity_id = outcome.entity_id
        return record

    async def _process_row(
        self,
        job_id: UUID,
        strategy: ImportStrategy,
        ctx: InsertContext,
        row: ValidatedRow,
        skip_duplicates: bool,
    ) -> tuple[ImportRecordStatus, list[RowIssue]]:
        data = dict(row.mapped_data)

        errors = list(row.errors)
        if row.is_valid:
            # Rows arrive from the client, so required and type checks run again
            fields = get_fields(strategy.import_type)
            errors = check_required(fields, data, row.row_number)
            errors += coerce_fields(strategy, fields, data, row.row_number)
        elif not errors:
            errors = [RowIssue(row=row.row_number, field="", message="Row failed validation")]

        if errors:
            self.db.add(
                self._record(
                    job_id,
                    strategy,
                    row,
                    ImportRecordStatus.ERROR,
                    mapped_data=data,
                    error_message="; ".join(error.message for error in errors),
                )
            )
            return ImportRecordStatus.ERROR, errors

        if row.is_duplicate and skip_duplicates and strategy.import_type != ImportType.ATTENDANCE:
            self.db.add(
                self._record(
                    job_id,
                    strategy,
                    row,
                    ImportRecordStatus.SKIPPED,
                    mapped_data=data,
                    error_message=SKIPPED_DUPLICATE_MESSAGE,
                )
            )
            return ImportRecordStatus.SKIPPED, []

        try:
            async with self.db.begin_nested():
                outcome = await strategy.insert(self.db, ctx, data)
                self.db.add(
                    self._record(
                        job_id,
                        strategy,
                        row,
                        ImportRecordStatus.IMPORTED,
                        mapped_data=data,
                        outcome=outcome,
                    )
                )
                await self.db.flush()
            return ImportRecordStatus.IMPORTED, []
        except ImportRowError as e:
            error = RowIssue(row=row.row_number, field=e.field, message=e.message)
        except Exception as e:
            logger.warning(f"Import job {job_id} row {row.row_number} failed: {type(e).__name__}: {e}")
            error = RowIssue(row=row.row_number, field="", message=str(e))

        self.db.add(
            self._record(
                job_id,
                strategy,
                row,
                ImportRecordStatus.ERROR,
                mapped_data=data,
                error_message=error.message,
            )
        )
        return ImportRecordStatus.ERROR, [error]

    async def rollback(self, job_id: UUID) -> int:
        """Soft-delete every entity a job created.

        Returns:
            Number of entities soft-deleted.

        Raises:
            NotFoundException: If the job doesn't exist for this tenant.
            InvalidStateException: If the job isn't completed.
        """
        result = await self.db.execute(
            select(ImportJob).where(
                ImportJob.id == job_id,
                ImportJob.tenant_id == self.tenant_id,
                ImportJob.deleted_at.is_(None),
            )
        )
        job = result.scalar_one_or_none()
        if not job:
            raise NotFoundException("Import job")

        if not job.can_rollback:
            raise InvalidStateException(
                f'Cannot rollback an import with status "{job.status}"',
                current_status=job.status,
            )

        strategy = get_strategy(job.import_type)
        result = await self.db.execute(
            select(ImportJobRecord.entity_id).where(
                ImportJobRecord.import_job_id == job.id,
                ImportJobRecord.tenant_id == self.tenant_id,
                ImportJobRecord.status == ImportRecordStatus.IMPORTED.value,
                ImportJobRecord.entity_id.is_not(None),
            )
        )
        entity_ids = list(result.scalars().all())

        deleted_at = datetime.now(timezone.utc)
        rolled_back = 0
        for entity_id in entity_ids:
            try:
                async with self.db.begin_nested():
                    if await strategy.soft_delete(self.db, self.tenant_id, entity_id, deleted_at):
                        rolled_back += 1
            except Exception as e:
                logger.warning(f"Rollback of {strategy.entity_type} {entity_id} in job {job_id} failed: {e}")

        job.status = ImportStatus.ROLLED_BACK.value
        await log_audit(
            self.db,
            AuditAction.IMPORT_ROLLED_BACK,
            "import_jobs",
            job.id,
            {"import_type": job.import_type, "rolled_back_count": rolled_back},
            tenant_id=self.tenant_id,
            user_id=self.user_id,
        )
        await self.db.commit()

        logger.info(f"Import job {job_id} rolled back: {rolled_back} of {len(entity_ids)} entities")
        return rolled_back
