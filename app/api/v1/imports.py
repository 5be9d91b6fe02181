"""CSV data import API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import CSVParseException, SchoolBridgeException
from app.models import ImportRecordStatus, ImportType
from app.schemas.common import APIResponse, PaginationMeta
from app.schemas.import_job import (
    ExecuteImportRequest,
    ImportJobRecordResponse,
    ImportJobResponse,
    MassInviteParentsRequest,
    MassInviteResult,
    MassInviteStaffRequest,
    RollbackResponse,
    SuggestMappingRequest,
    ValidateImportRequest,
)
from app.services.import_service import get_import_service
from app.utils.permissions import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/fields", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def get_import_fields(import_type: ImportType | None = Query(None)):
    """Get target fields, for one import type or all of them."""
    service = get_import_service()
    types = [import_type] if import_type else list(ImportType)

    return APIResponse(
        status="success",
        data={t.value: service.get_available_fields(t) for t in types},
    )


@router.post("/parse", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def parse_csv_file(
    file: UploadFile = File(...),
    import_type: ImportType | None = Form(None),
):
    """Parse an uploaded CSV and suggest a column mapping."""
    content = await file.read()
    if len(content) > settings.import_max_upload_size_bytes:
        raise SchoolBridgeException(
            f"File is too large. Maximum size is {settings.import_max_upload_size_mb} MB.",
            status_code=413,
            code="FILE_TOO_LARGE",
        )

    try:
        raw = content.decode("utf-8-sig")  # Handle BOM
    except UnicodeDecodeError:
        raise CSVParseException("The file must be UTF-8 encoded text.")

    preview = get_import_service().parse(raw, import_type)
    logger.info(
        f"Parsed '{file.filename}': {len(preview.parsed_csv.headers)} columns, "
        f"{preview.parsed_csv.raw_row_count} rows"
    )

    return APIResponse(
        status="success",
        data=preview,
        message=f"Found {preview.parsed_csv.raw_row_count} rows.",
    )


@router.post("/suggest-mapping", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def suggest_mapping(data: SuggestMappingRequest):
    """Suggest CSV header -> field mappings."""
    suggestions = get_import_service().suggest_mapping(data.import_type, data.headers)
    return APIResponse(status="success", data=suggestions)


@router.post("/validate", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def validate_import(
    data: ValidateImportRequest,
    db: AsyncSession = Depends(get_db),
):
    """Validate mapped rows and return a per-row preview."""
    result = await get_import_service().validate_import_data(
        db,
        data.import_type,
        data.parsed_csv,
        data.column_mapping,
    )

    message = (
        "All rows are valid."
        if result.is_valid
        else f"{result.summary.error_rows} of {result.summary.total_rows} rows have errors."
    )
    return APIResponse(status="success", data=result, message=message)


@router.post("/execute", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def execute_import(
    data: ExecuteImportRequest,
    db: AsyncSession = Depends(get_db),
):
    """Import validated rows."""
    job = await get_import_service().execute_import(
        db,
        data.import_type,
        data.file_name,
        data.column_mapping,
        data.validated_rows,
        metadata=data.metadata,
        skip_duplicates=data.skip_duplicates,
    )

    return APIResponse(
        status="success",
        data=ImportJobResponse.model_validate(job),
        message=(
            f"Import finished: {job.imported_count} imported, "
            f"{job.skipped_count} skipped, {job.error_count} errors."
        ),
    )


@router.get("", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def list_import_jobs(
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List recent import jobs, newest first."""
    limit = limit or settings.import_history_limit
    jobs, total = await get_import_service().list_jobs(db, limit)

    return APIResponse(
        status="success",
        data=[ImportJobResponse.model_validate(job) for job in jobs],
        pagination=PaginationMeta(limit=limit, total_items=total),
    )


@router.get("/templates/{import_type}")
@require_role("SCHOOL_ADMIN")
async def download_template(import_type: ImportType):
    """Download a CSV template for an import type."""
    content = get_import_service().generate_template(import_type)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{import_type.value}_import_template.csv"',
        },
    )


def _invite_message(result: MassInviteResult) -> str:
    return f"{result.invited} invited, {result.skipped} skipped, {len(result.errors)} errors."


@router.post("/invitations/parents", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def mass_invite_parents(
    data: MassInviteParentsRequest,
    db: AsyncSession = Depends(get_db),
):
    """Invite the parents of existing students in bulk."""
    result = await get_import_service().mass_invite_parents(db, data.rows)
    return APIResponse(status="success", data=result, message=_invite_message(result))


@router.post("/invitations/parents/onboard", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def mass_onboard_parents(
    data: MassInviteParentsRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create parent accounts and guardian links in bulk."""
    result = await get_import_service().mass_onboard_parents(db, data.rows)
    return APIResponse(status="success", data=result, message=_invite_message(result))


@router.post("/invitations/staff", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def mass_invite_staff(
    data: MassInviteStaffRequest,
    db: AsyncSession = Depends(get_db),
):
    """Invite staff members in bulk."""
    result = await get_import_service().mass_invite_staff(db, data.rows)
    return APIResponse(status="success", data=result, message=_invite_message(result))


@router.get("/{job_id}", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def get_import_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get an import job."""
    job = await get_import_service().get_job(db, job_id)
    return APIResponse(status="success", data=ImportJobResponse.model_validate(job))


@router.get("/{job_id}/records", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def get_import_job_records(
    job_id: UUID,
    status: ImportRecordStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List per-row outcomes of an import job."""
    records = await get_import_service().get_job_records(db, job_id, status)
    return APIResponse(
        status="success",
        data=[ImportJobRecordResponse.model_validate(record) for record in records],
    )


@router.post("/{job_id}/rollback", response_model=APIResponse)
@require_role("SCHOOL_ADMIN")
async def rollback_import(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete everything an import job created."""
    count = await get_import_service().rollback_import(db, job_id)
    return APIResponse(
        status="success",
        data=RollbackResponse(rolled_back_count=count),
        message=f"Rolled back {count} records.",
    )
