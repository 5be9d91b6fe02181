from datetime import date

import pytest
from sqlalchemy import select

from app.exceptions import InvalidStateException, NotFoundException
from app.models import (
    AuditLog,
    Guardian,
    ImportStatus,
    ImportType,
    ParentInvitation,
    Student,
    TenantUser,
    User,
)
from app.schemas.import_job import ParsedCSV
from app.services.data_import import ImportExecutor, fetch_existing_data, validate_import

TODAY = date(2024, 6, 1)


async def _import(db, tenant, import_type, headers, *rows):
    parsed = ParsedCSV(
        headers=headers,
        rows=[dict(zip(headers, row)) for row in rows],
        raw_row_count=len(rows),
    )
    mapping = {header: header for header in headers}
    existing = await fetch_existing_data(db, tenant.tenant_id, import_type, today=TODAY)
    result = validate_import(import_type, parsed, mapping, existing, today=TODAY)
    executor = ImportExecutor(db, tenant.tenant_id, tenant.admin_id)
    return await executor.execute(
        import_type, "import.csv", mapping, result.rows, today=TODAY
    )


async def test_rollback_soft_deletes_imported_students(db, tenant):
    job = await _import(
        db,
        tenant,
        ImportType.STUDENTS,
        ["first_name", "last_name"],
        ("Emma", "Thompson"),
        ("Liam", "Nguyen"),
        ("", "Nobody"),
    )
    assert job.status == ImportStatus.COMPLETED_WITH_ERRORS.value

    count = await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)

    assert count == 2
    await db.refresh(job)
    assert job.status == ImportStatus.ROLLED_BACK.value

    result = await db.execute(
        select(Student)
        .where(Student.tenant_id == tenant.tenant_id)
        .execution_options(populate_existing=True)
    )
    students = result.scalars().all()
    assert len(students) == 2
    assert all(student.deleted_at is not None for student in students)

    entry = (
        await db.execute(
            select(AuditLog).where(AuditLog.entity_id == job.id, AuditLog.action == "import.rolled_back")
        )
    ).scalar_one()
    assert entry.details["rolled_back_count"] == 2


async def test_rollback_counts_only_entities_still_present(db, tenant):
    job = await _import(
        db,
        tenant,
        ImportType.STUDENTS,
        ["first_name", "last_name"],
        ("Emma", "Thompson"),
        ("Liam", "Nguyen"),
    )
    liam = (await db.execute(select(Student).where(Student.first_name == "Liam"))).scalar_one()
    liam.deleted_at = job.completed_at
    await db.commit()

    count = await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)

    assert count == 1


async def test_second_rollback_is_rejected(db, tenant):
    job = await _import(db, tenant, ImportType.STUDENTS, ["first_name", "last_name"], ("Emma", "Thompson"))
    executor = ImportExecutor(db, tenant.tenant_id, tenant.admin_id)
    await executor.rollback(job.id)

    with pytest.raises(InvalidStateException) as exc_info:
        await executor.rollback(job.id)

    assert exc_info.value.message == 'Cannot rollback an import with status "rolled_back"'
    assert exc_info.value.status_code == 409


async def test_failed_job_cannot_be_rolled_back(db, tenant):
    job = await _import(db, tenant, ImportType.STUDENTS, ["first_name", "last_name"], ("", ""))
    assert job.status == ImportStatus.FAILED.value

    with pytest.raises(InvalidStateException):
        await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)


async def test_rejected_rollback_changes_nothing(db, tenant):
    job = await _import(db, tenant, ImportType.STUDENTS, ["first_name", "last_name"], ("Emma", "Thompson"))
    job.status = ImportStatus.IMPORTING.value
    await db.commit()

    with pytest.raises(InvalidStateException) as exc_info:
        await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)

    assert exc_info.value.message == 'Cannot rollback an import with status "importing"'
    await db.refresh(job)
    assert job.status == ImportStatus.IMPORTING.value

    student = (
        await db.execute(select(Student).execution_options(populate_existing=True))
    ).scalar_one()
    assert student.deleted_at is None

    audit_actions = (await db.execute(select(AuditLog.action))).scalars().all()
    assert "import.rolled_back" not in audit_actions


async def test_rollback_is_tenant_scoped(db, tenant, other_tenant):
    job = await _import(db, tenant, ImportType.STUDENTS, ["first_name", "last_name"], ("Emma", "Thompson"))

    with pytest.raises(NotFoundException) as exc_info:
        await ImportExecutor(db, other_tenant, None).rollback(job.id)

    assert exc_info.value.message == "Import job not found"
    student = (await db.execute(select(Student))).scalar_one()
    assert student.deleted_at is None


async def test_guardian_rollback_keeps_invitations(db, tenant, create_student):
    await create_student(tenant.tenant_id, "Emma", "Thompson")
    db.add(User(email="sarah@example.com", password_hash="x"))
    await db.commit()

    job = await _import(
        db,
        tenant,
        ImportType.GUARDIANS,
        [
            "student_first_name", "student_last_name", "guardian_first_name",
            "guardian_last_name", "guardian_email", "relationship",
        ],
        ("Emma", "Thompson", "Sarah", "Thompson", "sarah@example.com", "mother"),
        ("Emma", "Thompson", "Dave", "Thompson", "dave@example.com", "father"),
    )
    assert job.imported_count == 2

    count = await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)

    assert count == 1
    guardian = (
        await db.execute(select(Guardian).execution_options(populate_existing=True))
    ).scalar_one()
    assert guardian.deleted_at is not None
    invitation = (await db.execute(select(ParentInvitation))).scalar_one()
    assert invitation.deleted_at is None


async def test_staff_rollback_removes_membership_but_keeps_account(db, tenant):
    job = await _import(
        db,
        tenant,
        ImportType.STAFF,
        ["first_name", "last_name", "email", "role"],
        ("Maria", "Garcia", "maria@school.edu.au", "Guide"),
    )

    count = await ImportExecutor(db, tenant.tenant_id, tenant.admin_id).rollback(job.id)

    assert count == 1
    user = (await db.execute(select(User).where(User.email == "maria@school.edu.au"))).scalar_one()
    assert user.deleted_at is None
    membership = (
        await db.execute(
            select(TenantUser)
            .where(TenantUser.user_id == user.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert membership.deleted_at is not None
