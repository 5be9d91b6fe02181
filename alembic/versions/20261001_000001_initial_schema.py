"""Initial schema: tenants, people, classes, attendance, imports and audit

Revision ID: 20261001_000001
Revises:
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261001_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _tenant_scoped() -> list[sa.Column]:
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=False),
    ]


def _tenant_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE')


def _invitation_columns() -> list[sa.Column]:
    return [
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('invitation_code', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
    ]


def upgrade() -> None:
    # === TENANTS ===
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('settings', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index('idx_tenants_slug', 'tenants', ['slug'], postgresql_where=sa.text('deleted_at IS NULL'))

    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('app_metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=True,
                    postgresql_where=sa.text('deleted_at IS NULL'))

    # === ROLES & MEMBERSHIP ===
    op.create_table(
        'roles',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_roles_tenant_id', 'roles', ['tenant_id'])
    op.create_index('idx_roles_tenant_name', 'roles', ['tenant_id', 'name'],
                    postgresql_where=sa.text('deleted_at IS NULL'))

    op.create_table(
        'tenant_users',
        *_tenant_scoped(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_users_tenant_user')
    )
    op.create_index('ix_tenant_users_tenant_id', 'tenant_users', ['tenant_id'])

    # === STUDENTS ===
    op.create_table(
        'students',
        *_tenant_scoped(),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('preferred_name', sa.String(length=100), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('enrollment_status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_students_tenant_id', 'students', ['tenant_id'])
    op.create_index('idx_students_tenant_name', 'students', ['tenant_id', 'last_name', 'first_name'],
                    postgresql_where=sa.text('deleted_at IS NULL'))

    # === SCHOOL CLASSES & ENROLLMENTS ===
    op.create_table(
        'school_classes',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_school_classes_tenant_id', 'school_classes', ['tenant_id'])
    op.create_index('idx_classes_tenant', 'school_classes', ['tenant_id'],
                    postgresql_where=sa.text('deleted_at IS NULL'))

    op.create_table(
        'enrollments',
        *_tenant_scoped(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_enrollments_tenant_id', 'enrollments', ['tenant_id'])
    op.create_index('idx_enrollments_student', 'enrollments', ['student_id'])
    op.create_index('idx_enrollments_class', 'enrollments', ['class_id'])

    # === GUARDIANS ===
    op.create_table(
        'guardians',
        *_tenant_scoped(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('relationship', sa.String(length=30), nullable=False, server_default='other'),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_emergency_contact', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('pickup_authorized', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('phone', sa.String(length=50), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'user_id', 'student_id', name='uq_guardians_tenant_user_student')
    )
    op.create_index('ix_guardians_tenant_id', 'guardians', ['tenant_id'])
    op.create_index('idx_guardians_student', 'guardians', ['student_id'])

    # === EMERGENCY CONTACTS ===
    op.create_table(
        'emergency_contacts',
        *_tenant_scoped(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('relationship', sa.String(length=50), nullable=False),
        sa.Column('phone_primary', sa.String(length=50), nullable=False),
        sa.Column('phone_secondary', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('priority_order', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_emergency_contacts_tenant_id', 'emergency_contacts', ['tenant_id'])
    op.create_index('idx_emergency_contacts_student', 'emergency_contacts', ['student_id'])

    # === MEDICAL CONDITIONS ===
    op.create_table(
        'medical_conditions',
        *_tenant_scoped(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('condition_type', sa.String(length=30), nullable=False),
        sa.Column('condition_name', sa.String(length=200), nullable=False),
        sa.Column('severity', sa.String(length=30), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('action_plan', sa.Text(), nullable=True),
        sa.Column('requires_medication', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('medication_name', sa.String(length=200), nullable=True),
        sa.Column('medication_location', sa.String(length=200), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_medical_conditions_tenant_id', 'medical_conditions', ['tenant_id'])
    op.create_index('idx_medical_conditions_student', 'medical_conditions', ['student_id'])

    # === INVITATIONS ===
    op.create_table(
        'parent_invitations',
        *_tenant_scoped(),
        *_invitation_columns(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('relationship', sa.String(length=30), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invitation_code'),
        sa.UniqueConstraint('tenant_id', 'email', 'student_id', name='uq_parent_invitations_tenant_email_student')
    )
    op.create_index('ix_parent_invitations_tenant_id', 'parent_invitations', ['tenant_id'])
    op.create_index('idx_parent_invitations_email', 'parent_invitations', ['email', 'tenant_id'],
                    postgresql_where=sa.text("status = 'pending'"))

    op.create_table(
        'staff_invitations',
        *_tenant_scoped(),
        *_invitation_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invitation_code')
    )
    op.create_index('ix_staff_invitations_tenant_id', 'staff_invitations', ['tenant_id'])
    op.create_index('idx_staff_invitations_email', 'staff_invitations', ['email', 'tenant_id'],
                    postgresql_where=sa.text("status = 'pending'"))

    # === ATTENDANCE ===
    op.create_table(
        'attendance_records',
        *_tenant_scoped(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='absent'),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('recorded_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recorded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'student_id', 'date', name='uq_attendance_tenant_student_date')
    )
    op.create_index('ix_attendance_records_tenant_id', 'attendance_records', ['tenant_id'])
    op.create_index('idx_attendance_tenant_date', 'attendance_records', ['tenant_id', 'date'])

    # === IMPORT JOBS ===
    op.create_table(
        'import_jobs',
        *_tenant_scoped(),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('import_type', sa.String(length=30), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending'),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('column_mapping', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('total_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('imported_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('errors', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='[]'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_import_jobs_tenant_id', 'import_jobs', ['tenant_id'])
    op.create_index('idx_import_jobs_tenant_created', 'import_jobs', ['tenant_id', 'created_at'])

    op.create_table(
        'import_job_records',
        *_tenant_scoped(),
        sa.Column('import_job_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('row_number', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('deferred_entity_type', sa.String(length=50), nullable=True),
        sa.Column('deferred_entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('raw_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('mapped_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('error_message', sa.Text(), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['import_job_id'], ['import_jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_import_job_records_tenant_id', 'import_job_records', ['tenant_id'])
    op.create_index('idx_import_job_records_job', 'import_job_records', ['import_job_id', 'row_number'])

    # === AUDIT LOGS ===
    op.create_table(
        'audit_logs',
        *_tenant_scoped(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_tenant_id', 'audit_logs', ['tenant_id'])
    op.create_index('idx_audit_logs_tenant_created', 'audit_logs', ['tenant_id', 'created_at'])
    op.create_index('idx_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    for table in (
        'audit_logs',
        'import_job_records',
        'import_jobs',
        'attendance_records',
        'staff_invitations',
        'parent_invitations',
        'medical_conditions',
        'emergency_contacts',
        'guardians',
        'enrollments',
        'school_classes',
        'students',
        'tenant_users',
        'roles',
        'users',
        'tenants',
    ):
        op.drop_table(table)
