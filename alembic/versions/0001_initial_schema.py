"""initial schema

Users, departments and officer assignments; reports and emergencies with
their media and append-only status history.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-06-01 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'userrole': ('citizen', 'officer', 'admin'),
    'accountstatus': ('active', 'inactive', 'suspended'),
    'authprovider': ('local', 'google'),
    'reportstatus': ('submitted', 'in_progress', 'resolved', 'rejected'),
    'priority': ('low', 'medium', 'high', 'critical'),
    'mediakind': ('image', 'video', 'audio'),
    'emergencytype': ('police', 'medical', 'fire', 'disaster'),
    'emergencystatus': ('reported', 'received', 'dispatched', 'resolved'),
    'severity': ('minor', 'moderate', 'severe', 'critical'),
}


def _enum(name: str):
    # types are created once up front; 'priority' is shared by two tables
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('auth_provider', _enum('authprovider'), nullable=False),
        sa.Column('google_id', sa.String(length=128), nullable=True, unique=True),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('phone_number', sa.String(length=15), nullable=True),
        sa.Column('profile_image', sa.String(length=500), nullable=True),
        sa.Column('street', sa.String(length=200), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('pincode', sa.String(length=10), nullable=True),
        sa.Column('role', _enum('userrole'), nullable=False),
        sa.Column('account_status', _enum('accountstatus'), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_full_name', 'users', ['full_name'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_account_status', 'users', ['account_status'])
    op.create_index('ix_users_is_deleted', 'users', ['is_deleted'])

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=30), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=500), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=15), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_deleted', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('total_reports', sa.Integer(), server_default='0', nullable=False),
        sa.Column('active_reports', sa.Integer(), server_default='0', nullable=False),
        sa.Column('resolved_reports', sa.Integer(), server_default='0', nullable=False),
        sa.Column('assigned_officers', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_departments_name', 'departments', ['name'], unique=True)
    op.create_index('ix_departments_code', 'departments', ['code'], unique=True)
    op.create_index('ix_departments_is_active', 'departments', ['is_active'])
    op.create_index('ix_departments_is_deleted', 'departments', ['is_deleted'])

    op.create_table(
        'officer_departments',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='CASCADE'),
                  primary_key=True),
    )
    op.create_index('ix_officer_departments_department_id', 'officer_departments', ['department_id'])

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_code', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=2000), nullable=False),
        sa.Column('status', _enum('reportstatus'), nullable=False),
        sa.Column('priority', _enum('priority'), nullable=False),
        sa.Column('citizen_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('assigned_officer_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('landmark', sa.String(length=200), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('rejected_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_reports_report_code', 'reports', ['report_code'], unique=True)
    op.create_index('ix_reports_title', 'reports', ['title'])
    op.create_index('ix_reports_status', 'reports', ['status'])
    op.create_index('ix_reports_priority', 'reports', ['priority'])
    op.create_index('ix_reports_citizen_id', 'reports', ['citizen_id'])
    op.create_index('ix_reports_department_id', 'reports', ['department_id'])
    op.create_index('ix_reports_assigned_officer_id', 'reports', ['assigned_officer_id'])
    op.create_index('ix_reports_created_at', 'reports', ['created_at'])
    op.create_index('ix_reports_is_deleted', 'reports', ['is_deleted'])
    op.create_index('ix_reports_lat_lng', 'reports', ['lat', 'lng'])

    op.create_table(
        'emergencies',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('emergency_code', sa.String(length=24), nullable=False),
        sa.Column('type', _enum('emergencytype'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=False),
        sa.Column('contact_number', sa.String(length=15), nullable=False),
        sa.Column('status', _enum('emergencystatus'), nullable=False),
        sa.Column('priority', _enum('priority'), nullable=False),
        sa.Column('severity_level', _enum('severity'), nullable=False),
        sa.Column('casualties_reported', sa.Integer(), server_default='0', nullable=False),
        sa.Column('citizen_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('responded_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('landmark', sa.String(length=200), nullable=True),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dispatched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('casualties_reported >= 0', name='ck_emergency_casualties'),
    )
    op.create_index('ix_emergencies_emergency_code', 'emergencies', ['emergency_code'], unique=True)
    op.create_index('ix_emergencies_type', 'emergencies', ['type'])
    op.create_index('ix_emergencies_status', 'emergencies', ['status'])
    op.create_index('ix_emergencies_priority', 'emergencies', ['priority'])
    op.create_index('ix_emergencies_citizen_id', 'emergencies', ['citizen_id'])
    op.create_index('ix_emergencies_created_at', 'emergencies', ['created_at'])
    op.create_index('ix_emergencies_is_deleted', 'emergencies', ['is_deleted'])
    op.create_index('ix_emergencies_lat_lng', 'emergencies', ['lat', 'lng'])

    op.create_table(
        'media_attachments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_id', sa.Integer(), sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=True),
        sa.Column('emergency_id', sa.Integer(), sa.ForeignKey('emergencies.id', ondelete='CASCADE'), nullable=True),
        sa.Column('kind', _enum('mediakind'), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('provider_id', sa.String(length=500), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_media_attachments_report_id', 'media_attachments', ['report_id'])
    op.create_index('ix_media_attachments_emergency_id', 'media_attachments', ['emergency_id'])

    op.create_table(
        'report_status_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_id', sa.Integer(), sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', _enum('reportstatus'), nullable=False),
        sa.Column('changed_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('remarks', sa.String(length=500), nullable=True),
    )
    op.create_index('ix_report_status_history_report_id', 'report_status_history', ['report_id'])

    op.create_table(
        'emergency_status_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('emergency_id', sa.Integer(), sa.ForeignKey('emergencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', _enum('emergencystatus'), nullable=False),
        sa.Column('changed_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('remarks', sa.String(length=500), nullable=True),
    )
    op.create_index('ix_emergency_status_history_emergency_id', 'emergency_status_history', ['emergency_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('emergency_status_history')
    op.drop_table('report_status_history')
    op.drop_table('media_attachments')
    op.drop_table('emergencies')
    op.drop_table('reports')
    op.drop_table('officer_departments')
    op.drop_table('departments')
    op.drop_table('users')
    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
