"""create citycare schema

Creates users, reports, report_upvotes, audit_logs and kv_entries. The
kv_entries table backs the offline report queue and the connectivity flag.

Revision ID: create_citycare_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_citycare_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('role', sa.Enum('admin', 'citizen', name='userrole'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_name', 'users', ['name'])

    op.create_table(
        'reports',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=4000), nullable=False),
        sa.Column('category', sa.Enum('pothole', 'lighting', 'trash', 'graffiti', 'water_leak',
                                      'tree_maintenance', 'other', name='reportcategory'), nullable=False),
        sa.Column('status', sa.Enum('pending', 'in_progress', 'resolved', 'rejected', name='reportstatus'), nullable=False),
        sa.Column('priority', sa.Enum('low', 'medium', 'high', name='reportpriority'), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('upvotes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('estimated_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_ref', sa.String(length=64), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_reports_title', 'reports', ['title'])
    op.create_index('ix_reports_category', 'reports', ['category'])
    op.create_index('ix_reports_status', 'reports', ['status'])
    op.create_index('ix_reports_user_id', 'reports', ['user_id'])
    op.create_index('ix_reports_created_at', 'reports', ['created_at'])
    op.create_index('ix_reports_lat_lng', 'reports', ['lat', 'lng'])

    op.create_table(
        'report_upvotes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_id', sa.String(length=36), sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('report_id', 'user_id', name='uq_report_upvotes_report_user'),
    )
    op.create_index('ix_report_upvotes_report_id', 'report_upvotes', ['report_id'])
    op.create_index('ix_report_upvotes_user_id', 'report_upvotes', ['user_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('log_id', sa.String(length=36), nullable=False, unique=True),
        sa.Column('at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('action', sa.Enum('reported', 'status_change', 'edited_report', 'deleted', 'login', 'logout',
                                    'system_report', 'signup', 'user_updated', name='auditaction'), nullable=False),
        sa.Column('actor', sa.String(length=255), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=False),
        sa.Column('target_title', sa.String(length=200), nullable=False),
        sa.Column('details', sa.String(length=1000), nullable=False),
        sa.Column('category', sa.Enum('user_submission', 'admin_action', 'system', 'security_alert',
                                      name='auditcategory'), nullable=False),
    )
    op.create_index('ix_audit_logs_at', 'audit_logs', ['at'])
    op.create_index('ix_audit_logs_category', 'audit_logs', ['category'])

    op.create_table(
        'kv_entries',
        sa.Column('key', sa.String(length=120), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('kv_entries')
    op.drop_index('ix_audit_logs_category', table_name='audit_logs')
    op.drop_index('ix_audit_logs_at', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('report_upvotes')
    op.drop_table('reports')
    op.drop_table('users')
    for enum_name in ('auditcategory', 'auditaction', 'reportpriority', 'reportstatus', 'reportcategory', 'userrole'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
