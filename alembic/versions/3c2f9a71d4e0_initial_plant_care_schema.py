"""initial_plant_care_schema

Revision ID: 3c2f9a71d4e0
Revises:
Create Date: 2026-10-19 09:12:40.118342

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '3c2f9a71d4e0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('user', 'admin', name='user_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('fcm_token', sa.String(length=512), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False),
        sa.Column('notifications_enabled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('persona', sa.Enum('PRIMARY', 'SECONDARY', 'TERTIARY', name='persona_enum'), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_settings_user_id'), 'user_settings', ['user_id'], unique=True)
    op.create_index(op.f('ix_user_settings_fcm_token'), 'user_settings', ['fcm_token'], unique=False)

    op.create_table(
        'plants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('pet_name', sa.String(length=100), nullable=True),
        sa.Column('common_name', sa.String(length=200), nullable=True),
        sa.Column('botanical_name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_plants_user_id'), 'plants', ['user_id'], unique=False)

    op.create_table(
        'plant_tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=False),
        sa.Column('task_key', sa.String(length=50), nullable=False),
        sa.Column('frequency_days', sa.Integer(), nullable=False),
        sa.Column('next_due_on', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_completed_on', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_plant_tasks_plant_id'), 'plant_tasks', ['plant_id'], unique=False)
    op.create_index(op.f('ix_plant_tasks_task_key'), 'plant_tasks', ['task_key'], unique=False)
    op.create_index(op.f('ix_plant_tasks_next_due_on'), 'plant_tasks', ['next_due_on'], unique=False)

    op.create_table(
        'task_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=50), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('default_frequency_days', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_task_templates_key'), 'task_templates', ['key'], unique=True)

    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('payload_json', sa.Text(), nullable=False),
        sa.Column('channel', sa.Enum('WEB_PUSH', name='notification_channel_enum'), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notification_logs_user_id'), 'notification_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_notification_logs_sent_at'), 'notification_logs', ['sent_at'], unique=False)

    op.create_table(
        'pipeline_runs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pipeline_name', sa.String(length=100), nullable=False),
        sa.Column('status', sa.Enum('running', 'success', 'failed', 'skipped', name='pipeline_status_enum'), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('records_processed', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_pipeline_runs_pipeline_name'), 'pipeline_runs', ['pipeline_name'], unique=False)

    # Labels shown in reminder text; keys outside this set fall back to the raw key
    task_templates = sa.table(
        'task_templates',
        sa.column('key', sa.String),
        sa.column('label', sa.String),
        sa.column('default_frequency_days', sa.Integer),
    )
    op.bulk_insert(task_templates, [
        {'key': 'watering', 'label': 'Water', 'default_frequency_days': 3},
        {'key': 'fertilizing', 'label': 'Fertilize', 'default_frequency_days': 30},
        {'key': 'pruning', 'label': 'Prune', 'default_frequency_days': 60},
        {'key': 'spraying', 'label': 'Spray', 'default_frequency_days': 7},
        {'key': 'sunlight-rotation', 'label': 'Rotate', 'default_frequency_days': 14},
    ])


def downgrade() -> None:
    op.drop_index(op.f('ix_pipeline_runs_pipeline_name'), table_name='pipeline_runs')
    op.drop_table('pipeline_runs')
    op.drop_index(op.f('ix_notification_logs_sent_at'), table_name='notification_logs')
    op.drop_index(op.f('ix_notification_logs_user_id'), table_name='notification_logs')
    op.drop_table('notification_logs')
    op.drop_index(op.f('ix_task_templates_key'), table_name='task_templates')
    op.drop_table('task_templates')
    op.drop_index(op.f('ix_plant_tasks_next_due_on'), table_name='plant_tasks')
    op.drop_index(op.f('ix_plant_tasks_task_key'), table_name='plant_tasks')
    op.drop_index(op.f('ix_plant_tasks_plant_id'), table_name='plant_tasks')
    op.drop_table('plant_tasks')
    op.drop_index(op.f('ix_plants_user_id'), table_name='plants')
    op.drop_table('plants')
    op.drop_index(op.f('ix_user_settings_fcm_token'), table_name='user_settings')
    op.drop_index(op.f('ix_user_settings_user_id'), table_name='user_settings')
    op.drop_table('user_settings')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    sa.Enum(name='pipeline_status_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='notification_channel_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='persona_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
