"""initial checklist schema

Revision ID: b7c1e2d3f4a5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'b7c1e2d3f4a5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Companies
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_companies_id', 'companies', ['id'])

    # Checklists
    op.create_table(
        'checklists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_checklists_id', 'checklists', ['id'])
    op.create_index('ix_checklists_company_id', 'checklists', ['company_id'])

    # Devices
    op.create_table(
        'devices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('checklist_id', sa.Integer(), nullable=False),
        sa.Column('loop', sa.Integer(), nullable=True),
        sa.Column('address', sa.Integer(), nullable=True),
        sa.Column('model', sa.String(length=255), nullable=True),
        sa.Column('device_type', sa.String(length=255), nullable=True),
        sa.Column('serial_number', sa.String(length=255), nullable=True),
        sa.Column('messages', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['checklist_id'], ['checklists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_devices_id', 'devices', ['id'])
    op.create_index('ix_devices_checklist_id', 'devices', ['checklist_id'])

    # Device progress (one row per checklist + device_uid, upserted)
    op.create_table(
        'device_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('checklist_id', sa.Integer(), nullable=False),
        sa.Column('device_uid', sa.Text(), nullable=False),
        sa.Column('checked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['checklist_id'], ['checklists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('checklist_id', 'device_uid', name='uq_device_progress_checklist_device')
    )
    op.create_index('ix_device_progress_id', 'device_progress', ['id'])
    op.create_index('ix_device_progress_checklist_id', 'device_progress', ['checklist_id'])


def downgrade() -> None:
    op.drop_index('ix_device_progress_checklist_id', table_name='device_progress')
    op.drop_index('ix_device_progress_id', table_name='device_progress')
    op.drop_table('device_progress')

    op.drop_index('ix_devices_checklist_id', table_name='devices')
    op.drop_index('ix_devices_id', table_name='devices')
    op.drop_table('devices')

    op.drop_index('ix_checklists_company_id', table_name='checklists')
    op.drop_index('ix_checklists_id', table_name='checklists')
    op.drop_table('checklists')

    op.drop_index('ix_companies_id', table_name='companies')
    op.drop_table('companies')
