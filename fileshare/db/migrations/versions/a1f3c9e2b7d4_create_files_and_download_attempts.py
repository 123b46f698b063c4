"""create files and download_attempts tables

Revision ID: a1f3c9e2b7d4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f3c9e2b7d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'files',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('filename', sa.Unicode(length=255), nullable=False),
        sa.Column('original_filename', sa.Unicode(length=255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=True),
        sa.Column('storage_path', sa.String(length=512), nullable=False),
        sa.Column('share_token', sa.String(length=64), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('download_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_path'),
    )
    op.create_index(op.f('ix_files_id'), 'files', ['id'], unique=False)
    op.create_index(op.f('ix_files_share_token'), 'files', ['share_token'], unique=True)

    op.create_table(
        'download_attempts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('file_id', sa.String(length=36), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('downloaded_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['file_id'], ['files.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_download_attempts_file_id'), 'download_attempts', ['file_id'], unique=False)
    op.create_index(
        'ix_download_attempts_file_ip_time',
        'download_attempts',
        ['file_id', 'ip_address', 'downloaded_at'],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index('ix_download_attempts_file_ip_time', table_name='download_attempts')
    op.drop_index(op.f('ix_download_attempts_file_id'), table_name='download_attempts')
    op.drop_table('download_attempts')
    op.drop_index(op.f('ix_files_share_token'), table_name='files')
    op.drop_index(op.f('ix_files_id'), table_name='files')
    op.drop_table('files')
