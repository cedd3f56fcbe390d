"""create_profiles_and_activity_logs

Revision ID: 3f1c9a2d7e54
Revises:
Create Date: 2026-10-18 09:12:31.480215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2d7e54'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # role and status stay plain strings so unknown values remain loadable
    op.create_table(
        'profiles',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column('full_name', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=True),
        sa.Column('avatar_url', sqlmodel.sql.sqltypes.AutoString(length=1024), nullable=True),
        sa.Column('role', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True, server_default='staff'),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False, server_default='pending'),
        sa.Column('last_active', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_profiles_email'), 'profiles', ['email'], unique=False)
    op.create_index(op.f('ix_profiles_status'), 'profiles', ['status'], unique=False)
    op.create_index(op.f('ix_profiles_created_at'), 'profiles', ['created_at'], unique=False)

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False),
        sa.Column('action', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('details', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('user_email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('user_full_name', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=True),
        sa.Column('user_avatar', sqlmodel.sql.sqltypes.AutoString(length=1024), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_activity_logs_user_id'), 'activity_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_activity_logs_created_at'), 'activity_logs', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_activity_logs_created_at'), table_name='activity_logs')
    op.drop_index(op.f('ix_activity_logs_user_id'), table_name='activity_logs')
    op.drop_table('activity_logs')
    op.drop_index(op.f('ix_profiles_created_at'), table_name='profiles')
    op.drop_index(op.f('ix_profiles_status'), table_name='profiles')
    op.drop_index(op.f('ix_profiles_email'), table_name='profiles')
    op.drop_table('profiles')
