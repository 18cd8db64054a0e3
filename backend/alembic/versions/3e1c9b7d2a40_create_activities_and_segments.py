"""create activities and activity_segments

Revision ID: 3e1c9b7d2a40
Revises:
Create Date: 2026-10-19 09:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1c9b7d2a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('started_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('ended_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('distance_m', sa.Numeric(9, 1), nullable=False),
        sa.Column('total_time_sec', sa.Integer(), nullable=False),
        sa.Column('elevation_gain_m', sa.Integer(), nullable=False),
        sa.Column('segment_size_m', sa.Integer(), nullable=False),
        sa.Column('calories', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_started_at_ms', 'activities', ['started_at_ms'])

    op.create_table(
        'activity_segments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('activity_id', sa.Integer(), nullable=False),
        sa.Column('idx', sa.Integer(), nullable=False),
        sa.Column('distance_label_m', sa.Integer(), nullable=False),
        sa.Column('distance_m', sa.Numeric(7, 1), nullable=False),
        sa.Column('time_sec', sa.Numeric(8, 1), nullable=False),
        sa.Column('pace_sec_per_km', sa.Numeric(8, 1), nullable=False),
        sa.Column('partial', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['activity_id'], ['activities.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activity_segments_id', 'activity_segments', ['id'])
    op.create_index('ix_activity_segments_activity_id', 'activity_segments', ['activity_id'])


def downgrade() -> None:
    op.drop_index('ix_activity_segments_activity_id', table_name='activity_segments')
    op.drop_index('ix_activity_segments_id', table_name='activity_segments')
    op.drop_table('activity_segments')
    op.drop_index('ix_activities_started_at_ms', table_name='activities')
    op.drop_index('ix_activities_id', table_name='activities')
    op.drop_table('activities')
