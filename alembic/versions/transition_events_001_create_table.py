"""create transition_events table

Revision ID: transition_events_001
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'transition_events_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'transition_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('host', sa.String(), nullable=True),
        sa.Column('kind', sa.String(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Float(), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_transition_events_id', 'transition_events', ['id'])
    op.create_index('ix_transition_events_host', 'transition_events', ['host'])


def downgrade():
    op.drop_index('ix_transition_events_host', table_name='transition_events')
    op.drop_index('ix_transition_events_id', table_name='transition_events')
    op.drop_table('transition_events')
