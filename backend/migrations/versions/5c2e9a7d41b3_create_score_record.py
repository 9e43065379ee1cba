"""create score_record table

Revision ID: 5c2e9a7d41b3
Revises:
Create Date: 2026-10-19 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # db-reset / create_all may have built the table already
    if 'score_record' in set(insp.get_table_names()):
        return

    op.create_table(
        'score_record',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('time', sa.Float(), nullable=False),
        sa.Column('mode', sa.String(length=16), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_score_record_key', 'score_record', ['key'], unique=True)
    op.create_index('ix_score_record_mode', 'score_record', ['mode'], unique=False)
    op.create_index('ix_score_record_date', 'score_record', ['date'], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'score_record' not in set(insp.get_table_names()):
        return

    op.drop_index('ix_score_record_date', table_name='score_record')
    op.drop_index('ix_score_record_mode', table_name='score_record')
    op.drop_index('ix_score_record_key', table_name='score_record')
    op.drop_table('score_record')
