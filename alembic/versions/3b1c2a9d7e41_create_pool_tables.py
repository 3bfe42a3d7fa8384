"""create pool tables

Revision ID: 3b1c2a9d7e41
Revises:
Create Date: 2026-05-20 10:02:11.418302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1c2a9d7e41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 참가자
    op.create_table(
        'participants',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(length=30), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_participants_name', 'participants', ['name'], unique=True)

    # 예측 / 공식 결과 (scope + key)
    op.create_table(
        'prediction_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('scope', sa.String(), nullable=False),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('scope', 'key', name='uq_prediction_scope_key')
    )
    op.create_index('ix_prediction_records_scope', 'prediction_records', ['scope'])


def downgrade() -> None:
    # 역순 삭제
    op.drop_index('ix_prediction_records_scope', table_name='prediction_records')
    op.drop_table('prediction_records')
    op.drop_index('ix_participants_name', table_name='participants')
    op.drop_table('participants')
