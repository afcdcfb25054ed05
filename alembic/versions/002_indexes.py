"""Indexes: single ACTIVE round, QC queue scan, market and analytics lookups.

Revision ID: 002_indexes
Revises: 001_initial
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_indexes"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        "uq_rounds_single_active", "rounds", ["status"], unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )
    op.create_index(
        "ix_batches_queue", "batches", ["round_id", "status", "submitted_at"],
    )
    op.create_index("ix_batches_round_team", "batches", ["round_id", "team_id"])
    op.create_index("ix_jokes_batch_id", "jokes", ["batch_id"])
    op.create_index(
        "ix_published_jokes_round_team", "published_jokes", ["round_id", "team_id"],
    )
    op.create_index("ix_purchases_joke_id", "purchases", ["joke_id"])
    op.create_index(
        "ix_purchase_events_round_time", "purchase_events", ["round_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_purchase_events_round_time", table_name="purchase_events")
    op.drop_index("ix_purchases_joke_id", table_name="purchases")
    op.drop_index("ix_published_jokes_round_team", table_name="published_jokes")
    op.drop_index("ix_jokes_batch_id", table_name="jokes")
    op.drop_index("ix_batches_round_team", table_name="batches")
    op.drop_index("ix_batches_queue", table_name="batches")
    op.drop_index("uq_rounds_single_active", table_name="rounds")
