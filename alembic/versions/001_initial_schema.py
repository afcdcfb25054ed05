"""Initial schema: teams, users, rounds, team state, batches, jokes, ratings, market.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "users",
        sa.Column("user_id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("display_name", sa.String(100), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=True),
        sa.Column("team_id", sa.BigInteger, sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="WAITING"),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(role IN ('JM', 'QC') AND team_id IS NOT NULL)"
            " OR ((role IS NULL OR role IN ('INSTRUCTOR', 'CUSTOMER'))"
            " AND team_id IS NULL)",
            name="ck_users_role_team",
        ),
    )

    op.create_table(
        "rounds",
        sa.Column("round_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("round_number", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="CONFIGURED"),
        sa.Column("customer_budget", sa.Integer, nullable=False),
        sa.Column("batch_size", sa.Integer, nullable=False),
        sa.Column("market_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("cost_of_publishing", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_popped_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("customer_budget >= 0", name="ck_rounds_budget"),
        sa.CheckConstraint("batch_size >= 1", name="ck_rounds_batch_size"),
        sa.CheckConstraint("market_price >= 0", name="ck_rounds_market_price"),
        sa.CheckConstraint("cost_of_publishing >= 0", name="ck_rounds_publish_cost"),
    )

    op.create_table(
        "team_rounds_state",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.BigInteger, sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("points_earned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("batches_created", sa.Integer, nullable=False, server_default="0"),
        sa.Column("batches_rated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("accepted_jokes", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("round_id", "team_id", name="uq_team_rounds_state"),
        sa.CheckConstraint(
            "points_earned >= 0 AND batches_created >= 0"
            " AND batches_rated >= 0 AND accepted_jokes >= 0",
            name="ck_team_rounds_state_non_negative",
        ),
    )

    op.create_table(
        "batches",
        sa.Column("batch_id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.BigInteger, sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SUBMITTED"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("avg_score", sa.Numeric(4, 2), nullable=True),
        sa.Column("passes_count", sa.Integer, nullable=True),
        sa.Column("feedback", sa.String(200), nullable=True),
        sa.Column("locked_by_qc", sa.BigInteger, sa.ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "jokes",
        sa.Column("joke_id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("batch_id", sa.BigInteger, sa.ForeignKey("batches.batch_id", ondelete="CASCADE"), nullable=False),
        sa.Column("joke_text", sa.Text, nullable=False),
        sa.Column("joke_title", sa.String(120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "joke_ratings",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("joke_id", sa.BigInteger, sa.ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("qc_user_id", sa.BigInteger, sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("tag", sa.String(30), nullable=False),
        sa.Column("rated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_joke_ratings_range"),
    )

    op.create_table(
        "published_jokes",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("joke_id", sa.BigInteger, sa.ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.BigInteger, sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "customer_round_budget",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_user_id", sa.BigInteger, sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("starting_budget", sa.Integer, nullable=False),
        sa.Column("remaining_budget", sa.Integer, nullable=False),
        sa.UniqueConstraint("round_id", "customer_user_id", name="uq_customer_round_budget"),
        sa.CheckConstraint(
            "remaining_budget >= 0 AND remaining_budget <= starting_budget",
            name="ck_customer_round_budget_bounds",
        ),
    )

    op.create_table(
        "purchases",
        sa.Column("purchase_id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_user_id", sa.BigInteger, sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("joke_id", sa.BigInteger, sa.ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("round_id", "customer_user_id", "joke_id", name="uq_purchases_claim"),
    )

    op.create_table(
        "purchase_events",
        sa.Column("event_id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("round_id", sa.Integer, sa.ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.BigInteger, sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_user_id", sa.BigInteger, sa.ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True),
        sa.Column("joke_id", sa.BigInteger, sa.ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False),
        sa.Column("delta", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("delta IN (-1, 1)", name="ck_purchase_events_delta"),
    )


def downgrade() -> None:
    op.drop_table("purchase_events")
    op.drop_table("purchases")
    op.drop_table("customer_round_budget")
    op.drop_table("published_jokes")
    op.drop_table("joke_ratings")
    op.drop_table("jokes")
    op.drop_table("batches")
    op.drop_table("team_rounds_state")
    op.drop_table("rounds")
    op.drop_table("users")
    op.drop_table("teams")
