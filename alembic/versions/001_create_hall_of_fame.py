"""Create hall of fame results table.

Revision ID: 001_create_hall_of_fame
Revises:
Create Date: 2026-10-16

One row per finished scenario run. The unique constraint makes repeated
submissions of the same run idempotent.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_create_hall_of_fame"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create hall_of_fame_results table."""
    op.create_table(
        "hall_of_fame_results",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("player_id", sa.Uuid(), nullable=False),
        sa.Column("scenario", sa.String(length=100), nullable=False),
        sa.Column("restart_count", sa.Integer(), nullable=False),
        sa.Column("elapsed_seconds", sa.Integer(), nullable=False),
        sa.Column("nickname", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "player_id",
            "scenario",
            "restart_count",
            "elapsed_seconds",
            name="uq_hall_of_fame_results_run",
        ),
    )
    op.create_index(
        "ix_hall_of_fame_results_scenario_elapsed",
        "hall_of_fame_results",
        ["scenario", "elapsed_seconds"],
    )


def downgrade() -> None:
    """Drop hall_of_fame_results table."""
    op.drop_index("ix_hall_of_fame_results_scenario_elapsed", "hall_of_fame_results")
    op.drop_table("hall_of_fame_results")
