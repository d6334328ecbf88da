"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""
from __future__ import annotations

from typing import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create initial database schema."""

    # Stocking events
    op.create_table(
        "stock_events",
        sa.Column("id", sa.String(length=40), nullable=False),
        sa.Column("water_name", sa.String(length=500), nullable=False),
        sa.Column("county", sa.String(length=200), nullable=False),
        sa.Column("species", sa.String(length=200), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("avg_length", sa.Float(), nullable=True),
        sa.Column("date_stocked", sa.String(length=10), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stock_events_county", "stock_events", ["county"])
    op.create_index("ix_stock_events_species", "stock_events", ["species"])
    op.create_index("ix_stock_events_date_seen", "stock_events", ["date_stocked", "first_seen_at"])
    op.create_index("ix_stock_events_first_seen_at", "stock_events", ["first_seen_at"])

    # Subscriptions
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("expo_push_token", sa.String(length=500), nullable=False),
        sa.Column("counties_json", sa.JSON(), nullable=False),
        sa.Column("species_json", sa.JSON(), nullable=False),
        sa.Column("waters_json", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("expo_push_token"),
    )

    # Poll runs
    op.create_table(
        "poll_runs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="RUNNING"),
        sa.Column("dry_run", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("sources_json", sa.JSON(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("parsed", sa.Integer(), server_default="0"),
        sa.Column("inserted", sa.Integer(), server_default="0"),
        sa.Column("subscriptions", sa.Integer(), server_default="0"),
        sa.Column("matched_messages", sa.Integer(), server_default="0"),
        sa.Column("pushed", sa.Integer(), server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_poll_runs_status", "poll_runs", ["status"])
    op.create_index("ix_poll_runs_started_at", "poll_runs", ["started_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_poll_runs_started_at", table_name="poll_runs")
    op.drop_index("ix_poll_runs_status", table_name="poll_runs")
    op.drop_table("poll_runs")

    op.drop_table("subscriptions")

    op.drop_index("ix_stock_events_first_seen_at", table_name="stock_events")
    op.drop_index("ix_stock_events_date_seen", table_name="stock_events")
    op.drop_index("ix_stock_events_species", table_name="stock_events")
    op.drop_index("ix_stock_events_county", table_name="stock_events")
    op.drop_table("stock_events")
