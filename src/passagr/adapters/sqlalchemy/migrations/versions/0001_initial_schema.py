"""Initial editorial schema with seeded freshness policies.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ENTITY_TABLE_NAMES = ("countries", "visa_paths", "requirements", "steps")


def _timestamp(name: str, *, nullable: bool) -> sa.Column[object]:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    for table_name in ENTITY_TABLE_NAMES:
        op.create_table(
            table_name,
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=32), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("data", sa.JSON(), nullable=False),
            _timestamp("last_verified_at", nullable=True),
            _timestamp("created_at", nullable=False),
            _timestamp("updated_at", nullable=False),
            sa.PrimaryKeyConstraint("id", name=f"pk_{table_name}"),
        )

    op.create_table(
        "sources",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("publisher", sa.String(), nullable=True),
        sa.Column("content_type", sa.String(length=128), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        _timestamp("fetched_at", nullable=True),
        _timestamp("last_checked_at", nullable=True),
        sa.Column("reliability_score", sa.Integer(), nullable=False, server_default="5"),
        sa.PrimaryKeyConstraint("id", name="pk_sources"),
    )

    op.create_table(
        "editorial_reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("proposed_data", sa.JSON(), nullable=False),
        sa.Column("change_type", sa.String(length=32), nullable=False),
        sa.Column("diff_summary", sa.Text(), nullable=False),
        sa.Column("diff_fields", sa.JSON(), nullable=False),
        sa.Column("source_ids", sa.JSON(), nullable=False),
        sa.Column("base_version", sa.Integer(), nullable=True),
        sa.Column("impact", sa.String(length=32), nullable=False),
        _timestamp("created_at", nullable=False),
        sa.Column("reviewer_uid", sa.String(), nullable=True),
        _timestamp("resolved_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_editorial_reviews"),
    )
    op.create_index("ix_editorial_reviews_status", "editorial_reviews", ["status"])

    op.create_table(
        "changelogs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("change_type", sa.String(length=32), nullable=False),
        sa.Column("diff_summary", sa.Text(), nullable=False),
        sa.Column("diff_fields", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("source_ids", sa.JSON(), nullable=False),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        _timestamp("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_changelogs"),
    )
    op.create_index("ix_changelogs_entity", "changelogs", ["entity_type", "entity_id"])

    freshness_policies = op.create_table(
        "freshness_policies",
        sa.Column("key", sa.String(length=128), nullable=False),
        sa.Column("ttl_days", sa.Integer(), nullable=False),
        sa.Column("criticality", sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint("key", name="pk_freshness_policies"),
    )
    op.bulk_insert(
        freshness_policies,
        [
            {"key": "lgbtq_rights_index", "ttl_days": 90, "criticality": "high"},
            {"key": "abortion_access_status", "ttl_days": 30, "criticality": "critical"},
            {"key": "hate_crime_law_snapshot", "ttl_days": 180, "criticality": "medium"},
            {"key": "fees", "ttl_days": 60, "criticality": "high"},
        ],
    )


def downgrade() -> None:
    op.drop_table("freshness_policies")
    op.drop_index("ix_changelogs_entity", table_name="changelogs")
    op.drop_table("changelogs")
    op.drop_index("ix_editorial_reviews_status", table_name="editorial_reviews")
    op.drop_table("editorial_reviews")
    op.drop_table("sources")
    for table_name in reversed(ENTITY_TABLE_NAMES):
        op.drop_table(table_name)
