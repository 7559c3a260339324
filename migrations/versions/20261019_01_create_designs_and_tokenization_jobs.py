"""create designs and tokenization job journal

Revision ID: 5e0c7a91d2b4
Revises: 
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5e0c7a91d2b4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "designs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=100), nullable=False),
        sa.Column("fabric", sa.String(length=100), nullable=False),
        sa.Column("buttons", sa.String(length=100), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_designs_owner_id", "designs", ["owner_id"])

    op.create_table(
        "tokenization_jobs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("design_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payload_sha256", sa.String(length=64)),
        sa.Column("account_address", sa.String(length=64)),
        sa.Column("program_id", sa.String(length=64)),
        sa.Column("signature", sa.String(length=128)),
        sa.Column("error_kind", sa.String(length=32)),
        sa.Column("error_message", sa.Text()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tokenization_jobs_owner_id", "tokenization_jobs", ["owner_id"])


def downgrade() -> None:
    op.drop_index("ix_tokenization_jobs_owner_id", table_name="tokenization_jobs")
    op.drop_table("tokenization_jobs")
    op.drop_index("ix_designs_owner_id", table_name="designs")
    op.drop_table("designs")
