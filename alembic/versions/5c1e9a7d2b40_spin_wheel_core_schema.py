"""spin_wheel_core_schema

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e9a7d2b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "prize_slots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.SmallInteger(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("probability", sa.Float(), nullable=False),
        sa.Column("color", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("position BETWEEN 1 AND 8", name="ck_prize_slots_position_range"),
        sa.CheckConstraint(
            "probability >= 0 AND probability <= 100",
            name="ck_prize_slots_probability_range",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_prize_slots"),
        sa.UniqueConstraint("position", name="uq_prize_slots_position"),
    )

    op.create_table(
        "tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("result_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tokens"),
        sa.UniqueConstraint("code", name="uq_tokens_code"),
        sa.UniqueConstraint("result_id", name="uq_tokens_result_id"),
    )
    op.create_index("idx_tokens_expires_at", "tokens", ["expires_at"])
    op.create_index("idx_tokens_used_expires", "tokens", ["is_used", "expires_at"])
    op.create_index("idx_tokens_created_at", "tokens", ["created_at"])

    op.create_table(
        "spin_results",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token_id", sa.Uuid(), nullable=False),
        sa.Column("prize_slot_id", sa.Uuid(), nullable=False),
        sa.Column("prize_position", sa.SmallInteger(), nullable=False),
        sa.Column("prize_name", sa.String(128), nullable=False),
        sa.Column("prize_color", sa.String(16), nullable=False),
        sa.Column(
            "client_info",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_spin_results_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["prize_slot_id"],
            ["prize_slots.id"],
            name="fk_spin_results_prize_slot_id_prize_slots",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_spin_results"),
        sa.UniqueConstraint("token_id", name="uq_spin_results_token_id"),
    )
    op.create_index("idx_spin_results_created_at", "spin_results", ["created_at"])
    op.create_index("idx_spin_results_prize_position", "spin_results", ["prize_position"])

    op.create_table(
        "spin_attempts",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("source_address", sa.String(64), nullable=True),
        sa.Column("normalized_code", sa.String(64), nullable=False),
        sa.Column("result", sa.String(24), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "metadata",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "result IN ('ACCEPTED','INVALID','ALREADY_USED','EXPIRED','RATE_LIMITED','MISCONFIGURED')",
            name="ck_spin_attempts_result",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_spin_attempts"),
    )
    op.create_index(
        "idx_spin_attempts_source_time",
        "spin_attempts",
        ["source_address", "attempted_at"],
    )
    op.create_index(
        "idx_spin_attempts_code_time",
        "spin_attempts",
        ["normalized_code", "attempted_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_spin_attempts_code_time", table_name="spin_attempts")
    op.drop_index("idx_spin_attempts_source_time", table_name="spin_attempts")
    op.drop_table("spin_attempts")

    op.drop_index("idx_spin_results_prize_position", table_name="spin_results")
    op.drop_index("idx_spin_results_created_at", table_name="spin_results")
    op.drop_table("spin_results")

    op.drop_index("idx_tokens_created_at", table_name="tokens")
    op.drop_index("idx_tokens_used_expires", table_name="tokens")
    op.drop_index("idx_tokens_expires_at", table_name="tokens")
    op.drop_table("tokens")

    op.drop_table("prize_slots")
