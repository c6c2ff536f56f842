"""initial link store schema

Revision ID: 0001_links
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_links"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "payment_links",
        sa.Column("link_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("access_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("link_id"),
        sa.CheckConstraint("amount > 0", name="ck_payment_links_amount_positive"),
        sa.CheckConstraint("access_count >= 0", name="ck_payment_links_access_count_non_negative"),
    )
    op.create_index("ix_payment_links_code", "payment_links", ["code"], unique=True)
    op.create_index("ix_payment_links_is_active", "payment_links", ["is_active"])
    op.create_index("ix_payment_links_owner_id", "payment_links", ["owner_id"])

    op.create_table(
        "gateway_credentials",
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("public_key", sa.String(), nullable=True),
        sa.Column("secret_key", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("owner_id"),
    )

    op.create_table(
        "checkout_settings",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("checkout_settings")
    op.drop_table("gateway_credentials")
    op.drop_index("ix_payment_links_owner_id", table_name="payment_links")
    op.drop_index("ix_payment_links_is_active", table_name="payment_links")
    op.drop_index("ix_payment_links_code", table_name="payment_links")
    op.drop_table("payment_links")
