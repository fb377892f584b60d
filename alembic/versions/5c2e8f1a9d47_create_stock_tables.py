"""create products, batches and shopping entries

Revision ID: 5c2e8f1a9d47
Revises:
Create Date: 2026-03-02 18:12:07.418265

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e8f1a9d47"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("normalized_name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False),
        sa.Column("importance", sa.String(length=20), nullable=False),
        sa.Column("min_quantity", sa.Float(), nullable=True),
        sa.Column("is_ghost", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("household_id", "normalized_name", name="uq_products_household_name"),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"], unique=False)
    op.create_index(op.f("ix_products_household_id"), "products", ["household_id"], unique=False)

    op.create_table(
        "batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("store", sa.String(length=100), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_batches_id"), "batches", ["id"], unique=False)
    op.create_index(op.f("ix_batches_product_id"), "batches", ["product_id"], unique=False)
    op.create_index(op.f("ix_batches_household_id"), "batches", ["household_id"], unique=False)
    op.create_index(op.f("ix_batches_expiry_date"), "batches", ["expiry_date"], unique=False)

    op.create_table(
        "shopping_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("normalized_name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=10), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False),
        sa.Column("is_ghost", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shopping_entries_id"), "shopping_entries", ["id"], unique=False)
    op.create_index(
        op.f("ix_shopping_entries_household_id"), "shopping_entries", ["household_id"], unique=False
    )
    op.create_index(op.f("ix_shopping_entries_status"), "shopping_entries", ["status"], unique=False)

    # At most one active entry per item; backs ON CONFLICT DO NOTHING inserts
    op.create_index(
        "uq_shopping_active_item",
        "shopping_entries",
        ["household_id", "normalized_name"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_index("uq_shopping_active_item", table_name="shopping_entries")
    op.drop_index(op.f("ix_shopping_entries_status"), table_name="shopping_entries")
    op.drop_index(op.f("ix_shopping_entries_household_id"), table_name="shopping_entries")
    op.drop_index(op.f("ix_shopping_entries_id"), table_name="shopping_entries")
    op.drop_table("shopping_entries")

    op.drop_index(op.f("ix_batches_expiry_date"), table_name="batches")
    op.drop_index(op.f("ix_batches_household_id"), table_name="batches")
    op.drop_index(op.f("ix_batches_product_id"), table_name="batches")
    op.drop_index(op.f("ix_batches_id"), table_name="batches")
    op.drop_table("batches")

    op.drop_index(op.f("ix_products_household_id"), table_name="products")
    op.drop_index(op.f("ix_products_id"), table_name="products")
    op.drop_table("products")
