"""Initial tables for catalog entities, favourites and platform settings.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "brands",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column(
            "is_verified", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("rating", sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column("price_range", sa.String(length=100), nullable=True),
        sa.Column("currency", sa.String(length=10), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_brands"),
    )

    op.create_table(
        "catalogues",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("brand_id", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_catalogues"),
        sa.ForeignKeyConstraint(
            ["brand_id"], ["brands.id"], name="fk_catalogues_brand", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_catalogues_brand", "catalogues", ["brand_id"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("brand_id", sa.String(length=64), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("sale_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
        sa.ForeignKeyConstraint(
            ["brand_id"], ["brands.id"], name="fk_products_brand", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_products_brand", "products", ["brand_id"], unique=False)

    op.create_table(
        "favourites",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column("item_type", sa.String(length=20), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_favourites"),
        sa.UniqueConstraint(
            "user_id", "item_id", "item_type", name="uq_favourites_user_item"
        ),
        sa.CheckConstraint(
            "item_type IN ('brand', 'catalogue', 'product')",
            name="ck_favourites_item_type",
        ),
    )
    op.create_index("idx_favourites_user", "favourites", ["user_id"], unique=False)
    op.create_index(
        "idx_favourites_created", "favourites", ["created_at"], unique=False
    )

    op.create_table(
        "platform_settings",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("key", name="pk_platform_settings"),
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("platform_settings")
    op.drop_index("idx_favourites_created", table_name="favourites")
    op.drop_index("idx_favourites_user", table_name="favourites")
    op.drop_table("favourites")
    op.drop_index("idx_products_brand", table_name="products")
    op.drop_table("products")
    op.drop_index("idx_catalogues_brand", table_name="catalogues")
    op.drop_table("catalogues")
    op.drop_table("brands")
