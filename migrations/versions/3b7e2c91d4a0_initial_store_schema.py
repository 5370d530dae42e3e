"""initial store schema: games, keys, orders, roles, profiles, idempotency keys

Revision ID: 3b7e2c91d4a0
Revises:
Create Date: 2026-10-19 10:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e2c91d4a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "userrole",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_userrole_user_id", "userrole", ["user_id"], unique=True)

    op.create_table(
        "profile",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("preferred_language", sa.String(8), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_profile_user_id", "profile", ["user_id"], unique=True)

    op.create_table(
        "game",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("title_ge", sa.String(255), nullable=True),
        sa.Column("title_ru", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("description_ge", sa.Text(), nullable=True),
        sa.Column("description_ru", sa.Text(), nullable=True),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("original_price", sa.BigInteger(), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("platform", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_game_public_id", "game", ["public_id"], unique=True)
    op.create_index("ix_game_category", "game", ["category"])
    op.create_index("ix_game_is_active", "game", ["is_active"])

    op.create_table(
        "gamekey",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("game.id", ondelete="CASCADE"), nullable=False),
        sa.Column("key_value", sa.String(255), nullable=False, unique=True),
        sa.Column("is_sold", sa.Boolean(), nullable=False),
        sa.Column("sold_to", sa.String(128), nullable=True),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_gamekey_public_id", "gamekey", ["public_id"], unique=True)
    op.create_index("ix_gamekey_sold_to", "gamekey", ["sold_to"])
    op.create_index("ix_gamekey_game_id_is_sold", "gamekey", ["game_id", "is_sold"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("game.id", ondelete="SET NULL"), nullable=True),
        sa.Column("game_key_id", sa.Integer(), sa.ForeignKey("gamekey.id", ondelete="SET NULL"), nullable=True,
                  unique=True),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_orders_public_id", "orders", ["public_id"], unique=True)
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_game_id", "orders", ["game_id"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "idempotencykey",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("request_hash", sa.String(128), nullable=True),
        sa.Column("response_code", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("created_by", "key", name="uq_idempotencykey_created_by_key"),
    )
    op.create_index("ix_idempotencykey_expires_at", "idempotencykey", ["expires_at"])


def downgrade():
    op.drop_table("idempotencykey")
    op.drop_table("orders")
    op.drop_table("gamekey")
    op.drop_table("game")
    op.drop_table("profile")
    op.drop_table("userrole")
