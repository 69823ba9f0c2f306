"""Create users, food_types and food_items tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Initial schema: Google-backed users, shared food types and the
       per-user food items that reference both.

Rollback: downgrade() drops all three tables (all fridge data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("google_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("hobbies", sa.JSON(), nullable=False),
        # {vegetarian, vegan, halal, keto}
        sa.Column("dietary_preferences", sa.JSON(), nullable=True),
        # {enableNotifications, expiryThresholdDays, notificationTime}
        sa.Column("notification_preferences", sa.JSON(), nullable=True),
        sa.Column("fcm_token", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("google_id"),
        sa.UniqueConstraint("email"),
    )
    # The expiry job scans for users with a registered device
    op.create_index("idx_users_fcm_token", "users", ["fcm_token"])

    op.create_table(
        "food_types",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("quantity", sa.String(255), nullable=True),
        sa.Column("ingredients", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("expiration_date", sa.String(64), nullable=True),
        sa.Column("allergens", sa.JSON(), nullable=False),
        sa.Column("nutrients", sa.JSON(), nullable=False),
        sa.Column("shelf_life_days", sa.Integer(), nullable=True),
        sa.Column("barcode_id", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_food_types_barcode_id", "food_types", ["barcode_id"])

    op.create_table(
        "food_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("type_id", sa.Uuid(), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column("percent_left", sa.Integer(), server_default=sa.text("100"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "percent_left >= 0 AND percent_left <= 100",
            name="ck_food_items_percent_left",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["type_id"], ["food_types.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_food_items_user_id", "food_items", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_food_items_user_id", table_name="food_items")
    op.drop_table("food_items")
    op.drop_index("idx_food_types_barcode_id", table_name="food_types")
    op.drop_table("food_types")
    op.drop_index("idx_users_fcm_token", table_name="users")
    op.drop_table("users")
