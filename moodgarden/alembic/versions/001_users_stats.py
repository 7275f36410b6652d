"""Users table with the per-user stats read by the leaderboard.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("telegram_id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("first_name", sa.Text()),
        sa.Column("last_name", sa.Text()),
        sa.Column("username", sa.Text()),
        sa.Column("photo_url", sa.Text()),
        sa.Column("garden_theme", sa.Text()),
        sa.Column("level", sa.Integer(), server_default=sa.text("1")),
        sa.Column("experience", sa.Integer(), server_default=sa.text("0")),
        sa.Column("current_streak", sa.Integer(), server_default=sa.text("0")),
        sa.Column("longest_streak", sa.Integer(), server_default=sa.text("0")),
        sa.Column("streak_last_checkin", sa.Date()),
        sa.Column("total_elements", sa.Integer(), server_default=sa.text("0")),
        sa.Column("rare_elements_found", sa.Integer(), server_default=sa.text("0")),
        sa.Column("privacy_settings", JSONB()),
        sa.Column("last_visit_date", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_users_level_rank", "users", ["level", "experience"])
    op.create_index("idx_users_streak_rank", "users", ["current_streak", "longest_streak"])
    op.create_index("idx_users_elements_rank", "users", ["total_elements", "rare_elements_found"])
    op.create_index("idx_users_last_visit", "users", ["last_visit_date"])
    op.create_index("idx_users_streak_checkin", "users", ["streak_last_checkin"])


def downgrade() -> None:
    op.drop_index("idx_users_streak_checkin", table_name="users")
    op.drop_index("idx_users_last_visit", table_name="users")
    op.drop_index("idx_users_elements_rank", table_name="users")
    op.drop_index("idx_users_streak_rank", table_name="users")
    op.drop_index("idx_users_level_rank", table_name="users")
    op.drop_table("users")
