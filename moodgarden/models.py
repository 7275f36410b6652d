"""SQLAlchemy ORM models for the per-user stat rows the leaderboard reads."""

from datetime import date, datetime

from sqlalchemy import BigInteger, Index, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import Date, DateTime, Integer


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Users (one stat row per Telegram user)
# ---------------------------------------------------------------------------


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_level_rank", "level", "experience"),
        Index("idx_users_streak_rank", "current_streak", "longest_streak"),
        Index("idx_users_elements_rank", "total_elements", "rare_elements_found"),
        Index("idx_users_last_visit", "last_visit_date"),
        Index("idx_users_streak_checkin", "streak_last_checkin"),
    )

    telegram_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    # Display fields
    first_name: Mapped[str | None] = mapped_column(Text)
    last_name: Mapped[str | None] = mapped_column(Text)
    username: Mapped[str | None] = mapped_column(Text)
    photo_url: Mapped[str | None] = mapped_column(Text)
    garden_theme: Mapped[str | None] = mapped_column(Text)

    # Progression
    level: Mapped[int | None] = mapped_column(Integer, server_default=text("1"))
    experience: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))

    # Streaks
    current_streak: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    longest_streak: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    streak_last_checkin: Mapped[date | None] = mapped_column(Date)

    # Garden
    total_elements: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    rare_elements_found: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))

    privacy_settings: Mapped[dict | None] = mapped_column(JSONB)

    last_visit_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
