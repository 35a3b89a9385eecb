"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.shared_types import Status


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBMatch(Base):
    __tablename__ = "matches"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    slot_a_player_id: Mapped[Optional[str]]
    slot_a_email: Mapped[Optional[str]] = mapped_column(index=True)
    slot_a_username: Mapped[Optional[str]]
    slot_a_avatar: Mapped[Optional[str]]
    slot_a_role: Mapped[Optional[str]]
    slot_a_moves: Mapped[Optional[str]] = mapped_column(Text)  # versioned JSON, see src/db/codec.py

    slot_b_player_id: Mapped[Optional[str]]
    slot_b_email: Mapped[Optional[str]] = mapped_column(index=True)
    slot_b_username: Mapped[Optional[str]]
    slot_b_avatar: Mapped[Optional[str]]
    slot_b_role: Mapped[Optional[str]]
    slot_b_moves: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[str] = mapped_column(default=Status.WAITING.value)
    winner: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBUser(Base):
    """Owned by the auth system; this service only reads it."""

    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    username: Mapped[str]
    avatar: Mapped[str] = mapped_column(default="player1")
    created_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBUserStats(Base):
    __tablename__ = "user_stats"
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    total_points: Mapped[int] = mapped_column(default=0)
    goals_scored: Mapped[int] = mapped_column(default=0)
    saves_made: Mapped[int] = mapped_column(default=0)
    games_played: Mapped[int] = mapped_column(default=0)
    games_won: Mapped[int] = mapped_column(default=0)
    games_lost: Mapped[int] = mapped_column(default=0)
    games_drawn: Mapped[int] = mapped_column(default=0)
    current_streak: Mapped[int] = mapped_column(default=0)
    best_streak: Mapped[int] = mapped_column(default=0)
    perfect_games: Mapped[int] = mapped_column(default=0)
    # every write is conditional on the version it read
    version: Mapped[int] = mapped_column(default=1)
    last_updated: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
