"""
Boundary layer data model(s).

These objects are used to communicate with the Services.
Both the API layer (higher) and domain/db layers (lower) send/receive these, which decouples the
SQLAlchemy rows and the pydantic request models from the information actually needed across boundaries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.core.shared_types import Direction, Role, SlotName, Status


@dataclass(frozen=True)
class PlayerMoves:
    """A committed set of five directions plus the role they were played as."""

    moves: tuple[Direction, ...]
    role: Role


@dataclass
class PlayerSlot:
    """One participant position. Every field is optional: an invitation may only know the email."""

    player_id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    avatar: Optional[str] = None
    role: Optional[Role] = None  # role assigned before moves exist (revenge / creator's initial moves)
    moves: Optional[PlayerMoves] = None

    @property
    def is_joined(self) -> bool:
        return self.player_id is not None

    @property
    def has_moved(self) -> bool:
        return self.moves is not None


@dataclass
class MatchModel:
    """Transport-safe representation of a match record."""

    id: str
    slot_a: PlayerSlot
    slot_b: PlayerSlot = field(default_factory=PlayerSlot)
    status: Status = Status.WAITING
    winner: Optional[SlotName] = None
    created_at: Optional[datetime] = None

    def slot(self, name: SlotName) -> PlayerSlot:
        return self.slot_a if name is SlotName.A else self.slot_b

    def slot_of_player(self, player_id: str) -> Optional[SlotName]:
        """Which slot (if any) the given player id occupies."""
        if self.slot_a.player_id == player_id:
            return SlotName.A
        if self.slot_b.player_id == player_id:
            return SlotName.B
        return None

    def slot_of_email(self, email: str) -> Optional[SlotName]:
        if self.slot_a.email == email:
            return SlotName.A
        if self.slot_b.email == email:
            return SlotName.B
        return None

    @property
    def is_ready(self) -> bool:
        """Both slots occupied, but moves still missing."""
        return (
            self.status == Status.WAITING
            and self.slot_a.is_joined
            and self.slot_b.is_joined
        )

    @property
    def both_moved(self) -> bool:
        return self.slot_a.has_moved and self.slot_b.has_moved

    @property
    def is_draw(self) -> bool:
        """A null winner only means 'draw' once the match is finished."""
        return self.status == Status.FINISHED and self.winner is None


@dataclass(frozen=True)
class UserModel:
    id: str
    email: str
    username: str
    avatar: str = "player1"
    created_at: Optional[datetime] = None


@dataclass
class UserStatsModel:
    """Cumulative per-user totals. Only ever moves forward."""

    user_id: str
    total_points: int = 0
    goals_scored: int = 0
    saves_made: int = 0
    games_played: int = 0
    games_won: int = 0
    games_lost: int = 0
    games_drawn: int = 0
    current_streak: int = 0
    best_streak: int = 0
    perfect_games: int = 0
    version: int = 0  # of the stored row this was read from, 0 if there is none yet

    @property
    def win_rate(self) -> float:
        """Percentage, rounded to one decimal."""
        if self.games_played == 0:
            return 0.0
        return round(self.games_won / self.games_played * 100, 1)
