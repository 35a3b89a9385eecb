"""Protocol repositories (implemented with SQLAlchemy in sql_repository.py)."""

from typing import Optional, Protocol

from src.core.models import MatchModel, PlayerMoves, PlayerSlot, UserModel, UserStatsModel
from src.core.shared_types import SlotName


class MatchRepository(Protocol):
    """
    Persistence of match records.

    Every method returning a bool is a single conditional write: True when it affected the row,
    False when the row did not exist or no longer satisfied the condition.
    """

    def get_match(self, match_id: str) -> MatchModel | None:
        """Get match by ID, if record exists."""
        ...

    def create_match(self, match: MatchModel) -> MatchModel:
        """Store a new match under the ID it carries."""
        ...

    def claim_slot_b(self, match_id: str, slot: PlayerSlot) -> bool:
        """Occupy slot B, unless somebody with a different email already holds it."""
        ...

    def takeover_slot_b(self, match_id: str, slot: PlayerSlot) -> bool:
        """Replace slot B's identity while slot B has not committed moves."""
        ...

    def set_invited_email(self, match_id: str, email: str) -> bool:
        """Record the email slot B was invited under."""
        ...

    def commit_moves(self, match_id: str, slot: SlotName, moves: PlayerMoves) -> bool:
        """Write moves to the slot only if the slot has none yet."""
        ...

    def finish_match(self, match_id: str, winner: Optional[SlotName]) -> bool:
        """Flip a waiting match with both move sets present to finished."""
        ...

    def delete_match(self, match_id: str, require_slot_b_unmoved: bool = False) -> bool:
        """Remove a match record."""
        ...

    def find_open_challenge(
        self, email_a: str, email_b: str, exclude_id: Optional[str] = None
    ) -> MatchModel | None:
        """Most recent unfinished, incomplete match between two emails, in either direction."""
        ...

    def pending_challenges_for(self, email: str) -> list[MatchModel]:
        """Waiting matches addressed to this email where slot B still has to join or move."""
        ...


class UserRepository(Protocol):
    def get_user(self, user_id: str) -> UserModel | None: ...

    def find_user_by_email(self, email: str) -> UserModel | None: ...

    def add_user(self, user: UserModel) -> UserModel: ...


class StatsRepository(Protocol):
    def get_stats(self, user_id: str) -> UserStatsModel | None: ...

    def save_stats(self, stats: UserStatsModel) -> bool:
        """Write the row only if it is still at stats.version (0: no row yet)."""
        ...

    def leaderboard(self, limit: int) -> list[tuple[UserModel, UserStatsModel]]:
        """Users with at least one game, best total points first."""
        ...

    def rank_of(self, user_id: str) -> int:
        """1 + number of users with strictly more points."""
        ...
