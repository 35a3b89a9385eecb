"""Implementation of the repositories using SQLAlchemy"""

import logging
from typing import Any, Optional

from sqlalchemy import ColumnElement, and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session

from src.core.exceptions import ConflictError
from src.core.models import MatchModel, PlayerMoves, PlayerSlot, UserModel, UserStatsModel
from src.core.shared_types import Role, SlotName, Status
from src.db.codec import decode_moves, encode_moves
from src.db.schema import DBMatch, DBUser, DBUserStats

logger = logging.getLogger(__name__)


def _column(slot: SlotName, name: str) -> InstrumentedAttribute[Any]:
    """e.g. (SlotName.B, 'moves') -> DBMatch.slot_b_moves"""
    return getattr(DBMatch, f"slot_{slot.value}_{name}")


def _identity_values(slot_name: SlotName, slot: PlayerSlot) -> dict[str, Any]:
    return {
        f"slot_{slot_name.value}_player_id": slot.player_id,
        f"slot_{slot_name.value}_email": slot.email,
        f"slot_{slot_name.value}_username": slot.username,
        f"slot_{slot_name.value}_avatar": slot.avatar,
    }


class SQLMatchRepository:
    """Match records stored using SQL. All mutations are conditional UPDATE/DELETE statements."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_match(self, match_id: str) -> MatchModel | None:
        """Get match by ID, if record exists."""
        match_db = self._fetch_match(match_id)
        if match_db:
            return self._to_model(match_db)
        return None

    def create_match(self, match: MatchModel) -> MatchModel:
        """Store a new match under the ID it carries."""
        match_db = DBMatch(
            id=match.id,
            status=match.status.value,
            winner=match.winner.value if match.winner else None,
        )
        for slot_name in SlotName:
            slot = match.slot(slot_name)
            for key, value in _identity_values(slot_name, slot).items():
                setattr(match_db, key, value)
            setattr(match_db, f"slot_{slot_name.value}_role", slot.role.value if slot.role else None)
            setattr(
                match_db,
                f"slot_{slot_name.value}_moves",
                encode_moves(slot.moves) if slot.moves else None,
            )
        if match.created_at is not None:
            match_db.created_at = match.created_at

        self.db.add(match_db)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Match with id={match.id!r} already exists.") from e
        self.db.refresh(match_db)
        return self._to_model(match_db)

    def claim_slot_b(self, match_id: str, slot: PlayerSlot) -> bool:
        """Occupy slot B, unless somebody with a different email already holds it."""
        return self._conditional_update(
            match_id,
            [
                or_(
                    DBMatch.slot_b_player_id.is_(None),
                    DBMatch.slot_b_email == slot.email,
                )
            ],
            _identity_values(SlotName.B, slot),
        )

    def takeover_slot_b(self, match_id: str, slot: PlayerSlot) -> bool:
        """Replace slot B's identity while slot B has not committed moves."""
        return self._conditional_update(
            match_id,
            [DBMatch.slot_b_moves.is_(None)],
            _identity_values(SlotName.B, slot),
        )

    def set_invited_email(self, match_id: str, email: str) -> bool:
        """Record the email slot B was invited under."""
        return self._conditional_update(match_id, [], {"slot_b_email": email})

    def commit_moves(self, match_id: str, slot: SlotName, moves: PlayerMoves) -> bool:
        """
        UPDATE ... SET slot_x_moves = :moves, slot_x_role = :role
        WHERE id = :id AND slot_x_moves IS NULL
          AND (slot_x_role IS NULL OR slot_x_role = :role)
          AND (slot_y_role IS NULL OR slot_y_role != :role)
        """
        role = moves.role.value
        own_role = _column(slot, "role")
        other_role = _column(slot.other(), "role")
        return self._conditional_update(
            match_id,
            [
                _column(slot, "moves").is_(None),
                or_(own_role.is_(None), own_role == role),
                or_(other_role.is_(None), other_role != role),
            ],
            {
                f"slot_{slot.value}_moves": encode_moves(moves),
                f"slot_{slot.value}_role": role,
            },
        )

    def finish_match(self, match_id: str, winner: Optional[SlotName]) -> bool:
        """Only one caller can ever win this: the status condition fails for everybody after it."""
        return self._conditional_update(
            match_id,
            [
                DBMatch.status == Status.WAITING.value,
                DBMatch.slot_a_moves.is_not(None),
                DBMatch.slot_b_moves.is_not(None),
            ],
            {
                "status": Status.FINISHED.value,
                "winner": winner.value if winner else None,
            },
        )

    def delete_match(self, match_id: str, require_slot_b_unmoved: bool = False) -> bool:
        """Remove a match record."""
        conditions = [DBMatch.id == match_id]
        if require_slot_b_unmoved:
            conditions.append(DBMatch.slot_b_moves.is_(None))
        statement = (
            delete(DBMatch)
            .where(*conditions)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        self.db.commit()
        return result.rowcount == 1

    def find_open_challenge(
        self, email_a: str, email_b: str, exclude_id: Optional[str] = None
    ) -> MatchModel | None:
        """Most recent unfinished, incomplete match between two emails, in either direction."""
        conditions = [
            or_(
                and_(DBMatch.slot_a_email == email_a, DBMatch.slot_b_email == email_b),
                and_(DBMatch.slot_a_email == email_b, DBMatch.slot_b_email == email_a),
            ),
            DBMatch.status != Status.FINISHED.value,
            or_(
                DBMatch.slot_a_moves.is_(None),
                DBMatch.slot_b_moves.is_(None),
                DBMatch.slot_b_player_id.is_(None),
            ),
        ]
        if exclude_id is not None:
            conditions.append(DBMatch.id != exclude_id)

        query = (
            select(DBMatch)
            .where(*conditions)
            .order_by(DBMatch.created_at.desc())
            .limit(1)
        )
        match_db = self.db.scalar(query)
        return self._to_model(match_db) if match_db else None

    def pending_challenges_for(self, email: str) -> list[MatchModel]:
        """Waiting matches addressed to this email where slot B still has to join or move."""
        query = (
            select(DBMatch)
            .where(
                DBMatch.slot_b_email == email,
                or_(DBMatch.slot_b_player_id.is_(None), DBMatch.slot_b_moves.is_(None)),
                DBMatch.status == Status.WAITING.value,
            )
            .order_by(DBMatch.created_at.desc())
        )
        return [self._to_model(match_db) for match_db in self.db.scalars(query)]

    # -- Internal helpers --
    def _conditional_update(
        self,
        match_id: str,
        conditions: list[ColumnElement[bool]],
        values: dict[str, Any],
    ) -> bool:
        """Single UPDATE with the condition embedded. Reports whether the row was affected."""
        statement = (
            update(DBMatch)
            .where(DBMatch.id == match_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        self.db.commit()
        affected = result.rowcount == 1
        if not affected:
            logger.debug("Conditional update on match %s affected no row", match_id)
        return affected

    def _fetch_match(self, match_id: str) -> DBMatch | None:
        query = (
            select(DBMatch)
            .where(DBMatch.id == match_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    def _to_model(self, match_db: DBMatch) -> MatchModel:
        """Convert SQLAlchemy model to data transfer model."""

        def slot(name: SlotName) -> PlayerSlot:
            role = getattr(match_db, f"slot_{name.value}_role")
            return PlayerSlot(
                player_id=getattr(match_db, f"slot_{name.value}_player_id"),
                email=getattr(match_db, f"slot_{name.value}_email"),
                username=getattr(match_db, f"slot_{name.value}_username"),
                avatar=getattr(match_db, f"slot_{name.value}_avatar"),
                role=Role(role) if role else None,
                moves=decode_moves(getattr(match_db, f"slot_{name.value}_moves")),
            )

        return MatchModel(
            id=match_db.id,
            slot_a=slot(SlotName.A),
            slot_b=slot(SlotName.B),
            status=Status(match_db.status),
            winner=SlotName(match_db.winner) if match_db.winner else None,
            created_at=match_db.created_at,
        )


class SQLUserRepository:
    """Read access to the users table (plus add_user, used when provisioning/seeding)."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_user(self, user_id: str) -> UserModel | None:
        user_db = self.db.scalar(select(DBUser).where(DBUser.id == user_id))
        return self._to_model(user_db) if user_db else None

    def find_user_by_email(self, email: str) -> UserModel | None:
        user_db = self.db.scalar(select(DBUser).where(DBUser.email == email))
        return self._to_model(user_db) if user_db else None

    def add_user(self, user: UserModel) -> UserModel:
        user_db = DBUser(
            id=user.id, email=user.email, username=user.username, avatar=user.avatar
        )
        self.db.add(user_db)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"User with email {user.email!r} already exists.") from e
        self.db.refresh(user_db)
        return self._to_model(user_db)

    @staticmethod
    def _to_model(user_db: DBUser) -> UserModel:
        return UserModel(
            id=user_db.id,
            email=user_db.email,
            username=user_db.username,
            avatar=user_db.avatar,
            created_at=user_db.created_at,
        )


_STAT_FIELDS = (
    "total_points",
    "goals_scored",
    "saves_made",
    "games_played",
    "games_won",
    "games_lost",
    "games_drawn",
    "current_streak",
    "best_streak",
    "perfect_games",
)


class SQLStatsRepository:
    """Per-user cumulative stats."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_stats(self, user_id: str) -> UserStatsModel | None:
        stats_db = self._fetch_stats(user_id)
        return self._to_model(stats_db) if stats_db else None

    def save_stats(self, stats: UserStatsModel) -> bool:
        """
        Write the row only if it is still at stats.version (0: no row yet). The written row is at
        stats.version + 1. False means somebody else wrote in between: re-read and retry.
        """
        values = {name: getattr(stats, name) for name in _STAT_FIELDS}
        if stats.version == 0:
            self.db.add(DBUserStats(user_id=stats.user_id, version=1, **values))
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.debug("Stats row of %s was created concurrently", stats.user_id)
                return False
            return True

        statement = (
            update(DBUserStats)
            .where(
                DBUserStats.user_id == stats.user_id,
                DBUserStats.version == stats.version,
            )
            .values(version=DBUserStats.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        self.db.commit()
        return result.rowcount == 1

    def leaderboard(self, limit: int) -> list[tuple[UserModel, UserStatsModel]]:
        """Users with at least one game, best total points first."""
        query = (
            select(DBUser, DBUserStats)
            .join(DBUserStats, DBUserStats.user_id == DBUser.id)
            .where(DBUserStats.games_played > 0)
            .order_by(DBUserStats.total_points.desc(), DBUser.username)
            .limit(limit)
        )
        return [
            (SQLUserRepository._to_model(user_db), self._to_model(stats_db))
            for user_db, stats_db in self.db.execute(query).tuples()
        ]

    def rank_of(self, user_id: str) -> int:
        """1 + number of users with strictly more points."""
        own = self._fetch_stats(user_id)
        own_points = own.total_points if own else 0
        query = select(func.count()).select_from(DBUserStats).where(
            DBUserStats.total_points > own_points
        )
        return (self.db.scalar(query) or 0) + 1

    def _fetch_stats(self, user_id: str) -> DBUserStats | None:
        query = (
            select(DBUserStats)
            .where(DBUserStats.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    @staticmethod
    def _to_model(stats_db: DBUserStats) -> UserStatsModel:
        return UserStatsModel(
            user_id=stats_db.user_id,
            version=stats_db.version,
            **{name: getattr(stats_db, name) for name in _STAT_FIELDS},
        )
