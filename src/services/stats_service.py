"""Scoring of finished matches and the read side of player statistics."""

import logging
import math
from dataclasses import replace
from typing import Optional

from src.api.models import (
    LeaderboardEntry,
    LeaderboardResponse,
    LevelProgressResponse,
    LevelResponse,
    StatsSummary,
    UserStatsResponse,
    UserSummary,
)
from src.core.exceptions import NotFoundError, UnavailableError
from src.core.models import MatchModel, UserModel, UserStatsModel
from src.core.shared_types import SlotName
from src.db.repository import StatsRepository, UserRepository
from src.shootout.levels import Level, calculate_level, next_level, points_to_next, progress
from src.shootout.resolution import GameResult
from src.shootout.scoring import PlayerOutcome, apply_outcome, outcome_for

logger = logging.getLogger(__name__)

STATS_WRITE_ATTEMPTS = 5


class StatsService:
    def __init__(
        self,
        users: UserRepository,
        stats: StatsRepository,
        leaderboard_size: int = 10,
    ) -> None:
        self.users = users
        self.stats = stats
        self.leaderboard_size = leaderboard_size

    def record_finished_match(self, match: MatchModel, result: GameResult) -> dict[SlotName, UserStatsModel]:
        """
        Add one finished match to both participants' totals.

        Must be called once per match: the caller guarantees this by only scoring after winning the
        conditional finish. Slots that do not belong to a registered user (guests) are skipped.
        """
        updated = {}
        for slot_name in SlotName:
            user = self.resolve_user(match, slot_name)
            if user is None:
                logger.info(
                    "Match %s: slot %s is not a registered user, no stats recorded",
                    match.id,
                    slot_name,
                )
                continue

            outcome = outcome_for(result, slot_name)
            updated[slot_name] = self._add_outcome(user, outcome)
            logger.info(
                "Match %s: %s %s, +%d points",
                match.id,
                user.username,
                outcome.verdict,
                outcome.total_points,
            )
        return updated

    def _add_outcome(self, user: UserModel, outcome: PlayerOutcome) -> UserStatsModel:
        """Read, apply, write back conditionally. Another match of the same user may finish concurrently."""
        for _ in range(STATS_WRITE_ATTEMPTS):
            current = self.stats.get_stats(user.id) or UserStatsModel(user_id=user.id)
            new_stats = apply_outcome(current, outcome)
            if self.stats.save_stats(new_stats):
                return replace(new_stats, version=current.version + 1)
            logger.warning("Stats of %s changed while being updated, retrying", user.id)
        raise UnavailableError(f"Could not update stats of user {user.id!r}, too many concurrent writes.")

    def resolve_user(self, match: MatchModel, slot_name: SlotName) -> Optional[UserModel]:
        """A slot's player id is sometimes a user id, sometimes a throwaway id: fall back on the email."""
        slot = match.slot(slot_name)
        if slot.player_id:
            user = self.users.get_user(slot.player_id)
            if user is not None:
                return user
        if slot.email:
            return self.users.find_user_by_email(slot.email)
        return None

    # -- API routes logic ---
    def user_stats(self, user_id: str) -> UserStatsResponse:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User with {user_id=} not found.")

        stats = self.stats.get_stats(user_id) or UserStatsModel(user_id=user_id)
        level = calculate_level(stats.total_points)
        upcoming = next_level(level)
        return UserStatsResponse(
            user=UserSummary(
                id=user.id, username=user.username, avatar=user.avatar, email=user.email
            ),
            stats=_stats_summary(stats),
            rank=self.stats.rank_of(user_id),
            level=LevelProgressResponse(
                current=_level_response(level),
                next=_level_response(upcoming) if upcoming else None,
                progress=progress(stats.total_points, level),
                points_to_next=points_to_next(stats.total_points, level),
            ),
        )

    def leaderboard(self) -> LeaderboardResponse:
        entries = [
            LeaderboardEntry(
                rank=index + 1,
                id=user.id,
                username=user.username,
                avatar=user.avatar,
                stats=_stats_summary(stats),
                level=_level_response(calculate_level(stats.total_points)),
            )
            for index, (user, stats) in enumerate(self.stats.leaderboard(self.leaderboard_size))
        ]
        return LeaderboardResponse(leaderboard=entries)


def _stats_summary(stats: UserStatsModel) -> StatsSummary:
    return StatsSummary(
        total_points=stats.total_points,
        games_played=stats.games_played,
        games_won=stats.games_won,
        games_lost=stats.games_lost,
        games_drawn=stats.games_drawn,
        win_rate=stats.win_rate,
        goals_scored=stats.goals_scored,
        saves_made=stats.saves_made,
        current_streak=stats.current_streak,
        best_streak=stats.best_streak,
        perfect_games=stats.perfect_games,
    )


def _level_response(level: Level) -> LevelResponse:
    return LevelResponse(
        id=level.id,
        name=level.name,
        icon=level.icon,
        min_points=level.min_points,
        max_points=None if math.isinf(level.max_points) else int(level.max_points),
    )
