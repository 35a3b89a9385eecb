"""
Points and streak rules applied to a finished match.

Stats only ever accumulate. Applying the same outcome twice counts it twice, so callers must make sure
each finished match is recorded exactly once per user.
"""

from dataclasses import dataclass, replace
from enum import StrEnum

from src.core.models import UserStatsModel
from src.core.shared_types import ROUNDS_PER_MATCH, SlotName
from src.shootout.resolution import GameResult

POINTS_PER_GOAL = 10
POINTS_PER_SAVE = 15
WIN_BONUS = 50
DRAW_BONUS = 20
PERFECT_GAME_BONUS = 100


class Verdict(StrEnum):
    WON = "won"
    LOST = "lost"
    DRAWN = "drawn"


@dataclass(frozen=True)
class PlayerOutcome:
    """What one participant took away from a single match."""

    goals_scored: int
    saves_made: int
    verdict: Verdict
    perfect: bool

    @property
    def base_points(self) -> int:
        return POINTS_PER_GOAL * self.goals_scored + POINTS_PER_SAVE * self.saves_made

    @property
    def bonus_points(self) -> int:
        bonus = 0
        if self.verdict is Verdict.WON:
            bonus += WIN_BONUS
        elif self.verdict is Verdict.DRAWN:
            bonus += DRAW_BONUS
        if self.perfect:
            bonus += PERFECT_GAME_BONUS
        return bonus

    @property
    def total_points(self) -> int:
        return self.base_points + self.bonus_points


def outcome_for(result: GameResult, slot: SlotName) -> PlayerOutcome:
    goals = result.goals_scored_by(slot)
    saves = result.saves_made_by(slot)

    winner = result.winner_slot
    if winner is None:
        verdict = Verdict.DRAWN
    elif winner is slot:
        verdict = Verdict.WON
    else:
        verdict = Verdict.LOST

    return PlayerOutcome(
        goals_scored=goals,
        saves_made=saves,
        verdict=verdict,
        perfect=ROUNDS_PER_MATCH in (goals, saves),
    )


def apply_outcome(stats: UserStatsModel, outcome: PlayerOutcome) -> UserStatsModel:
    """Return the accumulated stats after one more match. The input is left untouched."""
    won = outcome.verdict is Verdict.WON
    current_streak = stats.current_streak + 1 if won else 0

    return replace(
        stats,
        total_points=stats.total_points + outcome.total_points,
        goals_scored=stats.goals_scored + outcome.goals_scored,
        saves_made=stats.saves_made + outcome.saves_made,
        games_played=stats.games_played + 1,
        games_won=stats.games_won + int(won),
        games_lost=stats.games_lost + int(outcome.verdict is Verdict.LOST),
        games_drawn=stats.games_drawn + int(outcome.verdict is Verdict.DRAWN),
        current_streak=current_streak,
        best_streak=max(stats.best_streak, current_streak),
        perfect_games=stats.perfect_games + int(outcome.perfect),
    )
