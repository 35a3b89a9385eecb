"""
Penalty resolution.

Pure functions: two five-move sequences in, round outcomes + score + winner out.
Nothing here is ever persisted; the result is recomputed from the stored move sets whenever needed.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from src.core.exceptions import InvalidRequestError
from src.core.models import PlayerMoves
from src.core.shared_types import ROUNDS_PER_MATCH, Direction, PointsTo, Role, SlotName


@dataclass(frozen=True)
class RoundResult:
    shot_move: Direction
    save_move: Direction
    goal: bool
    shooter_slot: SlotName
    points_to: PointsTo


@dataclass(frozen=True)
class GameResult:
    rounds: tuple[RoundResult, ...]
    shooter_slot: SlotName
    score_shooter: int
    score_keeper: int

    @property
    def keeper_slot(self) -> SlotName:
        return self.shooter_slot.other()

    @property
    def winner_role(self) -> Optional[Role]:
        """None means draw."""
        if self.score_shooter > self.score_keeper:
            return Role.SHOOTER
        if self.score_keeper > self.score_shooter:
            return Role.KEEPER
        return None

    @property
    def winner_slot(self) -> Optional[SlotName]:
        """None means draw."""
        role = self.winner_role
        if role is None:
            return None
        return self.shooter_slot if role is Role.SHOOTER else self.keeper_slot

    @property
    def is_draw(self) -> bool:
        return self.winner_role is None

    def score_of(self, slot: SlotName) -> int:
        return self.score_shooter if slot is self.shooter_slot else self.score_keeper

    def goals_scored_by(self, slot: SlotName) -> int:
        return sum(1 for r in self.rounds if r.shooter_slot is slot and r.goal)

    def saves_made_by(self, slot: SlotName) -> int:
        return sum(1 for r in self.rounds if r.shooter_slot is not slot and not r.goal)


def is_goal(shot: Direction, save: Direction) -> bool:
    """The ball goes in unless the keeper dives the same way."""
    return shot != save


def resolve(
    shooter_moves: Sequence[Direction],
    keeper_moves: Sequence[Direction],
    shooter_slot: SlotName = SlotName.A,
) -> GameResult:
    """Compare the two sequences positionally. Every round hands exactly one point to one side."""
    if len(shooter_moves) != ROUNDS_PER_MATCH or len(keeper_moves) != ROUNDS_PER_MATCH:
        raise InvalidRequestError(
            f"Both sides need exactly {ROUNDS_PER_MATCH} moves, got {len(shooter_moves)} and {len(keeper_moves)}."
        )

    rounds = []
    score_shooter = 0
    score_keeper = 0
    for shot, save in zip(shooter_moves, keeper_moves):
        goal = is_goal(shot, save)
        if goal:
            score_shooter += 1
        else:
            score_keeper += 1
        rounds.append(
            RoundResult(
                shot_move=Direction(shot),
                save_move=Direction(save),
                goal=goal,
                shooter_slot=shooter_slot,
                points_to=PointsTo.SHOOTER if goal else PointsTo.KEEPER,
            )
        )

    return GameResult(
        rounds=tuple(rounds),
        shooter_slot=shooter_slot,
        score_shooter=score_shooter,
        score_keeper=score_keeper,
    )


def resolve_match(slot_a_moves: PlayerMoves, slot_b_moves: PlayerMoves) -> GameResult:
    """
    Work out who shot and who kept from the committed role tags, then resolve.

    NOTE if both slots claim the same role (records written before roles were validated),
    slot A's declared role wins and slot B plays the other one.
    """
    if slot_a_moves.role is Role.SHOOTER:
        return resolve(slot_a_moves.moves, slot_b_moves.moves, shooter_slot=SlotName.A)
    return resolve(slot_b_moves.moves, slot_a_moves.moves, shooter_slot=SlotName.B)
