"""Unit tests for src/shootout/resolution.py"""

from itertools import product

import pytest

from src.core.exceptions import InvalidRequestError
from src.core.models import PlayerMoves
from src.core.shared_types import Direction, PointsTo, Role, SlotName
from src.shootout.resolution import is_goal, resolve, resolve_match

L, C, R = Direction.LEFT, Direction.CENTER, Direction.RIGHT


@pytest.mark.parametrize("shot, save", list(product(Direction, Direction)))
def test_goal_unless_keeper_guesses_right(shot: Direction, save: Direction) -> None:
    assert is_goal(shot, save) == (shot != save)


@pytest.mark.parametrize(
    "shot, save, goal",
    [
        (L, R, True),
        (C, C, False),
        (R, L, True),
    ],
)
def test_single_round_examples(shot: Direction, save: Direction, goal: bool) -> None:
    assert is_goal(shot, save) is goal


def test_mixed_shootout() -> None:
    """Shooter wins 4:1: goal, save, goal, goal, goal"""
    result = resolve([L, C, R, L, C], [R, C, L, C, R])

    assert [r.goal for r in result.rounds] == [True, False, True, True, True]
    assert [r.points_to for r in result.rounds] == [
        PointsTo.SHOOTER,
        PointsTo.KEEPER,
        PointsTo.SHOOTER,
        PointsTo.SHOOTER,
        PointsTo.SHOOTER,
    ]
    assert result.score_shooter == 4
    assert result.score_keeper == 1
    assert result.winner_role is Role.SHOOTER
    assert result.winner_slot is SlotName.A


def test_keeper_reads_every_shot() -> None:
    """Identical sequences: five saves, keeper wins 5:0"""
    moves = [L, C, R, L, C]
    result = resolve(moves, list(moves))

    assert all(not r.goal for r in result.rounds)
    assert result.score_shooter == 0
    assert result.score_keeper == 5
    assert result.winner_role is Role.KEEPER
    assert result.winner_slot is SlotName.B


@pytest.mark.parametrize(
    "shooter, keeper",
    [
        ([L, L, L, L, L], [R, R, R, R, R]),
        ([L, C, R, L, C], [L, C, L, C, R]),
        ([C, C, C, C, C], [C, C, C, L, R]),
        ([R, L, C, R, L], [L, R, L, C, R]),
    ],
)
def test_one_point_per_round(shooter: list[Direction], keeper: list[Direction]) -> None:
    result = resolve(shooter, keeper)
    assert result.score_shooter + result.score_keeper == 5
    assert len(result.rounds) == 5


def test_five_rounds_cannot_end_level() -> None:
    """With an odd number of rounds there is always a winner, and never two."""
    for shooter in product(Direction, repeat=2):
        moves = list(shooter) + [L, C, R]
        result = resolve(moves, [C, C, C, C, C])
        assert not result.is_draw
        assert result.winner_slot in (SlotName.A, SlotName.B)


def test_resolution_is_deterministic() -> None:
    first = resolve([L, C, R, L, C], [R, C, L, C, R], shooter_slot=SlotName.B)
    second = resolve([L, C, R, L, C], [R, C, L, C, R], shooter_slot=SlotName.B)
    assert first == second


def test_shooter_slot_is_propagated() -> None:
    result = resolve([L, C, R, L, C], [R, C, L, C, R], shooter_slot=SlotName.B)
    assert all(r.shooter_slot is SlotName.B for r in result.rounds)
    assert result.keeper_slot is SlotName.A
    assert result.winner_slot is SlotName.B
    assert result.score_of(SlotName.B) == 4
    assert result.score_of(SlotName.A) == 1
    assert result.goals_scored_by(SlotName.B) == 4
    assert result.saves_made_by(SlotName.A) == 1
    assert result.goals_scored_by(SlotName.A) == 0


@pytest.mark.parametrize("length", [0, 4, 6])
def test_wrong_number_of_moves(length: int) -> None:
    with pytest.raises(InvalidRequestError):
        resolve([L] * length, [R] * 5)


def test_roles_decide_who_shoots() -> None:
    """Slot position does not matter, the role tag does."""
    keeper_a = PlayerMoves(moves=(R, C, L, C, R), role=Role.KEEPER)
    shooter_b = PlayerMoves(moves=(L, C, R, L, C), role=Role.SHOOTER)
    result = resolve_match(keeper_a, shooter_b)

    assert result.shooter_slot is SlotName.B
    assert result.score_shooter == 4
    assert result.winner_slot is SlotName.B
    assert result.rounds[0].shot_move is L
    assert result.rounds[0].save_move is R


def test_duplicate_roles_fall_back_on_slot_a() -> None:
    both_shoot_a = PlayerMoves(moves=(L, L, L, L, L), role=Role.SHOOTER)
    both_shoot_b = PlayerMoves(moves=(L, L, L, L, R), role=Role.SHOOTER)
    result = resolve_match(both_shoot_a, both_shoot_b)
    assert result.shooter_slot is SlotName.A
    assert result.score_keeper == 4
