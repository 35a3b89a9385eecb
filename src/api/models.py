"""Requests and Response models"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator
from pydantic.alias_generators import to_camel

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import ROUNDS_PER_MATCH, Direction, PointsTo, Role, SlotName, Status


class CamelModel(BaseModel):
    """Wire format is camelCase (matchId, playerId, ...), python side stays snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MovesPayload(CamelModel):
    moves: list[Direction]
    role: Role

    @field_validator("moves")
    @classmethod
    def validate_moves(cls, value: list[Direction]) -> list[Direction]:
        if len(value) != ROUNDS_PER_MATCH:
            raise InvalidRequestError(
                f"Exactly {ROUNDS_PER_MATCH} moves are required, got {len(value)}."
            )
        return value


class PlayerIdentity(CamelModel):
    email: str
    username: str
    avatar: str = "player1"

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if not value or "@" not in value:
            raise InvalidRequestError(f"Not a usable email address: {value!r}")
        return value


# --- REQUEST MODELS (one per action) ---
class CreateMatchRequest(PlayerIdentity):
    action: Literal["create"] = "create"
    player_id: Optional[str] = None
    moves: Optional[MovesPayload] = None


class JoinMatchRequest(PlayerIdentity):
    action: Literal["join"] = "join"
    match_id: str
    player_id: Optional[str] = None


class TakeoverPlayerBRequest(PlayerIdentity):
    action: Literal["takeover-player-b"] = "takeover-player-b"
    match_id: str
    player_id: str


class InvitePlayerRequest(CamelModel):
    action: Literal["invite-player"] = "invite-player"
    match_id: str
    email: str


class DeclineChallengeRequest(CamelModel):
    action: Literal["decline-challenge"] = "decline-challenge"
    match_id: str
    email: str
    reason: Optional[str] = None


class CancelChallengeRequest(CamelModel):
    action: Literal["cancel-challenge"] = "cancel-challenge"
    match_id: str
    email: str


class CreateRevengeRequest(CamelModel):
    action: Literal["create-revenge"] = "create-revenge"
    match_id: Optional[str] = None  # id for the new match
    original_match_id: Optional[str] = None
    player_a_email: str
    player_b_email: str
    player_a_username: Optional[str] = None
    player_b_username: Optional[str] = None
    player_a_avatar: Optional[str] = None
    player_b_avatar: Optional[str] = None


class SubmitMovesRequest(CamelModel):
    action: Literal["submit-moves"] = "submit-moves"
    match_id: str
    player_id: str
    moves: MovesPayload


MatchAction = Annotated[
    Union[
        CreateMatchRequest,
        JoinMatchRequest,
        TakeoverPlayerBRequest,
        InvitePlayerRequest,
        DeclineChallengeRequest,
        CancelChallengeRequest,
        CreateRevengeRequest,
        SubmitMovesRequest,
    ],
    Field(discriminator="action"),
]


class MatchActionBody(RootModel[MatchAction]):
    """Body of POST /api/match: exactly one of the action commands, selected by its `action` tag."""


# --- RESPONSE MODELS ---
class RoundResponse(CamelModel):
    shot_move: Direction
    save_move: Direction
    goal: bool
    shooter_slot: SlotName
    points_to: PointsTo


class GameResultResponse(CamelModel):
    rounds: list[RoundResponse]
    shooter_slot: SlotName
    winner: Optional[SlotName]  # None = draw
    is_draw: bool
    score_shooter: int
    score_keeper: int
    score_a: int
    score_b: int


class SlotResponse(CamelModel):
    player_id: Optional[str]
    email: Optional[str]
    username: Optional[str]
    avatar: Optional[str]
    role: Optional[Role]
    moves: Optional[MovesPayload]


class MatchResponse(CamelModel):
    id: str
    slot_a: SlotResponse
    slot_b: SlotResponse
    status: Status
    is_ready: bool
    winner: Optional[SlotName]
    created_at: Optional[datetime]


class MatchStateResponse(CamelModel):
    match: MatchResponse
    result: Optional[GameResultResponse]


class MatchJoinedResponse(CamelModel):
    """Returned by create / join / create-revenge: the caller needs both ids to keep playing."""

    match_id: str
    player_id: str
    message: Optional[str] = None


class ActionDoneResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class SubmitMovesResponse(CamelModel):
    status: Status
    result: Optional[GameResultResponse] = None


MatchActionResponse = Union[
    MatchJoinedResponse, SubmitMovesResponse, ActionDoneResponse
]


class PendingMatchSummary(CamelModel):
    id: str
    challenger: Optional[str]
    challenged: Optional[str]
    status: Status
    created_at: Optional[datetime]


class ExistingChallengeResponse(CamelModel):
    has_pending_challenge: bool
    pending_match: Optional[PendingMatchSummary]


class PendingChallenge(CamelModel):
    id: str
    challenger_email: Optional[str]
    challenger_username: Optional[str]
    challenger_avatar: Optional[str]
    created_at: Optional[datetime]
    type: Literal["active", "invitation"]


class PendingChallengesResponse(CamelModel):
    challenges: list[PendingChallenge]


class LevelResponse(CamelModel):
    id: int
    name: str
    icon: str
    min_points: int
    max_points: Optional[int]  # None for the open-ended top tier


class LevelProgressResponse(CamelModel):
    current: LevelResponse
    next: Optional[LevelResponse]
    progress: int
    points_to_next: int


class UserSummary(CamelModel):
    id: str
    username: str
    avatar: str
    email: str


class StatsSummary(CamelModel):
    total_points: int
    games_played: int
    games_won: int
    games_lost: int
    games_drawn: int
    win_rate: float
    goals_scored: int
    saves_made: int
    current_streak: int
    best_streak: int
    perfect_games: int


class UserStatsResponse(CamelModel):
    user: UserSummary
    stats: StatsSummary
    rank: int
    level: LevelProgressResponse


class LeaderboardEntry(CamelModel):
    rank: int
    id: str
    username: str
    avatar: str
    stats: StatsSummary
    level: LevelResponse


class LeaderboardResponse(CamelModel):
    leaderboard: list[LeaderboardEntry]
