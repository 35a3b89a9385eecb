"""HTTP surface: one action endpoint, one polling endpoint, plus the challenge and stats read side."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_match_service, get_stats_service
from src.api.models import (
    ExistingChallengeResponse,
    LeaderboardResponse,
    MatchActionBody,
    MatchActionResponse,
    MatchStateResponse,
    PendingChallengesResponse,
    UserStatsResponse,
)
from src.services.match_service import MatchService
from src.services.stats_service import StatsService

router = APIRouter(prefix="/api")


@router.post("/match", response_model=MatchActionResponse)
def match_action(
    body: MatchActionBody,
    service: MatchService = Depends(get_match_service),
) -> MatchActionResponse:
    return service.dispatch(body.root)


@router.get("/match", response_model=MatchStateResponse)
def match_state(
    match_id: str = Query(..., alias="matchId"),
    service: MatchService = Depends(get_match_service),
) -> MatchStateResponse:
    return service.get_match_state(match_id)


@router.get("/matches/check-existing", response_model=ExistingChallengeResponse)
def check_existing(
    player_a: str = Query(..., alias="playerA"),
    player_b: str = Query(..., alias="playerB"),
    service: MatchService = Depends(get_match_service),
) -> ExistingChallengeResponse:
    return service.check_existing(player_a, player_b)


@router.get("/matches/pending", response_model=PendingChallengesResponse)
def pending_challenges(
    email: str = Query(...),
    service: MatchService = Depends(get_match_service),
) -> PendingChallengesResponse:
    return service.pending_challenges(email)


@router.get("/stats/user/{user_id}", response_model=UserStatsResponse)
def user_stats(
    user_id: str, service: StatsService = Depends(get_stats_service)
) -> UserStatsResponse:
    return service.user_stats(user_id)


@router.get("/stats/leaderboard", response_model=LeaderboardResponse)
def leaderboard(service: StatsService = Depends(get_stats_service)) -> LeaderboardResponse:
    return service.leaderboard()
