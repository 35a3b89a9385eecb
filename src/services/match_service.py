"""
Orchestration of the match lifecycle: from API router to domain and persistence layers (and back).

Every action re-reads the match before deciding anything, and every write goes through one of the
repository's conditional updates. There are no locks: two clients polling and submitting
independently are kept apart by the conditions embedded in those writes.
"""

import logging
from typing import Any, Callable, Optional
from uuid import uuid4

from src.api.models import (
    ActionDoneResponse,
    CancelChallengeRequest,
    CreateMatchRequest,
    CreateRevengeRequest,
    DeclineChallengeRequest,
    ExistingChallengeResponse,
    GameResultResponse,
    InvitePlayerRequest,
    JoinMatchRequest,
    MatchAction,
    MatchActionResponse,
    MatchJoinedResponse,
    MatchResponse,
    MatchStateResponse,
    MovesPayload,
    PendingChallenge,
    PendingChallengesResponse,
    PendingMatchSummary,
    RoundResponse,
    SlotResponse,
    SubmitMovesRequest,
    SubmitMovesResponse,
    TakeoverPlayerBRequest,
)
from src.core.exceptions import (
    ConflictError,
    CorruptRecordError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from src.core.models import MatchModel, PlayerMoves, PlayerSlot
from src.core.shared_types import Role, SlotName, Status
from src.db.repository import MatchRepository
from src.services.notifications import Notifier
from src.services.stats_service import StatsService
from src.shootout.resolution import GameResult, resolve_match

logger = logging.getLogger(__name__)

# These business-rule rejections are answered with a plain 400, the rest of the conflicts with 409
MATCH_FULL = "Match already full"
OPEN_CHALLENGE_EXISTS = "An open challenge already exists between these players"
GAME_IN_PROGRESS = "Cannot cancel challenge - game already in progress"
ALREADY_SUBMITTED = "Moves already submitted for this player"


def new_id() -> str:
    return str(uuid4())


class MatchService:
    """Lifecycle controller: one handler per action."""

    def __init__(
        self,
        repository: MatchRepository,
        stats_service: StatsService,
        notifier: Notifier,
    ) -> None:
        self.repo = repository
        self.stats_service = stats_service
        self.notifier = notifier
        self._handlers: dict[type, Callable[[Any], MatchActionResponse]] = {
            CreateMatchRequest: self.create_match,
            JoinMatchRequest: self.join_match,
            TakeoverPlayerBRequest: self.takeover_player_b,
            InvitePlayerRequest: self.invite_player,
            DeclineChallengeRequest: self.decline_challenge,
            CancelChallengeRequest: self.cancel_challenge,
            CreateRevengeRequest: self.create_revenge,
            SubmitMovesRequest: self.submit_moves,
        }

    def dispatch(self, command: MatchAction) -> MatchActionResponse:
        """Route an action command to its handler."""
        handler = self._handlers[type(command)]
        return handler(command)

    # -- API routes logic ---
    def create_match(self, request: CreateMatchRequest) -> MatchJoinedResponse:
        """Challenger opens a new match, optionally with their five moves already picked."""
        player_id = request.player_id or new_id()
        moves = _to_player_moves(request.moves) if request.moves else None
        match = MatchModel(
            id=new_id(),
            slot_a=PlayerSlot(
                player_id=player_id,
                email=request.email,
                username=request.username,
                avatar=request.avatar,
                role=moves.role if moves else None,
                moves=moves,
            ),
        )
        stored = self.repo.create_match(match)
        logger.info("Match %s created by %s", stored.id, request.email)
        return MatchJoinedResponse(match_id=stored.id, player_id=player_id)

    def join_match(self, request: JoinMatchRequest) -> MatchJoinedResponse:
        """Second player takes slot B. The invited player may (re)join as often as they like."""
        match = self._fetch_match(request.match_id)
        if match.slot_b.is_joined and match.slot_b.email != request.email:
            logger.warning("Match %s: %s tried to join a full match", match.id, request.email)
            raise ConflictError(MATCH_FULL, status_code=400)

        player_id = request.player_id or new_id()
        slot = PlayerSlot(
            player_id=player_id,
            email=request.email,
            username=request.username,
            avatar=request.avatar,
        )
        if not self.repo.claim_slot_b(match.id, slot):
            # somebody else claimed it between our read and our write
            raise ConflictError(MATCH_FULL, status_code=400)

        logger.info("Match %s joined by %s", match.id, request.email)
        return MatchJoinedResponse(match_id=match.id, player_id=player_id)

    def takeover_player_b(self, request: TakeoverPlayerBRequest) -> ActionDoneResponse:
        """Replace slot B's identity. Does nothing once slot B has committed moves."""
        match = self._fetch_match(request.match_id)
        slot = PlayerSlot(
            player_id=request.player_id,
            email=request.email,
            username=request.username,
            avatar=request.avatar,
        )
        if self.repo.takeover_slot_b(match.id, slot):
            logger.info("Match %s: slot B taken over by %s", match.id, request.email)
            return ActionDoneResponse(message="Player B replaced")

        logger.info("Match %s: takeover ignored, slot B already moved", match.id)
        return ActionDoneResponse(message="Player B already submitted moves, nothing changed")

    def invite_player(self, request: InvitePlayerRequest) -> ActionDoneResponse:
        """Address the match to an email and tell that person about it."""
        match = self._fetch_match(request.match_id)
        challenger_email = match.slot_a.email

        if challenger_email:
            existing = self.repo.find_open_challenge(
                challenger_email, request.email, exclude_id=match.id
            )
            if existing is not None:
                logger.warning(
                    "Match %s: invite of %s rejected, open match %s exists",
                    match.id,
                    request.email,
                    existing.id,
                )
                raise ConflictError(OPEN_CHALLENGE_EXISTS, status_code=400)

        self.repo.set_invited_email(match.id, request.email)
        logger.info("Match %s: %s invited", match.id, request.email)

        challenger_name = match.slot_a.username or challenger_email or "A player"
        self._notify(request.email, match.id, challenger_name)
        return ActionDoneResponse(message="Invitation sent")

    def decline_challenge(self, request: DeclineChallengeRequest) -> ActionDoneResponse:
        """Only the invited player can decline. The match is removed."""
        match = self._fetch_match(request.match_id)
        if match.slot_b.email != request.email:
            raise ForbiddenError("Unauthorized to decline this challenge")
        if match.status == Status.FINISHED:
            raise ConflictError("Match is already finished")

        self.repo.delete_match(match.id)
        logger.info(
            "Match %s declined by %s (challenger %s, reason: %s)",
            match.id,
            request.email,
            match.slot_a.email,
            request.reason,
        )
        return ActionDoneResponse(message="Challenge declined successfully")

    def cancel_challenge(self, request: CancelChallengeRequest) -> ActionDoneResponse:
        """The challenger withdraws, as long as the opponent has not moved yet."""
        match = self._fetch_match(request.match_id)
        if match.slot_a.email != request.email:
            raise ForbiddenError("Unauthorized to cancel this challenge")
        if match.slot_b.has_moved:
            raise ConflictError(GAME_IN_PROGRESS, status_code=400)

        if not self.repo.delete_match(match.id, require_slot_b_unmoved=True):
            raise ConflictError(GAME_IN_PROGRESS, status_code=400)

        logger.info("Match %s cancelled by %s", match.id, request.email)
        return ActionDoneResponse(message="Challenge cancelled successfully")

    def create_revenge(self, request: CreateRevengeRequest) -> MatchJoinedResponse:
        """
        New match between the same two players, each playing the other role this time.

        The original match is only read, never touched.
        """
        if request.player_a_email == request.player_b_email:
            raise InvalidRequestError("A revenge needs two different players.")

        match_id = request.match_id or new_id()
        if self.repo.get_match(match_id) is not None:
            raise ConflictError(f"Match with id={match_id!r} already exists.")

        role_a: Optional[Role] = None
        role_b: Optional[Role] = None
        if request.original_match_id:
            original = self._fetch_match(request.original_match_id)
            played_a = _role_played(original, request.player_a_email)
            played_b = _role_played(original, request.player_b_email)
            if played_a is not None:
                role_a = played_a.opposite()
            elif played_b is not None:
                role_a = played_b
            if role_a is not None:
                role_b = role_a.opposite()

        revenge = MatchModel(
            id=match_id,
            slot_a=PlayerSlot(
                player_id=new_id(),
                email=request.player_a_email,
                username=request.player_a_username,
                avatar=request.player_a_avatar,
                role=role_a,
            ),
            slot_b=PlayerSlot(
                player_id=new_id(),
                email=request.player_b_email,
                username=request.player_b_username,
                avatar=request.player_b_avatar,
                role=role_b,
            ),
        )
        stored = self.repo.create_match(revenge)
        logger.info(
            "Revenge match %s created (original %s): %s as %s vs %s",
            stored.id,
            request.original_match_id,
            request.player_a_email,
            role_a,
            request.player_b_email,
        )

        challenger_name = request.player_a_username or request.player_a_email
        self._notify(request.player_b_email, stored.id, challenger_name)
        return MatchJoinedResponse(
            match_id=stored.id,
            player_id=stored.slot_a.player_id or "",
            message="Revenge created - invitation sent!",
        )

    def submit_moves(self, request: SubmitMovesRequest) -> SubmitMovesResponse:
        """
        Commit a player's five moves. The submission that completes the second slot resolves the match.
        """
        match = self._fetch_match(request.match_id)
        slot_name = match.slot_of_player(request.player_id)
        if slot_name is None:
            raise ForbiddenError("Player not in match")

        if match.slot(slot_name).has_moved:
            raise ConflictError(ALREADY_SUBMITTED)

        moves = _to_player_moves(request.moves)
        _check_role(match, slot_name, moves.role)

        if not self.repo.commit_moves(match.id, slot_name, moves):
            # the match changed since we read it: work out what got in the way
            current = self._fetch_match(match.id)
            logger.warning("Match %s: slot %s lost the commit race", match.id, slot_name)
            if current.slot(slot_name).has_moved:
                raise ConflictError(ALREADY_SUBMITTED)
            _check_role(current, slot_name, moves.role)
            raise ConflictError("Match changed while submitting, try again")
        logger.info("Match %s: slot %s committed moves as %s", match.id, slot_name, moves.role)

        updated = self._fetch_match(match.id)
        if not updated.both_moved:
            return SubmitMovesResponse(status=Status.WAITING)
        return self._finish(updated)

    def get_match_state(self, match_id: str) -> MatchStateResponse:
        """
        Current state of a match.
        ----
        Used in the polling loop of both clients. The result is recomputed from the stored moves every time.
        """
        match = self._fetch_match(match_id)
        result = None
        if match.status == Status.FINISHED and match.both_moved:
            result = _result_response(_resolve(match))
        return MatchStateResponse(match=_match_response(match), result=result)

    def check_existing(self, email_a: str, email_b: str) -> ExistingChallengeResponse:
        existing = self.repo.find_open_challenge(email_a, email_b)
        if existing is None:
            return ExistingChallengeResponse(has_pending_challenge=False, pending_match=None)
        return ExistingChallengeResponse(
            has_pending_challenge=True,
            pending_match=PendingMatchSummary(
                id=existing.id,
                challenger=existing.slot_a.email,
                challenged=existing.slot_b.email,
                status=existing.status,
                created_at=existing.created_at,
            ),
        )

    def pending_challenges(self, email: str) -> PendingChallengesResponse:
        challenges = [
            PendingChallenge(
                id=match.id,
                challenger_email=match.slot_a.email,
                challenger_username=match.slot_a.username,
                challenger_avatar=match.slot_a.avatar,
                created_at=match.created_at,
                type="active" if match.slot_b.is_joined else "invitation",
            )
            for match in self.repo.pending_challenges_for(email)
        ]
        return PendingChallengesResponse(challenges=challenges)

    # -- Internal helpers --
    def _finish(self, match: MatchModel) -> SubmitMovesResponse:
        """Resolve, then flip to finished. Only the request that wins the flip records stats."""
        result = _resolve(match)
        if self.repo.finish_match(match.id, result.winner_slot):
            logger.info(
                "Match %s finished %d:%d (shooter:keeper), winner %s",
                match.id,
                result.score_shooter,
                result.score_keeper,
                result.winner_slot or "draw",
            )
            self.stats_service.record_finished_match(match, result)
        else:
            logger.info("Match %s was already finished by a concurrent submission", match.id)
        return SubmitMovesResponse(status=Status.FINISHED, result=_result_response(result))

    def _notify(self, recipient: str, match_id: str, challenger_name: str) -> None:
        """Notifications are best-effort: the state change already happened and stands."""
        try:
            self.notifier.notify(recipient, match_id, challenger_name)
        except Exception:
            logger.exception("Notifying %s about match %s failed", recipient, match_id)

    def _fetch_match(self, match_id: str) -> MatchModel:
        """Attempt to find the match in the repository and raise error if it fails."""
        match = self.repo.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match with {match_id=} not found.")
        return match


def _to_player_moves(payload: MovesPayload) -> PlayerMoves:
    return PlayerMoves(moves=tuple(payload.moves), role=payload.role)


def _role_played(match: MatchModel, email: str) -> Optional[Role]:
    """Role an email had in a match: committed moves first, assigned role otherwise."""
    slot_name = match.slot_of_email(email)
    if slot_name is None:
        raise InvalidRequestError(f"{email!r} did not play in match {match.id!r}.")
    slot = match.slot(slot_name)
    return slot.moves.role if slot.moves else slot.role


def _check_role(match: MatchModel, slot_name: SlotName, role: Role) -> None:
    """One shooter, one keeper. Reject anything else before it reaches the store."""
    own = match.slot(slot_name)
    if own.role is not None and own.role != role:
        raise ConflictError(f"This player plays {own.role} in this match, not {role}.")

    other = match.slot(slot_name.other())
    other_role = other.moves.role if other.moves else other.role
    if other_role == role:
        raise ConflictError(f"The opponent already plays {role}.")


def _resolve(match: MatchModel) -> GameResult:
    if match.slot_a.moves is None or match.slot_b.moves is None:
        raise CorruptRecordError(f"Match {match.id!r} cannot be resolved without both move sets.")
    return resolve_match(match.slot_a.moves, match.slot_b.moves)


def _slot_response(slot: PlayerSlot) -> SlotResponse:
    return SlotResponse(
        player_id=slot.player_id,
        email=slot.email,
        username=slot.username,
        avatar=slot.avatar,
        role=slot.role,
        moves=(
            MovesPayload(moves=list(slot.moves.moves), role=slot.moves.role)
            if slot.moves
            else None
        ),
    )


def _match_response(match: MatchModel) -> MatchResponse:
    return MatchResponse(
        id=match.id,
        slot_a=_slot_response(match.slot_a),
        slot_b=_slot_response(match.slot_b),
        status=match.status,
        is_ready=match.is_ready,
        winner=match.winner,
        created_at=match.created_at,
    )


def _result_response(result: GameResult) -> GameResultResponse:
    return GameResultResponse(
        rounds=[
            RoundResponse(
                shot_move=r.shot_move,
                save_move=r.save_move,
                goal=r.goal,
                shooter_slot=r.shooter_slot,
                points_to=r.points_to,
            )
            for r in result.rounds
        ],
        shooter_slot=result.shooter_slot,
        winner=result.winner_slot,
        is_draw=result.is_draw,
        score_shooter=result.score_shooter,
        score_keeper=result.score_keeper,
        score_a=result.score_of(SlotName.A),
        score_b=result.score_of(SlotName.B),
    )
