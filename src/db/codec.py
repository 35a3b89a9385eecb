"""
Serialization of committed move sets.

Stored as JSON text carrying an explicit schema version. Anything that does not validate against the
schema is reported as a corrupt record rather than turned into a half-filled PlayerMoves.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.core.exceptions import CorruptRecordError
from src.core.models import PlayerMoves
from src.core.shared_types import ROUNDS_PER_MATCH, Direction, Role

CURRENT_VERSION = 1


class StoredMoves(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Literal[1] = CURRENT_VERSION
    role: Role
    moves: list[Direction] = Field(min_length=ROUNDS_PER_MATCH, max_length=ROUNDS_PER_MATCH)


def encode_moves(moves: PlayerMoves) -> str:
    return StoredMoves(role=moves.role, moves=list(moves.moves)).model_dump_json()


def decode_moves(raw: Optional[str]) -> Optional[PlayerMoves]:
    if raw is None:
        return None
    try:
        stored = StoredMoves.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecordError(f"Stored move set does not match schema v{CURRENT_VERSION}: {raw!r}") from e
    return PlayerMoves(moves=tuple(stored.moves), role=stored.role)
