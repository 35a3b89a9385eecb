"""
Type definitions used across layers
"""

from enum import StrEnum

# Every match consists of exactly this many shot/save pairs
ROUNDS_PER_MATCH = 5


class Status(StrEnum):
    WAITING = "waiting"
    FINISHED = "finished"


class Direction(StrEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Role(StrEnum):
    SHOOTER = "shooter"
    KEEPER = "keeper"

    def opposite(self) -> "Role":
        return Role.KEEPER if self is Role.SHOOTER else Role.SHOOTER


class SlotName(StrEnum):
    """The two participant positions of a match. A is always the one who created the challenge."""

    A = "a"
    B = "b"

    def other(self) -> "SlotName":
        return SlotName.B if self is SlotName.A else SlotName.A


class PointsTo(StrEnum):
    SHOOTER = "shooter"
    KEEPER = "keeper"
