"""Player levels, derived on the fly from total points (never stored)."""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Level:
    id: int
    name: str
    icon: str
    min_points: int
    max_points: float  # the top tier is open-ended


LEVELS: tuple[Level, ...] = (
    Level(1, "Stumbler", "🤡", 0, 9),
    Level(2, "Player", "⚽", 10, 29),
    Level(3, "Pro", "🎯", 30, 59),
    Level(4, "Expert", "🚀", 60, 99),
    Level(5, "Wizard", "🧙", 100, 149),
    Level(6, "Master", "👑", 150, 249),
    Level(7, "Legend", "💎", 250, 399),
    Level(8, "Champion", "🏆", 400, 599),
    Level(9, "Titan", "🔥", 600, 999),
    Level(10, "GOAT", "🌟", 1000, math.inf),
)


def calculate_level(points: int) -> Level:
    for level in LEVELS:
        if level.min_points <= points <= level.max_points:
            return level
    return LEVELS[0]


def next_level(current: Level) -> Optional[Level]:
    index = LEVELS.index(current)
    return LEVELS[index + 1] if index < len(LEVELS) - 1 else None


def progress(points: int, current: Level) -> int:
    """Percentage of the way from the current tier to the next one."""
    upcoming = next_level(current)
    if upcoming is None:
        return 100
    in_tier = points - current.min_points
    tier_width = upcoming.min_points - current.min_points
    return round(in_tier / tier_width * 100)


def points_to_next(points: int, current: Level) -> int:
    upcoming = next_level(current)
    if upcoming is None:
        return 0
    return upcoming.min_points - points
