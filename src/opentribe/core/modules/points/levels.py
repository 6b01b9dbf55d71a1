"""Level thresholds derived from accumulated points."""

from typing import Final, NamedTuple


class Level(NamedTuple):
    number: int
    name: str
    threshold: int  # Minimum points to reach this level


LEVELS: Final[tuple[Level, ...]] = (
    Level(1, "Newcomer", 0),
    Level(2, "Contributor", 50),
    Level(3, "Regular", 150),
    Level(4, "Enthusiast", 400),
    Level(5, "Champion", 1000),
    Level(6, "Legend", 2500),
)


def level_for_points(points: int) -> int:
    """Return the highest level whose threshold is reached; never below 1."""
    level = LEVELS[0].number
    for candidate in LEVELS:
        if points >= candidate.threshold:
            level = candidate.number
    return level


def get_level(number: int) -> Level:
    for level in LEVELS:
        if level.number == number:
            return level
    return LEVELS[0]
