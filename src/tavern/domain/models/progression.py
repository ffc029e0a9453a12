from __future__ import annotations

from dataclasses import dataclass


XP_PER_LEVEL = 100
HP_GAIN_PER_LEVEL = 10
STAT_POINTS_PER_LEVEL = 3
RESOURCE_GROWTH_RATE = 0.05
FALLBACK_RESOURCE_GAIN = 5
MAX_XP_GAIN = 100_000


def xp_for_next_level(level: int) -> int:
    return max(1, int(level)) * XP_PER_LEVEL


@dataclass(frozen=True)
class ExperiencePoints:
    value: int

    def __post_init__(self) -> None:
        if int(self.value) < 0:
            raise ValueError("Experience points cannot be negative")


@dataclass(frozen=True)
class Level:
    value: int

    def __post_init__(self) -> None:
        if int(self.value) < 1:
            raise ValueError("Level must be at least 1")


@dataclass(frozen=True)
class LevelGrowth:
    hp_gain: int
    stamina_gain: int
    mana_gain: int


@dataclass(frozen=True)
class LevelUpStep:
    from_level: int
    to_level: int
    xp_consumed: int
    growth: LevelGrowth
    stat_points_granted: int = STAT_POINTS_PER_LEVEL
