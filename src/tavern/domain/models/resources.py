from __future__ import annotations

import math

from tavern.domain.models.character import (
    REPUTATION_KEYS,
    SKILL_KEYS,
    SKILL_MAX,
    SKILL_MIN,
    Character,
    normalize_key,
)


VITAL_RESOURCES: tuple[str, ...] = ("hp", "stamina", "mana")
# signed 32-bit INT column
GOLD_MAX = 2_147_483_647


def coerce_int(value: object, default: int = 0) -> int:
    """Best-effort integer coercion for untrusted numeric input."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, int(value)))


def _require_vital(resource: str) -> str:
    key = normalize_key(resource)
    if key not in VITAL_RESOURCES:
        raise ValueError(f"Unknown vital resource: {resource}")
    return key


def apply_delta(character: Character, resource: str, delta: object) -> int:
    key = _require_vital(resource)
    maximum = max(0, int(getattr(character, f"max_{key}", 0) or 0))
    current = int(getattr(character, key, 0) or 0)
    updated = clamp(current + coerce_int(delta), 0, maximum)
    setattr(character, key, updated)
    return updated


def apply_max_increase(character: Character, resource: str, amount: object, *, refill: bool = False) -> int:
    """Raise a vital's maximum; ``refill`` is reserved for level-up second wind."""
    key = _require_vital(resource)
    gain = max(0, coerce_int(amount))
    maximum = max(0, int(getattr(character, f"max_{key}", 0) or 0)) + gain
    setattr(character, f"max_{key}", maximum)
    if refill:
        setattr(character, key, maximum)
    else:
        setattr(character, key, clamp(int(getattr(character, key, 0) or 0), 0, maximum))
    return maximum


def apply_gold_delta(character: Character, delta: object) -> int:
    character.gold = clamp(int(character.gold or 0) + coerce_int(delta), 0, GOLD_MAX)
    return character.gold


def adjust_skill(character: Character, skill: str, delta: object) -> int | None:
    key = normalize_key(skill)
    if key not in SKILL_KEYS:
        return None
    current = int(character.skills.get(key, 0) or 0)
    character.skills[key] = clamp(current + coerce_int(delta), SKILL_MIN, SKILL_MAX)
    return character.skills[key]


def adjust_reputation(character: Character, axis: str, delta: object) -> int | None:
    key = normalize_key(axis)
    if key not in REPUTATION_KEYS:
        return None
    character.reputation[key] = int(character.reputation.get(key, 0) or 0) + coerce_int(delta)
    return character.reputation[key]


def ratio(current: int, maximum: int) -> float:
    if int(maximum or 0) <= 0:
        return 0.0
    return float(current) / float(maximum)
