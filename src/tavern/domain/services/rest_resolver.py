from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional

from tavern.domain.models.character import Character
from tavern.domain.models.resources import apply_delta
from tavern.domain.models.zone import Zone


AMBUSH_ACTION_TEXT = "I was ambushed while trying to rest!"


@dataclass(frozen=True)
class RestOutcome:
    zone_id: str
    interrupted: bool
    stamina_recovered: int = 0
    mana_recovered: int = 0
    roll: Optional[float] = None
    forced_action: Optional[str] = None


def recovery_amount(maximum: int, recovery_percent: int) -> int:
    return int(math.ceil(max(0, int(maximum or 0)) * max(0, int(recovery_percent)) / 100))


def resolve_rest(character: Character, zone: Zone, rng: random.Random | None = None) -> RestOutcome:
    roll: Optional[float] = None
    if zone.dangerous:
        draw = rng if rng is not None else random.Random()
        roll = draw.random() * 100
        if roll < zone.ambush_chance_percent:
            return RestOutcome(
                zone_id=zone.id,
                interrupted=True,
                roll=roll,
                forced_action=AMBUSH_ACTION_TEXT,
            )

    stamina_before = character.stamina
    mana_before = character.mana
    apply_delta(character, "stamina", recovery_amount(character.max_stamina, zone.rest_recovery_percent))
    apply_delta(character, "mana", recovery_amount(character.max_mana, zone.rest_recovery_percent))
    return RestOutcome(
        zone_id=zone.id,
        interrupted=False,
        stamina_recovered=character.stamina - stamina_before,
        mana_recovered=character.mana - mana_before,
        roll=roll,
    )
