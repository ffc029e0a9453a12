from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from tavern.domain.models.character import Character
from tavern.domain.models.resources import ratio
from tavern.domain.models.zone import HIGH_DANGER_ZONE_IDS


@dataclass(frozen=True)
class StatusEffect:
    id: str
    label: str
    description: str
    damage_multiplier: Optional[float] = None
    positive: bool = False


EXHAUSTED = StatusEffect("exhausted", "Exhausted", "No stamina left. Rest or defend to recover.")
FATIGUED = StatusEffect("fatigued", "Fatigued", "Very low stamina. Actions cost more effort.")
WINDED = StatusEffect("winded", "Winded", "Low stamina. Desperation damage boost active.", damage_multiplier=1.8)
MANA_DEFICIENT = StatusEffect(
    "mana_deficient",
    "Mana Deficient",
    "Shaking! Next spell will cause fainting.",
    damage_multiplier=2.5,
)
DRAINED = StatusEffect("drained", "Drained", "Mana dangerously low.")
NEAR_DEATH = StatusEffect("near_death", "Near Death", "One hit from death. Find healing immediately!")
WOUNDED = StatusEffect("wounded", "Wounded", "Badly hurt. Seek healing or rest.")
FRESH = StatusEffect("fresh", "Fresh", "Full energy. Solid guard and a damage bonus.", damage_multiplier=1.2, positive=True)
IN_DANGER = StatusEffect("in_danger", "In Danger", "Dangerous zone. High ambush chance, low rest recovery.")


def derive_status(character: Character) -> List[StatusEffect]:
    """Return every active status effect; rules are evaluated independently."""
    effects: List[StatusEffect] = []

    stamina = int(character.stamina or 0)
    stamina_ratio = ratio(stamina, character.max_stamina)
    if stamina <= 0:
        effects.append(EXHAUSTED)
    elif stamina_ratio <= 0.2:
        effects.append(FATIGUED)
    elif stamina_ratio <= 0.4:
        effects.append(WINDED)

    if int(character.max_mana or 0) > 0:
        mana = int(character.mana or 0)
        if mana <= 0:
            effects.append(MANA_DEFICIENT)
        elif ratio(mana, character.max_mana) <= 0.2:
            effects.append(DRAINED)

    hp_ratio = ratio(character.hp, character.max_hp)
    if hp_ratio <= 0.15:
        effects.append(NEAR_DEATH)
    elif hp_ratio <= 0.35:
        effects.append(WOUNDED)

    if stamina_ratio >= 0.8 and stamina > 0:
        effects.append(FRESH)

    if str(character.current_zone or "").strip().lower() in HIGH_DANGER_ZONE_IDS:
        effects.append(IN_DANGER)

    return effects


def status_labels(character: Character) -> List[str]:
    return [effect.label for effect in derive_status(character)]


def momentum_state(character: Character) -> Optional[str]:
    labels = {effect.id for effect in derive_status(character)}
    if MANA_DEFICIENT.id in labels:
        return "Shaking"
    if WINDED.id in labels:
        return "Winded"
    if FRESH.id in labels:
        return "Fresh"
    return None
