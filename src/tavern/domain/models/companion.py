from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


TRUST_MIN = 0
TRUST_MAX = 100
DEFAULT_TRUST = 50
DEFAULT_COMPANION_ICON = "🧝"
PERSONALITIES: tuple[str, ...] = ("brave", "cowardly", "wise", "aggressive", "cunning")


def companion_key(name: object) -> str:
    return str(name or "").strip().lower()


def default_companion_hp(level: int) -> int:
    return max(80, 50 + max(1, int(level or 1)) * 10)


def trust_label(trust: int) -> str:
    if trust >= 70:
        return "Loyal"
    if trust >= 40:
        return "Neutral"
    return "Wary"


@dataclass
class Companion:
    name: str
    personality: str = "wise"
    icon: str = DEFAULT_COMPANION_ICON
    description: Optional[str] = None
    hp: int = 80
    max_hp: int = 80
    stamina: int = 100
    max_stamina: int = 100
    mana: int = 50
    max_mana: int = 50
    trust: int = DEFAULT_TRUST
    is_active: bool = True
    offense: int = 5
    defense: int = 5
    magic: int = 5
    id: Optional[int] = None
    character_id: Optional[int] = None

    @property
    def key(self) -> str:
        return companion_key(self.name)


class CompanionRoster:
    """Party members keyed by case-insensitive name, active or not."""

    def __init__(self, companions: Iterable[Companion] = ()) -> None:
        self._companions: Dict[str, Companion] = {}
        self._pending: Dict[str, Companion] = {}
        for companion in companions:
            self._companions.setdefault(companion.key, companion)

    def __len__(self) -> int:
        return len(self._companions)

    def __contains__(self, name: object) -> bool:
        return companion_key(name) in self._companions

    def get(self, name: str) -> Optional[Companion]:
        return self._companions.get(companion_key(name))

    def members(self) -> List[Companion]:
        return list(self._companions.values())

    def active(self) -> List[Companion]:
        return [companion for companion in self._companions.values() if companion.is_active]

    def recruit(
        self,
        name: str,
        personality: Optional[str] = None,
        icon: Optional[str] = None,
        description: Optional[str] = None,
        hp: object = None,
        max_hp: object = None,
        *,
        level: int = 1,
    ) -> Optional[Companion]:
        """Add a new companion; returns None when the name is blank or already taken."""
        key = companion_key(name)
        if not key or key in self._companions:
            return None

        fallback_hp = default_companion_hp(level)
        resolved_max = _positive_int(max_hp) or _positive_int(hp) or fallback_hp
        resolved_hp = _positive_int(hp) or resolved_max
        companion = Companion(
            name=str(name).strip(),
            personality=str(personality or "").strip().lower() or "wise",
            icon=str(icon or "").strip() or DEFAULT_COMPANION_ICON,
            description=(str(description).strip() or None) if description is not None else None,
            hp=min(resolved_hp, resolved_max),
            max_hp=resolved_max,
            trust=DEFAULT_TRUST,
            is_active=True,
        )
        self._companions[key] = companion
        self._pending[key] = companion
        return companion

    def adjust_trust(self, name: str, delta: object) -> Optional[int]:
        companion = self._companions.get(companion_key(name))
        if companion is None:
            return None
        try:
            change = int(float(delta))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            change = 0
        companion.trust = max(TRUST_MIN, min(TRUST_MAX, int(companion.trust) + change))
        self._pending[companion.key] = companion
        return companion.trust

    def set_active(self, name: str, active: bool) -> Optional[Companion]:
        companion = self._companions.get(companion_key(name))
        if companion is None:
            return None
        companion.is_active = bool(active)
        self._pending[companion.key] = companion
        return companion

    def pending_upserts(self) -> List[Companion]:
        return list(self._pending.values())

    def clear_pending(self) -> None:
        self._pending.clear()


def _positive_int(value: object) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0
    return number if number > 0 else 0
