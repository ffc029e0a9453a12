from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class NewItem:
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    quantity: int = 1
    item_type: Optional[str] = None


@dataclass(frozen=True)
class TrustChange:
    name: str
    change: int


@dataclass(frozen=True)
class NewCompanion:
    name: str
    personality: str = ""
    icon: str = ""
    description: str = ""
    hp: Optional[int] = None
    max_hp: Optional[int] = None


@dataclass(frozen=True)
class JournalDraft:
    title: str
    content: str


@dataclass(frozen=True)
class ChangeSet:
    """Validated state delta proposed by the narrator; every field is optional."""

    hp_change: Optional[int] = None
    gold_change: Optional[int] = None
    stamina_change: Optional[int] = None
    mana_change: Optional[int] = None
    xp_gain: Optional[int] = None
    zone_change: Optional[str] = None
    new_items: List[NewItem] = field(default_factory=list)
    remove_items: List[str] = field(default_factory=list)
    trust_changes: List[TrustChange] = field(default_factory=list)
    new_companion: Optional[NewCompanion] = None
    journal_entry: Optional[JournalDraft] = None
    skill_changes: Dict[str, int] = field(default_factory=dict)
    reputation_changes: Dict[str, int] = field(default_factory=dict)
    betrayer_defeated: Optional[str] = None
    story_phase_change: Optional[str] = None

    def is_empty(self) -> bool:
        return self == ChangeSet()


@dataclass(frozen=True)
class OriginBonus:
    """Extra starting conditions generated for a new character's backstory."""

    starting_zone: Optional[str] = None
    bonus_items: List[NewItem] = field(default_factory=list)
    skill_boosts: Dict[str, int] = field(default_factory=dict)
