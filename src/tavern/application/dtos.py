from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ActionResult:
    messages: List[str] = field(default_factory=list)
    narrative: str = ""
    action_type: str = "paid"
    refused: bool = False
    changes_applied: bool = False
    level_ups: int = 0
    status_labels: List[str] = field(default_factory=list)
    provider: str | None = None


@dataclass
class Narration:
    narrative_text: str
    raw_changes: Any = None
    provider: str = ""


@dataclass
class NarratorSnapshot:
    """Everything the narrator is told about the character for one action."""

    name: str
    class_name: str
    level: int
    hp: int
    max_hp: int
    stamina: int
    max_stamina: int
    mana: int
    max_mana: int
    gold: int
    xp: int
    zone_id: str
    zone_name: str
    story_phase: str
    is_free_action: bool
    is_spell_action: bool = False
    momentum: str | None = None
    status_labels: List[str] = field(default_factory=list)
    skills: Dict[str, int] = field(default_factory=dict)
    reputation: Dict[str, int] = field(default_factory=dict)
    inventory: List[str] = field(default_factory=list)
    companions: List[str] = field(default_factory=list)
    betrayers_defeated: List[str] = field(default_factory=list)
    recent_messages: List[Dict[str, str]] = field(default_factory=list)
    backstory: str = ""


@dataclass
class InventoryItemView:
    name: str
    quantity: int
    icon: str
    item_type: str
    description: str = ""


@dataclass
class CompanionView:
    name: str
    personality: str
    icon: str
    hp: int
    max_hp: int
    trust: int
    trust_label: str
    is_active: bool


@dataclass
class JournalEntryView:
    entry_number: int
    title: str
    content: str


@dataclass
class LevelProgressView:
    level: int
    xp: int
    next_level_xp: int
    xp_to_next_level: int
    stat_points: int


@dataclass
class CharacterSheetView:
    character_id: int
    name: str
    class_name: str
    level: int
    xp: int
    next_level_xp: int
    xp_to_next_level: int
    stat_points: int
    hp: int
    max_hp: int
    stamina: int
    max_stamina: int
    mana: int
    max_mana: int
    gold: int
    offense: int
    defense: int
    magic: int
    zone_id: str
    zone_name: str
    story_phase: str
    momentum: Optional[str] = None
    status_effects: List[str] = field(default_factory=list)
    skills: Dict[str, int] = field(default_factory=dict)
    reputation: Dict[str, int] = field(default_factory=dict)
    betrayers_defeated: List[str] = field(default_factory=list)
    inventory: List[InventoryItemView] = field(default_factory=list)
    companions: List[CompanionView] = field(default_factory=list)
    journal: List[JournalEntryView] = field(default_factory=list)
