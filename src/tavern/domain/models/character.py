from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Set


PHYSICAL_SKILLS: tuple[str, ...] = (
    "brawling",
    "one_handed",
    "two_handed",
    "acrobatics",
    "climbing",
    "stealth",
    "sleight_of_hand",
    "aim",
)
MAGICAL_SKILLS: tuple[str, ...] = (
    "bloodmancy",
    "necromancy",
    "soulbinding",
    "destruction",
    "alteration",
    "illusion",
    "regeneration",
)
SOCIAL_SKILLS: tuple[str, ...] = (
    "persuasion",
    "intimidation",
    "seduction",
    "investigation",
    "bartering",
    "beastmastery",
)
SKILL_KEYS: tuple[str, ...] = PHYSICAL_SKILLS + MAGICAL_SKILLS + SOCIAL_SKILLS

REPUTATION_KEYS: tuple[str, ...] = (
    "bravery",
    "mercy",
    "honor",
    "infamy",
    "justice",
    "loyalty",
    "malice",
)

SKILL_MIN = 0
SKILL_MAX = 100

BETRAYERS: Dict[str, str] = {
    "leader": "Aldric the Betrayer",
    "mage": "Seraphina the Deceiver",
    "healer": "Brother Marcus",
    "scout": "Kira Shadowstep",
    "patron": "Lord Ashworth",
}


def normalize_key(value: object) -> str:
    return str(value or "").strip().lower().replace("-", "_").replace(" ", "_")


class StoryPhase(str, Enum):
    THE_FALL = "the_fall"
    THE_ABYSS = "the_abyss"
    THE_RECKONING = "the_reckoning"

    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        raw = normalize_key(value)
        valid = {item.value for item in cls}
        return raw if raw in valid else None

    @property
    def label(self) -> str:
        return {
            StoryPhase.THE_FALL: "Phase I: The Fall",
            StoryPhase.THE_ABYSS: "Phase II: The Abyss",
            StoryPhase.THE_RECKONING: "Phase III: The Reckoning",
        }[self]


@dataclass
class Character:
    id: Optional[int]
    name: str
    user_id: str = ""
    class_id: str = ""
    backstory: str = ""
    hp: int = 100
    max_hp: int = 100
    stamina: int = 100
    max_stamina: int = 100
    mana: int = 50
    max_mana: int = 50
    gold: int = 10
    xp: int = 0
    level: int = 1
    stat_points: int = 0
    offense: int = 5
    defense: int = 5
    magic: int = 5
    current_zone: str = "tavern"
    story_phase: str = StoryPhase.THE_FALL.value
    skills: Dict[str, int] = field(default_factory=dict)
    reputation: Dict[str, int] = field(default_factory=dict)
    betrayers_defeated: Set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        skills: Dict[str, int] = {key: 0 for key in SKILL_KEYS}
        if isinstance(self.skills, dict):
            for raw_key, raw_value in self.skills.items():
                key = normalize_key(raw_key)
                if key not in skills:
                    continue
                try:
                    value = int(raw_value)
                except Exception:
                    continue
                skills[key] = max(SKILL_MIN, min(SKILL_MAX, value))
        self.skills = skills

        reputation: Dict[str, int] = {key: 0 for key in REPUTATION_KEYS}
        if isinstance(self.reputation, dict):
            for raw_key, raw_value in self.reputation.items():
                key = normalize_key(raw_key)
                if key not in reputation:
                    continue
                try:
                    reputation[key] = int(raw_value)
                except Exception:
                    continue
        self.reputation = reputation

        self.betrayers_defeated = {str(value) for value in (self.betrayers_defeated or ()) if str(value).strip()}
        self.story_phase = StoryPhase.normalize(self.story_phase) or StoryPhase.THE_FALL.value
        self.level = max(1, int(self.level or 1))
        self.xp = max(0, int(self.xp or 0))
        self.gold = max(0, int(self.gold or 0))
        self.stat_points = max(0, int(self.stat_points or 0))
        for resource in ("hp", "stamina", "mana"):
            maximum = max(0, int(getattr(self, f"max_{resource}") or 0))
            setattr(self, f"max_{resource}", maximum)
            current = int(getattr(self, resource) or 0)
            setattr(self, resource, max(0, min(maximum, current)))
