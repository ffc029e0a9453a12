from __future__ import annotations

from enum import Enum
from typing import Dict, List


class ActionType(str, Enum):
    FREE = "free"
    PAID = "paid"


FREE_ACTION_KEYWORDS: tuple[str, ...] = (
    "talk", "speak", "say", "ask", "tell", "greet", "chat",
    "look", "observe", "examine", "inspect", "check", "see", "watch",
    "inventory", "items", "bag", "pouch",
    "defend", "defensive", "guard", "block",
    "think", "ponder", "consider", "remember",
    "rest", "sit", "wait",
)
QUESTION_WORDS: tuple[str, ...] = ("what", "who", "where", "how")

SPELL_KEYWORDS: tuple[str, ...] = (
    "cast", "spell", "magic", "summon", "conjure", "enchant", "heal", "fireball",
    "lightning", "necromancy", "bloodmancy", "illusion", "alteration",
)

SKILL_KEYWORDS: Dict[str, tuple[str, ...]] = {
    "brawling": ("punch", "fist", "brawl", "unarmed", "kick", "headbutt", "grapple"),
    "one_handed": ("sword", "dagger", "blade", "slash", "stab", "rapier"),
    "two_handed": ("greatsword", "axe", "hammer", "mace", "cleave", "swing"),
    "acrobatics": ("dodge", "flip", "jump", "evade", "roll", "tumble", "leap"),
    "climbing": ("climb", "scale", "ascend", "clamber"),
    "stealth": ("sneak", "hide", "invisible", "stealth", "lurk", "shadow"),
    "sleight_of_hand": ("pickpocket", "steal", "pilfer", "disarm trap", "lockpick"),
    "aim": ("shoot", "arrow", "bow", "crossbow", "aim", "fire"),
    "bloodmancy": ("blood magic", "bloodmancy", "life drain", "blood spell"),
    "necromancy": ("raise dead", "necromancy", "undead", "skeleton", "zombie"),
    "soulbinding": ("soul bind", "spirit", "soulbinding", "bind soul"),
    "destruction": ("fireball", "lightning", "explosion", "destruction", "burn", "zap"),
    "alteration": ("transform", "alter", "change", "transmute", "morph"),
    "illusion": ("illusion", "decoy", "mirage", "disguise", "phantom"),
    "regeneration": ("heal", "restore", "regenerate", "cure", "mend"),
    "persuasion": ("persuade", "convince", "reason", "negotiate", "plead"),
    "intimidation": ("threaten", "intimidate", "scare", "menace", "terrify"),
    "seduction": ("seduce", "charm", "flirt", "entice", "allure"),
    "investigation": ("investigate", "search", "examine", "inspect", "study"),
    "bartering": ("barter", "haggle", "negotiate price", "trade", "deal"),
    "beastmastery": ("tame", "command animal", "beast", "creature control"),
}


def _normalize(text: str) -> str:
    return str(text or "").strip().lower()


def is_free_action(text: str) -> bool:
    lowered = _normalize(text)
    if not lowered:
        return False
    for keyword in FREE_ACTION_KEYWORDS:
        if lowered.startswith(keyword) or f"i {keyword}" in lowered or f"to {keyword}" in lowered:
            return True
    if lowered.endswith("?") and any(word in lowered for word in QUESTION_WORDS):
        return True
    return False


def classify_action(text: str) -> ActionType:
    return ActionType.FREE if is_free_action(text) else ActionType.PAID


def is_spell_action(text: str) -> bool:
    if is_free_action(text):
        return False
    lowered = _normalize(text)
    return any(keyword in lowered for keyword in SPELL_KEYWORDS)


def detect_skill_usage(text: str) -> List[str]:
    lowered = _normalize(text)
    used: List[str] = []
    for skill, keywords in SKILL_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            used.append(skill)
    return used
