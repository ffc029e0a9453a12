from __future__ import annotations

from typing import Any, List

from tavern.application.services.change_set_parser import parse_origin
from tavern.domain.models.change_set import NewItem
from tavern.domain.models.character import REPUTATION_KEYS, SKILL_KEYS, Character, normalize_key
from tavern.domain.models.character_class import CLASS_CATALOG, CharacterClass, find_class
from tavern.domain.models.character_state import CharacterState
from tavern.domain.models.inventory import InventoryLedger
from tavern.domain.models.resources import adjust_reputation, adjust_skill
from tavern.domain.models.zone import HOME_ZONE_ID


STARTING_HP = 100
STARTING_GOLD = 10

STARTING_ITEMS: tuple[NewItem, ...] = (
    NewItem("Rusty Sword", "An old but reliable blade", "⚔️", 1, "weapon"),
    NewItem("Health Potion", "Restores 25 HP", "🧪", 2, "consumable"),
    NewItem("Torch", "Lights the way in dark places", "🔦", 3, "misc"),
)


class CharacterCreationService:
    """Builds a fresh character from a class and an optional origin payload."""

    def list_classes(self) -> List[CharacterClass]:
        return list(CLASS_CATALOG)

    @staticmethod
    def sanitize_name(raw: str, max_length: int = 40) -> str:
        cleaned = "".join(ch for ch in (raw or "").strip() if ch.isprintable())
        return cleaned[:max_length] or "Nameless One"

    def build_state(
        self,
        *,
        user_id: str,
        name: str,
        class_id: str,
        backstory: str = "",
        origin: Any = None,
    ) -> CharacterState:
        character_class = find_class(class_id)
        if character_class is None:
            raise ValueError(f"Unknown class: {class_id}")

        skills = {key: value for key, value in character_class.default_skills.items() if key in SKILL_KEYS}
        reputation = {key: value for key, value in character_class.default_skills.items() if key in REPUTATION_KEYS}
        character = Character(
            id=None,
            name=self.sanitize_name(name),
            user_id=str(user_id),
            class_id=character_class.id,
            backstory=str(backstory or "").strip(),
            hp=STARTING_HP,
            max_hp=STARTING_HP,
            stamina=character_class.max_stamina,
            max_stamina=character_class.max_stamina,
            mana=character_class.max_mana,
            max_mana=character_class.max_mana,
            gold=STARTING_GOLD,
            offense=character_class.offense,
            defense=character_class.defense,
            magic=character_class.magic,
            current_zone=HOME_ZONE_ID,
            skills=skills,
            reputation=reputation,
        )

        inventory = InventoryLedger()
        for item in STARTING_ITEMS:
            inventory.add_item(item.name, item.description, item.icon, item.quantity, item.item_type)

        bonus = parse_origin(origin)
        if bonus.starting_zone:
            character.current_zone = bonus.starting_zone
        for item in bonus.bonus_items:
            inventory.add_item(item.name, item.description, item.icon, item.quantity, item.item_type)
        for key, boost in bonus.skill_boosts.items():
            normalized = normalize_key(key)
            if normalized in SKILL_KEYS:
                adjust_skill(character, normalized, boost)
            else:
                adjust_reputation(character, normalized, boost)

        return CharacterState(character=character, inventory=inventory)
