import copy
from typing import Dict, List, Optional

from tavern.domain.models.character import Character
from tavern.domain.models.companion import Companion, companion_key
from tavern.domain.models.inventory import InventoryItem, item_key
from tavern.domain.models.journal import ChatMessage, JournalEntry
from tavern.domain.repositories import (
    CharacterRepository,
    ChatMessageRepository,
    CompanionRepository,
    InventoryRepository,
    JournalRepository,
)


class InMemoryCharacterRepository(CharacterRepository):
    def __init__(self, initial: Dict[int, Character] | None = None) -> None:
        self._characters: Dict[int, Character] = dict(initial or {})

    def get(self, character_id: int) -> Optional[Character]:
        character = self._characters.get(character_id)
        return copy.deepcopy(character) if character is not None else None

    def get_for_user(self, user_id: str) -> Optional[Character]:
        for character in self._characters.values():
            if character.user_id == str(user_id):
                return copy.deepcopy(character)
        return None

    def create(self, character: Character) -> Character:
        next_id = max(self._characters.keys(), default=0) + 1
        stored = copy.deepcopy(character)
        stored.id = next_id
        self._characters[next_id] = stored
        return copy.deepcopy(stored)

    def save(self, character: Character) -> None:
        if character.id is None:
            raise ValueError("Cannot save a character without an id")
        self._characters[int(character.id)] = copy.deepcopy(character)

    def delete(self, character_id: int) -> None:
        self._characters.pop(character_id, None)


class InMemoryInventoryRepository(InventoryRepository):
    def __init__(self) -> None:
        self._items: Dict[int, Dict[str, InventoryItem]] = {}
        self._next_id = 1

    def list_for_character(self, character_id: int) -> List[InventoryItem]:
        return [copy.deepcopy(item) for item in self._items.get(character_id, {}).values()]

    def upsert(self, character_id: int, item: InventoryItem) -> None:
        rows = self._items.setdefault(character_id, {})
        stored = copy.deepcopy(item)
        stored.character_id = character_id
        existing = rows.get(item_key(item.name))
        if existing is not None:
            stored.id = existing.id
        elif stored.id is None:
            stored.id = self._next_id
            self._next_id += 1
        rows[item_key(item.name)] = stored

    def delete_by_name(self, character_id: int, name: str) -> None:
        self._items.get(character_id, {}).pop(item_key(name), None)

    def delete_for_character(self, character_id: int) -> None:
        self._items.pop(character_id, None)


class InMemoryCompanionRepository(CompanionRepository):
    def __init__(self) -> None:
        self._companions: Dict[int, Dict[str, Companion]] = {}
        self._next_id = 1

    def list_for_character(self, character_id: int) -> List[Companion]:
        return [copy.deepcopy(companion) for companion in self._companions.get(character_id, {}).values()]

    def upsert(self, character_id: int, companion: Companion) -> None:
        rows = self._companions.setdefault(character_id, {})
        stored = copy.deepcopy(companion)
        stored.character_id = character_id
        existing = rows.get(companion_key(companion.name))
        if existing is not None:
            stored.id = existing.id
        elif stored.id is None:
            stored.id = self._next_id
            self._next_id += 1
        rows[companion_key(companion.name)] = stored

    def delete_for_character(self, character_id: int) -> None:
        self._companions.pop(character_id, None)


class InMemoryChatMessageRepository(ChatMessageRepository):
    def __init__(self) -> None:
        self._messages: Dict[int, List[ChatMessage]] = {}
        self._next_id = 1

    def list_recent(self, character_id: int, limit: int) -> List[ChatMessage]:
        rows = self._messages.get(character_id, [])
        if limit <= 0:
            return []
        return [copy.deepcopy(message) for message in rows[-limit:]]

    def append(self, character_id: int, message: ChatMessage) -> None:
        stored = copy.deepcopy(message)
        stored.character_id = character_id
        stored.id = self._next_id
        self._next_id += 1
        self._messages.setdefault(character_id, []).append(stored)

    def delete_for_character(self, character_id: int) -> None:
        self._messages.pop(character_id, None)


class InMemoryJournalRepository(JournalRepository):
    def __init__(self) -> None:
        self._entries: Dict[int, List[JournalEntry]] = {}
        self._next_id = 1

    def list_for_character(self, character_id: int) -> List[JournalEntry]:
        rows = sorted(self._entries.get(character_id, []), key=lambda entry: entry.entry_number)
        return [copy.deepcopy(entry) for entry in rows]

    def count_for_character(self, character_id: int) -> int:
        return len(self._entries.get(character_id, []))

    def append(self, character_id: int, entry: JournalEntry) -> None:
        stored = copy.deepcopy(entry)
        stored.character_id = character_id
        stored.id = self._next_id
        self._next_id += 1
        self._entries.setdefault(character_id, []).append(stored)

    def delete_for_character(self, character_id: int) -> None:
        self._entries.pop(character_id, None)
