from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import List, Optional

from tavern.domain.models.character import Character
from tavern.domain.models.companion import Companion
from tavern.domain.models.inventory import InventoryItem
from tavern.domain.models.journal import ChatMessage, JournalEntry


# Deferred write; receives the active session (None for in-memory storage).
Operation = Callable[[object], None]


class CharacterRepository(ABC):
    @abstractmethod
    def get(self, character_id: int) -> Optional[Character]:
        raise NotImplementedError

    @abstractmethod
    def get_for_user(self, user_id: str) -> Optional[Character]:
        raise NotImplementedError

    @abstractmethod
    def create(self, character: Character) -> Character:
        raise NotImplementedError

    @abstractmethod
    def save(self, character: Character) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, character_id: int) -> None:
        raise NotImplementedError

    def build_delete_operation(self, character_id: int) -> Operation:
        def _operation(_session: object) -> None:
            self.delete(character_id)

        return _operation


class InventoryRepository(ABC):
    @abstractmethod
    def list_for_character(self, character_id: int) -> List[InventoryItem]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, character_id: int, item: InventoryItem) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_by_name(self, character_id: int, name: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_for_character(self, character_id: int) -> None:
        raise NotImplementedError

    def build_upsert_operation(self, character_id: int, item: InventoryItem) -> Operation:
        def _operation(_session: object) -> None:
            self.upsert(character_id, item)

        return _operation

    def build_delete_operation(self, character_id: int, name: str) -> Operation:
        def _operation(_session: object) -> None:
            self.delete_by_name(character_id, name)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(_session: object) -> None:
            self.delete_for_character(character_id)

        return _operation


class CompanionRepository(ABC):
    @abstractmethod
    def list_for_character(self, character_id: int) -> List[Companion]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, character_id: int, companion: Companion) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_for_character(self, character_id: int) -> None:
        raise NotImplementedError

    def build_upsert_operation(self, character_id: int, companion: Companion) -> Operation:
        def _operation(_session: object) -> None:
            self.upsert(character_id, companion)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(_session: object) -> None:
            self.delete_for_character(character_id)

        return _operation


class ChatMessageRepository(ABC):
    @abstractmethod
    def list_recent(self, character_id: int, limit: int) -> List[ChatMessage]:
        """Most recent ``limit`` messages, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def append(self, character_id: int, message: ChatMessage) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_for_character(self, character_id: int) -> None:
        raise NotImplementedError

    def build_append_operation(self, character_id: int, message: ChatMessage) -> Operation:
        def _operation(_session: object) -> None:
            self.append(character_id, message)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(_session: object) -> None:
            self.delete_for_character(character_id)

        return _operation


class JournalRepository(ABC):
    @abstractmethod
    def list_for_character(self, character_id: int) -> List[JournalEntry]:
        raise NotImplementedError

    @abstractmethod
    def append(self, character_id: int, entry: JournalEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_for_character(self, character_id: int) -> None:
        raise NotImplementedError

    def count_for_character(self, character_id: int) -> int:
        return len(self.list_for_character(character_id))

    def build_append_operation(self, character_id: int, entry: JournalEntry) -> Operation:
        def _operation(_session: object) -> None:
            self.append(character_id, entry)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(_session: object) -> None:
            self.delete_for_character(character_id)

        return _operation
