import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.domain.models.character import Character
from tavern.domain.models.inventory import InventoryItem
from tavern.domain.models.journal import ChatMessage
from tavern.infrastructure.db.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from tavern.infrastructure.db.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryChatMessageRepository,
    InMemoryInventoryRepository,
)


class InMemoryAtomicPersistenceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.characters = InMemoryCharacterRepository({1: Character(id=1, name="Ari", gold=10)})
        self.inventory = InMemoryInventoryRepository()
        self.messages = InMemoryChatMessageRepository()
        self.persist = create_inmemory_atomic_persistor(self.characters, self.inventory, self.messages)

    def test_operations_receive_no_session(self) -> None:
        seen = []

        self.persist(None, [seen.append])

        self.assertEqual([None], seen)

    def test_commits_character_and_operations_together(self) -> None:
        character = self.characters.get(1)
        character.gold = 99

        self.persist(
            character,
            [
                self.inventory.build_upsert_operation(1, InventoryItem(name="Lantern")),
                self.messages.build_append_operation(1, ChatMessage(role="user", content="hello")),
            ],
        )

        self.assertEqual(99, self.characters.get(1).gold)
        self.assertEqual(["Lantern"], [item.name for item in self.inventory.list_for_character(1)])
        self.assertEqual(1, len(self.messages.list_recent(1, 5)))

    def test_failure_restores_every_repository(self) -> None:
        self.inventory.upsert(1, InventoryItem(name="Torch", quantity=3))
        character = self.characters.get(1)
        character.gold = 0

        def _explode(_session) -> None:
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.persist(
                character,
                [
                    self.inventory.build_delete_operation(1, "torch"),
                    self.messages.build_append_operation(1, ChatMessage(role="assistant", content="...")),
                    _explode,
                ],
            )

        self.assertEqual(10, self.characters.get(1).gold)
        self.assertEqual(3, self.inventory.list_for_character(1)[0].quantity)
        self.assertEqual([], self.messages.list_recent(1, 5))

    def test_repositories_hand_out_copies(self) -> None:
        character = self.characters.get(1)
        character.gold = 500

        self.assertEqual(10, self.characters.get(1).gold)


if __name__ == "__main__":
    unittest.main()
