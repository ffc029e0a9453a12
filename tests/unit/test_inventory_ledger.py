import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.domain.models.inventory import InventoryItem, InventoryLedger


class InventoryLedgerTests(unittest.TestCase):
    def test_add_merges_case_insensitive_names(self) -> None:
        ledger = InventoryLedger([InventoryItem(name="Health Potion", quantity=2, item_type="consumable")])

        ledger.add_item("health potion", quantity=1)

        self.assertEqual(1, len(ledger))
        self.assertEqual(3, ledger.get("HEALTH POTION").quantity)
        self.assertEqual("Health Potion", ledger.get("health potion").name)

    def test_add_defaults_and_quantity_floor(self) -> None:
        ledger = InventoryLedger()

        item = ledger.add_item("Strange Key", quantity=0, item_type="relic")

        self.assertIsNotNone(item)
        assert item is not None
        self.assertEqual(1, item.quantity)
        self.assertEqual("📦", item.icon)
        self.assertEqual("misc", item.item_type)

    def test_blank_name_is_ignored(self) -> None:
        ledger = InventoryLedger()

        self.assertIsNone(ledger.add_item("   "))
        self.assertEqual([], ledger.pending_upserts())

    def test_remove_decrements_then_deletes(self) -> None:
        ledger = InventoryLedger([InventoryItem(name="Torch", quantity=2)])

        ledger.remove_item("torch")
        self.assertEqual(1, ledger.get("Torch").quantity)

        ledger.remove_item("Torch")
        self.assertNotIn("Torch", ledger)
        self.assertEqual(["torch"], ledger.pending_deletions())

    def test_remove_absent_item_is_noop(self) -> None:
        ledger = InventoryLedger([InventoryItem(name="Torch", quantity=2)])

        self.assertIsNone(ledger.remove_item("Lantern"))
        self.assertEqual([], ledger.pending_deletions())
        self.assertEqual(2, ledger.get("Torch").quantity)

    def test_readding_a_removed_item_cancels_pending_delete(self) -> None:
        ledger = InventoryLedger([InventoryItem(name="Torch", quantity=1)])

        ledger.remove_item("Torch")
        ledger.add_item("Torch", quantity=2)

        self.assertEqual([], ledger.pending_deletions())
        self.assertEqual(2, ledger.get("torch").quantity)


if __name__ == "__main__":
    unittest.main()
