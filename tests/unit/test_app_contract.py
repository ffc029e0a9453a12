import dataclasses
import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.application import dtos
from tavern.application.contract import (
    COMMAND_INTENTS,
    CONTRACT_DTO_TYPES,
    CONTRACT_VERSION,
    QUERY_INTENTS,
)
from tavern.application.services.game_service import GameService


class ApplicationContractTests(unittest.TestCase):
    def test_contract_version_uses_semver(self) -> None:
        self.assertRegex(CONTRACT_VERSION, r"^\d+\.\d+\.\d+$")

    def test_game_service_implements_every_intent(self) -> None:
        for name in COMMAND_INTENTS + QUERY_INTENTS:
            with self.subTest(intent=name):
                self.assertTrue(callable(getattr(GameService, name, None)), f"Missing intent: {name}")

    def test_intents_are_unique(self) -> None:
        intents = COMMAND_INTENTS + QUERY_INTENTS
        self.assertEqual(len(intents), len(set(intents)))

    def test_declared_dtos_are_dataclasses(self) -> None:
        for dto_name in CONTRACT_DTO_TYPES:
            with self.subTest(dto=dto_name):
                self.assertTrue(dataclasses.is_dataclass(getattr(dtos, dto_name, None)), f"Missing DTO: {dto_name}")

    def test_action_result_reports_refusal_and_level_ups(self) -> None:
        fields = {field.name for field in dataclasses.fields(dtos.ActionResult)}

        self.assertTrue({"refused", "level_ups", "changes_applied", "messages", "narrative"} <= fields)


if __name__ == "__main__":
    unittest.main()
