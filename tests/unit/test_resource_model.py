import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.domain.models.character import Character
from tavern.domain.models.resources import (
    adjust_reputation,
    adjust_skill,
    apply_delta,
    apply_gold_delta,
    apply_max_increase,
    coerce_int,
    round_half_up,
)


class ResourceModelTests(unittest.TestCase):
    def test_apply_delta_clamps_to_zero_and_max(self) -> None:
        character = Character(id=1, name="Ayla", hp=40, max_hp=100)

        self.assertEqual(0, apply_delta(character, "hp", -500))
        self.assertEqual(100, apply_delta(character, "hp", 1000))
        self.assertEqual(100, character.hp)

    def test_apply_delta_rejects_unknown_resource(self) -> None:
        character = Character(id=1, name="Ayla")

        with self.assertRaises(ValueError):
            apply_delta(character, "gold", 5)

    def test_apply_delta_coerces_loose_numbers(self) -> None:
        character = Character(id=1, name="Ayla", stamina=50, max_stamina=100)

        apply_delta(character, "stamina", "10")
        apply_delta(character, "stamina", 5.6)
        apply_delta(character, "stamina", None)
        apply_delta(character, "stamina", "lots")

        self.assertEqual(65, character.stamina)

    def test_max_increase_keeps_current_unless_refill(self) -> None:
        character = Character(id=1, name="Ayla", mana=10, max_mana=50)

        apply_max_increase(character, "mana", 5)
        self.assertEqual((10, 55), (character.mana, character.max_mana))

        apply_max_increase(character, "mana", 5, refill=True)
        self.assertEqual((60, 60), (character.mana, character.max_mana))

    def test_max_increase_ignores_negative_amounts(self) -> None:
        character = Character(id=1, name="Ayla", hp=80, max_hp=100)

        apply_max_increase(character, "hp", -30)

        self.assertEqual(100, character.max_hp)

    def test_gold_never_goes_negative(self) -> None:
        character = Character(id=1, name="Ayla", gold=10)

        self.assertEqual(0, apply_gold_delta(character, -25))
        self.assertEqual(7, apply_gold_delta(character, 7))

    def test_skill_clamped_and_unknown_ignored(self) -> None:
        character = Character(id=1, name="Ayla", skills={"stealth": 95})

        self.assertEqual(100, adjust_skill(character, "stealth", 20))
        self.assertEqual(0, adjust_skill(character, "Sleight of Hand", -5))
        self.assertIsNone(adjust_skill(character, "juggling", 5))
        self.assertNotIn("juggling", character.skills)

    def test_reputation_is_unclamped(self) -> None:
        character = Character(id=1, name="Ayla")

        self.assertEqual(-150, adjust_reputation(character, "malice", -150))
        self.assertEqual(250, adjust_reputation(character, "honor", 250))
        self.assertIsNone(adjust_reputation(character, "fame", 1))

    def test_coerce_int_and_half_up_rounding(self) -> None:
        self.assertEqual(0, coerce_int(float("nan")))
        self.assertEqual(0, coerce_int(float("inf")))
        self.assertEqual(0, coerce_int(True))
        self.assertEqual(3, coerce_int("3.9"))
        self.assertEqual(4, round_half_up(3.5))
        self.assertEqual(1, round_half_up(0.75))
        self.assertEqual(2, round_half_up(2.4))


if __name__ == "__main__":
    unittest.main()
