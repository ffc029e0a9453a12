import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.application.errors import ActionProcessingError, NarratorUnavailableError
from tavern.application.services.game_service import EXHAUSTED_MESSAGE, GameService
from tavern.domain.events import (
    ChangeSetDroppedEvent,
    CompanionRecruitedEvent,
    LevelUpAppliedEvent,
    RestInterruptedEvent,
)
from tavern.domain.services.rest_resolver import AMBUSH_ACTION_TEXT
from tavern.infrastructure.db.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from tavern.infrastructure.db.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryChatMessageRepository,
    InMemoryCompanionRepository,
    InMemoryInventoryRepository,
    InMemoryJournalRepository,
)
from tavern.infrastructure.narrator.scripted_narrator import ScriptedNarrator


class _StubRandom:
    def __init__(self, roll: float = 0.99, gain: int = 2) -> None:
        self.roll = roll
        self.gain = gain

    def random(self) -> float:
        return self.roll

    def randint(self, low: int, high: int) -> int:
        return self.gain


class _BrokenNarrator:
    def narrate(self, action_text, snapshot, dice_roll=None):
        raise NarratorUnavailableError("All narrator providers failed: groq: timeout")


class _FailingMessageRepository(InMemoryChatMessageRepository):
    def append(self, character_id, message) -> None:
        raise RuntimeError("disk full")


def _fenced(payload: str) -> str:
    return f"Something happens.\n\n```json\n{payload}\n```"


class GameServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._build()

    def _build(self, *, narrator=None, message_repo=None, history_window: int = 10) -> None:
        self.character_repo = InMemoryCharacterRepository()
        self.inventory_repo = InMemoryInventoryRepository()
        self.companion_repo = InMemoryCompanionRepository()
        self.message_repo = message_repo or InMemoryChatMessageRepository()
        self.journal_repo = InMemoryJournalRepository()
        self.narrator = narrator or ScriptedNarrator()
        self.events: list[object] = []
        self.rng = _StubRandom()
        self.service = GameService(
            self.character_repo,
            self.inventory_repo,
            self.companion_repo,
            self.message_repo,
            self.journal_repo,
            narrator=self.narrator,
            atomic_state_persistor=create_inmemory_atomic_persistor(
                self.character_repo,
                self.inventory_repo,
                self.companion_repo,
                self.message_repo,
                self.journal_repo,
            ),
            event_publisher=self.events.append,
            history_window=history_window,
            rng=self.rng,
        )

    def _create(self, origin=None) -> int:
        character = self.service.create_character("user-1", "Ser Aldous", "knight", origin=origin)
        return int(character.id)

    def _drain_stamina(self, character_id: int) -> None:
        character = self.character_repo.get(character_id)
        character.stamina = 0
        self.character_repo.save(character)

    # -- creation ------------------------------------------------------------------------

    def test_create_character_seeds_class_vitals_and_starting_items(self) -> None:
        character_id = self._create()

        character = self.character_repo.get(character_id)
        self.assertEqual((100, 160, 15), (character.max_hp, character.max_stamina, character.max_mana))
        self.assertEqual(10, character.gold)
        self.assertEqual(18, character.skills["two_handed"])
        self.assertEqual(18, character.reputation["honor"])
        names = sorted(item.name for item in self.inventory_repo.list_for_character(character_id))
        self.assertEqual(["Health Potion", "Rusty Sword", "Torch"], names)

    def test_one_active_character_per_user(self) -> None:
        self._create()

        with self.assertRaises(ValueError):
            self.service.create_character("user-1", "Again", "rogue")

    def test_unknown_class_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.service.create_character("user-2", "Nobody", "astronaut")

        self.assertIsNone(self.service.get_character_for_user("user-2"))

    def test_origin_bonus_is_applied(self) -> None:
        character_id = self._create(
            origin={
                "startingZone": "ruins",
                "bonusItems": [{"name": "Family Signet", "icon": "💍", "quantity": 1}],
                "skillBoosts": {"stealth": 30, "mercy": 5},
            }
        )

        character = self.character_repo.get(character_id)
        self.assertEqual("ruins", character.current_zone)
        self.assertEqual(15, character.skills["stealth"])
        self.assertEqual(5, character.reputation["mercy"])
        self.assertIn("Family Signet", [item.name for item in self.inventory_repo.list_for_character(character_id)])

    # -- actions -------------------------------------------------------------------------

    def test_paid_action_applies_changes_and_records_both_messages(self) -> None:
        character_id = self._create()

        result = self.service.submit_action(character_id, "Attack the goblin")

        character = self.character_repo.get(character_id)
        self.assertEqual("paid", result.action_type)
        self.assertTrue(result.changes_applied)
        self.assertEqual("scripted", result.provider)
        self.assertEqual(150, character.stamina)
        self.assertEqual(15, character.xp)
        self.assertIn("+15 XP.", result.messages)
        history = self.message_repo.list_recent(character_id, 10)
        self.assertEqual(["user", "assistant"], [message.role for message in history])
        self.assertEqual("Attack the goblin", history[0].content)
        self.assertNotIn("```", history[1].content)

    def test_free_action_still_applies_narrated_stamina_loss(self) -> None:
        character_id = self._create()
        self.narrator.queue(_fenced('{"staminaChange": -25, "goldChange": 3}'))

        result = self.service.submit_action(character_id, "Look around the tavern")

        character = self.character_repo.get(character_id)
        self.assertEqual("free", result.action_type)
        self.assertEqual(135, character.stamina)
        self.assertEqual(13, character.gold)
        self.assertTrue(self.narrator.calls[0][1].is_free_action)

    def test_empty_action_is_rejected(self) -> None:
        character_id = self._create()

        with self.assertRaises(ValueError):
            self.service.submit_action(character_id, "   ")

    def test_exhausted_character_is_refused_paid_actions(self) -> None:
        character_id = self._create()
        self._drain_stamina(character_id)

        result = self.service.submit_action(character_id, "Climb the wall")

        self.assertTrue(result.refused)
        self.assertEqual([EXHAUSTED_MESSAGE], result.messages)
        self.assertEqual([], self.narrator.calls)
        self.assertEqual([], self.message_repo.list_recent(character_id, 10))

    def test_exhausted_character_may_still_talk(self) -> None:
        character_id = self._create()
        self._drain_stamina(character_id)

        result = self.service.submit_action(character_id, "Talk to the barkeep")

        self.assertFalse(result.refused)
        self.assertEqual(1, len(self.narrator.calls))

    def test_narrator_failure_changes_nothing(self) -> None:
        self._build(narrator=_BrokenNarrator())
        character_id = self._create()
        before = self.character_repo.get(character_id)

        with self.assertLogs("tavern.application.services.game_service", level="WARNING"):
            with self.assertRaises(ActionProcessingError):
                self.service.submit_action(character_id, "Attack the goblin")

        self.assertEqual(before, self.character_repo.get(character_id))
        self.assertEqual([], self.message_repo.list_recent(character_id, 10))

    def test_storage_failure_rolls_back_and_suppresses_events(self) -> None:
        self._build(message_repo=_FailingMessageRepository())
        character_id = self._create()
        self.narrator.queue(
            _fenced('{"xpGain": 120, "goldChange": 50, "newItems": [{"name": "Crown"}], "removeItems": ["Torch"]}')
        )

        with self.assertLogs("tavern.application.services.game_service", level="ERROR"):
            with self.assertRaises(ActionProcessingError):
                self.service.submit_action(character_id, "Storm the keep")

        character = self.character_repo.get(character_id)
        self.assertEqual((1, 0, 10), (character.level, character.xp, character.gold))
        names = sorted(item.name for item in self.inventory_repo.list_for_character(character_id))
        self.assertEqual(["Health Potion", "Rusty Sword", "Torch"], names)
        self.assertEqual([], self.events)

    def test_level_up_event_is_published_after_commit(self) -> None:
        character_id = self._create()
        self.narrator.queue(_fenced('{"xpGain": 250}'))

        result = self.service.submit_action(character_id, "Slay the troll")

        self.assertEqual(1, result.level_ups)
        level_events = [event for event in self.events if isinstance(event, LevelUpAppliedEvent)]
        self.assertEqual(1, len(level_events))
        self.assertEqual(2, level_events[0].to_level)
        character = self.character_repo.get(character_id)
        self.assertEqual((2, 150, 3), (character.level, character.xp, character.stat_points))
        self.assertEqual(character.max_stamina, character.stamina)

    def test_narrator_status_lists_backends(self) -> None:
        self.assertEqual(["scripted"], self.service.narrator_status())

        self.service.narrator = _BrokenNarrator()

        self.assertEqual([], self.service.narrator_status())

    def test_absurd_narrated_numbers_are_bounded(self) -> None:
        character_id = self._create()
        self.narrator.queue(_fenced('{"xpGain": 1e300, "goldChange": -1e300}'))

        result = self.service.submit_action(character_id, "Slay the troll")

        self.assertEqual(44, result.level_ups)
        character = self.character_repo.get(character_id)
        self.assertEqual((45, 1000, 0), (character.level, character.xp, character.gold))

    def test_unreadable_change_block_keeps_narrative(self) -> None:
        character_id = self._create()
        self.narrator.queue("The door creaks open.\n```json\n{oops\n```")

        with self.assertLogs("tavern.application.services.game_service", level="WARNING"):
            result = self.service.submit_action(character_id, "Open the door")

        self.assertFalse(result.changes_applied)
        self.assertEqual("The door creaks open.", result.narrative)
        self.assertIsInstance(self.events[0], ChangeSetDroppedEvent)
        self.assertEqual(160, self.character_repo.get(character_id).stamina)

    def test_structured_changes_take_precedence_over_fenced_block(self) -> None:
        class _StructuredNarrator(ScriptedNarrator):
            def narrate(self, action_text, snapshot, dice_roll=None):
                narration = super().narrate(action_text, snapshot, dice_roll)
                narration.raw_changes = {"goldChange": 40}
                return narration

        self._build(narrator=_StructuredNarrator())
        character_id = self._create()

        self.service.submit_action(character_id, "Pick the merchant's pocket")

        character = self.character_repo.get(character_id)
        self.assertEqual(50, character.gold)
        self.assertEqual(160, character.stamina)

    def test_paid_actions_practice_detected_skills(self) -> None:
        character_id = self._create()

        result = self.service.submit_action(character_id, "I sneak past the sentries")

        self.assertEqual(2, self.character_repo.get(character_id).skills["stealth"])
        self.assertIn("Stealth improved to 2.", result.messages)

    def test_recruit_journal_and_sheet(self) -> None:
        character_id = self._create()
        self.narrator.queue(
            _fenced(
                '{"newCompanion": {"name": "Lyra", "personality": "brave", "icon": "🏹"},'
                ' "journalEntry": {"title": "A new friend", "content": "Lyra joined."},'
                ' "zoneChange": "abyss"}'
            )
        )

        self.service.submit_action(character_id, "Offer Lyra a place by the fire")
        sheet = self.service.get_character_sheet(character_id)

        self.assertEqual("Knight", sheet.class_name)
        self.assertEqual("Phase I: The Fall", sheet.story_phase)
        self.assertEqual("The Abyss", sheet.zone_name)
        self.assertIn("In Danger", sheet.status_effects)
        self.assertEqual(["Lyra"], [companion.name for companion in sheet.companions])
        self.assertEqual("Neutral", sheet.companions[0].trust_label)
        self.assertEqual([(1, "A new friend")], [(entry.entry_number, entry.title) for entry in sheet.journal])
        self.assertTrue(any(isinstance(event, CompanionRecruitedEvent) for event in self.events))

    def test_set_companion_active(self) -> None:
        character_id = self._create()
        self.narrator.queue(_fenced('{"newCompanion": {"name": "Brom"}}'))
        self.service.submit_action(character_id, "Hire the sellsword")

        view = self.service.set_companion_active(character_id, "brom", False)

        self.assertFalse(view.is_active)
        self.assertFalse(self.companion_repo.list_for_character(character_id)[0].is_active)
        with self.assertRaises(ValueError):
            self.service.set_companion_active(character_id, "Ghost", True)

    def test_history_window_limits_narrator_context(self) -> None:
        self._build(history_window=2)
        character_id = self._create()

        self.service.submit_action(character_id, "Look at the fire")
        self.service.submit_action(character_id, "Look at the door")
        self.service.submit_action(character_id, "Look at the bar")

        snapshot = self.narrator.calls[-1][1]
        self.assertEqual(
            [("user", "Look at the door")],
            [(row["role"], row["content"]) for row in snapshot.recent_messages][:1],
        )
        self.assertEqual(2, len(snapshot.recent_messages))

    # -- rest ----------------------------------------------------------------------------

    def test_rest_in_safe_zone_restores(self) -> None:
        character_id = self._create()
        self._drain_stamina(character_id)

        result = self.service.rest(character_id)

        self.assertEqual("free", result.action_type)
        self.assertEqual(160, self.character_repo.get(character_id).stamina)
        self.assertEqual([], self.narrator.calls)

    def test_rest_ambush_forces_a_narrated_action_even_when_exhausted(self) -> None:
        character_id = self._create(origin={"startingZone": "abyss"})
        self._drain_stamina(character_id)

        result = self.service.rest(character_id, rng=_StubRandom(roll=0.0))

        self.assertFalse(result.refused)
        self.assertEqual("You were ambushed while resting in The Abyss!", result.messages[0])
        self.assertEqual(AMBUSH_ACTION_TEXT, self.narrator.calls[0][0])
        self.assertFalse(self.narrator.calls[0][1].is_free_action)
        self.assertIsInstance(self.events[0], RestInterruptedEvent)
        self.assertEqual(0, self.character_repo.get(character_id).stamina)

    def test_rest_that_escapes_ambush_recovers_partially(self) -> None:
        character_id = self._create(origin={"startingZone": "abyss"})
        self._drain_stamina(character_id)

        self.service.rest(character_id, rng=_StubRandom(roll=0.99))

        self.assertEqual(24, self.character_repo.get(character_id).stamina)

    # -- progression and lifecycle -------------------------------------------------------

    def test_allocate_stat_points_persists(self) -> None:
        character_id = self._create()
        self.narrator.queue(_fenced('{"xpGain": 100}'))
        self.service.submit_action(character_id, "Win the duel")

        self.service.allocate_stat_points(character_id, {"climbing": 3})

        character = self.character_repo.get(character_id)
        self.assertEqual(3, character.skills["climbing"])
        self.assertEqual(0, character.stat_points)

    def test_start_new_story_clears_everything(self) -> None:
        character_id = self._create()
        self.service.submit_action(character_id, "Look around")

        self.assertTrue(self.service.start_new_story("user-1"))

        self.assertIsNone(self.service.get_character_for_user("user-1"))
        self.assertEqual([], self.inventory_repo.list_for_character(character_id))
        self.assertEqual([], self.message_repo.list_recent(character_id, 10))
        self.assertFalse(self.service.start_new_story("user-1"))
        self.service.create_character("user-1", "Second Wind", "priest")


if __name__ == "__main__":
    unittest.main()
