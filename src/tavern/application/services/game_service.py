from __future__ import annotations

import copy
import logging
import random
from collections.abc import Callable, Sequence
from typing import Any, Dict, List, Mapping, Optional

from tavern.application.dtos import (
    ActionResult,
    CharacterSheetView,
    CompanionView,
    InventoryItemView,
    JournalEntryView,
    NarratorSnapshot,
)
from tavern.application.errors import ActionProcessingError
from tavern.application.services.change_set_parser import parse_narration
from tavern.application.services.character_creation_service import CharacterCreationService
from tavern.application.services.narrator import Narrator
from tavern.application.services.progression_service import ProgressionReport, ProgressionService
from tavern.domain.events import ChangeSetDroppedEvent, RestInterruptedEvent
from tavern.domain.models.change_set import ChangeSet
from tavern.domain.models.character import Character, StoryPhase
from tavern.domain.models.character_class import find_class
from tavern.domain.models.character_state import CharacterState
from tavern.domain.models.companion import CompanionRoster, trust_label
from tavern.domain.models.inventory import InventoryLedger
from tavern.domain.models.journal import ChatMessage
from tavern.domain.models.resources import adjust_skill
from tavern.domain.models.zone import zone_for
from tavern.domain.repositories import (
    CharacterRepository,
    ChatMessageRepository,
    CompanionRepository,
    InventoryRepository,
    JournalRepository,
    Operation,
)
from tavern.domain.services.action_classifier import detect_skill_usage, is_free_action, is_spell_action
from tavern.domain.services.rest_resolver import resolve_rest
from tavern.domain.services.status_deriver import momentum_state, status_labels


DEFAULT_HISTORY_WINDOW = 10
SKILL_PRACTICE_MIN = 1
SKILL_PRACTICE_MAX = 3

EXHAUSTED_MESSAGE = "You are too exhausted to act. Rest or take a free action (talk, look, think)."


class GameService:
    def __init__(
        self,
        character_repo: CharacterRepository,
        inventory_repo: InventoryRepository,
        companion_repo: CompanionRepository,
        message_repo: ChatMessageRepository,
        journal_repo: JournalRepository,
        narrator: Narrator,
        atomic_state_persistor: Callable[..., None] | None = None,
        event_publisher: Callable[[object], None] | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        rng: random.Random | None = None,
    ) -> None:
        self.character_repo = character_repo
        self.inventory_repo = inventory_repo
        self.companion_repo = companion_repo
        self.message_repo = message_repo
        self.journal_repo = journal_repo
        self.narrator = narrator
        self.atomic_state_persistor = atomic_state_persistor
        self.history_window = max(1, int(history_window))
        self._event_publisher = event_publisher
        self._rng = rng or random.Random()
        self._logger = logging.getLogger(__name__)
        # progression events are held until the write that produced them commits
        self._pending_events: List[object] = []
        self.progression_service = ProgressionService(event_publisher=self._pending_events.append)
        self.character_creation_service = CharacterCreationService()

    def _publish(self, event: object) -> None:
        if callable(self._event_publisher):
            self._event_publisher(event)

    def _flush_events(self) -> None:
        events = list(self._pending_events)
        self._pending_events.clear()
        for event in events:
            self._publish(event)

    # -- loading and persistence ---------------------------------------------------------

    def _require_character(self, character_id: int) -> Character:
        character = self.character_repo.get(character_id)
        if character is None:
            raise ValueError(f"Character {character_id} not found")
        return character

    def load_state(self, character_id: int) -> CharacterState:
        character = self._require_character(character_id)
        return CharacterState(
            character=character,
            inventory=InventoryLedger(self.inventory_repo.list_for_character(character_id)),
            companions=CompanionRoster(self.companion_repo.list_for_character(character_id)),
            journal_count=self.journal_repo.count_for_character(character_id),
        )

    def _state_operations(self, state: CharacterState) -> List[Operation]:
        character_id = int(state.character.id or 0)
        operations: List[Operation] = []
        for item in state.inventory.pending_upserts():
            operations.append(self.inventory_repo.build_upsert_operation(character_id, item))
        for name in state.inventory.pending_deletions():
            operations.append(self.inventory_repo.build_delete_operation(character_id, name))
        for companion in state.companions.pending_upserts():
            operations.append(self.companion_repo.build_upsert_operation(character_id, companion))
        for entry in state.pending_journal:
            operations.append(self.journal_repo.build_append_operation(character_id, entry))
        return operations

    def _persist_atomic(self, character: Character | None, operations: Sequence[Operation]) -> None:
        if self.atomic_state_persistor is not None:
            self.atomic_state_persistor(character, list(operations))
            return
        if character is not None:
            self.character_repo.save(character)
        for operation in operations:
            operation(None)

    # -- commands ------------------------------------------------------------------------

    def create_character(
        self,
        user_id: str,
        name: str,
        class_id: str,
        backstory: str = "",
        origin: Any = None,
    ) -> Character:
        if self.character_repo.get_for_user(user_id) is not None:
            raise ValueError("This user already has an active character; start a new story first")

        state = self.character_creation_service.build_state(
            user_id=user_id, name=name, class_id=class_id, backstory=backstory, origin=origin
        )
        created = self.character_repo.create(state.character)
        state.character = created
        try:
            self._persist_atomic(created, self._state_operations(state))
        except Exception:
            self.character_repo.delete(int(created.id or 0))
            raise
        return self._require_character(int(created.id or 0))

    def submit_action(self, character_id: int, text: str, dice_roll: Optional[int] = None) -> ActionResult:
        action_text = str(text or "").strip()
        if not action_text:
            raise ValueError("Action text is required")
        state = self.load_state(character_id)
        return self._process_action(state, action_text, dice_roll=dice_roll, free=is_free_action(action_text))

    def rest(self, character_id: int, rng: random.Random | None = None) -> ActionResult:
        state = self.load_state(character_id)
        working = copy.deepcopy(state)
        zone = zone_for(working.character.current_zone)
        outcome = resolve_rest(working.character, zone, rng or self._rng)

        if outcome.interrupted:
            self._publish(
                RestInterruptedEvent(
                    character_id=character_id,
                    zone_id=zone.id,
                    roll=float(outcome.roll or 0.0),
                    ambush_chance=zone.ambush_chance_percent,
                )
            )
            result = self._process_action(state, outcome.forced_action or "", free=False, forced=True)
            result.messages.insert(0, f"You were ambushed while resting in {zone.name}!")
            return result

        try:
            self._persist_atomic(working.character, ())
        except Exception as exc:
            raise ActionProcessingError("Could not save your rest; nothing was changed") from exc
        character = self._require_character(character_id)
        return ActionResult(
            messages=[
                f"You rest in {zone.name}. Recovered {outcome.stamina_recovered} stamina "
                f"and {outcome.mana_recovered} mana."
            ],
            action_type="free",
            changes_applied=True,
            status_labels=status_labels(character),
        )

    def allocate_stat_points(self, character_id: int, allocations: Mapping[str, object]) -> Dict[str, int]:
        working = copy.deepcopy(self._require_character(character_id))
        applied = self.progression_service.allocate_stat_points(working, allocations)
        self._persist_atomic(working, ())
        return applied

    def set_companion_active(self, character_id: int, name: str, active: bool) -> CompanionView:
        state = self.load_state(character_id)
        companion = state.companions.set_active(name, active)
        if companion is None:
            raise ValueError(f"No companion named {name}")
        self._persist_atomic(None, self._state_operations(state))
        return self._companion_view(companion)

    def start_new_story(self, user_id: str) -> bool:
        character = self.character_repo.get_for_user(user_id)
        if character is None:
            return False
        character_id = int(character.id or 0)
        self._persist_atomic(
            None,
            [
                self.message_repo.build_delete_for_character_operation(character_id),
                self.journal_repo.build_delete_for_character_operation(character_id),
                self.companion_repo.build_delete_for_character_operation(character_id),
                self.inventory_repo.build_delete_for_character_operation(character_id),
                self.character_repo.build_delete_operation(character_id),
            ],
        )
        return True

    # -- queries -------------------------------------------------------------------------

    def get_character_for_user(self, user_id: str) -> Character | None:
        return self.character_repo.get_for_user(user_id)

    def narrator_status(self) -> List[str]:
        provider_names = getattr(self.narrator, "provider_names", None)
        return list(provider_names()) if callable(provider_names) else []

    def get_character_sheet(self, character_id: int) -> CharacterSheetView:
        state = self.load_state(character_id)
        character = state.character
        character_class = find_class(character.class_id)
        zone = zone_for(character.current_zone)
        progress = self.progression_service.preview_next_level(character)
        return CharacterSheetView(
            character_id=int(character.id or 0),
            name=character.name,
            class_name=character_class.name if character_class else character.class_id,
            level=character.level,
            xp=character.xp,
            next_level_xp=progress.next_level_xp,
            xp_to_next_level=progress.xp_to_next_level,
            stat_points=character.stat_points,
            hp=character.hp,
            max_hp=character.max_hp,
            stamina=character.stamina,
            max_stamina=character.max_stamina,
            mana=character.mana,
            max_mana=character.max_mana,
            gold=character.gold,
            offense=character.offense,
            defense=character.defense,
            magic=character.magic,
            zone_id=zone.id,
            zone_name=zone.name,
            story_phase=StoryPhase(character.story_phase).label,
            momentum=momentum_state(character),
            status_effects=status_labels(character),
            skills=dict(character.skills),
            reputation=dict(character.reputation),
            betrayers_defeated=sorted(character.betrayers_defeated),
            inventory=[
                InventoryItemView(
                    name=item.name,
                    quantity=item.quantity,
                    icon=item.icon,
                    item_type=item.item_type,
                    description=item.description or "",
                )
                for item in state.inventory.items()
            ],
            companions=[self._companion_view(companion) for companion in state.companions.members()],
            journal=[
                JournalEntryView(entry_number=entry.entry_number, title=entry.title, content=entry.content)
                for entry in self.journal_repo.list_for_character(character_id)
            ],
        )

    # -- action pipeline -----------------------------------------------------------------

    @staticmethod
    def _companion_view(companion) -> CompanionView:
        return CompanionView(
            name=companion.name,
            personality=companion.personality,
            icon=companion.icon,
            hp=companion.hp,
            max_hp=companion.max_hp,
            trust=companion.trust,
            trust_label=trust_label(companion.trust),
            is_active=companion.is_active,
        )

    def build_snapshot(self, state: CharacterState, action_text: str, *, free: bool) -> NarratorSnapshot:
        character = state.character
        character_class = find_class(character.class_id)
        zone = zone_for(character.current_zone)
        recent = self.message_repo.list_recent(int(character.id or 0), self.history_window)
        return NarratorSnapshot(
            name=character.name,
            class_name=character_class.name if character_class else "Adventurer",
            level=character.level,
            hp=character.hp,
            max_hp=character.max_hp,
            stamina=character.stamina,
            max_stamina=character.max_stamina,
            mana=character.mana,
            max_mana=character.max_mana,
            gold=character.gold,
            xp=character.xp,
            zone_id=zone.id,
            zone_name=zone.name,
            story_phase=character.story_phase,
            is_free_action=free,
            is_spell_action=(not free) and is_spell_action(action_text),
            momentum=momentum_state(character),
            status_labels=status_labels(character),
            skills={key: value for key, value in character.skills.items() if value > 0},
            reputation={key: value for key, value in character.reputation.items() if value != 0},
            inventory=[f"{item.name} x{item.quantity}" for item in state.inventory.items()],
            companions=[
                f"{companion.name} ({companion.personality}, trust {companion.trust})"
                for companion in state.companions.active()
            ],
            betrayers_defeated=sorted(character.betrayers_defeated),
            recent_messages=[{"role": message.role, "content": message.content} for message in recent],
            backstory=character.backstory,
        )

    def _read_change_set(self, character_id: int, narration_text: str, raw_changes: Any) -> tuple[str, ChangeSet | None]:
        narrative, change_set, dropped = parse_narration(narration_text, raw_changes)
        if dropped:
            self._logger.warning("Dropping unreadable change block for character %s", character_id)
            self._publish(ChangeSetDroppedEvent(character_id=character_id, reason="unparseable change block"))
        return narrative, change_set

    def _practice_skills(self, character: Character, action_text: str) -> List[str]:
        messages: List[str] = []
        for skill in detect_skill_usage(action_text):
            gain = self._rng.randint(SKILL_PRACTICE_MIN, SKILL_PRACTICE_MAX)
            before = character.skills.get(skill, 0)
            after = adjust_skill(character, skill, gain)
            if after is not None and after > before:
                messages.append(f"{skill.replace('_', ' ').title()} improved to {after}.")
        return messages

    def _process_action(
        self,
        state: CharacterState,
        action_text: str,
        *,
        dice_roll: Optional[int] = None,
        free: bool,
        forced: bool = False,
    ) -> ActionResult:
        character_id = int(state.character.id or 0)
        action_type = "free" if free else "paid"
        if not free and not forced and state.character.stamina <= 0:
            return ActionResult(
                messages=[EXHAUSTED_MESSAGE],
                action_type=action_type,
                refused=True,
                status_labels=status_labels(state.character),
            )

        snapshot = self.build_snapshot(state, action_text, free=free)
        try:
            narration = self.narrator.narrate(action_text, snapshot, dice_roll)
        except Exception as exc:
            self._logger.warning("Narrator failed for character %s: %s", character_id, exc)
            raise ActionProcessingError("The narrator could not respond; try again") from exc

        narrative, change_set = self._read_change_set(character_id, narration.narrative_text, narration.raw_changes)

        working = copy.deepcopy(state)
        report = ProgressionReport()
        self._pending_events.clear()
        if change_set is not None:
            report = self.progression_service.apply_change_set(working, change_set)
        practice_messages = [] if free else self._practice_skills(working.character, action_text)

        operations = self._state_operations(working)
        operations.append(
            self.message_repo.build_append_operation(character_id, ChatMessage(role="user", content=action_text))
        )
        operations.append(
            self.message_repo.build_append_operation(character_id, ChatMessage(role="assistant", content=narrative))
        )
        try:
            self._persist_atomic(working.character, operations)
        except Exception as exc:
            self._pending_events.clear()
            self._logger.exception("Failed to persist action for character %s", character_id)
            raise ActionProcessingError("Your action could not be saved; nothing was changed") from exc

        self._flush_events()
        character = self._require_character(character_id)
        return ActionResult(
            messages=report.messages + practice_messages,
            narrative=narrative,
            action_type=action_type,
            changes_applied=change_set is not None and not change_set.is_empty(),
            level_ups=len(report.level_ups),
            status_labels=status_labels(character),
            provider=narration.provider or None,
        )
