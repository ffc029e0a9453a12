from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from tavern.application.dtos import LevelProgressView
from tavern.domain.events import (
    BetrayerDefeatedEvent,
    CompanionRecruitedEvent,
    CompanionRecruitmentRejectedEvent,
    LevelUpAppliedEvent,
)
from tavern.domain.models.change_set import ChangeSet
from tavern.domain.models.character import (
    BETRAYERS,
    REPUTATION_KEYS,
    SKILL_KEYS,
    SKILL_MAX,
    Character,
    StoryPhase,
    normalize_key,
)
from tavern.domain.models.character_class import CharacterClass, find_class
from tavern.domain.models.character_state import CharacterState
from tavern.domain.models.progression import (
    FALLBACK_RESOURCE_GAIN,
    HP_GAIN_PER_LEVEL,
    MAX_XP_GAIN,
    RESOURCE_GROWTH_RATE,
    STAT_POINTS_PER_LEVEL,
    ExperiencePoints,
    Level,
    LevelGrowth,
    LevelUpStep,
    xp_for_next_level,
)
from tavern.domain.models.resources import (
    adjust_reputation,
    adjust_skill,
    apply_delta,
    apply_gold_delta,
    apply_max_increase,
    coerce_int,
    round_half_up,
)
from tavern.domain.models.zone import ZONES, normalize_zone_id


@dataclass
class ProgressionReport:
    messages: List[str] = field(default_factory=list)
    level_ups: List[LevelUpStep] = field(default_factory=list)
    recruited: Optional[str] = None
    rejected_companion: Optional[str] = None


class ProgressionService:
    def __init__(self, event_publisher: Callable[[object], None] | None = None, class_lookup=find_class) -> None:
        self._event_publisher = event_publisher
        self._class_lookup = class_lookup

    def _publish(self, event: object) -> None:
        if callable(self._event_publisher):
            self._event_publisher(event)

    def level_growth(self, character: Character) -> LevelGrowth:
        character_class: CharacterClass | None = self._class_lookup(character.class_id)
        if character_class is None:
            return LevelGrowth(
                hp_gain=HP_GAIN_PER_LEVEL,
                stamina_gain=FALLBACK_RESOURCE_GAIN,
                mana_gain=FALLBACK_RESOURCE_GAIN,
            )
        return LevelGrowth(
            hp_gain=HP_GAIN_PER_LEVEL,
            stamina_gain=round_half_up(character_class.max_stamina * RESOURCE_GROWTH_RATE),
            mana_gain=round_half_up(character_class.max_mana * RESOURCE_GROWTH_RATE),
        )

    def apply_experience(self, character: Character, xp_gain: object) -> List[LevelUpStep]:
        """Add XP (capped at ``MAX_XP_GAIN``) and run the level-up loop; every level gained refills all vitals."""
        gain = min(coerce_int(xp_gain), MAX_XP_GAIN)
        if gain <= 0:
            return []
        current_xp = ExperiencePoints(max(0, int(character.xp)) + gain).value
        current_level = Level(max(1, int(character.level))).value

        steps: List[LevelUpStep] = []
        while current_xp >= xp_for_next_level(current_level):
            threshold = xp_for_next_level(current_level)
            current_xp -= threshold
            growth = self.level_growth(character)
            apply_max_increase(character, "hp", growth.hp_gain, refill=True)
            apply_max_increase(character, "stamina", growth.stamina_gain, refill=True)
            apply_max_increase(character, "mana", growth.mana_gain, refill=True)
            character.stat_points = max(0, int(character.stat_points)) + STAT_POINTS_PER_LEVEL
            step = LevelUpStep(
                from_level=current_level,
                to_level=current_level + 1,
                xp_consumed=threshold,
                growth=growth,
            )
            current_level += 1
            character.level = current_level
            steps.append(step)
            self._publish(
                LevelUpAppliedEvent(
                    character_id=int(character.id or 0),
                    from_level=step.from_level,
                    to_level=step.to_level,
                    hp_gain=growth.hp_gain,
                    stamina_gain=growth.stamina_gain,
                    mana_gain=growth.mana_gain,
                    stat_points=STAT_POINTS_PER_LEVEL,
                )
            )
        character.xp = current_xp
        return steps

    def apply_change_set(
        self,
        state: CharacterState,
        change_set: ChangeSet,
    ) -> ProgressionReport:
        """Fold a validated change-set into ``state`` in place.

        Callers work on a copy and persist it in one atomic write.
        """
        character = state.character
        report = ProgressionReport()

        if change_set.hp_change:
            before = character.hp
            after = apply_delta(character, "hp", change_set.hp_change)
            if after < before:
                report.messages.append(f"You lost {before - after} HP.")
            elif after > before:
                report.messages.append(f"You recovered {after - before} HP.")

        if change_set.stamina_change:
            apply_delta(character, "stamina", change_set.stamina_change)
        if change_set.mana_change:
            apply_delta(character, "mana", change_set.mana_change)

        if change_set.gold_change:
            before = character.gold
            after = apply_gold_delta(character, change_set.gold_change)
            if after > before:
                report.messages.append(f"You gained {after - before} gold.")
            elif after < before:
                report.messages.append(f"You spent {before - after} gold.")

        if change_set.xp_gain and change_set.xp_gain > 0:
            report.messages.append(f"+{change_set.xp_gain} XP.")
            report.level_ups = self.apply_experience(character, change_set.xp_gain)
            for step in report.level_ups:
                report.messages.append(
                    f"Level up! You reached level {step.to_level} "
                    f"(+{step.growth.hp_gain} max HP, +{step.growth.stamina_gain} stamina, "
                    f"+{step.growth.mana_gain} mana, +{step.stat_points_granted} stat points)."
                )

        zone_id = normalize_zone_id(change_set.zone_change)
        if zone_id is not None and zone_id != character.current_zone:
            character.current_zone = zone_id
            report.messages.append(f"You travel to {ZONES[zone_id].name}.")

        for item in change_set.new_items:
            added = state.inventory.add_item(
                item.name,
                description=item.description,
                icon=item.icon,
                quantity=item.quantity,
                item_type=item.item_type,
            )
            if added is not None:
                report.messages.append(f"Received {item.name} x{max(1, item.quantity)}.")
        for name in change_set.remove_items:
            if name in state.inventory:
                state.inventory.remove_item(name)
                report.messages.append(f"Used up {name}.")

        for trust in change_set.trust_changes:
            state.companions.adjust_trust(trust.name, trust.change)

        recruit = change_set.new_companion
        if recruit is not None:
            companion = state.companions.recruit(
                recruit.name,
                recruit.personality,
                recruit.icon,
                recruit.description,
                hp=recruit.hp,
                max_hp=recruit.max_hp,
                level=character.level,
            )
            if companion is None:
                report.rejected_companion = recruit.name
                report.messages.append(f"{recruit.name} is already in your party.")
                self._publish(
                    CompanionRecruitmentRejectedEvent(character_id=int(character.id or 0), companion_name=recruit.name)
                )
            else:
                report.recruited = companion.name
                report.messages.append(f"{companion.name} has joined your party!")
                self._publish(
                    CompanionRecruitedEvent(
                        character_id=int(character.id or 0),
                        companion_name=companion.name,
                        personality=companion.personality,
                    )
                )

        if change_set.journal_entry is not None:
            entry = state.append_journal(change_set.journal_entry.title, change_set.journal_entry.content)
            report.messages.append(f"Journal updated: {entry.title}")

        for skill, delta in change_set.skill_changes.items():
            adjust_skill(character, skill, delta)
        for axis, delta in change_set.reputation_changes.items():
            adjust_reputation(character, axis, delta)

        betrayer = normalize_key(change_set.betrayer_defeated)
        if betrayer in BETRAYERS and betrayer not in character.betrayers_defeated:
            character.betrayers_defeated.add(betrayer)
            report.messages.append(f"{BETRAYERS[betrayer]} has fallen.")
            self._publish(BetrayerDefeatedEvent(character_id=int(character.id or 0), betrayer_id=betrayer))

        phase = StoryPhase.normalize(change_set.story_phase_change)
        if phase is not None and phase != character.story_phase:
            character.story_phase = phase
            report.messages.append(StoryPhase(phase).label)

        return report

    def allocate_stat_points(self, character: Character, allocations: Mapping[str, object]) -> Dict[str, int]:
        """Spend unallocated stat points one-for-one; nothing changes unless every allocation is valid."""
        planned: Dict[str, int] = {}
        for raw_key, raw_amount in dict(allocations or {}).items():
            key = normalize_key(raw_key)
            if key not in SKILL_KEYS and key not in REPUTATION_KEYS:
                raise ValueError(f"Unknown skill or reputation: {raw_key}")
            amount = coerce_int(raw_amount)
            if amount < 0:
                raise ValueError("Stat point allocations cannot be negative")
            if amount:
                planned[key] = planned.get(key, 0) + amount

        total = sum(planned.values())
        if total <= 0:
            raise ValueError("Nothing to allocate")
        if total > int(character.stat_points):
            raise ValueError(f"Not enough stat points: {total} requested, {character.stat_points} available")

        for key, amount in planned.items():
            current = character.skills[key] if key in SKILL_KEYS else character.reputation[key]
            if current + amount > SKILL_MAX:
                raise ValueError(f"{key} cannot exceed {SKILL_MAX}")

        for key, amount in planned.items():
            if key in SKILL_KEYS:
                adjust_skill(character, key, amount)
            else:
                adjust_reputation(character, key, amount)
        character.stat_points = int(character.stat_points) - total
        return planned

    def preview_next_level(self, character: Character) -> LevelProgressView:
        threshold = xp_for_next_level(character.level)
        return LevelProgressView(
            level=int(character.level),
            xp=int(character.xp),
            next_level_xp=threshold,
            xp_to_next_level=max(0, threshold - int(character.xp)),
            stat_points=int(character.stat_points),
        )
