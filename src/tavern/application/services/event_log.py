import logging

from tavern.application.services.event_bus import EventBus
from tavern.domain.events import (
    BetrayerDefeatedEvent,
    ChangeSetDroppedEvent,
    CompanionRecruitedEvent,
    CompanionRecruitmentRejectedEvent,
    LevelUpAppliedEvent,
    RestInterruptedEvent,
)


logger = logging.getLogger("tavern.events")


def _on_level_up(event: LevelUpAppliedEvent) -> None:
    logger.info(
        "character %s reached level %s (+%s hp, +%s stamina, +%s mana)",
        event.character_id,
        event.to_level,
        event.hp_gain,
        event.stamina_gain,
        event.mana_gain,
    )


def _on_recruited(event: CompanionRecruitedEvent) -> None:
    logger.info("character %s recruited %s (%s)", event.character_id, event.companion_name, event.personality)


def _on_recruit_rejected(event: CompanionRecruitmentRejectedEvent) -> None:
    logger.info("character %s already travels with %s", event.character_id, event.companion_name)


def _on_rest_interrupted(event: RestInterruptedEvent) -> None:
    logger.info(
        "character %s ambushed in %s (roll %.1f < %s)",
        event.character_id,
        event.zone_id,
        event.roll,
        event.ambush_chance,
    )


def _on_change_set_dropped(event: ChangeSetDroppedEvent) -> None:
    logger.warning("character %s: narrator changes dropped (%s)", event.character_id, event.reason)


def _on_betrayer_defeated(event: BetrayerDefeatedEvent) -> None:
    logger.info("character %s defeated betrayer %s", event.character_id, event.betrayer_id)


def register_event_log_handlers(event_bus: EventBus) -> None:
    event_bus.subscribe(LevelUpAppliedEvent, _on_level_up, priority=900)
    event_bus.subscribe(CompanionRecruitedEvent, _on_recruited, priority=900)
    event_bus.subscribe(CompanionRecruitmentRejectedEvent, _on_recruit_rejected, priority=900)
    event_bus.subscribe(RestInterruptedEvent, _on_rest_interrupted, priority=900)
    event_bus.subscribe(ChangeSetDroppedEvent, _on_change_set_dropped, priority=900)
    event_bus.subscribe(BetrayerDefeatedEvent, _on_betrayer_defeated, priority=900)
