from dataclasses import dataclass


@dataclass
class LevelUpAppliedEvent:
    character_id: int
    from_level: int
    to_level: int
    hp_gain: int
    stamina_gain: int
    mana_gain: int
    stat_points: int


@dataclass
class CompanionRecruitedEvent:
    character_id: int
    companion_name: str
    personality: str


@dataclass
class CompanionRecruitmentRejectedEvent:
    character_id: int
    companion_name: str


@dataclass
class RestInterruptedEvent:
    character_id: int
    zone_id: str
    roll: float
    ambush_chance: int


@dataclass
class ChangeSetDroppedEvent:
    character_id: int
    reason: str


@dataclass
class BetrayerDefeatedEvent:
    character_id: int
    betrayer_id: str
