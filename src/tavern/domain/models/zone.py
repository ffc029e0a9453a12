from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    dangerous: bool
    rest_recovery_percent: int
    ambush_chance_percent: int


HOME_ZONE_ID = "tavern"

ZONES: Dict[str, Zone] = {
    "tavern": Zone("tavern", "Old Greg's Tavern", dangerous=False, rest_recovery_percent=100, ambush_chance_percent=0),
    "village": Zone("village", "Village", dangerous=False, rest_recovery_percent=100, ambush_chance_percent=5),
    "forest": Zone("forest", "Dark Forest", dangerous=True, rest_recovery_percent=50, ambush_chance_percent=50),
    "dungeon": Zone("dungeon", "Ancient Dungeon", dangerous=True, rest_recovery_percent=25, ambush_chance_percent=75),
    "caves": Zone("caves", "Underground Caves", dangerous=True, rest_recovery_percent=30, ambush_chance_percent=60),
    "ruins": Zone("ruins", "Forgotten Ruins", dangerous=True, rest_recovery_percent=40, ambush_chance_percent=40),
    "abyss": Zone("abyss", "The Abyss", dangerous=True, rest_recovery_percent=15, ambush_chance_percent=85),
}

# Zones deep enough to raise the "In Danger" status.
HIGH_DANGER_ZONE_IDS: frozenset[str] = frozenset({"dungeon", "caves", "abyss"})


def normalize_zone_id(value: object) -> Optional[str]:
    raw = str(value or "").strip().lower()
    return raw if raw in ZONES else None


def zone_for(zone_id: object) -> Zone:
    return ZONES.get(normalize_zone_id(zone_id) or HOME_ZONE_ID, ZONES[HOME_ZONE_ID])
