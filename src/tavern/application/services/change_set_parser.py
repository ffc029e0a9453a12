from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from tavern.domain.models.change_set import (
    ChangeSet,
    JournalDraft,
    NewCompanion,
    NewItem,
    OriginBonus,
    TrustChange,
)
from tavern.domain.models.character import BETRAYERS, REPUTATION_KEYS, SKILL_KEYS, StoryPhase, normalize_key
from tavern.domain.models.inventory import DEFAULT_ITEM_ICON, normalize_item_type
from tavern.domain.models.resources import clamp, coerce_int
from tavern.domain.models.zone import normalize_zone_id


logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)

# narrator numbers beyond this are clamped before they reach the state
MAX_CHANGE_MAGNITUDE = 100_000

ORIGIN_BOOST_MAX = 15
ORIGIN_MAX_ITEMS = 3
ORIGIN_MAX_ITEM_QUANTITY = 5

# wire name -> ChangeSet field; snake_case spellings are accepted too
_SCALAR_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("hpChange", "hp_change"),
    ("goldChange", "gold_change"),
    ("staminaChange", "stamina_change"),
    ("manaChange", "mana_change"),
    ("xpGain", "xp_gain"),
)


def extract_change_block(text: str) -> Tuple[str, Optional[str]]:
    """Split narrator output into narrative text and the raw fenced JSON block, if any."""
    content = str(text or "")
    match = _FENCED_JSON.search(content)
    if not match:
        return content.strip(), None
    narrative = (content[: match.start()] + content[match.end():]).strip()
    return narrative, match.group(1).strip()


def _lookup(payload: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in payload:
        return payload[camel]
    return payload.get(snake)


def _as_mapping(raw: Any) -> Optional[Mapping[str, Any]]:
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Narrator change block is not valid JSON")
            return None
        if isinstance(decoded, Mapping):
            return decoded
    logger.warning("Narrator change block is not an object: %s", type(raw).__name__)
    return None


def _bounded_int(value: Any, default: int = 0) -> int:
    return clamp(coerce_int(value, default=default), -MAX_CHANGE_MAGNITUDE, MAX_CHANGE_MAGNITUDE)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return _bounded_int(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_item(raw: Any) -> Optional[NewItem]:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        return None
    name = _text(raw.get("name"))
    if not name:
        return None
    return NewItem(
        name=name,
        description=_text(raw.get("description")) or None,
        icon=_text(raw.get("icon")) or None,
        quantity=max(1, _bounded_int(raw.get("quantity"), default=1)),
        item_type=_text(_lookup(raw, "itemType", "item_type")) or None,
    )


def _parse_items(raw: Any) -> List[NewItem]:
    if not isinstance(raw, list):
        return []
    return [item for item in (_parse_item(row) for row in raw) if item is not None]


def _parse_names(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    names: List[str] = []
    for row in raw:
        name = _text(row.get("name")) if isinstance(row, Mapping) else _text(row)
        if name:
            names.append(name)
    return names


def _parse_trust_changes(raw: Any) -> List[TrustChange]:
    if not isinstance(raw, list):
        return []
    changes: List[TrustChange] = []
    for row in raw:
        if not isinstance(row, Mapping):
            continue
        name = _text(row.get("name"))
        if not name:
            continue
        changes.append(TrustChange(name=name, change=_bounded_int(row.get("change"))))
    return changes


def _parse_companion(raw: Any) -> Optional[NewCompanion]:
    if not isinstance(raw, Mapping):
        return None
    name = _text(raw.get("name"))
    if not name:
        return None
    return NewCompanion(
        name=name,
        personality=_text(raw.get("personality")),
        icon=_text(raw.get("icon")),
        description=_text(raw.get("description")),
        hp=_optional_int(raw.get("hp")),
        max_hp=_optional_int(_lookup(raw, "maxHp", "max_hp")),
    )


def _parse_journal(raw: Any) -> Optional[JournalDraft]:
    if not isinstance(raw, Mapping):
        return None
    title = _text(raw.get("title"))
    content = _text(raw.get("content"))
    if not title and not content:
        return None
    return JournalDraft(title=title or "Untitled", content=content)


def _parse_keyed_deltas(raw: Any, allowed: Tuple[str, ...]) -> Dict[str, int]:
    if not isinstance(raw, Mapping):
        return {}
    deltas: Dict[str, int] = {}
    for key, value in raw.items():
        normalized = normalize_key(key)
        if normalized not in allowed:
            continue
        delta = _bounded_int(value)
        if delta:
            deltas[normalized] = deltas.get(normalized, 0) + delta
    return deltas


def parse_change_set(raw: Any) -> Optional[ChangeSet]:
    """Validate an untrusted narrator change block.

    Accepts a mapping or JSON text. Returns ``None`` when the block cannot be
    read at all; individual malformed fields are dropped.
    """
    payload = _as_mapping(raw)
    if payload is None:
        return None

    scalars = {field_name: _optional_int(_lookup(payload, wire, field_name)) for wire, field_name in _SCALAR_FIELDS}

    zone_raw = _lookup(payload, "zoneChange", "zone_change")
    zone_change = normalize_zone_id(zone_raw) if zone_raw else None
    if zone_raw and zone_change is None:
        logger.info("Ignoring unknown zone in change block: %s", zone_raw)

    betrayer = normalize_key(_lookup(payload, "betrayerDefeated", "betrayer_defeated"))
    phase = StoryPhase.normalize(_lookup(payload, "storyPhaseChange", "story_phase_change"))

    return ChangeSet(
        zone_change=zone_change,
        new_items=_parse_items(_lookup(payload, "newItems", "new_items")),
        remove_items=_parse_names(_lookup(payload, "removeItems", "remove_items")),
        trust_changes=_parse_trust_changes(_lookup(payload, "trustChanges", "trust_changes")),
        new_companion=_parse_companion(_lookup(payload, "newCompanion", "new_companion")),
        journal_entry=_parse_journal(_lookup(payload, "journalEntry", "journal_entry")),
        skill_changes=_parse_keyed_deltas(_lookup(payload, "skillChanges", "skill_changes"), SKILL_KEYS),
        reputation_changes=_parse_keyed_deltas(
            _lookup(payload, "reputationChanges", "reputation_changes"), REPUTATION_KEYS
        ),
        betrayer_defeated=betrayer if betrayer in BETRAYERS else None,
        story_phase_change=phase,
        **scalars,
    )


def parse_narration(text: str, raw_changes: Any = None) -> Tuple[str, Optional[ChangeSet], bool]:
    """Returns ``(narrative, change_set, dropped)``; ``dropped`` is set when a block existed but was unreadable.

    Structured ``raw_changes`` from the provider take precedence over a fenced block in the text.
    """
    narrative, block = extract_change_block(text)
    raw = raw_changes if raw_changes is not None else block
    if raw is None:
        return narrative, None, False
    change_set = parse_change_set(raw)
    return narrative, change_set, change_set is None


def parse_origin(raw: Any) -> OriginBonus:
    payload = _as_mapping(raw)
    if payload is None:
        return OriginBonus()

    zone = normalize_zone_id(_lookup(payload, "startingZone", "starting_zone"))

    items: List[NewItem] = []
    for item in _parse_items(_lookup(payload, "bonusItems", "bonus_items"))[:ORIGIN_MAX_ITEMS]:
        items.append(
            NewItem(
                name=item.name[:40],
                description=(item.description or "")[:100],
                icon=item.icon or DEFAULT_ITEM_ICON,
                quantity=clamp(item.quantity, 1, ORIGIN_MAX_ITEM_QUANTITY),
                item_type=normalize_item_type(item.item_type),
            )
        )

    boosts: Dict[str, int] = {}
    raw_boosts = _lookup(payload, "skillBoosts", "skill_boosts")
    if isinstance(raw_boosts, Mapping):
        for key, value in raw_boosts.items():
            normalized = normalize_key(key)
            if normalized not in SKILL_KEYS and normalized not in REPUTATION_KEYS:
                continue
            boosts[normalized] = clamp(coerce_int(value), 0, ORIGIN_BOOST_MAX)

    return OriginBonus(starting_zone=zone, bonus_items=items, skill_boosts=boosts)
