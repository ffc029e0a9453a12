from __future__ import annotations

import json
from collections import deque
from typing import Iterable, Optional

from tavern.application.dtos import Narration, NarratorSnapshot


PAID_ACTION_STAMINA_COST = 10
SPELL_MANA_COST = 10
PAID_ACTION_XP = 15

_FREE_LINES = (
    "You take a moment in {zone}. The air is thick with smoke and old stories.",
    "Nothing stirs in {zone} that you have not already noticed. You gather your thoughts.",
    "Voices murmur around you in {zone}; no one seems eager to start trouble.",
)
_PAID_LINES = (
    "You commit to it. In {zone} every step costs something, and this one costs sweat.",
    "Steel, breath and nerve: you push forward through {zone} and come out the other side.",
    "It is not graceful, but it works. {zone} yields a little of its secrets.",
)


class ScriptedNarrator:
    """Offline narrator for local play and tests.

    Replays queued replies first; afterwards produces deterministic canned
    narration with a small change block for paid actions.
    """

    def __init__(self, replies: Iterable[str] = ()) -> None:
        self._replies = deque(replies)
        self.calls: list[tuple[str, NarratorSnapshot, Optional[int]]] = []

    def queue(self, reply: str) -> None:
        self._replies.append(reply)

    def provider_names(self) -> list[str]:
        return ["scripted"]

    def narrate(self, action_text: str, snapshot: NarratorSnapshot, dice_roll: Optional[int] = None) -> Narration:
        self.calls.append((action_text, snapshot, dice_roll))
        if self._replies:
            return Narration(narrative_text=self._replies.popleft(), provider="scripted")

        index = len(self.calls) % len(_FREE_LINES)
        if snapshot.is_free_action:
            text = _FREE_LINES[index].format(zone=snapshot.zone_name)
            return Narration(narrative_text=text, provider="scripted")

        changes = {"staminaChange": -PAID_ACTION_STAMINA_COST, "xpGain": PAID_ACTION_XP}
        if snapshot.is_spell_action:
            changes["manaChange"] = -SPELL_MANA_COST
        if dice_roll is not None and dice_roll <= 1:
            changes["hpChange"] = -10
        text = _PAID_LINES[index].format(zone=snapshot.zone_name)
        return Narration(narrative_text=f"{text}\n\n```json\n{json.dumps(changes)}\n```", provider="scripted")
