from __future__ import annotations

from typing import Dict, List, Optional

from tavern.application.dtos import NarratorSnapshot


CHANGE_BLOCK_TEMPLATE = """```json
{
  "hpChange": 0,
  "goldChange": 0,
  "staminaChange": 0,
  "manaChange": 0,
  "xpGain": 0,
  "zoneChange": null,
  "newItems": [],
  "removeItems": [],
  "trustChanges": [{"name": "Companion Name", "change": 5}],
  "newCompanion": null,
  "journalEntry": null,
  "skillChanges": {},
  "reputationChanges": {},
  "betrayerDefeated": null,
  "storyPhaseChange": null
}
```"""


def _dice_line(dice_roll: Optional[int]) -> str:
    if not dice_roll:
        return ""
    return (
        f"\nDICE ROLL RESULT: {dice_roll} "
        "(1: critical failure, 2-9: failure, 10-14: partial success, 15-19: success, 20: critical success)\n"
    )


def build_system_prompt(snapshot: NarratorSnapshot, dice_roll: Optional[int] = None) -> str:
    inventory = "\n".join(f"- {line}" for line in snapshot.inventory) or "- nothing"
    companions = "\n".join(f"- {line}" for line in snapshot.companions) or "- none"
    statuses = ", ".join(snapshot.status_labels) or "none"
    skills = ", ".join(f"{key} {value}" for key, value in sorted(snapshot.skills.items())) or "untrained"
    reputation = ", ".join(f"{key} {value:+d}" for key, value in sorted(snapshot.reputation.items())) or "unknown"
    if snapshot.is_free_action:
        action_type = "FREE ACTION: no stamina cost and no dangerous encounters. Describe the scene or conversation."
    else:
        action_type = "PAID ACTION: costs stamina and may trigger combat, travel or other consequences."
    if snapshot.is_spell_action:
        action_type += " The player is casting a spell; charge mana for it."

    return f"""You are the Game Master of a dark fantasy role-playing game. Respond in second person, 2-4 paragraphs.

CURRENT STATE:
- Character: {snapshot.name} ({snapshot.class_name}), level {snapshot.level}
- Location: {snapshot.zone_name}
- Story phase: {snapshot.story_phase}
- HP {snapshot.hp}/{snapshot.max_hp}, Stamina {snapshot.stamina}/{snapshot.max_stamina}, Mana {snapshot.mana}/{snapshot.max_mana}
- Gold {snapshot.gold}, XP {snapshot.xp}
- Momentum: {snapshot.momentum or "steady"}; status effects: {statuses}
- Skills: {skills}
- Reputation: {reputation}
- Betrayers defeated: {", ".join(snapshot.betrayers_defeated) or "none"}

Inventory:
{inventory}

Active companions:
{companions}

ACTION TYPE: {action_type}
{_dice_line(dice_roll)}
If the game state changes, end your reply with a JSON block in exactly this shape, omitting fields that do not change:
{CHANGE_BLOCK_TEMPLATE}"""


def build_messages(snapshot: NarratorSnapshot, action_text: str, dice_roll: Optional[int] = None) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = [{"role": "system", "content": build_system_prompt(snapshot, dice_roll)}]
    for message in snapshot.recent_messages:
        role = message.get("role")
        if role in ("user", "assistant"):
            messages.append({"role": role, "content": str(message.get("content", ""))})
    messages.append({"role": "user", "content": action_text})
    return messages
