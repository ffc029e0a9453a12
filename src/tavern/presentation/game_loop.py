from __future__ import annotations

import random
from typing import Dict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tavern.application.dtos import ActionResult, CharacterSheetView
from tavern.application.errors import ActionProcessingError
from tavern.application.services.game_service import GameService
from tavern.domain.models.character_class import CLASS_CATALOG


_BORDER_NARRATIVE = "yellow"
_BORDER_SHEET = "green"
_BORDER_SYSTEM = "magenta"
_BORDER_ERROR = "red"

HELP_TEXT = (
    "Type what you do and press ENTER.\n"
    "/rest  rest in the current zone\n"
    "/sheet  show your character sheet\n"
    "/allocate skill=n [skill=n ...]  spend stat points\n"
    "/roll  roll a d20 for your next action\n"
    "/status  show which narrator is telling the story\n"
    "/new  abandon this story and start over\n"
    "/quit  leave the tavern"
)


def _ornate_title(title: str) -> str:
    return f"[bold yellow]{title}[/bold yellow]"


def parse_allocation(argument: str) -> Dict[str, int]:
    """``"stealth=2 honor=1"`` -> ``{"stealth": 2, "honor": 1}``."""
    allocations: Dict[str, int] = {}
    for token in str(argument or "").replace(",", " ").split():
        key, sep, value = token.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected skill=n, got {token!r}")
        try:
            amount = int(value)
        except ValueError as exc:
            raise ValueError(f"Expected a whole number for {key}") from exc
        allocations[key.strip().lower()] = allocations.get(key.strip().lower(), 0) + amount
    if not allocations:
        raise ValueError("Usage: /allocate skill=n [skill=n ...]")
    return allocations


def _render_result(console: Console, result: ActionResult) -> None:
    if result.narrative:
        console.print(Panel(result.narrative, border_style=_BORDER_NARRATIVE, title=_ornate_title("The Tale")))
    if result.messages:
        border = _BORDER_ERROR if result.refused else _BORDER_SYSTEM
        console.print(Panel("\n".join(result.messages), border_style=border, title=_ornate_title("Events")))
    if result.status_labels:
        console.print(f"[dim]Status: {', '.join(result.status_labels)}[/dim]")


def _render_sheet(console: Console, sheet: CharacterSheetView) -> None:
    header = Table.grid(padding=(0, 2))
    header.add_row(f"[bold]{sheet.name}[/bold]", sheet.class_name, f"Level {sheet.level}", sheet.story_phase)
    header.add_row(
        f"HP {sheet.hp}/{sheet.max_hp}",
        f"Stamina {sheet.stamina}/{sheet.max_stamina}",
        f"Mana {sheet.mana}/{sheet.max_mana}",
        f"Gold {sheet.gold}",
    )
    header.add_row(
        f"XP {sheet.xp}/{sheet.next_level_xp}",
        f"Stat points {sheet.stat_points}",
        f"Zone {sheet.zone_name}",
        f"Momentum {sheet.momentum or '-'}",
    )
    console.print(Panel(header, border_style=_BORDER_SHEET, title=_ornate_title("Character")))

    if sheet.status_effects:
        console.print(f"[bold]Status:[/bold] {', '.join(sheet.status_effects)}")

    skills = Table(show_header=True, header_style="bold yellow")
    skills.add_column("Skill")
    skills.add_column("Rank", justify="right")
    for key, value in sheet.skills.items():
        if value > 0:
            skills.add_row(key.replace("_", " ").title(), str(value))
    console.print(skills)

    inventory = Table(show_header=True, header_style="bold yellow")
    inventory.add_column("Item")
    inventory.add_column("Qty", justify="right")
    inventory.add_column("Type")
    for item in sheet.inventory:
        inventory.add_row(f"{item.icon} {item.name}", str(item.quantity), item.item_type)
    console.print(inventory)

    if sheet.companions:
        party = Table(show_header=True, header_style="bold yellow")
        party.add_column("Companion")
        party.add_column("HP", justify="right")
        party.add_column("Trust")
        party.add_column("Active")
        for companion in sheet.companions:
            party.add_row(
                f"{companion.icon} {companion.name}",
                f"{companion.hp}/{companion.max_hp}",
                f"{companion.trust} ({companion.trust_label})",
                "yes" if companion.is_active else "no",
            )
        console.print(party)

    for entry in sheet.journal[-3:]:
        console.print(f"[dim]#{entry.entry_number} {entry.title}[/dim]")


def _choose_class(console: Console) -> str:
    table = Table(show_header=True, header_style="bold yellow")
    table.add_column("#", justify="right")
    table.add_column("Class")
    table.add_column("O/D/M")
    table.add_column("Tier")
    for index, character_class in enumerate(CLASS_CATALOG, start=1):
        table.add_row(
            str(index),
            f"{character_class.icon} {character_class.name}",
            f"{character_class.offense}/{character_class.defense}/{character_class.magic}",
            character_class.tier,
        )
    console.print(table)
    while True:
        raw = console.input("Choose a class number: ").strip()
        if raw.isdigit() and 1 <= int(raw) <= len(CLASS_CATALOG):
            return CLASS_CATALOG[int(raw) - 1].id
        console.print("[red]Pick a number from the list.[/red]")


def run_character_creation(game_service: GameService, console: Console, user_id: str) -> int:
    console.print(Panel.fit("A new story begins.", border_style=_BORDER_SYSTEM, title=_ornate_title("Tavern Chronicle")))
    name = console.input("Name your character: ")
    class_id = _choose_class(console)
    backstory = console.input("A line of backstory (optional): ")
    character = game_service.create_character(user_id, name, class_id, backstory)
    return int(character.id or 0)


def run_game_loop(game_service: GameService, user_id: str = "local-player", console: Console | None = None) -> None:
    console = console or Console()
    existing = game_service.get_character_for_user(user_id)
    character_id = int(existing.id or 0) if existing else run_character_creation(game_service, console, user_id)
    console.print(Panel(HELP_TEXT, border_style=_BORDER_SYSTEM, title=_ornate_title("How to play")))

    dice_roll: int | None = None
    while True:
        raw = console.input("[bold yellow]>[/bold yellow] ").strip()
        if not raw:
            continue
        command, _, argument = raw.partition(" ")
        try:
            if command == "/quit":
                console.print("The fire burns low. Farewell.")
                return
            if command == "/help":
                console.print(Panel(HELP_TEXT, border_style=_BORDER_SYSTEM))
            elif command == "/sheet":
                _render_sheet(console, game_service.get_character_sheet(character_id))
            elif command == "/rest":
                _render_result(console, game_service.rest(character_id))
            elif command == "/roll":
                dice_roll = random.randint(1, 20)
                console.print(f"You rolled a [bold]{dice_roll}[/bold].")
            elif command == "/status":
                providers = game_service.narrator_status()
                console.print("Narrator: " + (" -> ".join(providers) if providers else "none configured"))
            elif command == "/allocate":
                applied = game_service.allocate_stat_points(character_id, parse_allocation(argument))
                console.print(", ".join(f"{key} +{value}" for key, value in applied.items()))
            elif command == "/new":
                game_service.start_new_story(user_id)
                character_id = run_character_creation(game_service, console, user_id)
            else:
                result = game_service.submit_action(character_id, raw, dice_roll=dice_roll)
                dice_roll = None
                _render_result(console, result)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
        except ActionProcessingError as exc:
            console.print(Panel(str(exc), border_style=_BORDER_ERROR, title=_ornate_title("The tale falters")))
