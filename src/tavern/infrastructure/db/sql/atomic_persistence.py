from __future__ import annotations

from collections.abc import Callable, Sequence

from tavern.domain.models.character import Character
from tavern.infrastructure.db.sql.repos import update_character_row
from .connection import SessionLocal


def save_character_state_atomic(
    character: Character | None,
    operations: Sequence[Callable[[object], None]] | None = None,
) -> None:
    """Persist the character row and every dependent write in one DB transaction."""
    with SessionLocal.begin() as session:
        if character is not None:
            update_character_row(session, character)
        for operation in operations or ():
            operation(session)
