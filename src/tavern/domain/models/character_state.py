from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from tavern.domain.models.character import Character
from tavern.domain.models.companion import CompanionRoster
from tavern.domain.models.inventory import InventoryLedger
from tavern.domain.models.journal import JournalEntry


@dataclass
class CharacterState:
    """One consistent read of a character and everything it owns."""

    character: Character
    inventory: InventoryLedger = field(default_factory=InventoryLedger)
    companions: CompanionRoster = field(default_factory=CompanionRoster)
    journal_count: int = 0
    pending_journal: List[JournalEntry] = field(default_factory=list)

    def append_journal(self, title: str, content: str) -> JournalEntry:
        entry = JournalEntry(
            title=title,
            content=content,
            entry_number=self.journal_count + len(self.pending_journal) + 1,
            character_id=self.character.id,
        )
        self.pending_journal.append(entry)
        return entry
