from __future__ import annotations

from typing import List, Optional, Protocol

from tavern.application.dtos import Narration, NarratorSnapshot


class Narrator(Protocol):
    """Turns a player action into narrative text plus an untrusted change block.

    Implementations raise ``NarratorUnavailableError`` when no narration can
    be produced.
    """

    def narrate(self, action_text: str, snapshot: NarratorSnapshot, dice_roll: Optional[int] = None) -> Narration:
        ...

    def provider_names(self) -> List[str]:
        """Names of the backends this narrator will try, in order."""
        ...
