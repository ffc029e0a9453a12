from __future__ import annotations

import copy
from collections.abc import Callable, Sequence

from tavern.domain.models.character import Character


# repository attributes holding in-memory state, restored together on failure
_STATE_ATTRIBUTES = ("_characters", "_items", "_companions", "_messages", "_entries", "_next_id")


def create_inmemory_atomic_persistor(character_repo, *repos) -> Callable[..., None]:
    tracked = (character_repo,) + tuple(repos)

    def _persist(
        character: Character | None,
        operations: Sequence[Callable[[object], None]] | None = None,
    ) -> None:
        snapshot = [
            {name: copy.deepcopy(getattr(repo, name)) for name in _STATE_ATTRIBUTES if hasattr(repo, name)}
            for repo in tracked
        ]
        try:
            if character is not None:
                character_repo.save(character)
            for operation in operations or ():
                operation(None)
        except Exception:
            for repo, state in zip(tracked, snapshot):
                for name, value in state.items():
                    setattr(repo, name, value)
            raise

    return _persist
