from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


MESSAGE_ROLES: tuple[str, ...] = ("user", "assistant")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatMessage:
    role: str
    content: str
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None
    character_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {self.role}")


@dataclass
class JournalEntry:
    title: str
    content: str
    entry_number: int
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None
    character_id: Optional[int] = None
