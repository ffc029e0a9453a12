import os
import socket
from urllib.parse import urlparse

from tavern.application.services.event_bus import EventBus
from tavern.application.services.event_log import register_event_log_handlers
from tavern.application.services.game_service import DEFAULT_HISTORY_WINDOW, GameService
from tavern.infrastructure.db.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from tavern.infrastructure.db.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryChatMessageRepository,
    InMemoryCompanionRepository,
    InMemoryInventoryRepository,
    InMemoryJournalRepository,
)
from tavern.infrastructure.narrator.chat_completion_client import ChatCompletionClient
from tavern.infrastructure.narrator.provider_chain import ProviderChainNarrator, configured_providers
from tavern.infrastructure.narrator.scripted_narrator import ScriptedNarrator


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _looks_like_local_mysql_unreachable(database_url: str) -> bool:
    parsed = urlparse(database_url)
    if not parsed.scheme.startswith("mysql"):
        return False
    host = (parsed.hostname or "").strip().lower()
    if host not in {"localhost", "127.0.0.1", "::1"}:
        return False
    timeout = _env_float("TAVERN_DB_CONNECT_PROBE_TIMEOUT_S", 0.35)
    try:
        with socket.create_connection((host, parsed.port or 3306), timeout=timeout):
            return False
    except OSError:
        return True


def build_narrator():
    mode = os.getenv("TAVERN_NARRATOR", "chain").strip().lower()
    providers = configured_providers(preferred=os.getenv("TAVERN_PREFERRED_PROVIDER"))
    if mode == "scripted" or not providers:
        return ScriptedNarrator()
    client = ChatCompletionClient(
        timeout=_env_float("TAVERN_NARRATOR_TIMEOUT_S", 30.0),
        retries=_env_int("TAVERN_NARRATOR_RETRIES", 1),
        backoff_seconds=_env_float("TAVERN_NARRATOR_BACKOFF_S", 0.5),
    )
    return ProviderChainNarrator(providers, client=client)


def _build_event_bus() -> EventBus:
    event_bus = EventBus()
    register_event_log_handlers(event_bus)
    return event_bus


def _build_inmemory_game_service(narrator=None) -> GameService:
    character_repo = InMemoryCharacterRepository()
    inventory_repo = InMemoryInventoryRepository()
    companion_repo = InMemoryCompanionRepository()
    message_repo = InMemoryChatMessageRepository()
    journal_repo = InMemoryJournalRepository()
    event_bus = _build_event_bus()
    return GameService(
        character_repo,
        inventory_repo,
        companion_repo,
        message_repo,
        journal_repo,
        narrator=narrator or build_narrator(),
        atomic_state_persistor=create_inmemory_atomic_persistor(
            character_repo, inventory_repo, companion_repo, message_repo, journal_repo
        ),
        event_publisher=event_bus.publish,
        history_window=_env_int("TAVERN_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
    )


def _build_sql_game_service(narrator=None) -> GameService:
    # imported lazily so the engine is only created when TAVERN_DATABASE_URL is set
    from tavern.infrastructure.db.sql.atomic_persistence import save_character_state_atomic
    from tavern.infrastructure.db.sql.connection import engine
    from tavern.infrastructure.db.sql.migrate import apply_schema
    from tavern.infrastructure.db.sql.repos import (
        SqlCharacterRepository,
        SqlChatMessageRepository,
        SqlCompanionRepository,
        SqlInventoryRepository,
        SqlJournalRepository,
    )

    try:
        apply_schema(engine)
    except Exception as exc:
        raise RuntimeError(f"Database bootstrap failed: {exc}") from exc

    event_bus = _build_event_bus()
    return GameService(
        SqlCharacterRepository(),
        SqlInventoryRepository(),
        SqlCompanionRepository(),
        SqlChatMessageRepository(),
        SqlJournalRepository(),
        narrator=narrator or build_narrator(),
        atomic_state_persistor=save_character_state_atomic,
        event_publisher=event_bus.publish,
        history_window=_env_int("TAVERN_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
    )


def create_game_service(narrator=None) -> GameService:
    database_url = os.getenv("TAVERN_DATABASE_URL")
    if database_url:
        if _looks_like_local_mysql_unreachable(database_url):
            print("Database appears unreachable, falling back to in-memory storage.")
            return _build_inmemory_game_service(narrator)
        try:
            return _build_sql_game_service(narrator)
        except Exception as exc:  # pragma: no cover - best-effort fallback
            print(f"Database unavailable, falling back to in-memory storage. Reason: {exc}")

    return _build_inmemory_game_service(narrator)
