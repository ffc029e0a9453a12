from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import text

from tavern.domain.models.character import Character
from tavern.domain.models.companion import Companion, companion_key
from tavern.domain.models.inventory import InventoryItem, item_key
from tavern.domain.models.journal import ChatMessage, JournalEntry
from tavern.domain.repositories import (
    CharacterRepository,
    ChatMessageRepository,
    CompanionRepository,
    InventoryRepository,
    JournalRepository,
    Operation,
)
from .connection import SessionLocal


_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def _dialect(session) -> str:
    return session.bind.dialect.name if session.bind is not None else "mysql"


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(_TIMESTAMP_FORMAT)


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except (TypeError, ValueError):
            return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _json_load(raw, default):
    if raw is None or raw == "":
        return default
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def _row_to_character(row) -> Character:
    return Character(
        id=int(row.character_id),
        name=row.name,
        user_id=row.user_id,
        class_id=row.class_id or "",
        backstory=row.backstory or "",
        hp=row.hp,
        max_hp=row.max_hp,
        stamina=row.stamina,
        max_stamina=row.max_stamina,
        mana=row.mana,
        max_mana=row.max_mana,
        gold=row.gold,
        xp=row.xp,
        level=row.level,
        stat_points=row.stat_points,
        offense=row.offense,
        defense=row.defense,
        magic=row.magic,
        current_zone=row.current_zone,
        story_phase=row.story_phase,
        skills=_json_load(row.skills_json, {}),
        reputation=_json_load(row.reputation_json, {}),
        betrayers_defeated=set(_json_load(row.betrayers_json, [])),
    )


def _character_params(character: Character) -> dict:
    return {
        "cid": character.id,
        "user_id": character.user_id,
        "name": character.name,
        "class_id": character.class_id,
        "backstory": character.backstory,
        "hp": character.hp,
        "max_hp": character.max_hp,
        "stamina": character.stamina,
        "max_stamina": character.max_stamina,
        "mana": character.mana,
        "max_mana": character.max_mana,
        "gold": character.gold,
        "xp": character.xp,
        "level": character.level,
        "stat_points": character.stat_points,
        "offense": character.offense,
        "defense": character.defense,
        "magic": character.magic,
        "current_zone": character.current_zone,
        "story_phase": character.story_phase,
        "skills_json": json.dumps(character.skills, sort_keys=True),
        "reputation_json": json.dumps(character.reputation, sort_keys=True),
        "betrayers_json": json.dumps(sorted(character.betrayers_defeated)),
    }


_CHARACTER_COLUMNS = (
    "user_id, name, class_id, backstory, hp, max_hp, stamina, max_stamina, mana, max_mana, gold, xp, level, "
    "stat_points, offense, defense, magic, current_zone, story_phase, skills_json, reputation_json, betrayers_json"
)
_CHARACTER_VALUES = (
    ":user_id, :name, :class_id, :backstory, :hp, :max_hp, :stamina, :max_stamina, :mana, :max_mana, :gold, :xp, "
    ":level, :stat_points, :offense, :defense, :magic, :current_zone, :story_phase, :skills_json, :reputation_json, "
    ":betrayers_json"
)


def update_character_row(session, character: Character) -> None:
    result = session.execute(
        text(
            """
            UPDATE player_character SET
                name = :name,
                class_id = :class_id,
                backstory = :backstory,
                hp = :hp,
                max_hp = :max_hp,
                stamina = :stamina,
                max_stamina = :max_stamina,
                mana = :mana,
                max_mana = :max_mana,
                gold = :gold,
                xp = :xp,
                level = :level,
                stat_points = :stat_points,
                offense = :offense,
                defense = :defense,
                magic = :magic,
                current_zone = :current_zone,
                story_phase = :story_phase,
                skills_json = :skills_json,
                reputation_json = :reputation_json,
                betrayers_json = :betrayers_json
            WHERE character_id = :cid
            """
        ),
        _character_params(character),
    )
    if result.rowcount == 0:
        raise ValueError(f"Character {character.id} does not exist")


class SqlCharacterRepository(CharacterRepository):
    def get(self, character_id: int) -> Optional[Character]:
        with SessionLocal() as session:
            row = session.execute(
                text("SELECT * FROM player_character WHERE character_id = :cid"),
                {"cid": character_id},
            ).first()
        return _row_to_character(row) if row else None

    def get_for_user(self, user_id: str) -> Optional[Character]:
        with SessionLocal() as session:
            row = session.execute(
                text("SELECT * FROM player_character WHERE user_id = :user_id"),
                {"user_id": str(user_id)},
            ).first()
        return _row_to_character(row) if row else None

    def create(self, character: Character) -> Character:
        with SessionLocal.begin() as session:
            result = session.execute(
                text(f"INSERT INTO player_character ({_CHARACTER_COLUMNS}) VALUES ({_CHARACTER_VALUES})"),
                _character_params(character),
            )
            new_id = int(result.lastrowid)
        created = self.get(new_id)
        if created is None:
            raise RuntimeError("Character insert did not persist")
        return created

    def save(self, character: Character) -> None:
        with SessionLocal.begin() as session:
            update_character_row(session, character)

    def delete(self, character_id: int) -> None:
        with SessionLocal.begin() as session:
            self._delete(session, character_id)

    @staticmethod
    def _delete(session, character_id: int) -> None:
        session.execute(text("DELETE FROM player_character WHERE character_id = :cid"), {"cid": character_id})

    def build_delete_operation(self, character_id: int) -> Operation:
        def _operation(session) -> None:
            self._delete(session, character_id)

        return _operation


class SqlInventoryRepository(InventoryRepository):
    def list_for_character(self, character_id: int) -> List[InventoryItem]:
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT item_id, character_id, name, description, icon, quantity, item_type
                    FROM inventory_item
                    WHERE character_id = :cid
                    ORDER BY item_id
                    """
                ),
                {"cid": character_id},
            ).all()
        return [
            InventoryItem(
                name=row.name,
                description=row.description,
                icon=row.icon,
                quantity=int(row.quantity),
                item_type=row.item_type,
                id=int(row.item_id),
                character_id=int(row.character_id),
            )
            for row in rows
        ]

    @staticmethod
    def _upsert(session, character_id: int, item: InventoryItem) -> None:
        if _dialect(session) == "mysql":
            statement = text(
                """
                INSERT INTO inventory_item (character_id, name, name_key, description, icon, quantity, item_type)
                VALUES (:cid, :name, :name_key, :description, :icon, :quantity, :item_type)
                ON DUPLICATE KEY UPDATE
                    description = VALUES(description),
                    icon = VALUES(icon),
                    quantity = VALUES(quantity),
                    item_type = VALUES(item_type)
                """
            )
        else:
            statement = text(
                """
                INSERT INTO inventory_item (character_id, name, name_key, description, icon, quantity, item_type)
                VALUES (:cid, :name, :name_key, :description, :icon, :quantity, :item_type)
                ON CONFLICT(character_id, name_key) DO UPDATE SET
                    description = excluded.description,
                    icon = excluded.icon,
                    quantity = excluded.quantity,
                    item_type = excluded.item_type
                """
            )
        session.execute(
            statement,
            {
                "cid": character_id,
                "name": item.name,
                "name_key": item_key(item.name),
                "description": item.description,
                "icon": item.icon,
                "quantity": int(item.quantity),
                "item_type": item.item_type,
            },
        )

    @staticmethod
    def _delete_by_name(session, character_id: int, name: str) -> None:
        session.execute(
            text("DELETE FROM inventory_item WHERE character_id = :cid AND name_key = :name_key"),
            {"cid": character_id, "name_key": item_key(name)},
        )

    @staticmethod
    def _delete_for_character(session, character_id: int) -> None:
        session.execute(text("DELETE FROM inventory_item WHERE character_id = :cid"), {"cid": character_id})

    def upsert(self, character_id: int, item: InventoryItem) -> None:
        with SessionLocal.begin() as session:
            self._upsert(session, character_id, item)

    def delete_by_name(self, character_id: int, name: str) -> None:
        with SessionLocal.begin() as session:
            self._delete_by_name(session, character_id, name)

    def delete_for_character(self, character_id: int) -> None:
        with SessionLocal.begin() as session:
            self._delete_for_character(session, character_id)

    def build_upsert_operation(self, character_id: int, item: InventoryItem) -> Operation:
        def _operation(session) -> None:
            self._upsert(session, character_id, item)

        return _operation

    def build_delete_operation(self, character_id: int, name: str) -> Operation:
        def _operation(session) -> None:
            self._delete_by_name(session, character_id, name)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(session) -> None:
            self._delete_for_character(session, character_id)

        return _operation


class SqlCompanionRepository(CompanionRepository):
    def list_for_character(self, character_id: int) -> List[Companion]:
        with SessionLocal() as session:
            rows = session.execute(
                text("SELECT * FROM companion WHERE character_id = :cid ORDER BY companion_id"),
                {"cid": character_id},
            ).all()
        return [
            Companion(
                name=row.name,
                personality=row.personality,
                icon=row.icon,
                description=row.description,
                hp=int(row.hp),
                max_hp=int(row.max_hp),
                stamina=int(row.stamina),
                max_stamina=int(row.max_stamina),
                mana=int(row.mana),
                max_mana=int(row.max_mana),
                trust=int(row.trust),
                is_active=bool(row.is_active),
                offense=int(row.offense),
                defense=int(row.defense),
                magic=int(row.magic),
                id=int(row.companion_id),
                character_id=int(row.character_id),
            )
            for row in rows
        ]

    @staticmethod
    def _upsert(session, character_id: int, companion: Companion) -> None:
        columns = (
            "character_id, name, name_key, personality, icon, description, hp, max_hp, stamina, max_stamina, "
            "mana, max_mana, trust, is_active, offense, defense, magic"
        )
        values = (
            ":cid, :name, :name_key, :personality, :icon, :description, :hp, :max_hp, :stamina, :max_stamina, "
            ":mana, :max_mana, :trust, :is_active, :offense, :defense, :magic"
        )
        updated = ("hp", "max_hp", "stamina", "max_stamina", "mana", "max_mana", "trust", "is_active")
        if _dialect(session) == "mysql":
            assignments = ", ".join(f"{column} = VALUES({column})" for column in updated)
            statement = text(
                f"INSERT INTO companion ({columns}) VALUES ({values}) ON DUPLICATE KEY UPDATE {assignments}"
            )
        else:
            assignments = ", ".join(f"{column} = excluded.{column}" for column in updated)
            statement = text(
                f"INSERT INTO companion ({columns}) VALUES ({values}) "
                f"ON CONFLICT(character_id, name_key) DO UPDATE SET {assignments}"
            )
        session.execute(
            statement,
            {
                "cid": character_id,
                "name": companion.name,
                "name_key": companion_key(companion.name),
                "personality": companion.personality,
                "icon": companion.icon,
                "description": companion.description,
                "hp": companion.hp,
                "max_hp": companion.max_hp,
                "stamina": companion.stamina,
                "max_stamina": companion.max_stamina,
                "mana": companion.mana,
                "max_mana": companion.max_mana,
                "trust": companion.trust,
                "is_active": int(bool(companion.is_active)),
                "offense": companion.offense,
                "defense": companion.defense,
                "magic": companion.magic,
            },
        )

    @staticmethod
    def _delete_for_character(session, character_id: int) -> None:
        session.execute(text("DELETE FROM companion WHERE character_id = :cid"), {"cid": character_id})

    def upsert(self, character_id: int, companion: Companion) -> None:
        with SessionLocal.begin() as session:
            self._upsert(session, character_id, companion)

    def delete_for_character(self, character_id: int) -> None:
        with SessionLocal.begin() as session:
            self._delete_for_character(session, character_id)

    def build_upsert_operation(self, character_id: int, companion: Companion) -> Operation:
        def _operation(session) -> None:
            self._upsert(session, character_id, companion)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(session) -> None:
            self._delete_for_character(session, character_id)

        return _operation


class SqlChatMessageRepository(ChatMessageRepository):
    def list_recent(self, character_id: int, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT message_id, character_id, role, content, created_at
                    FROM chat_message
                    WHERE character_id = :cid
                    ORDER BY message_id DESC
                    LIMIT :limit
                    """
                ),
                {"cid": character_id, "limit": int(limit)},
            ).all()
        return [
            ChatMessage(
                role=row.role,
                content=row.content,
                created_at=_parse_timestamp(row.created_at),
                id=int(row.message_id),
                character_id=int(row.character_id),
            )
            for row in reversed(rows)
        ]

    @staticmethod
    def _append(session, character_id: int, message: ChatMessage) -> None:
        session.execute(
            text(
                """
                INSERT INTO chat_message (character_id, role, content, created_at)
                VALUES (:cid, :role, :content, :created_at)
                """
            ),
            {
                "cid": character_id,
                "role": message.role,
                "content": message.content,
                "created_at": _format_timestamp(message.created_at),
            },
        )

    @staticmethod
    def _delete_for_character(session, character_id: int) -> None:
        session.execute(text("DELETE FROM chat_message WHERE character_id = :cid"), {"cid": character_id})

    def append(self, character_id: int, message: ChatMessage) -> None:
        with SessionLocal.begin() as session:
            self._append(session, character_id, message)

    def delete_for_character(self, character_id: int) -> None:
        with SessionLocal.begin() as session:
            self._delete_for_character(session, character_id)

    def build_append_operation(self, character_id: int, message: ChatMessage) -> Operation:
        def _operation(session) -> None:
            self._append(session, character_id, message)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(session) -> None:
            self._delete_for_character(session, character_id)

        return _operation


class SqlJournalRepository(JournalRepository):
    def list_for_character(self, character_id: int) -> List[JournalEntry]:
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT entry_id, character_id, entry_number, title, content, created_at
                    FROM journal_entry
                    WHERE character_id = :cid
                    ORDER BY entry_number
                    """
                ),
                {"cid": character_id},
            ).all()
        return [
            JournalEntry(
                title=row.title,
                content=row.content,
                entry_number=int(row.entry_number),
                created_at=_parse_timestamp(row.created_at),
                id=int(row.entry_id),
                character_id=int(row.character_id),
            )
            for row in rows
        ]

    def count_for_character(self, character_id: int) -> int:
        with SessionLocal() as session:
            count = session.execute(
                text("SELECT COUNT(*) FROM journal_entry WHERE character_id = :cid"),
                {"cid": character_id},
            ).scalar()
        return int(count or 0)

    @staticmethod
    def _append(session, character_id: int, entry: JournalEntry) -> None:
        session.execute(
            text(
                """
                INSERT INTO journal_entry (character_id, entry_number, title, content, created_at)
                VALUES (:cid, :entry_number, :title, :content, :created_at)
                """
            ),
            {
                "cid": character_id,
                "entry_number": int(entry.entry_number),
                "title": entry.title,
                "content": entry.content,
                "created_at": _format_timestamp(entry.created_at),
            },
        )

    @staticmethod
    def _delete_for_character(session, character_id: int) -> None:
        session.execute(text("DELETE FROM journal_entry WHERE character_id = :cid"), {"cid": character_id})

    def append(self, character_id: int, entry: JournalEntry) -> None:
        with SessionLocal.begin() as session:
            self._append(session, character_id, entry)

    def delete_for_character(self, character_id: int) -> None:
        with SessionLocal.begin() as session:
            self._delete_for_character(session, character_id)

    def build_append_operation(self, character_id: int, entry: JournalEntry) -> Operation:
        def _operation(session) -> None:
            self._append(session, character_id, entry)

        return _operation

    def build_delete_for_character_operation(self, character_id: int) -> Operation:
        def _operation(session) -> None:
            self._delete_for_character(session, character_id)

        return _operation
