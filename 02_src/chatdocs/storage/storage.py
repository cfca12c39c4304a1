"""SQLite storage implementation."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    Chat,
    Document,
    FileType,
    MediaType,
    Message,
    Organization,
    Reaction,
)


class IStorage(Protocol):
    """Persistent storage for chats, messages, documents and organizations.

    Natural keys (provider chat id, provider message id, a document's source
    message) are UNIQUE in the schema. The ``create_*`` operations insert
    once and report whether this call created the row; a lost race is not
    an error.
    """

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Chats
    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by provider chat id."""
        ...

    async def get_chat_by_id(self, id: str) -> Chat | None:
        """Get a chat by internal id."""
        ...

    async def create_chat(self, chat: Chat) -> tuple[Chat, bool]:
        """Insert a chat unless its provider id exists. Returns (stored chat, created)."""
        ...

    async def save_chat(self, chat: Chat) -> Chat:
        """Insert or update a chat keyed by provider chat id."""
        ...

    async def set_last_message(self, chat_id: str, message_id: str) -> None:
        """Point a chat (internal id) at its most recent message (internal id)."""
        ...

    async def get_chats_by_chat_ids(self, chat_ids: list[str]) -> dict[str, Chat]:
        """Get stored chats for provider ids, keyed by provider id."""
        ...

    async def get_chats_by_organization(self, organization_id: str) -> list[Chat]:
        """Get chats assigned to an organization."""
        ...

    async def clear_organization(self, organization_id: str) -> int:
        """Remove an organization reference from all its chats."""
        ...

    async def get_last_chat_update(self) -> datetime | None:
        """Most recent chat update time."""
        ...

    # Messages
    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by provider message id."""
        ...

    async def get_message_by_id(self, id: str) -> Message | None:
        """Get a message by internal id."""
        ...

    async def create_message(self, message: Message) -> bool:
        """Insert a message unless its provider id exists. Returns True if created."""
        ...

    async def save_reactions(self, id: str, reactions: list[Reaction]) -> None:
        """Replace a message's reactions."""
        ...

    # Documents
    async def get_document(self, id: str) -> Document | None:
        """Get a document by internal id."""
        ...

    async def get_document_for_message(self, message_id: str) -> Document | None:
        """Get the document derived from a message (internal id)."""
        ...

    async def create_document(self, document: Document) -> bool:
        """Insert a document unless one exists for its message. Returns True if created."""
        ...

    async def list_documents(self) -> list[Document]:
        """Get all documents, newest first."""
        ...

    async def list_documents_by_chat(self, chat_id: str) -> list[Document]:
        """Get documents of a chat (internal id), newest first."""
        ...

    async def count_documents(self) -> int:
        """Count documents."""
        ...

    # Organizations
    async def create_organization(self, organization: Organization) -> None:
        """Save a new organization."""
        ...

    async def get_organization(self, id: str) -> Organization | None:
        """Get an organization by id."""
        ...

    async def list_organizations(self) -> list[Organization]:
        """Get all organizations."""
        ...

    async def update_organization(self, organization: Organization) -> None:
        """Update name and description."""
        ...

    async def delete_organization(self, id: str) -> None:
        """Delete an organization row."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_db(ts: datetime | None) -> str:
    ts = ts or _now()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def _from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _row_to_chat(row: aiosqlite.Row) -> Chat:
    return Chat(
        id=row["id"],
        chat_id=row["chat_id"],
        name=row["name"],
        is_group=bool(row["is_group"]),
        participants=json.loads(row["participants"]),
        profile_picture=row["profile_picture"],
        organization_id=row["organization_id"],
        last_message_id=row["last_message_id"],
        created_at=_from_db(row["created_at"]),
        updated_at=_from_db(row["updated_at"]),
    )


def _row_to_message(row: aiosqlite.Row) -> Message:
    return Message(
        id=row["id"],
        message_id=row["message_id"],
        chat_id=row["chat_id"],
        sender=row["sender"],
        content=row["content"],
        media_type=MediaType.parse(row["media_type"]),
        media_url=row["media_url"],
        quoted_message_id=row["quoted_message_id"],
        mentions=json.loads(row["mentions"]),
        reactions=[Reaction(**r) for r in json.loads(row["reactions"])],
        timestamp=_from_db(row["timestamp"]),
    )


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        message_id=row["message_id"],
        chat_id=row["chat_id"],
        file_url=row["file_url"],
        file_type=FileType(row["file_type"]),
        file_name=row["file_name"],
        transcription=json.loads(row["transcription"]),
        raw_text=row["raw_text"],
        processed_at=_from_db(row["processed_at"]),
    )


def _row_to_organization(row: aiosqlite.Row) -> Organization:
    return Organization(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created_at=_from_db(row["created_at"]),
    )


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def _db(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Chats
    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by provider chat id."""
        cursor = await self._db.execute(
            "SELECT * FROM chats WHERE chat_id = ?", (chat_id,)
        )
        row = await cursor.fetchone()
        return _row_to_chat(row) if row else None

    async def get_chat_by_id(self, id: str) -> Chat | None:
        """Get a chat by internal id."""
        cursor = await self._db.execute("SELECT * FROM chats WHERE id = ?", (id,))
        row = await cursor.fetchone()
        return _row_to_chat(row) if row else None

    async def create_chat(self, chat: Chat) -> tuple[Chat, bool]:
        """Insert a chat unless its provider id exists. Returns (stored chat, created)."""
        now = _now()
        chat.created_at = chat.created_at or now
        chat.updated_at = now
        cursor = await self._db.execute(
            """
            INSERT OR IGNORE INTO chats
            (id, chat_id, name, is_group, participants, profile_picture,
             organization_id, last_message_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                chat.id,
                chat.chat_id,
                chat.name,
                int(chat.is_group),
                json.dumps(chat.participants),
                chat.profile_picture,
                chat.organization_id,
                chat.last_message_id,
                _to_db(chat.created_at),
                _to_db(chat.updated_at),
            ),
        )
        await self._db.commit()

        if cursor.rowcount == 1:
            return chat, True

        existing = await self.get_chat(chat.chat_id)
        if existing is None:
            raise RuntimeError(f"Chat {chat.chat_id} neither inserted nor found")
        return existing, False

    async def save_chat(self, chat: Chat) -> Chat:
        """Insert or update a chat keyed by provider chat id."""
        now = _now()
        chat.created_at = chat.created_at or now
        chat.updated_at = now
        await self._db.execute(
            """
            INSERT INTO chats
            (id, chat_id, name, is_group, participants, profile_picture,
             organization_id, last_message_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(chat_id) DO UPDATE SET
                name = excluded.name,
                is_group = excluded.is_group,
                participants = excluded.participants,
                profile_picture = excluded.profile_picture,
                organization_id = excluded.organization_id,
                last_message_id = COALESCE(excluded.last_message_id, chats.last_message_id),
                updated_at = excluded.updated_at
            """,
            (
                chat.id,
                chat.chat_id,
                chat.name,
                int(chat.is_group),
                json.dumps(chat.participants),
                chat.profile_picture,
                chat.organization_id,
                chat.last_message_id,
                _to_db(chat.created_at),
                _to_db(chat.updated_at),
            ),
        )
        await self._db.commit()

        stored = await self.get_chat(chat.chat_id)
        if stored is None:
            raise RuntimeError(f"Chat {chat.chat_id} not found after save")
        return stored

    async def set_last_message(self, chat_id: str, message_id: str) -> None:
        """Point a chat (internal id) at its most recent message (internal id)."""
        await self._db.execute(
            "UPDATE chats SET last_message_id = ?, updated_at = ? WHERE id = ?",
            (message_id, _to_db(_now()), chat_id),
        )
        await self._db.commit()

    async def get_chats_by_chat_ids(self, chat_ids: list[str]) -> dict[str, Chat]:
        """Get stored chats for provider ids, keyed by provider id."""
        if not chat_ids:
            return {}

        placeholders = ",".join("?" * len(chat_ids))
        cursor = await self._db.execute(
            f"SELECT * FROM chats WHERE chat_id IN ({placeholders})",
            list(chat_ids),
        )
        rows = await cursor.fetchall()
        return {row["chat_id"]: _row_to_chat(row) for row in rows}

    async def get_chats_by_organization(self, organization_id: str) -> list[Chat]:
        """Get chats assigned to an organization."""
        cursor = await self._db.execute(
            "SELECT * FROM chats WHERE organization_id = ? ORDER BY created_at ASC",
            (organization_id,),
        )
        rows = await cursor.fetchall()
        return [_row_to_chat(row) for row in rows]

    async def clear_organization(self, organization_id: str) -> int:
        """Remove an organization reference from all its chats."""
        cursor = await self._db.execute(
            """
            UPDATE chats SET organization_id = NULL, updated_at = ?
            WHERE organization_id = ?
            """,
            (_to_db(_now()), organization_id),
        )
        await self._db.commit()
        return cursor.rowcount

    async def get_last_chat_update(self) -> datetime | None:
        """Most recent chat update time."""
        cursor = await self._db.execute("SELECT MAX(updated_at) FROM chats")
        row = await cursor.fetchone()
        return _from_db(row[0]) if row else None

    # Messages
    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by provider message id."""
        cursor = await self._db.execute(
            "SELECT * FROM messages WHERE message_id = ?", (message_id,)
        )
        row = await cursor.fetchone()
        return _row_to_message(row) if row else None

    async def get_message_by_id(self, id: str) -> Message | None:
        """Get a message by internal id."""
        cursor = await self._db.execute(
            "SELECT * FROM messages WHERE id = ?", (id,)
        )
        row = await cursor.fetchone()
        return _row_to_message(row) if row else None

    async def create_message(self, message: Message) -> bool:
        """Insert a message unless its provider id exists. Returns True if created."""
        cursor = await self._db.execute(
            """
            INSERT OR IGNORE INTO messages
            (id, message_id, chat_id, sender, content, media_type, media_url,
             quoted_message_id, mentions, reactions, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.message_id,
                message.chat_id,
                message.sender,
                message.content,
                message.media_type.value,
                message.media_url,
                message.quoted_message_id,
                json.dumps(message.mentions),
                json.dumps([vars(r) for r in message.reactions]),
                _to_db(message.timestamp),
            ),
        )
        await self._db.commit()
        return cursor.rowcount == 1

    async def save_reactions(self, id: str, reactions: list[Reaction]) -> None:
        """Replace a message's reactions."""
        await self._db.execute(
            "UPDATE messages SET reactions = ? WHERE id = ?",
            (json.dumps([vars(r) for r in reactions]), id),
        )
        await self._db.commit()

    # Documents
    async def get_document(self, id: str) -> Document | None:
        """Get a document by internal id."""
        cursor = await self._db.execute(
            "SELECT * FROM documents WHERE id = ?", (id,)
        )
        row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def get_document_for_message(self, message_id: str) -> Document | None:
        """Get the document derived from a message (internal id)."""
        cursor = await self._db.execute(
            "SELECT * FROM documents WHERE message_id = ?", (message_id,)
        )
        row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def create_document(self, document: Document) -> bool:
        """Insert a document unless one exists for its message. Returns True if created."""
        cursor = await self._db.execute(
            """
            INSERT OR IGNORE INTO documents
            (id, message_id, chat_id, file_url, file_type, file_name,
             transcription, raw_text, processed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                document.id,
                document.message_id,
                document.chat_id,
                document.file_url,
                document.file_type.value,
                document.file_name,
                json.dumps(document.transcription),
                document.raw_text,
                _to_db(document.processed_at),
            ),
        )
        await self._db.commit()
        return cursor.rowcount == 1

    async def list_documents(self) -> list[Document]:
        """Get all documents, newest first."""
        cursor = await self._db.execute(
            "SELECT * FROM documents ORDER BY processed_at DESC"
        )
        rows = await cursor.fetchall()
        return [_row_to_document(row) for row in rows]

    async def list_documents_by_chat(self, chat_id: str) -> list[Document]:
        """Get documents of a chat (internal id), newest first."""
        cursor = await self._db.execute(
            """
            SELECT * FROM documents
            WHERE chat_id = ?
            ORDER BY processed_at DESC
            """,
            (chat_id,),
        )
        rows = await cursor.fetchall()
        return [_row_to_document(row) for row in rows]

    async def count_documents(self) -> int:
        """Count documents."""
        cursor = await self._db.execute("SELECT COUNT(*) FROM documents")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # Organizations
    async def create_organization(self, organization: Organization) -> None:
        """Save a new organization."""
        organization.created_at = organization.created_at or _now()
        await self._db.execute(
            """
            INSERT INTO organizations (id, name, description, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                organization.id,
                organization.name,
                organization.description,
                _to_db(organization.created_at),
            ),
        )
        await self._db.commit()

    async def get_organization(self, id: str) -> Organization | None:
        """Get an organization by id."""
        cursor = await self._db.execute(
            "SELECT * FROM organizations WHERE id = ?", (id,)
        )
        row = await cursor.fetchone()
        return _row_to_organization(row) if row else None

    async def list_organizations(self) -> list[Organization]:
        """Get all organizations."""
        cursor = await self._db.execute(
            "SELECT * FROM organizations ORDER BY created_at ASC"
        )
        rows = await cursor.fetchall()
        return [_row_to_organization(row) for row in rows]

    async def update_organization(self, organization: Organization) -> None:
        """Update name and description."""
        await self._db.execute(
            "UPDATE organizations SET name = ?, description = ? WHERE id = ?",
            (organization.name, organization.description, organization.id),
        )
        await self._db.commit()

    async def delete_organization(self, id: str) -> None:
        """Delete an organization row."""
        await self._db.execute("DELETE FROM organizations WHERE id = ?", (id,))
        await self._db.commit()

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        tables = [
            "documents",
            "messages",
            "chats",
            "organizations",
        ]

        for table in tables:
            await self._db.execute(f"DELETE FROM {table}")

        await self._db.commit()
