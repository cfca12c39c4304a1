"""Inbound message ingestion."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..logging_config import get_logger, log_context
from ..models import Chat, EventType, MediaType, Message, Reaction
from ..notifier import INotifier
from ..providers import IProviderClient
from ..storage import IStorage
from .chats import ChatResolver
from .documents import DocumentProcessor

logger = get_logger(__name__)


UNKNOWN_SENDER = "unknown"

# Numeric timestamps above this are milliseconds
_MILLISECONDS_THRESHOLD = 10**11


class IngestOutcome(str, Enum):
    """Result of ingesting one inbound message."""

    CREATED = "created"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class InboundMessage(BaseModel):
    """Message fields as sent by the provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    chat_id: str = Field(alias="chatId", min_length=1)
    sender: str | None = None
    text: str | None = None
    media_type: str | None = Field(None, alias="mediaType")
    media_url: str | None = Field(None, alias="mediaUrl")
    quoted_msg_id: str | None = Field(None, alias="quotedMsgId")
    mentions: list[str] = Field(default_factory=list)
    reactions: list[dict[str, Any]] = Field(default_factory=list)
    timestamp: int | float | str | None = None


def parse_timestamp(value: int | float | str | None) -> datetime:
    """Parse unix seconds, unix milliseconds or ISO-8601; default to now."""
    if value is None or value == "":
        return datetime.now(timezone.utc)

    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value)

    try:
        if isinstance(value, (int, float)):
            seconds = value / 1000 if value > _MILLISECONDS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)

        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning("Unparseable message timestamp %r, using now", value)
        return datetime.now(timezone.utc)


def _parse_reactions(items: list[dict[str, Any]]) -> list[Reaction]:
    reactions = []
    for item in items:
        emoji = item.get("emoji")
        user_id = item.get("userId") or item.get("user_id") or item.get("from")
        if emoji and user_id:
            reactions.append(Reaction(user_id=str(user_id), emoji=str(emoji)))
    return reactions


def build_message(inbound: InboundMessage, chat: Chat) -> Message:
    """New Message from provider fields, with defaults for missing values."""
    return Message(
        id=str(uuid.uuid4()),
        message_id=inbound.id,
        chat_id=chat.id,
        sender=inbound.sender or UNKNOWN_SENDER,
        content=inbound.text or "",
        media_type=MediaType.parse(inbound.media_type),
        media_url=inbound.media_url or "",
        quoted_message_id=inbound.quoted_msg_id,
        mentions=list(inbound.mentions),
        reactions=_parse_reactions(inbound.reactions),
        timestamp=parse_timestamp(inbound.timestamp),
    )


class IngestionPipeline:
    """Persists inbound provider messages once and fans out notifications."""

    def __init__(
        self,
        storage: IStorage,
        provider: IProviderClient,
        notifier: INotifier,
        chats: ChatResolver,
        documents: DocumentProcessor,
    ):
        self._storage = storage
        self._provider = provider
        self._notifier = notifier
        self._chats = chats
        self._documents = documents

    async def handle_event(self, payload: dict) -> IngestOutcome | None:
        """Dispatch one webhook payload by its event kind."""
        event = payload.get("event")
        if event == "message":
            data = payload.get("data")
            return await self.ingest(data if isinstance(data, dict) else {})

        if event == "status":
            logger.info("Status update: %s", payload.get("data"))
        else:
            logger.info("Other webhook event: %s", event)
        return None

    async def ingest(self, data: dict) -> IngestOutcome:
        """
        Ingest one inbound message event.

        Redelivered events are no-ops. Never raises: failures are logged and
        reported as FAILED.
        """
        try:
            inbound = InboundMessage.model_validate(data)
        except PydanticValidationError as e:
            logger.error("Invalid inbound message payload: %s", e)
            return IngestOutcome.FAILED

        context = log_context(chat_id=inbound.chat_id, message_id=inbound.id)
        message = None
        try:
            chat = await self._chats.resolve(inbound.chat_id, announce=True)

            if await self._storage.get_message(inbound.id):
                logger.debug("Message %s already processed", inbound.id, extra=context)
                return IngestOutcome.DUPLICATE

            candidate = build_message(inbound, chat)
            if not await self._storage.create_message(candidate):
                logger.debug(
                    "Message %s stored by a concurrent delivery", inbound.id, extra=context
                )
                return IngestOutcome.DUPLICATE
            message = candidate

            await self._storage.set_last_message(chat.id, message.id)
            chat.last_message_id = message.id

            await self._notifier.broadcast(
                chat.chat_id, EventType.NEW_MESSAGE, jsonable_encoder(message)
            )

        except Exception as e:
            logger.error(
                "Error processing message %s for chat %s: %s",
                inbound.id,
                inbound.chat_id,
                e,
                exc_info=True,
                extra=context,
            )
            # A redelivery is a duplicate once the message is stored
            if message is not None:
                self._maybe_process_media(message, chat)
            return IngestOutcome.FAILED

        logger.info("Stored message %s", inbound.id, extra=context)
        self._maybe_process_media(message, chat)
        return IngestOutcome.CREATED

    async def sync_history(
        self, chat_id: str, limit: int = 50, before: str | None = None
    ) -> list[Message]:
        """
        Fetch a chat's history from the provider and store unseen messages.

        Returns the stored messages in provider order. Provider errors
        propagate to the caller.
        """
        chat = await self._chats.resolve(chat_id)
        items = await self._provider.get_messages(chat_id, limit, before)

        messages = []
        for item in items:
            try:
                inbound = InboundMessage.model_validate({"chatId": chat_id, **item})
            except PydanticValidationError as e:
                logger.warning("Skipping malformed history message in %s: %s", chat_id, e)
                continue

            existing = await self._storage.get_message(inbound.id)
            if existing:
                messages.append(existing)
                continue

            message = build_message(inbound, chat)
            if await self._storage.create_message(message):
                self._maybe_process_media(message, chat)
                messages.append(message)
            else:
                stored = await self._storage.get_message(inbound.id)
                if stored:
                    messages.append(stored)

        return messages

    def _maybe_process_media(self, message: Message, chat: Chat) -> None:
        if message.has_processable_media:
            self._documents.submit(message, chat)
        elif message.media_type in (MediaType.IMAGE, MediaType.DOCUMENT):
            logger.warning(
                "Message %s has %s media but no URL",
                message.message_id,
                message.media_type.value,
                extra=log_context(chat_id=chat.chat_id, message_id=message.message_id),
            )
