"""Find-or-create resolution of chats by provider chat id."""

import uuid
from typing import Any

from fastapi.encoders import jsonable_encoder

from ..logging_config import get_logger, log_context
from ..models import Chat, EventType
from ..notifier import INotifier
from ..providers import IProviderClient
from ..storage import IStorage

logger = get_logger(__name__)


def is_group_id(chat_id: str) -> bool:
    return chat_id.endswith("@g.us")


def normalize_participants(participants: Any) -> list[str]:
    """Participant ids from a provider list of strings or {"id": ...} objects."""
    if not isinstance(participants, list):
        return []
    result = []
    for participant in participants:
        if isinstance(participant, str):
            result.append(participant)
        elif isinstance(participant, dict) and participant.get("id"):
            result.append(str(participant["id"]))
    return result


def chat_name(chat_id: str, info: dict) -> str:
    return info.get("name") or info.get("subject") or f"Chat with {chat_id}"


def chat_is_group(chat_id: str, info: dict) -> bool:
    return bool(
        info.get("isGroup") or info.get("type") == "group" or is_group_id(chat_id)
    )


def chat_from_provider(chat_id: str, info: dict) -> Chat:
    """Build a new Chat from provider metadata, keyed by the requested chat id."""
    return Chat(
        id=str(uuid.uuid4()),
        chat_id=chat_id,
        name=chat_name(chat_id, info),
        is_group=chat_is_group(chat_id, info),
        participants=normalize_participants(info.get("participants")),
        profile_picture=info.get("profilePictureUrl") or info.get("icon") or "",
    )


def refresh_from_provider(chat: Chat, info: dict) -> Chat:
    """Apply fresh provider metadata to a stored chat."""
    chat.name = info.get("name") or info.get("subject") or chat.name
    chat.is_group = chat_is_group(chat.chat_id, info)
    if isinstance(info.get("participants"), list):
        chat.participants = normalize_participants(info["participants"])
    chat.profile_picture = info.get("profilePictureUrl") or chat.profile_picture
    return chat


class ChatResolver:
    """Looks up a chat, creating it from provider metadata on first reference."""

    def __init__(
        self,
        storage: IStorage,
        provider: IProviderClient,
        notifier: INotifier,
    ):
        self._storage = storage
        self._provider = provider
        self._notifier = notifier

    async def resolve(self, chat_id: str, announce: bool = False) -> Chat:
        """
        Return the stored chat for a provider chat id, creating it if absent.

        Args:
            chat_id: Provider chat id.
            announce: Broadcast `new_chat` to every viewer when this call
                created the chat.

        Raises:
            ProviderError: The chat is unknown locally and its metadata
                could not be fetched.
        """
        chat = await self._storage.get_chat(chat_id)
        if chat:
            return chat

        info = await self._provider.get_chat(chat_id)
        chat, created = await self._storage.create_chat(
            chat_from_provider(chat_id, info)
        )

        if created:
            logger.info("Created chat %s", chat_id, extra=log_context(chat_id=chat_id))
            if announce:
                await self._notifier.broadcast_all(
                    EventType.NEW_CHAT, jsonable_encoder(chat)
                )
        return chat
