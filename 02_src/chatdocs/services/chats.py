"""Chat listing, lookup and organization assignment."""

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder

from ..errors import NotFoundError, ProviderError, ValidationError
from ..logging_config import get_logger
from ..models import Chat, Organization
from ..pipeline.chats import (
    ChatResolver,
    is_group_id,
    normalize_participants,
    refresh_from_provider,
)
from ..providers import IProviderClient
from ..storage import IStorage

logger = get_logger(__name__)


def placeholder_chat(chat_id: str) -> dict:
    """Minimal chat view returned when the provider cannot be reached."""
    is_group = is_group_id(chat_id)
    return {
        "id": None,
        "chat_id": chat_id,
        "name": f"Group {chat_id.split('@')[0]}" if is_group else f"Chat {chat_id}",
        "is_group": is_group,
        "participants": [],
    }


def _last_message_time(info: dict) -> datetime:
    timestamp = info.get("timestamp")
    if isinstance(timestamp, (int, float)):
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return datetime.now(timezone.utc)


class ChatService:
    """Provider chat listings merged with locally stored state."""

    def __init__(
        self,
        storage: IStorage,
        provider: IProviderClient,
        resolver: ChatResolver,
    ):
        self._storage = storage
        self._provider = provider
        self._resolver = resolver

    async def list_chats(self) -> list[dict]:
        """Every provider chat and group."""
        chats = await self._provider.list_chats()
        groups = await self._provider.list_groups()
        return await self._merge(chats + groups)

    async def list_individual_chats(self) -> list[dict]:
        """Provider chats with a single contact."""
        chats = await self._provider.list_chats()
        return await self._merge(
            [chat for chat in chats if chat.get("type") == "contact"], is_group=False
        )

    async def list_groups(self) -> list[dict]:
        groups = await self._provider.list_groups()
        return await self._merge(groups, is_group=True)

    async def _merge(
        self, items: list[dict], is_group: bool | None = None
    ) -> list[dict]:
        items = [item for item in items if item.get("id")]
        stored = await self._storage.get_chats_by_chat_ids([item["id"] for item in items])

        organizations: dict[str, Organization | None] = {}
        result = []
        for item in items:
            chat_id = item["id"]
            existing = stored.get(chat_id)

            organization = None
            if existing and existing.organization_id:
                if existing.organization_id not in organizations:
                    organizations[existing.organization_id] = (
                        await self._storage.get_organization(existing.organization_id)
                    )
                organization = organizations[existing.organization_id]

            if is_group is None:
                group = item.get("type") == "group" or is_group_id(chat_id)
            else:
                group = is_group

            default_name = f"Group {chat_id}" if group else f"Chat with {chat_id}"
            result.append(
                {
                    "id": existing.id if existing else None,
                    "chat_id": chat_id,
                    "name": item.get("name") or item.get("subject") or default_name,
                    "is_group": group,
                    "participants": normalize_participants(item.get("participants")),
                    "profile_picture": item.get("profilePictureUrl") or item.get("icon") or "",
                    "organization": jsonable_encoder(organization) if organization else None,
                    "last_message_time": _last_message_time(item),
                }
            )

        logger.info("Returning %d chats", len(result))
        return result

    async def get_chat(self, chat_id: str) -> Chat | dict[str, Any]:
        """
        Look up a chat, refreshing it from the provider.

        A stored chat is returned as-is when the refresh fails; an unknown
        chat degrades to a placeholder when it cannot be created.
        """
        chat = await self._storage.get_chat(chat_id)
        if chat is None:
            try:
                return await self._resolver.resolve(chat_id)
            except ProviderError as e:
                logger.warning("Error getting chat info for %s: %s", chat_id, e)
                return placeholder_chat(chat_id)

        try:
            info = await self._provider.get_chat(chat_id)
        except ProviderError as e:
            logger.warning("Could not refresh chat %s: %s", chat_id, e)
            return chat

        return await self._storage.save_chat(refresh_from_provider(chat, info))

    async def assign(self, chat_id: str | None, organization_id: str | None) -> Chat:
        """Assign a chat to an organization, creating the chat if needed."""
        if not chat_id or not organization_id:
            raise ValidationError("Chat ID and Organization ID are required")

        if await self._storage.get_organization(organization_id) is None:
            raise NotFoundError("Organization not found")

        chat = await self._resolver.resolve(chat_id)
        chat.organization_id = organization_id
        chat = await self._storage.save_chat(chat)
        logger.info("Assigned chat %s to organization %s", chat_id, organization_id)
        return chat
