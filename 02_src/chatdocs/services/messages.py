"""Outbound messages and reactions."""

import uuid
from datetime import datetime, timezone

from ..errors import ProviderError, ValidationError
from ..logging_config import get_logger
from ..models import MediaType, Message, Reaction
from ..pipeline.chats import ChatResolver
from ..providers import IProviderClient
from ..storage import IStorage

logger = get_logger(__name__)


OWN_USER_ID = "me"


def _sent_message_id(response: dict) -> str:
    """Provider id of a message we just sent."""
    message = response.get("message") if isinstance(response.get("message"), dict) else {}
    message_id = response.get("messageId") or message.get("id") or response.get("id")
    if not message_id:
        raise ProviderError("Provider response did not include a message id")
    return str(message_id)


class MessageService:
    """Sends messages through the provider and records them locally."""

    def __init__(
        self,
        storage: IStorage,
        provider: IProviderClient,
        resolver: ChatResolver,
    ):
        self._storage = storage
        self._provider = provider
        self._resolver = resolver

    async def send(
        self,
        chat_id: str,
        text: str | None = None,
        media_url: str | None = None,
        media_type: str | None = None,
        caption: str | None = None,
        quoted_id: str | None = None,
        mentions: list[str] | None = None,
    ) -> Message:
        """
        Send a text, media or mention message and persist it.

        Raises:
            ValidationError: Neither text nor media was given.
            ProviderError: The provider rejected the message.
        """
        if not text and not (media_url and media_type):
            raise ValidationError("Message text or media is required")

        chat = await self._resolver.resolve(chat_id)

        if media_url and media_type:
            response = await self._provider.send_media(
                chat_id, media_url, caption or "", media_type, quoted_id
            )
        else:
            response = await self._provider.send_text(
                chat_id, text, quoted_id=quoted_id, mentions=mentions or None
            )

        message = Message(
            id=str(uuid.uuid4()),
            message_id=_sent_message_id(response),
            chat_id=chat.id,
            sender=response.get("sender") or OWN_USER_ID,
            content=text or caption or "",
            media_type=MediaType.parse(media_type),
            media_url=media_url or "",
            quoted_message_id=quoted_id,
            mentions=list(mentions or []),
            timestamp=datetime.now(timezone.utc),
        )

        if await self._storage.create_message(message):
            await self._storage.set_last_message(chat.id, message.id)
        else:
            # Webhook echo of our own message got there first
            message = await self._storage.get_message(message.message_id) or message

        logger.info("Sent message %s to %s", message.message_id, chat_id)
        return message

    async def react(self, chat_id: str, message_id: str, emoji: str | None) -> None:
        """React to a provider message and record our own reaction."""
        if not emoji:
            raise ValidationError("Emoji is required")

        await self._provider.react(chat_id, message_id, emoji)

        message = await self._storage.get_message(message_id)
        if message is None:
            return

        for reaction in message.reactions:
            if reaction.user_id == OWN_USER_ID:
                reaction.emoji = emoji
                break
        else:
            message.reactions.append(Reaction(user_id=OWN_USER_ID, emoji=emoji))
        await self._storage.save_reactions(message.id, message.reactions)
