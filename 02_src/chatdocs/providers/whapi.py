"""Whapi.cloud messaging provider client."""

from typing import Any, Protocol

import httpx

from ..errors import ProviderError
from ..logging_config import get_logger

logger = get_logger(__name__)


class IProviderClient(Protocol):
    """Access to the WhatsApp messaging provider. Every failure raises ProviderError."""

    async def list_chats(self) -> list[dict]:
        """List individual chats."""
        ...

    async def list_groups(self) -> list[dict]:
        """List groups."""
        ...

    async def get_chat(self, chat_id: str) -> dict:
        """Fetch chat metadata."""
        ...

    async def get_messages(
        self, chat_id: str, limit: int = 50, before: str | None = None
    ) -> list[dict]:
        """Fetch message history of a chat."""
        ...

    async def send_text(
        self,
        chat_id: str,
        text: str,
        quoted_id: str | None = None,
        mentions: list[str] | None = None,
    ) -> dict:
        """Send a text message."""
        ...

    async def send_media(
        self,
        chat_id: str,
        url: str,
        caption: str = "",
        media_type: str = "image",
        quoted_id: str | None = None,
    ) -> dict:
        """Send a media message by URL."""
        ...

    async def react(self, chat_id: str, message_id: str, emoji: str) -> dict:
        """React to a message."""
        ...

    async def download_media(self, url: str) -> bytes:
        """Download binary media."""
        ...

    async def get_profile(self) -> dict:
        """Fetch the connected account profile."""
        ...

    async def set_webhook(self, url: str) -> dict:
        """Register the webhook URL."""
        ...

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return response.reason_phrase


class WhapiClient:
    """Whapi.cloud REST client."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._token = token
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error("Whapi %s %s failed: %s", method, path, message)
            raise ProviderError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("Whapi %s %s unreachable: %s", method, path, e)
            raise ProviderError(f"Provider unreachable: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Invalid provider response for {path}") from e

    async def list_chats(self) -> list[dict]:
        """List individual chats."""
        data = await self._request("GET", "/chats")
        if isinstance(data, dict) and isinstance(data.get("chats"), list):
            logger.info("Retrieved %s chats", len(data["chats"]))
            return data["chats"]
        logger.warning("Unexpected response format from /chats")
        return []

    async def list_groups(self) -> list[dict]:
        """List groups."""
        data = await self._request("GET", "/groups")
        if isinstance(data, dict) and isinstance(data.get("groups"), list):
            logger.info("Retrieved %s groups", len(data["groups"]))
            return data["groups"]
        logger.warning("Unexpected response format from /groups")
        return []

    async def get_chat(self, chat_id: str) -> dict:
        """Fetch chat metadata."""
        return await self._request("GET", f"/chat/{chat_id}")

    async def get_messages(
        self, chat_id: str, limit: int = 50, before: str | None = None
    ) -> list[dict]:
        """Fetch message history of a chat."""
        params: dict[str, Any] = {"limit": limit}
        if before:
            params["before"] = before

        data = await self._request("GET", f"/messages/{chat_id}", params=params)
        if isinstance(data, dict):
            data = data.get("messages", [])
        return data if isinstance(data, list) else []

    async def send_text(
        self,
        chat_id: str,
        text: str,
        quoted_id: str | None = None,
        mentions: list[str] | None = None,
    ) -> dict:
        """Send a text message."""
        payload: dict[str, Any] = {"text": text}
        if quoted_id:
            payload["quoted_msg_id"] = quoted_id
        if mentions:
            payload["mentions"] = mentions

        return await self._request("POST", f"/message/{chat_id}/text", json=payload)

    async def send_media(
        self,
        chat_id: str,
        url: str,
        caption: str = "",
        media_type: str = "image",
        quoted_id: str | None = None,
    ) -> dict:
        """Send a media message by URL."""
        payload: dict[str, Any] = {"url": url, "caption": caption}
        if quoted_id:
            payload["quoted_msg_id"] = quoted_id

        return await self._request(
            "POST", f"/message/{chat_id}/{media_type}", json=payload
        )

    async def react(self, chat_id: str, message_id: str, emoji: str) -> dict:
        """React to a message."""
        return await self._request(
            "POST",
            f"/message/{chat_id}/reaction/{message_id}",
            json={"emoji": emoji},
        )

    async def download_media(self, url: str) -> bytes:
        """Download binary media."""
        try:
            response = await self._client.get(
                url, headers={"Authorization": f"Bearer {self._token}"}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Media download from %s failed: %s", url, e)
            raise ProviderError("Failed to download media") from e

        return response.content

    async def get_profile(self) -> dict:
        """Fetch the connected account profile."""
        return await self._request("GET", "/users/profile")

    async def set_webhook(self, url: str) -> dict:
        """Register the webhook URL."""
        return await self._request("POST", "/webhook", json={"url": url})
