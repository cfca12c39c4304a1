"""Tests for the Whapi.cloud provider client."""

import json

import httpx
import pytest

from chatdocs.errors import ProviderError
from chatdocs.providers import WhapiClient

BASE_URL = "https://gate.example"


def make_client(handler) -> WhapiClient:
    transport = httpx.MockTransport(handler)
    return WhapiClient(
        BASE_URL,
        "secret",
        client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
    )


class RecordingHandler:
    """MockTransport handler returning a fixed response and recording requests."""

    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


class TestWhapiClientConstruction:
    async def test_default_client_sends_bearer_token(self):
        client = WhapiClient("https://gate.example/", "secret")
        try:
            assert client._client.headers["Authorization"] == "Bearer secret"
            assert str(client._client.base_url).rstrip("/") == BASE_URL
        finally:
            await client.aclose()


class TestWhapiClientRequests:
    """Tests for request paths and payloads."""

    async def test_list_chats(self):
        handler = RecordingHandler(body={"chats": [{"id": "a", "type": "contact"}]})
        client = make_client(handler)

        assert await client.list_chats() == [{"id": "a", "type": "contact"}]
        assert handler.last.url.path == "/chats"

    async def test_list_groups_unexpected_format(self):
        client = make_client(RecordingHandler(body={"unexpected": True}))
        assert await client.list_groups() == []

    async def test_get_chat(self):
        handler = RecordingHandler(body={"id": "g@g.us", "name": "Team"})
        client = make_client(handler)

        assert (await client.get_chat("g@g.us"))["name"] == "Team"
        assert handler.last.url.path == "/chat/g@g.us"

    async def test_get_messages_params(self):
        handler = RecordingHandler(body={"messages": [{"id": "m1"}]})
        client = make_client(handler)

        messages = await client.get_messages("a", limit=20, before="m0")

        assert messages == [{"id": "m1"}]
        assert handler.last.url.path == "/messages/a"
        assert handler.last.url.params["limit"] == "20"
        assert handler.last.url.params["before"] == "m0"

    async def test_get_messages_without_before(self):
        handler = RecordingHandler(body=[{"id": "m1"}])
        client = make_client(handler)

        assert await client.get_messages("a") == [{"id": "m1"}]
        assert "before" not in handler.last.url.params

    async def test_send_text_with_quote_and_mentions(self):
        handler = RecordingHandler(body={"sent": True})
        client = make_client(handler)

        await client.send_text("a", "hi", quoted_id="m1", mentions=["b"])

        assert handler.last.method == "POST"
        assert handler.last.url.path == "/message/a/text"
        assert json.loads(handler.last.content) == {
            "text": "hi",
            "quoted_msg_id": "m1",
            "mentions": ["b"],
        }

    async def test_send_media(self):
        handler = RecordingHandler(body={"sent": True})
        client = make_client(handler)

        await client.send_media("a", "https://x/doc.pdf", caption="c", media_type="document")

        assert handler.last.url.path == "/message/a/document"
        assert json.loads(handler.last.content) == {"url": "https://x/doc.pdf", "caption": "c"}

    async def test_react(self):
        handler = RecordingHandler(body={"success": True})
        client = make_client(handler)

        await client.react("a", "m1", "👍")

        assert handler.last.url.path == "/message/a/reaction/m1"
        assert json.loads(handler.last.content) == {"emoji": "👍"}

    async def test_profile_and_webhook(self):
        handler = RecordingHandler(body={"name": "Desk"})
        client = make_client(handler)

        assert (await client.get_profile())["name"] == "Desk"
        assert handler.last.url.path == "/users/profile"

        await client.set_webhook("https://hooks.example/webhook")
        assert handler.last.url.path == "/webhook"
        assert json.loads(handler.last.content) == {"url": "https://hooks.example/webhook"}


class TestWhapiClientErrors:
    """Every failure surfaces as ProviderError."""

    async def test_http_error_status(self):
        client = make_client(
            RecordingHandler(status_code=401, body={"error": {"message": "Invalid token"}})
        )

        with pytest.raises(ProviderError) as exc_info:
            await client.get_chat("a")

        assert exc_info.value.status_code == 401
        assert "Invalid token" in str(exc_info.value)

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(ProviderError) as exc_info:
            await client.list_chats()
        assert exc_info.value.status_code is None

    async def test_invalid_json(self):
        client = make_client(RecordingHandler(content=b"<html>"))

        with pytest.raises(ProviderError):
            await client.get_profile()


class TestWhapiClientDownload:
    async def test_download_media_uses_bearer_token(self):
        handler = RecordingHandler(content=b"binary")
        client = make_client(handler)

        content = await client.download_media("https://media.example/file.pdf")

        assert content == b"binary"
        assert str(handler.last.url) == "https://media.example/file.pdf"
        assert handler.last.headers["Authorization"] == "Bearer secret"

    async def test_download_failure(self):
        client = make_client(RecordingHandler(status_code=404, content=b""))

        with pytest.raises(ProviderError, match="Failed to download media"):
            await client.download_media("https://media.example/missing.pdf")
