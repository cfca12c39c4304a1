"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chatdocs.models import OcrResult  # noqa: E402


class RecordingSubscriber:
    """Notifier subscriber that keeps every notification it receives."""

    def __init__(self, name: str = "viewer"):
        self.name = name
        self.received = []

    async def send(self, notification) -> None:
        self.received.append(notification)

    def events(self) -> list[str]:
        return [n.event.value for n in self.received]


class FailingSubscriber:
    """Subscriber whose connection is gone."""

    async def send(self, notification) -> None:
        raise ConnectionError("socket closed")


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from chatdocs.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def notifier():
    from chatdocs.notifier import Notifier

    return Notifier()


@pytest.fixture
def viewer(notifier):
    """A connected viewer with no chat topics."""
    subscriber = RecordingSubscriber()
    notifier.connect(subscriber)
    return subscriber


@pytest.fixture
def mock_provider():
    """Create mock provider client."""
    provider = Mock()
    provider.get_chat = AsyncMock(
        side_effect=lambda chat_id: {"id": chat_id, "name": f"Name of {chat_id}"}
    )
    provider.list_chats = AsyncMock(return_value=[])
    provider.list_groups = AsyncMock(return_value=[])
    provider.get_messages = AsyncMock(return_value=[])
    provider.send_text = AsyncMock(return_value={"sent": True, "message": {"id": "out-1"}})
    provider.send_media = AsyncMock(return_value={"sent": True, "message": {"id": "out-2"}})
    provider.react = AsyncMock(return_value={"success": True})
    provider.download_media = AsyncMock(return_value=b"%PDF-1.4 test")
    provider.get_profile = AsyncMock(return_value={"name": "Desk", "icon": "https://x/icon.png"})
    provider.set_webhook = AsyncMock(return_value={"success": True})
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def mock_ocr():
    """Create mock OCR client."""
    ocr = Mock()
    ocr.configured = True
    ocr.process = AsyncMock(return_value=OcrResult(text="Invoice 42"))
    return ocr


@pytest.fixture
def task_runner():
    from chatdocs.pipeline import TaskRunner

    return TaskRunner()


@pytest.fixture
def resolver(storage, mock_provider, notifier):
    from chatdocs.pipeline import ChatResolver

    return ChatResolver(storage, mock_provider, notifier)


@pytest.fixture
def processor(storage, mock_provider, mock_ocr, notifier, task_runner):
    from chatdocs.pipeline import DocumentProcessor

    return DocumentProcessor(storage, mock_provider, mock_ocr, notifier, task_runner)


@pytest.fixture
def pipeline(storage, mock_provider, notifier, resolver, processor):
    from chatdocs.pipeline import IngestionPipeline

    return IngestionPipeline(storage, mock_provider, notifier, resolver, processor)


@pytest.fixture
def make_subscriber():
    """Factory for recording subscribers."""
    return RecordingSubscriber


@pytest.fixture
def failing_subscriber():
    return FailingSubscriber()
