"""Tests for document processing."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from chatdocs.errors import NotFoundError, OcrError, ProviderError, ValidationError
from chatdocs.models import Chat, FileType, MediaType, Message, OcrResult
from chatdocs.pipeline import ProcessingStatus, classify_media


async def stored_chat(storage, chat_id="111@s.whatsapp.net") -> Chat:
    chat, _ = await storage.create_chat(Chat(id="c1", chat_id=chat_id, name="Alice"))
    return chat


async def stored_message(
    storage,
    media_type=MediaType.DOCUMENT,
    media_url="https://media.example/invoice.pdf",
    id="m1",
) -> Message:
    message = Message(
        id=id,
        message_id=f"wamid.{id}",
        chat_id="c1",
        sender="111@s.whatsapp.net",
        content="",
        timestamp=datetime.now(timezone.utc),
        media_type=media_type,
        media_url=media_url,
    )
    await storage.create_message(message)
    return message


@pytest.fixture
def chat_viewer(notifier, make_subscriber):
    """Viewer that joined the test chat's topic."""
    subscriber = make_subscriber()
    notifier.join("111@s.whatsapp.net", subscriber)
    return subscriber


class TestClassifyMedia:
    """Tests for attachment classification."""

    def test_image_is_always_jpeg(self):
        assert classify_media(MediaType.IMAGE, "https://x/photo.png") == (
            FileType.IMAGE,
            "image/jpeg",
        )

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://x/a.pdf", (FileType.PDF, "application/pdf")),
            ("https://x/a.PDF", (FileType.PDF, "application/pdf")),
            ("https://x/a.doc", (FileType.DOC, "application/msword")),
            ("https://x/a.docx", (FileType.DOC, "application/msword")),
            ("https://x/a.xlsx", (FileType.OTHER, "application/octet-stream")),
            ("https://x/noextension", (FileType.OTHER, "application/octet-stream")),
            ("https://x/a.pdf?token=abc.def", (FileType.PDF, "application/pdf")),
            ("https://x/a.pdf#page=2", (FileType.PDF, "application/pdf")),
        ],
    )
    def test_document_by_extension(self, url, expected):
        assert classify_media(MediaType.DOCUMENT, url) == expected


class TestDocumentProcessing:
    """Tests for DocumentProcessor.process."""

    async def test_process_creates_document(
        self, storage, processor, mock_provider, mock_ocr, chat_viewer
    ):
        chat = await stored_chat(storage)
        message = await stored_message(storage)

        result = await processor.process(message, chat)

        assert result.status == ProcessingStatus.PROCESSED
        document = result.document
        assert document.message_id == "m1"
        assert document.chat_id == "c1"
        assert document.file_type == FileType.PDF
        assert document.file_name == "file_m1.pdf"
        assert document.raw_text == "Invoice 42"
        assert document.transcription["text"] == "Invoice 42"

        mock_provider.download_media.assert_awaited_once_with(
            "https://media.example/invoice.pdf"
        )
        mock_ocr.process.assert_awaited_once_with(b"%PDF-1.4 test", "application/pdf")

        assert chat_viewer.events() == ["document_processing", "document_processed"]
        processed = chat_viewer.received[1].data
        assert processed["message_id"] == "m1"
        assert processed["document_id"] == document.id

    async def test_process_image(self, storage, processor, mock_ocr):
        chat = await stored_chat(storage)
        message = await stored_message(
            storage, media_type=MediaType.IMAGE, media_url="https://x/photo"
        )

        result = await processor.process(message, chat)

        assert result.document.file_type == FileType.IMAGE
        assert result.document.file_name == "file_m1.image"
        mock_ocr.process.assert_awaited_once_with(b"%PDF-1.4 test", "image/jpeg")

    async def test_second_process_is_noop(
        self, storage, processor, mock_ocr, chat_viewer
    ):
        chat = await stored_chat(storage)
        message = await stored_message(storage)

        first = await processor.process(message, chat)
        second = await processor.process(message, chat)

        assert second.status == ProcessingStatus.ALREADY_PROCESSED
        assert second.document.id == first.document.id
        assert mock_ocr.process.await_count == 1
        assert chat_viewer.events() == ["document_processing", "document_processed"]

    async def test_concurrent_process_calls_ocr_once(self, storage, processor, mock_ocr):
        chat = await stored_chat(storage)
        message = await stored_message(storage)

        results = await asyncio.gather(
            processor.process(message, chat), processor.process(message, chat)
        )

        statuses = sorted(r.status.value for r in results)
        assert statuses == ["already_processed", "processed"]
        assert mock_ocr.process.await_count == 1
        assert await storage.count_documents() == 1

    async def test_lost_insert_race_reports_existing_document(
        self, storage, processor, mock_ocr
    ):
        chat = await stored_chat(storage)
        message = await stored_message(storage)

        # Another process stores the document while OCR is running
        async def ocr_then_race(content, mime_type):
            from chatdocs.models import Document

            await storage.create_document(
                Document(
                    id="winner",
                    message_id=message.id,
                    chat_id=chat.id,
                    file_url=message.media_url,
                    file_type=FileType.PDF,
                    file_name="file_m1.pdf",
                    transcription={},
                    raw_text="",
                    processed_at=datetime.now(timezone.utc),
                )
            )
            return OcrResult(text="late")

        mock_ocr.process = AsyncMock(side_effect=ocr_then_race)

        result = await processor.process(message, chat)

        assert result.status == ProcessingStatus.ALREADY_PROCESSED
        assert result.document.id == "winner"
        assert await storage.count_documents() == 1

    async def test_unsupported_media(self, storage, processor, mock_provider, chat_viewer):
        chat = await stored_chat(storage)
        video = await stored_message(storage, media_type=MediaType.VIDEO, id="v1")
        no_url = await stored_message(storage, media_url="", id="n1")

        assert (await processor.process(video, chat)).status == ProcessingStatus.UNSUPPORTED
        assert (await processor.process(no_url, chat)).status == ProcessingStatus.UNSUPPORTED
        mock_provider.download_media.assert_not_awaited()
        assert chat_viewer.received == []


class TestDocumentProcessingFailures:
    """Every failure ends with exactly one error notification."""

    async def test_download_failure(
        self, storage, processor, mock_provider, mock_ocr, chat_viewer
    ):
        chat = await stored_chat(storage)
        message = await stored_message(storage)
        mock_provider.download_media = AsyncMock(
            side_effect=ProviderError("Failed to download media", status_code=404)
        )

        result = await processor.process(message, chat)

        assert result.status == ProcessingStatus.FAILED
        assert "Failed to download media" in result.error
        mock_ocr.process.assert_not_awaited()
        assert chat_viewer.events() == ["document_processing", "document_processing_error"]
        assert chat_viewer.received[1].data["message_id"] == "m1"
        assert await storage.count_documents() == 0

    async def test_ocr_failure(self, storage, processor, mock_ocr, chat_viewer):
        chat = await stored_chat(storage)
        message = await stored_message(storage)
        mock_ocr.process = AsyncMock(side_effect=OcrError("quota exceeded"))

        result = await processor.process(message, chat)

        assert result.status == ProcessingStatus.FAILED
        assert chat_viewer.events().count("document_processing_error") == 1
        assert chat_viewer.received[-1].data["error"] == "quota exceeded"
        assert await storage.count_documents() == 0

    async def test_failure_releases_claim(self, storage, processor, mock_ocr):
        chat = await stored_chat(storage)
        message = await stored_message(storage)
        mock_ocr.process = AsyncMock(side_effect=[OcrError("transient"), OcrResult(text="ok")])

        assert (await processor.process(message, chat)).status == ProcessingStatus.FAILED
        assert (await processor.process(message, chat)).status == ProcessingStatus.PROCESSED


class TestManualTrigger:
    """Tests for DocumentProcessor.trigger."""

    async def test_unknown_message(self, processor):
        with pytest.raises(NotFoundError):
            await processor.trigger("missing")

    async def test_message_without_media(self, storage, processor):
        await stored_chat(storage)
        await stored_message(storage, media_type=MediaType.NONE, media_url="")

        with pytest.raises(ValidationError):
            await processor.trigger("m1")

    async def test_submits_processing(self, storage, processor, task_runner, mock_ocr):
        await stored_chat(storage)
        await stored_message(storage)

        result = await processor.trigger("m1")
        assert result.status == ProcessingStatus.SUBMITTED

        await task_runner.drain()
        assert await storage.count_documents() == 1
        mock_ocr.process.assert_awaited_once()

    async def test_accepts_provider_message_id(self, storage, processor, task_runner):
        await stored_chat(storage)
        await stored_message(storage)

        result = await processor.trigger("wamid.m1")
        assert result.status == ProcessingStatus.SUBMITTED
        await task_runner.drain()

    async def test_already_processed(self, storage, processor):
        chat = await stored_chat(storage)
        message = await stored_message(storage)
        first = await processor.process(message, chat)

        result = await processor.trigger("m1")

        assert result.status == ProcessingStatus.ALREADY_PROCESSED
        assert result.document.id == first.document.id

    async def test_missing_chat(self, storage, processor):
        await stored_message(storage)

        with pytest.raises(NotFoundError, match="Chat not found"):
            await processor.trigger("m1")
