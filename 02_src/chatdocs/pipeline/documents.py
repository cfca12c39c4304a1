"""Document processing: download attachment, OCR it, store the result once."""

import asyncio
import posixpath
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlsplit

from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger, log_context
from ..models import Chat, Document, EventType, FileType, MediaType, Message
from ..notifier import INotifier
from ..ocr import IOcrClient
from ..providers import IProviderClient
from ..storage import IStorage
from .tasks import ITaskRunner

logger = get_logger(__name__)


# The provider does not expose a precise image type
IMAGE_MIME_TYPE = "image/jpeg"

_DOCUMENT_TYPES: dict[str, tuple[FileType, str]] = {
    "pdf": (FileType.PDF, "application/pdf"),
    "doc": (FileType.DOC, "application/msword"),
    "docx": (FileType.DOC, "application/msword"),
}


def classify_media(media_type: MediaType, media_url: str) -> tuple[FileType, str]:
    """Return (file type, MIME type) for a message attachment.

    Images are always JPEG. Anything else is classified by the extension of
    the URL path, case-insensitively.
    """
    if media_type == MediaType.IMAGE:
        return FileType.IMAGE, IMAGE_MIME_TYPE

    path = urlsplit(media_url or "").path
    extension = posixpath.splitext(path)[1].lstrip(".").lower()
    return _DOCUMENT_TYPES.get(extension, (FileType.OTHER, "application/octet-stream"))


def document_file_name(message: Message, file_type: FileType) -> str:
    return f"file_{message.id}.{file_type.value}"


class ProcessingStatus(str, Enum):
    """Outcome of a processing request."""

    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"
    SUBMITTED = "submitted"


@dataclass
class ProcessingResult:
    status: ProcessingStatus
    document: Document | None = None
    error: str | None = None


class DocumentProcessor:
    """Turns a message attachment into exactly one Document."""

    def __init__(
        self,
        storage: IStorage,
        provider: IProviderClient,
        ocr: IOcrClient,
        notifier: INotifier,
        tasks: ITaskRunner,
    ):
        self._storage = storage
        self._provider = provider
        self._ocr = ocr
        self._notifier = notifier
        self._tasks = tasks
        # Message ids currently being processed in this process
        self._in_flight: set[str] = set()

    def submit(self, message: Message, chat: Chat) -> asyncio.Task:
        """Run `process` detached from the caller."""
        return self._tasks.submit(
            self.process(message, chat), name=f"document:{message.message_id}"
        )

    async def process(self, message: Message, chat: Chat) -> ProcessingResult:
        """Download, OCR and persist the attachment of a stored message."""
        if not message.has_processable_media:
            return ProcessingResult(ProcessingStatus.UNSUPPORTED)

        # No await between check and add
        if message.id in self._in_flight:
            logger.info("Message %s is already being processed", message.message_id)
            return ProcessingResult(ProcessingStatus.ALREADY_PROCESSED)

        self._in_flight.add(message.id)
        try:
            return await self._process(message, chat)
        finally:
            self._in_flight.discard(message.id)

    async def _process(self, message: Message, chat: Chat) -> ProcessingResult:
        existing = await self._storage.get_document_for_message(message.id)
        if existing:
            logger.info("Message %s already has document %s", message.message_id, existing.id)
            return ProcessingResult(ProcessingStatus.ALREADY_PROCESSED, document=existing)

        file_type, mime_type = classify_media(message.media_type, message.media_url)

        await self._notifier.broadcast(
            chat.chat_id,
            EventType.DOCUMENT_PROCESSING,
            {"message_id": message.id, "chat_id": chat.chat_id},
        )

        try:
            content = await self._provider.download_media(message.media_url)
            ocr_result = await self._ocr.process(content, mime_type)

            document = Document(
                id=str(uuid.uuid4()),
                message_id=message.id,
                chat_id=chat.id,
                file_url=message.media_url,
                file_type=file_type,
                file_name=document_file_name(message, file_type),
                transcription=ocr_result.to_dict(),
                raw_text=ocr_result.text or "",
                processed_at=datetime.now(timezone.utc),
            )
            created = await self._storage.create_document(document)

        except Exception as e:
            logger.error(
                "Error processing media document for message %s: %s",
                message.message_id,
                e,
                exc_info=True,
                extra=log_context(chat_id=chat.chat_id, message_id=message.message_id),
            )
            await self._notifier.broadcast(
                chat.chat_id,
                EventType.DOCUMENT_PROCESSING_ERROR,
                {"message_id": message.id, "chat_id": chat.chat_id, "error": str(e)},
            )
            return ProcessingResult(ProcessingStatus.FAILED, error=str(e))

        if not created:
            # Another worker stored the document first
            document = await self._storage.get_document_for_message(message.id)
            status = ProcessingStatus.ALREADY_PROCESSED
        else:
            logger.info(
                "Stored document %s for message %s",
                document.id,
                message.message_id,
                extra=log_context(
                    chat_id=chat.chat_id,
                    message_id=message.message_id,
                    document_id=document.id,
                ),
            )
            status = ProcessingStatus.PROCESSED

        await self._notifier.broadcast(
            chat.chat_id,
            EventType.DOCUMENT_PROCESSED,
            {
                "message_id": message.id,
                "chat_id": chat.chat_id,
                "document_id": document.id if document else None,
            },
        )
        return ProcessingResult(status, document=document)

    async def trigger(self, message_ref: str) -> ProcessingResult:
        """
        Manually request processing of a stored message.

        Args:
            message_ref: Internal message id, or provider message id.

        Returns:
            ALREADY_PROCESSED with the existing document, or SUBMITTED.

        Raises:
            NotFoundError: Unknown message or chat.
            ValidationError: The message carries no processable media.
        """
        message = await self._storage.get_message_by_id(message_ref)
        if message is None:
            message = await self._storage.get_message(message_ref)
        if message is None:
            raise NotFoundError("Message not found")

        if not message.has_processable_media:
            raise ValidationError("Message does not contain processable media")

        existing = await self._storage.get_document_for_message(message.id)
        if existing:
            return ProcessingResult(ProcessingStatus.ALREADY_PROCESSED, document=existing)

        chat = await self._storage.get_chat_by_id(message.chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")

        self.submit(message, chat)
        return ProcessingResult(ProcessingStatus.SUBMITTED)
