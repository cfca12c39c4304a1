"""Message and document processing pipeline."""

from .chats import ChatResolver
from .documents import (
    DocumentProcessor,
    ProcessingResult,
    ProcessingStatus,
    classify_media,
)
from .ingestion import InboundMessage, IngestionPipeline, IngestOutcome
from .tasks import ITaskRunner, TaskRunner

__all__ = [
    "ChatResolver",
    "DocumentProcessor",
    "ProcessingResult",
    "ProcessingStatus",
    "classify_media",
    "InboundMessage",
    "IngestionPipeline",
    "IngestOutcome",
    "ITaskRunner",
    "TaskRunner",
]
