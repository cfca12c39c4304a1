"""Core data models."""

from .chats import PROCESSABLE_MEDIA, Chat, MediaType, Message, Reaction
from .documents import (
    BoundingBox,
    Document,
    FileType,
    OcrBlock,
    OcrEntity,
    OcrPage,
    OcrResult,
    OcrTable,
    OcrTableCell,
    OcrTableRow,
)
from .events import EventType, Notification
from .organizations import Organization

__all__ = [
    # Chats
    "Chat",
    "Message",
    "MediaType",
    "Reaction",
    "PROCESSABLE_MEDIA",
    # Documents
    "Document",
    "FileType",
    "OcrResult",
    "OcrPage",
    "OcrBlock",
    "BoundingBox",
    "OcrEntity",
    "OcrTable",
    "OcrTableRow",
    "OcrTableCell",
    # Organizations
    "Organization",
    # Events
    "EventType",
    "Notification",
]
