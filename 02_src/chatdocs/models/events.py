"""Real-time notification models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EventType(str, Enum):
    """Events pushed to connected viewers."""

    NEW_CHAT = "new_chat"
    NEW_MESSAGE = "new_message"
    DOCUMENT_PROCESSING = "document_processing"
    DOCUMENT_PROCESSED = "document_processed"
    DOCUMENT_PROCESSING_ERROR = "document_processing_error"


@dataclass
class Notification:
    """A single event delivered to subscribers."""

    event: EventType
    data: dict
    timestamp: datetime
    topic: str | None = None  # None means every connected viewer

    def to_dict(self) -> dict:
        return {
            "event": self.event.value,
            "topic": self.topic,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }
