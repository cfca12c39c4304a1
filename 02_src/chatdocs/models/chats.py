"""Chat and message data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MediaType(str, Enum):
    """Media classification of a message."""

    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"

    @classmethod
    def parse(cls, value: str | None) -> "MediaType":
        """Map a provider value onto a known classification, defaulting to NONE."""
        if not value:
            return cls.NONE
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE


# Media that is sent through OCR
PROCESSABLE_MEDIA = frozenset({MediaType.IMAGE, MediaType.DOCUMENT})


@dataclass
class Reaction:
    """An emoji reaction left on a message."""

    user_id: str
    emoji: str


@dataclass
class Chat:
    """One WhatsApp conversation (individual or group)."""

    id: str
    chat_id: str  # provider id, e.g. "123@s.whatsapp.net"
    name: str
    is_group: bool = False
    participants: list[str] = field(default_factory=list)
    profile_picture: str = ""
    organization_id: str | None = None
    last_message_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Message:
    """One inbound or outbound chat message."""

    id: str
    message_id: str  # provider id
    chat_id: str  # Chat.id
    sender: str
    content: str
    timestamp: datetime
    media_type: MediaType = MediaType.NONE
    media_url: str = ""
    quoted_message_id: str | None = None
    mentions: list[str] = field(default_factory=list)
    reactions: list[Reaction] = field(default_factory=list)

    @property
    def has_processable_media(self) -> bool:
        return self.media_type in PROCESSABLE_MEDIA and bool(self.media_url)
