"""Organization data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Organization:
    """A user-defined grouping of chats."""

    id: str
    name: str
    description: str = ""
    created_at: datetime | None = None
