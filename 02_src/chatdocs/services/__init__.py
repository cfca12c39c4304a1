"""Services backing the REST surface."""

from .chats import ChatService, placeholder_chat
from .messages import MessageService
from .organizations import OrganizationService
from .system import UNKNOWN_SYSTEM_INFO, SystemService

__all__ = [
    "ChatService",
    "placeholder_chat",
    "MessageService",
    "OrganizationService",
    "SystemService",
    "UNKNOWN_SYSTEM_INFO",
]
