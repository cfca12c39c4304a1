"""System information snapshot."""

from ..errors import ProviderError
from ..logging_config import get_logger
from ..ocr import IOcrClient
from ..providers import IProviderClient
from ..storage import IStorage

logger = get_logger(__name__)


UNKNOWN_SYSTEM_INFO = {
    "whatsapp_account": "Unknown",
    "profile_icon": None,
    "whapi_status": "Unknown",
    "document_ai_status": "Unknown",
    "last_sync": None,
    "stats": {"chats": 0, "groups": 0, "documents": 0},
}


class SystemService:
    def __init__(self, storage: IStorage, provider: IProviderClient, ocr: IOcrClient):
        self._storage = storage
        self._provider = provider
        self._ocr = ocr

    async def info(self) -> dict:
        """
        Account, integration status and counts.

        Provider calls degrade independently: the account falls back to
        "Unknown" and the provider status to "Unavailable". Storage errors
        propagate.
        """
        whapi_status = "Active"

        try:
            profile = await self._provider.get_profile()
        except ProviderError as e:
            logger.warning("Could not load provider profile: %s", e)
            profile = {}
            whapi_status = "Unavailable"

        try:
            chats = await self._provider.list_chats()
            groups = await self._provider.list_groups()
        except ProviderError as e:
            logger.warning("Could not load provider chats: %s", e)
            chats, groups = [], []
            whapi_status = "Unavailable"

        last_sync = await self._storage.get_last_chat_update()

        return {
            "whatsapp_account": profile.get("name") or "Unknown",
            "profile_icon": profile.get("icon") or None,
            "whapi_status": whapi_status,
            "document_ai_status": "Configured" if self._ocr.configured else "Not Configured",
            "last_sync": last_sync.isoformat() if last_sync else None,
            "stats": {
                "chats": sum(1 for chat in chats if chat.get("type") == "contact"),
                "groups": len(groups),
                "documents": await self._storage.count_documents(),
            },
        }
