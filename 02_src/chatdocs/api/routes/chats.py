"""Chat API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ...app import Application
from ...errors import ChatDocsError
from ...logging_config import get_logger
from ...services import placeholder_chat

logger = get_logger(__name__)


class AssignRequest(BaseModel):
    """Request model for assigning a chat to an organization."""

    chat_id: str | None = None
    organization_id: str | None = None


def create_chats_router(app: Application) -> APIRouter:
    """Create chats router."""
    router = APIRouter(prefix="/api/chats", tags=["chats"])

    @router.get("")
    async def list_chats() -> list[dict]:
        """Provider chats and groups merged with stored state."""
        try:
            return jsonable_encoder(await app.chats.list_chats())
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/individual")
    async def list_individual_chats() -> list[dict]:
        try:
            return jsonable_encoder(await app.chats.list_individual_chats())
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/groups")
    async def list_groups() -> list[dict]:
        try:
            return jsonable_encoder(await app.chats.list_groups())
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/assign")
    async def assign_chat(request: AssignRequest) -> dict:
        try:
            chat = await app.chats.assign(request.chat_id, request.organization_id)
            return jsonable_encoder(chat)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{chat_id}")
    async def get_chat(chat_id: str) -> dict[str, Any]:
        """Chat details; never fails the UI for an unreachable provider."""
        try:
            return jsonable_encoder(await app.chats.get_chat(chat_id))
        except Exception as e:
            logger.error("Error getting chat %s: %s", chat_id, e, exc_info=True)
            return placeholder_chat(chat_id)

    return router
