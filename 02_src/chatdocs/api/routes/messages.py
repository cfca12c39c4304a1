"""Message API routes."""

from fastapi import APIRouter, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field

from ...app import Application
from ...errors import ChatDocsError


class SendMessageRequest(BaseModel):
    """Request model for sending a message."""

    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    media_url: str | None = Field(None, alias="mediaUrl")
    media_type: str | None = Field(None, alias="mediaType")
    caption: str | None = None
    quoted_msg_id: str | None = Field(None, alias="quotedMsgId")
    mentions: list[str] = Field(default_factory=list)


class ReactRequest(BaseModel):
    """Request model for reacting to a message."""

    emoji: str | None = None


def create_messages_router(app: Application) -> APIRouter:
    """Create messages router."""
    router = APIRouter(prefix="/api/messages", tags=["messages"])

    @router.get("/{chat_id}")
    async def get_messages(
        chat_id: str,
        limit: int = Query(50, ge=1),
        before: str | None = None,
    ) -> list[dict]:
        """Sync recent history from the provider and return it."""
        try:
            messages = await app.ingestion.sync_history(chat_id, limit, before)
            return jsonable_encoder(messages)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/{chat_id}", status_code=201)
    async def send_message(chat_id: str, request: SendMessageRequest) -> dict:
        try:
            message = await app.messages.send(
                chat_id,
                text=request.text,
                media_url=request.media_url,
                media_type=request.media_type,
                caption=request.caption,
                quoted_id=request.quoted_msg_id,
                mentions=request.mentions,
            )
            return jsonable_encoder(message)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/{chat_id}/react/{message_id}")
    async def react_to_message(
        chat_id: str, message_id: str, request: ReactRequest
    ) -> dict:
        try:
            await app.messages.react(chat_id, message_id, request.emoji)
            return {"success": True}
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
