"""Document API routes."""

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...app import Application
from ...errors import ChatDocsError, NotFoundError
from ...pipeline import ProcessingStatus


def create_documents_router(app: Application) -> APIRouter:
    """Create documents router."""
    router = APIRouter(prefix="/api/documents", tags=["documents"])

    @router.get("")
    async def list_documents() -> list[dict]:
        try:
            return jsonable_encoder(await app.storage.list_documents())
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/chat/{chat_id}")
    async def list_chat_documents(chat_id: str) -> list[dict]:
        """Documents of one chat, newest first."""
        try:
            chat = await app.storage.get_chat(chat_id)
            if chat is None:
                raise NotFoundError("Chat not found")
            return jsonable_encoder(await app.storage.list_documents_by_chat(chat.id))
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/process/{message_id}")
    async def process_message(message_id: str) -> JSONResponse:
        """Request OCR for a stored message attachment."""
        try:
            result = await app.documents.trigger(message_id)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if result.status == ProcessingStatus.ALREADY_PROCESSED:
            return JSONResponse(
                status_code=400,
                content={
                    "message": "Document already processed",
                    "document_id": result.document.id,
                },
            )
        return JSONResponse(
            status_code=202, content={"message": "Document processing started"}
        )

    @router.get("/{document_id}")
    async def get_document(document_id: str) -> dict:
        try:
            document = await app.storage.get_document(document_id)
            if document is None:
                raise NotFoundError("Document not found")
            return jsonable_encoder(document)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
