"""Provider webhook route."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ...app import Application
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_webhook_router(app: Application) -> APIRouter:
    """Create webhook router."""
    router = APIRouter(tags=["webhook"])

    @router.post("/webhook", response_class=PlainTextResponse)
    async def receive_webhook(request: Request) -> str:
        """Acknowledge a provider event and ingest it in the background."""
        try:
            payload = await request.json()
        except ValueError:
            logger.warning("Webhook body is not valid JSON")
            return "OK"

        if not isinstance(payload, dict):
            logger.warning("Webhook body is not an object")
            return "OK"

        logger.debug("Received webhook event: %s", payload.get("event"))
        if payload.get("event") == "message":
            app.tasks.submit(app.ingestion.handle_event(payload), name="webhook:message")
        else:
            await app.ingestion.handle_event(payload)
        return "OK"

    return router
