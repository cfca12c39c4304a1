"""Real-time notification websocket."""

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import Application
from ...logging_config import get_logger
from ...notifier import WebSocketSubscriber

logger = get_logger(__name__)


def create_realtime_router(app: Application) -> APIRouter:
    """Create websocket router."""
    router = APIRouter(tags=["realtime"])

    @router.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        """
        Viewer connection.

        Client frames: {"action": "join_chat" | "leave_chat", "chat_id": ...}.
        Server frames: {"event", "topic", "data", "timestamp"}.
        """
        await websocket.accept()
        subscriber = WebSocketSubscriber(websocket)
        app.notifier.connect(subscriber)
        logger.info("Viewer connected (%d open)", app.notifier.connection_count)

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    frame = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring non-JSON websocket frame")
                    continue
                if not isinstance(frame, dict):
                    continue

                action = frame.get("action")
                chat_id = frame.get("chat_id")
                if not chat_id:
                    logger.warning("Websocket frame without chat_id: %s", action)
                    continue

                if action == "join_chat":
                    app.notifier.join(str(chat_id), subscriber)
                    logger.debug("Viewer joined chat %s", chat_id)
                elif action == "leave_chat":
                    app.notifier.leave(str(chat_id), subscriber)
                    logger.debug("Viewer left chat %s", chat_id)
                else:
                    logger.warning("Unknown websocket action: %s", action)

        except WebSocketDisconnect:
            pass
        finally:
            app.notifier.disconnect(subscriber)
            logger.info("Viewer disconnected (%d open)", app.notifier.connection_count)

    return router
