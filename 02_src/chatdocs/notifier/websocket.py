"""WebSocket adapter for notifier subscribers."""

from fastapi import WebSocket

from ..models import Notification


class WebSocketSubscriber:
    """Delivers notifications as JSON frames on one websocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def send(self, notification: Notification) -> None:
        await self._websocket.send_json(notification.to_dict())
