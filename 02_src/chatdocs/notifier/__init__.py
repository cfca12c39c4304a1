"""Notifier module."""

from .notifier import INotifier, ISubscriber, Notifier
from .websocket import WebSocketSubscriber

__all__ = ["INotifier", "ISubscriber", "Notifier", "WebSocketSubscriber"]
