"""HTTP and WebSocket surface for Triviaboard."""

from .server import create_app
from .websocket import ConnectionManager

__all__ = ["create_app", "ConnectionManager"]
