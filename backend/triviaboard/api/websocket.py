"""WebSocket relay: clients subscribe to channels and receive envelopes."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


class ConnectionManager:
    """Manages WebSocket connections and channel subscriptions."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        # channel -> set of websockets
        self.channel_subscriptions: dict[str, set[WebSocket]] = {}
        self.connection_info: dict[WebSocket, dict] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections.append(websocket)
        self.connection_info[websocket] = {
            "connected_at": datetime.now(timezone.utc),
            "subscriptions": set(),
        }
        logger.info(f"WebSocket connected. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a connection and all of its subscriptions."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        info = self.connection_info.pop(websocket, {})
        for channel in info.get("subscriptions", set()):
            subscribers = self.channel_subscriptions.get(channel)
            if subscribers is not None:
                subscribers.discard(websocket)
                if not subscribers:
                    del self.channel_subscriptions[channel]

        logger.info(f"WebSocket disconnected. Total: {len(self.active_connections)}")

    def subscribe(self, websocket: WebSocket, channel: str) -> None:
        self.channel_subscriptions.setdefault(channel, set()).add(websocket)
        if websocket in self.connection_info:
            self.connection_info[websocket]["subscriptions"].add(channel)
        logger.debug(f"Subscribed to {channel}")

    def unsubscribe(self, websocket: WebSocket, channel: str) -> None:
        subscribers = self.channel_subscriptions.get(channel)
        if subscribers is not None:
            subscribers.discard(websocket)
            if not subscribers:
                del self.channel_subscriptions[channel]

        if websocket in self.connection_info:
            self.connection_info[websocket]["subscriptions"].discard(channel)
        logger.debug(f"Unsubscribed from {channel}")

    async def broadcast(self, channel: str, envelope: dict[str, Any]) -> int:
        """Send an envelope to every subscriber of channel. Returns deliveries."""
        delivered = 0
        disconnected = []

        for websocket in list(self.channel_subscriptions.get(channel, ())):
            try:
                await websocket.send_json(envelope)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to send to websocket: {e}")
                disconnected.append(websocket)

        for ws in disconnected:
            self.disconnect(ws)

        return delivered

    def get_subscriber_count(self, channel: str) -> int:
        return len(self.channel_subscriptions.get(channel, ()))

    def get_total_connections(self) -> int:
        return len(self.active_connections)


def _error(message: str, code: str) -> dict[str, str]:
    return {"type": "error", "message": message, "code": code}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Relay endpoint for live channel updates.

    Client sends:
    - {"action": "subscribe", "channel": "event:42"}
    - {"action": "unsubscribe", "channel": "event:42"}

    Server sends:
    - {"type": "subscribed" | "unsubscribed", "channel": "..."}
    - {"name": "score:updated", "data": {...}} and the other envelopes
    - {"type": "error", "message": "...", "code": "..."}
    """
    manager: ConnectionManager = websocket.app.state.connections
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json(_error("Invalid JSON", "INVALID_JSON"))
                continue

            if not isinstance(message, dict):
                await websocket.send_json(_error("Expected a JSON object", "INVALID_MESSAGE"))
                continue

            action = message.get("action")
            channel = message.get("channel")

            if not action or not channel or not isinstance(channel, str):
                await websocket.send_json(
                    _error("Missing action or channel", "INVALID_MESSAGE")
                )
                continue

            if action == "subscribe":
                manager.subscribe(websocket, channel)
                await websocket.send_json({"type": "subscribed", "channel": channel})
            elif action == "unsubscribe":
                manager.unsubscribe(websocket, channel)
                await websocket.send_json({"type": "unsubscribed", "channel": channel})
            else:
                await websocket.send_json(
                    _error(f"Unknown action: {action}", "UNKNOWN_ACTION")
                )

    except WebSocketDisconnect:
        manager.disconnect(websocket)
        logger.debug("WebSocket disconnected")

    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        manager.disconnect(websocket)


@router.get("/ws/stats")
async def get_websocket_stats(request: Request):
    """Get WebSocket connection statistics."""
    manager: ConnectionManager = request.app.state.connections

    return {
        "total_connections": manager.get_total_connections(),
        "subscriptions": {
            channel: len(subs)
            for channel, subs in manager.channel_subscriptions.items()
        },
    }
