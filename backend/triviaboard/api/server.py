"""
FastAPI application for the leaderboard and broadcast relay.

Serves:
- Leaderboard computation over posted snapshots
- Public event selection
- Channel fan-out to WebSocket subscribers
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from triviaboard import __version__
from triviaboard.api.websocket import ConnectionManager
from triviaboard.api.websocket import router as websocket_router
from triviaboard.config import Settings, get_settings
from triviaboard.observability import initialize_logfire
from triviaboard.ranking import (
    DataIncompleteError,
    EventSnapshot,
    build_leaderboard,
    select_public_view,
)
from triviaboard.realtime import MessageFormatError, parse_message, to_envelope

logger = logging.getLogger(__name__)


class PublicViewRequest(BaseModel):
    """Candidate events for the public page."""

    events: list[EventSnapshot] = Field(default_factory=list)
    now: datetime | None = None


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Settings default to the cached singleton."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_logfire(settings, app)
        logger.info(
            f"Starting Triviaboard server on {settings.server.host}:{settings.server.port}"
        )
        yield
        logger.info("Shutting down Triviaboard server")

    app = FastAPI(
        title="Triviaboard API",
        description="Live trivia leaderboard and score broadcast relay",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.connections = ConnectionManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DataIncompleteError)
    async def data_incomplete_handler(request: Request, exc: DataIncompleteError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "missing": exc.missing},
        )

    @app.exception_handler(MessageFormatError)
    async def message_format_handler(request: Request, exc: MessageFormatError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "service": "triviaboard",
            "version": __version__,
            "connections": app.state.connections.get_total_connections(),
        }

    @app.post("/api/leaderboard", tags=["Leaderboard"])
    async def compute_leaderboard(snapshot: EventSnapshot) -> dict[str, Any]:
        """Rank a posted snapshot and return the leaderboard document."""
        leaderboard = build_leaderboard(snapshot)
        return leaderboard.model_dump(mode="json", by_alias=True)

    @app.post("/api/public", tags=["Leaderboard"])
    async def public_view(body: PublicViewRequest) -> dict[str, Any]:
        """Choose what the public page shows from the posted events."""
        view = select_public_view(
            body.events,
            now=body.now,
            recent_completed_hours=settings.leaderboard.recent_completed_hours,
        )
        return view.model_dump(mode="json", by_alias=True)

    @app.post("/api/channels/{channel}/messages", tags=["Realtime"])
    async def publish_message(channel: str, envelope: dict[str, Any]) -> dict[str, Any]:
        """Validate an envelope and fan it out to the channel's subscribers."""
        message = parse_message(envelope)
        delivered = await app.state.connections.broadcast(channel, to_envelope(message))
        logger.info(f"Relayed {message.name} on {channel} to {delivered} subscriber(s)")
        return {"channel": channel, "name": message.name, "delivered": delivered}

    app.include_router(websocket_router)

    return app
