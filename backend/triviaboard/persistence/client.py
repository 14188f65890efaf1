from __future__ import annotations

import asyncio
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from triviaboard.config import Settings, get_settings
from triviaboard.ranking.exceptions import DataIncompleteError
from triviaboard.ranking.models import EventSnapshot
from triviaboard.realtime.conflicts import SaveResult

from .config import PersistenceConfig
from .exceptions import (
    PersistenceAPIError,
    PersistenceAuthError,
    PersistenceNotFoundError,
)

logger = logging.getLogger(__name__)


class PersistenceClient:
    """
    HTTP client for the record-keeping service.

    Serves as both the SnapshotSource for live leaderboards and the
    ScoreWriter for the conflict coordinator.
    """

    def __init__(
        self,
        config: PersistenceConfig | None = None,
        api_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or PersistenceConfig()
        if api_token:
            self.config.api_token = api_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info(f"Initialized PersistenceClient ({self.config.base_url})")

    async def __aenter__(self) -> PersistenceClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        headers = {}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"

        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            limits=limits,
            headers=headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed PersistenceClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "PersistenceClient must be used as async context manager"
            )
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        retry_count = 0
        last_error: Exception | str | None = None

        while retry_count < self.config.max_retries:
            try:
                response = await self.client.request(method=method, url=endpoint, json=json_data)

                if response.status_code in (401, 403):
                    raise PersistenceAuthError(
                        "Not authorized", status_code=response.status_code
                    )
                elif response.status_code == 404:
                    raise PersistenceNotFoundError(
                        f"Resource not found: {endpoint}", status_code=404
                    )
                elif response.status_code >= 500:
                    last_error = f"server error {response.status_code}"
                    wait_time = self.config.retry_backoff_seconds * 2 ** retry_count
                    logger.warning(
                        f"Server error {response.status_code}, "
                        f"retrying in {wait_time}s..."
                    )
                    retry_count += 1
                    if retry_count < self.config.max_retries:
                        await asyncio.sleep(wait_time)
                    continue
                elif response.status_code >= 400:
                    raise PersistenceAPIError(
                        f"Request rejected: {response.text}", status_code=response.status_code
                    )

                return response.json()

            except httpx.TimeoutException as e:
                last_error = e
                retry_count += 1
                if retry_count < self.config.max_retries:
                    logger.warning(f"Timeout, retrying ({retry_count})...")
                    await asyncio.sleep(self.config.retry_backoff_seconds)

            except httpx.RequestError as e:
                last_error = e
                wait_time = self.config.retry_backoff_seconds * 2 ** retry_count
                retry_count += 1
                if retry_count < self.config.max_retries:
                    logger.warning(f"Network error: {e}, retrying in {wait_time}s...")
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"Network error: {e}")

        raise PersistenceAPIError(
            f"Request failed after {retry_count} retries: {last_error}"
        )

    async def fetch(self, event_id: str) -> EventSnapshot:
        """Fetch the full snapshot (event, rounds, teams, scores)."""
        data = await self._request("GET", f"api/events/{event_id}/snapshot")
        return parse_snapshot(data)

    async def save_score(
        self,
        event_id: str,
        team_id: str,
        round_number: int,
        points: Decimal,
    ) -> SaveResult:
        """Create or update one score; failures come back as SaveResult."""
        payload = {
            "teamId": team_id,
            "roundNumber": round_number,
            "points": str(points),
        }
        try:
            data = await self._request("PUT", f"api/events/{event_id}/scores", json_data=payload)
        except PersistenceAPIError as e:
            logger.error(f"Score write failed for {team_id}/round {round_number}: {e}")
            return SaveResult(success=False, error=str(e))

        if data.get("success") is False:
            return SaveResult(success=False, error=data.get("error") or "Failed to save score")

        old_points = data.get("oldPoints")
        return SaveResult(
            success=True,
            old_points=Decimal(str(old_points)) if old_points is not None else None,
        )


def parse_snapshot(data: dict[str, Any]) -> EventSnapshot:
    """
    Validate a raw snapshot payload.

    Raises:
        DataIncompleteError: If teams, rounds or scores are absent
        ValidationError: If present data is malformed
    """
    snapshot = EventSnapshot.model_validate(data)
    missing = [
        name for name in ("teams", "rounds", "scores")
        if getattr(snapshot, name) is None
    ]
    if missing:
        raise DataIncompleteError(missing)
    return snapshot


def load_snapshot_file(path: Path) -> EventSnapshot:
    """Load a snapshot from a .yaml/.yml or .json file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"Snapshot file {path} does not contain an object")

    try:
        return parse_snapshot(data)
    except ValidationError as e:
        logger.error(f"Invalid snapshot in {path}: {e}")
        raise


def create_persistence_client(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PersistenceClient:
    """Create a PersistenceClient pointed at the configured persistence API."""
    settings = settings or get_settings()
    config = PersistenceConfig(
        base_url=settings.persistence_api_url,
        api_token=settings.persistence_api_token,
    )
    return PersistenceClient(config=config, transport=transport)
