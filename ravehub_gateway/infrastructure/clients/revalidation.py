"""Storefront revalidation client - refreshes event pages when capacity changes"""

import logging
import httpx
from typing import List
from ravehub_gateway.config import settings
from ravehub_gateway.domain.exceptions import RevalidationError
from ravehub_gateway.infrastructure.observability.metrics import revalidation_failure_counter

logger = logging.getLogger(__name__)


class RevalidationClient:
    """Client for the storefront on-demand revalidation endpoint"""

    def __init__(self, base_url: str | None = None, token: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.revalidate_base_url).rstrip("/")
        self.token = token if token is not None else settings.revalidate_token
        self.timeout = timeout or settings.http_timeout_seconds

    async def revalidate_path(self, client: httpx.AsyncClient, path: str) -> None:
        """
        Ask the storefront to rebuild one path.

        Raises:
            RevalidationError: On timeout, network or HTTP errors
        """
        try:
            response = await client.post(
                f"{self.base_url}/api/revalidate",
                json={"token": self.token, "path": path},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RevalidationError(f"Revalidation timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise RevalidationError(f"Revalidation error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise RevalidationError(f"Revalidation request failed: {e}") from e

    async def revalidate_event_capacity(self, event_id: str) -> List[str]:
        """Refresh the event page and the events listing; returns the paths revalidated"""
        paths = [f"/eventos/{event_id}", "/eventos"]
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for path in paths:
                await self.revalidate_path(client, path)
        return paths

    async def revalidate_in_background(self, event_id: str) -> None:
        """Background task wrapper: failures are logged and counted, never raised"""
        try:
            await self.revalidate_event_capacity(event_id)
        except RevalidationError as e:
            revalidation_failure_counter.inc()
            logger.warning("Capacity revalidation failed: %s", e, extra={"event_id": event_id})
