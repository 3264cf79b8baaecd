"""
HTTP Slot Backend

Client for a remote slot server (see unified_save.server). Documents are
sent and received as raw text bodies.
"""

import asyncio
import logging
import weakref
from typing import Optional, List
from urllib.parse import quote

import httpx

from .base import SlotBackend

logger = logging.getLogger("unified_save.backends.http")


class HTTPSlotBackend(SlotBackend):
    """Remote slot storage over HTTP."""

    name = "http"

    def __init__(
        self,
        base_url: str = "http://localhost:8767",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._headers = headers or {}
        # An AsyncClient is bound to the loop that first used it
        self._clients: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, httpx.AsyncClient]" = (
            weakref.WeakKeyDictionary()
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Client for the running event loop, created on first use."""
        loop = asyncio.get_running_loop()
        client = self._clients.get(loop)
        if client is None:
            client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers=self._headers,
            )
            self._clients[loop] = client
        return client

    @staticmethod
    def _slot_path(key: str) -> str:
        return f"/v1/slots/{quote(key, safe='')}"

    async def save(self, key: str, data: str) -> bool:
        try:
            response = await self.client.put(
                self._slot_path(key),
                content=data.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Save failed for '{key}': {e}")
            return False
        logger.debug(f"Saved: {key}")
        return True

    async def load(self, key: str) -> Optional[str]:
        try:
            response = await self.client.get(self._slot_path(key))
            if response.status_code == 404:
                logger.warning(f"Slot not found: {key}")
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Load failed for '{key}': {e}")
            return None
        return response.text

    async def exists(self, key: str) -> bool:
        try:
            response = await self.client.head(self._slot_path(key))
        except httpx.HTTPError as e:
            logger.error(f"Exists check failed for '{key}': {e}")
            return False
        return response.status_code == 200

    async def delete(self, key: str) -> bool:
        try:
            response = await self.client.delete(self._slot_path(key))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Delete failed for '{key}': {e}")
            return False
        return True

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        params = {"prefix": prefix} if prefix else None
        try:
            response = await self.client.get("/v1/slots", params=params)
            response.raise_for_status()
            return list(response.json().get("keys", []))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Listing keys failed: {e}")
            return []

    async def aclose(self) -> None:
        """Close the client of the running loop."""
        client = self._clients.pop(asyncio.get_running_loop(), None)
        if client is not None:
            await client.aclose()

    def describe(self) -> str:
        return f"http:{self.base_url}"
