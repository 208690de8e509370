"""
Engine Client - HTTP access to the engine's schema endpoints.

Only the read-only endpoints the core needs are covered:
- /system_stats: reachability check
- /object_info: node class schema for the NodeRegistry
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from comfyx_studio.core.config import StudioConfig

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Base exception for engine communication errors."""
    pass


class EngineConnectionError(EngineError):
    """Engine unreachable or request timed out."""
    pass


class EngineResponseError(EngineError):
    """Engine answered with an error status or an unreadable body."""
    status: int | None = None

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class EngineClient:
    """
    Client for the engine's HTTP API.

    A session is opened per request, as the schema is fetched rarely.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8188", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: StudioConfig) -> EngineClient:
        return cls(config.engine_url, config.request_timeout)

    async def check_connection(self) -> bool:
        """Return True if the engine answers /system_stats."""
        try:
            await self._get_json("/system_stats")
        except EngineError as e:
            logger.info("Engine not reachable at %s: %s", self.base_url, e)
            return False
        return True

    async def get_object_info(self) -> dict[str, Any]:
        """
        Fetch the node class schema.

        Raises:
            EngineConnectionError: Engine unreachable
            EngineResponseError: Error status or non-object body
        """
        data = await self._get_json("/object_info")
        if not isinstance(data, dict):
            raise EngineResponseError("/object_info did not return a JSON object")
        return data

    async def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        raise EngineResponseError(
                            f"GET {path} failed with status {resp.status}: {text[:200]}",
                            status=resp.status,
                        )
                    try:
                        return await resp.json(content_type=None)
                    except ValueError as e:
                        raise EngineResponseError(f"GET {path} returned invalid JSON: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EngineConnectionError(f"Cannot reach engine at {self.base_url}: {e}") from e
