"""SEMS Monitor — Firebase Realtime Database Client.

Async client for the Firebase Realtime Database REST API:
  GET    <database_url>/<path>.json   → value or null
  PUT    <database_url>/<path>.json   → replace value
  DELETE <database_url>/<path>.json   → remove value
  GET with 'Accept: text/event-stream' → change notifications

Uses aiohttp for HTTP calls. Reads retry with backoff; writes are sent
once and surface failures as StoreError.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote

import aiohttp

from sems_monitor.config import StoreConfig
from sems_monitor.errors import StoreError
from sems_monitor.utils.logger import get_logger
from sems_monitor.utils.resilience import retry_async

logger = get_logger(__name__)

OnChange = Callable[[Any], None]

_STREAM_EVENTS = ("put", "patch")
_STREAM_STOP_EVENTS = ("cancel", "auth_revoked")


class SSEParser:
    """Incremental parser for the server-sent events stream.

    Feed it one decoded line at a time; a blank line completes an event
    and ``feed`` returns ``(event, data)``. Lines starting with ':' are
    comments.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> Optional[tuple[str, str]]:
        line = line.rstrip("\r\n")
        if not line:
            if not self._event and not self._data:
                return None
            event = (self._event or "message", "\n".join(self._data))
            self._event, self._data = "", []
            return event
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


class FirebaseStore:
    """Realtime database client bound to one Firebase project.

    Attributes:
        config: StoreConfig with database_url and optional auth token.
    """

    def __init__(self, config: StoreConfig) -> None:
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._streams: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> "FirebaseStore":
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
        )
        logger.debug("Firebase session created for %s", self.config.database_url)
        return self

    async def __aexit__(self, *args: object) -> None:
        for task in list(self._streams):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._streams.clear()
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Firebase session closed")

    # ── Helpers ──────────────────────────────────────────

    def _url(self, path: str) -> str:
        return f"{self.config.database_url}/{quote(path.strip('/'), safe='/')}.json"

    def _params(self) -> dict[str, str]:
        return {"auth": self.config.auth_token} if self.config.auth_token else {}

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise StoreError("Firebase session not created, use 'async with'")
        return self._session

    # ── Reads ────────────────────────────────────────────

    @retry_async(
        max_attempts=3,
        base_delay=0.5,
        exceptions=(aiohttp.ClientError, asyncio.TimeoutError),
    )
    async def _get_json(self, path: str) -> Any:
        session = self._require_session()
        async with session.get(self._url(path), params=self._params()) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise StoreError(f"GET {path} failed ({resp.status}): {body[:200]}")
            return await resp.json(content_type=None)

    async def get(self, path: str) -> Any:
        """Read the value at a path; None when absent."""
        try:
            return await self._get_json(path)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Firebase read of %s failed: %s", path, e)
            raise StoreError(f"Failed to read '{path}': {e}") from e

    # ── Writes ───────────────────────────────────────────

    async def set(self, path: str, record: Any) -> None:
        session = self._require_session()
        try:
            async with session.put(
                self._url(path), params=self._params(), json=record,
            ) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise StoreError(f"PUT {path} failed ({resp.status}): {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Firebase write of %s failed: %s", path, e)
            raise StoreError(f"Failed to write '{path}': {e}") from e
        logger.info("Firebase set %s", path)

    async def remove(self, path: str) -> None:
        session = self._require_session()
        try:
            async with session.delete(self._url(path), params=self._params()) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise StoreError(f"DELETE {path} failed ({resp.status}): {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Firebase delete of %s failed: %s", path, e)
            raise StoreError(f"Failed to remove '{path}': {e}") from e
        logger.info("Firebase remove %s", path)

    # ── Subscriptions ────────────────────────────────────

    async def subscribe(
        self, path: str, on_change: OnChange
    ) -> Callable[[], Awaitable[None]]:
        """Stream changes under a path into ``on_change``.

        The callback receives the full current value at ``path`` after
        every change event. Returns a coroutine function that stops the
        stream.
        """
        self._require_session()
        task = asyncio.create_task(self._stream(path, on_change))
        self._streams.add(task)

        async def unsubscribe() -> None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            self._streams.discard(task)

        return unsubscribe

    async def _stream(self, path: str, on_change: OnChange) -> None:
        session = self._require_session()
        parser = SSEParser()
        try:
            async with session.get(
                self._url(path),
                params=self._params(),
                headers={"Accept": "text/event-stream"},
                timeout=aiohttp.ClientTimeout(total=None, sock_read=None),
            ) as resp:
                if resp.status != 200:
                    logger.error("Firebase stream for %s refused (%d)", path, resp.status)
                    return
                logger.info("Firebase stream opened for %s", path)

                async for raw_line in resp.content:
                    parsed = parser.feed(raw_line.decode("utf-8", errors="replace"))
                    if parsed is None:
                        continue
                    event, data = parsed
                    if event in _STREAM_STOP_EVENTS:
                        logger.warning("Firebase stream for %s ended: %s", path, event)
                        return
                    if event not in _STREAM_EVENTS:
                        continue
                    logger.debug("Firebase %s event on %s: %s", event, path, data[:200])
                    on_change(await self.get(path))
        except (aiohttp.ClientError, asyncio.TimeoutError, StoreError, json.JSONDecodeError) as e:
            logger.error("Firebase stream for %s failed: %s", path, e)
