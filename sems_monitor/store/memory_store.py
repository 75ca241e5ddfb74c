"""SEMS Monitor — In-Memory Realtime Store.

A process-local stand-in for the realtime database with the same
get / set / remove / subscribe surface as FirebaseStore. Used by tests
and for offline runs seeded from a JSON export.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from sems_monitor.errors import ConfigurationError
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

OnChange = Callable[[Any], None]


def _split(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


def _related(a: list[str], b: list[str]) -> bool:
    """True when one path is an ancestor of (or equal to) the other."""
    shorter = min(len(a), len(b))
    return a[:shorter] == b[:shorter]


class MemoryStore:
    """Nested-dict realtime store.

    Subscribers are called synchronously with the current value at their
    path: once on subscribe, then after every write that touches it.
    """

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self._root: dict[str, Any] = copy.deepcopy(data) if data else {}
        self._subscribers: list[tuple[list[str], OnChange]] = []

    @classmethod
    def from_json_file(cls, path: Path) -> "MemoryStore":
        """Seed a store from a realtime-database JSON export.

        Raises:
            ConfigurationError: If the file is missing, unreadable or not JSON.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load store file {path}: {e}") from e
        logger.info("Memory store seeded from %s", path)
        return cls(data if isinstance(data, dict) else {})

    async def __aenter__(self) -> "MemoryStore":
        return self

    async def __aexit__(self, *args: object) -> None:
        self._subscribers.clear()

    def _lookup(self, parts: list[str]) -> Any:
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    async def get(self, path: str) -> Any:
        value = self._lookup(_split(path))
        return copy.deepcopy(value)

    async def set(self, path: str, record: Any) -> None:
        parts = _split(path)
        if not parts:
            raise ValueError("Cannot overwrite the store root")
        if record is None:
            await self.remove(path)
            return

        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(record)
        logger.debug("Store set %s", path)
        self._notify(parts)

    async def remove(self, path: str) -> None:
        parts = _split(path)
        if not parts:
            raise ValueError("Cannot remove the store root")

        trail: list[dict[str, Any]] = [self._root]
        for part in parts[:-1]:
            child = trail[-1].get(part)
            if not isinstance(child, dict):
                return
            trail.append(child)
        if parts[-1] not in trail[-1]:
            return
        del trail[-1][parts[-1]]

        # Empty parents disappear, as in the realtime database
        for depth in range(len(trail) - 1, 0, -1):
            if not trail[depth]:
                del trail[depth - 1][parts[depth - 1]]

        logger.debug("Store remove %s", path)
        self._notify(parts)

    async def subscribe(
        self, path: str, on_change: OnChange
    ) -> Callable[[], Awaitable[None]]:
        """Watch a path; returns a coroutine function that unsubscribes."""
        entry = (_split(path), on_change)
        self._subscribers.append(entry)
        on_change(await self.get(path))

        async def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def _notify(self, changed: list[str]) -> None:
        for watched, callback in list(self._subscribers):
            if _related(watched, changed):
                callback(copy.deepcopy(self._lookup(watched)))
