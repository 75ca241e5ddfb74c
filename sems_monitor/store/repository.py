"""SEMS Monitor — Device Repository.

Maps the realtime store's untyped records under ``devices/`` to Device
views and DeviceAccount writes. Works with any store exposing
get / set / remove / subscribe (MemoryStore, FirebaseStore).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol

from sems_monitor.devices.models import Device, DeviceAccount
from sems_monitor.errors import ValidationError
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class RealtimeStore(Protocol):
    async def get(self, path: str) -> Any: ...

    async def set(self, path: str, record: Any) -> None: ...

    async def remove(self, path: str) -> None: ...

    async def subscribe(
        self, path: str, on_change: Callable[[Any], None]
    ) -> Callable[[], Awaitable[None]]: ...


def _devices_from_snapshot(snapshot: Any) -> list[Device]:
    if not isinstance(snapshot, dict):
        return []
    return [Device.from_record(key, record) for key, record in snapshot.items()]


def _check_key(device_id: str) -> str:
    key = (device_id or "").strip()
    if not key or "/" in key:
        raise ValidationError(f"Invalid device id: {device_id!r}")
    return key


class DeviceRepository:
    """CRUD and change watching for device records.

    Attributes:
        store: The realtime store collaborator.
        root: Path holding all device records.
    """

    def __init__(self, store: RealtimeStore, root: str = "devices") -> None:
        self.store = store
        self.root = root.strip("/")

    def _path(self, device_id: str) -> str:
        return f"{self.root}/{_check_key(device_id)}"

    async def list_devices(self) -> list[Device]:
        devices = _devices_from_snapshot(await self.store.get(self.root))
        logger.debug("Loaded %d devices", len(devices))
        return devices

    async def get_device(self, device_id: str) -> Optional[Device]:
        record = await self.store.get(self._path(device_id))
        if record is None:
            logger.info("Device %s not found", device_id)
            return None
        return Device.from_record(device_id, record)

    async def create_account(self, account: DeviceAccount) -> str:
        """Write a new account keyed by its contact number; returns the key."""
        if not account.name.strip():
            raise ValidationError("Account name is required.")
        key = _check_key(account.contact_number)
        await self.store.set(self._path(key), account.to_record())
        logger.info("Created account %s", key)
        return key

    async def update_account(self, device_id: str, account: DeviceAccount) -> None:
        """Replace the record at ``device_id`` (the key does not move)."""
        if not account.name.strip():
            raise ValidationError("Account name is required.")
        await self.store.set(self._path(device_id), account.to_record())
        logger.info("Updated account %s", device_id)

    async def delete_device(self, device_id: str) -> None:
        await self.store.remove(self._path(device_id))
        logger.info("Deleted device %s", device_id)

    async def watch(
        self, on_change: Callable[[list[Device]], None]
    ) -> Callable[[], Awaitable[None]]:
        """Call ``on_change`` with the full device list on every change."""
        return await self.store.subscribe(
            self.root, lambda snapshot: on_change(_devices_from_snapshot(snapshot)),
        )
