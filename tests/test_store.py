"""Unit tests for the in-memory store, the device repository and SSE parsing."""

import asyncio
import json

import pytest

from sems_monitor.devices.models import DeviceAccount
from sems_monitor.devices.normalizer import DeviceStatus
from sems_monitor.errors import ValidationError
from sems_monitor.store.firebase_store import SSEParser
from sems_monitor.store.memory_store import MemoryStore
from sems_monitor.store.repository import DeviceRepository


def test_memory_store_get_set_remove():
    async def scenario():
        store = MemoryStore()
        await store.set("devices/a", {"Name": "A"})
        assert await store.get("devices/a/Name") == "A"
        assert await store.get("devices/missing") is None

        await store.remove("devices/a")
        # Empty parents are pruned
        assert await store.get("devices") is None

    asyncio.run(scenario())


def test_memory_store_returns_copies():
    async def scenario():
        store = MemoryStore({"devices": {"a": {"Name": "A"}}})
        record = await store.get("devices/a")
        record["Name"] = "changed"
        assert await store.get("devices/a/Name") == "A"

    asyncio.run(scenario())


def test_memory_store_refuses_root_writes():
    async def scenario():
        store = MemoryStore()
        with pytest.raises(ValueError):
            await store.set("/", {"x": 1})
        with pytest.raises(ValueError):
            await store.remove("")

    asyncio.run(scenario())


def test_memory_store_subscribe_and_unsubscribe():
    async def scenario():
        store = MemoryStore({"devices": {"a": {"Name": "A"}}})
        seen = []
        unsubscribe = await store.subscribe("devices", seen.append)

        await store.set("devices/b", {"Name": "B"})
        await store.set("other/x", 1)
        await unsubscribe()
        await store.remove("devices/a")
        return seen

    seen = asyncio.run(scenario())
    assert seen == [
        {"a": {"Name": "A"}},
        {"a": {"Name": "A"}, "b": {"Name": "B"}},
    ]


def test_memory_store_from_json_file(tmp_path, device_records):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"devices": device_records}), encoding="utf-8")

    store = MemoryStore.from_json_file(path)
    record = asyncio.run(store.get("devices/09171234567"))
    assert record["Name"] == "Jane Cruz"


def test_repository_lists_and_gets_devices(memory_store):
    repo = DeviceRepository(memory_store)

    devices = asyncio.run(repo.list_devices())
    assert [d.device_id for d in devices] == ["09171234567", "09181112222", "09190000000"]

    assert asyncio.run(repo.get_device("09181112222")).name == "Pedro Reyes"
    assert asyncio.run(repo.get_device("nope")) is None


def test_repository_create_update_delete(memory_store):
    repo = DeviceRepository(memory_store)

    async def scenario():
        key = await repo.create_account(
            DeviceAccount(name="New User", contact_number=" 09995551234 ", price=9.0)
        )
        created = await repo.get_device(key)

        await repo.update_account(
            key, DeviceAccount(name="Renamed", contact_number=key, status=DeviceStatus.DEACTIVATED)
        )
        updated = await repo.get_device(key)

        await repo.delete_device(key)
        return key, created, updated, await repo.get_device(key)

    key, created, updated, deleted = asyncio.run(scenario())
    assert key == "09995551234"
    assert created.status is DeviceStatus.ACTIVATED
    assert created.raw["role"] == "User"
    assert updated.name == "Renamed"
    assert updated.status is DeviceStatus.DEACTIVATED
    assert deleted is None


@pytest.mark.parametrize(
    "account",
    [
        DeviceAccount(name="", contact_number="0917"),
        DeviceAccount(name="Jane", contact_number=""),
        DeviceAccount(name="Jane", contact_number="a/b"),
    ],
)
def test_repository_rejects_invalid_accounts(memory_store, account):
    repo = DeviceRepository(memory_store)
    with pytest.raises(ValidationError):
        asyncio.run(repo.create_account(account))


def test_repository_watch_delivers_device_lists(memory_store):
    repo = DeviceRepository(memory_store)

    async def scenario():
        counts = []
        unsubscribe = await repo.watch(lambda devices: counts.append(len(devices)))
        await repo.delete_device("09190000000")
        await unsubscribe()
        return counts

    assert asyncio.run(scenario()) == [3, 2]


def test_sse_parser_assembles_events():
    parser = SSEParser()
    lines = [
        "event: put",
        'data: {"path": "/", "data": {"a": 1}}',
        "",
        ": keep-alive comment",
        "event: keep-alive",
        "data: null",
        "",
        "",
    ]
    events = [event for event in map(parser.feed, lines) if event is not None]
    assert events == [
        ("put", '{"path": "/", "data": {"a": 1}}'),
        ("keep-alive", "null"),
    ]


def test_sse_parser_joins_multiline_data():
    parser = SSEParser()
    assert parser.feed("data: one") is None
    assert parser.feed("data: two") is None
    assert parser.feed("\n") == ("message", "one\ntwo")
