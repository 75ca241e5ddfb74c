"""SEMS Monitor — Store Package.

Realtime database access. Components:
  - FirebaseStore: REST + event-stream client for the Realtime Database
  - MemoryStore: in-process store with the same surface
  - DeviceRepository: device records as Device / DeviceAccount
"""

from sems_monitor.store.firebase_store import FirebaseStore
from sems_monitor.store.memory_store import MemoryStore
from sems_monitor.store.repository import DeviceRepository

__all__ = [
    "FirebaseStore",
    "MemoryStore",
    "DeviceRepository",
]
