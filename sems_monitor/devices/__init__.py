"""SEMS Monitor — Devices Package.

Typed, normalized views over raw device records.
Components:
  - normalizer: total mapping of legacy status / flag / payment encodings
  - models: Device (read view) and DeviceAccount (operator edits)
  - dashboard: search, status filters, summary counters, badges
"""

from sems_monitor.devices.normalizer import (
    DeviceStatus,
    PaymentStatus,
    normalize_bool_flag,
    normalize_payment,
    normalize_status,
)
from sems_monitor.devices.models import Device, DeviceAccount
from sems_monitor.devices.dashboard import DashboardSummary, StatusFilter, filter_devices, summarize

__all__ = [
    "DeviceStatus",
    "PaymentStatus",
    "normalize_bool_flag",
    "normalize_payment",
    "normalize_status",
    "Device",
    "DeviceAccount",
    "DashboardSummary",
    "StatusFilter",
    "filter_devices",
    "summarize",
]
