"""SEMS Monitor — Dashboard Views.

Search, status filtering, summary counters and badge labels for the
device list. Works purely on normalized Device objects; it never looks
at raw record fields.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sems_monitor.devices.models import Device
from sems_monitor.devices.normalizer import DeviceStatus


class StatusFilter(str, Enum):
    ALL = "All"
    ACTIVATED = "Activated"
    DEACTIVATED = "Deactivated"
    TAMPERED = "Tampered Meter"
    OUTAGE = "Outage Detected"

    @classmethod
    def parse(cls, value: object) -> Optional["StatusFilter"]:
        if isinstance(value, StatusFilter):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        return None


@dataclass(frozen=True)
class DashboardSummary:
    """Counters shown above the device table."""

    total: int
    tampered: int
    outages: int
    most_outage_location: str


def _matches_search(device: Device, term: str) -> bool:
    if not term:
        return True
    term = term.lower()
    return any(
        term in value.lower()
        for value in (device.name, device.address, device.contact_number, device.email)
    )


def _matches_status(device: Device, status_filter: StatusFilter) -> bool:
    if status_filter is StatusFilter.ALL:
        return True
    if status_filter is StatusFilter.ACTIVATED:
        return device.status is DeviceStatus.ACTIVATED
    if status_filter is StatusFilter.DEACTIVATED:
        return device.status is DeviceStatus.DEACTIVATED
    if status_filter is StatusFilter.TAMPERED:
        return device.tampered
    return device.outage


def filter_devices(
    devices: Iterable[Device],
    search: str = "",
    status_filter: StatusFilter = StatusFilter.ALL,
) -> list[Device]:
    """Return devices matching both the search term and the status filter.

    The search is a case-insensitive substring match over name, address,
    contact number and email.
    """
    term = (search or "").strip()
    return [
        d for d in devices
        if _matches_search(d, term) and _matches_status(d, status_filter)
    ]


def summarize(devices: Iterable[Device]) -> DashboardSummary:
    """Count tampered and outage devices and find the outage hot spot.

    The hot spot is the address with the most active outages; devices
    without an address count as 'Unknown'. Ties go to the address seen
    first. 'N/A' when there are no outages.
    """
    devices = list(devices)
    outage_locations = Counter(d.address or "Unknown" for d in devices if d.outage)

    hot_spot = "N/A"
    if outage_locations:
        # Counter preserves insertion order, max() keeps the first maximum
        hot_spot = max(outage_locations, key=outage_locations.__getitem__)

    return DashboardSummary(
        total=len(devices),
        tampered=sum(1 for d in devices if d.tampered),
        outages=sum(outage_locations.values()),
        most_outage_location=hot_spot,
    )


def badge_labels(device: Device) -> dict[str, str]:
    """Display labels for the four status badges of a device row."""
    return {
        "status": device.status.value.upper(),
        "tampering": "Tampering Detected" if device.tampered else "Normal",
        "outage": "Outage Detected" if device.outage else "Normal",
        "payment": device.payment.value,
    }
