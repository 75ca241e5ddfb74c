"""SEMS Monitor — Device Models.

Typed views over the untyped device records stored under ``devices/<id>``.

Each model includes:
  - from_record(): builds the view from a raw record dict
  - to_record(): (accounts only) the dict written back to the store
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sems_monitor.devices.normalizer import (
    DeviceStatus,
    PaymentStatus,
    encode_flag,
    encode_payment,
    encode_status,
    normalize_bool_flag,
    normalize_payment,
    normalize_status,
)


def _to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a numeric-ish record value to float, returning default on failure."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Device:
    """One metered customer as the dashboard sees it.

    Attributes:
        device_id: Record key under ``devices/``.
        name: Customer name.
        email: Email recipient for notifications.
        address: Service location; used for outage hot-spot stats.
        contact_number: SMS recipient; also the key new accounts use.
        serial: Meter serial number.
        price: Tariff per kWh.
        kwh: Latest reading ('kwhr' preferred over 'kwh').
        status: Normalized activation status.
        tampered: Normalized tampering flag.
        outage: Normalized outage flag.
        payment: Normalized payment status.
        raw: The record exactly as read.
    """

    device_id: str
    name: str = ""
    email: str = ""
    address: str = ""
    contact_number: str = ""
    serial: str = ""
    price: float = 0.0
    kwh: float = 0.0
    status: DeviceStatus = DeviceStatus.UNKNOWN
    tampered: bool = False
    outage: bool = False
    payment: PaymentStatus = PaymentStatus.PENDING
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, device_id: str, record: Any) -> "Device":
        """Build a Device from a raw record. Non-dict records yield an empty view."""
        if not isinstance(record, dict):
            record = {}

        reading = record.get("kwhr")
        if reading is None:
            reading = record.get("kwh")

        return cls(
            device_id=str(device_id),
            name=_to_text(record.get("Name")),
            email=_to_text(record.get("Email")),
            address=_to_text(record.get("Address")),
            contact_number=_to_text(record.get("Contact Number")),
            serial=_to_text(record.get("Serial")),
            price=_to_float(record.get("Price")),
            kwh=_to_float(reading),
            status=normalize_status(record.get("status") or record.get("Status")),
            tampered=normalize_bool_flag(record.get("tampering")),
            outage=normalize_bool_flag(record.get("OUTAGE")),
            payment=normalize_payment(record.get("payment")),
            raw=dict(record),
        )


@dataclass
class DeviceAccount:
    """Editable account fields from the user-management screen.

    ``outage`` is kept as the operator typed it; the dashboard reads it
    through normalize_bool_flag.
    """

    name: str
    email: str = ""
    address: str = ""
    contact_number: str = ""
    serial: str = ""
    payment_status: PaymentStatus = PaymentStatus.PAID
    status: DeviceStatus = DeviceStatus.ACTIVATED
    price: float = 0.0
    outage: str = ""

    def to_record(self) -> dict[str, Any]:
        """The record written to the store, in the legacy wire encoding.

        Saving an account resets the reading and the tampering flag, as
        the operator form always has.
        """
        return {
            "Name": self.name,
            "Email": self.email,
            "Address": self.address,
            "Contact Number": self.contact_number,
            "Serial": self.serial,
            "payment": encode_payment(self.payment_status),
            "status": encode_status(self.status),
            "Price": self.price,
            "OUTAGE": self.outage,
            "kwh": 0,
            "role": "User",
            "tampering": encode_flag(False),
        }

    @classmethod
    def from_device(cls, device: Device) -> "DeviceAccount":
        return cls(
            name=device.name,
            email=device.email,
            address=device.address,
            contact_number=device.contact_number or device.device_id,
            serial=device.serial,
            payment_status=device.payment,
            status=(
                device.status
                if device.status is not DeviceStatus.UNKNOWN
                else DeviceStatus.DEACTIVATED
            ),
            price=device.price,
            outage=_to_text(device.raw.get("OUTAGE")),
        )
