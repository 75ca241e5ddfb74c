"""SEMS Monitor — Status Normalizer.

Device records in the realtime database carry legacy, loosely-typed
status fields: strings such as "activated:", "true:", "false", real
booleans, or nothing at all. This module is the only place that reads
those raw encodings. Every function here is total: any input maps to
exactly one canonical value and nothing raises.

The encode_* helpers produce the legacy wire strings for writes, so the
trailing-colon format never leaks out of this module either.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DeviceStatus(str, Enum):
    ACTIVATED = "Activated"
    DEACTIVATED = "Deactivated"
    UNKNOWN = "Unknown"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"


def _clean(raw: Any) -> str:
    """Lower-case, trim, and drop a single trailing colon.

    Non-string input (other than Enum members, which are str here)
    becomes an empty string so callers fall through to their default.
    """
    if not isinstance(raw, str):
        return ""
    text = raw.strip().lower()
    if text.endswith(":"):
        text = text[:-1]
    return text.strip()


def normalize_status(raw: Any) -> DeviceStatus:
    """Map a raw ``status`` field to Activated / Deactivated / Unknown.

    >>> normalize_status("activated:")
    <DeviceStatus.ACTIVATED: 'Activated'>
    >>> normalize_status(None)
    <DeviceStatus.UNKNOWN: 'Unknown'>
    """
    cleaned = _clean(raw)
    if cleaned == "activated":
        return DeviceStatus.ACTIVATED
    if cleaned == "deactivated":
        return DeviceStatus.DEACTIVATED
    return DeviceStatus.UNKNOWN


def normalize_bool_flag(raw: Any) -> bool:
    """Map a raw ``tampering`` / ``OUTAGE`` field to a boolean.

    Booleans pass through; strings are true iff they start with "true"
    once cleaned ("true", "true:", "TRUE "). Everything else is False.
    """
    if isinstance(raw, bool):
        return raw
    return _clean(raw).startswith("true")


def normalize_payment(raw: Any) -> PaymentStatus:
    """Map a raw ``payment`` field to Paid / Pending."""
    if isinstance(raw, bool):
        return PaymentStatus.PAID if raw else PaymentStatus.PENDING
    # "paid" keeps re-normalizing an already-normalized value stable
    if _clean(raw) in ("true", "paid"):
        return PaymentStatus.PAID
    return PaymentStatus.PENDING


# ── Write path ────────────────────────────────────────────


def encode_status(status: DeviceStatus) -> str:
    """Legacy wire form of a device status, e.g. 'activated:'."""
    if status is DeviceStatus.UNKNOWN:
        return ""
    return f"{status.value.lower()}:"


def encode_flag(value: bool) -> str:
    return "true:" if value else "false:"


def encode_payment(payment: PaymentStatus) -> str:
    return encode_flag(payment is PaymentStatus.PAID)
