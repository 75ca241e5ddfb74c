"""SEMS Monitor — Notification Models.

Dataclasses and enums shared by the message engine, the dispatcher and
the notification session: channels, alert types, the two fact sheet
families, the generated message and the dispatch result.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# ═══════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════


class Channel(str, Enum):
    """Delivery medium for a notification.

    SMS is a recognized value whose delivery is not implemented; the
    dispatcher answers it with a fixed 'unsupported' result.
    """

    SMS = "SMS"
    EMAIL = "Email"

    @classmethod
    def parse(cls, value: object) -> Optional["Channel"]:
        """Map a loose channel value to a Channel, or None if unknown.

        Accepts enum members, any casing of 'sms' / 'email', and the
        legacy 'GMail' spelling used by older dashboard forms.
        """
        if isinstance(value, Channel):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        if key == "sms":
            return cls.SMS
        if key in ("email", "gmail"):
            return cls.EMAIL
        return None


class AlertType(str, Enum):
    """Kinds of customer alert the operator can send."""

    TAMPERING = "Tampering"
    OUTAGE_SCHEDULED = "Outage-Scheduled"
    OUTAGE_UNSCHEDULED_MAINTENANCE = "Outage-Unscheduled-Maintenance"
    OUTAGE_UNSCHEDULED_TAMPERING = "Outage-Unscheduled-Tampering"

    @property
    def is_tampering(self) -> bool:
        return self in (AlertType.TAMPERING, AlertType.OUTAGE_UNSCHEDULED_TAMPERING)

    @classmethod
    def parse(cls, value: object) -> Optional["AlertType"]:
        if isinstance(value, AlertType):
            return value
        if not isinstance(value, str):
            return None
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return None


# ═══════════════════════════════════════════════════════════
# Fact Sheets
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AlertFactSheet:
    """What an alert notification should say.

    Attributes:
        customer_name: Addressee shown to the model; never a salutation.
        meter_id: Device identifier, used for logging and correlation only.
            It must never appear in generated alert text.
        alert_type: Which alert to send.
        notification_method: Target channel.
        outage_details: Free text (date, time, area). Required for
            Outage-Scheduled, ignored otherwise.
    """

    customer_name: str
    meter_id: str
    alert_type: AlertType
    notification_method: Channel
    outage_details: Optional[str] = None


@dataclass(frozen=True)
class BillingFactSheet:
    """What a billing notification should say.

    Attributes:
        customer_name: Customer the bill belongs to.
        meter_id: Device identifier.
        amount_due: Decimal string without currency symbol, e.g. '123.45'.
        due_date: Display-ready due date.
        usage: Display-ready usage, e.g. '10.00 kWh'.
        statement_link: http(s) URL of the full statement.
        notification_method: Target channel.
    """

    customer_name: str
    meter_id: str
    amount_due: str
    due_date: str
    usage: str
    statement_link: str
    notification_method: Channel


FactSheet = Union[AlertFactSheet, BillingFactSheet]


# ═══════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeneratedMessage:
    """A complete generated notification.

    ``subject`` only matters for Email and is empty for SMS.
    """

    subject: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"subject": self.subject, "body": self.body}


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one delivery attempt, shown to the operator verbatim."""

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "DispatchResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str) -> "DispatchResult":
        return cls(success=False, message=message)
