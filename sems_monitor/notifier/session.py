"""SEMS Monitor — Notification Session.

The generate-then-send flow behind the alert and billing screens:

  fact sheet → engine → current message → (operator confirms) → dispatcher

Each regenerate() call gets a request token from a monotonically
increasing counter. When generations overlap, only the result whose
token is still the latest is kept; earlier ones are dropped when they
resolve.

Also holds the builders that turn a Device into a fact sheet.
"""

from __future__ import annotations

import itertools
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sems_monitor.config import BillingConfig
from sems_monitor.devices.models import Device
from sems_monitor.errors import GenerationFailure, ValidationError
from sems_monitor.generator.engine import MessageEngine
from sems_monitor.models import (
    AlertFactSheet,
    AlertType,
    BillingFactSheet,
    Channel,
    DispatchResult,
    FactSheet,
    GeneratedMessage,
)
from sems_monitor.notifier.dispatcher import NotificationDispatcher
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

NO_MESSAGE = "Please generate a message first."
ALERT_GENERATION_FAILED = "Failed to generate alert notification."
BILLING_GENERATION_FAILED = "Failed to generate billing notification."

_CENTS = Decimal("0.01")


# ═══════════════════════════════════════════════════════════
# Fact sheet builders
# ═══════════════════════════════════════════════════════════


def build_alert_sheet(
    device: Device,
    alert_type: AlertType,
    channel: Channel,
    outage_details: Optional[str] = None,
) -> AlertFactSheet:
    """Alert fact sheet for a device. Details are kept only for Outage-Scheduled."""
    return AlertFactSheet(
        customer_name=device.name,
        meter_id=device.device_id,
        alert_type=alert_type,
        notification_method=channel,
        outage_details=outage_details if alert_type is AlertType.OUTAGE_SCHEDULED else None,
    )


def billing_amount(device: Device) -> str:
    """Reading × tariff, rounded half-up to two decimals."""
    amount = Decimal(str(device.kwh)) * Decimal(str(device.price))
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def build_billing_sheet(
    device: Device,
    channel: Channel,
    today: Optional[date] = None,
    billing: Optional[BillingConfig] = None,
) -> BillingFactSheet:
    """Billing fact sheet for a device's current reading.

    Args:
        device: Device with kwh and price.
        channel: Target channel.
        today: Reference date; due date is ``today + due_in_days``.
        billing: Billing settings; defaults to BillingConfig().
    """
    billing = billing or BillingConfig()
    today = today or date.today()
    due = today + timedelta(days=billing.due_in_days)

    return BillingFactSheet(
        customer_name=device.name,
        meter_id=device.device_id,
        amount_due=billing_amount(device),
        due_date=due.isoformat(),
        usage=f"{device.kwh:.2f} kWh",
        statement_link=f"{billing.statement_base_url.rstrip('/')}/{device.device_id}",
        notification_method=channel,
    )


def default_recipient(device: Device, channel: Channel) -> str:
    """Email address for Email, contact number for SMS."""
    return device.email if channel is Channel.EMAIL else device.contact_number


# ═══════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════


class NotificationSession:
    """One operator's generate-then-send flow.

    Attributes:
        engine: MessageEngine used for generation.
        dispatcher: NotificationDispatcher used for delivery.
        sheet: Fact sheet behind the current message.
        message: Latest generated message, or None.
        error: Operator-facing text of the last generation failure.
    """

    def __init__(self, engine: MessageEngine, dispatcher: NotificationDispatcher) -> None:
        self.engine = engine
        self.dispatcher = dispatcher
        self.sheet: Optional[FactSheet] = None
        self.message: Optional[GeneratedMessage] = None
        self.error: Optional[str] = None
        self._tokens = itertools.count(1)
        self._latest = 0

    @property
    def latest_token(self) -> int:
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    async def regenerate(self, sheet: FactSheet) -> Optional[GeneratedMessage]:
        """Generate a message for ``sheet`` and make it current.

        The previous message is cleared as soon as the request is issued.

        Returns:
            The generated message, or None if generation failed or a
            newer request superseded this one.
        """
        token = next(self._tokens)
        self._latest = token
        self.sheet = sheet
        self.message = None
        self.error = None

        failure_text = (
            ALERT_GENERATION_FAILED
            if isinstance(sheet, AlertFactSheet)
            else BILLING_GENERATION_FAILED
        )
        try:
            message = await self.engine.generate(sheet)
        except (ValidationError, GenerationFailure) as e:
            if not self.is_current(token):
                logger.debug("Discarding stale failure for request %d: %s", token, e)
                return None
            logger.error("Generation for meter %s failed: %s", sheet.meter_id, e)
            self.error = failure_text
            return None

        if not self.is_current(token):
            logger.debug(
                "Discarding stale result for request %d (latest is %d)", token, self._latest,
            )
            return None

        self.message = message
        return message

    async def send(self, recipient: str) -> DispatchResult:
        """Dispatch the current message over the current sheet's channel."""
        if self.message is None or self.sheet is None:
            return DispatchResult.failed(NO_MESSAGE)

        result = await self.dispatcher.dispatch(
            recipient,
            self.message.subject,
            self.message.body,
            self.sheet.notification_method,
        )
        if result.success:
            logger.info("Notification for meter %s delivered", self.sheet.meter_id)
            self.message = None
        return result
