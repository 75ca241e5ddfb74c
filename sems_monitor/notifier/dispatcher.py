"""SEMS Monitor — Notification Dispatcher.

Delivers an already-generated message to one recipient over the chosen
channel and reports what happened as a DispatchResult. The dispatcher
never raises for operational failures: bad input, missing mail
credentials, provider errors and unsupported channels all come back as
``DispatchResult(success=False, message=...)`` with operator-facing text.

One attempt per call. No retries, no queueing.
"""

from __future__ import annotations

import html
from typing import Optional, Protocol

from sems_monitor.config import MailConfig
from sems_monitor.errors import ConfigurationError, DeliveryError, UnsupportedChannel
from sems_monitor.models import Channel, DispatchResult
from sems_monitor.notifier.sendgrid_transport import MailMessage, SendGridTransport
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

INVALID_INPUT = "Invalid input provided."
SMS_UNSUPPORTED = "SMS notifications are not currently supported."


class MailTransport(Protocol):
    async def send(self, message: MailMessage) -> None: ...


def to_html(body: str) -> str:
    """HTML variant of a plain-text body: escaped, newlines as <br>."""
    return "<p>" + html.escape(body).replace("\r\n", "\n").replace("\n", "<br>") + "</p>"


def _is_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


class NotificationDispatcher:
    """Routes messages to the mail transport (Email) or the SMS stub.

    Attributes:
        mail_config: SendGrid credentials, checked on every Email send.
    """

    def __init__(
        self,
        mail_config: MailConfig,
        transport: Optional[MailTransport] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            mail_config: Injected mail settings; may be unconfigured.
            transport: Mail transport. Defaults to a SendGridTransport
                built from ``mail_config`` on first use.
        """
        self.mail_config = mail_config
        self._transport = transport

    @property
    def transport(self) -> MailTransport:
        if self._transport is None:
            self._transport = SendGridTransport(
                self.mail_config.api_key, self.mail_config.timeout_seconds,
            )
        return self._transport

    async def dispatch(
        self,
        recipient: str,
        subject: str,
        body: str,
        channel: object,
    ) -> DispatchResult:
        """Attempt one delivery.

        Args:
            recipient: Email address (or phone number for SMS).
            subject: Email subject; ignored for SMS.
            body: Plain-text message body.
            channel: Channel member or its string name.

        Returns:
            DispatchResult with the operator-facing outcome.
        """
        if not _is_text(recipient) or not _is_text(body):
            return DispatchResult.failed(INVALID_INPUT)
        if not isinstance(channel, Channel) and not _is_text(channel):
            return DispatchResult.failed(INVALID_INPUT)

        parsed = Channel.parse(channel)
        if parsed is Channel.SMS:
            logger.info("SMS dispatch requested for %s; channel not implemented", recipient)
            return DispatchResult.failed(SMS_UNSUPPORTED)
        if parsed is None:
            error = UnsupportedChannel(channel)
            logger.warning("Dispatch rejected: %s", error)
            return DispatchResult.failed(str(error))

        try:
            return await self._send_email(recipient.strip(), subject or "", body)
        except ConfigurationError as e:
            logger.error("Email dispatch skipped: %s", e)
            return DispatchResult.failed(str(e))
        except DeliveryError as e:
            logger.error("Email dispatch to %s failed: %s", recipient, e)
            return DispatchResult.failed(f"Failed to send email via {self.mail_config.provider}.")

    async def _send_email(self, recipient: str, subject: str, body: str) -> DispatchResult:
        if not self.mail_config.is_configured:
            raise ConfigurationError(
                f"{self.mail_config.provider} API key or sender address is not configured."
            )

        message = MailMessage(
            to=recipient,
            from_email=self.mail_config.from_email,
            subject=subject,
            text=body,
            html=to_html(body),
        )
        await self.transport.send(message)

        logger.info("Email sent to %s: %s", recipient, subject[:60])
        return DispatchResult.ok(f"Notification successfully sent to {recipient} via Email.")
