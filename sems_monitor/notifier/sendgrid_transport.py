"""SEMS Monitor — SendGrid Mail Transport.

Thin async client for the SendGrid v3 ``mail/send`` endpoint. One call,
one POST; failures raise DeliveryError so the dispatcher can turn them
into an operator-facing result.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from sems_monitor.errors import DeliveryError
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class MailMessage:
    """One outgoing email with plain-text and HTML parts."""

    to: str
    from_email: str
    subject: str
    text: str
    html: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "personalizations": [{"to": [{"email": self.to}]}],
            "from": {"email": self.from_email},
            "subject": self.subject,
            "content": [
                {"type": "text/plain", "value": self.text},
                {"type": "text/html", "value": self.html},
            ],
        }


class SendGridTransport:
    """Sends MailMessage objects through SendGrid.

    A session is opened per send unless one is supplied, so the
    transport can be built once and reused without ``async with``.

    Attributes:
        api_key: SendGrid API key (Bearer token).
        timeout_seconds: Total request timeout.
    """

    def __init__(
        self,
        api_key: str,
        timeout_seconds: int = 15,
        session: Optional[aiohttp.ClientSession] = None,
        url: str = SENDGRID_SEND_URL,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.url = url
        self._session = session

    async def send(self, message: MailMessage) -> None:
        """POST one message.

        Raises:
            DeliveryError: On a non-2xx response or a network failure.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            if self._session is not None:
                await self._post(self._session, message, headers)
                return
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as session:
                await self._post(session, message, headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("SendGrid network error: %s", e)
            raise DeliveryError(f"SendGrid network error: {e}") from e

    async def _post(
        self,
        session: aiohttp.ClientSession,
        message: MailMessage,
        headers: dict[str, str],
    ) -> None:
        async with session.post(self.url, json=message.to_payload(), headers=headers) as resp:
            if 200 <= resp.status < 300:
                logger.debug("SendGrid accepted message to %s (HTTP %d)", message.to, resp.status)
                return
            error_body = await resp.text()
            logger.error("SendGrid HTTP %d: %s", resp.status, error_body[:300])
            raise DeliveryError(f"SendGrid returned HTTP {resp.status}", status=resp.status)
