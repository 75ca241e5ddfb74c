"""SEMS Monitor — Message Template Engine.

Front door for turning fact sheets into GeneratedMessage objects:

  validate fact sheet → backend (LLM or template) → content rule check

Fact sheet problems raise ValidationError before the backend is called.
A backend that is unavailable, returns a malformed reply, or produces
text that breaks a content rule raises GenerationFailure. Nothing
partial is ever returned.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol, Union
from urllib.parse import urlparse

from sems_monitor.config import AppConfig
from sems_monitor.errors import GenerationFailure, ValidationError
from sems_monitor.generator import rules
from sems_monitor.generator.ai_client import AIClient
from sems_monitor.generator.prompts import build_alert_prompt, build_billing_prompt
from sems_monitor.generator.response_parser import ResponseParser
from sems_monitor.generator.templates import TemplateBackend
from sems_monitor.models import (
    AlertFactSheet,
    AlertType,
    BillingFactSheet,
    Channel,
    FactSheet,
    GeneratedMessage,
)
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class MessageBackend(Protocol):
    name: str

    async def generate_alert(self, sheet: AlertFactSheet) -> GeneratedMessage: ...

    async def generate_billing(self, sheet: BillingFactSheet) -> GeneratedMessage: ...


class LLMBackend:
    """Drafts messages with the Gemini/Groq AIClient.

    Attributes:
        ai_client: An entered AIClient (or anything with an async
            ``generate(prompt) -> dict | None``).
    """

    name = "llm"

    def __init__(self, ai_client: AIClient, org: str, currency: str) -> None:
        self.ai_client = ai_client
        self.org = org
        self.currency = currency
        self._parser = ResponseParser()

    async def _complete(self, prompt: str, channel: Channel) -> GeneratedMessage:
        raw = await self.ai_client.generate(prompt)
        if raw is None:
            raise GenerationFailure("Generation backend unavailable")
        return self._parser.parse_message(raw, require_subject=channel is Channel.EMAIL)

    async def generate_alert(self, sheet: AlertFactSheet) -> GeneratedMessage:
        return await self._complete(
            build_alert_prompt(sheet, self.org), sheet.notification_method,
        )

    async def generate_billing(self, sheet: BillingFactSheet) -> GeneratedMessage:
        return await self._complete(
            build_billing_prompt(sheet, self.org, self.currency), sheet.notification_method,
        )


# ═══════════════════════════════════════════════════════════
# Fact sheet validation
# ═══════════════════════════════════════════════════════════


def _require_text(value: object, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required.")
    return value.strip()


def _require_channel(value: object) -> Channel:
    channel = Channel.parse(value)
    if channel is None:
        raise ValidationError(f"Unknown notification method: {value!r}")
    return channel


def validate_alert_sheet(sheet: AlertFactSheet) -> AlertFactSheet:
    """Check an alert fact sheet and return it with enums and trimmed text.

    Raises:
        ValidationError: On a missing name, unknown alert type or
            channel, or missing outage details for a scheduled outage.
    """
    alert_type = AlertType.parse(sheet.alert_type)
    if alert_type is None:
        raise ValidationError(f"Unknown alert type: {sheet.alert_type!r}")

    details: Optional[str] = None
    if alert_type is AlertType.OUTAGE_SCHEDULED:
        details = _require_text(sheet.outage_details, "Outage details")

    return dataclasses.replace(
        sheet,
        customer_name=_require_text(sheet.customer_name, "Customer name"),
        meter_id=(sheet.meter_id or "").strip(),
        alert_type=alert_type,
        notification_method=_require_channel(sheet.notification_method),
        outage_details=details,
    )


def validate_billing_sheet(sheet: BillingFactSheet) -> BillingFactSheet:
    """Check a billing fact sheet and return it with enums and trimmed text.

    Raises:
        ValidationError: On missing fields, a non-decimal amount or a
            statement link that is not an http(s) URL.
    """
    amount = _require_text(sheet.amount_due, "Amount due")
    try:
        if not Decimal(amount).is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise ValidationError(f"Amount due is not a decimal number: {amount!r}") from None

    link = _require_text(sheet.statement_link, "Statement link")
    parsed = urlparse(link)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Statement link is not a valid URL: {link!r}")

    return dataclasses.replace(
        sheet,
        customer_name=_require_text(sheet.customer_name, "Customer name"),
        meter_id=(sheet.meter_id or "").strip(),
        amount_due=amount,
        due_date=_require_text(sheet.due_date, "Due date"),
        usage=_require_text(sheet.usage, "Usage"),
        statement_link=link,
        notification_method=_require_channel(sheet.notification_method),
    )


# ═══════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════


class MessageEngine:
    """Validates fact sheets, calls the backend and enforces content rules.

    Attributes:
        backend: LLMBackend or TemplateBackend.
        org: Organization name.
        currency: Currency symbol.
    """

    def __init__(self, backend: MessageBackend, org: str, currency: str) -> None:
        self.backend = backend
        self.org = org
        self.currency = currency

    async def _call_backend(self, coro_factory, kind: str) -> GeneratedMessage:
        try:
            return await coro_factory()
        except GenerationFailure:
            raise
        except Exception as e:
            logger.error("%s generation crashed in %s backend: %s", kind, self.backend.name, e)
            raise GenerationFailure(f"{kind} generation failed: {e}") from e

    async def generate_alert(self, sheet: AlertFactSheet) -> GeneratedMessage:
        """Generate an alert message.

        Raises:
            ValidationError: Bad fact sheet; the backend was not called.
            GenerationFailure: Backend failure or rule violation.
        """
        sheet = validate_alert_sheet(sheet)
        logger.info(
            "Generating %s alert (%s) for meter %s via %s",
            sheet.alert_type.value, sheet.notification_method.value,
            sheet.meter_id or "?", self.backend.name,
        )

        message = await self._call_backend(lambda: self.backend.generate_alert(sheet), "Alert")

        violations = rules.check_alert(sheet, message, self.org)
        if violations:
            logger.warning(
                "Rejected alert for meter %s: %s", sheet.meter_id, "; ".join(violations),
            )
            raise GenerationFailure("Generated alert broke content rules: " + "; ".join(violations))
        return message

    async def generate_billing(self, sheet: BillingFactSheet) -> GeneratedMessage:
        """Generate a billing message.

        Raises:
            ValidationError: Bad fact sheet; the backend was not called.
            GenerationFailure: Backend failure or rule violation.
        """
        sheet = validate_billing_sheet(sheet)
        logger.info(
            "Generating billing notice (%s) for meter %s via %s",
            sheet.notification_method.value, sheet.meter_id or "?", self.backend.name,
        )

        message = await self._call_backend(
            lambda: self.backend.generate_billing(sheet), "Billing",
        )

        violations = rules.check_billing(sheet, message, self.currency)
        if violations:
            logger.warning(
                "Rejected billing notice for meter %s: %s",
                sheet.meter_id, "; ".join(violations),
            )
            raise GenerationFailure(
                "Generated billing notice broke content rules: " + "; ".join(violations)
            )
        return message

    async def generate(self, sheet: FactSheet) -> GeneratedMessage:
        """Generate for either fact sheet family."""
        if isinstance(sheet, AlertFactSheet):
            return await self.generate_alert(sheet)
        if isinstance(sheet, BillingFactSheet):
            return await self.generate_billing(sheet)
        raise ValidationError(f"Unsupported fact sheet: {type(sheet).__name__}")


def build_engine(
    config: AppConfig, ai_client: Optional[AIClient] = None
) -> MessageEngine:
    """Create the engine selected by ``generator.backend``.

    The LLM backend needs an AIClient; the caller owns its lifecycle
    (``async with``).
    """
    org = config.organization.name
    currency = config.organization.currency_symbol

    backend: Union[LLMBackend, TemplateBackend]
    if config.generator.backend == "template":
        backend = TemplateBackend(org, currency)
    else:
        if ai_client is None:
            raise ValueError("The llm generator backend needs an AIClient")
        backend = LLMBackend(ai_client, org, currency)

    return MessageEngine(backend, org, currency)
