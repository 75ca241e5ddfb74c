"""SEMS Monitor — Notification Content Rules.

Fixed literals and checks every generated message must satisfy,
whichever backend produced it. The template backend renders from the
same literals; LLM output is checked against them before it is handed
to anyone.

Hard rule: a meter ID is accepted as input for correlation but never
appears in alert text sent to a customer.
"""

from __future__ import annotations

import re

from sems_monitor.models import (
    AlertFactSheet,
    AlertType,
    BillingFactSheet,
    Channel,
    GeneratedMessage,
)

SMS_MAX_LENGTH = 160

BILLING_EMAIL_SUBJECT = "Your Monthly Electricity Bill is Ready"
BILLING_SMS_GREETING = "Hello and good day!"

TAMPERING_OPENER = "A potential tampering event has been detected on your smart meter."
SCHEDULED_OUTAGE_OPENER = "This is a notification for a scheduled power outage for maintenance."
UNSCHEDULED_OUTAGE_OPENER = "Your power is currently out due to unscheduled maintenance."

ALERT_OPENERS = {
    AlertType.TAMPERING: TAMPERING_OPENER,
    AlertType.OUTAGE_UNSCHEDULED_TAMPERING: TAMPERING_OPENER,
    AlertType.OUTAGE_SCHEDULED: SCHEDULED_OUTAGE_OPENER,
    AlertType.OUTAGE_UNSCHEDULED_MAINTENANCE: UNSCHEDULED_OUTAGE_OPENER,
}

URGENT_SUBJECT_PREFIXES = ("URGENT:", "IMPORTANT:")


def security_subject(org: str) -> str:
    return f"URGENT: Security Alert from {org}"


def outage_subject(org: str) -> str:
    return f"IMPORTANT: Power Outage Notification from {org}"


def alert_subject(alert_type: AlertType, org: str) -> str:
    return security_subject(org) if alert_type.is_tampering else outage_subject(org)


def sms_alert_prefix(org: str) -> str:
    return f"{org} URGENT Alert:"


def billing_email_lines(sheet: BillingFactSheet, currency: str) -> list[str]:
    return [
        f"Amount Due: {currency}{sheet.amount_due}",
        f"Due Date: {sheet.due_date}",
        f"Usage: {sheet.usage}",
    ]


# ═══════════════════════════════════════════════════════════
# Checks
# ═══════════════════════════════════════════════════════════


def contains_token(text: str, token: str) -> bool:
    """True if ``token`` appears in ``text`` not glued to a word or hyphen."""
    return re.search(rf"(?<![\w-]){re.escape(token)}(?![\w-])", text) is not None


def _strip_spans(text: str, spans: list[str]) -> str:
    for span in sorted(filter(None, spans), key=len, reverse=True):
        text = text.replace(span, " ")
    return text


def _leaks_meter_id(sheet: AlertFactSheet, message: GeneratedMessage, org: str) -> bool:
    if not sheet.meter_id:
        return False
    # Fixed literals, the org name and the verbatim outage details may
    # legitimately contain the ID's characters.
    allowed = [
        org,
        sheet.outage_details or "",
        alert_subject(sheet.alert_type, org),
        sms_alert_prefix(org),
        ALERT_OPENERS[sheet.alert_type],
    ]
    text = _strip_spans(f"{message.subject}\n{message.body}", allowed)
    return contains_token(text, sheet.meter_id)


def check_alert(sheet: AlertFactSheet, message: GeneratedMessage, org: str) -> list[str]:
    """Return every rule the alert message breaks (empty list = compliant)."""
    violations: list[str] = []
    body = message.body

    if not body.strip():
        return ["body is empty"]

    if _leaks_meter_id(sheet, message, org):
        violations.append("meter ID appears in the message")

    details = sheet.outage_details or ""
    if sheet.alert_type is AlertType.OUTAGE_SCHEDULED and details not in body:
        violations.append("outage details missing from body")

    if sheet.notification_method is Channel.EMAIL:
        if not message.subject.upper().startswith(URGENT_SUBJECT_PREFIXES):
            violations.append("subject is not marked urgent/important")
        if not body.lstrip().startswith(ALERT_OPENERS[sheet.alert_type]):
            violations.append("body does not open with the required statement")
        if sheet.alert_type.is_tampering and "support" not in body.lower():
            violations.append("tampering alert does not direct the customer to support")
    else:
        if not body.startswith(sms_alert_prefix(org)):
            violations.append("SMS does not start with the alert prefix")
        if len(body) - len(details) > SMS_MAX_LENGTH:
            violations.append("SMS is too long")

    return violations


def check_billing(
    sheet: BillingFactSheet, message: GeneratedMessage, currency: str
) -> list[str]:
    """Return every rule the billing message breaks (empty list = compliant)."""
    violations: list[str] = []
    body = message.body

    if sheet.notification_method is Channel.EMAIL:
        if message.subject != BILLING_EMAIL_SUBJECT:
            violations.append("subject is not the fixed billing subject")
        if body.strip().splitlines() != billing_email_lines(sheet, currency):
            violations.append("body is not exactly amount / due date / usage")
        return violations

    if not body.strip():
        return ["body is empty"]
    if "\n" in body.strip():
        violations.append("SMS is not a single line")
    if len(body) > SMS_MAX_LENGTH:
        violations.append("SMS is too long")
    if not (contains_token(body, sheet.amount_due) and contains_token(body, sheet.due_date)):
        violations.append("SMS must include amount due and due date")
    rest = _strip_spans(body, [sheet.amount_due, sheet.due_date])
    if sheet.usage and contains_token(rest, sheet.usage):
        violations.append("SMS must not include usage")
    if sheet.statement_link in body:
        violations.append("SMS must not include the statement link")
    return violations
