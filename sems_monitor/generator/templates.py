"""SEMS Monitor — Template Backend.

Deterministic rendering of alert and billing notifications from the
literals in rules.py. No network calls; selected with
``generator.backend: template`` or used wherever reproducible text is
needed.
"""

from __future__ import annotations

from sems_monitor.generator import rules
from sems_monitor.models import (
    AlertFactSheet,
    AlertType,
    BillingFactSheet,
    Channel,
    GeneratedMessage,
)


class TemplateBackend:
    """Renders messages locally.

    Attributes:
        org: Organization name used in subjects and SMS prefixes.
        currency: Symbol placed before amounts.
    """

    name = "template"

    def __init__(self, org: str, currency: str) -> None:
        self.org = org
        self.currency = currency

    async def generate_alert(self, sheet: AlertFactSheet) -> GeneratedMessage:
        if sheet.notification_method is Channel.SMS:
            return GeneratedMessage(subject="", body=self._alert_sms(sheet))
        return GeneratedMessage(
            subject=rules.alert_subject(sheet.alert_type, self.org),
            body=self._alert_email(sheet),
        )

    async def generate_billing(self, sheet: BillingFactSheet) -> GeneratedMessage:
        if sheet.notification_method is Channel.SMS:
            return GeneratedMessage(
                subject="",
                body=(
                    f"{rules.BILLING_SMS_GREETING} Your bill of "
                    f"{self.currency}{sheet.amount_due} is due on {sheet.due_date}."
                ),
            )
        return GeneratedMessage(
            subject=rules.BILLING_EMAIL_SUBJECT,
            body="\n".join(rules.billing_email_lines(sheet, self.currency)),
        )

    # ── Alert bodies ─────────────────────────────────────

    def _alert_email(self, sheet: AlertFactSheet) -> str:
        opener = rules.ALERT_OPENERS[sheet.alert_type]
        support = f"Please contact {self.org} support immediately."

        if sheet.alert_type is AlertType.TAMPERING:
            rest = [
                "Tampering with a meter is a safety hazard and may lead to "
                "service disconnection.",
                support,
            ]
        elif sheet.alert_type is AlertType.OUTAGE_UNSCHEDULED_TAMPERING:
            rest = [
                "Your power is currently out while the issue is investigated.",
                support,
            ]
        elif sheet.alert_type is AlertType.OUTAGE_SCHEDULED:
            rest = [
                f"Details: {sheet.outage_details}",
                "Please plan accordingly.",
            ]
        else:
            rest = [
                "Our crews are working to restore service as quickly as possible.",
                "We apologize for the inconvenience.",
            ]
        return "\n\n".join([opener, *rest])

    def _alert_sms(self, sheet: AlertFactSheet) -> str:
        prefix = rules.sms_alert_prefix(self.org)
        if sheet.alert_type is AlertType.TAMPERING:
            return f"{prefix} Tampering detected. Contact support."
        if sheet.alert_type is AlertType.OUTAGE_UNSCHEDULED_TAMPERING:
            return f"{prefix} Power outage due to suspected tampering. Contact support."
        if sheet.alert_type is AlertType.OUTAGE_SCHEDULED:
            return f"{prefix} Scheduled power outage on {sheet.outage_details}."
        return f"{prefix} Power outage due to unscheduled maintenance. We apologize."
