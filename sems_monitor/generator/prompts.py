"""SEMS Monitor — Notification Drafting Prompts.

Prompt builders for the LLM backend. Each prompt spells out the content
rules from rules.py verbatim and asks for a JSON object with exactly
'subject' and 'body'.

The alert prompt is deliberately never given the meter ID.
"""

from __future__ import annotations

from sems_monitor.generator import rules
from sems_monitor.models import AlertFactSheet, AlertType, BillingFactSheet, Channel

_OUTPUT_INSTRUCTIONS = (
    'Return ONLY a valid JSON object with exactly two string keys: "subject" and "body". '
    "No markdown, no explanation, no extra keys."
)


def build_alert_prompt(sheet: AlertFactSheet, org: str) -> str:
    """Build the alert drafting prompt.

    Args:
        sheet: Validated alert fact sheet.
        org: Organization name for subjects and the SMS prefix.

    Returns:
        Complete prompt string.
    """
    details_line = ""
    if sheet.alert_type is AlertType.OUTAGE_SCHEDULED:
        details_line = f"\n- Details: {sheet.outage_details}"

    if sheet.notification_method is Channel.EMAIL:
        subject_rule = (
            f'Use exactly "{rules.security_subject(org)}" for Tampering and '
            f'Outage-Unscheduled-Tampering, and exactly "{rules.outage_subject(org)}" '
            "for the other outage types."
        )
        body_rule = f"""Write a direct and informative email body. The FIRST sentence must be exactly:
   - Tampering or Outage-Unscheduled-Tampering: "{rules.TAMPERING_OPENER}" Then instruct the customer to contact {org} support.
   - Outage-Scheduled: "{rules.SCHEDULED_OUTAGE_OPENER}" Then include the details exactly as given.
   - Outage-Unscheduled-Maintenance: "{rules.UNSCHEDULED_OUTAGE_OPENER}" Then apologize for the inconvenience."""
    else:
        subject_rule = 'Use an empty string "" for the subject.'
        body_rule = f"""Write a very short SMS (at most {rules.SMS_MAX_LENGTH} characters, not counting the outage details). It must start with exactly "{rules.sms_alert_prefix(org)}" and state the alert plainly.
   - Example for Tampering: "{rules.sms_alert_prefix(org)} Tampering detected. Contact support."
   - For Outage-Scheduled include the details exactly as given, e.g. "{rules.sms_alert_prefix(org)} Scheduled power outage on <details>." """

    return f"""You are an AI assistant for {org}, a smart electricity provider.
Generate a simple and direct security or outage alert for a customer.
The tone is serious, direct and clear. Do not include salutations like "Dear" or closings like "Sincerely".
Do NOT include any meter ID, serial number or other device identifier.

=== CUSTOMER ===
- Name: {sheet.customer_name}
- Notification Method: {sheet.notification_method.value}

=== ALERT ===
- Alert Type: {sheet.alert_type.value}{details_line}

=== INSTRUCTIONS ===
1. Subject: {subject_rule}
2. Body: {body_rule}
3. {_OUTPUT_INSTRUCTIONS}"""


def build_billing_prompt(sheet: BillingFactSheet, org: str, currency: str) -> str:
    """Build the billing drafting prompt.

    Args:
        sheet: Validated billing fact sheet.
        org: Organization name.
        currency: Currency symbol placed before amounts.

    Returns:
        Complete prompt string.
    """
    amount = f"{currency}{sheet.amount_due}"

    if sheet.notification_method is Channel.EMAIL:
        subject_rule = f'The subject MUST BE EXACTLY: "{rules.BILLING_EMAIL_SUBJECT}".'
        lines = "\n".join(f"   {line}" for line in rules.billing_email_lines(sheet, currency))
        body_rule = (
            "Write exactly these three lines, in this order, separated by newlines. "
            "No greeting, no signature, no other text:\n" + lines
        )
    else:
        subject_rule = 'Use an empty string "" for the subject.'
        body_rule = (
            f"Write one short line (at most {rules.SMS_MAX_LENGTH} characters). Start with a "
            "greeting and include ONLY the amount due and the due date. Do not mention usage "
            "or any link.\n"
            f"   Example: {rules.BILLING_SMS_GREETING} Your bill of {amount} is due on {sheet.due_date}."
        )

    return f"""You are an AI assistant for {org}, a smart electricity provider.
Generate a billing notification for a customer. The tone is direct and transactional.

=== CUSTOMER ===
- Name: {sheet.customer_name}
- Notification Method: {sheet.notification_method.value}

=== BILLING ===
- Amount Due: {amount}
- Due Date: {sheet.due_date}
- Usage: {sheet.usage}
- Full Statement Link: {sheet.statement_link}

=== INSTRUCTIONS ===
1. Subject: {subject_rule}
2. Body: {body_rule}
3. {_OUTPUT_INSTRUCTIONS}"""
