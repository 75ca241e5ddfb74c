"""Unit tests for the template backend and the content rules it follows."""

import asyncio

import pytest

from sems_monitor.generator import rules
from sems_monitor.generator.templates import TemplateBackend
from sems_monitor.models import (
    AlertFactSheet,
    AlertType,
    BillingFactSheet,
    Channel,
    GeneratedMessage,
)

ORG = "SEMS Monitoring"
METER_ID = "MTR-998877"
DETAILS = "June 5, 9:00 AM to 1:00 PM, Barangay San Isidro"


def _alert(alert_type, channel):
    return AlertFactSheet(
        customer_name="Jane",
        meter_id=METER_ID,
        alert_type=alert_type,
        notification_method=channel,
        outage_details=DETAILS if alert_type is AlertType.OUTAGE_SCHEDULED else None,
    )


def _billing(channel):
    return BillingFactSheet(
        customer_name="Jane",
        meter_id=METER_ID,
        amount_due="123.45",
        due_date="2024-01-01",
        usage="10.00 kWh",
        statement_link="https://example.com/billing/MTR-998877",
        notification_method=channel,
    )


@pytest.fixture
def backend():
    return TemplateBackend(ORG, "₱")


@pytest.mark.parametrize("alert_type", list(AlertType))
@pytest.mark.parametrize("channel", list(Channel))
def test_alerts_follow_content_rules(backend, alert_type, channel):
    sheet = _alert(alert_type, channel)
    message = asyncio.run(backend.generate_alert(sheet))

    assert METER_ID not in message.body
    assert METER_ID not in message.subject
    assert rules.check_alert(sheet, message, ORG) == []
    if alert_type is AlertType.OUTAGE_SCHEDULED:
        assert DETAILS in message.body


@pytest.mark.parametrize(
    "alert_type,subject",
    [
        (AlertType.TAMPERING, "URGENT: Security Alert from SEMS Monitoring"),
        (AlertType.OUTAGE_UNSCHEDULED_TAMPERING, "URGENT: Security Alert from SEMS Monitoring"),
        (AlertType.OUTAGE_SCHEDULED, "IMPORTANT: Power Outage Notification from SEMS Monitoring"),
        (
            AlertType.OUTAGE_UNSCHEDULED_MAINTENANCE,
            "IMPORTANT: Power Outage Notification from SEMS Monitoring",
        ),
    ],
)
def test_alert_email_subject_and_opener(backend, alert_type, subject):
    message = asyncio.run(backend.generate_alert(_alert(alert_type, Channel.EMAIL)))
    assert message.subject == subject
    assert message.body.startswith(rules.ALERT_OPENERS[alert_type])


def test_tampering_email_directs_to_support(backend):
    message = asyncio.run(backend.generate_alert(_alert(AlertType.TAMPERING, Channel.EMAIL)))
    assert "Please contact SEMS Monitoring support immediately." in message.body


def test_alert_sms_prefix(backend):
    message = asyncio.run(backend.generate_alert(_alert(AlertType.TAMPERING, Channel.SMS)))
    assert message.subject == ""
    assert message.body.startswith("SEMS Monitoring URGENT Alert:")


def test_billing_email_is_exact(backend):
    message = asyncio.run(backend.generate_billing(_billing(Channel.EMAIL)))
    assert message.subject == "Your Monthly Electricity Bill is Ready"
    assert message.body.splitlines() == [
        "Amount Due: ₱123.45",
        "Due Date: 2024-01-01",
        "Usage: 10.00 kWh",
    ]


def test_billing_sms_has_amount_and_date_only(backend):
    sheet = _billing(Channel.SMS)
    message = asyncio.run(backend.generate_billing(sheet))
    assert message.body == "Hello and good day! Your bill of ₱123.45 is due on 2024-01-01."
    assert "kWh" not in message.body
    assert "https://" not in message.body
    assert rules.check_billing(sheet, message, "₱") == []


def test_check_alert_flags_meter_id_and_missing_details():
    sheet = _alert(AlertType.OUTAGE_SCHEDULED, Channel.EMAIL)
    bad = GeneratedMessage(
        subject="Power Outage",
        body=f"{rules.SCHEDULED_OUTAGE_OPENER} Meter {METER_ID} affected.",
    )
    violations = rules.check_alert(sheet, bad, ORG)
    assert "meter ID appears in the message" in violations
    assert "outage details missing from body" in violations
    assert "subject is not marked urgent/important" in violations


def test_check_alert_flags_long_sms():
    sheet = _alert(AlertType.TAMPERING, Channel.SMS)
    bad = GeneratedMessage(subject="", body=rules.sms_alert_prefix(ORG) + " x" * 100)
    assert rules.check_alert(sheet, bad, ORG) == ["SMS is too long"]


def test_check_billing_flags_extra_email_text():
    sheet = _billing(Channel.EMAIL)
    bad = GeneratedMessage(
        subject=rules.BILLING_EMAIL_SUBJECT,
        body="Dear Jane,\n" + "\n".join(rules.billing_email_lines(sheet, "₱")),
    )
    assert rules.check_billing(sheet, bad, "₱") == ["body is not exactly amount / due date / usage"]


def test_check_billing_flags_usage_in_sms():
    sheet = _billing(Channel.SMS)
    bad = GeneratedMessage(subject="", body="Hi! ₱123.45 due 2024-01-01 for 10.00 kWh.")
    assert rules.check_billing(sheet, bad, "₱") == ["SMS must not include usage"]


def test_check_alert_flags_short_meter_id_written_as_word():
    sheet = AlertFactSheet(
        customer_name="Jane",
        meter_id="m",
        alert_type=AlertType.TAMPERING,
        notification_method=Channel.SMS,
    )
    leaked = GeneratedMessage(
        subject="", body=f"{rules.sms_alert_prefix(ORG)} Meter m was tampered with."
    )
    clean = GeneratedMessage(
        subject="", body=f"{rules.sms_alert_prefix(ORG)} Tampering detected on your smart meter."
    )
    assert rules.check_alert(sheet, leaked, ORG) == ["meter ID appears in the message"]
    assert rules.check_alert(sheet, clean, ORG) == []


def test_meter_id_repeated_outside_details_is_flagged():
    sheet = AlertFactSheet(
        customer_name="Jane",
        meter_id="12",
        alert_type=AlertType.OUTAGE_SCHEDULED,
        notification_method=Channel.EMAIL,
        outage_details="June 12, 9AM-1PM",
    )
    message = GeneratedMessage(
        subject=rules.outage_subject(ORG),
        body=f"{rules.SCHEDULED_OUTAGE_OPENER}\n\nDetails: June 12, 9AM-1PM\n\nAffected meter: 12",
    )
    assert rules.check_alert(sheet, message, ORG) == ["meter ID appears in the message"]
