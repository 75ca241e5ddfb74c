"""Unit tests for prompt building and LLM reply parsing."""

import json

import pytest

from sems_monitor.errors import GenerationFailure
from sems_monitor.generator.prompts import build_alert_prompt, build_billing_prompt
from sems_monitor.generator.response_parser import ResponseParser, clean_json_text
from sems_monitor.models import AlertFactSheet, AlertType, BillingFactSheet, Channel

ORG = "SEMS Monitoring"


@pytest.mark.parametrize("alert_type", list(AlertType))
@pytest.mark.parametrize("channel", list(Channel))
def test_alert_prompt_never_contains_meter_id(alert_type, channel):
    sheet = AlertFactSheet(
        customer_name="Jane",
        meter_id="MTR-424242",
        alert_type=alert_type,
        notification_method=channel,
        outage_details="June 5, 9AM-1PM",
    )
    prompt = build_alert_prompt(sheet, ORG)
    assert "MTR-424242" not in prompt
    assert "Jane" in prompt
    assert alert_type.value in prompt
    assert '"subject"' in prompt and '"body"' in prompt


def test_scheduled_alert_prompt_includes_details():
    sheet = AlertFactSheet(
        customer_name="Jane",
        meter_id="m",
        alert_type=AlertType.OUTAGE_SCHEDULED,
        notification_method=Channel.SMS,
        outage_details="June 5, 9AM-1PM",
    )
    prompt = build_alert_prompt(sheet, ORG)
    assert "Details: June 5, 9AM-1PM" in prompt
    assert "SEMS Monitoring URGENT Alert:" in prompt


def test_billing_prompt_spells_out_exact_lines():
    sheet = BillingFactSheet(
        customer_name="Jane",
        meter_id="m",
        amount_due="123.45",
        due_date="2024-01-01",
        usage="10.00 kWh",
        statement_link="https://example.com/billing/m",
        notification_method=Channel.EMAIL,
    )
    prompt = build_billing_prompt(sheet, ORG, "₱")
    assert "Your Monthly Electricity Bill is Ready" in prompt
    assert "Amount Due: ₱123.45" in prompt
    assert "Due Date: 2024-01-01" in prompt
    assert "Usage: 10.00 kWh" in prompt


@pytest.mark.parametrize(
    "text",
    [
        '{"subject": "S", "body": "B"}',
        '```json\n{"subject": "S", "body": "B"}\n```',
        'Sure! Here it is: {"subject": "S", "body": "B"} Hope that helps.',
    ],
)
def test_clean_json_text_extracts_object(text):
    assert json.loads(clean_json_text(text)) == {"subject": "S", "body": "B"}


def test_clean_json_text_respects_braces_in_strings():
    text = 'Reply: {"subject": "a } b", "body": "{x}"} trailing'
    assert json.loads(clean_json_text(text)) == {"subject": "a } b", "body": "{x}"}


def test_parse_message_trims_fields():
    message = ResponseParser.parse_message(
        {"subject": "  Hi ", "body": " Text\n", "_provider": "gemini"}, require_subject=True,
    )
    assert message.subject == "Hi"
    assert message.body == "Text"


def test_parse_message_allows_missing_subject_for_sms():
    message = ResponseParser.parse_message({"body": "Text"}, require_subject=False)
    assert message.subject == ""


@pytest.mark.parametrize(
    "raw,require_subject",
    [
        (None, False),
        (["subject", "body"], False),
        ({"subject": "S"}, False),
        ({"subject": "S", "body": "   "}, False),
        ({"body": "B"}, True),
        ({"subject": "", "body": "B"}, True),
        ({"subject": 3, "body": "B"}, False),
    ],
)
def test_parse_message_rejects_bad_shapes(raw, require_subject):
    with pytest.raises(GenerationFailure):
        ResponseParser.parse_message(raw, require_subject=require_subject)
