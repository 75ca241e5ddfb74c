"""Shared fixtures for the SEMS Monitor test suite."""

import asyncio
import os
import tempfile

# Keep test runs from writing into the project's logs/ directory.
os.environ.setdefault("SEMS_LOG_DIR", tempfile.mkdtemp(prefix="sems-logs-"))

import pytest

from sems_monitor.config import (
    AIConfig,
    AppConfig,
    BillingConfig,
    GeminiConfig,
    GeneratorConfig,
    GroqConfig,
    MailConfig,
    OrganizationConfig,
    StoreConfig,
)
from sems_monitor.models import GeneratedMessage
from sems_monitor.store.memory_store import MemoryStore

ORG = "SEMS Monitoring"
CURRENCY = "₱"


def _device_records():
    return {
        "09171234567": {
            "Name": "Jane Cruz",
            "Email": "jane@example.com",
            "Address": "Quezon City",
            "Contact Number": "09171234567",
            "Serial": "SN-1001",
            "Price": 12.5,
            "kwhr": 10,
            "status": "activated:",
            "tampering": "false:",
            "OUTAGE": "true:",
            "payment": "true:",
        },
        "09181112222": {
            "Name": "Pedro Reyes",
            "Email": "pedro@example.com",
            "Address": "Makati",
            "Contact Number": "09181112222",
            "Price": 10,
            "kwh": "3.5",
            "status": "deactivated",
            "tampering": "true:",
            "OUTAGE": False,
            "payment": "false:",
        },
        "09190000000": {
            "Name": "Ana Santos",
            "Email": "ana@example.com",
            "Address": "Quezon City",
            "Contact Number": "09190000000",
            "Status": "ACTIVATED",
            "tampering": True,
            "OUTAGE": "TRUE",
        },
    }


@pytest.fixture
def device_records():
    return _device_records()


@pytest.fixture
def memory_store():
    return MemoryStore({"devices": _device_records()})


def make_config(backend="template", api_key="SG.key", from_email="alerts@sems.example"):
    provider = dict(api_key="", max_tokens=512, temperature=0.2, rpm_limit=10)
    return AppConfig(
        organization=OrganizationConfig(name=ORG, currency_symbol=CURRENCY),
        store=StoreConfig(database_url="", devices_path="devices"),
        ai=AIConfig(
            primary_provider="gemini",
            fallback_provider="groq",
            gemini=GeminiConfig(model="gemini-2.5-flash", **provider),
            groq=GroqConfig(model="llama-3.3-70b-versatile", **provider),
        ),
        generator=GeneratorConfig(backend=backend),
        mail=MailConfig(api_key=api_key, from_email=from_email),
        billing=BillingConfig(due_in_days=30, statement_base_url="https://example.com/billing"),
        log_level="INFO",
    )


@pytest.fixture
def app_config():
    return make_config()


class FakeTransport:
    """Records MailMessages instead of calling SendGrid."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    async def send(self, message):
        self.sent.append(message)
        if self.error is not None:
            raise self.error


class FakeAIClient:
    """Returns canned replies in order; None simulates provider failure."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        return self.replies.pop(0) if self.replies else None


class StubEngine:
    """Engine whose result for each call is released by the test."""

    def __init__(self):
        self.calls = []

    async def generate(self, sheet):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((sheet, future))
        result = await future
        if isinstance(result, Exception):
            raise result
        return result


def message(subject="Subject", body="Body text"):
    return GeneratedMessage(subject=subject, body=body)
