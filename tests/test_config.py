"""Unit tests for sems_monitor.config."""

from pathlib import Path

import pytest

from sems_monitor.config import SETTINGS_PATH, _resolve_env_vars, load_config

SETTINGS = """
organization:
  name: "Test Power"
store:
  database_url: "${SEMS_TEST_DB_URL}/"
  auth_token: "${SEMS_TEST_DB_TOKEN:-}"
generator:
  backend: "{backend}"
ai:
  primary_provider: "groq"
  fallback_provider: "gemini"
  gemini:
    api_key: "${SEMS_TEST_GEMINI:-}"
    model: "gemini-2.5-flash"
    max_tokens: 512
    temperature: 0.2
    rpm_limit: 10
  groq:
    api_key: "${SEMS_TEST_GROQ:-groq-default}"
    model: "llama-3.3-70b-versatile"
    max_tokens: 256
    temperature: 0.1
    rpm_limit: 30
mail:
  api_key: "${SEMS_TEST_SG_KEY:-}"
  from_email: "${SEMS_TEST_SG_FROM:-}"
billing:
  due_in_days: 14
"""


def _write_settings(tmp_path, backend="template", text=SETTINGS):
    path = tmp_path / "settings.yaml"
    path.write_text(text.replace("{backend}", backend), encoding="utf-8")
    return path


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "SEMS_TEST_DB_URL",
        "SEMS_TEST_DB_TOKEN",
        "SEMS_TEST_GEMINI",
        "SEMS_TEST_GROQ",
        "SEMS_TEST_SG_KEY",
        "SEMS_TEST_SG_FROM",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_config_resolves_env_and_defaults(tmp_path, clean_env):
    clean_env.setenv("SEMS_TEST_DB_URL", "https://sems.firebaseio.com")
    config = load_config(_write_settings(tmp_path), env_path=tmp_path / "missing.env")

    assert config.organization.name == "Test Power"
    assert config.organization.currency_symbol == "₱"
    assert config.store.database_url == "https://sems.firebaseio.com"
    assert config.store.auth_token == ""
    assert config.store.devices_path == "devices"
    assert config.generator.backend == "template"
    assert config.ai.primary_provider == "groq"
    assert config.ai.groq.api_key == "groq-default"
    assert config.ai.groq.max_tokens == 256
    assert config.billing.due_in_days == 14
    assert config.billing.statement_base_url == "https://example.com/billing"
    assert config.log_level == "INFO"
    assert not config.mail.is_configured


def test_load_config_reads_dotenv(tmp_path, clean_env):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SEMS_TEST_DB_URL=https://from-dotenv.example\n"
        "SEMS_TEST_SG_KEY=SG.abc\n"
        "SEMS_TEST_SG_FROM=alerts@example.com\n",
        encoding="utf-8",
    )
    config = load_config(_write_settings(tmp_path), env_path=env_file)

    assert config.store.database_url == "https://from-dotenv.example"
    assert config.mail.is_configured
    assert config.mail.provider == "SendGrid"


def test_missing_required_env_var_raises(tmp_path, clean_env):
    with pytest.raises(ValueError, match="SEMS_TEST_DB_URL"):
        load_config(_write_settings(tmp_path), env_path=tmp_path / "missing.env")


def test_unknown_backend_raises(tmp_path, clean_env):
    clean_env.setenv("SEMS_TEST_DB_URL", "https://x.example")
    with pytest.raises(ValueError, match="generator.backend"):
        load_config(_write_settings(tmp_path, backend="magic"), env_path=tmp_path / "none.env")


def test_missing_section_raises(tmp_path, clean_env):
    clean_env.setenv("SEMS_TEST_DB_URL", "https://x.example")
    text = SETTINGS.split("mail:")[0]
    with pytest.raises(ValueError, match="mail"):
        load_config(_write_settings(tmp_path, text=text), env_path=tmp_path / "none.env")


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml", env_path=tmp_path / "none.env")


def test_resolve_env_vars_recurses(clean_env):
    clean_env.setenv("SEMS_TEST_GROQ", "k")
    resolved = _resolve_env_vars(
        {"a": ["${SEMS_TEST_GROQ}", {"b": "x-${SEMS_TEST_GEMINI:-none}"}], "n": 3}
    )
    assert resolved == {"a": ["k", {"b": "x-none"}], "n": 3}


def test_shipped_settings_file_exists():
    assert Path(SETTINGS_PATH).exists()
