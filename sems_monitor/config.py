"""SEMS Monitor — Configuration Loader.

Loads and validates application configuration from a YAML file.
Resolves environment variables referenced via ${VAR_NAME} syntax, with
${VAR_NAME:-default} for values that may legitimately be absent (mail
credentials, fallback provider keys).
Uses frozen dataclasses for type-safe configuration access.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

# ── Environment Variable Pattern ─────────────────────────
# ${NAME} or ${NAME:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?}")

GENERATOR_BACKENDS = ("llm", "template")


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OrganizationConfig:
    """Branding used in generated messages."""

    name: str = "SEMS Monitoring"
    currency_symbol: str = "₱"


@dataclass(frozen=True)
class StoreConfig:
    """Firebase Realtime Database connection settings."""

    database_url: str
    auth_token: str = ""
    devices_path: str = "devices"
    timeout_seconds: int = 15


@dataclass(frozen=True)
class GeminiConfig:
    """Configuration for the Google Gemini provider."""

    api_key: str
    model: str
    max_tokens: int
    temperature: float
    rpm_limit: int


@dataclass(frozen=True)
class GroqConfig:
    """Configuration for the Groq provider."""

    api_key: str
    model: str
    max_tokens: int
    temperature: float
    rpm_limit: int


@dataclass(frozen=True)
class AIConfig:
    """Configuration for the LLM providers behind the message engine."""

    primary_provider: str
    fallback_provider: str
    gemini: GeminiConfig
    groq: GroqConfig


@dataclass(frozen=True)
class GeneratorConfig:
    """Which backend renders notification text: 'llm' or 'template'."""

    backend: str = "llm"


@dataclass(frozen=True)
class MailConfig:
    """SendGrid credentials. Empty strings mean 'not configured'.

    Passed into the dispatcher at construction; checked at send time.
    """

    api_key: str = ""
    from_email: str = ""
    provider: str = "SendGrid"
    timeout_seconds: int = 15

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.from_email)


@dataclass(frozen=True)
class BillingConfig:
    """Inputs for building billing fact sheets from device records."""

    due_in_days: int = 30
    statement_base_url: str = "https://example.com/billing"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration container."""

    organization: OrganizationConfig
    store: StoreConfig
    ai: AIConfig
    generator: GeneratorConfig
    mail: MailConfig
    billing: BillingConfig
    log_level: str


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR_NAME} / ${VAR_NAME:-default} references.

    Args:
        value: A string, dict, list, or primitive from parsed YAML.

    Returns:
        The same structure with all placeholders replaced.

    Raises:
        ValueError: If a referenced variable without a default is not set.
    """
    if isinstance(value, str):
        def _substitute(match: re.Match[str]) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            raise ValueError(
                f"Environment variable '${{{var_name}}}' is required but not set. "
                f"Add it to your .env file or export it in your shell."
            )

        return ENV_VAR_PATTERN.sub(_substitute, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If the file is empty.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


def _validate_keys(data: dict[str, Any], required: list[str], section: str) -> None:
    """Raise ValueError naming every required key missing from a section."""
    missing = [key for key in required if key not in data]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


# ═══════════════════════════════════════════════════════════
# Dataclass Builders
# ═══════════════════════════════════════════════════════════


def _build_organization_config(data: dict[str, Any]) -> OrganizationConfig:
    return OrganizationConfig(
        name=data.get("name", OrganizationConfig.name),
        currency_symbol=data.get("currency_symbol", OrganizationConfig.currency_symbol),
    )


def _build_store_config(data: dict[str, Any]) -> StoreConfig:
    _validate_keys(data, ["database_url"], "store")
    return StoreConfig(
        database_url=str(data["database_url"]).rstrip("/"),
        auth_token=data.get("auth_token", "") or "",
        devices_path=data.get("devices_path", "devices"),
        timeout_seconds=int(data.get("timeout_seconds", 15)),
    )


def _build_ai_config(data: dict[str, Any]) -> AIConfig:
    """Build an AIConfig from the 'ai' section of settings.yaml."""
    _validate_keys(data, ["primary_provider", "fallback_provider", "gemini", "groq"], "ai")

    provider_keys = ["api_key", "model", "max_tokens", "temperature", "rpm_limit"]
    gemini_data = data["gemini"]
    _validate_keys(gemini_data, provider_keys, "ai.gemini")
    groq_data = data["groq"]
    _validate_keys(groq_data, provider_keys, "ai.groq")

    for key in ("primary_provider", "fallback_provider"):
        if data[key] not in ("gemini", "groq"):
            raise ValueError(f"ai.{key} must be 'gemini' or 'groq', got {data[key]!r}")

    return AIConfig(
        primary_provider=data["primary_provider"],
        fallback_provider=data["fallback_provider"],
        gemini=GeminiConfig(
            api_key=gemini_data["api_key"],
            model=gemini_data["model"],
            max_tokens=int(gemini_data["max_tokens"]),
            temperature=float(gemini_data["temperature"]),
            rpm_limit=int(gemini_data["rpm_limit"]),
        ),
        groq=GroqConfig(
            api_key=groq_data["api_key"],
            model=groq_data["model"],
            max_tokens=int(groq_data["max_tokens"]),
            temperature=float(groq_data["temperature"]),
            rpm_limit=int(groq_data["rpm_limit"]),
        ),
    )


def _build_generator_config(data: dict[str, Any]) -> GeneratorConfig:
    backend = data.get("backend", "llm")
    if backend not in GENERATOR_BACKENDS:
        raise ValueError(
            f"generator.backend must be one of {GENERATOR_BACKENDS}, got {backend!r}"
        )
    return GeneratorConfig(backend=backend)


def _build_mail_config(data: dict[str, Any]) -> MailConfig:
    return MailConfig(
        api_key=data.get("api_key", "") or "",
        from_email=data.get("from_email", "") or "",
        provider=data.get("provider", "SendGrid"),
        timeout_seconds=int(data.get("timeout_seconds", 15)),
    )


def _build_billing_config(data: dict[str, Any]) -> BillingConfig:
    due_in_days = int(data.get("due_in_days", 30))
    if due_in_days < 0:
        raise ValueError(f"billing.due_in_days must be >= 0, got {due_in_days}")
    return BillingConfig(
        due_in_days=due_in_days,
        statement_base_url=str(
            data.get("statement_base_url", BillingConfig.statement_base_url)
        ).rstrip("/"),
    )


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the complete application configuration.

    Loads .env, parses settings.yaml, resolves environment variables,
    validates required fields and returns a typed AppConfig.

    Args:
        settings_path: Override path to settings.yaml.
        env_path: Override path to the .env file.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    settings = _resolve_env_vars(_load_yaml(settings_path or SETTINGS_PATH))

    _validate_keys(settings, ["store", "ai", "mail"], "settings")

    config = AppConfig(
        organization=_build_organization_config(settings.get("organization", {}) or {}),
        store=_build_store_config(settings["store"]),
        ai=_build_ai_config(settings["ai"]),
        generator=_build_generator_config(settings.get("generator", {}) or {}),
        mail=_build_mail_config(settings["mail"] or {}),
        billing=_build_billing_config(settings.get("billing", {}) or {}),
        log_level=(settings.get("logging", {}) or {}).get("level", "INFO"),
    )

    logger.info("Configuration loaded successfully")
    logger.debug("Generator backend: %s", config.generator.backend)
    logger.debug("AI primary provider: %s", config.ai.primary_provider)
    if not config.mail.is_configured:
        logger.warning("Mail credentials not configured; Email dispatch will be refused")

    return config
