"""SEMS Monitor — Groq Client.

Async client for Groq's OpenAI-compatible chat completions endpoint,
used as the fallback drafting provider. Same generate() surface as
GeminiClient.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import aiohttp

from sems_monitor.config import GroqConfig
from sems_monitor.generator.response_parser import clean_json_text
from sems_monitor.utils.logger import get_logger
from sems_monitor.utils.rate_limiter import AsyncRateLimiter

logger = get_logger(__name__)

_API_URL = "https://api.groq.com/openai/v1/chat/completions"

_SYSTEM_PROMPT = (
    "You write short customer notifications for an electricity provider. "
    "Always respond with a single valid JSON object, no markdown."
)


class GroqClient:
    """Groq provider.

    Attributes:
        config: GroqConfig with api_key, model, temperature, etc.
    """

    def __init__(self, config: GroqConfig) -> None:
        self.config = config
        self._rate_limiter = AsyncRateLimiter(config.rpm_limit, period_seconds=60.0)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "groq"

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def __aenter__(self) -> "GroqClient":
        self._session = aiohttp.ClientSession(
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=aiohttp.ClientTimeout(total=30),
        )
        logger.debug("Groq client session created")
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Groq client session closed")

    async def generate(self, prompt: str) -> Optional[dict[str, Any]]:
        """Send a prompt and return the parsed JSON reply, or None on failure."""
        if not self.is_configured:
            logger.warning("Groq API key not configured, skipping")
            return None
        if self._session is None:
            logger.error("Groq session not created, use 'async with'")
            return None

        await self._rate_limiter.acquire()

        body = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "response_format": {"type": "json_object"},
        }

        try:
            async with self._session.post(_API_URL, json=body) as resp:
                if resp.status != 200:
                    error_body = await resp.text()
                    logger.error("Groq HTTP %d: %s", resp.status, error_body[:300])
                    return None
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Groq network error: %s", e)
            return None

        raw_text = ""
        try:
            choices = data.get("choices") or []
            if not choices:
                logger.warning("Groq returned no choices")
                return None
            raw_text = choices[0]["message"]["content"]
            result = json.loads(clean_json_text(raw_text))
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Groq response structure error: %s", e)
            return None
        except json.JSONDecodeError as e:
            logger.error("Groq JSON parse error: %s", e)
            logger.debug("Groq raw text: %s", raw_text[:500])
            return None

        if not isinstance(result, dict):
            logger.error("Groq reply is not a JSON object: %s", type(result).__name__)
            return None

        usage = data.get("usage", {})
        result["_tokens_used"] = usage.get("total_tokens", 0)
        result["_provider"] = self.name
        result["_model"] = self.config.model

        logger.info("Groq response OK: %d tokens used", result["_tokens_used"])
        return result
