"""SEMS Monitor — Google Gemini Client.

Async client for the Gemini generateContent API. Sends a notification
drafting prompt in JSON mode and returns the parsed object plus
provider metadata.

Uses aiohttp for HTTP calls and AsyncRateLimiter for RPM throttling.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import aiohttp

from sems_monitor.config import GeminiConfig
from sems_monitor.generator.response_parser import clean_json_text
from sems_monitor.utils.logger import get_logger
from sems_monitor.utils.rate_limiter import AsyncRateLimiter

logger = get_logger(__name__)

_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

# Alert copy talks about tampering and security; keep the default
# filters from blocking it.
_SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_ONLY_HIGH"},
]


class GeminiClient:
    """Gemini provider with the same generate() surface as GroqClient.

    Attributes:
        config: GeminiConfig with api_key, model, temperature, etc.
    """

    def __init__(self, config: GeminiConfig) -> None:
        self.config = config
        self._rate_limiter = AsyncRateLimiter(config.rpm_limit, period_seconds=60.0)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def __aenter__(self) -> "GeminiClient":
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=30),
        )
        logger.debug("Gemini client session created")
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Gemini client session closed")

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
                "responseMimeType": "application/json",
                "thinkingConfig": {"thinkingBudget": 0},
            },
            "safetySettings": _SAFETY_SETTINGS,
        }

    async def generate(self, prompt: str) -> Optional[dict[str, Any]]:
        """Send a prompt and return the parsed JSON reply.

        Returns:
            Parsed dict with _tokens_used, _provider and _model added,
            or None on any HTTP, network or parse failure.
        """
        if not self.is_configured:
            logger.warning("Gemini API key not configured, skipping")
            return None
        if self._session is None:
            logger.error("Gemini session not created, use 'async with'")
            return None

        await self._rate_limiter.acquire()

        url = f"{_API_BASE}/{self.config.model}:generateContent"
        try:
            async with self._session.post(
                url,
                params={"key": self.config.api_key},
                json=self._request_body(prompt),
            ) as resp:
                if resp.status != 200:
                    error_body = await resp.text()
                    logger.error("Gemini HTTP %d: %s", resp.status, error_body[:300])
                    return None
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Gemini network error: %s", e)
            return None

        # ── Parse response ───────────────────────────────
        raw_text = ""
        try:
            candidates = data.get("candidates") or []
            if not candidates:
                logger.warning("Gemini returned no candidates")
                return None
            parts = candidates[0]["content"]["parts"]
            text_parts = [
                p["text"] for p in parts
                if "text" in p and not p.get("thought", False)
            ]
            if not text_parts:
                logger.warning("Gemini returned no text parts")
                return None
            raw_text = text_parts[-1]
            result = json.loads(clean_json_text(raw_text))
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Gemini response structure error: %s", e)
            return None
        except json.JSONDecodeError as e:
            logger.error("Gemini JSON parse error: %s", e)
            logger.debug("Gemini raw text: %s", raw_text[:500])
            return None

        if not isinstance(result, dict):
            logger.error("Gemini reply is not a JSON object: %s", type(result).__name__)
            return None

        usage = data.get("usageMetadata", {})
        result["_tokens_used"] = usage.get("totalTokenCount", 0)
        result["_provider"] = self.name
        result["_model"] = self.config.model

        logger.info("Gemini response OK: %d tokens used", result["_tokens_used"])
        return result
