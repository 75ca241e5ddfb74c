"""SEMS Monitor — Unified AI Client.

Wraps GeminiClient and GroqClient behind a single generate() call with
automatic fallback and circuit breaker protection:
  - After 5 consecutive failures a provider's circuit opens for 5 minutes
  - While open, calls go straight to the other provider
  - After the cooldown one trial call is allowed
"""

from __future__ import annotations

from typing import Any, Optional, Union

from sems_monitor.config import AIConfig
from sems_monitor.errors import GenerationFailure
from sems_monitor.generator.gemini_client import GeminiClient
from sems_monitor.generator.groq_client import GroqClient
from sems_monitor.utils.logger import get_logger
from sems_monitor.utils.resilience import CircuitBreaker, CircuitOpenError

logger = get_logger(__name__)

Provider = Union[GeminiClient, GroqClient]


async def _generate_or_raise(provider: Provider, prompt: str) -> dict[str, Any]:
    # Providers log and return None instead of raising; the breaker
    # only counts raised errors.
    result = await provider.generate(prompt)
    if result is None:
        raise GenerationFailure(f"{provider.name} returned no usable reply")
    return result


class AIClient:
    """Primary/fallback LLM client.

    Attributes:
        primary: The primary provider client.
        fallback: The fallback provider client.
    """

    def __init__(self, config: AIConfig) -> None:
        gemini = GeminiClient(config.gemini)
        groq = GroqClient(config.groq)

        if config.primary_provider == "gemini":
            self.primary: Provider = gemini
            self.fallback: Provider = groq
        else:
            self.primary = groq
            self.fallback = gemini

        self._breakers = {
            provider.name: CircuitBreaker(
                name=provider.name, failure_threshold=5, cooldown_seconds=300,
            )
            for provider in (self.primary, self.fallback)
        }

        logger.info(
            "AIClient initialized: primary=%s, fallback=%s",
            self.primary.name, self.fallback.name,
        )

    async def __aenter__(self) -> "AIClient":
        await self.primary.__aenter__()
        await self.fallback.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.primary.__aexit__(*args)
        await self.fallback.__aexit__(*args)

    async def _try(self, provider: Provider, prompt: str) -> Optional[dict[str, Any]]:
        if not provider.is_configured:
            return None

        breaker = self._breakers[provider.name]
        try:
            return await breaker.call(_generate_or_raise, provider, prompt)
        except CircuitOpenError as e:
            logger.debug("%s", e)
            return None
        except Exception as e:
            logger.warning("%s failed: %s", provider.name, str(e)[:100])
            return None

    async def generate(self, prompt: str) -> Optional[dict[str, Any]]:
        """Send a prompt to the primary provider, then the fallback.

        Returns:
            The parsed JSON reply with provider metadata, or None if
            neither provider produced one.
        """
        result = await self._try(self.primary, prompt)
        if result is not None:
            return result

        result = await self._try(self.fallback, prompt)
        if result is not None:
            logger.info("Generation served by fallback %s", self.fallback.name)
            return result

        logger.error("Both AI providers failed")
        return None
