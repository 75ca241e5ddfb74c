"""SEMS Monitor — Generator Package.

Turns alert and billing fact sheets into customer messages.
Components:
  - GeminiClient / GroqClient: LLM providers
  - AIClient: primary/fallback client with circuit breakers
  - TemplateBackend: deterministic local rendering
  - MessageEngine: validation, backend call, content rule checks
"""

from sems_monitor.generator.gemini_client import GeminiClient
from sems_monitor.generator.groq_client import GroqClient
from sems_monitor.generator.ai_client import AIClient
from sems_monitor.generator.templates import TemplateBackend
from sems_monitor.generator.engine import LLMBackend, MessageEngine, build_engine

__all__ = [
    "GeminiClient",
    "GroqClient",
    "AIClient",
    "TemplateBackend",
    "LLMBackend",
    "MessageEngine",
    "build_engine",
]
