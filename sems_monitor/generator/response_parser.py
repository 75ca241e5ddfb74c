"""SEMS Monitor — LLM Response Parser.

Turns the raw JSON object returned by a provider into a GeneratedMessage.
Unlike lenient score parsing, a message is all-or-nothing: a reply
without string 'subject' and 'body' fields is rejected whole.
"""

from __future__ import annotations

import re
from typing import Any

from sems_monitor.errors import GenerationFailure
from sems_monitor.models import GeneratedMessage
from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def clean_json_text(text: str) -> str:
    """Strip markdown fences and surrounding chatter from a model reply.

    Returns the first balanced ``{...}`` object when the text does not
    already start with one.

    Args:
        text: Raw response text from the API.

    Returns:
        Text ready for json.loads().
    """
    text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text.strip())).strip()
    if text.startswith("{"):
        return text

    start = text.find("{")
    if start == -1:
        return text

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return text[start:]


class ResponseParser:
    """Validates provider replies into GeneratedMessage objects."""

    @staticmethod
    def parse_message(raw: Any, require_subject: bool) -> GeneratedMessage:
        """Build a GeneratedMessage from a provider reply.

        Args:
            raw: Dict from the AI client (may carry _provider etc.).
            require_subject: True for Email, where an empty subject is invalid.

        Returns:
            The parsed message with surrounding whitespace trimmed.

        Raises:
            GenerationFailure: If the reply is not a dict, lacks string
                'subject' / 'body', or the required fields are empty.
        """
        if not isinstance(raw, dict):
            raise GenerationFailure(f"Reply is not a JSON object: {type(raw).__name__}")

        subject = raw.get("subject")
        body = raw.get("body")

        if not isinstance(body, str) or not body.strip():
            raise GenerationFailure("Reply is missing a 'body' string")
        if subject is None and not require_subject:
            subject = ""
        if not isinstance(subject, str):
            raise GenerationFailure("Reply is missing a 'subject' string")
        if require_subject and not subject.strip():
            raise GenerationFailure("Reply has an empty 'subject'")

        logger.debug(
            "Parsed message from %s (%s tokens)",
            raw.get("_provider", "?"), raw.get("_tokens_used", "?"),
        )
        return GeneratedMessage(subject=subject.strip(), body=body.strip())
