"""SEMS Monitor — Error Taxonomy.

Raised inside the engine, stores and transports. The notification
session and dispatcher convert every one of these into a
``DispatchResult(success=False, ...)`` or an inline error string, so
none of them reaches an operator as an uncaught traceback.
"""

from __future__ import annotations


class SemsError(Exception):
    """Base class for all application errors."""


class ValidationError(SemsError):
    """Malformed caller input, detected before any external call."""


class GenerationFailure(SemsError):
    """Generation backend unreachable or returned an unusable message."""


class ConfigurationError(SemsError):
    """Required credentials or settings are absent."""


class DeliveryError(SemsError):
    """The mail provider rejected or failed a send."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UnsupportedChannel(SemsError):
    """Recognized-but-unimplemented or unrecognized delivery channel."""

    def __init__(self, channel: object) -> None:
        super().__init__(f'The notification method "{channel}" is not supported.')
        self.channel = channel


class StoreError(SemsError):
    """The realtime database could not be read or written."""
