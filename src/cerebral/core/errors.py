"""Error taxonomy for agent turns and the services around them."""

from __future__ import annotations

from typing import Optional


class CerebralError(Exception):
    """Base class for all Cerebral errors."""


class InvalidInputError(CerebralError):
    """Missing or unrecognised transcript/agent role. Maps to HTTP 400."""

    def __init__(self, message: str, accepted_roles: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.accepted_roles = accepted_roles or []


class ModelInvocationError(CerebralError):
    """The language-model call failed. Fatal for the turn, maps to HTTP 500."""

    def __init__(self, detail: str):
        super().__init__(f"Failed to generate agent response: {detail}")
        self.detail = detail


class PersistenceError(CerebralError):
    """The command store could not read or write."""


class SearchUnavailableError(CerebralError):
    """The web-search client cannot run (e.g. no API key)."""


class SpeechSynthesisError(CerebralError):
    """The speech provider rejected the request or returned no audio."""
