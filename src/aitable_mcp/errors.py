# AITable MCP Server
# File: errors.py
# Version: v1

"""Error taxonomy for the AITable adapter.

The client raises these; the tool facade is the only place that turns them
into error results.
"""

from __future__ import annotations

from typing import Any, List, Optional


class AITableError(Exception):
    """Base class for every error raised by the AITable adapter."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.notes: List[str] = []

    def annotate(self, note: str) -> None:
        """Attach extra context (e.g. the outcome of a fallback attempt)."""
        self.notes.append(note)

    def __str__(self) -> str:
        if not self.notes:
            return self.message
        return f"{self.message} ({'; '.join(self.notes)})"


class ConfigurationError(AITableError):
    """Missing or invalid configuration, raised at construction time."""


class UpstreamError(AITableError):
    """The remote API answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseParseError(AITableError):
    """The response body was not JSON, or did not match the expected shape."""

    def __init__(self, message: str, body: Optional[Any] = None) -> None:
        super().__init__(message)
        self.body = body


class NotFoundError(AITableError):
    """A lookup by id or name found nothing."""


class InvalidArgumentsError(AITableError):
    """Caller-supplied arguments are malformed or reference unusable fields."""


class ConsistencyError(AITableError):
    """A mutation succeeded upstream but the entity could not be found afterwards."""
