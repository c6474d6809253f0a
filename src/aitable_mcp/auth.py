# AITable MCP Server
# File: auth.py
# Version: v1

"""API key authentication for AITable requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class ApiKeyAuth:
    """Bearer-token authentication using a personal API key.

    Construction fails immediately when the key is empty so a misconfigured
    server never starts accepting tool calls.
    """

    api_key: Optional[str]

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError(
                "No API key set. Either:\n"
                "1. Set it in the `AITABLE_API_KEY` environment variable, or\n"
                "2. Pass it as the first command-line argument "
                "(deprecated), for example `aitable-mcp <API_KEY>`"
            )

    def headers(self) -> Dict[str, str]:
        """Headers sent with every API request."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` that is safe to write to logs."""
    redacted = dict(headers)
    for key in list(redacted):
        if key.lower() == "authorization":
            redacted[key] = "Bearer [REDACTED]"
    return redacted
