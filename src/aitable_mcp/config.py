# AITable MCP Server
# File: config.py
# Version: v1

"""Configuration loading for the AITable MCP Server."""

from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_BASE_URL = "https://api.aitable.ai"
DEFAULT_FUSION_URL = "https://aitable.ai/fusion/v1"


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_url_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().rstrip("/")


@dataclass(frozen=True)
class AITableConfig:
    """Configuration values required to talk to AITable.

    ``base_url`` serves the primary (``/v0/meta/bases``) endpoints and
    ``fusion_url`` the spaces/nodes/datasheets endpoints used as fallback.
    The client never reads the environment itself; build the config once at
    the process boundary and pass it in.
    """

    api_key: str | None
    base_url: str = DEFAULT_BASE_URL
    fusion_url: str = DEFAULT_FUSION_URL

    timeout_seconds: int = 30
    verify_tls: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AITableConfig":
        """Create configuration from environment variables."""
        api_key = os.getenv("AITABLE_API_KEY") or None

        base_url = _parse_url_env("AITABLE_BASE_URL", DEFAULT_BASE_URL)
        fusion_url = _parse_url_env("AITABLE_FUSION_URL", DEFAULT_FUSION_URL)

        timeout_seconds = _parse_int_env(
            "AITABLE_TIMEOUT_SECONDS", default=30, min_value=1, max_value=600
        )
        verify_tls = _parse_bool_env("AITABLE_VERIFY_TLS", default=True)
        log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

        return cls(
            api_key=api_key,
            base_url=base_url,
            fusion_url=fusion_url,
            timeout_seconds=timeout_seconds,
            verify_tls=verify_tls,
            log_level=log_level,
        )
