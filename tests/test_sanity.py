# AITable MCP Server
# File: tests/test_sanity.py
# Version: v1

"""Basic sanity tests for configuration, auth and client construction."""

import logging

import pytest

from aitable_mcp import __version__
from aitable_mcp.auth import ApiKeyAuth, redact_headers
from aitable_mcp.client import AITableClient
from aitable_mcp.config import DEFAULT_BASE_URL, DEFAULT_FUSION_URL, AITableConfig
from aitable_mcp.errors import ConfigurationError
from aitable_mcp.transports import stdio_server


def test_version_is_a_string() -> None:
    assert isinstance(__version__, str)
    assert __version__


def test_config_from_env_defaults(monkeypatch) -> None:
    for name in (
        "AITABLE_API_KEY",
        "AITABLE_BASE_URL",
        "AITABLE_FUSION_URL",
        "AITABLE_TIMEOUT_SECONDS",
        "AITABLE_VERIFY_TLS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    config = AITableConfig.from_env()

    assert config.api_key is None
    assert config.base_url == DEFAULT_BASE_URL
    assert config.fusion_url == DEFAULT_FUSION_URL
    assert config.timeout_seconds == 30
    assert config.verify_tls is True
    assert config.log_level == "INFO"


def test_config_from_env_reads_and_clamps(monkeypatch) -> None:
    monkeypatch.setenv("AITABLE_API_KEY", "usk123")
    monkeypatch.setenv("AITABLE_BASE_URL", "https://example.test/")
    monkeypatch.setenv("AITABLE_FUSION_URL", "https://example.test/fusion/v1/")
    monkeypatch.setenv("AITABLE_TIMEOUT_SECONDS", "100000")
    monkeypatch.setenv("AITABLE_VERIFY_TLS", "off")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = AITableConfig.from_env()

    assert config.api_key == "usk123"
    assert config.base_url == "https://example.test"
    assert config.fusion_url == "https://example.test/fusion/v1"
    assert config.timeout_seconds == 600
    assert config.verify_tls is False
    assert config.log_level == "DEBUG"


def test_config_bad_timeout_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("AITABLE_TIMEOUT_SECONDS", "soon")
    assert AITableConfig.from_env().timeout_seconds == 30


@pytest.mark.parametrize("api_key", [None, "", "   "])
def test_client_construction_fails_fast_without_key(api_key) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        AITableClient(config=AITableConfig(api_key=api_key))

    assert "AITABLE_API_KEY" in str(excinfo.value)


def test_auth_headers_and_redaction() -> None:
    headers = ApiKeyAuth("secret-key").headers()

    assert headers["Authorization"] == "Bearer secret-key"
    assert headers["Accept"] == "application/json"
    assert headers["Content-Type"] == "application/json"

    redacted = redact_headers(headers)
    assert redacted["Authorization"] == "Bearer [REDACTED]"
    assert "secret-key" not in str(redacted)
    # The original mapping is untouched.
    assert headers["Authorization"] == "Bearer secret-key"


def test_client_uses_injected_logger() -> None:
    custom = logging.getLogger("tests.custom")
    client = AITableClient(config=AITableConfig(api_key="k"), logger=custom)
    assert client.logger is custom
    assert [d.name for d in client.dialects] == ["meta", "fusion"]


def test_stdio_main_exits_without_key(monkeypatch) -> None:
    monkeypatch.delenv("AITABLE_API_KEY", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        stdio_server.main([])

    assert excinfo.value.code == 1


def test_stdio_main_accepts_deprecated_positional_key(monkeypatch, caplog) -> None:
    monkeypatch.delenv("AITABLE_API_KEY", raising=False)

    started = {}

    def fake_build_server(config):
        started["api_key"] = config.api_key

        class _Server:
            def run(self):
                started["ran"] = True

        return _Server()

    monkeypatch.setattr(stdio_server, "build_server", fake_build_server)

    with caplog.at_level(logging.WARNING, logger="aitable_mcp"):
        stdio_server.main(["usk-from-argv"])

    assert started == {"api_key": "usk-from-argv", "ran": True}
    assert "deprecated" in caplog.text
