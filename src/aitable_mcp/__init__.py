# AITable MCP Server
# File: __init__.py
# Version: v1

"""Top-level package for the AITable MCP Server."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]


def _resolve_version() -> str:
    """Version of the installed ``aitable-mcp-server`` distribution."""
    try:
        return version("aitable-mcp-server")
    except PackageNotFoundError:
        # Imported from src/ without `pip install -e .`; matches pyproject.toml.
        return "0.1.0"


__version__ = _resolve_version()
