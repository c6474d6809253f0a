# AITable MCP Server
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the AITable MCP server.

This is the script behind the ``aitable-mcp`` console command.

It:

- reads the configuration from the environment,
- builds the AITable client (failing fast without an API key),
- registers all tools and resources on a FastMCP server, and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import List, Optional

from ..client import AITableClient
from ..config import AITableConfig
from ..errors import ConfigurationError
from ..tools import AITableMCP, build_mcp

logger = logging.getLogger("aitable_mcp")


def _configure_logging(level: str) -> None:
    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_server(config: AITableConfig) -> AITableMCP:
    """Create a FastMCP server with every AITable tool and resource registered."""
    client = AITableClient(config=config, logger=logger)
    return build_mcp(client)


def main(argv: Optional[List[str]] = None) -> None:
    """Synchronous entrypoint for console_scripts."""
    args = sys.argv[1:] if argv is None else argv

    config = AITableConfig.from_env()
    _configure_logging(config.log_level)

    if not config.api_key and args:
        logger.warning(
            "Passing the API key as a command-line argument is deprecated; "
            "set AITABLE_API_KEY instead."
        )
        config = dataclasses.replace(config, api_key=args[0])

    try:
        mcp = build_server(config)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    logger.info("Starting AITable MCP server on stdio")
    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
