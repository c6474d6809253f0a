# AITable MCP Server
# File: tools/__init__.py
# Version: v1

"""FastMCP server wired to the AITable tool table and resources."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP  # type: ignore[import]
from mcp.types import CallToolResult, Resource as MCPResource, Tool as MCPTool

from ..client import AITableClient
from . import resources, tasks


class AITableMCP(FastMCP):
    """FastMCP server whose tools and resource listing come from the AITable facade.

    Tool schemas are the ones published by ``tasks.list_tools`` and every call
    goes through ``tasks.call_tool``, so argument errors reach the client in
    the same ``Error in tool ...`` envelope as any other failure. The resource
    listing adds one concrete schema resource per base and one records
    resource per table to the registered templates.
    """

    def __init__(self, name: str, client: AITableClient, **settings: Any) -> None:
        self.client = client
        super().__init__(name, **settings)
        resources.register_resources(self, client)

    async def list_tools(self) -> List[MCPTool]:
        return [MCPTool.model_validate(tool) for tool in tasks.list_tools()]

    async def call_tool(  # type: ignore[override]
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> CallToolResult:
        envelope = await tasks.call_tool(self.client, name, arguments)
        return CallToolResult.model_validate(envelope)

    async def list_resources(self) -> List[MCPResource]:
        listed = await super().list_resources()
        listed.extend(
            MCPResource.model_validate(item)
            for item in await resources.list_resources(self.client)
        )
        return listed


def build_mcp(client: AITableClient, name: str = "aitable-mcp-server") -> AITableMCP:
    """Create the MCP server exposing every AITable tool and resource."""
    return AITableMCP(name, client)
