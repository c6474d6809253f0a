# demo_mcp_list_bases.py
# Version: v1

r"""
Quick demo for the list_bases / list_tables MCP tools.

Usage (bash):

  export AITABLE_API_KEY="usk..."
  python demo_mcp_list_bases.py
"""

import asyncio
import json

from aitable_mcp.client import AITableClient
from aitable_mcp.config import AITableConfig
from aitable_mcp.tools import tasks


async def main() -> None:
    client = AITableClient(config=AITableConfig.from_env())

    print("Calling MCP tool: list_bases")
    envelope = await tasks.call_tool(client, "list_bases", {})
    bases = json.loads(envelope["content"][0]["text"])

    if envelope["isError"]:
        print(bases)
        return

    print(f"Bases returned: {len(bases)}")
    for base in bases:
        print(f"- {base['name']} (id={base['id']}, permission={base['permissionLevel']})")

        tables_env = await tasks.call_tool(
            client,
            "list_tables",
            {"baseId": base["id"], "detailLevel": "tableIdentifiersOnly"},
        )
        for table in json.loads(tables_env["content"][0]["text"]) or []:
            if isinstance(table, dict):
                print(f"    table: {table['name']} (id={table['id']})")


if __name__ == "__main__":
    asyncio.run(main())
