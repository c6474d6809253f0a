# demo_mcp_list_datasheets.py
# Version: v1

r"""
Quick demo for the list_all_datasheets MCP tool.

Usage (bash):

  export AITABLE_API_KEY="usk..."
  export AITABLE_TEST_SPACE="spcXXXXXXXX"
  export AITABLE_TEST_DATASHEET="Invoices"   # optional
  python demo_mcp_list_datasheets.py
"""

import asyncio
import json
import os

from aitable_mcp.client import AITableClient
from aitable_mcp.config import AITableConfig
from aitable_mcp.tools import tasks


SPACE = os.environ.get("AITABLE_TEST_SPACE", "")
DATASHEET = os.environ.get("AITABLE_TEST_DATASHEET") or None


async def main() -> None:
    client = AITableClient(config=AITableConfig.from_env())

    print("Calling MCP tool: list_all_datasheets")
    print(f"Space: {SPACE!r}")
    print()

    envelope = await tasks.call_tool(client, "list_all_datasheets", {"spaceId": SPACE})
    result = json.loads(envelope["content"][0]["text"])
    if envelope["isError"]:
        print(result)
        return

    for sheet in result:
        print(f"- {sheet['path']} (id={sheet['id']})")
    if not result:
        print("No datasheets found.")

    if DATASHEET:
        print()
        print(f"Records of {DATASHEET!r}:")
        envelope = await tasks.call_tool(
            client,
            "get_datasheet_records_by_name",
            {"spaceId": SPACE, "datasheetName": DATASHEET, "maxRecords": 5},
        )
        print(json.dumps(json.loads(envelope["content"][0]["text"]), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
