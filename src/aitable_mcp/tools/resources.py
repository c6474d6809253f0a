# AITable MCP Server
# File: tools/resources.py
# Version: v1

"""MCP resources: base schemas and table records.

- ``aitable://<baseId>/schema``            full schema of a base
- ``aitable://<baseId>/<tableId>/records`` every record of a table
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from ..client import AITableClient
from ..errors import AITableError, InvalidArgumentsError
from ..models import dumps

_LOGGER = logging.getLogger(__name__)

SCHEMA_URI_TEMPLATE = "aitable://{base_id}/schema"
RECORDS_URI_TEMPLATE = "aitable://{base_id}/{table_id}/records"

_SCHEMA_URI = re.compile(r"^aitable://(?P<base_id>[^/]+)/schema$")
_RECORDS_URI = re.compile(r"^aitable://(?P<base_id>[^/]+)/(?P<table_id>[^/]+)/records$")


async def list_resources(
    client: AITableClient, logger: Optional[logging.Logger] = None
) -> List[Dict[str, Any]]:
    """Enumerate one schema resource per base and one records resource per table.

    A base whose schema cannot be read is logged and left out.
    """
    log = logger or _LOGGER
    resources: List[Dict[str, Any]] = []

    for base in await client.list_bases():
        resources.append(
            {
                "uri": SCHEMA_URI_TEMPLATE.format(base_id=base.id),
                "name": f"{base.name} schema",
                "description": f"Tables, fields and views of base {base.name}",
                "mimeType": "application/json",
            }
        )

        try:
            schema = await client.get_base_schema(base.id)
        except AITableError as exc:
            log.error("Failed to get tables for base %s: %s", base.id, exc)
            continue

        for table in schema.tables:
            resources.append(
                {
                    "uri": RECORDS_URI_TEMPLATE.format(base_id=base.id, table_id=table.id),
                    "name": f"{base.name} - {table.name}",
                    "description": f"Records of table {table.name} in base {base.name}",
                    "mimeType": "application/json",
                }
            )

    return resources


async def read_resource(client: AITableClient, uri: str) -> str:
    """Return the JSON text behind a resource URI."""
    uri = str(uri)

    match = _SCHEMA_URI.match(uri)
    if match:
        return dumps(await client.get_base_schema(match["base_id"]))

    match = _RECORDS_URI.match(uri)
    if match:
        return dumps(await client.list_records(match["base_id"], match["table_id"]))

    raise InvalidArgumentsError(
        f"Invalid resource URI: {uri}, expected {SCHEMA_URI_TEMPLATE} "
        f"or {RECORDS_URI_TEMPLATE}"
    )


def register_resources(server: Any, client: AITableClient) -> None:
    """Register the resource templates on a FastMCP-like server."""

    @server.resource(
        SCHEMA_URI_TEMPLATE,
        name="base_schema",
        description="Tables, fields and views of a base.",
        mime_type="application/json",
    )
    async def base_schema(base_id: str) -> str:
        return await read_resource(client, SCHEMA_URI_TEMPLATE.format(base_id=base_id))

    @server.resource(
        RECORDS_URI_TEMPLATE,
        name="table_records",
        description="All records of a table.",
        mime_type="application/json",
    )
    async def table_records(base_id: str, table_id: str) -> str:
        return await read_resource(
            client, RECORDS_URI_TEMPLATE.format(base_id=base_id, table_id=table_id)
        )
