# AITable MCP Server
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where we define the behaviour that
# is exposed as MCP tools. The stdio transport only wires `call_tool` into
# FastMCP (see tools/__init__.py).

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..client import AITableClient, find_table
from ..errors import AITableError, InvalidArgumentsError
from ..models import Record, Table, TableField, dumps, to_jsonable
from .arguments import (
    CreateFieldArgs,
    CreateRecordArgs,
    CreateTableArgs,
    DatasheetRecordsByNameArgs,
    DeleteRecordsArgs,
    DescribeTableArgs,
    GetRecordArgs,
    ListAllDatasheetsArgs,
    ListBasesArgs,
    ListRecordsArgs,
    ListTablesArgs,
    SearchRecordsArgs,
    ToolArguments,
    UpdateFieldArgs,
    UpdateRecordsArgs,
    UpdateTableArgs,
)

_LOGGER = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def format_tool_response(data: Any, is_error: bool = False) -> Dict[str, Any]:
    """Wrap ``data`` in the MCP tool result envelope as one JSON text item."""
    return {
        "content": [
            {
                "type": "text",
                "mimeType": JSON_MIME_TYPE,
                "text": dumps(data),
            }
        ],
        "isError": is_error,
    }


def _format_validation_error(tool_name: str, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        problems.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return f"Invalid arguments for {tool_name}: {'; '.join(problems)}"


def project_table(
    table: Union[Table, Mapping[str, Any]],
    detail_level: Optional[str] = None,
) -> Dict[str, Any]:
    """Trim a table to the requested detail level.

    - ``tableIdentifiersOnly``: ``{id, name}``
    - ``identifiersOnly``: ids and names of the table, its fields and views
    - ``full`` / ``None``: everything

    Accepts an already-projected dict, so projecting twice is a no-op.
    """
    data = to_jsonable(table) if isinstance(table, BaseModel) else dict(table)

    if detail_level == "tableIdentifiersOnly":
        return {"id": data["id"], "name": data["name"]}

    if detail_level == "identifiersOnly":
        return {
            "id": data["id"],
            "name": data["name"],
            "fields": [_identifiers(f) for f in data.get("fields", [])],
            "views": [_identifiers(v) for v in data.get("views", [])],
        }

    return data


def _identifiers(item: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: item[k] for k in ("id", "name") if item.get(k) is not None}


def _batch_outcome(
    requested_ids: List[str],
    succeeded: List[Any],
    succeeded_ids: List[str],
    reason: str,
) -> Any:
    """Plain list when every id succeeded, else a succeeded/failed breakdown."""
    done = set(succeeded_ids)
    failed = [{"id": rid, "reason": reason} for rid in requested_ids if rid not in done]
    if not failed:
        return succeeded
    return {"succeeded": succeeded, "failed": failed}


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


async def list_bases(client: AITableClient, args: ListBasesArgs) -> Any:
    return await client.list_bases()


async def list_tables(client: AITableClient, args: ListTablesArgs) -> Any:
    schema = await client.get_base_schema(args.baseId)
    return [project_table(t, args.detailLevel) for t in schema.tables]


async def describe_table(client: AITableClient, args: DescribeTableArgs) -> Any:
    schema = await client.get_base_schema(args.baseId)
    table = find_table(schema, args.baseId, args.tableId)
    return project_table(table, args.detailLevel)


async def list_records(client: AITableClient, args: ListRecordsArgs) -> Any:
    return await client.list_records(
        args.baseId,
        args.tableId,
        max_records=args.maxRecords,
        filter_by_formula=args.filterByFormula,
    )


async def search_records(client: AITableClient, args: SearchRecordsArgs) -> Any:
    return await client.search_records(
        args.baseId,
        args.tableId,
        args.searchTerm,
        field_ids=args.fieldIds,
        max_records=args.maxRecords,
    )


async def get_record(client: AITableClient, args: GetRecordArgs) -> Any:
    return await client.get_record(args.baseId, args.tableId, args.recordId)


async def create_record(client: AITableClient, args: CreateRecordArgs) -> Any:
    return await client.create_record(args.baseId, args.tableId, args.fields)


async def update_records(client: AITableClient, args: UpdateRecordsArgs) -> Any:
    records = [Record(id=r.id, fields=r.fields) for r in args.records]
    updated = await client.update_records(args.baseId, args.tableId, records)
    return _batch_outcome(
        [r.id for r in records],
        updated,
        [r.id for r in updated],
        "Not reported as updated by the server",
    )


async def delete_records(client: AITableClient, args: DeleteRecordsArgs) -> Any:
    results = await client.delete_records(args.baseId, args.tableId, args.recordIds)
    deleted = [r for r in results if r.deleted]
    return _batch_outcome(
        list(args.recordIds),
        deleted,
        [r.id for r in deleted],
        "Not reported as deleted by the server",
    )


async def create_table(client: AITableClient, args: CreateTableArgs) -> Any:
    fields = [TableField(**f.model_dump(exclude_none=True)) for f in args.fields]
    return await client.create_table(
        args.baseId, args.name, fields, description=args.description
    )


async def update_table(client: AITableClient, args: UpdateTableArgs) -> Any:
    return await client.update_table(
        args.baseId, args.tableId, name=args.name, description=args.description
    )


async def create_field(client: AITableClient, args: CreateFieldArgs) -> Any:
    new_field = TableField(
        name=args.name,
        type=args.type,
        description=args.description,
        options=args.options,
    )
    return await client.create_field(args.baseId, args.tableId, new_field)


async def update_field(client: AITableClient, args: UpdateFieldArgs) -> Any:
    return await client.update_field(
        args.baseId,
        args.tableId,
        args.fieldId,
        name=args.name,
        description=args.description,
    )


async def list_all_datasheets(client: AITableClient, args: ListAllDatasheetsArgs) -> Any:
    return await client.get_all_datasheets(args.spaceId)


async def get_datasheet_records_by_name(
    client: AITableClient, args: DatasheetRecordsByNameArgs
) -> Any:
    return await client.get_datasheet_records_by_name(
        args.spaceId,
        args.datasheetName,
        max_records=args.maxRecords,
        filter_by_formula=args.filterByFormula,
    )


# ---------------------------------------------------------------------------
# Tool table & dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: Type[ToolArguments]
    handler: Callable[[AITableClient, Any], Awaitable[Any]]

    def input_schema(self) -> Dict[str, Any]:
        return self.arguments.model_json_schema()


TOOLS: List[ToolSpec] = [
    ToolSpec("list_bases", "List all accessible bases (AITable spaces).", ListBasesArgs, list_bases),
    ToolSpec(
        "list_tables",
        "List all tables in a base, with fields and views depending on detailLevel.",
        ListTablesArgs,
        list_tables,
    ),
    ToolSpec(
        "describe_table",
        "Describe one table of a base, with fields and views depending on detailLevel.",
        DescribeTableArgs,
        describe_table,
    ),
    ToolSpec(
        "list_records",
        "List records of a table, optionally filtered by a formula.",
        ListRecordsArgs,
        list_records,
    ),
    ToolSpec(
        "search_records",
        "Search records whose text fields contain a term.",
        SearchRecordsArgs,
        search_records,
    ),
    ToolSpec("get_record", "Get a single record by id.", GetRecordArgs, get_record),
    ToolSpec("create_record", "Create a record in a table.", CreateRecordArgs, create_record),
    ToolSpec(
        "update_records",
        "Update several records of a table. Reports which records were not updated.",
        UpdateRecordsArgs,
        update_records,
    ),
    ToolSpec(
        "delete_records",
        "Delete several records of a table. Reports which records were not deleted.",
        DeleteRecordsArgs,
        delete_records,
    ),
    ToolSpec("create_table", "Create a table in a base.", CreateTableArgs, create_table),
    ToolSpec(
        "update_table",
        "Change the name and/or description of a table.",
        UpdateTableArgs,
        update_table,
    ),
    ToolSpec("create_field", "Create a field in a table.", CreateFieldArgs, create_field),
    ToolSpec(
        "update_field",
        "Change the name and/or description of a field.",
        UpdateFieldArgs,
        update_field,
    ),
    ToolSpec(
        "list_all_datasheets",
        "Recursively list every datasheet in an AITable space, including those inside folders.",
        ListAllDatasheetsArgs,
        list_all_datasheets,
    ),
    ToolSpec(
        "get_datasheet_records_by_name",
        "List records of the datasheet with the given name, searched through all folders of a space.",
        DatasheetRecordsByNameArgs,
        get_datasheet_records_by_name,
    ),
]

TOOLS_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOLS}


def list_tools() -> List[Dict[str, Any]]:
    """Declarative tool table: name, description and JSON input schema."""
    return [
        {
            "name": spec.name,
            "description": spec.description,
            "inputSchema": spec.input_schema(),
        }
        for spec in TOOLS
    ]


def validate_arguments(spec: ToolSpec, arguments: Optional[Mapping[str, Any]]) -> ToolArguments:
    try:
        return spec.arguments.model_validate(arguments if arguments is not None else {})
    except ValidationError as exc:
        raise InvalidArgumentsError(_format_validation_error(spec.name, exc)) from exc


async def call_tool(
    client: AITableClient,
    name: str,
    arguments: Optional[Mapping[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """Validate, dispatch and wrap one tool call.

    Never raises for tool failures: every error is returned as an envelope
    with ``isError: true``.
    """
    log = logger or _LOGGER

    try:
        spec = TOOLS_BY_NAME.get(name)
        if spec is None:
            raise InvalidArgumentsError(f"Unknown tool: {name}")

        args = validate_arguments(spec, arguments)
        result = await spec.handler(client, args)
    except AITableError as exc:
        log.warning("Tool %s failed: %s", name, exc)
        return format_tool_response(f"Error in tool {name}: {exc}", is_error=True)
    except Exception as exc:  # noqa: BLE001
        log.exception("Tool %s failed unexpectedly", name)
        return format_tool_response(f"Error in tool {name}: {exc}", is_error=True)

    return format_tool_response(result)
