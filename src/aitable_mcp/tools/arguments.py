# AITable MCP Server
# File: tools/arguments.py
# Version: v1

"""Input models for every MCP tool.

Argument names are camelCase because that is what MCP clients send and what
the published input schemas advertise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import FieldValue

DetailLevel = Literal["tableIdentifiersOnly", "identifiersOnly", "full"]

_BASE_ID = "ID of the base (AITable space)"
_TABLE_ID = "ID of the table (AITable datasheet)"


class ToolArguments(BaseModel):
    """Base class for tool arguments. String values are passed on verbatim."""


class ListBasesArgs(ToolArguments):
    pass


class ListTablesArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    detailLevel: Optional[DetailLevel] = Field(
        default=None,
        description="How much of each table to return; defaults to full",
    )


class DescribeTableArgs(ListTablesArgs):
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)


class ListRecordsArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    maxRecords: Optional[int] = Field(
        default=None, description="Maximum number of records to return", ge=1
    )
    filterByFormula: Optional[str] = Field(
        default=None, description="Formula that records must satisfy"
    )


class SearchRecordsArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    searchTerm: str = Field(..., description="Text to search for", min_length=1)
    fieldIds: Optional[List[str]] = Field(
        default=None,
        description="Text fields to search in; defaults to every text field",
    )
    maxRecords: Optional[int] = Field(
        default=None, description="Maximum number of records to return", ge=1
    )


class GetRecordArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    recordId: str = Field(..., description="ID of the record", min_length=1)


class CreateRecordArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    fields: Dict[str, FieldValue] = Field(
        ..., description="Field values keyed by field name"
    )


class RecordUpdate(BaseModel):
    id: str = Field(..., min_length=1)
    fields: Dict[str, FieldValue]


class UpdateRecordsArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    records: List[RecordUpdate] = Field(
        ..., description="Records to update, each with its id and changed fields", min_length=1
    )


class DeleteRecordsArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    recordIds: List[str] = Field(..., description="IDs of the records to delete", min_length=1)


class FieldSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    description: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class CreateTableArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    name: str = Field(..., description="Name of the new table", min_length=1)
    description: Optional[str] = Field(default=None, description="Table description")
    fields: List[FieldSpec] = Field(
        ..., description="Field definitions; the first one becomes the primary field", min_length=1
    )


class UpdateTableArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    name: Optional[str] = Field(default=None, description="New table name")
    description: Optional[str] = Field(default=None, description="New table description")


class CreateFieldArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    name: str = Field(..., description="Name of the new field", min_length=1)
    type: str = Field(..., description="Field type, e.g. singleLineText", min_length=1)
    description: Optional[str] = Field(default=None, description="Field description")
    options: Optional[Dict[str, Any]] = Field(
        default=None, description="Type-specific field options"
    )


class UpdateFieldArgs(ToolArguments):
    baseId: str = Field(..., description=_BASE_ID, min_length=1)
    tableId: str = Field(..., description=_TABLE_ID, min_length=1)
    fieldId: str = Field(..., description="ID of the field", min_length=1)
    name: Optional[str] = Field(default=None, description="New field name")
    description: Optional[str] = Field(default=None, description="New field description")


class ListAllDatasheetsArgs(ToolArguments):
    spaceId: str = Field(..., description="ID of the AITable space", min_length=1)


class DatasheetRecordsByNameArgs(ToolArguments):
    spaceId: str = Field(..., description="ID of the AITable space", min_length=1)
    datasheetName: str = Field(
        ..., description="Exact name of the datasheet", min_length=1
    )
    maxRecords: Optional[int] = Field(
        default=None, description="Maximum number of records to return", ge=1
    )
    filterByFormula: Optional[str] = Field(
        default=None, description="Formula that records must satisfy"
    )
