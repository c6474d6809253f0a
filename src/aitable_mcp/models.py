# AITable MCP Server
# File: models.py
# Version: v1

"""Domain models used by the AITable MCP server.

Both upstream dialects are normalised into these shapes before anything
leaves the client.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

JSONPrimitive = Union[str, int, float, bool, None]
FieldValue = Union[JSONPrimitive, List[JSONPrimitive]]


class Base(BaseModel):
    """A base (AITable space) visible to the API key."""

    id: str
    name: str
    # read / write / create / owner; kept open for upstream additions.
    permissionLevel: str


class TableField(BaseModel):
    """A column definition. Unknown upstream keys are preserved."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str
    type: str
    description: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class View(BaseModel):
    id: str
    name: str
    type: str


class Table(BaseModel):
    """A table (AITable datasheet) with its fields and views."""

    id: str
    name: str
    description: Optional[str] = None
    primaryFieldId: str
    fields: List[TableField]
    views: List[View]

    # Reserved for a folder breadcrumb such as "Folder > Subfolder > Table".
    # No listing fills it in today; folder paths are reported on DatasheetInfo.
    path: Optional[str] = None


class BaseSchema(BaseModel):
    tables: List[Table] = Field(default_factory=list)


class Record(BaseModel):
    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)


class DeletedRecord(BaseModel):
    id: str
    deleted: bool = True


class DatasheetInfo(BaseModel):
    """Where a datasheet lives inside a space's folder tree."""

    id: str
    name: str
    path: str
    spaceId: str


def to_jsonable(value: Any) -> Any:
    """Convert models (and containers of models) into plain JSON data.

    Optional attributes that are unset are dropped, except inside record
    field maps which are passed through untouched.
    """
    if isinstance(value, Record):
        return {"id": value.id, "fields": value.fields}
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def dumps(value: Any) -> str:
    """Compact JSON text, byte-compatible with JavaScript's JSON.stringify."""
    return json.dumps(to_jsonable(value), separators=(",", ":"), ensure_ascii=False)
