# AITable MCP Server
# File: dialects.py
# Version: v1
"""Upstream API dialects.

AITable answers on two incompatible API surfaces:

- the *meta* dialect (Airtable-compatible):
  /v0/meta/bases, /v0/meta/bases/<base>/tables, /v0/<base>/<table>[/<record>]
- the *fusion* dialect:
  /fusion/v1/spaces, /spaces/<space>/nodes[/<node>], /datasheets/<dst>/{records,fields,views}

Each dialect implements the same operations and returns the normalised
models from ``models.py``. Which one answers depends on the service behind
the API key, so AITableClient tries them in order (see ``client.py``).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import AITableError, NotFoundError, ResponseParseError, UpstreamError
from .models import (
    Base,
    BaseSchema,
    DatasheetInfo,
    DeletedRecord,
    Record,
    Table,
    TableField,
    View,
)
from .search import build_search_formula, escape_formula_string, record_matches

if TYPE_CHECKING:  # pragma: no cover
    from .client import AITableClient

M = TypeVar("M", bound=BaseModel)

PATH_SEPARATOR = " > "
FUSION_DEFAULT_PAGE_SIZE = 100
FUSION_MAX_PAGE_SIZE = 1000


def _validate(model: Type[M], payload: Any, endpoint: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ResponseParseError(
            f"API response validation failed for '{endpoint}': {exc}",
            body=payload,
        ) from exc


def resolve_primary_field_id(
    declared: Optional[str],
    fields: Sequence[TableField],
    table_id: str,
) -> str:
    """Pick the primary field id, falling back to the first field."""
    field_ids = [f.id for f in fields if f.id]
    if declared and (not field_ids or declared in field_ids):
        return declared
    if field_ids:
        return field_ids[0]
    raise ResponseParseError(
        f"Table {table_id} has no primary field and no fields to fall back on"
    )


def _join_path(parent: str, name: str) -> str:
    return f"{parent}{PATH_SEPARATOR}{name}" if parent else name


# ---------------------------------------------------------------------------
# Wire shapes
# ---------------------------------------------------------------------------


class _Created(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str


class _RecordBatch(BaseModel):
    records: List[Record]


class _MetaBasesPage(BaseModel):
    bases: List[Base]
    offset: Optional[str] = None


class _MetaTable(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    primaryFieldId: Optional[str] = None
    fields: List[TableField]
    views: List[View]

    def normalize(self) -> Table:
        return Table(
            id=self.id,
            name=self.name,
            description=self.description,
            primaryFieldId=resolve_primary_field_id(
                self.primaryFieldId, self.fields, self.id
            ),
            fields=self.fields,
            views=self.views,
        )


class _MetaTables(BaseModel):
    tables: List[_MetaTable]


class _MetaRecordsPage(BaseModel):
    records: List[Record]
    offset: Optional[str] = None


class _MetaDeleted(BaseModel):
    records: List[DeletedRecord]


class _FusionEnvelope(BaseModel):
    success: bool
    code: Optional[int] = None
    message: Optional[str] = None
    data: Any = None


class _FusionSpace(BaseModel):
    id: str
    name: str
    isAdmin: bool = False


class _FusionSpaces(BaseModel):
    spaces: List[_FusionSpace]


class _FusionNode(BaseModel):
    id: str
    name: str
    type: str
    children: List["_FusionNode"] = Field(default_factory=list)

    @property
    def is_datasheet(self) -> bool:
        return self.type.lower() == "datasheet"

    @property
    def is_folder(self) -> bool:
        return self.type.lower() == "folder"


_FusionNode.model_rebuild()


class _FusionNodes(BaseModel):
    nodes: List[_FusionNode]


class _FusionField(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    type: str
    property: Optional[Dict[str, Any]] = None
    isPrimary: bool = False
    desc: Optional[str] = None

    def normalize(self) -> TableField:
        return TableField(
            id=self.id,
            name=self.name,
            type=self.type,
            description=self.desc,
            options=self.property or None,
        )


class _FusionFields(BaseModel):
    fields: List[_FusionField]


class _FusionViews(BaseModel):
    views: List[View]


class _FusionRecord(BaseModel):
    recordId: str
    fields: Dict[str, Any] = Field(default_factory=dict)

    def normalize(self) -> Record:
        return Record(id=self.recordId, fields=self.fields)


class _FusionRecordBatch(BaseModel):
    records: List[_FusionRecord] = Field(default_factory=list)


class _FusionRecordsPage(_FusionRecordBatch):
    total: Optional[int] = None
    pageNum: Optional[int] = None
    pageSize: Optional[int] = None


# ---------------------------------------------------------------------------
# Dialect interface
# ---------------------------------------------------------------------------


class Dialect(ABC):
    """One upstream API surface, exposing the adapter's operations."""

    name = "dialect"

    def __init__(self, client: "AITableClient", root_url: str) -> None:
        self._client = client
        self._root_url = root_url.rstrip("/")

    @property
    def _logger(self):
        return self._client.logger

    def _url(self, endpoint: str) -> str:
        return f"{self._root_url}{endpoint}"

    async def _call(
        self,
        method: str,
        endpoint: str,
        model: Type[M],
        *,
        params: Any = None,
        json_body: Any = None,
    ) -> M:
        payload = await self._client.request(
            method, self._url(endpoint), params=params, json_body=json_body
        )
        return _validate(model, payload, endpoint)

    @abstractmethod
    async def list_bases(self) -> List[Base]: ...

    @abstractmethod
    async def get_base_schema(self, base_id: str) -> BaseSchema: ...

    @abstractmethod
    async def list_records(
        self,
        base_id: str,
        table_id: str,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> List[Record]: ...

    @abstractmethod
    async def get_record(self, base_id: str, table_id: str, record_id: str) -> Record: ...

    @abstractmethod
    async def create_record(
        self, base_id: str, table_id: str, fields: Dict[str, Any]
    ) -> Record: ...

    @abstractmethod
    async def update_records(
        self, base_id: str, table_id: str, records: Sequence[Record]
    ) -> List[Record]: ...

    @abstractmethod
    async def delete_records(
        self, base_id: str, table_id: str, record_ids: Sequence[str]
    ) -> List[DeletedRecord]: ...

    @abstractmethod
    async def create_table(
        self,
        base_id: str,
        name: str,
        fields: Sequence[TableField],
        description: Optional[str] = None,
    ) -> str:
        """Create a table and return its id."""

    @abstractmethod
    async def update_table(
        self, base_id: str, table_id: str, updates: Dict[str, str]
    ) -> None: ...

    @abstractmethod
    async def create_field(self, base_id: str, table_id: str, field: TableField) -> str:
        """Create a field and return its id."""

    @abstractmethod
    async def update_field(
        self, base_id: str, table_id: str, field_id: str, updates: Dict[str, str]
    ) -> None: ...

    @abstractmethod
    async def search_records(
        self,
        base_id: str,
        table_id: str,
        search_term: str,
        fields: Sequence[TableField],
        max_records: Optional[int] = None,
    ) -> List[Record]: ...


# ---------------------------------------------------------------------------
# Meta dialect (primary)
# ---------------------------------------------------------------------------


class MetaDialect(Dialect):
    """Airtable-compatible endpoints under ``config.base_url``."""

    name = "meta"

    async def list_bases(self) -> List[Base]:
        bases: List[Base] = []
        offset: Optional[str] = None

        while True:
            params = {"offset": offset} if offset else None
            page = await self._call("GET", "/v0/meta/bases", _MetaBasesPage, params=params)
            bases.extend(page.bases)
            offset = page.offset
            if not offset:
                break

        return bases

    async def get_base_schema(self, base_id: str) -> BaseSchema:
        payload = await self._call("GET", f"/v0/meta/bases/{base_id}/tables", _MetaTables)
        return BaseSchema(tables=[t.normalize() for t in payload.tables])

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> List[Record]:
        records: List[Record] = []
        offset: Optional[str] = None

        # The server owns truncation: maxRecords is forwarded as-is and we keep
        # following offsets until none is returned.
        while True:
            params: Dict[str, Any] = {}
            if max_records:
                params["maxRecords"] = int(max_records)
            if filter_by_formula:
                params["filterByFormula"] = filter_by_formula
            if offset:
                params["offset"] = offset

            page = await self._call(
                "GET", f"/v0/{base_id}/{table_id}", _MetaRecordsPage, params=params or None
            )
            records.extend(page.records)
            offset = page.offset
            if not offset:
                break

        return records

    async def get_record(self, base_id: str, table_id: str, record_id: str) -> Record:
        return await self._call("GET", f"/v0/{base_id}/{table_id}/{record_id}", Record)

    async def create_record(
        self, base_id: str, table_id: str, fields: Dict[str, Any]
    ) -> Record:
        return await self._call(
            "POST", f"/v0/{base_id}/{table_id}", Record, json_body={"fields": fields}
        )

    async def update_records(
        self, base_id: str, table_id: str, records: Sequence[Record]
    ) -> List[Record]:
        body = {"records": [{"id": r.id, "fields": r.fields} for r in records]}
        batch = await self._call("PATCH", f"/v0/{base_id}/{table_id}", _RecordBatch, json_body=body)
        return batch.records

    async def delete_records(
        self, base_id: str, table_id: str, record_ids: Sequence[str]
    ) -> List[DeletedRecord]:
        params = [("records[]", rid) for rid in record_ids]
        out = await self._call("DELETE", f"/v0/{base_id}/{table_id}", _MetaDeleted, params=params)
        return out.records

    async def create_table(
        self,
        base_id: str,
        name: str,
        fields: Sequence[TableField],
        description: Optional[str] = None,
    ) -> str:
        body: Dict[str, Any] = {
            "name": name,
            "fields": [f.model_dump(exclude_none=True) for f in fields],
        }
        if description is not None:
            body["description"] = description

        created = await self._call(
            "POST", f"/v0/meta/bases/{base_id}/tables", _Created, json_body=body
        )
        return created.id

    async def update_table(
        self, base_id: str, table_id: str, updates: Dict[str, str]
    ) -> None:
        await self._client.request(
            "PATCH", self._url(f"/v0/meta/bases/{base_id}/tables/{table_id}"), json_body=updates
        )

    async def create_field(self, base_id: str, table_id: str, field: TableField) -> str:
        body = field.model_dump(exclude_none=True, exclude={"id"})
        created = await self._call(
            "POST", f"/v0/meta/bases/{base_id}/tables/{table_id}/fields", _Created, json_body=body
        )
        return created.id

    async def update_field(
        self, base_id: str, table_id: str, field_id: str, updates: Dict[str, str]
    ) -> None:
        await self._client.request(
            "PATCH",
            self._url(f"/v0/meta/bases/{base_id}/tables/{table_id}/fields/{field_id}"),
            json_body=updates,
        )

    async def search_records(
        self,
        base_id: str,
        table_id: str,
        search_term: str,
        fields: Sequence[TableField],
        max_records: Optional[int] = None,
    ) -> List[Record]:
        formula = build_search_formula(search_term, [f.id for f in fields if f.id])
        return await self.list_records(
            base_id, table_id, max_records=max_records, filter_by_formula=formula
        )


# ---------------------------------------------------------------------------
# Fusion dialect (fallback)
# ---------------------------------------------------------------------------


def _fusion_field_body(field: TableField) -> Dict[str, Any]:
    body: Dict[str, Any] = {"type": field.type, "name": field.name}
    if field.options:
        body["property"] = field.options
    return body


class FusionDialect(Dialect):
    """Spaces / nodes / datasheets endpoints under ``config.fusion_url``.

    Base ids are space ids and table ids are datasheet ids here.
    """

    name = "fusion"

    async def _data(
        self,
        method: str,
        endpoint: str,
        *,
        params: Any = None,
        json_body: Any = None,
    ) -> Any:
        payload = await self._client.request(
            method, self._url(endpoint), params=params, json_body=json_body
        )
        envelope = _validate(_FusionEnvelope, payload, endpoint)
        if not envelope.success:
            raise UpstreamError(
                f"AITable API request to '{endpoint}' was rejected "
                f"(code {envelope.code}): {envelope.message}",
                status_code=envelope.code,
                body=json.dumps(payload),
            )
        return envelope.data

    async def _call(
        self,
        method: str,
        endpoint: str,
        model: Type[M],
        *,
        params: Any = None,
        json_body: Any = None,
    ) -> M:
        data = await self._data(method, endpoint, params=params, json_body=json_body)
        return _validate(model, data, endpoint)

    async def list_bases(self) -> List[Base]:
        out = await self._call("GET", "/spaces", _FusionSpaces)
        return [
            Base(
                id=s.id,
                name=s.name,
                permissionLevel="owner" if s.isAdmin else "read",
            )
            for s in out.spaces
        ]

    async def _load_table(self, node: _FusionNode) -> Table:
        fields_out = await self._call("GET", f"/datasheets/{node.id}/fields", _FusionFields)
        views_out = await self._call("GET", f"/datasheets/{node.id}/views", _FusionViews)

        fields = [f.normalize() for f in fields_out.fields]
        flagged = next((f.id for f in fields_out.fields if f.isPrimary), None)

        return Table(
            id=node.id,
            name=node.name,
            primaryFieldId=resolve_primary_field_id(flagged, fields, node.id),
            fields=fields,
            views=views_out.views,
        )

    async def get_base_schema(self, base_id: str) -> BaseSchema:
        listing = await self._call("GET", f"/spaces/{base_id}/nodes", _FusionNodes)

        tables: List[Table] = []
        for node in listing.nodes:
            if not node.is_datasheet:
                continue
            try:
                tables.append(await self._load_table(node))
            except AITableError as exc:
                self._logger.warning(
                    "Skipping datasheet %s (%s) in space %s: %s",
                    node.name,
                    node.id,
                    base_id,
                    exc,
                )

        return BaseSchema(tables=tables)

    async def list_datasheets(self, space_id: str) -> List[DatasheetInfo]:
        """Walk the space's folder tree and collect every datasheet.

        Never raises for upstream failures: a node that cannot be fetched is
        logged and its subtree skipped.
        """
        found: List[DatasheetInfo] = []

        try:
            listing = await self._call("GET", f"/spaces/{space_id}/nodes", _FusionNodes)
        except AITableError as exc:
            self._logger.error("Failed to list nodes of space %s: %s", space_id, exc)
            return found

        await self._visit(space_id, listing.nodes, "", found, set())
        return found

    async def _visit(
        self,
        space_id: str,
        nodes: Sequence[_FusionNode],
        parent_path: str,
        found: List[DatasheetInfo],
        seen: set,
    ) -> None:
        # Siblings first, then one folder at a time, so paths come out in a
        # stable order.
        for node in nodes:
            if node.is_datasheet:
                found.append(
                    DatasheetInfo(
                        id=node.id,
                        name=node.name,
                        path=_join_path(parent_path, node.name),
                        spaceId=space_id,
                    )
                )

        for node in nodes:
            if not node.is_folder or node.id in seen:
                continue
            seen.add(node.id)

            folder_path = _join_path(parent_path, node.name)
            try:
                detail = await self._call(
                    "GET", f"/spaces/{space_id}/nodes/{node.id}", _FusionNode
                )
            except AITableError as exc:
                self._logger.error(
                    "Failed to expand folder %s (%s): %s", folder_path, node.id, exc
                )
                continue

            await self._visit(space_id, detail.children, folder_path, found, seen)

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> List[Record]:
        page_size = min(int(max_records or FUSION_DEFAULT_PAGE_SIZE), FUSION_MAX_PAGE_SIZE)
        records: List[Record] = []
        page_num = 1

        while True:
            params: Dict[str, Any] = {"pageSize": page_size, "pageNum": page_num}
            if filter_by_formula:
                params["filterByFormula"] = filter_by_formula

            page = await self._call(
                "GET", f"/datasheets/{table_id}/records", _FusionRecordsPage, params=params
            )
            records.extend(r.normalize() for r in page.records)

            if not page.records:
                break
            if max_records is not None and len(records) >= max_records:
                break
            if page.total is None or len(records) >= page.total:
                break
            page_num += 1

        return records

    async def get_record(self, base_id: str, table_id: str, record_id: str) -> Record:
        # No dependable by-id endpoint here; filter on RECORD_ID() and ask for
        # two rows so duplicates are at least noticed.
        formula = f'RECORD_ID()="{escape_formula_string(record_id)}"'
        matches = await self.list_records(
            base_id, table_id, max_records=2, filter_by_formula=formula
        )

        if not matches:
            raise NotFoundError(f"Record {record_id} not found in table {table_id}")
        if len(matches) > 1:
            self._logger.warning(
                "Lookup of record %s in table %s matched %d records; returning the first",
                record_id,
                table_id,
                len(matches),
            )
        return matches[0]

    async def create_record(
        self, base_id: str, table_id: str, fields: Dict[str, Any]
    ) -> Record:
        body = {"records": [{"fields": fields}], "fieldKey": "name"}
        batch = await self._call(
            "POST", f"/datasheets/{table_id}/records", _FusionRecordBatch, json_body=body
        )
        if not batch.records:
            raise ResponseParseError(
                f"Create record in datasheet {table_id} returned no records"
            )
        return batch.records[0].normalize()

    async def update_records(
        self, base_id: str, table_id: str, records: Sequence[Record]
    ) -> List[Record]:
        body = {
            "records": [{"recordId": r.id, "fields": r.fields} for r in records],
            "fieldKey": "name",
        }
        batch = await self._call(
            "PATCH", f"/datasheets/{table_id}/records", _FusionRecordBatch, json_body=body
        )
        return [r.normalize() for r in batch.records]

    async def delete_records(
        self, base_id: str, table_id: str, record_ids: Sequence[str]
    ) -> List[DeletedRecord]:
        params = [("recordIds", rid) for rid in record_ids]
        data = await self._data("DELETE", f"/datasheets/{table_id}/records", params=params)
        deleted = data is not False
        return [DeletedRecord(id=rid, deleted=deleted) for rid in record_ids]

    async def create_table(
        self,
        base_id: str,
        name: str,
        fields: Sequence[TableField],
        description: Optional[str] = None,
    ) -> str:
        body: Dict[str, Any] = {
            "name": name,
            "fields": [_fusion_field_body(f) for f in fields],
        }
        if description is not None:
            body["description"] = description

        created = await self._call(
            "POST", f"/spaces/{base_id}/datasheets", _Created, json_body=body
        )
        return created.id

    async def update_table(
        self, base_id: str, table_id: str, updates: Dict[str, str]
    ) -> None:
        await self._data("PATCH", f"/spaces/{base_id}/datasheets/{table_id}", json_body=updates)

    async def create_field(self, base_id: str, table_id: str, field: TableField) -> str:
        created = await self._call(
            "POST",
            f"/spaces/{base_id}/datasheets/{table_id}/fields",
            _Created,
            json_body=_fusion_field_body(field),
        )
        return created.id

    async def update_field(
        self, base_id: str, table_id: str, field_id: str, updates: Dict[str, str]
    ) -> None:
        await self._data(
            "PATCH",
            f"/spaces/{base_id}/datasheets/{table_id}/fields/{field_id}",
            json_body=updates,
        )

    async def search_records(
        self,
        base_id: str,
        table_id: str,
        search_term: str,
        fields: Sequence[TableField],
        max_records: Optional[int] = None,
    ) -> List[Record]:
        candidates = await self.list_records(base_id, table_id, max_records=max_records)
        return [r for r in candidates if record_matches(r, search_term, fields)]
