# AITable MCP Server
# File: client.py
# Version: v1
"""High-level client for the AITable REST APIs.

Implements:

- list_bases() / get_base_schema() for discovery
- get_all_datasheets() / get_datasheet_records_by_name() for folder trees
- list/get/create/update/delete for records
- create/update for tables and fields
- search_records() over the text-like fields of a table

Every dual-dialect operation goes to the meta endpoints first and falls back
to the fusion endpoints on upstream or parse failures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import httpx
from httpx import HTTPStatusError, RequestError

from .auth import ApiKeyAuth, redact_headers
from .config import AITableConfig
from .dialects import Dialect, FusionDialect, MetaDialect
from .errors import (
    ConsistencyError,
    InvalidArgumentsError,
    NotFoundError,
    ResponseParseError,
    UpstreamError,
)
from .models import (
    Base,
    BaseSchema,
    DatasheetInfo,
    DeletedRecord,
    Record,
    Table,
    TableField,
)
from .search import resolve_search_fields

T = TypeVar("T")

# Errors that mean "this dialect is the wrong one", as opposed to a bad request.
FALLBACK_ERRORS = (UpstreamError, ResponseParseError)


def find_table(schema: BaseSchema, base_id: str, table_id: str) -> Table:
    for table in schema.tables:
        if table.id == table_id:
            return table
    raise NotFoundError(f"Table {table_id} not found in base {base_id}")


@dataclass
class AITableClient:
    """Wrapper around the AITable meta and fusion APIs.

    ``transport`` is handed to every ``httpx.AsyncClient`` this client opens;
    tests pass an ``httpx.MockTransport`` here.
    """

    config: AITableConfig
    transport: Optional[httpx.AsyncBaseTransport] = None
    logger: Optional[logging.Logger] = None

    auth: ApiKeyAuth = field(init=False, repr=False)
    meta: MetaDialect = field(init=False, repr=False)
    fusion: FusionDialect = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = logging.getLogger(__name__)

        # Raises ConfigurationError straight away when the key is missing.
        self.auth = ApiKeyAuth(self.config.api_key)

        self.meta = MetaDialect(self, self.config.base_url)
        self.fusion = FusionDialect(self, self.config.fusion_url)

    @property
    def dialects(self) -> Tuple[Dialect, Dialect]:
        return (self.meta, self.fusion)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        json_body: Any = None,
    ) -> Any:
        """Send one authenticated request and return the decoded JSON body.

        Raises UpstreamError for transport failures and non-2xx answers,
        ResponseParseError when the body is not JSON. An empty body decodes
        to ``None``.
        """
        headers = self.auth.headers()
        self.logger.debug(
            "API request: %s %s params=%s body=%s headers=%s",
            method,
            url,
            params,
            json_body,
            redact_headers(headers),
        )

        async with httpx.AsyncClient(
            timeout=float(self.config.timeout_seconds),
            verify=self.config.verify_tls,
            transport=self.transport,
        ) as http_client:
            try:
                response = await http_client.request(
                    method, url, headers=headers, params=params, json=json_body
                )
            except RequestError as exc:
                raise UpstreamError(
                    f"Error calling AITable API at '{url}': {exc}"
                ) from exc

            try:
                response.raise_for_status()
            except HTTPStatusError as exc:
                status = response.status_code
                raise UpstreamError(
                    f"AITable API request {method} '{url}' failed "
                    f"(HTTP {status}). Response: {response.text[:2000]}",
                    status_code=status,
                    body=response.text,
                ) from exc

        self.logger.debug("API response: %s %s -> HTTP %s", method, url, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseParseError(
                f"Failed to parse JSON response from '{url}': {response.text[:2000]}",
                body=response.text,
            ) from exc

    async def _attempt(self, operation: str, call: Callable[[Dialect], Awaitable[T]]) -> T:
        """Run ``call`` against the meta dialect, then the fusion dialect.

        Only upstream and parse failures trigger the fallback. When both
        dialects fail, the primary error is raised with the fallback outcome
        attached.
        """
        try:
            return await call(self.meta)
        except FALLBACK_ERRORS as primary_exc:
            self.logger.info(
                "%s via %s endpoints failed (%s); trying %s endpoints",
                operation,
                self.meta.name,
                primary_exc,
                self.fusion.name,
            )
            try:
                return await call(self.fusion)
            except FALLBACK_ERRORS as fallback_exc:
                primary_exc.annotate(f"{self.fusion.name} fallback also failed: {fallback_exc}")
                raise primary_exc from fallback_exc

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def list_bases(self) -> List[Base]:
        """List every base (space) visible to the API key."""
        return await self._attempt("list_bases", lambda d: d.list_bases())

    async def get_base_schema(self, base_id: str) -> BaseSchema:
        """Return all tables of a base with their fields and views."""
        return await self._attempt("get_base_schema", lambda d: d.get_base_schema(base_id))

    async def get_all_datasheets(self, space_id: str) -> List[DatasheetInfo]:
        """Recursively list every datasheet in a space, with folder paths."""
        return await self.fusion.list_datasheets(space_id)

    async def get_datasheet_records_by_name(
        self,
        space_id: str,
        datasheet_name: str,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> List[Record]:
        datasheets = await self.get_all_datasheets(space_id)
        match = next((d for d in datasheets if d.name == datasheet_name), None)
        if match is None:
            raise NotFoundError(
                f"Datasheet '{datasheet_name}' not found in space {space_id}"
            )

        return await self.list_records(
            space_id,
            match.id,
            max_records=max_records,
            filter_by_formula=filter_by_formula,
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> List[Record]:
        """List records of a table, following pagination to the end."""
        return await self._attempt(
            "list_records",
            lambda d: d.list_records(
                base_id, table_id, max_records=max_records, filter_by_formula=filter_by_formula
            ),
        )

    async def get_record(self, base_id: str, table_id: str, record_id: str) -> Record:
        return await self._attempt(
            "get_record", lambda d: d.get_record(base_id, table_id, record_id)
        )

    async def create_record(
        self, base_id: str, table_id: str, fields: Dict[str, Any]
    ) -> Record:
        return await self._attempt(
            "create_record", lambda d: d.create_record(base_id, table_id, dict(fields))
        )

    async def update_records(
        self, base_id: str, table_id: str, records: Sequence[Record]
    ) -> List[Record]:
        """Update several records. Not atomic: the result lists what the server updated."""
        return await self._attempt(
            "update_records", lambda d: d.update_records(base_id, table_id, list(records))
        )

    async def delete_records(
        self, base_id: str, table_id: str, record_ids: Sequence[str]
    ) -> List[DeletedRecord]:
        return await self._attempt(
            "delete_records", lambda d: d.delete_records(base_id, table_id, list(record_ids))
        )

    async def search_records(
        self,
        base_id: str,
        table_id: str,
        search_term: str,
        field_ids: Optional[Sequence[str]] = None,
        max_records: Optional[int] = None,
    ) -> List[Record]:
        """Find records whose text-like fields contain ``search_term``.

        Field ids are validated against the table schema before any record
        request is made.
        """
        schema = await self.get_base_schema(base_id)
        table = find_table(schema, base_id, table_id)
        fields = resolve_search_fields(table, field_ids)

        return await self._attempt(
            "search_records",
            lambda d: d.search_records(base_id, table_id, search_term, fields, max_records),
        )

    # ------------------------------------------------------------------
    # Tables & fields
    # ------------------------------------------------------------------

    async def _refetch_table(self, base_id: str, table_id: str, action: str) -> Table:
        schema = await self.get_base_schema(base_id)
        try:
            return find_table(schema, base_id, table_id)
        except NotFoundError as exc:
            raise ConsistencyError(
                f"{action} table {table_id} but it is missing from the schema of base {base_id}"
            ) from exc

    async def _refetch_field(
        self, base_id: str, table_id: str, field_id: str, action: str
    ) -> TableField:
        table = await self._refetch_table(base_id, table_id, f"{action} a field in")
        for f in table.fields:
            if f.id == field_id:
                return f
        raise ConsistencyError(
            f"{action} field {field_id} but it is missing from table {table_id}"
        )

    async def create_table(
        self,
        base_id: str,
        name: str,
        fields: Sequence[TableField],
        description: Optional[str] = None,
    ) -> Table:
        table_id = await self._attempt(
            "create_table",
            lambda d: d.create_table(base_id, name, list(fields), description),
        )
        return await self._refetch_table(base_id, table_id, "Created")

    async def update_table(
        self,
        base_id: str,
        table_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Table:
        updates = _provided(name=name, description=description)
        await self._attempt(
            "update_table", lambda d: d.update_table(base_id, table_id, updates)
        )
        return await self._refetch_table(base_id, table_id, "Updated")

    async def create_field(
        self, base_id: str, table_id: str, new_field: TableField
    ) -> TableField:
        field_id = await self._attempt(
            "create_field", lambda d: d.create_field(base_id, table_id, new_field)
        )
        return await self._refetch_field(base_id, table_id, field_id, "Created")

    async def update_field(
        self,
        base_id: str,
        table_id: str,
        field_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TableField:
        updates = _provided(name=name, description=description)
        await self._attempt(
            "update_field",
            lambda d: d.update_field(base_id, table_id, field_id, updates),
        )
        return await self._refetch_field(base_id, table_id, field_id, "Updated")


def _provided(**values: Optional[str]) -> Dict[str, str]:
    """Keep only the keys the caller actually set."""
    updates = {k: v for k, v in values.items() if v is not None}
    if not updates:
        raise InvalidArgumentsError(
            f"Nothing to update: provide at least one of {', '.join(values)}"
        )
    return updates
