# AITable MCP Server
# File: tests/test_client_meta.py
# Version: v1

"""AITableClient against the meta (/v0/...) endpoints."""

from __future__ import annotations

import json

import httpx
import pytest

from aitable_mcp.errors import UpstreamError
from aitable_mcp.models import Record


@pytest.mark.asyncio
async def test_list_bases_follows_offsets(upstream, client) -> None:
    upstream.meta(
        "GET",
        "/v0/meta/bases",
        {"bases": [{"id": "app1", "name": "One", "permissionLevel": "owner"}], "offset": "o1"},
        {"bases": [{"id": "app2", "name": "Two", "permissionLevel": "read"}], "offset": "o2"},
        {"bases": [{"id": "app3", "name": "Three", "permissionLevel": "create"}]},
    )

    bases = await client.list_bases()

    assert [b.id for b in bases] == ["app1", "app2", "app3"]
    assert [b.permissionLevel for b in bases] == ["owner", "read", "create"]

    calls = upstream.requests_to("GET", "/v0/meta/bases")
    assert len(calls) == 3
    assert [c.url.params.get("offset") for c in calls] == [None, "o1", "o2"]


@pytest.mark.asyncio
async def test_requests_carry_bearer_token(upstream, client) -> None:
    upstream.meta("GET", "/v0/meta/bases", {"bases": []})

    await client.list_bases()

    request = upstream.calls[0]
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_list_records_paginates_three_pages(upstream, client) -> None:
    upstream.meta(
        "GET",
        "/v0/app1/tbl1",
        {"records": [{"id": "rec1", "fields": {"Name": "a"}}], "offset": "p2"},
        {"records": [{"id": "rec2", "fields": {"Name": "b"}}], "offset": "p3"},
        {"records": [{"id": "rec3", "fields": {"Name": "c"}}]},
    )

    records = await client.list_records(
        "app1", "tbl1", max_records=50, filter_by_formula="{Name} != ''"
    )

    assert [r.id for r in records] == ["rec1", "rec2", "rec3"]

    calls = upstream.requests_to("GET", "/v0/app1/tbl1")
    assert len(calls) == 3
    assert [c.url.params.get("offset") for c in calls] == [None, "p2", "p3"]
    for call in calls:
        assert call.url.params["maxRecords"] == "50"
        assert call.url.params["filterByFormula"] == "{Name} != ''"


@pytest.mark.asyncio
async def test_list_records_does_not_cap_client_side(upstream, client) -> None:
    upstream.meta(
        "GET",
        "/v0/app1/tbl1",
        {"records": [{"id": f"rec{i}", "fields": {}} for i in range(3)]},
    )

    records = await client.list_records("app1", "tbl1", max_records=1)

    assert len(records) == 3


@pytest.mark.asyncio
async def test_get_base_schema_defaults_primary_field(upstream, client) -> None:
    upstream.meta(
        "GET",
        "/v0/meta/bases/app1/tables",
        {
            "tables": [
                {
                    "id": "tbl1",
                    "name": "Tasks",
                    "primaryFieldId": "fldMissing",
                    "fields": [
                        {"id": "fld1", "name": "Name", "type": "singleLineText"},
                        {"id": "fld2", "name": "Notes", "type": "multilineText"},
                    ],
                    "views": [{"id": "viw1", "name": "Grid", "type": "grid"}],
                },
                {
                    "id": "tbl2",
                    "name": "People",
                    "fields": [{"id": "fld9", "name": "Email", "type": "email"}],
                    "views": [],
                },
                {
                    "id": "tbl3",
                    "name": "Empty",
                    "primaryFieldId": "fldDeclared",
                    "fields": [],
                    "views": [],
                },
            ]
        },
    )

    schema = await client.get_base_schema("app1")

    assert [t.primaryFieldId for t in schema.tables] == ["fld1", "fld9", "fldDeclared"]
    assert schema.tables[0].views[0].name == "Grid"
    assert len(upstream.calls) == 1


@pytest.mark.asyncio
async def test_get_record(upstream, client) -> None:
    upstream.meta("GET", "/v0/app1/tbl1/rec1", {"id": "rec1", "fields": {"Name": "x"}})

    record = await client.get_record("app1", "tbl1", "rec1")

    assert record == Record(id="rec1", fields={"Name": "x"})


@pytest.mark.asyncio
async def test_create_record_posts_fields(upstream, client) -> None:
    upstream.meta("POST", "/v0/app1/tbl1", {"id": "recNew", "fields": {"Name": "x"}})

    record = await client.create_record("app1", "tbl1", {"Name": "x"})

    assert record.id == "recNew"
    body = json.loads(upstream.calls[0].content)
    assert body == {"fields": {"Name": "x"}}


@pytest.mark.asyncio
async def test_update_records_patches_batch(upstream, client) -> None:
    upstream.meta(
        "PATCH",
        "/v0/app1/tbl1",
        {"records": [{"id": "rec1", "fields": {"Done": True}}]},
    )

    updated = await client.update_records(
        "app1",
        "tbl1",
        [Record(id="rec1", fields={"Done": True}), Record(id="rec2", fields={"Done": True})],
    )

    assert [r.id for r in updated] == ["rec1"]
    body = json.loads(upstream.calls[0].content)
    assert body == {
        "records": [
            {"id": "rec1", "fields": {"Done": True}},
            {"id": "rec2", "fields": {"Done": True}},
        ]
    }


@pytest.mark.asyncio
async def test_delete_records_sends_ids_as_query(upstream, client) -> None:
    upstream.meta(
        "DELETE",
        "/v0/app1/tbl1",
        {"records": [{"id": "rec1", "deleted": True}, {"id": "rec2", "deleted": False}]},
    )

    results = await client.delete_records("app1", "tbl1", ["rec1", "rec2"])

    assert [(r.id, r.deleted) for r in results] == [("rec1", True), ("rec2", False)]
    assert upstream.calls[0].url.params.get_list("records[]") == ["rec1", "rec2"]


@pytest.mark.asyncio
async def test_upstream_error_carries_status_and_body(upstream, client) -> None:
    error_body = {"error": {"type": "INVALID_PERMISSIONS"}}
    upstream.meta("GET", "/v0/app1/tbl1/rec1", httpx.Response(403, json=error_body))
    upstream.fusion("GET", "/datasheets/tbl1/records", httpx.Response(500, text="boom"))

    with pytest.raises(UpstreamError) as excinfo:
        await client.get_record("app1", "tbl1", "rec1")

    exc = excinfo.value
    assert exc.status_code == 403
    assert "HTTP 403" in str(exc)
    assert "INVALID_PERMISSIONS" in str(exc)
    assert "INVALID_PERMISSIONS" in exc.body
