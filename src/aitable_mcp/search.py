# AITable MCP Server
# File: search.py
# Version: v1

"""Record search helpers shared by both dialects.

- which field types are searchable,
- building an injection-safe ``filterByFormula`` expression, and
- the in-memory matcher used when no formula search is available.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, List, Optional, Sequence

from .errors import InvalidArgumentsError
from .models import Record, Table, TableField

SEARCHABLE_FIELD_TYPES = frozenset(
    {
        # meta dialect
        "singleLineText",
        "multilineText",
        "richText",
        "email",
        "url",
        "phoneNumber",
        "phone",
        "singleSelect",
        "multipleSelects",
        # fusion dialect
        "Text",
        "SingleText",
        "Email",
        "URL",
        "Phone",
        "SingleSelect",
        "MultiSelect",
    }
)

_FORMULA_SPECIALS = re.compile(r'(["\\])')


def escape_formula_string(term: str) -> str:
    """Escape ``term`` for use inside a double-quoted formula string literal."""
    return _FORMULA_SPECIALS.sub(r"\\\1", term)


def build_search_formula(term: str, field_ids: Sequence[str]) -> str:
    """OR(FIND("term", {fld1}),FIND("term", {fld2}),...)"""
    escaped = escape_formula_string(term)
    clauses = ",".join(f'FIND("{escaped}", {{{field_id}}})' for field_id in field_ids)
    return f"OR({clauses})"


def resolve_search_fields(
    table: Table,
    requested_field_ids: Optional[Iterable[str]] = None,
) -> List[TableField]:
    """Return the fields a search over ``table`` should look at.

    Raises InvalidArgumentsError when the table has no text-like fields, or
    when any explicitly requested id is not one of them.
    """
    searchable = [
        f for f in table.fields if f.id and f.type in SEARCHABLE_FIELD_TYPES
    ]
    if not searchable:
        raise InvalidArgumentsError(
            f"No text fields available to search in table {table.id}"
        )

    requested = [fid for fid in (requested_field_ids or []) if fid]
    if not requested:
        return searchable

    by_id = {f.id: f for f in searchable}
    invalid = [fid for fid in requested if fid not in by_id]
    if invalid:
        raise InvalidArgumentsError(
            f"Invalid fields requested: {', '.join(invalid)}"
        )

    return [by_id[fid] for fid in requested]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return " ".join(_stringify(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def record_matches(record: Record, term: str, fields: Sequence[TableField]) -> bool:
    """Case-insensitive substring match of ``term`` against ``fields``.

    Values are looked up by field id first, then by field name, since record
    payloads may be keyed either way.
    """
    needle = term.lower()
    for field in fields:
        if field.id is not None and field.id in record.fields:
            value = record.fields[field.id]
        elif field.name in record.fields:
            value = record.fields[field.name]
        else:
            continue

        if needle in _stringify(value).lower():
            return True

    return False
