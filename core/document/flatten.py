"""Flat key/value projection of a snapshot.

Key identity is defined here once and shared by the regression detector, the
validation engine and the node walk:
- title: ``Document Title``
- section field: ``<heading> > <label>``
- table: ``<tableName>`` mapped to ``[Table: N rows]`` (rows are not flattened)
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from core.document.models import Snapshot, StructuredData

TITLE_KEY = "Document Title"
KEY_SEPARATOR = " > "

_TABLE_SUMMARY_RE = re.compile(r"^\[Table: \d+ rows\]$")


def field_key(heading: str, label: str) -> str:
    return f"{heading}{KEY_SEPARATOR}{label}"


def table_summary(row_count: int) -> str:
    return f"[Table: {row_count} rows]"


def is_table_summary(value: str) -> bool:
    return bool(_TABLE_SUMMARY_RE.match(value))


def flatten(document: Snapshot | Mapping[str, Any]) -> dict[str, str]:
    """Project a snapshot into an ordered ``key -> string value`` mapping.

    For raw mappings only ``structuredData`` is read; other top-level keys are
    ignored. When it is missing, malformed or flattens to nothing, the result
    is a shallow dump of the mapping's scalar entries. A well-formed empty
    Snapshot flattens to ``{}``. A new dict is returned on every call.
    """

    if isinstance(document, Snapshot):
        return _flatten_structured(document.structured_data)

    if not isinstance(document, Mapping):
        return {}
    raw_structured = document.get("structuredData", document.get("structured_data"))
    try:
        structured = StructuredData.model_validate(raw_structured or {})
    except ValidationError:
        return _shallow_scalars(document)
    return _flatten_structured(structured) or _shallow_scalars(document)


def _flatten_structured(structured: StructuredData) -> dict[str, str]:
    flat: dict[str, str] = {}

    if structured.title is not None and structured.title.value is not None:
        flat[TITLE_KEY] = _to_text(structured.title.value)

    for section in structured.sections:
        for item in section.content:
            if item.value is None:
                continue
            flat[field_key(section.heading, item.label)] = _to_text(item.value)

    for table in structured.tables:
        flat[table.table_name] = table_summary(len(table.rows))

    return flat


def _shallow_scalars(raw: object) -> dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    flat: dict[str, str] = {}
    for key, value in raw.items():
        if value is None or isinstance(value, Mapping | list | tuple):
            continue
        flat[str(key)] = _to_text(value)
    return flat


def _to_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
