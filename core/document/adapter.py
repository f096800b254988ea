"""Adapt extraction-service payloads into snapshots.

Two payload shapes are accepted:
- structured: ``{documentType, confidenceScore, meta?, structuredData, rawTextSummary?}``
- legacy: ``{documentType, confidenceScore, data}`` where ``data`` is a
  mapping (or a list of row mappings) of plain extracted values
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from core.document.flatten import KEY_SEPARATOR
from core.document.models import ConfidenceField, Snapshot, is_confidence_field

LEGACY_GENERAL_HEADING = "General"
LEGACY_ROOT_TABLE = "Main Data"


def adapt_payload(raw: object) -> Snapshot:
    """Return a Snapshot for ``raw``; malformed payloads raise ValueError."""

    if isinstance(raw, Snapshot):
        return raw
    if not isinstance(raw, Mapping):
        raise ValueError(f"Extraction payload must be an object, got {type(raw).__name__}")

    payload = dict(raw)
    if "structuredData" not in payload and "structured_data" not in payload and "data" in payload:
        payload = _from_legacy(payload)

    payload["meta"] = _with_table_flag(payload)
    score = payload.pop("confidence_score", payload.get("confidenceScore"))
    payload["confidenceScore"] = _coerce_score(score)

    try:
        return Snapshot.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid extraction payload: {exc.error_count()} schema error(s)") from exc


def _with_table_flag(payload: Mapping[str, Any]) -> dict[str, Any]:
    meta = payload.get("meta")
    if meta is None:
        meta = {}
    if not isinstance(meta, Mapping):
        raise ValueError("Extraction payload meta must be an object")
    meta = dict(meta)
    if "hasTables" not in meta and "has_tables" not in meta:
        structured = payload.get("structuredData") or payload.get("structured_data") or {}
        tables = structured.get("tables") if isinstance(structured, Mapping) else None
        meta["hasTables"] = bool(tables)
    return meta


def _coerce_score(score: object) -> object:
    if isinstance(score, float) and score.is_integer():
        return int(score)
    if isinstance(score, float):
        return round(score)
    return score


def _from_legacy(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.pop("data")
    payload.pop("highlights", None)
    score = _coerce_score(payload.get("confidenceScore", payload.get("confidence_score")))
    default_confidence = score if isinstance(score, int) and not isinstance(score, bool) else 0

    sections: list[dict[str, Any]] = []
    tables: list[dict[str, Any]] = []

    if isinstance(data, list):
        tables.append(_legacy_table(LEGACY_ROOT_TABLE, data))
    elif isinstance(data, Mapping):
        general: list[dict[str, Any]] = []
        for key, value in data.items():
            if is_confidence_field(value) or not isinstance(value, Mapping | list):
                general.append(_legacy_field(str(key), value, default_confidence))
            elif isinstance(value, list):
                if value and all(isinstance(row, Mapping) for row in value):
                    tables.append(_legacy_table(str(key), value))
                else:
                    general.append(
                        _legacy_field(str(key), ", ".join(str(item) for item in value), default_confidence)
                    )
            else:
                content = _legacy_section_content(value, default_confidence)
                sections.append({"heading": str(key), "content": content})
        if general:
            sections.insert(0, {"heading": LEGACY_GENERAL_HEADING, "content": general})
    else:
        raise ValueError("Legacy extraction payload data must be an object or a list of rows")

    payload["structuredData"] = {"sections": sections, "tables": tables}
    return payload


def _legacy_section_content(
    value: Mapping[str, Any], default_confidence: int, prefix: str = ""
) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = []
    for key, item in value.items():
        label = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(item, Mapping) and not is_confidence_field(item):
            content.extend(_legacy_section_content(item, default_confidence, label))
        elif isinstance(item, list):
            content.append(
                _legacy_field(label, ", ".join(str(element) for element in item), default_confidence)
            )
        else:
            content.append(_legacy_field(label, item, default_confidence))
    return content


def _legacy_field(label: str, value: object, default_confidence: int) -> dict[str, Any]:
    if isinstance(value, ConfidenceField):
        return {"label": label, "value": value.value, "confidence": value.confidence}
    if is_confidence_field(value):
        return {"label": label, "value": value["value"], "confidence": round(value["confidence"])}
    return {"label": label, "value": value, "confidence": default_confidence}


def _legacy_table(name: str, rows: list[Any]) -> dict[str, Any]:
    headers: list[str] = []
    clean_rows: list[dict[str, Any]] = []
    for row in rows:
        if not isinstance(row, Mapping):
            raise ValueError(f"Legacy table {name!r} contains a non-object row")
        clean_row: dict[str, Any] = {}
        for column, cell in row.items():
            column = str(column)
            if column not in headers:
                headers.append(column)
            if is_confidence_field(cell) and isinstance(cell, Mapping):
                cell = {"value": cell["value"], "confidence": round(cell["confidence"])}
            elif isinstance(cell, Mapping | list):
                cell = str(cell)
            clean_row[column] = cell
        clean_rows.append(clean_row)
    return {"tableName": name, "headers": headers, "rows": clean_rows}
