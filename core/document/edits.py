"""Pure edit operations: every edit returns a new Snapshot."""

from __future__ import annotations

import re

from core.document.models import (
    ConfidenceField,
    Scalar,
    Section,
    SectionField,
    Snapshot,
    StructuredData,
    Table,
)
from core.validation.field_rules import is_date_key, is_phone_key, parse_calendar_date

# Confidence assigned to values a human typed into an empty slot.
USER_ENTERED_CONFIDENCE = 100


def set_title_value(snapshot: Snapshot, value: Scalar, *, confidence: int | None = None) -> Snapshot:
    current = snapshot.structured_data.title
    if current is None:
        title = ConfidenceField(value=value, confidence=_pick_confidence(confidence, None))
    else:
        title = current.model_copy(update={"value": value, "confidence": _pick_confidence(confidence, current)})
    return _with_structured(snapshot, snapshot.structured_data.model_copy(update={"title": title}))


def set_field_value(
    snapshot: Snapshot,
    heading: str,
    label: str,
    value: Scalar,
    *,
    confidence: int | None = None,
    create: bool = False,
) -> Snapshot:
    """Set one section field.

    Unknown fields raise KeyError unless ``create`` is true, in which case the
    field (and its section, if needed) is appended.
    """

    sections = list(snapshot.structured_data.sections)
    section_index = _find_section(sections, heading)
    if section_index is None:
        if not create:
            raise KeyError(f"Unknown section: {heading}")
        sections.append(Section(heading=heading))
        section_index = len(sections) - 1

    section = sections[section_index]
    content = list(section.content)
    field_index = next((i for i, item in enumerate(content) if item.label == label), None)
    if field_index is None:
        if not create:
            raise KeyError(f"Unknown field: {heading} > {label}")
        content.append(
            SectionField(label=label, value=value, confidence=_pick_confidence(confidence, None))
        )
    else:
        current = content[field_index]
        content[field_index] = current.model_copy(
            update={"value": value, "confidence": _pick_confidence(confidence, current)}
        )

    sections[section_index] = section.model_copy(update={"content": tuple(content)})
    return _with_structured(
        snapshot, snapshot.structured_data.model_copy(update={"sections": tuple(sections)})
    )


def remove_field(snapshot: Snapshot, heading: str, label: str) -> Snapshot:
    sections = list(snapshot.structured_data.sections)
    section_index = _find_section(sections, heading)
    if section_index is None:
        raise KeyError(f"Unknown section: {heading}")

    section = sections[section_index]
    content = tuple(item for item in section.content if item.label != label)
    if len(content) == len(section.content):
        raise KeyError(f"Unknown field: {heading} > {label}")

    sections[section_index] = section.model_copy(update={"content": content})
    return _with_structured(
        snapshot, snapshot.structured_data.model_copy(update={"sections": tuple(sections)})
    )


def set_table_cell(
    snapshot: Snapshot,
    table_name: str,
    row_index: int,
    column: str,
    value: Scalar,
    *,
    confidence: int | None = None,
) -> Snapshot:
    tables = list(snapshot.structured_data.tables)
    table_index = next((i for i, table in enumerate(tables) if table.table_name == table_name), None)
    if table_index is None:
        raise KeyError(f"Unknown table: {table_name}")

    table = tables[table_index]
    if not 0 <= row_index < len(table.rows):
        raise IndexError(f"Row {row_index} out of range for table {table_name}")

    rows = list(table.rows)
    row = dict(rows[row_index])
    current = row.get(column)
    if isinstance(current, ConfidenceField):
        row[column] = current.model_copy(
            update={"value": value, "confidence": _pick_confidence(confidence, current)}
        )
    else:
        row[column] = ConfidenceField(value=value, confidence=_pick_confidence(confidence, None))
    rows[row_index] = row

    headers = table.headers if column in table.headers else (*table.headers, column)
    tables[table_index] = Table(table_name=table.table_name, headers=headers, rows=tuple(rows))
    return _with_structured(
        snapshot, snapshot.structured_data.model_copy(update={"tables": tuple(tables)})
    )


def with_confidence_score(snapshot: Snapshot, confidence_score: int) -> Snapshot:
    if not 0 <= confidence_score <= 100:
        raise ValueError(f"confidence_score must be within 0..100, got {confidence_score}")
    return snapshot.model_copy(update={"confidence_score": confidence_score})


def auto_format_value(key: str, value: str) -> str:
    """Normalise a user-typed value based on its key.

    - date keys: parsable values longer than 5 chars become ``YYYY-MM-DD``
    - phone keys: 10 digits -> ``(AAA) BBB-CCCC``; 11 digits with leading 1 ->
      ``+1 (AAA) BBB-CCCC``; other numbers over 7 digits get a ``+`` prefix
    """

    if not value:
        return value

    if is_date_key(key) and len(value) > 5 and re.search(r"\d", value):
        parsed = parse_calendar_date(value)
        if parsed is not None:
            return parsed.isoformat()

    if is_phone_key(key):
        digits = re.sub(r"\D", "", value)
        if len(digits) == 10:
            return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
        if len(digits) == 11 and digits.startswith("1"):
            return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
        if len(digits) > 7 and not value.startswith("+"):
            return f"+{digits}"

    return value


def _find_section(sections: list[Section], heading: str) -> int | None:
    return next((i for i, section in enumerate(sections) if section.heading == heading), None)


def _pick_confidence(explicit: int | None, current: ConfidenceField | None) -> int:
    if explicit is not None:
        if not 0 <= explicit <= 100:
            raise ValueError(f"confidence must be within 0..100, got {explicit}")
        return explicit
    if current is not None:
        return current.confidence
    return USER_ENTERED_CONFIDENCE


def _with_structured(snapshot: Snapshot, structured: StructuredData) -> Snapshot:
    return snapshot.model_copy(update={"structured_data": structured})
