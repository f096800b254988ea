"""Document snapshot models for AI-extracted, confidence-scored data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Scalar = Union[bool, int, float, str, None]


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ConfidenceField(_SnapshotModel):
    """Atomic unit of extracted data.

    ``value`` may be None (field not found); ``confidence`` still describes how
    certain the extractor is about that absence.
    """

    value: Scalar = None
    confidence: int = Field(ge=0, le=100)


class SectionField(ConfidenceField):
    label: str


class Section(_SnapshotModel):
    heading: str
    content: tuple[SectionField, ...] = ()


Cell = Union[ConfidenceField, Scalar]


class Table(_SnapshotModel):
    """Tabular extraction; row column sets may differ between rows."""

    table_name: str
    headers: tuple[str, ...] = ()
    rows: tuple[dict[str, Cell], ...] = ()

    def columns(self) -> list[str]:
        """Headers first, then any row column missing from the headers."""

        ordered = list(self.headers)
        seen = set(ordered)
        for row in self.rows:
            for column in row:
                if column not in seen:
                    seen.add(column)
                    ordered.append(column)
        return ordered


class DocumentMeta(_SnapshotModel):
    model_config = ConfigDict(extra="allow")

    has_tables: bool = False
    has_handwriting: bool = False


class StructuredData(_SnapshotModel):
    title: ConfidenceField | None = None
    sections: tuple[Section, ...] = ()
    tables: tuple[Table, ...] = ()


class Snapshot(_SnapshotModel):
    """One immutable version of the extracted document.

    Rules:
    - edits produce a new Snapshot (``model_copy(update=...)``), never mutate
    - confidence_score is an aggregate signal, not derived from field scores
    """

    document_type: str
    confidence_score: int = Field(ge=0, le=100)
    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    structured_data: StructuredData = Field(default_factory=StructuredData)
    raw_text_summary: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Serialise with wire (camelCase) keys."""

        return self.model_dump(mode="json", by_alias=True)


def is_confidence_field(node: object) -> bool:
    """Return True when ``node`` is shaped like a Confidence Field."""

    if isinstance(node, ConfidenceField):
        return True
    if isinstance(node, Mapping):
        confidence = node.get("confidence")
        return (
            "value" in node
            and isinstance(confidence, int | float)
            and not isinstance(confidence, bool)
        )
    return False
