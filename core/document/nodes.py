"""Tagged node walk over structured snapshot data.

Node variants:
- FieldNode: one Confidence Field (title, section field or table cell)
- SectionNode / TableNode: containers labelled by heading / tableName
- RowNode: one table row, carries its zero-based index
- ScalarNode: bare table cell without a confidence score (legacy payloads)

Human paths follow the flattened key convention:
``Document Title``, ``<heading> > <label>``, ``<tableName> > Row <n> > <column>``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from core.document.flatten import TITLE_KEY, field_key
from core.document.models import (
    ConfidenceField,
    Scalar,
    Section,
    StructuredData,
    Table,
    is_confidence_field,
)


@dataclass(frozen=True)
class FieldNode:
    path: str
    field: ConfidenceField
    row_index: int | None = None


@dataclass(frozen=True)
class ScalarNode:
    path: str
    value: Scalar
    row_index: int | None = None


@dataclass(frozen=True)
class RowNode:
    path: str
    table: Table
    row_index: int


@dataclass(frozen=True)
class TableNode:
    path: str
    table: Table


@dataclass(frozen=True)
class SectionNode:
    path: str
    section: Section


DocumentNode = Union[FieldNode, ScalarNode, RowNode, TableNode, SectionNode]


def root_nodes(structured: StructuredData) -> list[DocumentNode]:
    nodes: list[DocumentNode] = []
    if structured.title is not None:
        nodes.append(FieldNode(path=TITLE_KEY, field=structured.title))
    nodes.extend(SectionNode(path=section.heading, section=section) for section in structured.sections)
    nodes.extend(TableNode(path=table.table_name, table=table) for table in structured.tables)
    return nodes


def child_nodes(node: DocumentNode) -> list[DocumentNode]:
    """Return the direct children of ``node``; leaves have none."""

    if isinstance(node, FieldNode | ScalarNode):
        return []
    if isinstance(node, SectionNode):
        return [
            FieldNode(path=field_key(node.section.heading, item.label), field=item)
            for item in node.section.content
        ]
    if isinstance(node, TableNode):
        return [
            RowNode(path=f"{node.path} > Row {index + 1}", table=node.table, row_index=index)
            for index, _ in enumerate(node.table.rows)
        ]
    if isinstance(node, RowNode):
        row = node.table.rows[node.row_index]
        children: list[DocumentNode] = []
        for column, cell in row.items():
            path = f"{node.path} > {column}"
            if is_confidence_field(cell):
                children.append(FieldNode(path=path, field=_as_field(cell), row_index=node.row_index))
            else:
                children.append(ScalarNode(path=path, value=cell, row_index=node.row_index))
        return children
    raise TypeError(f"Unknown document node: {type(node).__name__}")


def iter_nodes(structured: StructuredData) -> Iterator[DocumentNode]:
    """Depth-first, document-ordered walk over every node."""

    stack = list(reversed(root_nodes(structured)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(child_nodes(node)))


def iter_field_nodes(structured: StructuredData) -> Iterator[FieldNode]:
    for node in iter_nodes(structured):
        if isinstance(node, FieldNode):
            yield node


def _as_field(cell: object) -> ConfidenceField:
    if isinstance(cell, ConfidenceField):
        return cell
    return ConfidenceField.model_validate(cell)
