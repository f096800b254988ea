from __future__ import annotations

import pytest

from core.document.edits import (
    USER_ENTERED_CONFIDENCE,
    auto_format_value,
    remove_field,
    set_field_value,
    set_table_cell,
    set_title_value,
    with_confidence_score,
)
from core.document.flatten import flatten
from core.document.models import ConfidenceField, Snapshot


def _snapshot() -> Snapshot:
    return Snapshot.model_validate(
        {
            "documentType": "invoice",
            "confidenceScore": 90,
            "structuredData": {
                "sections": [
                    {"heading": "Vendor", "content": [{"label": "Name", "value": "ACME", "confidence": 72}]}
                ],
                "tables": [
                    {
                        "tableName": "Items",
                        "headers": ["Qty"],
                        "rows": [{"Qty": {"value": 1, "confidence": 80}}],
                    }
                ],
            },
        }
    )


def test_set_field_value_returns_new_snapshot_and_keeps_original() -> None:
    original = _snapshot()

    edited = set_field_value(original, "Vendor", "Name", "ACME Corp")

    assert flatten(original)["Vendor > Name"] == "ACME"
    assert flatten(edited)["Vendor > Name"] == "ACME Corp"
    assert edited.structured_data.sections[0].content[0].confidence == 72


def test_set_field_value_with_explicit_confidence() -> None:
    edited = set_field_value(_snapshot(), "Vendor", "Name", "ACME", confidence=100)

    assert edited.structured_data.sections[0].content[0].confidence == 100


def test_set_field_value_unknown_field_raises_unless_create() -> None:
    with pytest.raises(KeyError, match="Unknown field"):
        set_field_value(_snapshot(), "Vendor", "City", "Austin")
    with pytest.raises(KeyError, match="Unknown section"):
        set_field_value(_snapshot(), "Buyer", "Name", "Bob")

    created = set_field_value(_snapshot(), "Buyer", "Name", "Bob", create=True)

    assert flatten(created)["Buyer > Name"] == "Bob"
    assert created.structured_data.sections[1].content[0].confidence == USER_ENTERED_CONFIDENCE


def test_set_field_value_rejects_out_of_range_confidence() -> None:
    with pytest.raises(ValueError, match="confidence must be within"):
        set_field_value(_snapshot(), "Vendor", "Name", "ACME", confidence=101)


def test_remove_field() -> None:
    edited = remove_field(_snapshot(), "Vendor", "Name")

    assert "Vendor > Name" not in flatten(edited)
    with pytest.raises(KeyError):
        remove_field(edited, "Vendor", "Name")


def test_set_title_value_creates_title() -> None:
    edited = set_title_value(_snapshot(), "Invoice 7")

    assert edited.structured_data.title == ConfidenceField(value="Invoice 7", confidence=100)


def test_set_table_cell_updates_value_and_extends_headers() -> None:
    edited = set_table_cell(_snapshot(), "Items", 0, "Price", "9.99")

    table = edited.structured_data.tables[0]
    assert table.headers == ("Qty", "Price")
    assert table.rows[0]["Price"] == ConfidenceField(value="9.99", confidence=100)
    assert table.rows[0]["Qty"] == ConfidenceField(value=1, confidence=80)


def test_set_table_cell_errors() -> None:
    with pytest.raises(KeyError, match="Unknown table"):
        set_table_cell(_snapshot(), "Missing", 0, "Qty", 1)
    with pytest.raises(IndexError):
        set_table_cell(_snapshot(), "Items", 3, "Qty", 1)


def test_with_confidence_score() -> None:
    assert with_confidence_score(_snapshot(), 40).confidence_score == 40
    with pytest.raises(ValueError):
        with_confidence_score(_snapshot(), 140)


@pytest.mark.parametrize(
    ("key", "value", "expected"),
    [
        ("Invoice Date", "March 5, 2024", "2024-03-05"),
        ("Invoice Date", "03/15/2024", "2024-03-15"),
        ("Invoice Date", "2024", "2024"),
        ("Invoice Date", "unknown", "unknown"),
        ("Phone", "555.123.4567", "(555) 123-4567"),
        ("Mobile", "1 555 123 4567", "+1 (555) 123-4567"),
        ("Fax", "44 20 7946 0958", "+442079460958"),
        ("Phone", "+44 20 7946 0958", "+44 20 7946 0958"),
        ("Phone", "12345", "12345"),
        ("Name", "555.123.4567", "555.123.4567"),
        ("Phone", "", ""),
    ],
)
def test_auto_format_value(key: str, value: str, expected: str) -> None:
    assert auto_format_value(key, value) == expected
