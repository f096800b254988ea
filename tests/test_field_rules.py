from __future__ import annotations

from datetime import date

import pytest

from core.validation import field_rules as rules


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-03-01", date(2024, 3, 1)),
        ("2024-03-01T10:30:00Z", date(2024, 3, 1)),
        ("03/15/2024", date(2024, 3, 15)),
        ("March 5, 2024", date(2024, 3, 5)),
        ("5 Mar 2024", date(2024, 3, 5)),
        ("not a date", None),
        ("2024-13-45", None),
        ("", None),
        (20240301, None),
    ],
)
def test_parse_calendar_date(value: object, expected: date | None) -> None:
    assert rules.parse_calendar_date(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("$1,234.50", 1234.5),
        ("EUR 99", 99.0),
        ("-12.5", -12.5),
        ("12-34", 12.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (7, 7.0),
    ],
)
def test_clean_number(value: object, expected: float) -> None:
    assert rules.clean_number(value) == expected


def test_key_classifiers() -> None:
    assert rules.is_email_key("Contact > Email Address")
    assert rules.is_phone_key("Contact > Mobile")
    assert not rules.is_phone_key("Phone ID")
    assert rules.is_date_key("Dates > DOB")
    assert rules.is_date_key("Payment > Due")
    assert not rules.is_date_key("Meta > Last Update Date")
    assert not rules.is_date_key("Candidate Name")
    assert rules.is_url_key("Company > Website")

    assert rules.is_issue_date_key("Billing > Invoice Date")
    assert rules.is_issue_date_key("Billing > Date Issued")
    assert not rules.is_issue_date_key("Billing > Invoice Due Date")
    assert rules.is_due_date_key("Billing > Due Date")
    assert not rules.is_due_date_key("Totals > Amount Due")

    assert rules.is_tax_key("Totals > Tax Amount")
    assert not rules.is_tax_key("Vendor > Tax ID")
    assert not rules.is_tax_key("Totals > Total Tax")
    assert rules.is_total_key("Totals > Grand Total")
    assert not rules.is_total_key("Totals > Subtotal")
    assert rules.is_subtotal_key("Totals > Sub Total")


def test_table_column_classifiers() -> None:
    assert rules.is_quantity_column("Qty")
    assert rules.is_quantity_column("Units")
    assert rules.is_price_column("Unit Price")
    assert not rules.is_price_column("Price Total")
    assert rules.is_row_total_column("Line Total")
    assert rules.is_row_total_column("Amount")
    assert not rules.is_row_total_column("Subtotal")


def test_find_key_returns_first_match() -> None:
    keys = ["A > Name", "A > Total", "B > Grand Total"]

    assert rules.find_key(keys, rules.is_total_key) == "A > Total"
    assert rules.find_key(keys, rules.is_tax_key) is None


def test_format_problems() -> None:
    assert rules.email_format_problem("jane@example.com") is None
    assert rules.email_format_problem("jane@example") == 'Invalid email format: "jane@example"'

    assert rules.phone_format_problem("(555) 123-4567") is None
    assert rules.phone_format_problem("555-1234 ext. 5") is None
    assert rules.phone_format_problem("call me") == 'Suspicious phone format: "call me"'
    assert rules.phone_format_problem("12-3") == 'Suspicious phone format: "12-3"'

    assert rules.date_format_problem("2024-01-31") is None
    assert rules.date_format_problem("soon") == 'Invalid date format: "soon"'

    assert rules.url_format_problem("example.com") is None
    assert rules.url_format_problem("example com") == 'Invalid URL format: "example com"'
    assert rules.url_format_problem("localhost") == 'Invalid URL format: "localhost"'
