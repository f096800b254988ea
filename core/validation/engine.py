"""Validation engine: field-format, confidence-tier and document-logic passes.

Passes run in a fixed order and are concatenated, then the table-math rule
runs once per table. A pass never raises: a value that cannot be interpreted
simply produces no issue for that rule.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from core.document.flatten import flatten, is_table_summary
from core.document.models import ConfidenceField, Snapshot, Table
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.validation import field_rules as rules
from core.validation.confidence import check_confidence
from core.validation.models import Issue, ValidationResult

_FORMAT_CHECKS: tuple[tuple[Callable[[str], bool], Callable[[str], str | None]], ...] = (
    (rules.is_email_key, rules.email_format_problem),
    (rules.is_phone_key, rules.phone_format_problem),
    (rules.is_date_key, rules.date_format_problem),
    (rules.is_url_key, rules.url_format_problem),
)


def validate(snapshot: Snapshot, *, policy: IntegrityPolicy | None = None) -> ValidationResult:
    """Validate one snapshot and return every finding as data."""

    effective = resolve_policy(policy)
    flat = flatten(snapshot)

    issues: list[Issue] = []
    issues.extend(check_field_formats(flat))
    issues.extend(check_confidence(snapshot.structured_data, effective.confidence_tiers))
    issues.extend(check_document_logic(flat, tolerance=effective.math_tolerance))
    for table in snapshot.structured_data.tables:
        issues.extend(validate_table_math(table, tolerance=effective.math_tolerance))

    return ValidationResult.from_issues(issues)


def check_field_formats(flat: Mapping[str, str]) -> list[Issue]:
    issues: list[Issue] = []
    for key, raw_value in flat.items():
        value = raw_value.strip()
        if not value or is_table_summary(value):
            continue
        for matches_key, find_problem in _FORMAT_CHECKS:
            if not matches_key(key):
                continue
            problem = find_problem(value)
            if problem is not None:
                issues.append(
                    Issue(type="format", severity="warning", message=problem, involved_keys=(key,))
                )
    return issues


def check_document_logic(flat: Mapping[str, str], *, tolerance: float = 0.05) -> list[Issue]:
    """Cross-field checks: due vs issue date, tax vs total, subtotal sum."""

    issues: list[Issue] = []
    keys = list(flat)

    issue_date_key = rules.find_key(keys, rules.is_issue_date_key)
    due_date_key = rules.find_key(keys, rules.is_due_date_key)
    if issue_date_key and due_date_key:
        issued = rules.parse_calendar_date(flat[issue_date_key])
        due = rules.parse_calendar_date(flat[due_date_key])
        if issued is not None and due is not None and due < issued:
            issues.append(
                Issue(
                    type="logic",
                    severity="warning",
                    message=f"Date Logic: '{due_date_key}' cannot be before '{issue_date_key}'",
                    involved_keys=(issue_date_key, due_date_key),
                )
            )

    tax_key = rules.find_key(keys, rules.is_tax_key)
    total_key = rules.find_key(keys, rules.is_total_key)
    if tax_key and total_key:
        tax = rules.clean_number(flat[tax_key])
        total = rules.clean_number(flat[total_key])
        if tax > total > 0:
            issues.append(
                Issue(
                    type="logic",
                    severity="error",
                    message=(
                        f"Sanity Check: '{tax_key}' ({_fmt(tax)}) is greater than "
                        f"'{total_key}' ({_fmt(total)})"
                    ),
                    involved_keys=(tax_key, total_key),
                )
            )

        subtotal_key = rules.find_key(keys, rules.is_subtotal_key)
        if subtotal_key:
            subtotal = rules.clean_number(flat[subtotal_key])
            if abs(subtotal + tax - total) > tolerance:
                issues.append(
                    Issue(
                        type="math",
                        severity="warning",
                        message=(
                            f"Sum Mismatch: {subtotal_key} ({_fmt(subtotal)}) + {tax_key} "
                            f"({_fmt(tax)}) != {total_key} ({_fmt(total)})"
                        ),
                        involved_keys=(subtotal_key, tax_key, total_key),
                    )
                )

    return issues


def validate_table_math(table: Table, *, tolerance: float = 0.05) -> list[Issue]:
    """Flag rows where quantity * price differs from the row total.

    Rows where quantity or price is zero (or missing) are skipped.
    """

    columns = table.columns()
    qty_column = rules.find_key(columns, rules.is_quantity_column)
    price_column = rules.find_key(columns, rules.is_price_column)
    total_column = rules.find_key(
        (column for column in columns if column not in (qty_column, price_column)),
        rules.is_row_total_column,
    )
    if not (qty_column and price_column and total_column):
        return []

    issues: list[Issue] = []
    for index, row in enumerate(table.rows):
        quantity = rules.clean_number(_cell_value(row.get(qty_column)))
        price = rules.clean_number(_cell_value(row.get(price_column)))
        row_total = rules.clean_number(_cell_value(row.get(total_column)))
        if quantity == 0 or price == 0:
            continue
        if abs(quantity * price - row_total) > tolerance:
            issues.append(
                Issue(
                    type="math",
                    severity="error",
                    message=(
                        f"{table.table_name} Row {index + 1}: {qty_column} ({_fmt(quantity)}) x "
                        f"{price_column} ({_fmt(price)}) != {total_column} ({_fmt(row_total)})"
                    ),
                    involved_keys=(qty_column, price_column, total_column),
                    row_index=index,
                )
            )
    return issues


def _cell_value(cell: object) -> object:
    if isinstance(cell, ConfidenceField):
        return cell.value
    return cell


def _fmt(number: float) -> str:
    return f"{number:g}"
