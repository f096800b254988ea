"""Field-role heuristics, format checks and value coercion.

Every key heuristic is a named classifier so a rule can later switch to an
explicit field-role tag without touching its call sites. Matching is
case-insensitive substring matching. Format classifiers look at the whole
flattened key; amount and date-role classifiers look at the field label (the
last ``" > "`` segment) so a section heading such as "Totals" does not leak
into every key below it.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime

from core.document.flatten import KEY_SEPARATOR

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_ALLOWED_RE = re.compile(r"^[0-9+\-().\s]+$")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_ID_WORD_RE = re.compile(r"\bid\b")
_LEADING_FLOAT_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")

MIN_PHONE_DIGITS = 5

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%d.%m.%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d-%b-%Y",
)


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle in text for needle in needles)


def is_email_key(key: str) -> bool:
    return "email" in key.lower()


def is_phone_key(key: str) -> bool:
    lower = key.lower()
    return _contains_any(lower, ("phone", "mobile", "fax")) and not _ID_WORD_RE.search(lower)


def is_date_key(key: str) -> bool:
    lower = key.lower()
    return _contains_any(lower, ("date", "dob", "due", "expires")) and not _contains_any(
        lower, ("update", "candidate")
    )


def is_url_key(key: str) -> bool:
    return _contains_any(key.lower(), ("website", "url"))


def leaf_label(key: str) -> str:
    return key.rsplit(KEY_SEPARATOR, 1)[-1]


def is_issue_date_key(key: str) -> bool:
    label = leaf_label(key).lower()
    if "due" in label:
        return False
    return ("invoice" in key.lower() and "date" in label) or _contains_any(
        label, ("date issued", "issue date", "date_issued", "issue_date")
    )


def is_due_date_key(key: str) -> bool:
    lower = leaf_label(key).lower()
    return "due" in lower and not _contains_any(lower, ("amount", "total", "balance"))


def is_subtotal_key(key: str) -> bool:
    return _contains_any(leaf_label(key).lower(), ("subtotal", "sub total", "sub_total", "net amount"))


def is_tax_key(key: str) -> bool:
    lower = leaf_label(key).lower()
    return (
        _contains_any(lower, ("tax", "vat", "gst"))
        and "total" not in lower
        and not _ID_WORD_RE.search(lower)
    )


def is_total_key(key: str) -> bool:
    lower = leaf_label(key).lower()
    return _contains_any(lower, ("total", "grand total", "amount due")) and not _contains_any(
        lower, ("sub", "net", "tax")
    )


def is_quantity_column(column: str) -> bool:
    return _contains_any(column.lower(), ("qty", "quantity", "count", "units"))


def is_price_column(column: str) -> bool:
    lower = column.lower()
    return _contains_any(lower, ("price", "rate", "unit cost", "unit_cost")) and "total" not in lower


def is_row_total_column(column: str) -> bool:
    lower = column.lower()
    return _contains_any(lower, ("total", "amount")) and "sub" not in lower


def find_key(keys: Iterable[str], classifier: Callable[[str], bool]) -> str | None:
    """Return the first key accepted by ``classifier``."""

    return next((key for key in keys if classifier(key)), None)


def clean_number(value: object) -> float:
    """Coerce ``value`` to float, stripping currency symbols and separators.

    Unparsable or empty values coerce to 0.
    """

    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    if not value:
        return 0.0
    cleaned = re.sub(r"[^0-9.\-]+", "", str(value))
    match = _LEADING_FLOAT_RE.match(cleaned)
    if match is None:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def parse_calendar_date(value: object) -> date | None:
    """Parse ``value`` as a calendar date; None when it is not one."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def email_format_problem(value: str) -> str | None:
    if EMAIL_RE.match(value):
        return None
    return f'Invalid email format: "{value}"'


def phone_format_problem(value: str) -> str | None:
    digits = len(re.sub(r"\D", "", value))
    if _PHONE_ALLOWED_RE.match(value) and digits >= MIN_PHONE_DIGITS:
        return None
    has_foreign_letters = bool(_LETTER_RE.search(value)) and "ext" not in value.lower()
    if has_foreign_letters or digits < MIN_PHONE_DIGITS:
        return f'Suspicious phone format: "{value}"'
    return None


def date_format_problem(value: str) -> str | None:
    if parse_calendar_date(value) is not None:
        return None
    return f'Invalid date format: "{value}"'


def url_format_problem(value: str) -> str | None:
    if "." in value and not re.search(r"\s", value):
        return None
    return f'Invalid URL format: "{value}"'
