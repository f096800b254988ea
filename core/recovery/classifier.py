"""Map raw failures onto the failure taxonomy."""

from __future__ import annotations

import re

from core.recovery.models import FailureKind
from core.utils.errors import OperationFailure

_SERVER_ERROR_RE = re.compile(r"\b5\d\d\b")

# Checked in order; the first matching kind wins.
_KIND_MARKERS: tuple[tuple[FailureKind, tuple[str, ...]], ...] = (
    ("security", ("safety", "blocked", "harmful")),
    ("tool", ("fetch", "network", "timeout", "timed out")),
    ("compliance", ("pii", "compliance")),
    ("system", ("quota", "api key", "api_key", "api-key")),
)

RETRYABLE_KINDS: frozenset[str] = frozenset({"tool"})


def failure_message(raw: object) -> str:
    if isinstance(raw, BaseException):
        return str(raw) or type(raw).__name__
    if raw is None:
        return "Unknown error"
    return str(raw) or "Unknown error"


def classify_failure(raw: object, context: str = "system") -> OperationFailure:
    """Classify ``raw`` (exception or message); classified failures pass through."""

    if isinstance(raw, OperationFailure):
        return raw

    message = failure_message(raw)
    kind = _match_kind(raw, message.lower())
    return OperationFailure(
        message,
        kind=kind,
        context=context,
        retryable=kind in RETRYABLE_KINDS,
    )


def _match_kind(raw: object, lowered: str) -> FailureKind:
    for kind, markers in _KIND_MARKERS:
        if any(marker in lowered for marker in markers):
            return kind
        if kind == "tool" and (
            isinstance(raw, TimeoutError | ConnectionError) or _SERVER_ERROR_RE.search(lowered)
        ):
            return kind
    return "tool"
