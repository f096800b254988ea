"""Custom exceptions for core logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.recovery.models import FailureKind
    from core.validation.models import ValidationResult


class OperationFailure(Exception):
    """Classified failure of a guarded operation."""

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind,
        context: str = "system",
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.context = context
        self.retryable = retryable

    def __repr__(self) -> str:
        return (
            f"OperationFailure(kind={self.kind!r}, retryable={self.retryable!r}, "
            f"context={self.context!r}, message={self.message!r})"
        )


class ExportBlockedError(Exception):
    """Raised when a snapshot carries export-blocking validation issues."""

    def __init__(self, message: str, *, validation_result: ValidationResult) -> None:
        super().__init__(message)
        self.validation_result = validation_result


class SessionFrozenError(Exception):
    """Raised when a frozen session receives a mutating call."""

    def __init__(self, message: str, *, failure: OperationFailure | None = None) -> None:
        super().__init__(message)
        self.failure = failure
