"""Recovery decision and guarded-result models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict

from core.utils.errors import OperationFailure

FailureKind = Literal["tool", "validation", "classification", "security", "compliance", "system"]
RecoveryAction = Literal["retry", "halt", "freeze"]

T = TypeVar("T")


class RecoveryDecision(BaseModel):
    """What to do after one failed attempt."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    action: RecoveryAction
    message: str


@dataclass(frozen=True)
class GuardedResult(Generic[T]):
    """Final outcome of a guarded operation that did not freeze.

    Rules:
    - ok is True iff value holds the operation's return value
    - message and failure are set only when the operation halted
    """

    ok: bool
    attempts: int
    value: T | None = None
    message: str | None = None
    failure: OperationFailure | None = None
