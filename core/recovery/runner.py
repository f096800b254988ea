"""Guarded execution of async operations with classified retries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, wait_exponential

from core.audit.log import AuditLog
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.recovery.classifier import classify_failure
from core.recovery.models import GuardedResult, RecoveryDecision
from core.recovery.policy import decide_recovery
from core.utils.errors import OperationFailure

logger = logging.getLogger("docledger.recovery")

T = TypeVar("T")

Operation = Callable[[int], Awaitable[T]]
Sleep = Callable[[float], Awaitable[None]]


async def run_guarded(
    operation: Operation[T],
    *,
    context: str,
    policy: IntegrityPolicy | None = None,
    audit: AuditLog | None = None,
    sleep: Sleep = asyncio.sleep,
) -> GuardedResult[T]:
    """Run ``operation(attempt_index)`` until it succeeds, halts or freezes.

    Retries are sequential and wait ``base_delay * 2**attempt_index`` through
    ``sleep``. A freeze re-raises the classified failure; a halt returns a
    result with ``ok=False`` and the user-facing message.
    """

    effective = resolve_policy(policy)
    verdicts: list[tuple[OperationFailure, RecoveryDecision]] = []

    def should_retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        exc = outcome.exception()
        if not isinstance(exc, Exception):
            return False
        failure = classify_failure(exc, context)
        decision = decide_recovery(
            failure,
            retry_state.attempt_number - 1,
            policy=effective,
            audit=audit,
        )
        verdicts.append((failure, decision))
        return decision.action == "retry"

    retrying = AsyncRetrying(
        retry=should_retry,
        wait=wait_exponential(multiplier=effective.retry.base_delay_seconds, exp_base=2),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    attempts = 0
    try:
        async for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                value = await operation(attempts - 1)
    except Exception as exc:
        if not verdicts:
            raise
        failure, decision = verdicts[-1]
        if decision.action == "freeze":
            if failure is exc:
                raise
            raise failure from exc
        return GuardedResult(ok=False, attempts=attempts, message=decision.message, failure=failure)

    return GuardedResult(ok=True, attempts=attempts, value=value)
