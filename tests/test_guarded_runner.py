from __future__ import annotations

import pytest

from core.audit.log import AuditLog
from core.policy.models import IntegrityPolicy, RetryPolicy
from core.recovery.runner import run_guarded
from core.utils.errors import OperationFailure


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _flaky(failures: list[BaseException], value: str = "ok"):
    calls: list[int] = []

    async def operation(attempt_index: int) -> str:
        calls.append(attempt_index)
        if failures:
            raise failures.pop(0)
        return value

    return operation, calls


@pytest.mark.anyio
async def test_success_on_first_attempt_does_not_sleep() -> None:
    sleep = RecordingSleep()
    operation, calls = _flaky([])

    result = await run_guarded(operation, context="extraction", sleep=sleep)

    assert result.ok is True
    assert result.value == "ok"
    assert result.attempts == 1
    assert calls == [0]
    assert sleep.delays == []


@pytest.mark.anyio
async def test_two_tool_failures_then_success_retries_with_backoff() -> None:
    sleep = RecordingSleep()
    operation, calls = _flaky([RuntimeError("network down"), RuntimeError("HTTP 503")], value="done")

    result = await run_guarded(operation, context="extraction", sleep=sleep)

    assert result.ok is True
    assert result.value == "done"
    assert calls == [0, 1, 2]
    assert sleep.delays == [1.0, 2.0]
    assert sleep.delays[1] > sleep.delays[0]


@pytest.mark.anyio
async def test_exhausted_retries_halt_with_message() -> None:
    sleep = RecordingSleep()
    operation, calls = _flaky([RuntimeError("network down")] * 3)

    result = await run_guarded(operation, context="extraction", sleep=sleep)

    assert result.ok is False
    assert result.value is None
    assert result.attempts == 3
    assert result.message == "Operation failed after 3 attempts. Escalating to human review."
    assert result.failure is not None
    assert result.failure.kind == "tool"
    assert calls == [0, 1, 2]
    assert len(sleep.delays) == 2


@pytest.mark.anyio
async def test_security_failure_is_never_retried_and_propagates() -> None:
    sleep = RecordingSleep()
    original = RuntimeError("Candidate was BLOCKED for SAFETY")
    operation, calls = _flaky([original])

    with pytest.raises(OperationFailure) as exc_info:
        await run_guarded(operation, context="chat", sleep=sleep)

    assert exc_info.value.kind == "security"
    assert exc_info.value.context == "chat"
    assert exc_info.value.__cause__ is original
    assert calls == [0]
    assert sleep.delays == []


@pytest.mark.anyio
async def test_classified_freeze_failure_is_reraised_as_is() -> None:
    failure = OperationFailure("key revoked", kind="system")
    operation, _ = _flaky([failure])

    with pytest.raises(OperationFailure) as exc_info:
        await run_guarded(operation, context="extraction", sleep=RecordingSleep())

    assert exc_info.value is failure


@pytest.mark.anyio
async def test_compliance_failure_halts_without_retry() -> None:
    sleep = RecordingSleep()
    operation, calls = _flaky([RuntimeError("PII found in response")])

    result = await run_guarded(operation, context="extraction", sleep=sleep)

    assert result.ok is False
    assert result.message == "COMPLIANCE ALERT: Operation stopped. PII found in response"
    assert calls == [0]
    assert sleep.delays == []


@pytest.mark.anyio
async def test_delays_follow_policy_base_delay() -> None:
    sleep = RecordingSleep()
    policy = IntegrityPolicy(retry=RetryPolicy(max_retries=3, base_delay_seconds=0.5))
    operation, _ = _flaky([RuntimeError("timeout")] * 3)

    result = await run_guarded(operation, context="extraction", policy=policy, sleep=sleep)

    assert result.ok is True
    assert sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.anyio
async def test_every_failed_attempt_is_audited() -> None:
    audit = AuditLog()
    operation, _ = _flaky([RuntimeError("network down")])

    await run_guarded(operation, context="extraction", audit=audit, sleep=RecordingSleep())

    events = audit.events()
    assert [event.event_type for event in events] == ["REJECT"]
    assert events[0].details["action"] == "retry"
