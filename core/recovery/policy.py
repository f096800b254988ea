"""Recovery policy: retry, halt or freeze after a failed attempt."""

from __future__ import annotations

import logging

from core.audit.log import AuditLog
from core.audit.models import SYSTEM_ACTOR_ID
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.recovery.models import RecoveryDecision
from core.utils.errors import OperationFailure
from core.utils.log_events import log_event

logger = logging.getLogger("docledger.recovery")

FREEZE_KINDS: frozenset[str] = frozenset({"security", "system"})


def decide_recovery(
    failure: OperationFailure,
    attempt_index: int,
    *,
    policy: IntegrityPolicy | None = None,
    audit: AuditLog | None = None,
) -> RecoveryDecision:
    """Decide the next step for ``failure`` on zero-based ``attempt_index``.

    Rules:
    - security/system failures freeze the session
    - compliance failures halt immediately
    - retryable failures retry while attempt_index < max_retries
    - anything else halts with an escalation message
    Every decision is audited before it is returned.
    """

    max_retries = resolve_policy(policy).retry.max_retries

    if failure.kind in FREEZE_KINDS:
        decision = RecoveryDecision(
            action="freeze",
            message=f"CRITICAL {failure.kind.upper()} EVENT: Session Halted. {failure.message}",
        )
    elif failure.kind == "compliance":
        decision = RecoveryDecision(
            action="halt",
            message=f"COMPLIANCE ALERT: Operation stopped. {failure.message}",
        )
    elif failure.retryable and attempt_index < max_retries:
        decision = RecoveryDecision(
            action="retry",
            message=f"Retrying ({attempt_index + 1}/{max_retries})...",
        )
    else:
        decision = RecoveryDecision(
            action="halt",
            message=(
                f"Operation failed after {attempt_index + 1} attempts. "
                "Escalating to human review."
            ),
        )

    _audit(failure, attempt_index, decision, audit)
    return decision


def _audit(
    failure: OperationFailure,
    attempt_index: int,
    decision: RecoveryDecision,
    audit: AuditLog | None,
) -> None:
    level = logging.ERROR if decision.action == "freeze" else logging.WARNING
    log_event(
        logger,
        level,
        "operation_failure",
        kind=failure.kind,
        message=failure.message,
        context=failure.context,
        attempt_index=attempt_index,
        action=decision.action,
    )
    if audit is not None:
        audit.record(
            "REJECT",
            "system",
            {
                "failureType": failure.kind,
                "message": failure.message,
                "context": failure.context,
                "attemptIndex": attempt_index,
                "action": decision.action,
            },
            actor_id=SYSTEM_ACTOR_ID,
        )
