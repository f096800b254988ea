"""Session-owned audit log."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from core.audit.models import Actor, ApprovalStamp, AuditEvent, AuditEventType, ValidationSummary
from core.utils.clock import utc_now
from core.utils.log_events import log_event

logger = logging.getLogger("docledger.audit")


class AuditLog:
    """Append-only list of audit events for one session."""

    def __init__(self, *, now: Callable[[], datetime] = utc_now) -> None:
        self._now = now
        self._events: list[AuditEvent] = []

    def record(
        self,
        event_type: AuditEventType,
        mode: str,
        details: dict[str, Any] | None = None,
        actor_id: str = "anonymous",
    ) -> AuditEvent:
        event = AuditEvent(
            event_type=event_type,
            timestamp=self._now(),
            actor=Actor.for_id(actor_id, mode),
            details=dict(details or {}),
        )
        self._events.append(event)
        log_event(
            logger,
            logging.INFO,
            "audit_event",
            event_type=event_type,
            actor=actor_id,
            mode=mode,
            details=event.details,
        )
        return event

    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def approval_stamp(
        self,
        mode: str,
        errors: int,
        warnings: int,
        actor_id: str = "anonymous",
    ) -> ApprovalStamp:
        return ApprovalStamp(
            approved_by=actor_id,
            approved_at=self._now(),
            mode=mode,
            validation_summary=ValidationSummary(errors=errors, warnings=warnings),
        )

    def __len__(self) -> int:
        return len(self._events)
