"""Editing session: ledger, validation, export gate, audit and recovery together."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from core.audit.log import AuditLog
from core.audit.models import AuditEventType
from core.document.models import Snapshot
from core.extraction.client import ExtractionClient, ExtractionRequest, fetch_snapshot
from core.export.gate import build_export_payload, ensure_exportable
from core.history.ledger import VersionLedger
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.recovery.models import GuardedResult
from core.recovery.runner import Sleep
from core.regression.models import RegressionReport
from core.utils.errors import ExportBlockedError, OperationFailure, SessionFrozenError
from core.utils.log_events import log_event
from core.validation.engine import validate
from core.validation.models import ValidationResult

logger = logging.getLogger("docledger.session")


class EditorSession:
    """One user's editing session over one document.

    Rules:
    - every mutating call is audited
    - a freeze-class failure makes the session terminal; later mutating calls
      raise SessionFrozenError
    - export is refused while validation reports blockers
    """

    def __init__(
        self,
        initial: Snapshot | VersionLedger,
        *,
        policy: IntegrityPolicy | None = None,
        audit: AuditLog | None = None,
        actor_id: str = "anonymous",
        mode: str = "review",
    ) -> None:
        self._policy = resolve_policy(policy)
        if isinstance(initial, VersionLedger):
            self._ledger = initial
        else:
            self._ledger = VersionLedger(initial, policy=self._policy)
        self._audit = audit if audit is not None else AuditLog()
        self._actor_id = actor_id
        self._mode = mode
        self._frozen_by: OperationFailure | None = None

    @property
    def ledger(self) -> VersionLedger:
        return self._ledger

    @property
    def audit(self) -> AuditLog:
        return self._audit

    @property
    def present(self) -> Snapshot:
        return self._ledger.present

    @property
    def alert(self) -> RegressionReport | None:
        return self._ledger.current_alert

    @property
    def is_frozen(self) -> bool:
        return self._frozen_by is not None

    @property
    def frozen_by(self) -> OperationFailure | None:
        return self._frozen_by

    def edit(self, snapshot: Snapshot) -> RegressionReport:
        self._ensure_active()
        report = self._ledger.commit(snapshot)
        self._record("EDIT", {"action": "commit", "severity": report.severity})
        return report

    def undo(self) -> bool:
        self._ensure_active()
        moved = self._ledger.undo()
        if moved:
            self._record("EDIT", {"action": "undo"})
        return moved

    def redo(self) -> RegressionReport | None:
        self._ensure_active()
        report = self._ledger.redo()
        if report is not None:
            self._record("EDIT", {"action": "redo", "severity": report.severity})
        return report

    def restore_baseline(self) -> RegressionReport:
        self._ensure_active()
        report = self._ledger.restore_baseline()
        self._record("EDIT", {"action": "restore_baseline", "severity": report.severity})
        return report

    def dismiss_alert(self) -> None:
        self._ledger.dismiss_alert()

    def validate(self) -> ValidationResult:
        result = validate(self._ledger.present, policy=self._policy)
        self._record(
            "VALIDATE",
            {
                "errors": result.error_count,
                "warnings": result.warning_count,
                "hasBlockers": result.has_blockers,
            },
        )
        return result

    def export(self) -> dict[str, Any]:
        """Return the export payload; raises ExportBlockedError on blockers."""

        self._ensure_active()
        snapshot = self._ledger.present
        try:
            result = ensure_exportable(snapshot, policy=self._policy)
        except ExportBlockedError as exc:
            self._record("REJECT", {"reason": str(exc)})
            raise

        stamp = self._audit.approval_stamp(
            self._mode,
            result.error_count,
            result.warning_count,
            actor_id=self._actor_id,
        )
        self._record("APPROVE", {"warnings": result.warning_count})
        self._record("EXPORT", {"documentType": snapshot.document_type})
        return build_export_payload(snapshot, stamp)

    async def extract(
        self,
        client: ExtractionClient,
        request: ExtractionRequest,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> GuardedResult[Snapshot]:
        """Fetch a new version from the extraction service and commit it.

        A halted fetch leaves the ledger untouched. A freeze-class failure
        freezes the session and re-raises.
        """

        self._ensure_active()
        try:
            result = await fetch_snapshot(
                client,
                request,
                policy=self._policy,
                audit=self._audit,
                sleep=sleep,
            )
        except OperationFailure as failure:
            self._freeze(failure)
            raise

        if result.ok and result.value is not None:
            report = self._ledger.commit(result.value)
            self._record(
                "EXTRACT",
                {"attempts": result.attempts, "severity": report.severity},
            )
        return result

    def _ensure_active(self) -> None:
        if self._frozen_by is not None:
            raise SessionFrozenError(
                f"Session is frozen: {self._frozen_by.message}",
                failure=self._frozen_by,
            )

    def _freeze(self, failure: OperationFailure) -> None:
        self._frozen_by = failure
        log_event(
            logger,
            logging.ERROR,
            "session_frozen",
            kind=failure.kind,
            context=failure.context,
            message=failure.message,
        )

    def _record(self, event_type: AuditEventType, details: dict[str, Any]) -> None:
        self._audit.record(event_type, self._mode, details, actor_id=self._actor_id)
