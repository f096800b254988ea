"""Undo/redo/baseline history of document snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.document.models import Snapshot
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.regression.detector import detect_regression
from core.regression.models import RegressionReport
from core.utils.clock import utc_now
from core.utils.log_events import log_event

logger = logging.getLogger("docledger.ledger")


class LedgerState(BaseModel):
    """Serialisable ledger content. Alerts are transient and not included."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    baseline: Snapshot
    past: tuple[Snapshot, ...] = ()
    present: Snapshot
    future: tuple[Snapshot, ...] = ()


class VersionLedger:
    """Owns one document's version history.

    Rules:
    - commit runs regression detection against the current present and clears
      the redo stack
    - undo moves one step back and clears the alert
    - redo moves one step forward and re-evaluates the alert
    - baseline is the initial snapshot and never changes
    - with ``ledger.max_history`` set, the oldest past entries are evicted
    """

    def __init__(
        self,
        initial: Snapshot,
        *,
        policy: IntegrityPolicy | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._policy = resolve_policy(policy)
        self._now = now
        self._baseline = initial
        self._past: list[Snapshot] = []
        self._present = initial
        self._future: list[Snapshot] = []
        self._alert: RegressionReport | None = None

    @classmethod
    def from_state(
        cls,
        state: LedgerState,
        *,
        policy: IntegrityPolicy | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> VersionLedger:
        ledger = cls(state.baseline, policy=policy, now=now)
        ledger._past = list(state.past)
        ledger._present = state.present
        ledger._future = list(state.future)
        ledger._evict()
        return ledger

    def to_state(self) -> LedgerState:
        return LedgerState(
            baseline=self._baseline,
            past=tuple(self._past),
            present=self._present,
            future=tuple(self._future),
        )

    @property
    def present(self) -> Snapshot:
        return self._present

    @property
    def baseline(self) -> Snapshot:
        return self._baseline

    @property
    def past(self) -> tuple[Snapshot, ...]:
        return tuple(self._past)

    @property
    def future(self) -> tuple[Snapshot, ...]:
        return tuple(self._future)

    @property
    def current_alert(self) -> RegressionReport | None:
        return self._alert

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def history_depth(self) -> int:
        return len(self._past)

    def commit(self, snapshot: Snapshot) -> RegressionReport:
        """Make ``snapshot`` the present version and return its regression report."""

        report = self._detect(self._present, snapshot)
        self._past.append(self._present)
        self._present = snapshot
        self._future.clear()
        self._evict()
        self._set_alert(report)
        log_event(
            logger,
            logging.INFO,
            "ledger_commit",
            history_depth=len(self._past),
            severity=report.severity,
        )
        return report

    def undo(self) -> bool:
        """Step back one version. Returns False when there is nothing to undo."""

        if not self._past:
            return False
        self._future.insert(0, self._present)
        self._present = self._past.pop()
        self._alert = None
        log_event(logger, logging.DEBUG, "ledger_undo", history_depth=len(self._past))
        return True

    def redo(self) -> RegressionReport | None:
        """Step forward one version. Returns None when there is nothing to redo."""

        if not self._future:
            return None
        predecessor = self._present
        self._past.append(predecessor)
        self._present = self._future.pop(0)
        self._evict()
        report = self._detect(predecessor, self._present)
        self._set_alert(report)
        log_event(
            logger,
            logging.DEBUG,
            "ledger_redo",
            history_depth=len(self._past),
            severity=report.severity,
        )
        return report

    def restore_baseline(self) -> RegressionReport:
        """Commit the baseline as a new version; regression detection still applies."""

        return self.commit(self._baseline)

    def dismiss_alert(self) -> None:
        self._alert = None

    def _detect(self, previous: Snapshot, candidate: Snapshot) -> RegressionReport:
        return detect_regression(previous, candidate, policy=self._policy, now=self._now)

    def _set_alert(self, report: RegressionReport) -> None:
        if not report.is_regression:
            self._alert = None
            return
        self._alert = report
        log_event(
            logger,
            logging.WARNING,
            "regression_detected",
            severity=report.severity,
            message=report.message,
        )

    def _evict(self) -> None:
        limit = self._policy.ledger.max_history
        if limit is not None and len(self._past) > limit:
            del self._past[: len(self._past) - limit]
