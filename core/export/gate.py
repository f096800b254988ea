"""Export gate: a snapshot with blocking issues is never exported."""

from __future__ import annotations

import logging
from typing import Any

from core.audit.models import ApprovalStamp
from core.document.models import Snapshot
from core.policy.models import IntegrityPolicy
from core.utils.errors import ExportBlockedError
from core.utils.log_events import log_event
from core.validation.engine import validate
from core.validation.models import ValidationResult

logger = logging.getLogger("docledger.export")

EXPORT_FORMAT_VERSION = 1


def check_export(snapshot: Snapshot, *, policy: IntegrityPolicy | None = None) -> ValidationResult:
    return validate(snapshot, policy=policy)


def ensure_exportable(
    snapshot: Snapshot, *, policy: IntegrityPolicy | None = None
) -> ValidationResult:
    """Validate ``snapshot`` and raise ExportBlockedError when it has blockers."""

    result = check_export(snapshot, policy=policy)
    if result.has_blockers:
        categories = result.blocking_categories()
        message = "Export blocked: " + ", ".join(
            f"{category}: {count}" for category, count in categories.items()
        )
        log_event(
            logger,
            logging.WARNING,
            "export_blocked",
            categories=categories,
            errors=result.error_count,
        )
        raise ExportBlockedError(message, validation_result=result)
    return result


def build_export_payload(snapshot: Snapshot, stamp: ApprovalStamp) -> dict[str, Any]:
    """Serialisable export document: the snapshot plus its approval stamp."""

    return {
        "version": EXPORT_FORMAT_VERSION,
        "approval": stamp.model_dump(mode="json", by_alias=True),
        "document": snapshot.to_payload(),
    }

