from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from core.document.edits import remove_field, set_field_value
from core.document.models import Snapshot
from core.extraction.client import ExtractionRequest
from core.orchestrator.session import EditorSession
from core.utils.errors import ExportBlockedError, OperationFailure, SessionFrozenError


def _payload(vendor_confidence: int = 95) -> dict[str, Any]:
    return {
        "documentType": "invoice",
        "confidenceScore": 92,
        "structuredData": {
            "sections": [
                {
                    "heading": "Vendor",
                    "content": [
                        {"label": "Name", "value": "ACME", "confidence": vendor_confidence},
                        {"label": "City", "value": "Austin", "confidence": 96},
                    ],
                }
            ]
        },
    }


def _initial(vendor_confidence: int = 95) -> Snapshot:
    return Snapshot.model_validate(_payload(vendor_confidence))


class ScriptedClient:
    def __init__(self, outcomes: list[object]) -> None:
        self.outcomes = outcomes
        self.calls = 0

    async def extract(self, request: ExtractionRequest) -> Mapping[str, Any]:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        assert isinstance(outcome, Mapping)
        return outcome


async def _no_sleep(_seconds: float) -> None:
    return None


def _event_types(session: EditorSession) -> list[str]:
    return [event.event_type for event in session.audit.events()]


def test_edit_undo_redo_are_audited() -> None:
    session = EditorSession(_initial(), actor_id="alice")

    report = session.edit(set_field_value(session.present, "Vendor", "Name", "ACME Corp"))
    assert report.severity == "none"
    assert session.undo() is True
    assert session.redo() is not None

    events = session.audit.events()
    assert [event.details["action"] for event in events] == ["commit", "undo", "redo"]
    assert all(event.event_type == "EDIT" for event in events)
    assert events[0].actor.id == "alice"
    assert events[0].actor.type == "user"


def test_undo_without_history_is_not_audited() -> None:
    session = EditorSession(_initial())

    assert session.undo() is False
    assert session.redo() is None
    assert len(session.audit) == 0


def test_field_removal_raises_alert_and_restore_baseline_clears_it() -> None:
    session = EditorSession(_initial())

    report = session.edit(remove_field(session.present, "Vendor", "City"))

    assert report.severity == "critical"
    assert session.alert == report

    restored = session.restore_baseline()
    assert restored.severity == "none"
    assert session.alert is None
    assert session.present == _initial()


def test_validate_records_counts() -> None:
    session = EditorSession(_initial(vendor_confidence=75))

    result = session.validate()

    assert result.warning_count == 1
    event = session.audit.events()[-1]
    assert event.event_type == "VALIDATE"
    assert event.details == {"errors": 0, "warnings": 1, "hasBlockers": False}


def test_export_is_blocked_by_very_low_confidence() -> None:
    session = EditorSession(_initial(vendor_confidence=40))

    with pytest.raises(ExportBlockedError, match="Very Low Confidence: 1"):
        session.export()

    assert _event_types(session) == ["REJECT"]


def test_export_returns_stamped_payload() -> None:
    session = EditorSession(_initial(), actor_id="alice", mode="audit")

    payload = session.export()

    assert payload["version"] == 1
    assert payload["approval"]["approvedBy"] == "alice"
    assert payload["approval"]["mode"] == "audit"
    assert payload["approval"]["validationSummary"] == {"errors": 0, "warnings": 0}
    assert payload["document"]["documentType"] == "invoice"
    assert _event_types(session) == ["APPROVE", "EXPORT"]


@pytest.mark.anyio
async def test_extract_commits_new_version() -> None:
    session = EditorSession(_initial())
    client = ScriptedClient([RuntimeError("network down"), _payload(vendor_confidence=97)])

    result = await session.extract(client, ExtractionRequest(document_type="invoice"), sleep=_no_sleep)

    assert result.ok is True
    assert result.attempts == 2
    assert session.ledger.history_depth == 1
    assert session.present.structured_data.sections[0].content[0].confidence == 97
    assert _event_types(session) == ["REJECT", "EXTRACT"]
    assert session.audit.events()[0].actor.type == "system"


@pytest.mark.anyio
async def test_compliance_failure_halts_without_commit() -> None:
    session = EditorSession(_initial())
    client = ScriptedClient([RuntimeError("PII detected in source")])

    result = await session.extract(client, ExtractionRequest(), sleep=_no_sleep)

    assert result.ok is False
    assert result.message == "COMPLIANCE ALERT: Operation stopped. PII detected in source"
    assert client.calls == 1
    assert session.ledger.history_depth == 0
    assert session.is_frozen is False


@pytest.mark.anyio
async def test_security_failure_freezes_session() -> None:
    session = EditorSession(_initial())
    client = ScriptedClient([RuntimeError("Response blocked by safety filter")])

    with pytest.raises(OperationFailure) as exc_info:
        await session.extract(client, ExtractionRequest(), sleep=_no_sleep)

    assert exc_info.value.kind == "security"
    assert session.is_frozen is True
    assert session.frozen_by is exc_info.value
    with pytest.raises(SessionFrozenError, match="Session is frozen"):
        session.edit(_initial())
    with pytest.raises(SessionFrozenError):
        session.export()
    with pytest.raises(SessionFrozenError):
        await session.extract(client, ExtractionRequest(), sleep=_no_sleep)
