from __future__ import annotations

import json
from pathlib import Path

import pytest

from apps.cli.io import load_snapshot, write_json_atomic


def test_load_snapshot_accepts_legacy_payload(tmp_path: Path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps({"documentType": "receipt", "confidenceScore": 77, "data": {"store": "Deli"}}),
        encoding="utf-8",
    )

    snapshot = load_snapshot(path)

    assert snapshot.document_type == "receipt"
    assert snapshot.structured_data.sections[0].heading == "General"


def test_load_snapshot_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("[", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid snapshot JSON"):
        load_snapshot(path)


def test_write_json_atomic_creates_parent_and_leaves_no_temp(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.json"

    write_json_atomic(target, {"b": 1, "a": "é"})

    assert json.loads(target.read_text(encoding="utf-8")) == {"a": "é", "b": 1}
    assert target.read_text(encoding="utf-8").index('"a"') < target.read_text(encoding="utf-8").index('"b"')
    assert [item.name for item in target.parent.iterdir()] == ["out.json"]


def test_write_json_atomic_failure_keeps_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    target.write_text('{"old": true}', encoding="utf-8")

    with pytest.raises(TypeError):
        write_json_atomic(target, {"bad": object()})

    assert json.loads(target.read_text(encoding="utf-8")) == {"old": True}
    assert [item.name for item in tmp_path.iterdir()] == ["out.json"]
