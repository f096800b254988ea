"""CLI I/O helpers: snapshot loading and atomic JSON writes."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from core.document.adapter import adapt_payload
from core.document.models import Snapshot


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot (structured or legacy payload) from a JSON file."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid snapshot JSON: {path}") from exc
    return adapt_payload(raw)


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write ``payload`` via a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, indent=2)
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    tmp_path.replace(path)
