"""Clock helpers; callers inject ``now`` so tests control time."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
