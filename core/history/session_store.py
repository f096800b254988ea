"""Local JSON store for an autosaved editing session."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from core.history.ledger import LedgerState, VersionLedger
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.utils.clock import utc_now
from core.utils.log_events import dump_json, log_event

logger = logging.getLogger("docledger.session")

_STORE_VERSION = 1


class SessionStore:
    """Persist one ledger in a JSON file; stale sessions expire on load."""

    def __init__(
        self,
        store_path: Path,
        *,
        policy: IntegrityPolicy | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store_path = store_path
        self._policy = resolve_policy(policy)
        self._now = now

    @property
    def path(self) -> Path:
        return self._store_path

    def save(self, ledger: VersionLedger) -> None:
        payload = {
            "version": _STORE_VERSION,
            "savedAt": self._now().isoformat(),
            "ledger": ledger.to_state().model_dump(mode="json", by_alias=True),
        }
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")
        temp_path.write_text(dump_json(payload), encoding="utf-8")
        temp_path.replace(self._store_path)
        log_event(
            logger,
            logging.INFO,
            "session_saved",
            path=str(self._store_path),
            history_depth=ledger.history_depth,
        )

    def load(self) -> VersionLedger | None:
        """Return the saved ledger, or None when absent or expired.

        Raises ValueError for unreadable or schema-invalid files.
        """

        if not self._store_path.exists():
            return None

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid session store JSON: {self._store_path}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"Session store must contain an object: {self._store_path}")

        try:
            version = int(raw.get("version", _STORE_VERSION))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid session store version: {self._store_path}") from exc
        if version != _STORE_VERSION:
            raise ValueError(f"Unsupported session store version {version}: {self._store_path}")

        try:
            saved_at = datetime.fromisoformat(str(raw["savedAt"]))
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Invalid or missing savedAt in session store: {self._store_path}") from exc
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=timezone.utc)

        max_age = timedelta(hours=self._policy.session.max_age_hours)
        if self._now() - saved_at > max_age:
            self.clear()
            log_event(logger, logging.INFO, "session_expired", path=str(self._store_path))
            return None

        try:
            state = LedgerState.model_validate(raw.get("ledger"))
        except ValidationError as exc:
            raise ValueError(f"Invalid session store schema: {self._store_path}") from exc

        return VersionLedger.from_state(state, policy=self._policy, now=self._now)

    def clear(self) -> bool:
        if not self._store_path.exists():
            return False
        self._store_path.unlink()
        return True
