"""Extraction-service boundary: fetch a candidate snapshot under recovery."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from core.audit.log import AuditLog
from core.document.adapter import adapt_payload
from core.document.models import Snapshot
from core.policy.models import IntegrityPolicy
from core.recovery.models import GuardedResult
from core.recovery.runner import Sleep, run_guarded

EXTRACTION_CONTEXT = "extraction"


class ExtractionRequest(BaseModel):
    """Input handed to the extraction service."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    document_type: str | None = None
    description: str = ""
    sources: tuple[str, ...] = Field(default_factory=tuple)


class ExtractionClient(Protocol):
    async def extract(self, request: ExtractionRequest) -> Mapping[str, Any]:
        """Return the raw payload for ``request``."""
        ...


async def fetch_snapshot(
    client: ExtractionClient,
    request: ExtractionRequest,
    *,
    policy: IntegrityPolicy | None = None,
    audit: AuditLog | None = None,
    sleep: Sleep = asyncio.sleep,
) -> GuardedResult[Snapshot]:
    """Call the service and adapt its payload; failures go through recovery.

    Malformed payloads count as failed attempts. Freeze-class failures raise
    OperationFailure.
    """

    async def attempt(_attempt_index: int) -> Snapshot:
        payload = await client.extract(request)
        return adapt_payload(payload)

    return await run_guarded(
        attempt,
        context=EXTRACTION_CONTEXT,
        policy=policy,
        audit=audit,
        sleep=sleep,
    )
