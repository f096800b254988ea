"""Audit trail models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AuditEventType = Literal["UPLOAD", "EXTRACT", "VALIDATE", "EDIT", "APPROVE", "REJECT", "EXPORT"]
ActorType = Literal["user", "system"]

SYSTEM_ACTOR_ID = "system"


class _AuditModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Actor(_AuditModel):
    type: ActorType
    id: str
    mode: str

    @classmethod
    def for_id(cls, actor_id: str, mode: str) -> Actor:
        actor_type: ActorType = "system" if actor_id == SYSTEM_ACTOR_ID else "user"
        return cls(type=actor_type, id=actor_id, mode=mode)


class AuditEvent(_AuditModel):
    event_type: AuditEventType
    timestamp: datetime
    actor: Actor
    details: dict[str, Any] = Field(default_factory=dict)


class ValidationSummary(_AuditModel):
    errors: int = Field(ge=0)
    warnings: int = Field(ge=0)


class ApprovalStamp(_AuditModel):
    """Sign-off attached to an exported document."""

    approved_by: str
    approved_at: datetime
    mode: str
    validation_summary: ValidationSummary
