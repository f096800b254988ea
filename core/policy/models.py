"""Integrity policy models: heuristic thresholds shared by every component."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConfidenceTierPolicy(BaseModel):
    """Confidence boundaries for the validation tiers.

    Rules:
    - confidence < very_low_below is an export-blocking error
    - confidence < low_below is a low-confidence warning
    - confidence < moderate_below is a moderate-confidence warning
    """

    model_config = ConfigDict(extra="forbid")

    very_low_below: int = Field(default=70, ge=0, le=100)
    low_below: int = Field(default=80, ge=0, le=100)
    moderate_below: int = Field(default=90, ge=0, le=100)

    @model_validator(mode="after")
    def _check_ordering(self) -> ConfidenceTierPolicy:
        if not self.very_low_below <= self.low_below <= self.moderate_below:
            raise ValueError(
                "confidence tiers must satisfy very_low_below <= low_below <= moderate_below"
            )
        return self


class RegressionPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    major_confidence_drop: int = Field(default=15, ge=1, le=100)


class RetryPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_retries: int = Field(default=2, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0)


class LedgerPolicy(BaseModel):
    """History retention. ``max_history=None`` keeps every past snapshot."""

    model_config = ConfigDict(extra="forbid")

    max_history: int | None = Field(default=None, ge=1)


class SessionPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_age_hours: float = Field(default=24, gt=0)


class IntegrityPolicy(BaseModel):
    """Integrity policy loaded from YAML."""

    model_config = ConfigDict(extra="forbid")

    confidence_tiers: ConfidenceTierPolicy = Field(default_factory=ConfidenceTierPolicy)
    math_tolerance: float = Field(default=0.05, ge=0)
    regression: RegressionPolicy = Field(default_factory=RegressionPolicy)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    ledger: LedgerPolicy = Field(default_factory=LedgerPolicy)
    session: SessionPolicy = Field(default_factory=SessionPolicy)
