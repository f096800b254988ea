"""Regression report model."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

RegressionSeverity = Literal["none", "moderate", "major", "critical"]

SEVERITY_RANK: dict[str, int] = {"none": 0, "moderate": 1, "major": 2, "critical": 3}


class RegressionReport(BaseModel):
    """Outcome of comparing two snapshots.

    Rules:
    - message is None iff severity == "none"
    - only the most recent ledger transition carries a report
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    severity: RegressionSeverity
    message: str | None = None
    timestamp: datetime

    @property
    def is_regression(self) -> bool:
        return self.severity != "none"

    def at_least(self, severity: RegressionSeverity) -> bool:
        return SEVERITY_RANK[self.severity] >= SEVERITY_RANK[severity]
