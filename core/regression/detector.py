"""Non-regression check between two snapshots."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from core.document.flatten import flatten
from core.document.models import Snapshot
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import resolve_policy
from core.regression.models import RegressionReport
from core.utils.clock import utc_now


def detect_regression(
    baseline: Snapshot,
    candidate: Snapshot,
    *,
    policy: IntegrityPolicy | None = None,
    now: Callable[[], datetime] = utc_now,
) -> RegressionReport:
    """Compare ``candidate`` against ``baseline``; first matching rule wins.

    Priority:
    1. critical: a non-empty baseline field is absent from the candidate
    2. major: confidence dropped by at least ``major_confidence_drop`` points
    3. major: baseline detected tables, candidate does not
    4. moderate: any other confidence drop
    5. none
    """

    effective = resolve_policy(policy)
    timestamp = now()

    baseline_flat = flatten(baseline)
    candidate_flat = flatten(candidate)
    missing = [
        key
        for key, value in baseline_flat.items()
        if key not in candidate_flat and value.strip()
    ]
    if missing:
        return RegressionReport(
            severity="critical",
            message=(
                f'CRITICAL REGRESSION: {len(missing)} fields were removed (e.g., "{missing[0]}"). '
                "Data loss detected."
            ),
            timestamp=timestamp,
        )

    base_score = baseline.confidence_score
    score = candidate.confidence_score
    if score <= base_score - effective.regression.major_confidence_drop:
        return RegressionReport(
            severity="major",
            message=f"PERFORMANCE REGRESSION: Confidence dropped significantly ({base_score}% -> {score}%).",
            timestamp=timestamp,
        )

    if baseline.meta.has_tables and not candidate.meta.has_tables:
        return RegressionReport(
            severity="major",
            message="CAPABILITY REGRESSION: Table detection failed in new version.",
            timestamp=timestamp,
        )

    if score < base_score:
        return RegressionReport(
            severity="moderate",
            message=f"Quality Warning: Confidence slightly reduced ({base_score}% -> {score}%).",
            timestamp=timestamp,
        )

    return RegressionReport(severity="none", timestamp=timestamp)
