"""Confidence-tier pass over every Confidence Field of a snapshot."""

from __future__ import annotations

from core.document.models import StructuredData
from core.document.nodes import FieldNode, iter_field_nodes
from core.policy.models import ConfidenceTierPolicy
from core.validation.models import Issue


def check_confidence(structured: StructuredData, tiers: ConfidenceTierPolicy) -> list[Issue]:
    """Emit one issue per field below the moderate tier.

    Tiers (defaults): <70 error, [70,80) low warning, [80,90) moderate warning.
    """

    issues: list[Issue] = []
    for node in iter_field_nodes(structured):
        issue = _tier_issue(node, tiers)
        if issue is not None:
            issues.append(issue)
    return issues


def _tier_issue(node: FieldNode, tiers: ConfidenceTierPolicy) -> Issue | None:
    confidence = node.field.confidence
    if confidence < tiers.very_low_below:
        severity = "error"
        message = f"Very Low Confidence ({confidence}%) at {node.path}: blocks export."
    elif confidence < tiers.low_below:
        severity = "warning"
        message = f"Low Confidence ({confidence}%) at {node.path}: review recommended."
    elif confidence < tiers.moderate_below:
        severity = "warning"
        message = f"Moderate Confidence ({confidence}%) at {node.path}."
    else:
        return None

    return Issue(
        type="confidence",
        severity=severity,
        message=message,
        involved_keys=(node.path,),
        row_index=node.row_index,
    )
