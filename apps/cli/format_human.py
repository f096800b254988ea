"""Human-readable summaries for CLI output."""

from __future__ import annotations

from collections import Counter

from core.regression.models import RegressionReport
from core.validation.models import ValidationResult

MAX_LISTED_ISSUES = 10


def render_validation_summary(result: ValidationResult, *, document_type: str) -> str:
    """Render one-screen validation summary."""

    lines: list[str] = []
    lines.append("validation_summary:")
    lines.append(f"document_type={document_type}")
    if result.is_valid:
        result_text = "VALID"
    elif result.has_blockers:
        result_text = "BLOCKED"
    else:
        result_text = "WARNINGS"
    lines.append(f"result={result_text}")
    lines.append(f"errors={result.error_count} warnings={result.warning_count}")

    type_counter: Counter[str] = Counter(issue.type for issue in result.issues)
    if type_counter:
        items = sorted(type_counter.items(), key=lambda item: (-item[1], item[0]))
        lines.append("issues: " + ", ".join(f"{name}={count}" for name, count in items))
    else:
        lines.append("issues: none")

    ordered = sorted(result.issues, key=lambda issue: issue.severity != "error")
    for issue in ordered[:MAX_LISTED_ISSUES]:
        lines.append(f"- [{issue.severity}/{issue.type}] {issue.message}")
    hidden = len(ordered) - MAX_LISTED_ISSUES
    if hidden > 0:
        lines.append(f"... {hidden} more")

    return "\n".join(lines)


def render_regression_summary(report: RegressionReport) -> str:
    lines = ["regression_summary:", f"severity={report.severity}"]
    lines.append(f"message: {report.message or 'none'}")
    return "\n".join(lines)
