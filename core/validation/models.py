"""Data models for validation issues and results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IssueType = Literal["format", "logic", "math", "confidence"]
IssueSeverity = Literal["warning", "error"]


class Issue(BaseModel):
    """Single validation finding."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: IssueType
    severity: IssueSeverity
    message: str
    involved_keys: tuple[str, ...] = ()
    row_index: int | None = None


class ValidationResult(BaseModel):
    """Validation outcome for one snapshot.

    Rules:
    - is_valid == (len(issues) == 0)
    - has_blockers is true iff any issue has severity=error
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    is_valid: bool
    has_blockers: bool
    issues: tuple[Issue, ...] = Field(default_factory=tuple)

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> ValidationResult:
        return cls(
            is_valid=not issues,
            has_blockers=any(issue.severity == "error" for issue in issues),
            issues=tuple(issues),
        )

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "warning")

    def blocking_categories(self) -> dict[str, int]:
        """Export-blocking issue counts by human category name, in first-seen order."""

        categories: dict[str, int] = {}
        for issue in self.issues:
            if issue.severity != "error":
                continue
            name = _CATEGORY_NAMES[issue.type]
            categories[name] = categories.get(name, 0) + 1
        return categories


_CATEGORY_NAMES: dict[str, str] = {
    "confidence": "Very Low Confidence",
    "logic": "Logic",
    "math": "Math",
    "format": "Format",
}
