"""
Lint result models for skillcorpus.
"""

from collections import Counter
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Issue severity, ordered error > warning > info."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"error": 3, "warning": 2, "info": 1}[self.value]

    def at_least(self, threshold: "Severity") -> bool:
        """True if this severity is at or above ``threshold``."""
        return self.rank >= threshold.rank


class Issue(BaseModel):
    """A single structural problem found in the corpus."""

    rule: str = Field(..., description="Rule id, e.g. 'nav-link-broken'")
    severity: Severity
    path: str = Field(..., description="File path relative to the corpus root")
    line: int | None = None
    message: str
    target: str | None = Field(default=None, description="Offending link target, if any")

    def sort_key(self) -> tuple[str, int, str]:
        return (self.path, self.line or 0, self.rule)

    def location(self) -> str:
        return f"{self.path}:{self.line}" if self.line else self.path


class LintReport(BaseModel):
    """All issues from one lint run."""

    root: str
    issues: list[Issue] = Field(default_factory=list)
    checked_files: int = 0
    bundles: int = 0
    prompts: int = 0

    def sort(self) -> None:
        self.issues.sort(key=Issue.sort_key)

    def counts(self) -> dict[str, int]:
        """Number of issues per severity (every severity present, zero if none)."""
        counter = Counter(issue.severity.value for issue in self.issues)
        return {severity.value: counter.get(severity.value, 0) for severity in Severity}

    def by_path(self) -> dict[str, list[Issue]]:
        grouped: dict[str, list[Issue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.path, []).append(issue)
        return grouped

    def by_rule(self, rule: str) -> list[Issue]:
        return [issue for issue in self.issues if issue.rule == rule]

    def has_failures(self, threshold: Severity = Severity.ERROR) -> bool:
        """True if any issue is at or above ``threshold``."""
        return any(issue.severity.at_least(threshold) for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "checked_files": self.checked_files,
            "bundles": self.bundles,
            "prompts": self.prompts,
            "counts": self.counts(),
            "issues": [issue.model_dump(mode="json") for issue in self.issues],
        }
