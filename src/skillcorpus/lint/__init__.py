"""
skillcorpus lint.

Documentation hygiene checks: navigation and related-file links resolve,
frontmatter parses and carries required fields, skill names are unique,
and every resource is reachable from an index.

Usage:
    from skillcorpus.lint import lint_path, Severity

    report = lint_path(Path("."))
    if report.has_failures(Severity.ERROR):
        ...
"""

from skillcorpus.lint.models import Issue, LintReport, Severity
from skillcorpus.lint.rules import RULES, LintContext, Rule
from skillcorpus.lint.runner import (
    UnknownRuleError,
    get_rule,
    lint_corpus,
    lint_path,
    list_rules,
)

__all__ = [
    "Issue",
    "LintContext",
    "LintReport",
    "RULES",
    "Rule",
    "Severity",
    "UnknownRuleError",
    "get_rule",
    "lint_corpus",
    "lint_path",
    "list_rules",
]
