"""
Lint runner for skillcorpus.

Runs the registered rules over a corpus, honouring the lint section of
the configuration (disabled rules, severity overrides).
"""

import logging
from pathlib import Path

from skillcorpus.config.schema import Config
from skillcorpus.docs.loader import load_corpus
from skillcorpus.docs.models import Corpus
from skillcorpus.lint.models import LintReport, Severity
from skillcorpus.lint.rules import RULES, LintContext, Rule

logger = logging.getLogger(__name__)


class UnknownRuleError(Exception):
    """Raised when configuration names a rule that does not exist."""

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Unknown lint rule: {rule_id} (known: {', '.join(sorted(RULES))})")


def get_rule(rule_id: str) -> Rule:
    """Look up a registered rule.

    Raises:
        UnknownRuleError: If no rule has this id.
    """
    try:
        return RULES[rule_id]
    except KeyError:
        raise UnknownRuleError(rule_id) from None


def list_rules() -> list[Rule]:
    """All registered rules, sorted by id."""
    return [RULES[rule_id] for rule_id in sorted(RULES)]


def _validate_rule_ids(config: Config) -> None:
    for rule_id in config.lint.disabled_rules:
        get_rule(rule_id)
    for rule_id in config.lint.severity_overrides:
        get_rule(rule_id)


def lint_corpus(corpus: Corpus, config: Config | None = None) -> LintReport:
    """Run all enabled rules over a loaded corpus.

    Args:
        corpus: The loaded corpus.
        config: Configuration (defaults apply if omitted).

    Returns:
        A LintReport with issues sorted by path, line and rule.

    Raises:
        UnknownRuleError: If the config disables or overrides an unknown rule.
    """
    config = config or Config()
    _validate_rule_ids(config)

    context = LintContext(corpus=corpus, config=config)
    report = LintReport(
        root=str(corpus.root),
        checked_files=len(corpus.all_documents()),
        bundles=len(corpus.bundles),
        prompts=len(corpus.prompts),
    )

    for rule in list_rules():
        if not config.is_rule_enabled(rule.id):
            logger.debug(f"Rule {rule.id} disabled")
            continue

        override = config.lint.severity_overrides.get(rule.id)
        found = 0
        for issue in rule.func(context):
            if override is not None:
                issue.severity = Severity(override)
            report.issues.append(issue)
            found += 1
        logger.debug(f"Rule {rule.id}: {found} issue(s)")

    report.sort()
    counts = report.counts()
    logger.info(
        f"Linted {report.checked_files} file(s): {counts['error']} error(s), "
        f"{counts['warning']} warning(s), {counts['info']} info"
    )
    return report


def lint_path(root: Path, config: Config | None = None) -> LintReport:
    """Load the corpus at ``root`` and lint it."""
    config = config or Config()
    corpus = load_corpus(root, config.layout)
    return lint_corpus(corpus, config)
