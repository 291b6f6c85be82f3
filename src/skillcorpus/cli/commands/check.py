"""
skillcorpus check - Lint a documentation corpus.

Usage:
    skillcorpus check
    skillcorpus check ./path/to/repo --format json
    skillcorpus check --fail-on warning --disable code-block-untagged
    skillcorpus rules
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from skillcorpus.cli.common import EXIT_ISSUES, EXIT_USAGE, load_cli_config, resolve_root
from skillcorpus.cli.output import OutputFormat, console, print_error, render_report
from skillcorpus.lint import Severity, UnknownRuleError, lint_path, list_rules


def check(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Argument(
            help="Corpus root (default: nearest directory containing .claude/).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: rich, plain or json.",
        ),
    ] = None,
    fail_on: Annotated[
        Severity | None,
        typer.Option(
            "--fail-on",
            help="Exit non-zero if any issue is at or above this severity.",
        ),
    ] = None,
    disable: Annotated[
        list[str] | None,
        typer.Option(
            "--disable",
            "-d",
            help="Disable a rule (repeatable).",
        ),
    ] = None,
    require_frontmatter: Annotated[
        bool,
        typer.Option(
            "--require-frontmatter",
            help="Treat a SKILL.md without frontmatter as an error.",
        ),
    ] = False,
    no_anchors: Annotated[
        bool,
        typer.Option(
            "--no-anchors",
            help="Skip checking #fragment links against headings.",
        ),
    ] = False,
) -> None:
    """Check links, frontmatter and bundle structure."""
    config = load_cli_config(ctx, root)

    if disable:
        config.lint.disabled_rules = [*config.lint.disabled_rules, *disable]
    if require_frontmatter:
        config.lint.require_frontmatter = True
    if no_anchors:
        config.lint.check_anchors = False

    corpus_root = resolve_root(root, config)

    try:
        report = lint_path(corpus_root, config)
    except UnknownRuleError as e:
        print_error(str(e))
        raise typer.Exit(EXIT_USAGE)

    render_report(report, output_format or OutputFormat(config.output.format))

    threshold = fail_on or Severity(config.lint.fail_on)
    if report.has_failures(threshold):
        raise typer.Exit(EXIT_ISSUES)


def rules() -> None:
    """List available lint rules."""
    table = Table(title="Lint Rules")
    table.add_column("Rule", style="cyan")
    table.add_column("Default")
    table.add_column("Description")

    for rule in list_rules():
        table.add_row(rule.id, rule.severity.value, rule.description)

    console.print(table)
