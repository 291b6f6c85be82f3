"""
Output formatting utilities for the CLI.

Provides consistent output formatting across all CLI commands.
"""

import json
import logging
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from skillcorpus.config.schema import OutputConfig
from skillcorpus.lint.models import LintReport, Severity


class OutputFormat(str, Enum):
    """Output format options."""

    RICH = "rich"
    PLAIN = "plain"
    JSON = "json"


# Global console instances
console = Console()
err_console = Console(stderr=True)

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def apply_output_config(output: OutputConfig) -> None:
    """Apply configured output settings to the shared consoles."""
    console.no_color = not output.color
    err_console.no_color = not output.color


def configure_logging(level: str = "WARNING") -> None:
    """Send library logging through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")


def print_json(data: Any) -> None:
    """Print data as plain JSON so it can be piped."""
    typer.echo(json.dumps(data, indent=2, default=str))


def render_report(report: LintReport, output_format: OutputFormat) -> None:
    """Render a lint report in the requested format."""
    if output_format == OutputFormat.JSON:
        print_json(report.to_dict())
        return

    counts = report.counts()
    summary = (
        f"{report.checked_files} file(s) in {report.bundles} bundle(s) and "
        f"{report.prompts} prompt(s): {counts['error']} error(s), "
        f"{counts['warning']} warning(s), {counts['info']} info"
    )

    if output_format == OutputFormat.PLAIN:
        for issue in report.issues:
            typer.echo(f"{issue.location()}: {issue.severity.value}: {issue.message} [{issue.rule}]")
        typer.echo(summary)
        return

    if not report.issues:
        print_success(f"No issues found. {summary}")
        return

    table = Table(title="Corpus Issues")
    table.add_column("Location", style="cyan")
    table.add_column("Severity")
    table.add_column("Rule", style="dim")
    table.add_column("Message")

    for issue in report.issues:
        style = SEVERITY_STYLES[issue.severity]
        table.add_row(
            escape(issue.location()),
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.rule,
            escape(issue.message),
        )

    console.print(table)
    console.print(f"\n[dim]{summary}[/dim]")
