"""
Main Typer application for the skillcorpus CLI.

This module defines the root CLI application and registers all command groups.
"""

from pathlib import Path
from typing import Annotated

import typer

from skillcorpus import __version__
from skillcorpus.cli.commands import check, config, index, skill
from skillcorpus.cli.output import configure_logging, print_info
from skillcorpus.config import ConfigurationError, load_config

app = typer.Typer(
    name="skillcorpus",
    help="Navigate and lint skill documentation corpora.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"skillcorpus version [green]{__version__}[/green]")
        raise typer.Exit()


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Extra YAML config file, merged over global and project config.",
        ),
    ] = None,
) -> None:
    """
    [bold blue]skillcorpus[/bold blue] - skill documentation toolkit

    Loads skill bundles (SKILL.md plus resources/), resolves topics to
    documents, and checks the corpus for broken links, invalid
    frontmatter, duplicate names and orphaned resources.
    """
    ctx.obj = {"config_file": config_file}

    level = "DEBUG" if verbose else None
    if level is None:
        try:
            level = load_config(config_file=config_file).logging.level
        except ConfigurationError:
            # Reported by the command that loads the config.
            level = "WARNING"
    configure_logging(level)


# Register command groups
app.command("check")(check.check)
app.command("rules")(check.rules)
app.add_typer(skill.app, name="skill")
app.add_typer(index.app, name="index")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
