"""
skillcorpus config - Configuration inspection commands.

Usage:
    skillcorpus config show
    skillcorpus config show lint
    skillcorpus config show --json
    skillcorpus config path
"""

import json
from typing import Annotated

import typer
import yaml
from rich.panel import Panel
from rich.syntax import Syntax

from skillcorpus.cli.common import EXIT_ISSUES, load_cli_config
from skillcorpus.cli.output import console, print_error
from skillcorpus.config import get_config_sources, get_nested_value
from skillcorpus.storage.paths import get_global_config_path

app = typer.Typer(
    name="config",
    help="Configuration inspection.",
)


@app.command()
def show(
    ctx: typer.Context,
    section: Annotated[
        str | None,
        typer.Argument(
            help="Config section to show (e.g., 'lint', 'layout.skills_dir').",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the effective configuration."""
    config_dict = load_cli_config(ctx).model_dump(mode="json")

    if section:
        value = get_nested_value(config_dict, section)
        if value is None:
            print_error(f"Section '{section}' not found in configuration.")
            raise typer.Exit(EXIT_ISSUES)
        config_dict = value

    if json_output:
        typer.echo(json.dumps(config_dict, indent=2, default=str))
        return

    output = yaml.safe_dump(
        config_dict,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    if section:
        console.print(Panel(Syntax(output, "yaml", theme="monokai"), title=f"[cyan]{section}[/cyan]"))
    else:
        console.print(Syntax(output, "yaml", theme="monokai"))


@app.command()
def path() -> None:
    """Show configuration file locations."""
    sources = get_config_sources()
    console.print(f"[bold]Global:[/bold]  {get_global_config_path()}", highlight=False)
    if sources["global"] is None:
        console.print("         [dim](not present)[/dim]")
    project = sources["project"]
    console.print(f"[bold]Project:[/bold] {project or '[dim](none found)[/dim]'}", highlight=False)
