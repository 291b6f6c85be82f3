"""
skillcorpus skill - Inspect skill bundles.

Usage:
    skillcorpus skill list
    skillcorpus skill show redis-patterns
    skillcorpus skill search "window functions"
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from skillcorpus.cli.common import EXIT_ISSUES, load_cli_config, resolve_root
from skillcorpus.cli.output import console, print_error
from skillcorpus.docs import (
    BundleNotFoundError,
    DocumentParseError,
    build_index,
    load_bundle,
    load_corpus,
    search_topics,
)

app = typer.Typer(
    name="skill",
    help="Skill bundle inspection.",
)

RootOption = Annotated[
    Path | None,
    typer.Option(
        "--root",
        "-r",
        help="Corpus root (default: nearest directory containing .claude/).",
    ),
]


def _truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


@app.command("list")
def list_skills(
    ctx: typer.Context,
    root: RootOption = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed information.",
        ),
    ] = False,
) -> None:
    """List skill bundles."""
    config = load_cli_config(ctx, root)
    verbose = verbose or config.output.verbose
    corpus = load_corpus(resolve_root(root, config), config.layout)

    if not corpus.bundles:
        console.print("[yellow]No skill bundles found.[/yellow]")
        console.print(f"[dim]Looked in {corpus.root / config.layout.skills_dir}[/dim]")
        return

    table = Table(title="Skill Bundles")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="dim")
    table.add_column("Description")
    table.add_column("Resources", justify="right")

    if verbose:
        table.add_column("Frontmatter", style="dim")
        table.add_column("Path", style="dim")

    for bundle in corpus.bundles:
        row = [
            escape(bundle.display_name),
            bundle.version or "-",
            escape(_truncate(bundle.description, 50)),
            str(len(bundle.resources)),
        ]
        if verbose:
            row.append("yes" if bundle.index.has_frontmatter else "no")
            row.append(escape(corpus.relative(bundle.path)))
        table.add_row(*row)

    console.print(table)
    console.print(
        f"\n[dim]Total: {len(corpus.bundles)} bundle(s), {len(corpus.prompts)} prompt(s)[/dim]"
    )


@app.command()
def show(
    ctx: typer.Context,
    name: Annotated[
        str,
        typer.Argument(
            help="Bundle directory name.",
        ),
    ],
    root: RootOption = None,
) -> None:
    """Show bundle details and its navigation table."""
    config = load_cli_config(ctx, root)
    corpus_root = resolve_root(root, config)

    try:
        bundle = load_bundle(corpus_root, name, config.layout)
    except BundleNotFoundError:
        print_error(f"Skill bundle not found: {name}")
        raise typer.Exit(EXIT_ISSUES)
    except DocumentParseError as e:
        print_error(f"Failed to parse bundle: {e}")
        raise typer.Exit(EXIT_ISSUES)

    frontmatter = bundle.index.frontmatter
    lines = [
        f"[bold]Name:[/bold] {escape(bundle.display_name)}",
        f"[bold]Description:[/bold] {escape(bundle.description) or '(none)'}",
        f"[bold]Version:[/bold] {escape(bundle.version or '(none)')}",
    ]
    if frontmatter and frontmatter.last_updated:
        lines.append(f"[bold]Last updated:[/bold] {escape(frontmatter.last_updated)}")
    if frontmatter and frontmatter.framework_versions:
        versions = ", ".join(f"{k} {v}" for k, v in frontmatter.framework_versions.items())
        lines.append(f"[bold]Frameworks:[/bold] {escape(versions)}")
    if not bundle.index.has_frontmatter:
        lines.append("[yellow]No frontmatter block[/yellow]")

    lines.append("")
    lines.append(f"[bold]Path:[/bold] {escape(str(bundle.path))}")

    console.print(Panel("\n".join(lines), title=f"Skill: {escape(bundle.display_name)}"))

    if bundle.index.navigation:
        table = Table(title="Navigation")
        table.add_column("Need to...")
        table.add_column("Read this", style="cyan")
        for entry in bundle.index.navigation:
            table.add_row(escape(entry.intent), escape(entry.link.target))
        console.print(table)

    if bundle.resources:
        console.print("\n[bold]Resources:[/bold]")
        for resource in bundle.resources:
            relative = resource.path.relative_to(bundle.path).as_posix()
            console.print(f"  {escape(relative)} [dim]{escape(resource.title)}[/dim]")

    if bundle.agents:
        console.print("\n[bold]Agents:[/bold]")
        for agent in bundle.agents:
            console.print(f"  {escape(agent.name)} [dim]{escape(agent.description)}[/dim]")


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Argument(
            help="Search query.",
        ),
    ],
    root: RootOption = None,
    max_results: Annotated[
        int,
        typer.Option(
            "--max",
            "-n",
            help="Maximum number of results.",
        ),
    ] = 10,
) -> None:
    """Search skills, resources and prompts by keyword."""
    config = load_cli_config(ctx, root)
    corpus = load_corpus(resolve_root(root, config), config.layout)
    results = search_topics(build_index(corpus, config.layout.resources_dir), query, max_results)

    if not results:
        console.print(f"[yellow]No topics found matching '{escape(query)}'[/yellow]")
        return

    table = Table(title=f"Search Results for '{escape(query)}'")
    table.add_column("Topic", style="cyan")
    table.add_column("Kind", style="dim")
    table.add_column("Title")
    table.add_column("Path", style="dim")

    for entry in results:
        table.add_row(
            escape(entry.key),
            entry.kind,
            escape(_truncate(entry.title, 40)),
            escape(entry.path),
        )

    console.print(table)
