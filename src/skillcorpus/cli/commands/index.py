"""
skillcorpus index - Topic index management.

Usage:
    skillcorpus index build
    skillcorpus index show
    skillcorpus index resolve postgres-optimization/window-functions
    skillcorpus index resolve window-functions --path-only
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from skillcorpus.cli.common import EXIT_ISSUES, load_cli_config, resolve_root
from skillcorpus.cli.output import console, print_error, print_success
from skillcorpus.config import Config
from skillcorpus.docs import (
    TopicIndex,
    TopicNotFoundError,
    get_index_path,
    load_index,
    rebuild_index,
    resolve_topic,
)

app = typer.Typer(
    name="index",
    help="Topic index management.",
)

RootOption = Annotated[
    Path | None,
    typer.Option(
        "--root",
        "-r",
        help="Corpus root (default: nearest directory containing .claude/).",
    ),
]


def _current_index(corpus_root: Path, config: Config, rebuild: bool) -> TopicIndex:
    """Load the saved index, rebuilding it if missing, stale or requested."""
    index = load_index(get_index_path(corpus_root, config))
    if rebuild or not index.topics or index.root != str(corpus_root):
        index = rebuild_index(corpus_root, config)
    return index


@app.command()
def build(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Argument(
            help="Corpus root (default: nearest directory containing .claude/).",
        ),
    ] = None,
) -> None:
    """Rebuild the topic index from the corpus."""
    config = load_cli_config(ctx, root)
    corpus_root = resolve_root(root, config)
    index = rebuild_index(corpus_root, config)
    print_success(
        f"Indexed {len(index.topics)} topic(s) to {escape(str(get_index_path(corpus_root, config)))}"
    )


@app.command()
def show(
    ctx: typer.Context,
    root: RootOption = None,
    rebuild: Annotated[
        bool,
        typer.Option(
            "--rebuild",
            help="Rebuild the index before showing it.",
        ),
    ] = False,
) -> None:
    """Show every topic in the index."""
    config = load_cli_config(ctx, root)
    corpus_root = resolve_root(root, config)
    index = _current_index(corpus_root, config, rebuild)

    if not index.topics:
        console.print("[yellow]No topics indexed.[/yellow]")
        return

    table = Table(title="Topic Index")
    table.add_column("Topic", style="cyan")
    table.add_column("Kind", style="dim")
    table.add_column("Path")

    for entry in index.list_all():
        table.add_row(escape(entry.key), entry.kind, escape(entry.path))

    console.print(table)
    console.print(f"\n[dim]Total: {len(index.topics)} topic(s)[/dim]")


@app.command()
def resolve(
    ctx: typer.Context,
    key: Annotated[
        str,
        typer.Argument(
            help="Topic key, e.g. 'redis-patterns' or 'redis-patterns/caching-strategies'.",
        ),
    ],
    root: RootOption = None,
    path_only: Annotated[
        bool,
        typer.Option(
            "--path-only",
            help="Print only the absolute document path.",
        ),
    ] = False,
    rebuild: Annotated[
        bool,
        typer.Option(
            "--rebuild",
            help="Rebuild the index before resolving.",
        ),
    ] = False,
) -> None:
    """Resolve a topic key to its document."""
    config = load_cli_config(ctx, root)
    corpus_root = resolve_root(root, config)
    index = _current_index(corpus_root, config, rebuild)

    try:
        entry = resolve_topic(index, key)
    except TopicNotFoundError as e:
        print_error(escape(str(e)))
        raise typer.Exit(EXIT_ISSUES)

    absolute = corpus_root / entry.path
    if path_only:
        typer.echo(str(absolute))
        return

    console.print(f"[bold cyan]{escape(entry.key)}[/bold cyan] ({entry.kind})")
    if entry.title:
        console.print(f"  [bold]Title:[/bold] {escape(entry.title)}")
    if entry.description:
        console.print(f"  [bold]Description:[/bold] {escape(entry.description)}")
    console.print(f"  [bold]Path:[/bold] {escape(str(absolute))}")
