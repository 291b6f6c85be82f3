"""
Helpers shared by CLI commands.
"""

from pathlib import Path

import typer

from skillcorpus.cli.output import apply_output_config, print_error
from skillcorpus.config import Config, ConfigurationError, load_config
from skillcorpus.docs.loader import resolve_corpus_root

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_USAGE = 2


def load_cli_config(ctx: typer.Context, project_path: Path | None = None) -> Config:
    """Load configuration, honouring the global --config option.

    Exits with status 2 on configuration errors.
    """
    obj = ctx.obj or {}
    try:
        config = load_config(project_path=project_path, config_file=obj.get("config_file"))
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(EXIT_USAGE)
    apply_output_config(config.output)
    return config


def resolve_root(root: Path | None, config: Config) -> Path:
    """Resolve the corpus root or exit with status 2 if it is not a directory."""
    corpus_root = resolve_corpus_root(root, config.layout.marker)
    if not corpus_root.is_dir():
        print_error(f"Corpus root is not a directory: {corpus_root}")
        raise typer.Exit(EXIT_USAGE)
    return corpus_root
