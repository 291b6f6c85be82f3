"""CLI command modules."""

from skillcorpus.cli.commands import check, config, index, skill

__all__ = ["check", "config", "index", "skill"]
