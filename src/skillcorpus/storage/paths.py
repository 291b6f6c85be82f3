"""
Path utilities for skillcorpus.

Provides consistent path resolution for configuration, cache files,
and the documentation corpus being inspected.
"""

import hashlib
import os
from pathlib import Path

PROJECT_CONFIG_DIR = ".skillcorpus"
PROJECT_CONFIG_FILE = "project.yaml"
DEFAULT_CORPUS_MARKER = ".claude"


def get_skillcorpus_home() -> Path:
    """
    Get the skillcorpus home directory.

    Resolution order:
    1. SKILLCORPUS_HOME environment variable
    2. Default: ~/.skillcorpus

    Returns:
        Path to the skillcorpus home directory.
    """
    env_home = os.environ.get("SKILLCORPUS_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".skillcorpus"


def get_global_config_path() -> Path:
    """
    Get the path to the global configuration file.

    Returns:
        Path to ~/.skillcorpus/config.yaml
    """
    return get_skillcorpus_home() / "config.yaml"


def get_cache_dir() -> Path:
    """
    Get the cache directory.

    Returns:
        Path to ~/.skillcorpus/cache/
    """
    return get_skillcorpus_home() / "cache"


def get_default_index_path(corpus_root: Path) -> Path:
    """
    Get the default topic index path for a corpus.

    Each corpus gets its own file, keyed by a short hash of its root.

    Args:
        corpus_root: Root directory of the corpus.

    Returns:
        Path to ~/.skillcorpus/cache/index-<hash>.json
    """
    digest = hashlib.sha256(str(Path(corpus_root).resolve()).encode("utf-8")).hexdigest()[:12]
    return get_cache_dir() / f"index-{digest}.json"


def _walk_up(start_path: Path | None):
    if start_path is None:
        current = Path.cwd()
    else:
        current = Path(start_path).resolve()

    while True:
        yield current
        if current == current.parent:
            return
        current = current.parent


def find_project_config(start_path: Path | None = None) -> Path | None:
    """
    Find the project configuration file by traversing up the directory tree.

    Looks for .skillcorpus/project.yaml starting from the given path
    (or current directory) and moving up to the root.

    Args:
        start_path: Starting directory to search from. Defaults to cwd.

    Returns:
        Path to the project config if found, None otherwise.
    """
    for current in _walk_up(start_path):
        project_config = current / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE
        if project_config.exists():
            return project_config
    return None


def find_corpus_root(
    start_path: Path | None = None,
    marker: str = DEFAULT_CORPUS_MARKER,
) -> Path | None:
    """
    Find the root of a documentation corpus.

    The root is the nearest directory (walking up) that contains the
    marker directory, ``.claude`` by default.

    Args:
        start_path: Starting directory to search from. Defaults to cwd.
        marker: Name of the directory that marks a corpus root.

    Returns:
        The corpus root if found, None otherwise.
    """
    for current in _walk_up(start_path):
        if (current / marker).is_dir():
            return current
    return None


def expand_path(path: str | Path) -> Path:
    """
    Expand a path string, handling ~ and environment variables.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded and resolved Path.
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)
    return Path(path).resolve()


def ensure_directory(path: Path, mode: int = 0o755) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path.
        mode: Permission mode for created directories.

    Returns:
        The path (for chaining).
    """
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path
