"""
Corpus loader for skillcorpus.

Discovers skill bundles and prompt files under a corpus root and loads
them into a Corpus.
"""

import fnmatch
import logging
from collections.abc import Callable
from pathlib import Path

from skillcorpus.config.schema import LayoutConfig
from skillcorpus.docs.models import Corpus, PromptDocument, PromptKind, SkillBundle
from skillcorpus.docs.parser import (
    DocumentParseError,
    parse_prompt,
    parse_skill_bundle,
    read_document,
)
from skillcorpus.storage.paths import find_corpus_root

logger = logging.getLogger(__name__)


class BundleNotFoundError(Exception):
    """Skill bundle not found error."""

    def __init__(self, name: str, searched_paths: list[Path] | None = None):
        self.name = name
        self.searched_paths = searched_paths or []
        paths_str = ", ".join(str(p) for p in self.searched_paths)
        super().__init__(
            f"Skill bundle not found: {name}" + (f" (searched: {paths_str})" if paths_str else "")
        )


def resolve_corpus_root(path: Path | None = None, marker: str = ".claude") -> Path:
    """Work out which directory to treat as the corpus root.

    An explicit path wins. Otherwise the nearest ancestor of the current
    directory containing ``marker`` is used, falling back to the cwd.
    """
    if path is not None:
        return Path(path).expanduser().resolve()
    return find_corpus_root(marker=marker) or Path.cwd().resolve()


def make_exclude_filter(root: Path, patterns: list[str]) -> Callable[[Path], bool]:
    """Build a predicate matching files against root-relative glob patterns."""
    root = Path(root).resolve()

    def is_excluded(path: Path) -> bool:
        try:
            relative = Path(path).resolve().relative_to(root).as_posix()
        except ValueError:
            return False
        return any(fnmatch.fnmatch(relative, pattern) for pattern in patterns)

    return is_excluded


def discover_bundles(skills_dir: Path, index_file: str = "SKILL.md") -> list[Path]:
    """Discover all skill bundle directories in a directory.

    A bundle directory contains the index file. Directories without one
    are skipped.

    Args:
        skills_dir: Directory to search.
        index_file: Name of the bundle index file.

    Returns:
        Sorted list of bundle directories.
    """
    if not skills_dir.is_dir():
        return []

    bundle_dirs = []
    for item in sorted(skills_dir.iterdir()):
        if not item.is_dir() or item.name.startswith("."):
            continue
        if (item / index_file).is_file():
            bundle_dirs.append(item)
        else:
            logger.debug(f"Skipping {item}: no {index_file}")

    return bundle_dirs


def discover_prompts(root: Path, layout: LayoutConfig | None = None) -> list[tuple[Path, PromptKind]]:
    """Discover command and agent prompt files.

    Args:
        root: Corpus root.
        layout: Layout configuration.

    Returns:
        List of (path, kind) tuples, commands first, each group sorted.
    """
    layout = layout or LayoutConfig()
    found: list[tuple[Path, PromptKind]] = []
    seen: set[Path] = set()

    groups: list[tuple[list[str], PromptKind]] = [
        (layout.commands_dirs, "command"),
        (layout.agents_dirs, "agent"),
    ]
    for directories, kind in groups:
        for directory in directories:
            base = root / directory
            if not base.is_dir():
                continue
            for path in sorted(base.rglob("*.md")):
                resolved = path.resolve()
                if path.is_file() and resolved not in seen:
                    seen.add(resolved)
                    found.append((path, kind))

    return found


def load_bundle(root: Path, name: str, layout: LayoutConfig | None = None) -> SkillBundle:
    """Load a single skill bundle by directory name.

    Raises:
        BundleNotFoundError: If the bundle does not exist.
        DocumentParseError: If the bundle exists but cannot be parsed.
    """
    layout = layout or LayoutConfig()
    bundle_dir = Path(root) / layout.skills_dir / name
    if not (bundle_dir / layout.index_file).is_file():
        raise BundleNotFoundError(name, [bundle_dir])
    return parse_skill_bundle(bundle_dir, layout)


def load_corpus(root: Path, layout: LayoutConfig | None = None) -> Corpus:
    """Load every bundle and prompt under a corpus root.

    A bundle, resource, agent or prompt that fails to parse is recorded in
    ``Corpus.load_errors`` and skipped; loading carries on.

    Args:
        root: Corpus root directory.
        layout: Layout configuration.

    Returns:
        The loaded Corpus.
    """
    layout = layout or LayoutConfig()
    root = Path(root).resolve()
    corpus = Corpus(root=root)
    skip = make_exclude_filter(root, layout.exclude) if layout.exclude else None

    def record_error(path: Path, error: DocumentParseError) -> None:
        logger.warning(f"Failed to load {path.name}: {error}")
        corpus.load_errors[corpus.relative(path)] = str(error)

    for bundle_dir in discover_bundles(root / layout.skills_dir, layout.index_file):
        if skip is not None and skip(bundle_dir / layout.index_file):
            continue
        try:
            corpus.bundles.append(parse_skill_bundle(bundle_dir, layout, skip, on_error=record_error))
        except DocumentParseError as e:
            logger.warning(f"Failed to load bundle {bundle_dir.name}: {e}")
            corpus.load_errors[corpus.relative(e.path or bundle_dir)] = str(e)

    for path, kind in discover_prompts(root, layout):
        if skip is not None and skip(path):
            continue
        try:
            prompt: PromptDocument = parse_prompt(read_document(path), path, kind)
        except DocumentParseError as e:
            logger.warning(f"Failed to load {kind} prompt {path.name}: {e}")
            corpus.load_errors[corpus.relative(path)] = str(e)
            continue
        corpus.prompts.append(prompt)

    logger.info(
        f"Loaded corpus at {root}: {len(corpus.bundles)} bundle(s), {len(corpus.prompts)} prompt(s)"
    )
    return corpus
