"""
Topic index for skillcorpus.

The topic index is the lookup table behind progressive disclosure: it
maps short topic keys to document paths so a reader (or an assistant)
can go from "redis-patterns/caching-strategies" straight to the file.

Keys:
    <bundle>                  the bundle's SKILL.md
    <bundle>/<resource>       a resource, path under resources/ without .md
    command:<name>            a slash-command prompt
    agent:<name>              an agent prompt
"""

import difflib
import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from skillcorpus.config.schema import Config
from skillcorpus.docs.loader import load_corpus
from skillcorpus.docs.models import Corpus, PromptDocument, SkillBundle, TopicIndex, TopicIndexEntry
from skillcorpus.storage.paths import ensure_directory, expand_path, get_default_index_path

logger = logging.getLogger(__name__)


class TopicNotFoundError(Exception):
    """Topic key not found in the index."""

    def __init__(self, key: str, suggestions: list[str] | None = None):
        self.key = key
        self.suggestions = suggestions or []
        hint = f" (did you mean: {', '.join(self.suggestions)}?)" if self.suggestions else ""
        super().__init__(f"Topic not found: {key}{hint}")


def _bundle_entries(corpus: Corpus, bundle: SkillBundle, resources_dir: str) -> list[TopicIndexEntry]:
    index = bundle.index
    keywords = [heading.text for heading in index.headings if heading.level <= 3]
    keywords.extend(entry.intent for entry in index.navigation if entry.intent)

    entries = [
        TopicIndexEntry(
            key=bundle.name,
            path=corpus.relative(index.path),
            kind="skill",
            title=index.title,
            description=bundle.description,
            keywords=keywords,
        )
    ]

    intents: dict[Path, list[str]] = {}
    for entry in index.navigation:
        try:
            target = (index.path.parent / entry.link.path).resolve()
        except (OSError, ValueError):
            logger.debug(f"Skipping unresolvable navigation link '{entry.link.target}'")
            continue
        intents.setdefault(target, []).append(entry.intent)

    resources_root = bundle.path / resources_dir
    for resource in bundle.resources:
        try:
            stem = resource.path.relative_to(resources_root).with_suffix("").as_posix()
        except ValueError:
            stem = resource.path.stem
        resource_keywords = [h.text for h in resource.headings if h.level <= 3]
        resource_keywords.extend(intents.get(resource.path.resolve(), []))
        entries.append(
            TopicIndexEntry(
                key=f"{bundle.name}/{stem}",
                path=corpus.relative(resource.path),
                kind="resource",
                title=resource.title,
                keywords=resource_keywords,
            )
        )

    for agent in bundle.agents:
        entries.append(_prompt_entry(corpus, agent))

    return entries


def _prompt_entry(corpus: Corpus, prompt: PromptDocument) -> TopicIndexEntry:
    return TopicIndexEntry(
        key=f"{prompt.kind}:{prompt.name}",
        path=corpus.relative(prompt.path),
        kind=prompt.kind,
        title=prompt.title,
        description=prompt.description,
        keywords=[h.text for h in prompt.headings if h.level <= 2],
    )


def build_index(corpus: Corpus, resources_dir: str = "resources") -> TopicIndex:
    """Build the topic index for a loaded corpus.

    When two documents claim the same key the first one wins and the
    clash is logged.
    """
    index = TopicIndex(root=str(corpus.root))

    entries: list[TopicIndexEntry] = []
    for bundle in corpus.bundles:
        entries.extend(_bundle_entries(corpus, bundle, resources_dir))
    entries.extend(_prompt_entry(corpus, prompt) for prompt in corpus.prompts)

    for entry in entries:
        if entry.key in index.topics:
            logger.warning(
                f"Duplicate topic key {entry.key!r}: keeping {index.topics[entry.key].path}, "
                f"ignoring {entry.path}"
            )
            continue
        index.add_topic(entry)

    return index


def get_index_path(root: Path, config: Config | None = None) -> Path:
    """Get the topic index file for a corpus.

    Returns:
        ``index.path`` from config if set, otherwise a per-corpus file
        in ~/.skillcorpus/cache/.
    """
    if config is not None and config.index.path:
        return expand_path(config.index.path)
    return get_default_index_path(root)


def save_index(index: TopicIndex, path: Path) -> None:
    """Save the topic index to disk as JSON."""
    ensure_directory(path.parent)
    path.write_text(index.model_dump_json(indent=2), encoding="utf-8")
    logger.debug(f"Saved topic index with {len(index.topics)} topic(s) to {path}")


def load_index(path: Path) -> TopicIndex:
    """Load the topic index from disk.

    Returns:
        TopicIndex (empty if the file doesn't exist or is invalid).
    """
    if not path.exists():
        return TopicIndex()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return TopicIndex.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable topic index {path}: {e}")
        return TopicIndex()


def rebuild_index(root: Path, config: Config | None = None) -> TopicIndex:
    """Load the corpus, build a fresh index and save it.

    Args:
        root: Corpus root.
        config: Configuration (defaults apply if omitted).

    Returns:
        The rebuilt index.
    """
    config = config or Config()
    corpus = load_corpus(root, config.layout)
    index = build_index(corpus, config.layout.resources_dir)
    index.updated_at = datetime.now()
    save_index(index, get_index_path(root, config))
    return index


def resolve_topic(index: TopicIndex, key: str) -> TopicIndexEntry:
    """Resolve a topic key to its index entry.

    A bare resource name (``window-functions``) is accepted when exactly
    one bundle has a resource by that name.

    Raises:
        TopicNotFoundError: With close matches as suggestions.
    """
    entry = index.resolve(key)
    if entry is not None:
        return entry

    candidates = [
        e for e in index.topics.values() if e.kind == "resource" and e.key.split("/", 1)[-1] == key
    ]
    if len(candidates) == 1:
        return candidates[0]

    suggestions = difflib.get_close_matches(key, list(index.topics), n=3, cutoff=0.5)
    if len(candidates) > 1:
        suggestions = sorted(c.key for c in candidates)
    raise TopicNotFoundError(key, suggestions)


def search_topics(index: TopicIndex, query: str, max_results: int = 5) -> list[TopicIndexEntry]:
    """Search the index by keyword."""
    return index.search(query, max_results)
