"""
skillcorpus documents.

A corpus is a set of skill bundles, each a short SKILL.md index that
links to deeper resources/*.md documents, plus command and agent
prompt files.

Usage:
    from skillcorpus.docs import load_corpus, build_index, resolve_topic

    corpus = load_corpus(Path("."))
    index = build_index(corpus)
    entry = resolve_topic(index, "postgres-optimization/window-functions")
"""

# Models
from skillcorpus.docs.models import (
    CodeBlock,
    CommandFrontmatter,
    Corpus,
    Heading,
    Link,
    MarkdownDocument,
    NavigationEntry,
    PromptDocument,
    ResourceDocument,
    SkillBundle,
    SkillFrontmatter,
    SkillIndexDocument,
    TopicIndex,
    TopicIndexEntry,
)

# Parser
from skillcorpus.docs.parser import (
    DocumentParseError,
    DocumentValidationError,
    parse_markdown_document,
    parse_prompt,
    parse_resource,
    parse_skill_bundle,
    parse_skill_index,
)

# Loader
from skillcorpus.docs.loader import (
    BundleNotFoundError,
    discover_bundles,
    discover_prompts,
    load_bundle,
    load_corpus,
    resolve_corpus_root,
)

# Index
from skillcorpus.docs.index import (
    TopicNotFoundError,
    build_index,
    get_index_path,
    load_index,
    rebuild_index,
    resolve_topic,
    save_index,
    search_topics,
)

__all__ = [
    # Models
    "CodeBlock",
    "CommandFrontmatter",
    "Corpus",
    "Heading",
    "Link",
    "MarkdownDocument",
    "NavigationEntry",
    "PromptDocument",
    "ResourceDocument",
    "SkillBundle",
    "SkillFrontmatter",
    "SkillIndexDocument",
    "TopicIndex",
    "TopicIndexEntry",
    # Parser
    "DocumentParseError",
    "DocumentValidationError",
    "parse_markdown_document",
    "parse_prompt",
    "parse_resource",
    "parse_skill_bundle",
    "parse_skill_index",
    # Loader
    "BundleNotFoundError",
    "discover_bundles",
    "discover_prompts",
    "load_bundle",
    "load_corpus",
    "resolve_corpus_root",
    # Index
    "TopicNotFoundError",
    "build_index",
    "get_index_path",
    "load_index",
    "rebuild_index",
    "resolve_topic",
    "save_index",
    "search_topics",
]
