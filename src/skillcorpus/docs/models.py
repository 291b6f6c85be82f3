"""
Document models for skillcorpus.

Defines the data structures for a documentation corpus: skill bundles
(a SKILL.md index plus resource documents), command/agent prompt files,
and the topic index used for navigation.
"""

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

PromptKind = Literal["command", "agent"]
TopicKind = Literal["skill", "resource", "command", "agent"]


# =============================================================================
# Markdown Elements
# =============================================================================


class Heading(BaseModel):
    """An ATX heading."""

    level: int = Field(..., ge=1, le=6)
    text: str
    line: int = Field(..., description="1-based line number in the file")
    anchor: str = Field(..., description="GitHub-style anchor slug")


class CodeBlock(BaseModel):
    """A fenced code block. Its content is illustrative and never executed."""

    language: str = ""
    content: str = ""
    line: int
    closed: bool = True


class Link(BaseModel):
    """An inline, image or reference-definition link."""

    text: str = ""
    target: str
    line: int
    is_image: bool = False

    @property
    def is_external(self) -> bool:
        """True for URLs (any scheme, including mailto:) and protocol-relative links."""
        return bool(_SCHEME_RE.match(self.target)) or self.target.startswith("//")

    @property
    def is_anchor_only(self) -> bool:
        return self.target.startswith("#")

    @property
    def is_local(self) -> bool:
        """True if the link points at a file in the corpus."""
        return bool(self.target) and not self.is_external and not self.is_anchor_only

    @property
    def path(self) -> str:
        """The path part of the target, URL-decoded, without query or fragment."""
        path = self.target.split("#", 1)[0].split("?", 1)[0]
        return unquote(path)

    @property
    def fragment(self) -> str | None:
        if "#" not in self.target:
            return None
        return unquote(self.target.split("#", 1)[1]) or None


class TableRow(BaseModel):
    """A body row of a pipe table."""

    cells: list[str]
    line: int
    raw: str


class Table(BaseModel):
    """A GitHub-flavoured pipe table."""

    header: list[str]
    rows: list[TableRow] = Field(default_factory=list)
    line: int


# =============================================================================
# Frontmatter
# =============================================================================


class SkillFrontmatter(BaseModel):
    """Frontmatter of a SKILL.md index.

    Only ``name`` and ``description`` are expected everywhere; the
    version block is present in some bundles and absent in others.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str | None = Field(default=None, description="Skill identifier")
    description: str | None = Field(
        default=None,
        description="Free text, used for skill auto-activation by the assistant host",
    )
    version: str | None = None
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    framework_versions: dict[str, str] = Field(default_factory=dict, alias="frameworkVersions")

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> "SkillFrontmatter":
        """Build from a YAML mapping.

        YAML turns a bare ``1.2`` into a float and ``2025-01-15`` into a date;
        those scalars are converted back to strings first.
        """
        coerced = dict(data)
        for key in ("name", "description", "version", "lastUpdated", "last_updated"):
            value = coerced.get(key)
            if isinstance(value, (int, float, date, datetime)) and not isinstance(value, bool):
                coerced[key] = value.isoformat() if isinstance(value, (date, datetime)) else str(value)
        versions = coerced.get("frameworkVersions")
        if isinstance(versions, dict):
            coerced["frameworkVersions"] = {str(k): str(v) for k, v in versions.items()}
        return cls.model_validate(coerced)


class CommandFrontmatter(BaseModel):
    """Frontmatter of a slash-command or agent prompt file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str | None = None
    description: str | None = None
    argument_hint: str | None = Field(default=None, alias="argument-hint")
    model: str | None = None
    allowed_tools: str | list[str] | None = Field(default=None, alias="allowed-tools")


# =============================================================================
# Documents
# =============================================================================


class MarkdownDocument(BaseModel):
    """Structure shared by every Markdown file in the corpus."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path
    title: str = ""
    has_frontmatter: bool = False
    frontmatter_raw: dict[str, Any] | None = None
    frontmatter_error: str | None = None
    body_line_offset: int = Field(
        default=0,
        description="Number of file lines before the body (frontmatter block)",
    )
    headings: list[Heading] = Field(default_factory=list)
    code_blocks: list[CodeBlock] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)

    @property
    def anchors(self) -> set[str]:
        return {heading.anchor for heading in self.headings}

    @property
    def local_links(self) -> list[Link]:
        return [link for link in self.links if link.is_local]


class NavigationEntry(BaseModel):
    """A row of a SKILL.md navigation table ("Need to... / Read this...")."""

    intent: str
    link: Link


class SkillIndexDocument(MarkdownDocument):
    """A parsed SKILL.md."""

    frontmatter: SkillFrontmatter | None = None
    purpose: str = ""
    navigation: list[NavigationEntry] = Field(default_factory=list)


class ResourceDocument(MarkdownDocument):
    """A deep-dive document under a bundle's resources/ directory."""

    bundle: str
    related_links: list[Link] = Field(default_factory=list)


class PromptDocument(MarkdownDocument):
    """A command or agent prompt: a role plus a manual/LLM-driven procedure."""

    kind: PromptKind
    name: str
    frontmatter: CommandFrontmatter | None = None
    responsibilities: list[str] = Field(default_factory=list)
    templates: list[CodeBlock] = Field(default_factory=list)

    @property
    def description(self) -> str:
        if self.frontmatter and self.frontmatter.description:
            return self.frontmatter.description
        return ""


class SkillBundle(BaseModel):
    """A self-contained skill: SKILL.md plus its resources and agents."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Bundle directory name")
    path: Path
    index: SkillIndexDocument
    resources: list[ResourceDocument] = Field(default_factory=list)
    agents: list[PromptDocument] = Field(default_factory=list)

    @property
    def declared_name(self) -> str | None:
        """Name from the SKILL.md frontmatter, if any."""
        if self.index.frontmatter and self.index.frontmatter.name:
            return self.index.frontmatter.name
        return None

    @property
    def display_name(self) -> str:
        return self.declared_name or self.name

    @property
    def description(self) -> str:
        if self.index.frontmatter and self.index.frontmatter.description:
            return self.index.frontmatter.description
        return self.index.purpose

    @property
    def version(self) -> str | None:
        return self.index.frontmatter.version if self.index.frontmatter else None

    @property
    def resource_paths(self) -> list[Path]:
        return [resource.path for resource in self.resources]


class Corpus(BaseModel):
    """Every bundle and prompt found under one corpus root."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: Path
    bundles: list[SkillBundle] = Field(default_factory=list)
    prompts: list[PromptDocument] = Field(default_factory=list)
    load_errors: dict[str, str] = Field(
        default_factory=dict,
        description="Relative path -> error for documents that failed to load",
    )

    def get_bundle(self, name: str) -> SkillBundle | None:
        """Find a bundle by directory name or declared name."""
        for bundle in self.bundles:
            if bundle.name == name:
                return bundle
        for bundle in self.bundles:
            if bundle.declared_name == name:
                return bundle
        return None

    def all_documents(self) -> list[MarkdownDocument]:
        documents: list[MarkdownDocument] = []
        for bundle in self.bundles:
            documents.append(bundle.index)
            documents.extend(bundle.resources)
            documents.extend(bundle.agents)
        documents.extend(self.prompts)
        return documents

    def relative(self, path: Path) -> str:
        """Path relative to the corpus root, POSIX style."""
        try:
            return Path(path).resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return Path(path).as_posix()


# =============================================================================
# Topic Index
# =============================================================================


class TopicIndexEntry(BaseModel):
    """A topic key mapped to a document path."""

    key: str = Field(..., description="e.g. 'redis-patterns' or 'redis-patterns/caching-strategies'")
    path: str = Field(..., description="Document path relative to the corpus root")
    kind: TopicKind
    title: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)


class TopicIndex(BaseModel):
    """Lookup table from topic keys to documents, persisted as JSON."""

    version: str = Field(default="1.0.0", description="Index format version")
    root: str = ""
    topics: dict[str, TopicIndexEntry] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.now)

    def add_topic(self, entry: TopicIndexEntry) -> None:
        self.topics[entry.key] = entry
        self.updated_at = datetime.now()

    def resolve(self, key: str) -> TopicIndexEntry | None:
        return self.topics.get(key)

    def search(self, query: str, max_results: int = 5) -> list[TopicIndexEntry]:
        """Search topics by keyword matching.

        Args:
            query: Search query (matched against key, title, description, keywords)
            max_results: Maximum number of results to return

        Returns:
            List of matching topics, sorted by relevance.
        """
        query_lower = query.lower().strip()
        if not query_lower:
            return []
        query_words = set(query_lower.split())
        scored: list[tuple[int, str, TopicIndexEntry]] = []

        for entry in self.topics.values():
            score = 0
            key_lower = entry.key.lower()
            title_lower = entry.title.lower()
            description_lower = entry.description.lower()

            if key_lower == query_lower or key_lower.rsplit("/", 1)[-1] == query_lower:
                score += 100
            if query_lower in key_lower:
                score += 50
            if query_lower in title_lower:
                score += 20

            for keyword in (k.lower() for k in entry.keywords):
                if query_lower == keyword:
                    score += 30
                elif query_lower in keyword:
                    score += 15
                for word in query_words:
                    if word in keyword:
                        score += 5

            if query_lower in description_lower:
                score += 10
            for word in query_words:
                if word in description_lower:
                    score += 3

            if score > 0:
                scored.append((score, entry.key, entry))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [entry for _, _, entry in scored[:max_results]]

    def list_all(self) -> list[TopicIndexEntry]:
        return sorted(self.topics.values(), key=lambda entry: entry.key)
