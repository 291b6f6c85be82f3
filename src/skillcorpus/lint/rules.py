"""
Structural checks for a documentation corpus.

Each rule is a generator over the loaded corpus that yields issues. Rules
are registered with an id, a default severity and a one-line description;
the runner decides which ones run and at what severity.
"""

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from skillcorpus.config.schema import Config
from skillcorpus.docs.models import Corpus, Link, MarkdownDocument, PromptDocument
from skillcorpus.docs.parser import DocumentParseError, parse_markdown_document, read_document
from skillcorpus.lint.models import Issue, Severity

logger = logging.getLogger(__name__)

SEMVER_RE = re.compile(r"^v?\d+\.\d+(\.\d+)?([-+][0-9A-Za-z.\-+]*)?$")


@dataclass
class LintContext:
    """Corpus plus the lookups shared between rules."""

    corpus: Corpus
    config: Config = field(default_factory=Config)
    _documents: dict[Path, MarkdownDocument] = field(default_factory=dict, init=False)
    _anchor_cache: dict[Path, set[str] | None] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        for document in self.corpus.all_documents():
            self._documents[document.path.resolve()] = document

    def relative(self, path: Path) -> str:
        return self.corpus.relative(path)

    def resolve_link(self, source: Path, link: Link) -> Path | None:
        """Resolve a local link relative to the linking document.

        Paths starting with '/' are taken from the corpus root. Returns
        None when the target is not a usable path (e.g. an encoded NUL byte).
        """
        target = link.path
        base = self.corpus.root if target.startswith("/") else source.parent
        try:
            return (base / target.lstrip("/")).resolve()
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot resolve link '{link.target}' in {source}: {e}")
            return None

    def anchors_for(self, path: Path) -> set[str] | None:
        """Heading anchors of a Markdown file, or None if it cannot be read."""
        path = path.resolve()
        document = self._documents.get(path)
        if document is not None:
            return document.anchors
        if path not in self._anchor_cache:
            try:
                parsed = parse_markdown_document(read_document(path), path)
                self._anchor_cache[path] = parsed.anchors
            except DocumentParseError as e:
                logger.debug(f"Cannot read anchors from {path}: {e}")
                self._anchor_cache[path] = None
        return self._anchor_cache[path]

    def issue(
        self,
        rule_id: str,
        path: Path | str,
        message: str,
        line: int | None = None,
        target: str | None = None,
        severity: Severity | None = None,
    ) -> Issue:
        return Issue(
            rule=rule_id,
            severity=severity or RULES[rule_id].severity,
            path=path if isinstance(path, str) else self.relative(path),
            line=line,
            message=message,
            target=target,
        )


RuleFunc = Callable[[LintContext], Iterator[Issue]]


@dataclass(frozen=True)
class Rule:
    """A registered check."""

    id: str
    severity: Severity
    description: str
    func: RuleFunc


RULES: dict[str, Rule] = {}


def rule(rule_id: str, severity: Severity, description: str) -> Callable[[RuleFunc], RuleFunc]:
    """Register a rule function under ``rule_id``."""

    def decorator(func: RuleFunc) -> RuleFunc:
        RULES[rule_id] = Rule(id=rule_id, severity=severity, description=description, func=func)
        return func

    return decorator


def _link_key(link: Link) -> tuple[int, str]:
    return (link.line, link.target)


def _all_prompts(corpus: Corpus) -> list[PromptDocument]:
    prompts = list(corpus.prompts)
    for bundle in corpus.bundles:
        prompts.extend(bundle.agents)
    return prompts


# =============================================================================
# Links
# =============================================================================


@rule(
    "nav-link-broken",
    Severity.ERROR,
    "Navigation table link in SKILL.md does not resolve to a file",
)
def check_navigation_links(ctx: LintContext) -> Iterator[Issue]:
    for bundle in ctx.corpus.bundles:
        index = bundle.index
        for entry in index.navigation:
            target = ctx.resolve_link(index.path, entry.link)
            if target is None or not target.is_file():
                yield ctx.issue(
                    "nav-link-broken",
                    index.path,
                    f"Navigation link '{entry.link.target}' does not resolve to an existing file",
                    line=entry.link.line,
                    target=entry.link.target,
                )


@rule(
    "nav-link-outside-resources",
    Severity.WARNING,
    "Navigation table link resolves outside the bundle's resources directory",
)
def check_navigation_scope(ctx: LintContext) -> Iterator[Issue]:
    resources_dir = ctx.config.layout.resources_dir
    for bundle in ctx.corpus.bundles:
        index = bundle.index
        resources_root = (bundle.path / resources_dir).resolve()
        for entry in index.navigation:
            target = ctx.resolve_link(index.path, entry.link)
            if target is None or not target.is_file():
                continue
            if not target.is_relative_to(resources_root):
                yield ctx.issue(
                    "nav-link-outside-resources",
                    index.path,
                    f"Navigation link '{entry.link.target}' points outside "
                    f"{bundle.name}/{resources_dir}/",
                    line=entry.link.line,
                    target=entry.link.target,
                )


@rule("related-link-broken", Severity.ERROR, "'Related Files' link in a resource does not resolve")
def check_related_links(ctx: LintContext) -> Iterator[Issue]:
    for bundle in ctx.corpus.bundles:
        for resource in bundle.resources:
            for link in resource.related_links:
                if not link.is_local:
                    continue
                target = ctx.resolve_link(resource.path, link)
                if target is None or not target.exists():
                    yield ctx.issue(
                        "related-link-broken",
                        resource.path,
                        f"Related file '{link.target}' does not exist",
                        line=link.line,
                        target=link.target,
                    )


@rule("link-broken", Severity.ERROR, "Relative link does not resolve")
def check_other_links(ctx: LintContext) -> Iterator[Issue]:
    covered: dict[Path, set[tuple[int, str]]] = {}
    for bundle in ctx.corpus.bundles:
        covered[bundle.index.path] = {_link_key(e.link) for e in bundle.index.navigation}
        for resource in bundle.resources:
            covered[resource.path] = {_link_key(link) for link in resource.related_links}

    for document in ctx.corpus.all_documents():
        skip = covered.get(document.path, set())
        for link in document.local_links:
            if _link_key(link) in skip:
                continue
            target = ctx.resolve_link(document.path, link)
            if target is None or not target.exists():
                yield ctx.issue(
                    "link-broken",
                    document.path,
                    f"Link '{link.target}' does not resolve",
                    line=link.line,
                    target=link.target,
                )


@rule("anchor-broken", Severity.WARNING, "Link fragment names no heading in the target document")
def check_anchors(ctx: LintContext) -> Iterator[Issue]:
    for document in ctx.corpus.all_documents():
        for link in document.links:
            fragment = link.fragment
            if link.is_external or not fragment:
                continue
            if link.is_anchor_only:
                target = document.path
            else:
                target = ctx.resolve_link(document.path, link)
                if target is None or not target.is_file() or target.suffix.lower() != ".md":
                    continue
            anchors = ctx.anchors_for(target)
            if anchors is not None and fragment.lower() not in anchors:
                yield ctx.issue(
                    "anchor-broken",
                    document.path,
                    f"Anchor '#{fragment}' not found in {ctx.relative(target)}",
                    line=link.line,
                    target=link.target,
                )


# =============================================================================
# Frontmatter
# =============================================================================


@rule("frontmatter-invalid", Severity.ERROR, "Frontmatter block cannot be parsed or validated")
def check_frontmatter_invalid(ctx: LintContext) -> Iterator[Issue]:
    for document in ctx.corpus.all_documents():
        if document.frontmatter_error:
            yield ctx.issue(
                "frontmatter-invalid",
                document.path,
                document.frontmatter_error,
                line=1,
            )


@rule("frontmatter-field-missing", Severity.ERROR, "SKILL.md frontmatter lacks a required field")
def check_frontmatter_fields(ctx: LintContext) -> Iterator[Issue]:
    required = ctx.config.lint.required_fields
    for bundle in ctx.corpus.bundles:
        index = bundle.index
        if index.frontmatter is None or index.frontmatter_raw is None:
            continue
        for field_name in required:
            value = index.frontmatter_raw.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                yield ctx.issue(
                    "frontmatter-field-missing",
                    index.path,
                    f"Frontmatter field '{field_name}' is missing or empty",
                    line=1,
                )


@rule(
    "frontmatter-missing",
    Severity.WARNING,
    "SKILL.md has no frontmatter while other bundles do (or frontmatter is required)",
)
def check_frontmatter_presence(ctx: LintContext) -> Iterator[Issue]:
    bundles = ctx.corpus.bundles
    with_frontmatter = sum(1 for bundle in bundles if bundle.index.has_frontmatter)
    required = ctx.config.lint.require_frontmatter

    # Nothing is inconsistent when no bundle uses frontmatter and none is demanded.
    if not required and with_frontmatter == 0:
        return

    severity = Severity.ERROR if required else None
    for bundle in bundles:
        if bundle.index.has_frontmatter:
            continue
        yield ctx.issue(
            "frontmatter-missing",
            bundle.index.path,
            f"No frontmatter block ({with_frontmatter} of {len(bundles)} bundles declare one)",
            line=1,
            severity=severity,
        )


@rule("name-duplicate", Severity.ERROR, "Two bundles declare the same frontmatter name")
def check_duplicate_names(ctx: LintContext) -> Iterator[Issue]:
    by_name: dict[str, list] = {}
    for bundle in ctx.corpus.bundles:
        if bundle.declared_name:
            by_name.setdefault(bundle.declared_name, []).append(bundle)

    for name, bundles in sorted(by_name.items()):
        if len(bundles) < 2:
            continue
        for bundle in bundles:
            others = ", ".join(ctx.relative(b.index.path) for b in bundles if b is not bundle)
            yield ctx.issue(
                "name-duplicate",
                bundle.index.path,
                f"Skill name '{name}' is also declared by {others}",
                line=1,
            )


@rule("name-mismatch", Severity.WARNING, "Declared skill name differs from the bundle directory")
def check_name_matches_directory(ctx: LintContext) -> Iterator[Issue]:
    for bundle in ctx.corpus.bundles:
        declared = bundle.declared_name
        if declared and declared != bundle.name:
            yield ctx.issue(
                "name-mismatch",
                bundle.index.path,
                f"Frontmatter name '{declared}' does not match directory '{bundle.name}'",
                line=1,
            )


@rule("version-format", Severity.INFO, "Frontmatter version is not semver-like")
def check_version_format(ctx: LintContext) -> Iterator[Issue]:
    for bundle in ctx.corpus.bundles:
        version = bundle.version
        if version and not SEMVER_RE.match(version.strip()):
            yield ctx.issue(
                "version-format",
                bundle.index.path,
                f"Version '{version}' is not semver-like (e.g. 1.2.0)",
                line=1,
            )


def _is_iso_date(value: str) -> bool:
    for parse in (date.fromisoformat, datetime.fromisoformat):
        try:
            parse(value)
            return True
        except ValueError:
            continue
    return False


@rule("last-updated-format", Severity.WARNING, "Frontmatter lastUpdated is not an ISO date")
def check_last_updated(ctx: LintContext) -> Iterator[Issue]:
    for bundle in ctx.corpus.bundles:
        frontmatter = bundle.index.frontmatter
        if frontmatter is None or not frontmatter.last_updated:
            continue
        if not _is_iso_date(frontmatter.last_updated.strip()):
            yield ctx.issue(
                "last-updated-format",
                bundle.index.path,
                f"lastUpdated '{frontmatter.last_updated}' is not an ISO date (YYYY-MM-DD)",
                line=1,
            )


# =============================================================================
# Bundle structure
# =============================================================================


@rule("resource-orphan", Severity.WARNING, "Resource file is not linked from any SKILL.md")
def check_orphan_resources(ctx: LintContext) -> Iterator[Issue]:
    referenced: set[Path] = set()
    for bundle in ctx.corpus.bundles:
        for link in bundle.index.local_links:
            target = ctx.resolve_link(bundle.index.path, link)
            if target is not None:
                referenced.add(target)

    for bundle in ctx.corpus.bundles:
        for resource in bundle.resources:
            if resource.path.resolve() not in referenced:
                yield ctx.issue(
                    "resource-orphan",
                    resource.path,
                    f"Resource is not referenced by any {ctx.config.layout.index_file}",
                )


@rule("parse-error", Severity.ERROR, "Document could not be read or parsed")
def check_load_errors(ctx: LintContext) -> Iterator[Issue]:
    for path, message in sorted(ctx.corpus.load_errors.items()):
        yield ctx.issue("parse-error", path, message)


# =============================================================================
# Content
# =============================================================================


@rule("code-fence-unclosed", Severity.ERROR, "Fenced code block is never closed")
def check_unclosed_fences(ctx: LintContext) -> Iterator[Issue]:
    for document in ctx.corpus.all_documents():
        for block in document.code_blocks:
            if not block.closed:
                yield ctx.issue(
                    "code-fence-unclosed",
                    document.path,
                    "Code fence is not closed; the rest of the file renders as code",
                    line=block.line,
                )


@rule("code-block-untagged", Severity.INFO, "Fenced code block has no language tag")
def check_untagged_code_blocks(ctx: LintContext) -> Iterator[Issue]:
    for document in ctx.corpus.all_documents():
        for block in document.code_blocks:
            if not block.language:
                yield ctx.issue(
                    "code-block-untagged",
                    document.path,
                    "Code block has no language tag",
                    line=block.line,
                )


@rule(
    "prompt-description-missing",
    Severity.WARNING,
    "Command or agent prompt has no frontmatter description",
)
def check_prompt_descriptions(ctx: LintContext) -> Iterator[Issue]:
    for prompt in _all_prompts(ctx.corpus):
        if prompt.frontmatter_error:
            continue
        if not prompt.description.strip():
            yield ctx.issue(
                "prompt-description-missing",
                prompt.path,
                f"{prompt.kind.capitalize()} prompt '{prompt.name}' has no frontmatter description",
                line=1,
            )
