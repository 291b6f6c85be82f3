"""
Document parser for skillcorpus.

Parses SKILL.md indexes, resource documents and command/agent prompt
files into document models.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from skillcorpus.config.schema import LayoutConfig
from skillcorpus.docs.markdown import (
    extract_code_blocks,
    extract_headings,
    extract_links,
    extract_numbered_items,
    extract_tables,
    find_section,
    first_paragraph,
    parse_yaml_frontmatter,
)
from skillcorpus.docs.models import (
    CommandFrontmatter,
    MarkdownDocument,
    NavigationEntry,
    PromptDocument,
    PromptKind,
    ResourceDocument,
    SkillBundle,
    SkillFrontmatter,
    SkillIndexDocument,
)

logger = logging.getLogger(__name__)

RELATED_SECTION_PATTERN = r"^(related( files| resources| docs)?|see also)\s*:?$"
TEMPLATE_LANGUAGES = {"markdown", "md"}

DocumentT = TypeVar("DocumentT", bound=MarkdownDocument)


class DocumentParseError(Exception):
    """Error parsing a document."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(f"{message}" + (f" (at {path})" if path else ""))


class DocumentValidationError(DocumentParseError):
    """Error validating bundle structure."""

    pass


def read_document(path: Path) -> str:
    """Read a Markdown file as UTF-8.

    Raises:
        DocumentParseError: If the file cannot be read or decoded.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"Not valid UTF-8: {e.reason}", path) from e
    except OSError as e:
        raise DocumentParseError(f"Failed to read file: {e.strerror or e}", path) from e


def _parse_base(
    model: type[DocumentT],
    content: str,
    path: Path,
    **fields: Any,
) -> tuple[DocumentT, str, int]:
    """Fill the fields shared by every document.

    Returns the document, its body and the file line where the body starts.
    """
    result = parse_yaml_frontmatter(content)
    start = result.body_start_line

    headings = extract_headings(result.body, start_line=start)
    title = next((h.text for h in headings if h.level == 1), "") or path.stem

    document = model(
        path=path,
        title=title,
        has_frontmatter=result.status != "absent",
        frontmatter_raw=result.data,
        frontmatter_error=result.error,
        body_line_offset=start - 1,
        headings=headings,
        code_blocks=extract_code_blocks(result.body, start_line=start),
        links=extract_links(result.body, start_line=start),
        **fields,
    )
    return document, result.body, start


def parse_markdown_document(content: str, path: Path) -> MarkdownDocument:
    """Parse any Markdown file into the common document structure."""
    document, _, _ = _parse_base(MarkdownDocument, content, path)
    return document


def parse_skill_index(content: str, path: Path) -> SkillIndexDocument:
    """Parse a SKILL.md file.

    Frontmatter that is present but fails validation (e.g. a list where
    a string is expected) is recorded in ``frontmatter_error`` instead of
    raising, so one bad bundle does not hide the others.

    Args:
        content: The SKILL.md file content.
        path: Path of the file.

    Returns:
        The parsed index document.
    """
    document, body, start = _parse_base(SkillIndexDocument, content, path)

    if document.frontmatter_raw is not None:
        try:
            document.frontmatter = SkillFrontmatter.from_raw(document.frontmatter_raw)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            document.frontmatter_error = f"invalid frontmatter fields: {problems}"

    document.purpose = first_paragraph(body)

    for table in extract_tables(body, start_line=start):
        for row in table.rows:
            row_links = [link for link in extract_links(row.raw, start_line=row.line) if link.is_local]
            if not row_links:
                continue
            intent = row.cells[0] if row.cells else ""
            for link in row_links:
                document.navigation.append(NavigationEntry(intent=intent, link=link))

    return document


def parse_resource(content: str, path: Path, bundle: str) -> ResourceDocument:
    """Parse a resource document and its trailing "Related Files" list."""
    document, body, start = _parse_base(ResourceDocument, content, path, bundle=bundle)

    section = find_section(body, RELATED_SECTION_PATTERN, start_line=start)
    if section is not None:
        text, section_start = section
        document.related_links = [
            link for link in extract_links(text, start_line=section_start) if not link.is_anchor_only
        ]

    return document


def parse_prompt(content: str, path: Path, kind: PromptKind) -> PromptDocument:
    """Parse a command or agent prompt file.

    Args:
        content: File content.
        path: Path of the file.
        kind: "command" for slash commands, "agent" for agent personas.

    Returns:
        The parsed prompt document.
    """
    result = parse_yaml_frontmatter(content)
    frontmatter = None
    error = None
    if result.data is not None:
        try:
            frontmatter = CommandFrontmatter.model_validate(result.data)
        except ValidationError as e:
            error = f"invalid frontmatter fields: {e.error_count()} error(s)"

    name = frontmatter.name if frontmatter and frontmatter.name else path.stem
    document, body, _ = _parse_base(PromptDocument, content, path, kind=kind, name=name)
    document.frontmatter = frontmatter
    if error and not document.frontmatter_error:
        document.frontmatter_error = error

    document.responsibilities = extract_numbered_items(body)
    document.templates = [
        block for block in document.code_blocks if block.language.lower() in TEMPLATE_LANGUAGES
    ]
    return document


def _markdown_files(directory: Path, skip: Callable[[Path], bool] | None = None) -> list[Path]:
    if not directory.is_dir():
        return []
    files = sorted(p for p in directory.rglob("*.md") if p.is_file())
    if skip is not None:
        files = [p for p in files if not skip(p)]
    return files


def parse_skill_bundle(
    skill_dir: Path,
    layout: LayoutConfig | None = None,
    skip: Callable[[Path], bool] | None = None,
    on_error: Callable[[Path, DocumentParseError], None] | None = None,
) -> SkillBundle:
    """Parse a skill bundle from its directory.

    A bundle must contain the index file (SKILL.md). Resources are every
    Markdown file under ``resources/``; agents are Markdown files under
    ``agents/``.

    Args:
        skill_dir: Path to the bundle directory.
        layout: Layout configuration (defaults apply if omitted).
        skip: Predicate for files to leave out (configured excludes).
        on_error: Called with the path and error of an unreadable resource
            or agent, which is then left out of the bundle. Without it the
            error propagates.

    Returns:
        Fully parsed SkillBundle.

    Raises:
        DocumentParseError: If the index is missing or unreadable, or a
            resource or agent is unreadable and no ``on_error`` is given.
    """
    layout = layout or LayoutConfig()
    skill_dir = Path(skill_dir).resolve()

    if not skill_dir.is_dir():
        raise DocumentParseError(f"Not a directory: {skill_dir}")

    index_path = skill_dir / layout.index_file
    if not index_path.is_file():
        raise DocumentValidationError(f"Missing required file: {layout.index_file}", skill_dir)

    index = parse_skill_index(read_document(index_path), index_path)

    resources = []
    for resource_path in _markdown_files(skill_dir / layout.resources_dir, skip):
        try:
            content = read_document(resource_path)
        except DocumentParseError as e:
            if on_error is None:
                raise
            on_error(resource_path, e)
            continue
        resources.append(parse_resource(content, resource_path, skill_dir.name))

    agents = []
    for agent_path in _markdown_files(skill_dir / layout.agents_subdir, skip):
        try:
            content = read_document(agent_path)
        except DocumentParseError as e:
            if on_error is None:
                raise
            on_error(agent_path, e)
            continue
        agents.append(parse_prompt(content, agent_path, "agent"))

    logger.debug(
        f"Parsed bundle {skill_dir.name}: {len(resources)} resource(s), {len(agents)} agent(s)"
    )
    return SkillBundle(
        name=skill_dir.name,
        path=skill_dir,
        index=index,
        resources=resources,
        agents=agents,
    )
