"""
Markdown scanning helpers.

Line-oriented extraction of the pieces of a Markdown file the corpus
cares about: frontmatter, headings, fenced code blocks, links and pipe
tables. Everything inside a fenced code block is ignored by the other
extractors, so links and headings in illustrative snippets do not count.

Line numbers are 1-based and, when ``start_line`` is passed, refer to
lines of the original file rather than of the body.
"""

import re
from dataclasses import dataclass
from typing import Any, Literal

import yaml

from skillcorpus.docs.models import CodeBlock, Heading, Link, Table, TableRow

FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})\s*(?P<info>[^`]*)$")
LIST_ITEM_RE = re.compile(r"^[ \t]*(?:[-*+]|\d{1,9}[.)])(?:[ \t]+|$)")
HEADING_RE = re.compile(r"^ {0,3}(?P<hashes>#{1,6})(?:[ \t]+(?P<text>.*?))?(?:[ \t]+#+)?[ \t]*$")
SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(?P<marker>=+|-+)[ \t]*$")
INLINE_LINK_RE = re.compile(
    r"(?P<image>!?)\[(?P<text>[^\]]*)\]\(\s*(?:<(?P<angle>[^>]*)>|(?P<target>[^)\s]*))"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)
REFERENCE_DEF_RE = re.compile(r"^ {0,3}\[(?P<label>[^\]]+)\]:\s*<?(?P<target>[^\s>]+)>?")
INLINE_CODE_RE = re.compile(r"(`+)(.+?)\1")
TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
NUMBERED_ITEM_RE = re.compile(r"^ {0,3}\d{1,3}[.)]\s+(?P<text>\S.*)$")
_SLUG_STRIP_RE = re.compile(r"[^\w\- ]", re.UNICODE)
_EMPHASIS_RE = re.compile(r"[*~]")
_LINK_TEXT_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")

FrontmatterStatus = Literal["absent", "invalid", "present"]


@dataclass
class FrontmatterResult:
    """Outcome of looking for a YAML frontmatter block."""

    status: FrontmatterStatus
    data: dict[str, Any] | None
    body: str
    body_start_line: int = 1
    error: str | None = None


def parse_yaml_frontmatter(content: str) -> FrontmatterResult:
    """Parse YAML frontmatter from a markdown file.

    Frontmatter is delimited by ``---`` lines at the start of the file.
    A block that is never closed, does not parse as YAML, or is not a
    mapping is reported as ``invalid``; the body is then the whole file.

    Args:
        content: The full markdown content.

    Returns:
        A FrontmatterResult.
    """
    content = content.lstrip("\ufeff")
    lines = content.split("\n")

    if not lines or lines[0].strip() != "---":
        return FrontmatterResult(status="absent", data=None, body=content)

    end_index = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() in ("---", "..."):
            end_index = i
            break

    if end_index is None:
        return FrontmatterResult(
            status="invalid",
            data=None,
            body=content,
            error="frontmatter block is not closed with '---'",
        )

    frontmatter_text = "\n".join(lines[1:end_index])
    body = "\n".join(lines[end_index + 1 :])
    body_start_line = end_index + 2

    try:
        data = yaml.safe_load(frontmatter_text)
    except yaml.YAMLError as e:
        return FrontmatterResult(
            status="invalid",
            data=None,
            body=body,
            body_start_line=body_start_line,
            error=f"frontmatter is not valid YAML: {_first_line(str(e))}",
        )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return FrontmatterResult(
            status="invalid",
            data=None,
            body=body,
            body_start_line=body_start_line,
            error=f"frontmatter must be a mapping, got {type(data).__name__}",
        )

    return FrontmatterResult(
        status="present",
        data=data,
        body=body,
        body_start_line=body_start_line,
    )


def _first_line(text: str) -> str:
    return " ".join(text.split())


def slugify(text: str) -> str:
    """Build a GitHub-style heading anchor.

    >>> slugify("Window Functions (ROW_NUMBER, RANK)")
    'window-functions-row_number-rank'
    """
    text = _LINK_TEXT_RE.sub(r"\1", text)
    text = text.replace("`", "")
    text = _EMPHASIS_RE.sub("", text)
    text = _SLUG_STRIP_RE.sub("", text.strip().lower())
    return text.replace(" ", "-")


def _indent_width(line: str) -> int:
    """Leading whitespace width, tabs counted as four columns."""
    leading = line[: len(line) - len(line.lstrip(" \t"))]
    return len(leading.expandtabs(4))


def _scan(body: str) -> tuple[list[str], set[int], list[CodeBlock]]:
    """Split into lines and find fenced regions.

    A fence may be indented by up to three spaces, or deeper when it sits
    inside a list item. Returns the lines, the 0-based indexes of lines
    inside a fence (fence lines included), and the code blocks with 0-based
    line numbers.
    """
    lines = body.split("\n")
    fenced: set[int] = set()
    blocks: list[CodeBlock] = []
    in_list = False

    i = 0
    while i < len(lines):
        line = lines[i]
        match = FENCE_RE.match(line)
        indent = _indent_width(line)
        if not match or (indent > 3 and not in_list):
            if LIST_ITEM_RE.match(line):
                in_list = True
            elif line.strip() and indent == 0:
                in_list = False
            i += 1
            continue

        if indent == 0:
            in_list = False
        fence = match.group("fence")
        info = match.group("info").strip()
        language = info.split()[0] if info else ""
        start = i
        content: list[str] = []
        closed = False
        i += 1
        while i < len(lines):
            stripped = lines[i].strip()
            if (
                stripped.startswith(fence[0] * len(fence))
                and set(stripped) == {fence[0]}
                and _indent_width(lines[i]) <= indent + 3
            ):
                closed = True
                break
            content.append(lines[i])
            i += 1

        end = i if closed else len(lines) - 1
        fenced.update(range(start, end + 1))
        blocks.append(
            CodeBlock(language=language, content="\n".join(content), line=start, closed=closed)
        )
        i += 1

    return lines, fenced, blocks


def extract_code_blocks(body: str, start_line: int = 1) -> list[CodeBlock]:
    """Extract fenced code blocks (``` or ~~~) with their language tags."""
    _, _, blocks = _scan(body)
    return [block.model_copy(update={"line": block.line + start_line}) for block in blocks]


def _is_paragraph_line(line: str) -> bool:
    stripped = line.strip()
    if not stripped or _indent_width(line) > 3:
        return False
    return not (
        HEADING_RE.match(line)
        or SETEXT_UNDERLINE_RE.match(line)
        or LIST_ITEM_RE.match(line)
        or "|" in line
        or stripped.startswith((">", "<"))
    )


def _heading_spans(lines: list[str], fenced: set[int]) -> list[tuple[int, int, int, str]]:
    """Find ATX and setext headings outside fences.

    Returns (first line, last line, level, text) tuples with 0-based
    line indexes. A setext heading spans its paragraph and the underline.
    """
    spans: list[tuple[int, int, int, str]] = []
    paragraph_start: int | None = None
    in_list = False

    for i, line in enumerate(lines):
        if i in fenced:
            paragraph_start = None
            continue

        match = HEADING_RE.match(line)
        if match:
            spans.append((i, i, len(match.group("hashes")), (match.group("text") or "").strip()))
            paragraph_start = None
            in_list = False
            continue

        underline = SETEXT_UNDERLINE_RE.match(line)
        if underline and paragraph_start is not None:
            text = " ".join(part.strip() for part in lines[paragraph_start:i])
            level = 1 if underline.group("marker").startswith("=") else 2
            spans.append((paragraph_start, i, level, text))
            paragraph_start = None
            continue

        if LIST_ITEM_RE.match(line):
            in_list = True
        elif line.strip() and _indent_width(line) == 0:
            in_list = False

        if _is_paragraph_line(line) and not (in_list and _indent_width(line) > 0):
            if paragraph_start is None:
                paragraph_start = i
        else:
            paragraph_start = None

    return spans


def extract_headings(body: str, start_line: int = 1) -> list[Heading]:
    """Extract ATX and setext headings outside code fences, with unique anchors."""
    lines, fenced, _ = _scan(body)
    headings: list[Heading] = []
    seen: dict[str, int] = {}

    for first, _, level, text in _heading_spans(lines, fenced):
        base = slugify(text)
        count = seen.get(base, 0)
        seen[base] = count + 1
        anchor = base if count == 0 else f"{base}-{count}"
        headings.append(Heading(level=level, text=text, line=first + start_line, anchor=anchor))

    return headings


def _mask_inline_code(line: str) -> str:
    return INLINE_CODE_RE.sub(lambda m: " " * len(m.group(0)), line)


def extract_links(body: str, start_line: int = 1) -> list[Link]:
    """Extract inline links, images and reference definitions.

    Links inside fenced code blocks or inline code spans are skipped.
    """
    lines, fenced, _ = _scan(body)
    links: list[Link] = []

    for i, line in enumerate(lines):
        if i in fenced:
            continue
        masked = _mask_inline_code(line)

        ref = REFERENCE_DEF_RE.match(masked)
        if ref:
            links.append(
                Link(text=ref.group("label"), target=ref.group("target"), line=i + start_line)
            )
            continue

        for match in INLINE_LINK_RE.finditer(masked):
            target = match.group("angle")
            if target is None:
                target = match.group("target") or ""
            links.append(
                Link(
                    text=match.group("text"),
                    target=target.strip(),
                    line=i + start_line,
                    is_image=bool(match.group("image")),
                )
            )

    return links


def _split_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells = re.split(r"(?<!\\)\|", row)
    return [cell.strip() for cell in cells]


def _starts_table(header: str, separator: str) -> bool:
    """True if ``header`` followed by ``separator`` opens a pipe table.

    The separator must have as many cells as the header, and a separator
    without any pipe (a bare ``---``) only counts under a header that is
    itself fenced with pipes.
    """
    if "|" not in header or not TABLE_SEPARATOR_RE.match(separator):
        return False
    if "|" not in separator and not header.strip().startswith("|"):
        return False
    return len(_split_row(separator)) == len(_split_row(header))


def extract_tables(body: str, start_line: int = 1) -> list[Table]:
    """Extract GitHub-flavoured pipe tables outside code fences."""
    lines, fenced, _ = _scan(body)
    tables: list[Table] = []

    i = 0
    while i < len(lines) - 1:
        line = lines[i]
        if i in fenced or (i + 1) in fenced or not _starts_table(line, lines[i + 1]):
            i += 1
            continue

        table = Table(header=_split_row(line), line=i + start_line)
        i += 2
        while i < len(lines) and i not in fenced and "|" in lines[i] and lines[i].strip():
            table.rows.append(
                TableRow(cells=_split_row(lines[i]), line=i + start_line, raw=lines[i])
            )
            i += 1
        tables.append(table)

    return tables


def find_section(body: str, title_pattern: str, start_line: int = 1) -> tuple[str, int] | None:
    """Find the section under the first heading matching ``title_pattern``.

    The section runs until the next heading of the same or a higher level.

    Args:
        body: Markdown body.
        title_pattern: Case-insensitive regex matched against heading text.
        start_line: File line number of the first body line.

    Returns:
        Tuple of (section text, file line of its first line), or None.
    """
    lines, fenced, _ = _scan(body)
    spans = _heading_spans(lines, fenced)
    pattern = re.compile(title_pattern, re.IGNORECASE)

    for position, (_, last, level, text) in enumerate(spans):
        if not pattern.search(text):
            continue
        end = len(lines)
        for following_first, _, following_level, _ in spans[position + 1 :]:
            if following_level <= level:
                end = following_first
                break
        first = last + 1
        return "\n".join(lines[first:end]), first + start_line

    return None


def extract_numbered_items(body: str) -> list[str]:
    """Extract the text of numbered list items outside code fences."""
    lines, fenced, _ = _scan(body)
    items = []
    for i, line in enumerate(lines):
        if i in fenced:
            continue
        match = NUMBERED_ITEM_RE.match(line)
        if match:
            items.append(match.group("text").strip())
    return items


def first_paragraph(body: str) -> str:
    """Return the first prose paragraph (not a heading, list, table or fence)."""
    lines, fenced, _ = _scan(body)
    heading_lines: set[int] = set()
    for first, last, _, _ in _heading_spans(lines, fenced):
        heading_lines.update(range(first, last + 1))
    paragraph: list[str] = []

    for i, line in enumerate(lines):
        stripped = line.strip()
        is_prose = (
            i not in fenced
            and i not in heading_lines
            and stripped
            and not stripped.startswith(("|", "-", "*", ">", "<"))
            and not NUMBERED_ITEM_RE.match(line)
        )
        if is_prose:
            paragraph.append(stripped)
        elif paragraph:
            break

    return " ".join(paragraph)
