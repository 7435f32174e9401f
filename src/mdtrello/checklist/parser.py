"""Markdown checklist scanner."""

import re
from collections.abc import Callable, Iterator
from pathlib import Path

import structlog

from mdtrello.checklist.models import GroupBy, HeadingContext, ScanOptions, WorkItem

log = structlog.get_logger()

DEFAULT_LIST_NAME = "General"

MAX_TITLE_LENGTH = 180
ELLIPSIS = "…"

# Status glyphs that decorate headings and items in planning docs
MARKER_GLYPHS = (
    "✅",
    "⚠️",
    "🔴",
    "🟡",
    "🟠",
    "🔒",
    "📊",
    "📈",
    "📅",
    "🚀",
    "🐛",
    "📋",
    "🛡️",
)

_MARKER_RE = re.compile("|".join(re.escape(g) for g in MARKER_GLYPHS))
_WHITESPACE_RE = re.compile(r"\s+")
_CHECKLIST_RE = re.compile(r"^(\s*)-\s*\[( |x|X)\]\s+(.*)$")

_HEADING_MARKERS = (
    ("#### ", HeadingContext.set_inner),
    ("### ", HeadingContext.set_middle),
    ("## ", HeadingContext.set_outer),
)


def clean_text(text: str) -> str:
    """Strip strike-through, bold and status glyphs, normalize whitespace.

    Args:
        text: Raw markdown text.

    Returns:
        Plain single-line text.
    """
    text = text.replace("~~", "").replace("**", "")
    text = _MARKER_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def build_card_title(text: str) -> str:
    """Build a card title from item text, truncating long items."""
    base = clean_text(text)
    if len(base) > MAX_TITLE_LENGTH:
        return base[: MAX_TITLE_LENGTH - 3] + ELLIPSIS
    return base


def _heading_cascade(
    outer: str, middle: str, inner: str, group_by: GroupBy
) -> Iterator[str]:
    if group_by is GroupBy.H4:
        yield inner
    if group_by in (GroupBy.H4, GroupBy.H3):
        yield middle
    yield outer


def _raw_candidates(context: HeadingContext, group_by: GroupBy) -> Iterator[str]:
    return _heading_cascade(
        context.outer_raw, context.middle_raw, context.inner_raw, group_by
    )


def _cleaned_candidates(context: HeadingContext, group_by: GroupBy) -> Iterator[str]:
    return _heading_cascade(context.outer, context.middle, context.inner, group_by)


LIST_NAME_CANDIDATES: list[Callable[[HeadingContext, GroupBy], Iterator[str]]] = [
    _raw_candidates,
    _cleaned_candidates,
]


def choose_list_name(context: HeadingContext, group_by: GroupBy) -> str:
    """Choose the Trello list name for an item under the given headings.

    Raw heading text is preferred so list names keep their emojis; the
    cleaned text is the fallback, then "General".

    Args:
        context: Headings in effect.
        group_by: Deepest heading level to group on.

    Returns:
        Non-empty list name.
    """
    for candidates in LIST_NAME_CANDIDATES:
        for name in candidates(context, group_by):
            if name:
                return name
    return DEFAULT_LIST_NAME


def build_description(
    source_label: str,
    context: HeadingContext,
    is_done: bool,
    indent: str,
) -> str:
    """Compose the card description, one fact per line."""
    lines = [f"Source: {source_label}"]
    if context.path:
        lines.append(f"Context: {context.path}")
    lines.append(f"Status: {'Completed' if is_done else 'Pending'}")
    depth = len(indent) // 2
    if depth > 0:
        lines.append(f"Depth: {depth}")
    return "\n".join(lines)


def _apply_heading(line: str, context: HeadingContext) -> bool:
    """Update the context if the line is a heading.

    Returns:
        True if the line was a heading.
    """
    for marker, setter in _HEADING_MARKERS:
        if line.startswith(marker):
            raw = line[len(marker) :].lstrip()
            setter(context, raw, clean_text(raw))
            return True
    return False


def scan_document(
    content: str,
    options: ScanOptions | None = None,
    source_label: str = "",
) -> list[WorkItem]:
    """Extract checklist items from markdown content.

    Args:
        content: Markdown document text.
        options: Filters and grouping; defaults to ScanOptions().
        source_label: Document reference written into each description.

    Returns:
        Work items in document order.
    """
    options = options or ScanOptions()
    context = HeadingContext()
    items: list[WorkItem] = []
    skipped = 0

    for raw_line in re.split(r"\r?\n", content):
        line = raw_line.rstrip()
        if _apply_heading(line, context):
            continue

        match = _CHECKLIST_RE.match(line)
        if not match:
            continue

        indent, mark, text = match.groups()
        is_done = mark.lower() == "x"

        if is_done and options.exclude_completed:
            skipped += 1
            continue
        # Top-level items are usually containers for the nested tasks
        if not indent and not options.include_toplevel:
            skipped += 1
            continue

        items.append(
            WorkItem(
                title=build_card_title(text),
                group_key=choose_list_name(context, options.group_by),
                description=build_description(source_label, context, is_done, indent),
                is_done=is_done,
            )
        )

    log.debug("document_scanned", items=len(items), skipped=skipped)
    return items


def scan_file(
    file_path: Path,
    options: ScanOptions | None = None,
    source_label: str | None = None,
) -> list[WorkItem]:
    """Read a UTF-8 markdown file and extract its checklist items.

    Args:
        file_path: Path to the markdown file.
        options: Filters and grouping.
        source_label: Label for descriptions; defaults to the path.

    Returns:
        Work items in document order.
    """
    content = file_path.read_text(encoding="utf-8")
    label = source_label if source_label is not None else file_path.as_posix()
    return scan_document(content, options, label)
