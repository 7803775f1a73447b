"""
Markdown metadata extraction for the filesystem vault store.

This plays the part of the host's metadata index: it turns a raw note into
tags, frontmatter, headings and list items once, so the search engine only
ever sees ``NoteMetadata``.
"""

import re
from typing import Any

import yaml

from notesift.utils.error_handler import safe_with_default
from notesift.vault.models import HeadingInfo, ListItemInfo, NoteMetadata

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^[ \t]*(`{3,}|~{3,})")
_INLINE_CODE_RE = re.compile(r"`[^`\n]*`")
# Obsidian tags: letters, digits, "_", "-", "/" and at least one non-digit
_TAG_RE = re.compile(r"(?<![\w/#&])#([\w/-]*[^\W\d][\w/-]*)")
_LIST_ITEM_RE = re.compile(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]+(?:\[(.)\][ \t])?")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


@safe_with_default(
    "parse frontmatter", None, exceptions=(yaml.YAMLError, ValueError, TypeError)
)
def _load_yaml(block: str) -> dict[str, Any] | None:
    data = yaml.safe_load(block) or {}
    if not isinstance(data, dict):
        raise ValueError("frontmatter is not a mapping")
    return data


def split_frontmatter(text: str) -> tuple[dict[str, Any], int]:
    """Parse a leading YAML block.

    Returns:
        (frontmatter mapping, number of lines the block occupies)
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, 0
    block_lines = len(_LINE_SPLIT_RE.split(match.group(0).rstrip("\r\n")))
    return _load_yaml(match.group(1)) or {}, block_lines


def extract_metadata(text: str) -> NoteMetadata:
    """Extract tags, frontmatter, headings and list items from a note."""
    frontmatter, body_start = split_frontmatter(text)
    lines = _LINE_SPLIT_RE.split(text)

    headings: list[HeadingInfo] = []
    tags: list[str] = []
    list_items: list[ListItemInfo] = []

    # Start offset of every line, counting "\r\n" endings as two characters
    starts = [0, *(m.end() for m in _LINE_SPLIT_RE.finditer(text))]
    in_fence: str | None = None

    for index in range(body_start, len(lines)):
        line = lines[index]
        line_offset = starts[index]

        fence = _FENCE_RE.match(line)
        if fence:
            marker = fence.group(1)[0]
            if in_fence is None:
                in_fence = marker
            elif in_fence == marker:
                in_fence = None
            continue
        if in_fence is not None:
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            headings.append(
                HeadingInfo(
                    text=heading.group(2).strip(),
                    level=len(heading.group(1)),
                    line=index,
                    offset=line_offset,
                )
            )

        item = _LIST_ITEM_RE.match(line)
        if item:
            box = item.group(1)
            list_items.append(
                ListItemInfo(
                    line=index,
                    is_task=box is not None,
                    checked=box is not None and box != " ",
                )
            )

        scan = _INLINE_CODE_RE.sub(" ", line)
        if heading:
            # The heading marker itself is not a tag
            scan = scan[len(heading.group(1)) :]
        tags.extend(f"#{tag}" for tag in _TAG_RE.findall(scan))

    return NoteMetadata.from_raw_frontmatter(
        frontmatter,
        tags=tuple(tags),
        headings=tuple(headings),
        list_items=tuple(list_items),
    )
