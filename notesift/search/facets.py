"""Queryable views of a note: tags, properties, headings and lines.

All functions are pure and tolerate sparse metadata; a missing facet is
simply empty.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from notesift.vault.models import ListValue, NoteMetadata, TextValue

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_TAG_SEPARATOR_RE = re.compile(r"[,\s]+")


def _strip_hash(raw: str) -> str:
    cleaned = raw.strip()
    return cleaned[1:] if cleaned.startswith("#") else cleaned


def tags_of(metadata: NoteMetadata) -> tuple[str, ...]:
    """Body tags plus frontmatter ``tags``, ``#``-stripped and deduplicated."""
    seen: dict[str, None] = {}

    for raw in metadata.tags:
        cleaned = _strip_hash(raw)
        if cleaned:
            seen.setdefault(cleaned)

    value = metadata.frontmatter.get("tags")
    if isinstance(value, ListValue):
        candidates = list(value.items)
    elif isinstance(value, TextValue):
        candidates = _TAG_SEPARATOR_RE.split(value.value)
    else:
        candidates = []

    for raw in candidates:
        cleaned = _strip_hash(raw)
        if cleaned:
            seen.setdefault(cleaned)

    return tuple(seen)


def _equals(left: str, right: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return left == right
    return left.casefold() == right.casefold()


def property_matches(
    metadata: NoteMetadata,
    name: str,
    value: str | re.Pattern[str] | None,
    case_sensitive: bool,
) -> bool:
    """Check one frontmatter property filter.

    ``None`` only requires the key to exist. A regex is searched in the
    value's text and, for lists, in each element. A string must equal the
    scalar value or any list element.
    """
    prop = metadata.frontmatter.get(name)
    if prop is None:
        return False

    if value is None:
        return True

    if isinstance(value, re.Pattern):
        if value.search(prop.as_text()):
            return True
        if isinstance(prop, ListValue):
            return any(value.search(item) for item in prop.items)
        return False

    return any(_equals(item, value, case_sensitive) for item in prop.as_strings())


def split_lines(body: str) -> list[str]:
    return _LINE_SPLIT_RE.split(body)


def offset_to_line(body: str, offset: int) -> int:
    """Line index (0-based) containing character ``offset``."""
    if offset <= 0:
        return 0
    return body.count("\n", 0, min(offset, len(body)))


@dataclass(frozen=True)
class ResolvedHeading:
    text: str
    line: int | None


def headings_of(metadata: NoteMetadata, body: str | None = None) -> list[ResolvedHeading]:
    """Headings in document order with their line index where resolvable.

    The stored line wins; otherwise the stored character offset is converted
    using ``body`` when it is available.
    """
    resolved = []
    for heading in metadata.headings:
        if not heading.text:
            continue
        line = heading.line
        if line is None and heading.offset is not None and body is not None:
            line = offset_to_line(body, heading.offset)
        resolved.append(ResolvedHeading(text=heading.text, line=line))
    return resolved


def frontmatter_pairs(metadata: NoteMetadata) -> Iterator[tuple[str, list[str]]]:
    """Yield ``(key, value strings)`` for each frontmatter property."""
    for key, value in metadata.frontmatter.items():
        yield key, value.as_strings()
