"""Parsed query model and the immutable builder that produces it.

Dedicated filters are AND-combined, both within a list and across lists.
Terms of the same-line filter are never stored separately: ``build()`` folds
them into a single lookahead regex literal so qualifying lines are found in
one scan.
"""

import dataclasses
import re
from dataclasses import dataclass
from typing import Self

from notesift.search.exceptions import EmptyQueryError, QueryValidationError
from notesift.search.patterns import build_line_and_pattern, try_parse_explicit_regex


@dataclass(frozen=True)
class PropertyFilter:
    """Frontmatter property constraint; ``value=None`` checks existence only."""

    name: str
    value: str | re.Pattern[str] | None = None
    literal: str = ""  # value as the user typed it

    @classmethod
    def parse(cls, name: str, value_text: str = "") -> "PropertyFilter":
        name = name.strip()
        if not name:
            raise QueryValidationError("Enter a property name.")
        raw = value_text.strip()
        if not raw:
            return cls(name=name)
        return cls(name=name, value=try_parse_explicit_regex(raw) or raw, literal=raw)

    def describe(self) -> str:
        if self.value is None:
            return self.name
        return f"{self.name}:{self.literal or self.value}"


@dataclass(frozen=True)
class ParsedQuery:
    """Immutable query for one search run."""

    global_query: str = ""
    file_patterns: tuple[str, ...] = ()
    path_patterns: tuple[str, ...] = ()
    tag_filters: tuple[str, ...] = ()
    content_patterns: tuple[str, ...] = ()
    line_patterns: tuple[str, ...] = ()  # at most one combined literal
    heading_patterns: tuple[str, ...] = ()
    property_filters: tuple[PropertyFilter, ...] = ()
    line_terms: tuple[str, ...] = ()  # source terms of line_patterns

    @property
    def line_pattern(self) -> str | None:
        return self.line_patterns[0] if self.line_patterns else None

    def has_dedicated_filters(self) -> bool:
        return bool(
            self.file_patterns
            or self.path_patterns
            or self.tag_filters
            or self.content_patterns
            or self.line_patterns
            or self.heading_patterns
            or self.property_filters
        )

    def is_empty(self) -> bool:
        """True when there is nothing to filter on."""
        return not self.global_query and not self.has_dedicated_filters()


_LIST_FIELDS = {
    "file": "file_patterns",
    "path": "path_patterns",
    "tag": "tag_filters",
    "content": "content_patterns",
    "headings": "heading_patterns",
    "line": "line_terms",
    "property": "property_filters",
}


def _clean(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise QueryValidationError("Value is empty.")
    return cleaned


@dataclass(frozen=True)
class QueryBuilder:
    """Accumulates filter chips; every operation returns a new builder."""

    global_query: str = ""
    file_patterns: tuple[str, ...] = ()
    path_patterns: tuple[str, ...] = ()
    tag_filters: tuple[str, ...] = ()
    content_patterns: tuple[str, ...] = ()
    heading_patterns: tuple[str, ...] = ()
    line_terms: tuple[str, ...] = ()
    property_filters: tuple[PropertyFilter, ...] = ()

    def with_global_query(self, text: str) -> Self:
        return dataclasses.replace(self, global_query=text.strip())

    def add_file(self, pattern: str) -> Self:
        return dataclasses.replace(self, file_patterns=(*self.file_patterns, _clean(pattern)))

    def add_path(self, pattern: str) -> Self:
        return dataclasses.replace(self, path_patterns=(*self.path_patterns, _clean(pattern)))

    def add_tag(self, tag: str) -> Self:
        cleaned = _clean(tag)
        if try_parse_explicit_regex(cleaned) is None:
            cleaned = cleaned.removeprefix("#")
            if not cleaned:
                raise QueryValidationError("Value is empty.")
        return dataclasses.replace(self, tag_filters=(*self.tag_filters, cleaned))

    def add_content(self, pattern: str) -> Self:
        return dataclasses.replace(
            self, content_patterns=(*self.content_patterns, _clean(pattern))
        )

    def add_heading(self, pattern: str) -> Self:
        return dataclasses.replace(
            self, heading_patterns=(*self.heading_patterns, _clean(pattern))
        )

    def add_line_term(self, term: str) -> Self:
        """Add one term to the same-line filter; duplicates are ignored."""
        cleaned = _clean(term)
        if cleaned in self.line_terms:
            return self
        return dataclasses.replace(self, line_terms=(*self.line_terms, cleaned))

    def add_line_terms(self, text: str) -> Self:
        """Add space-separated (optionally quoted) terms to the same-line filter."""
        terms = [t for t in tokenize_with_quotes(_clean(text)) if t]
        if not terms:
            raise QueryValidationError("No valid terms.")
        builder = self
        for term in terms:
            builder = builder.add_line_term(term)
        return builder

    def add_property(self, name: str, value_text: str = "") -> Self:
        prop = PropertyFilter.parse(name, value_text)
        return dataclasses.replace(self, property_filters=(*self.property_filters, prop))

    def remove(self, kind: str, index: int) -> Self:
        """Drop the ``index``-th entry of a filter list (``file``, ``tag``, ...)."""
        try:
            field_name = _LIST_FIELDS[kind]
        except KeyError:
            raise QueryValidationError(f"Unknown filter kind: {kind}") from None
        items = getattr(self, field_name)
        if not 0 <= index < len(items):
            raise IndexError(index)
        return dataclasses.replace(
            self, **{field_name: items[:index] + items[index + 1 :]}
        )

    def is_empty(self) -> bool:
        return not (
            self.global_query
            or self.file_patterns
            or self.path_patterns
            or self.tag_filters
            or self.content_patterns
            or self.heading_patterns
            or self.line_terms
            or self.property_filters
        )

    def build(self, case_sensitive: bool = False) -> ParsedQuery:
        """Produce the parsed query; raises ``EmptyQueryError`` when empty."""
        if self.is_empty():
            raise EmptyQueryError()

        line_patterns: tuple[str, ...] = ()
        if self.line_terms:
            line_patterns = (build_line_and_pattern(self.line_terms, case_sensitive),)

        return ParsedQuery(
            global_query=self.global_query,
            file_patterns=self.file_patterns,
            path_patterns=self.path_patterns,
            tag_filters=self.tag_filters,
            content_patterns=self.content_patterns,
            line_patterns=line_patterns,
            heading_patterns=self.heading_patterns,
            property_filters=self.property_filters,
            line_terms=self.line_terms,
        )


def tokenize_with_quotes(text: str) -> list[str]:
    """Split on whitespace, keeping double-quoted phrases and ``[...]`` together.

    Quotes are removed: ``hello "quick brown" tag:#x`` gives
    ``["hello", "quick brown", "tag:#x"]``.
    """
    tokens = []
    i, n = 0, len(text)
    while i < n:
        while i < n and text[i].isspace():
            i += 1
        if i >= n:
            break

        buf = []
        if text[i] == "[":
            end = text.find("]", i)
            if end != -1:
                tokens.append(text[i : end + 1])
                i = end + 1
                continue

        in_quotes = False
        while i < n and (in_quotes or not text[i].isspace()):
            if text[i] == '"':
                in_quotes = not in_quotes
            else:
                buf.append(text[i])
            i += 1
        if buf:
            tokens.append("".join(buf))
    return tokens


_OPERATORS = {
    "file": QueryBuilder.add_file,
    "path": QueryBuilder.add_path,
    "tag": QueryBuilder.add_tag,
    "content": QueryBuilder.add_content,
    # The tokenizer already split the input, so a line: value is one term
    "line": QueryBuilder.add_line_term,
    "headings": QueryBuilder.add_heading,
    "section": QueryBuilder.add_heading,
}

_OPERATOR_RE = re.compile(r"([a-z]+):(.*)", re.DOTALL)


def parse_query_string(text: str, builder: QueryBuilder | None = None) -> QueryBuilder:
    """Parse one-line query syntax into a builder.

    ``file:``, ``path:``, ``tag:``, ``content:``, ``line:`` and ``headings:``
    (alias ``section:``) add dedicated filters, ``[name]`` and
    ``[name:value]`` add property filters, and everything else becomes the
    free-text query.
    """
    builder = builder or QueryBuilder()
    free_text = []

    for token in tokenize_with_quotes(text):
        if token.startswith("[") and token.endswith("]") and len(token) > 2:
            name, _, value = token[1:-1].partition(":")
            builder = builder.add_property(name, value)
            continue

        match = _OPERATOR_RE.fullmatch(token)
        if match and match.group(1) in _OPERATORS:
            operator, value = match.groups()
            builder = _OPERATORS[operator](builder, value)
            continue

        free_text.append(token)

    if free_text:
        builder = builder.with_global_query(" ".join(free_text))
    return builder
