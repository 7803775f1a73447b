"""Highlight spans for excerpt rendering.

Spans from every pattern and term are collected, merged where they overlap
or touch, and rendered either as escaped HTML with ``<mark>`` tags or as a
``rich`` ``Text`` for terminal output.
"""

import html
import re
from collections.abc import Iterable
from dataclasses import dataclass

from rich.text import Text

from notesift.search.excerpts import sources_of_kind
from notesift.search.patterns import compile_pattern
from notesift.search.search_models import Excerpt, MatchResult

Span = tuple[int, int]


@dataclass(frozen=True)
class HighlightSegment:
    text: str
    highlighted: bool


def _regex_spans(text: str, rx: re.Pattern[str]) -> list[Span]:
    return [m.span() for m in rx.finditer(text) if m.end() > m.start()]


def _plain_spans(text: str, term: str, case_sensitive: bool) -> list[Span]:
    if not term:
        return []
    needle = term if case_sensitive else term.casefold()
    haystack = text if case_sensitive else text.casefold()
    if len(haystack) != len(text):
        # casefold changed the length (e.g. "ß"); offsets would drift
        return _regex_spans(text, compile_pattern(term, case_sensitive))

    spans = []
    start = 0
    while True:
        pos = haystack.find(needle, start)
        if pos == -1:
            break
        spans.append((pos, pos + len(needle)))
        start = pos + max(1, len(needle))
    return spans


def collect_spans(
    text: str,
    patterns: Iterable[str] = (),
    terms: Iterable[str] = (),
    case_sensitive: bool = False,
    exact_phrase: str | None = None,
) -> list[Span]:
    """Match ranges of pattern literals and plain terms in ``text``.

    ``patterns`` follow pattern-literal rules (regex, glob, substring);
    ``terms`` are plain substrings; ``exact_phrase`` is always matched
    case-insensitively, like the exact free-text mode.
    """
    spans: list[Span] = []
    for pattern in patterns:
        spans.extend(_regex_spans(text, compile_pattern(pattern, case_sensitive)))
    for term in terms:
        spans.extend(_plain_spans(text, term, case_sensitive))
    if exact_phrase:
        spans.extend(_plain_spans(text, exact_phrase, False))
    return spans


def merge_spans(spans: Iterable[Span]) -> list[Span]:
    """Merge overlapping or adjacent spans."""
    ordered = sorted(spans)
    if not ordered:
        return []

    merged = []
    current_start, current_end = ordered[0]
    for start, end in ordered[1:]:
        if start <= current_end:
            current_end = max(current_end, end)
        else:
            merged.append((current_start, current_end))
            current_start, current_end = start, end
    merged.append((current_start, current_end))
    return merged


def highlight(
    text: str,
    patterns: Iterable[str] = (),
    terms: Iterable[str] = (),
    case_sensitive: bool = False,
    exact_phrase: str | None = None,
) -> list[HighlightSegment]:
    """Split ``text`` into plain and highlighted segments."""
    segments = []
    last = 0
    for start, end in merge_spans(
        collect_spans(text, patterns, terms, case_sensitive, exact_phrase)
    ):
        if start > last:
            segments.append(HighlightSegment(text[last:start], False))
        segments.append(HighlightSegment(text[start:end], True))
        last = end
    if last < len(text):
        segments.append(HighlightSegment(text[last:], False))
    return segments


def render_html(segments: Iterable[HighlightSegment]) -> str:
    """Escaped HTML with highlighted segments wrapped in ``<mark>``."""
    parts = []
    for segment in segments:
        escaped = html.escape(segment.text, quote=True)
        parts.append(f"<mark>{escaped}</mark>" if segment.highlighted else escaped)
    return "".join(parts)


def render_rich(
    segments: Iterable[HighlightSegment], style: str = "bold black on yellow"
) -> Text:
    """Terminal rendering; ``Text`` never interprets markup in note content."""
    rendered = Text()
    for segment in segments:
        rendered.append(segment.text, style=style if segment.highlighted else None)
    return rendered


def highlight_excerpt(
    excerpt: Excerpt, result: MatchResult, case_sensitive: bool
) -> list[HighlightSegment]:
    """Highlight an excerpt with the filters that produced it.

    Content patterns come from the excerpt's own ``content:`` sources, line
    terms and the exact phrase from the result's active filters.
    """
    return highlight(
        excerpt.text,
        patterns=sources_of_kind(excerpt, "content"),
        terms=result.matched.line_terms,
        case_sensitive=case_sensitive,
        exact_phrase=result.matched.exact_phrase,
    )
