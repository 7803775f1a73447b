"""Evidence excerpts for accepted notes.

Three independent sources are merged by line:

- body lines hit by the same-line filter, content patterns or the free-text
  query (when it targets the body)
- headings hit by heading filters
- free-text hits on non-body facets, shown as labelled pseudo-lines

Evidence on the same body line is merged into one excerpt with the union of
its sources. Synthetic evidence has no line and is never merged into a body
line. The merged list is sorted (synthetic first, then by line) and capped.
"""

import re
from collections.abc import Iterable

from notesift.search.evaluator import Evaluation, NoteContext, PredicateEvaluator
from notesift.search.facets import frontmatter_pairs
from notesift.search.matchers import GlobalMatcher
from notesift.search.patterns import match_pattern
from notesift.search.search_models import (
    SYNTHETIC,
    Excerpt,
    GlobalQueryTargets,
    LineRef,
    RealLine,
    line_number,
)

DEFAULT_EXCERPT_LIMIT = 10
DEFAULT_MAX_LINE_LENGTH = 240


def format_line(text: str, max_length: int = DEFAULT_MAX_LINE_LENGTH) -> str:
    """Normalise a line for display: tabs to spaces, no CR/NUL, truncated."""
    cleaned = text.replace("\t", "  ").replace("\r", "").replace("\x00", "")
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[: max_length - 1] + "…"


class _ExcerptCollector:
    """Line index -> ordered, unique sources."""

    def __init__(self, lines: list[str], max_length: int):
        self.lines = lines
        self.max_length = max_length
        self.reasons: dict[int, dict[str, None]] = {}

    def add(self, index: int, source: str) -> None:
        if 0 <= index < len(self.lines):
            self.reasons.setdefault(index, {})[source] = None

    def excerpts(self) -> list[Excerpt]:
        return [
            Excerpt(
                ref=RealLine(index),
                text=format_line(self.lines[index], self.max_length),
                sources=tuple(sources),
            )
            for index, sources in sorted(self.reasons.items())
        ]


def extract_hit_lines(
    ctx: NoteContext,
    evaluator: PredicateEvaluator,
    max_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> list[Excerpt]:
    """Scan body lines for line-filter, content and free-text body hits."""
    if ctx.body is None:
        return []

    lines = ctx.lines
    collector = _ExcerptCollector(lines, max_length)
    parsed = evaluator.parsed

    if evaluator.line_rx is not None:
        for i, line in enumerate(lines):
            if evaluator.line_rx.search(line):
                collector.add(i, "line")

    # content: is AND for acceptance, but each pattern marks its own lines
    for pattern in parsed.content_patterns:
        source = f"content:{pattern}"
        for i, line in enumerate(lines):
            if match_pattern(line, pattern, evaluator.case_sensitive):
                collector.add(i, source)

    matcher = evaluator.matcher
    if matcher is not None and evaluator.targets.body:
        for i, line in enumerate(lines):
            if matcher.test_line(line):
                collector.add(i, matcher.source)

    return collector.excerpts()


def build_heading_excerpts(
    ctx: NoteContext,
    patterns: Iterable[str],
    case_sensitive: bool,
    max_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> list[Excerpt]:
    """One excerpt per heading line hit by any heading filter."""
    patterns = list(patterns)
    if not patterns or ctx.body is None:
        return []

    collector = _ExcerptCollector(ctx.lines, max_length)
    for heading in ctx.headings():
        if heading.line is None:
            continue
        for pattern in patterns:
            if match_pattern(heading.text, pattern, case_sensitive):
                collector.add(heading.line, f"headings:{pattern}")
    return collector.excerpts()


def build_global_synthetic_excerpts(
    ctx: NoteContext,
    matcher: GlobalMatcher,
    targets: GlobalQueryTargets,
    max_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> list[Excerpt]:
    """Labelled evidence for free-text hits outside the body."""
    mode = matcher.mode.value
    excerpts: list[Excerpt] = []

    def synthetic(label: str, value: str) -> None:
        excerpts.append(
            Excerpt(
                ref=SYNTHETIC,
                text=format_line(f"[{label}] {value}", max_length),
                sources=(f"globalQuery:{mode}:{label}",),
            )
        )

    if targets.name and matcher.test(ctx.document.name).hit:
        synthetic("name", ctx.document.name)

    if targets.path and matcher.test(ctx.document.path).hit:
        synthetic("path", ctx.document.path)

    if targets.frontmatter:
        for key, values in frontmatter_pairs(ctx.metadata):
            if matcher.test(key).hit:
                synthetic("frontmatter-key", key)
            for value in values:
                if matcher.test(value).hit:
                    synthetic("frontmatter", f"{key}: {value}")

    if targets.tags:
        for tag in ctx.tags:
            if matcher.test(tag).hit:
                synthetic("tag", tag)

    if targets.headings:
        lines = ctx.lines if ctx.body is not None else []
        for heading in ctx.headings():
            if not matcher.test(heading.text).hit:
                continue
            ref: LineRef = SYNTHETIC
            text = heading.text
            if heading.line is not None:
                ref = RealLine(heading.line)
                if heading.line < len(lines):
                    text = lines[heading.line]
            excerpts.append(
                Excerpt(
                    ref=ref,
                    text=format_line(f"[headings] {text}", max_length),
                    sources=(f"globalQuery:{mode}:headings",),
                )
            )

    return excerpts


def merge_excerpts(
    *groups: Iterable[Excerpt], limit: int = DEFAULT_EXCERPT_LIMIT
) -> list[Excerpt]:
    """Union excerpt lists by line, joining sources; sort and cap.

    For a shared line the first non-empty text wins. Synthetic excerpts are
    keyed by their text, so identical synthetic evidence collapses but
    distinct facet hits stay separate.
    """
    merged: dict[object, tuple[LineRef, str, dict[str, None]]] = {}

    for group in groups:
        for excerpt in group:
            key = excerpt.ref if isinstance(excerpt.ref, RealLine) else (SYNTHETIC, excerpt.text)
            current = merged.get(key)
            if current is None:
                merged[key] = (excerpt.ref, excerpt.text, dict.fromkeys(excerpt.sources))
                continue
            ref, text, sources = current
            if not text and excerpt.text:
                merged[key] = (ref, excerpt.text, sources)
            sources.update(dict.fromkeys(excerpt.sources))

    ordered = sorted(merged.values(), key=lambda item: line_number(item[0]))
    return [
        Excerpt(ref=ref, text=text, sources=tuple(sources))
        for ref, text, sources in ordered[: max(limit, 0)]
    ]


def build_excerpts(
    evaluator: PredicateEvaluator,
    evaluation: Evaluation,
    limit: int = DEFAULT_EXCERPT_LIMIT,
    max_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> list[Excerpt]:
    """All evidence for an accepted note, merged and capped."""
    ctx = evaluation.context
    groups = [
        extract_hit_lines(ctx, evaluator, max_length),
        build_heading_excerpts(
            ctx, evaluator.parsed.heading_patterns, evaluator.case_sensitive, max_length
        ),
    ]
    if evaluator.matcher is not None:
        groups.append(
            build_global_synthetic_excerpts(
                ctx, evaluator.matcher, evaluator.targets, max_length
            )
        )
    return merge_excerpts(*groups, limit=limit)


_SOURCE_RE = re.compile(r"(?P<kind>[a-zA-Z]+)(?::(?P<detail>.*))?", re.DOTALL)


def sources_of_kind(excerpt: Excerpt, kind: str) -> list[str]:
    """Details of sources with the given kind (``content:foo`` -> ``foo``)."""
    details = []
    for source in excerpt.sources:
        match = _SOURCE_RE.fullmatch(source)
        if match and match.group("kind") == kind and match.group("detail"):
            details.append(match.group("detail"))
    return details
