"""Per-note predicate evaluation.

A note passes through a fixed sequence of gates, cheapest first:

1. file name  2. path  3. tags  4. properties  5. headings
   -- body read happens here, and only if a later gate needs it --
6. content  7. same-line  8. free-text query (OR across enabled facets)

Dedicated filters are AND-combined; the first failing gate rejects the note
and nothing further (in particular no excerpt work) is done for it.
"""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from notesift.search.facets import (
    ResolvedHeading,
    frontmatter_pairs,
    headings_of,
    property_matches,
    split_lines,
    tags_of,
)
from notesift.search.matchers import FacetHit, GlobalMatcher, create_matcher
from notesift.search.patterns import line_regex, match_pattern, try_parse_explicit_regex
from notesift.search.query import ParsedQuery
from notesift.search.search_models import (
    FACETS,
    FilterHitStats,
    LineHitDetail,
    SearchMode,
    SearchOptions,
)
from notesift.vault.models import NoteDocument, NoteMetadata

BodyLoader = Callable[[NoteDocument], Awaitable[str]]
MetadataLoader = Callable[[NoteDocument], Awaitable[NoteMetadata]]


@dataclass
class NoteContext:
    """Everything known about one note during its evaluation."""

    document: NoteDocument
    metadata: NoteMetadata = field(default_factory=NoteMetadata)
    body: str | None = None
    _lines: list[str] | None = field(default=None, repr=False)
    _tags: tuple[str, ...] | None = field(default=None, repr=False)

    @property
    def lines(self) -> list[str]:
        if self._lines is None:
            self._lines = split_lines(self.body or "")
        return self._lines

    @property
    def tags(self) -> tuple[str, ...]:
        if self._tags is None:
            self._tags = tags_of(self.metadata)
        return self._tags

    def headings(self) -> list[ResolvedHeading]:
        return headings_of(self.metadata, self.body)


@dataclass
class Evaluation:
    """Outcome of the gates for an accepted note."""

    context: NoteContext
    line_detail: LineHitDetail | None = None
    breakdown: dict[str, int] | None = None
    regex_match_count: int | None = None
    search_result: Any = None


def _count_lines(rx: re.Pattern[str], lines: list[str]) -> tuple[int, ...]:
    return tuple(i for i, line in enumerate(lines) if rx.search(line))


class PredicateEvaluator:
    """Applies a parsed query to individual notes."""

    def __init__(
        self,
        parsed: ParsedQuery,
        options: SearchOptions,
        matcher: GlobalMatcher | None = None,
    ):
        self.parsed = parsed
        self.options = options
        self.case_sensitive = options.case_sensitive
        self.targets = options.global_query_targets
        self.matcher = matcher or create_matcher(parsed.global_query, options.mode)
        self.line_rx = (
            line_regex(parsed.line_pattern, self.case_sensitive)
            if parsed.line_pattern
            else None
        )

    # -- dedicated filters -------------------------------------------------

    def file_matches(self, pattern: str, document: NoteDocument) -> bool:
        return match_pattern(document.name, pattern, self.case_sensitive)

    def path_matches(self, pattern: str, document: NoteDocument) -> bool:
        return match_pattern(document.path, pattern, self.case_sensitive)

    def tag_matches(self, tag_filter: str, tags: tuple[str, ...]) -> bool:
        rx = try_parse_explicit_regex(tag_filter)
        if rx is not None:
            return any(rx.search(tag) for tag in tags)
        wanted = tag_filter.removeprefix("#")
        if self.case_sensitive:
            return wanted in tags
        wanted = wanted.casefold()
        return any(tag.casefold() == wanted for tag in tags)

    def heading_matches(self, pattern: str, metadata: NoteMetadata) -> bool:
        return any(
            heading.text and match_pattern(heading.text, pattern, self.case_sensitive)
            for heading in metadata.headings
        )

    def content_matches(self, pattern: str, body: str) -> bool:
        return match_pattern(body, pattern, self.case_sensitive)

    def passes_location_gates(self, document: NoteDocument) -> bool:
        """Gates 1-2; decided from the document listing alone."""
        return all(
            self.file_matches(p, document) for p in self.parsed.file_patterns
        ) and all(self.path_matches(p, document) for p in self.parsed.path_patterns)

    def passes_metadata_gates(self, ctx: NoteContext) -> bool:
        """Gates 3-5; never needs the note body."""
        parsed = self.parsed
        if parsed.tag_filters and not all(
            self.tag_matches(t, ctx.tags) for t in parsed.tag_filters
        ):
            return False
        if not all(
            property_matches(ctx.metadata, pf.name, pf.value, self.case_sensitive)
            for pf in parsed.property_filters
        ):
            return False
        return all(self.heading_matches(p, ctx.metadata) for p in parsed.heading_patterns)

    def gates_need_body(self) -> bool:
        return bool(
            self.parsed.content_patterns
            or self.line_rx is not None
            or (self.matcher is not None and self.targets.body)
        )

    def excerpts_need_body(self, metadata: NoteMetadata) -> bool:
        """Heading evidence shows the heading's line, so it needs the text."""
        wants_headings = bool(self.parsed.heading_patterns) or (
            self.matcher is not None and self.targets.headings
        )
        return wants_headings and bool(metadata.headings)

    # -- free-text query ---------------------------------------------------

    def _facet_total(self, matcher: GlobalMatcher, values: list[str]) -> FacetHit:
        total = 0
        for value in values:
            result = matcher.test(value)
            if result.hit:
                total += result.count
        return FacetHit(total > 0, total)

    def evaluate_global(
        self, ctx: NoteContext, matcher: GlobalMatcher
    ) -> tuple[bool, dict[str, int], Any]:
        """Test the free-text query on each enabled facet (OR).

        Returns (hit, per-facet counts, body payload).
        """
        targets = self.targets
        hits: dict[str, FacetHit] = {}
        payload = None

        if targets.body:
            hits["body"] = matcher.evaluate_body(ctx.body or "", ctx.lines)
            if hits["body"].hit:
                payload = matcher.body_payload(ctx.body or "")
        if targets.name:
            hits["name"] = matcher.test(ctx.document.name)
        if targets.path:
            hits["path"] = matcher.test(ctx.document.path)
        if targets.frontmatter:
            values = []
            for key, strings in frontmatter_pairs(ctx.metadata):
                values.append(key)
                values.extend(strings)
            hits["frontmatter"] = self._facet_total(matcher, values)
        if targets.tags:
            hits["tags"] = self._facet_total(matcher, list(ctx.tags))
        if targets.headings:
            hits["headings"] = self._facet_total(
                matcher, [h.text for h in ctx.metadata.headings if h.text]
            )

        breakdown = {
            facet: (hits[facet].count if facet in hits and hits[facet].hit else 0)
            for facet in FACETS
        }
        return any(h.hit for h in hits.values()), breakdown, payload

    # -- driver entry point ------------------------------------------------

    async def evaluate(
        self,
        document: NoteDocument,
        load_metadata: MetadataLoader,
        load_body: BodyLoader,
    ) -> Evaluation | None:
        """Run all gates; None means the note is rejected.

        Metadata is only requested once the file-name and path filters pass.
        Errors from the loaders propagate to the caller.
        """
        if not self.passes_location_gates(document):
            return None

        ctx = NoteContext(document=document, metadata=await load_metadata(document))
        if not self.passes_metadata_gates(ctx):
            return None

        if self.gates_need_body() or self.excerpts_need_body(ctx.metadata):
            ctx.body = await load_body(document)

        parsed = self.parsed
        body = ctx.body or ""

        if not all(self.content_matches(p, body) for p in parsed.content_patterns):
            return None

        evaluation = Evaluation(context=ctx)

        if self.line_rx is not None and parsed.line_pattern is not None:
            indices = _count_lines(self.line_rx, ctx.lines)
            if not indices:
                return None
            evaluation.line_detail = LineHitDetail(
                pattern_literal=parsed.line_pattern,
                hit_count=len(indices),
                hit_line_indices=indices,
            )

        matcher = self.matcher
        if matcher is not None:
            hit, breakdown, payload = self.evaluate_global(ctx, matcher)
            if not hit:
                return None
            evaluation.breakdown = breakdown
            evaluation.search_result = payload
            if matcher.mode is SearchMode.REGEX:
                evaluation.regex_match_count = sum(breakdown.values())

        return evaluation

    # -- statistics --------------------------------------------------------

    def filter_hits(self, evaluation: Evaluation) -> FilterHitStats:
        """Count matching sub-patterns per active filter kind."""
        ctx = evaluation.context
        parsed = self.parsed
        stats = FilterHitStats()

        if parsed.file_patterns:
            stats.file = sum(self.file_matches(p, ctx.document) for p in parsed.file_patterns)
        if parsed.path_patterns:
            stats.path = sum(self.path_matches(p, ctx.document) for p in parsed.path_patterns)
        if parsed.tag_filters:
            stats.tag = sum(self.tag_matches(t, ctx.tags) for t in parsed.tag_filters)
        if parsed.property_filters:
            stats.property = sum(
                property_matches(ctx.metadata, pf.name, pf.value, self.case_sensitive)
                for pf in parsed.property_filters
            )
        if parsed.heading_patterns:
            stats.headings = sum(
                self.heading_matches(p, ctx.metadata) for p in parsed.heading_patterns
            )
        if parsed.content_patterns:
            stats.content = sum(
                self.content_matches(p, ctx.body or "") for p in parsed.content_patterns
            )
        if parsed.line_patterns:
            stats.line = evaluation.line_detail.hit_count if evaluation.line_detail else 0
        if evaluation.breakdown is not None:
            stats.global_query_breakdown = dict(evaluation.breakdown)
            stats.global_query = sum(evaluation.breakdown.values())

        return stats
