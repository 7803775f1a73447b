"""Vault-wide search driver."""

import asyncio
import time
from collections.abc import Sequence
from typing import Any

from notesift.config import Settings, get_settings
from notesift.search.evaluator import PredicateEvaluator
from notesift.search.exceptions import EmptyQueryError
from notesift.search.excerpts import build_excerpts
from notesift.search.query import ParsedQuery
from notesift.search.search_models import (
    MatchedFilters,
    MatchResult,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SearchSummary,
    SortMode,
)
from notesift.utils.mixins import LoggerMixin
from notesift.vault.interfaces import DocumentStore
from notesift.vault.models import NoteDocument


def sort_documents(documents: Sequence[NoteDocument], sort: SortMode) -> list[NoteDocument]:
    """Order notes by the selected sort key (stable)."""
    if sort is SortMode.MTIME_DESC:
        return sorted(documents, key=lambda d: d.mtime, reverse=True)
    if sort is SortMode.MTIME_ASC:
        return sorted(documents, key=lambda d: d.mtime)
    return sorted(documents, key=lambda d: (d.path.casefold(), d.path))


def matched_filters(parsed: ParsedQuery, options: SearchOptions) -> MatchedFilters:
    """Snapshot of the active filters, attached to every result."""
    exact = options.mode is SearchMode.EXACT and bool(parsed.global_query)
    return MatchedFilters(
        file=parsed.file_patterns,
        path=parsed.path_patterns,
        tags=parsed.tag_filters,
        properties=tuple(pf.describe() for pf in parsed.property_filters),
        content_patterns=parsed.content_patterns,
        heading_patterns=parsed.heading_patterns,
        line_terms=parsed.line_terms,
        global_query=bool(parsed.global_query),
        exact_phrase=parsed.global_query.strip() if exact else None,
    )


class NoteSearch(LoggerMixin):
    """Evaluates a parsed query against every note of a document store."""

    def __init__(self, store: DocumentStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()

    def _log_context(self) -> dict[str, Any]:
        return {"store": type(self.store).__name__}

    async def search(
        self,
        parsed: ParsedQuery,
        options: SearchOptions,
        cancel_event: asyncio.Event | None = None,
    ) -> SearchOutcome:
        """Search the store.

        Notes are pre-sorted so the scan can stop as soon as ``limit`` notes
        are accepted. A note whose body cannot be read is skipped and counted
        in ``summary.files_failed``. Setting ``cancel_event`` stops the scan
        between notes and returns what was found so far.
        """
        if parsed.is_empty():
            raise EmptyQueryError()

        started = time.perf_counter()
        summary = SearchSummary()
        results: list[MatchResult] = []

        documents = sort_documents(self.store.list_documents(), options.sort)
        evaluator = PredicateEvaluator(parsed, options)
        matched = matched_filters(parsed, options)
        max_results = options.max_results

        targets = options.global_query_targets
        self.logger.debug(
            "Search started",
            query=parsed.global_query,
            mode=options.mode.value,
            targets=targets.enabled(),
            notes=len(documents),
        )
        if parsed.global_query and not targets.any_enabled():
            self.logger.warning("Free-text query has no target facets, nothing can match")

        for document in documents:
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                break

            summary.files_scanned += 1
            try:
                evaluation = await evaluator.evaluate(
                    document, self.store.get_metadata, self.store.read_body
                )
            except (OSError, UnicodeDecodeError) as e:
                summary.files_failed += 1
                self.logger.warning(
                    "Skipping unreadable note", file_path=document.path, error=str(e)
                )
                continue

            if evaluation is None:
                continue

            if evaluation.line_detail is not None:
                summary.total_line_hits += evaluation.line_detail.hit_count

            results.append(
                MatchResult(
                    document=document,
                    matched=matched,
                    line=evaluation.line_detail,
                    excerpts=build_excerpts(
                        evaluator,
                        evaluation,
                        limit=self.settings.excerpt_limit_per_file,
                        max_length=self.settings.excerpt_max_line_length,
                    ),
                    filter_hits=evaluator.filter_hits(evaluation),
                    search_result=evaluation.search_result,
                    regex_match_count=evaluation.regex_match_count,
                )
            )
            if max_results is not None and len(results) >= max_results:
                break

        summary.matched_files = len(results)
        summary.time_ms = round((time.perf_counter() - started) * 1000)

        self.logger.info(
            "Search completed",
            query=parsed.global_query,
            total_results=summary.matched_files,
            files_searched=summary.files_scanned,
            files_failed=summary.files_failed,
            line_hits=summary.total_line_hits,
            time_ms=summary.time_ms,
            cancelled=summary.cancelled,
        )

        return SearchOutcome(results=results, summary=summary)


async def evaluate(
    store: DocumentStore,
    parsed: ParsedQuery,
    options: SearchOptions,
    cancel_event: asyncio.Event | None = None,
) -> SearchOutcome:
    """Run one search with default settings."""
    return await NoteSearch(store).search(parsed, options, cancel_event)


def summarize_breakdown(outcome: SearchOutcome, parsed: ParsedQuery) -> list[str]:
    """Human-readable per-filter hit breakdown for each accepted note."""
    sections = [
        ("file", parsed.file_patterns, "file name matches each pattern (AND)"),
        ("path", parsed.path_patterns, "path matches each pattern (AND)"),
        ("tag", parsed.tag_filters, "tag set matches each filter (AND)"),
        ("property", parsed.property_filters, "frontmatter property matches (AND)"),
        ("headings", parsed.heading_patterns, "heading text matches each pattern (AND)"),
        ("content", parsed.content_patterns, "body matches each pattern (AND)"),
        ("line", parsed.line_patterns, "same line contains ALL terms (AND); unique hit lines"),
    ]

    lines = []
    for kind, active, criterion in sections:
        if not active:
            continue
        lines.append(f"Breakdown: {kind} ({criterion})")
        for result in outcome.results:
            count = getattr(result.filter_hits, kind) or 0
            lines.append(f"  {result.path}: {kind} matches={count}")

    if parsed.global_query:
        lines.append("Breakdown: free-text query (selected facets, OR per note)")
        for result in outcome.results:
            hits = result.filter_hits
            detail = ", ".join(
                f"{facet}={count}"
                for facet, count in (hits.global_query_breakdown or {}).items()
            )
            lines.append(f"  {result.path}: total={hits.global_query or 0} ({detail})")

    return lines
