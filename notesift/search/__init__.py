"""Search engine for note vaults."""

from notesift.search.exceptions import EmptyQueryError, NoteSiftError, QueryValidationError
from notesift.search.highlight import highlight, highlight_excerpt, render_html, render_rich
from notesift.search.note_search import NoteSearch, evaluate, summarize_breakdown
from notesift.search.patterns import build_line_and_pattern, match_pattern
from notesift.search.query import ParsedQuery, PropertyFilter, QueryBuilder, parse_query_string
from notesift.search.search_models import (
    Excerpt,
    FilterHitStats,
    GlobalQueryTargets,
    MatchResult,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SearchSummary,
    SortMode,
)

__all__ = [
    "NoteSearch",
    "evaluate",
    "summarize_breakdown",
    # Query construction
    "QueryBuilder",
    "ParsedQuery",
    "PropertyFilter",
    "parse_query_string",
    "build_line_and_pattern",
    "match_pattern",
    # Options and results
    "SearchOptions",
    "SearchMode",
    "SortMode",
    "GlobalQueryTargets",
    "SearchOutcome",
    "SearchSummary",
    "MatchResult",
    "FilterHitStats",
    "Excerpt",
    # Rendering
    "highlight",
    "highlight_excerpt",
    "render_html",
    "render_rich",
    # Errors
    "NoteSiftError",
    "QueryValidationError",
    "EmptyQueryError",
]
