"""Search-related data models."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Final

from notesift.vault.models import NoteDocument


class SearchMode(Enum):
    """How the free-text query is matched against a facet."""

    SIMPLE = "simple"
    FUZZY = "fuzzy"
    REGEX = "regex"
    EXACT = "exact"


class SortMode(Enum):
    """Result ordering."""

    MTIME_DESC = "mtime-desc"
    MTIME_ASC = "mtime-asc"
    PATH_ASC = "path-asc"


FACETS: Final = ("body", "name", "path", "frontmatter", "tags", "headings")


@dataclass(frozen=True)
class GlobalQueryTargets:
    """Facets the free-text query is evaluated against (OR-combined)."""

    body: bool = True
    name: bool = True
    path: bool = True
    frontmatter: bool = True  # both keys and values
    tags: bool = True
    headings: bool = True

    @classmethod
    def only(cls, *facets: str) -> "GlobalQueryTargets":
        """Targets with just the named facets enabled."""
        unknown = set(facets) - set(FACETS)
        if unknown:
            raise ValueError(f"Unknown facet(s): {', '.join(sorted(unknown))}")
        return cls(**{facet: facet in facets for facet in FACETS})

    def enabled(self) -> list[str]:
        return [facet for facet in FACETS if getattr(self, facet)]

    def any_enabled(self) -> bool:
        return any(getattr(self, facet) for facet in FACETS)


@dataclass(frozen=True)
class SearchOptions:
    """User-selected options.

    ``mode`` and ``global_query_targets`` apply only to the free-text query;
    ``case_sensitive`` applies only to the dedicated filters.
    """

    mode: SearchMode = SearchMode.SIMPLE
    case_sensitive: bool = False
    sort: SortMode = SortMode.MTIME_DESC
    limit: int | None = None
    global_query_targets: GlobalQueryTargets = field(default_factory=GlobalQueryTargets)

    @property
    def max_results(self) -> int | None:
        """The effective cap; non-positive limits mean no cap."""
        if self.limit is None or self.limit <= 0:
            return None
        return self.limit


@dataclass(frozen=True)
class RealLine:
    """Evidence anchored to a body line (0-based)."""

    index: int


@dataclass(frozen=True)
class SyntheticLine:
    """Evidence with no natural body line (file name, path, frontmatter, tags)."""


SYNTHETIC: Final = SyntheticLine()

LineRef = RealLine | SyntheticLine


def line_number(ref: LineRef) -> int:
    """Public line number of a reference; synthetic evidence is ``-1``."""
    return ref.index if isinstance(ref, RealLine) else -1


@dataclass(frozen=True)
class Excerpt:
    """One line (or synthetic pseudo-line) explaining why a note matched."""

    ref: LineRef
    text: str
    sources: tuple[str, ...] = ()

    @property
    def line(self) -> int:
        return line_number(self.ref)

    @property
    def is_synthetic(self) -> bool:
        return isinstance(self.ref, SyntheticLine)

    def to_dict(self) -> dict[str, Any]:
        return {"line": self.line, "text": self.text, "sources": list(self.sources)}


@dataclass(frozen=True)
class LineHitDetail:
    """Which lines satisfied the same-line (line:) filter."""

    pattern_literal: str
    hit_count: int
    hit_line_indices: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_literal": self.pattern_literal,
            "hit_count": self.hit_count,
            "hit_line_indices": list(self.hit_line_indices),
        }


@dataclass
class FilterHitStats:
    """Per-filter hit counts for an accepted note (diagnostic only).

    For pattern lists the count is how many sub-patterns matched; for the
    line filter it is the number of distinct hit lines; for the free-text
    query it is the sum of the per-facet breakdown.
    """

    file: int | None = None
    path: int | None = None
    tag: int | None = None
    property: int | None = None
    headings: int | None = None
    content: int | None = None
    line: int | None = None
    global_query: int | None = None
    global_query_breakdown: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class MatchedFilters:
    """The dedicated filters that were active for a search."""

    file: tuple[str, ...] = ()
    path: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    properties: tuple[str, ...] = ()  # rendered "name" / "name:value"
    content_patterns: tuple[str, ...] = ()
    heading_patterns: tuple[str, ...] = ()
    line_terms: tuple[str, ...] = ()
    global_query: bool = False
    exact_phrase: str | None = None  # used for exact-mode highlighting

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"global_query": self.global_query}
        for name in (
            "file",
            "path",
            "tags",
            "properties",
            "content_patterns",
            "heading_patterns",
            "line_terms",
        ):
            value = getattr(self, name)
            if value:
                result[name] = list(value)
        if self.exact_phrase:
            result["exact_phrase"] = self.exact_phrase
        return result


@dataclass
class MatchResult:
    """An accepted note with its evidence."""

    document: NoteDocument
    matched: MatchedFilters
    line: LineHitDetail | None
    excerpts: list[Excerpt]
    filter_hits: FilterHitStats
    search_result: Any = None  # simple/fuzzy payload for the body
    regex_match_count: int | None = None

    @property
    def path(self) -> str:
        return self.document.path

    @property
    def name(self) -> str:
        return self.document.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        payload = self.search_result
        if payload is not None and hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {
            "path": self.document.path,
            "name": self.document.name,
            "stat": {"mtime": self.document.mtime, "size": self.document.size},
            "matched": self.matched.to_dict(),
            "line": self.line.to_dict() if self.line else None,
            "search_result": payload,
            "regex_match_count": self.regex_match_count,
            "excerpts": [excerpt.to_dict() for excerpt in self.excerpts],
            "filter_hits": self.filter_hits.to_dict(),
        }


@dataclass
class SearchSummary:
    """Aggregate statistics for one search run."""

    matched_files: int = 0
    total_line_hits: int = 0
    time_ms: int = 0
    files_scanned: int = 0
    files_failed: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class SearchOutcome:
    """Results plus summary, as returned by the search driver."""

    results: list[MatchResult] = field(default_factory=list)
    summary: SearchSummary = field(default_factory=SearchSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "summary": self.summary.to_dict(),
        }
