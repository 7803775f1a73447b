"""Free-text query strategies, one per search mode.

The evaluator only talks to ``GlobalMatcher``; each mode decides what a hit
is and how hits are counted:

- simple: every whitespace-separated token present, in any order
- fuzzy: the query's characters appear in order (gaps allowed)
- regex: explicit ``/body/flags`` or the query as a case-insensitive regex;
  counts are numbers of non-overlapping matches
- exact: case-insensitive contiguous phrase

Free-text matching ignores the filters' case-sensitivity option.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from notesift.search.patterns import (
    count_regex_matches,
    includes,
    try_parse_explicit_regex,
)
from notesift.search.search_models import SearchMode

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PreparedSearchResult:
    """Hit payload of the simple and fuzzy searchers."""

    score: float
    matches: tuple[tuple[int, int], ...]

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "matches": [list(m) for m in self.matches]}


PreparedSearch = Callable[[str], PreparedSearchResult | None]


def prepare_simple_search(query: str) -> PreparedSearch:
    """Tokenized AND search: all query tokens must occur (case-insensitive)."""
    tokens = [token.casefold() for token in query.split()]

    def search(text: str) -> PreparedSearchResult | None:
        if not tokens:
            return None
        haystack = text.casefold()
        spans = []
        for token in tokens:
            pos = haystack.find(token)
            if pos == -1:
                return None
            spans.append((pos, pos + len(token)))
        spans.sort()
        # Earlier and tighter clusters score higher (closer to zero)
        score = -float(spans[0][0]) - (spans[-1][1] - spans[0][0]) / 100
        return PreparedSearchResult(score=score, matches=tuple(spans))

    return search


def prepare_fuzzy_search(query: str) -> PreparedSearch:
    """Ordered subsequence search with a contiguity-weighted score."""
    needle = "".join(query.split()).casefold()

    def search(text: str) -> PreparedSearchResult | None:
        if not needle:
            return None
        haystack = text.casefold()
        positions = []
        start = 0
        for ch in needle:
            pos = haystack.find(ch, start)
            if pos == -1:
                return None
            positions.append(pos)
            start = pos + 1

        score = 0.0
        runs: list[list[int]] = []
        previous = -2
        for pos in positions:
            if pos == previous + 1:
                score += 2.0
                runs[-1][1] = pos + 1
            else:
                score -= 0.1 * (pos - previous - 1 if previous >= 0 else pos)
                runs.append([pos, pos + 1])
            if pos == 0 or not haystack[pos - 1].isalnum():
                score += 1.0
            previous = pos
        return PreparedSearchResult(
            score=round(score, 3), matches=tuple((s, e) for s, e in runs)
        )

    return search


@dataclass(frozen=True)
class FacetHit:
    hit: bool
    count: int = 0


_MISS = FacetHit(False, 0)


class GlobalMatcher(ABC):
    """Uniform interface over the four free-text modes."""

    mode: SearchMode

    @abstractmethod
    def test(self, value: str) -> FacetHit:
        """Test one facet string (name, path, a tag, a heading, ...)."""

    @abstractmethod
    def test_line(self, line: str) -> bool:
        """Per-line test used for body excerpts."""

    def evaluate_body(self, text: str, lines: list[str]) -> FacetHit:
        """Acceptance is decided on the whole body, the count per line."""
        if not self.test(text).hit:
            return _MISS
        return FacetHit(True, sum(1 for line in lines if self.test_line(line)))

    def body_payload(self, text: str) -> Any:
        """Mode-specific payload kept on the result for inspection."""
        return None

    @property
    def source(self) -> str:
        return f"globalQuery:{self.mode.value}"


class PreparedSearchMatcher(GlobalMatcher):
    """simple / fuzzy: hit or no hit, count 1 per string."""

    def __init__(self, mode: SearchMode, search: PreparedSearch):
        self.mode = mode
        self._search = search

    def test(self, value: str) -> FacetHit:
        if not value:
            return _MISS
        return FacetHit(True, 1) if self._search(value) else _MISS

    def test_line(self, line: str) -> bool:
        return bool(line) and self._search(line) is not None

    def body_payload(self, text: str) -> PreparedSearchResult | None:
        return self._search(text)


class RegexMatcher(GlobalMatcher):
    """regex: counts are non-overlapping match counts."""

    mode = SearchMode.REGEX

    def __init__(self, pattern: re.Pattern[str]):
        self.pattern = pattern

    def test(self, value: str) -> FacetHit:
        if not value:
            return _MISS
        count = count_regex_matches(value, self.pattern)
        return FacetHit(count > 0, count)

    def test_line(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def evaluate_body(self, text: str, lines: list[str]) -> FacetHit:
        return self.test(text)


class ExactMatcher(GlobalMatcher):
    """exact: case-insensitive phrase containment."""

    mode = SearchMode.EXACT

    def __init__(self, phrase: str):
        self.phrase = phrase

    def test(self, value: str) -> FacetHit:
        if not value or not self.phrase:
            return _MISS
        return FacetHit(True, 1) if includes(value, self.phrase, False) else _MISS

    def test_line(self, line: str) -> bool:
        return bool(self.phrase) and includes(line, self.phrase, False)


def compile_global_regex(query: str) -> re.Pattern[str]:
    """Regex for regex mode.

    An explicit literal keeps its own flags; otherwise the query is compiled
    case-insensitively. A query that is not a valid regex is matched as
    literal text.
    """
    explicit = try_parse_explicit_regex(query)
    if explicit is not None:
        return explicit
    try:
        return re.compile(query, re.IGNORECASE)
    except re.error as e:
        logger.warning("Invalid free-text regex, matching literally", query=query, error=str(e))
        return re.compile(re.escape(query), re.IGNORECASE)


def create_matcher(query: str, mode: SearchMode) -> GlobalMatcher | None:
    """Build the strategy for ``mode``; None when the query is empty."""
    if not query:
        return None
    if mode is SearchMode.SIMPLE:
        return PreparedSearchMatcher(mode, prepare_simple_search(query))
    if mode is SearchMode.FUZZY:
        return PreparedSearchMatcher(mode, prepare_fuzzy_search(query))
    if mode is SearchMode.REGEX:
        return RegexMatcher(compile_global_regex(query))
    return ExactMatcher(query.strip())
