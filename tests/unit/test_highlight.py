"""Test highlight span collection and rendering."""

from notesift.search.highlight import (
    HighlightSegment,
    collect_spans,
    highlight,
    highlight_excerpt,
    merge_spans,
    render_html,
    render_rich,
)
from notesift.search.search_models import (
    Excerpt,
    FilterHitStats,
    MatchedFilters,
    MatchResult,
    RealLine,
)
from notesift.vault.models import NoteDocument


class TestSpans:
    """Test span collection and merging."""

    def test_plain_terms_all_occurrences(self):
        assert collect_spans("Bob and bob", terms=["bob"]) == [(0, 3), (8, 11)]

    def test_plain_terms_case_sensitive(self):
        assert collect_spans("Bob and bob", terms=["bob"], case_sensitive=True) == [(8, 11)]

    def test_patterns_follow_literal_rules(self):
        assert collect_spans("file a1.md", patterns=["a?.md"]) == [(5, 10)]
        assert collect_spans("x1 x22", patterns=[r"/x\d+/"]) == [(0, 2), (3, 6)]

    def test_zero_length_regex_matches_skipped(self):
        assert collect_spans("abc", patterns=["/x*/"]) == []

    def test_exact_phrase_ignores_case(self):
        assert collect_spans("Good Day", exact_phrase="good day", case_sensitive=True) == [(0, 8)]

    def test_merge_overlapping_and_adjacent(self):
        assert merge_spans([(5, 8), (0, 3), (2, 4), (8, 9), (11, 12)]) == [
            (0, 4),
            (5, 9),
            (11, 12),
        ]

    def test_merge_empty(self):
        assert merge_spans([]) == []


class TestRendering:
    """Test segment rendering."""

    def test_segments(self):
        assert highlight("alice and bob", terms=["alice", "bob"]) == [
            HighlightSegment("alice", True),
            HighlightSegment(" and ", False),
            HighlightSegment("bob", True),
        ]

    def test_no_hits(self):
        assert highlight("plain", terms=["x"]) == [HighlightSegment("plain", False)]

    def test_html_is_escaped(self):
        segments = highlight('<b>"bob"</b> & \'bob\'', terms=["bob"])
        assert render_html(segments) == (
            "&lt;b&gt;&quot;<mark>bob</mark>&quot;&lt;/b&gt; &amp; &#x27;<mark>bob</mark>&#x27;"
        )

    def test_rich_text(self):
        text = render_rich(highlight("[bold]bob[/bold]", terms=["bob"]))
        assert text.plain == "[bold]bob[/bold]"
        assert [(span.start, span.end) for span in text.spans] == [(6, 9)]


def test_highlight_excerpt_uses_result_filters():
    document = NoteDocument(path="a.md")
    result = MatchResult(
        document=document,
        matched=MatchedFilters(line_terms=("alice",), exact_phrase="good day"),
        line=None,
        excerpts=[],
        filter_hits=FilterHitStats(),
    )
    excerpt = Excerpt(RealLine(0), "alice: a Good day for beta", ("line", "content:beta"))

    segments = highlight_excerpt(excerpt, result, case_sensitive=False)

    assert [s.text for s in segments if s.highlighted] == ["alice", "Good day", "beta"]
