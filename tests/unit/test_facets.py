"""Test facet extraction from note metadata."""

import re

from notesift.search.facets import (
    frontmatter_pairs,
    headings_of,
    offset_to_line,
    property_matches,
    split_lines,
    tags_of,
)
from notesift.vault.models import HeadingInfo, ListValue, NoteMetadata, TextValue


def _meta(frontmatter=None, **kwargs) -> NoteMetadata:
    return NoteMetadata.from_raw_frontmatter(frontmatter, **kwargs)


class TestTags:
    """Test tag collection."""

    def test_body_and_frontmatter_tags_merged(self):
        meta = _meta({"tags": ["#project", "work"]}, tags=("#project", "#idea"))
        assert tags_of(meta) == ("project", "idea", "work")

    def test_frontmatter_tag_string_is_split(self):
        meta = _meta({"tags": "alpha, beta  #gamma"})
        assert tags_of(meta) == ("alpha", "beta", "gamma")

    def test_missing_tags_is_empty(self):
        assert tags_of(NoteMetadata()) == ()

    def test_non_string_tags_are_ignored(self):
        assert tags_of(_meta({"tags": {"nested": True}})) == ()


class TestPropertyMatches:
    """Test frontmatter property filters."""

    def test_existence(self):
        meta = _meta({"status": "done", "empty": None})
        assert property_matches(meta, "status", None, False)
        assert property_matches(meta, "empty", None, False)
        assert not property_matches(meta, "missing", None, False)

    def test_scalar_equality_with_case(self):
        meta = _meta({"status": "Done"})
        assert property_matches(meta, "status", "done", False)
        assert not property_matches(meta, "status", "done", True)
        assert not property_matches(meta, "status", "do", False)

    def test_list_any_element(self):
        meta = _meta({"owners": ["alice", "bob"]})
        assert property_matches(meta, "owners", "bob", False)
        assert not property_matches(meta, "owners", "carol", False)

    def test_regex_on_scalar(self):
        meta = _meta({"priority": 3})
        assert property_matches(meta, "priority", re.compile(r"^\d$"), False)

    def test_regex_on_joined_list(self):
        meta = _meta({"owners": ["alice", "bob"]})
        assert property_matches(meta, "owners", re.compile("alice,bob"), False)

    def test_regex_on_list_element(self):
        meta = _meta({"owners": ["alice", "bob"]})
        assert property_matches(meta, "owners", re.compile("^bob$"), False)

    def test_values_are_coerced(self):
        meta = _meta({"done": True, "count": 2.0})
        assert property_matches(meta, "done", "true", False)
        assert property_matches(meta, "count", "2", False)


class TestLines:
    """Test line helpers."""

    def test_split_lines_handles_crlf(self):
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]

    def test_offset_to_line(self):
        body = "one\ntwo\nthree"
        assert offset_to_line(body, 0) == 0
        assert offset_to_line(body, 4) == 1
        assert offset_to_line(body, 9) == 2


class TestHeadings:
    """Test heading resolution."""

    def test_stored_line_wins(self):
        meta = NoteMetadata(headings=(HeadingInfo(text="Intro", line=3, offset=0),))
        assert headings_of(meta, "x")[0].line == 3

    def test_offset_resolved_with_body(self):
        meta = NoteMetadata(headings=(HeadingInfo(text="Two", offset=4),))
        assert headings_of(meta, "one\n# Two")[0].line == 1
        assert headings_of(meta)[0].line is None

    def test_empty_headings_skipped(self):
        meta = NoteMetadata(headings=(HeadingInfo(text=""), HeadingInfo(text="Kept")))
        assert [h.text for h in headings_of(meta)] == ["Kept"]


def test_frontmatter_pairs():
    meta = NoteMetadata(
        frontmatter={
            "status": TextValue(value="done"),
            "owners": ListValue(items=("alice", "bob")),
        }
    )
    assert list(frontmatter_pairs(meta)) == [
        ("status", ["done"]),
        ("owners", ["alice", "bob"]),
    ]
