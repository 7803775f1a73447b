"""Test the search driver end to end."""

import asyncio

import pytest

from notesift.config import Settings
from notesift.search import (
    EmptyQueryError,
    GlobalQueryTargets,
    NoteSearch,
    ParsedQuery,
    QueryBuilder,
    SearchMode,
    SearchOptions,
    SortMode,
    evaluate,
    parse_query_string,
    summarize_breakdown,
)
from notesift.search.note_search import sort_documents
from notesift.vault.models import NoteDocument


class TestScenario:
    """The four-note corpus."""

    @pytest.mark.asyncio
    async def test_tag_and_content(self, scenario_store):
        parsed = QueryBuilder().add_tag("project").add_content("alpha").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions())
        assert [r.path for r in outcome.results] == ["projects/launch.md"]

    @pytest.mark.asyncio
    async def test_simple_body_only(self, scenario_store):
        parsed = QueryBuilder().with_global_query("good").build()
        options = SearchOptions(
            mode=SearchMode.SIMPLE,
            global_query_targets=GlobalQueryTargets.only("body"),
        )
        outcome = await evaluate(scenario_store, parsed, options)
        assert [r.path for r in outcome.results] == ["journal/mary.md"]

    @pytest.mark.asyncio
    async def test_property_filter(self, scenario_store):
        parsed = parse_query_string("[status:done]").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions())
        assert [r.path for r in outcome.results] == ["tasks/chores.md"]

    @pytest.mark.asyncio
    async def test_name_facet(self, scenario_store):
        parsed = QueryBuilder().with_global_query("bob").build()
        options = SearchOptions(global_query_targets=GlobalQueryTargets.only("name"))
        outcome = await evaluate(scenario_store, parsed, options)
        assert [r.path for r in outcome.results] == ["people/bob.md"]
        assert scenario_store.reads == []

    @pytest.mark.asyncio
    async def test_and_composition_is_intersection(self, scenario_store):
        options = SearchOptions()
        by_path = await evaluate(scenario_store, QueryBuilder().add_path("s/").build(), options)
        by_content = await evaluate(
            scenario_store, QueryBuilder().add_content("o").build(), options
        )
        both = await evaluate(
            scenario_store, QueryBuilder().add_path("s/").add_content("o").build(), options
        )
        expected = {r.path for r in by_path.results} & {r.path for r in by_content.results}
        assert {r.path for r in both.results} == expected


class TestDriver:
    """Test ordering, limits, failures and cancellation."""

    @pytest.mark.asyncio
    async def test_sort_orders(self, scenario_store):
        parsed = QueryBuilder().add_file("*.md").build()
        newest = await evaluate(scenario_store, parsed, SearchOptions())
        oldest = await evaluate(scenario_store, parsed, SearchOptions(sort=SortMode.MTIME_ASC))
        by_path = await evaluate(scenario_store, parsed, SearchOptions(sort=SortMode.PATH_ASC))

        assert [r.path for r in newest.results][0] == "people/bob.md"
        assert [r.path for r in oldest.results][0] == "tasks/chores.md"
        assert [r.path for r in by_path.results] == [
            "journal/mary.md",
            "people/bob.md",
            "projects/launch.md",
            "tasks/chores.md",
        ]

    @pytest.mark.asyncio
    async def test_limit_stops_scan(self, scenario_store):
        parsed = QueryBuilder().add_file("*.md").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions(limit=2))
        assert outcome.summary.matched_files == 2
        assert outcome.summary.files_scanned == 2

    @pytest.mark.asyncio
    async def test_non_positive_limit_means_unlimited(self, scenario_store):
        parsed = QueryBuilder().add_file("*.md").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions(limit=0))
        assert outcome.summary.matched_files == 4

    @pytest.mark.asyncio
    async def test_rejected_by_file_never_read(self, scenario_store):
        parsed = QueryBuilder().add_file("launch").add_content("alpha").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions())
        assert [r.path for r in outcome.results] == ["projects/launch.md"]
        assert scenario_store.reads == ["projects/launch.md"]

    @pytest.mark.asyncio
    async def test_unreadable_note_skipped(self, scenario_store):
        scenario_store.failing.add("journal/mary.md")
        parsed = QueryBuilder().add_content("o").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions())
        assert "journal/mary.md" not in [r.path for r in outcome.results]
        assert outcome.summary.files_failed == 1
        assert outcome.summary.files_scanned == 4

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, scenario_store):
        cancel = asyncio.Event()
        cancel.set()
        parsed = QueryBuilder().add_file("*.md").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions(), cancel)
        assert outcome.results == []
        assert outcome.summary.cancelled

    @pytest.mark.asyncio
    async def test_cancelled_mid_scan_keeps_partial_results(self, memory_store):
        for name, mtime in (("a.md", 3), ("b.md", 2), ("c.md", 1)):
            memory_store.add(name, "note", mtime=mtime)
        cancel = asyncio.Event()
        read_body = memory_store.read_body

        async def read_then_cancel(document):
            cancel.set()
            return await read_body(document)

        memory_store.read_body = read_then_cancel
        parsed = QueryBuilder().add_content("note").build()
        outcome = await evaluate(memory_store, parsed, SearchOptions(), cancel)

        assert [r.path for r in outcome.results] == ["a.md"]
        assert outcome.summary.cancelled
        assert outcome.summary.files_scanned == 1
        assert memory_store.reads == ["a.md"]

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, scenario_store):
        with pytest.raises(EmptyQueryError):
            await evaluate(scenario_store, ParsedQuery(), SearchOptions())

    @pytest.mark.asyncio
    async def test_line_hits_summed(self, memory_store):
        memory_store.add("a.md", "alice bob\nbob alice\n", mtime=2)
        memory_store.add("b.md", "alice and bob", mtime=1)
        parsed = QueryBuilder().add_line_terms("alice bob").build()
        outcome = await evaluate(memory_store, parsed, SearchOptions())
        assert outcome.summary.total_line_hits == 3
        assert outcome.results[0].line.hit_line_indices == (0, 1)

    @pytest.mark.asyncio
    async def test_excerpt_settings_applied(self, memory_store):
        memory_store.add("a.md", "\n".join(f"hit {i}" for i in range(8)))
        settings = Settings(excerpt_limit_per_file=2, excerpt_max_line_length=4)
        parsed = QueryBuilder().add_content("hit").build()
        outcome = await NoteSearch(memory_store, settings).search(parsed, SearchOptions())
        assert [e.text for e in outcome.results[0].excerpts] == ["hit…", "hit…"]


class TestResultShape:
    """Test result payloads and diagnostics."""

    @pytest.mark.asyncio
    async def test_to_dict(self, memory_store):
        memory_store.add("notes/a.md", "say good things", mtime=10)
        parsed = QueryBuilder().with_global_query("good").build()
        outcome = await evaluate(memory_store, parsed, SearchOptions(mode=SearchMode.EXACT))

        payload = outcome.to_dict()
        result = payload["results"][0]
        assert result["path"] == "notes/a.md"
        assert result["name"] == "a.md"
        assert result["stat"] == {"mtime": 10, "size": 15}
        assert result["matched"] == {"global_query": True, "exact_phrase": "good"}
        assert result["excerpts"] == [
            {"line": 0, "text": "say good things", "sources": ["globalQuery:exact"]}
        ]
        assert result["filter_hits"]["global_query"] == 1
        assert payload["summary"]["matched_files"] == 1

    @pytest.mark.asyncio
    async def test_simple_payload_kept(self, memory_store):
        memory_store.add("a.md", "hi bob")
        parsed = QueryBuilder().with_global_query("bob").build()
        options = SearchOptions(global_query_targets=GlobalQueryTargets.only("body"))
        outcome = await evaluate(memory_store, parsed, options)
        assert outcome.results[0].search_result.matches == ((3, 6),)

    @pytest.mark.asyncio
    async def test_breakdown_lines(self, scenario_store):
        parsed = parse_query_string("tag:project content:alpha launch").build()
        outcome = await evaluate(scenario_store, parsed, SearchOptions())
        lines = summarize_breakdown(outcome, parsed)

        assert lines[0].startswith("Breakdown: tag")
        assert "  projects/launch.md: tag matches=1" in lines
        assert "  projects/launch.md: content matches=1" in lines
        assert any(line.startswith("  projects/launch.md: total=") for line in lines)


def test_sort_documents_path_ties_break_on_case():
    documents = [NoteDocument(path=p) for p in ["b.md", "A.md", "a.md"]]
    assert [d.path for d in sort_documents(documents, SortMode.PATH_ASC)] == [
        "A.md",
        "a.md",
        "b.md",
    ]


class TestGlobalQueryTargets:
    """Test facet target selection."""

    def test_only(self):
        targets = GlobalQueryTargets.only("name", "tags")
        assert targets.enabled() == ["name", "tags"]
        assert targets.any_enabled()
        assert not GlobalQueryTargets.only().any_enabled()

    def test_unknown_facet(self):
        with pytest.raises(ValueError, match="colour"):
            GlobalQueryTargets.only("colour")
