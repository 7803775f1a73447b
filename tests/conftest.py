"""
Shared fixtures and collection settings.

- settings are read from a clean test environment and the cache is reset
  around every test
- ``memory_store`` is an in-memory document store that records body reads
- ``vault_dir`` is a small on-disk vault for store and CLI tests
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest

# Project root (parent of this file's directory) for `import notesift`
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from notesift.config import clear_settings_cache  # noqa: E402
from notesift.vault import NoteDocument, NoteMetadata, extract_metadata  # noqa: E402


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Minimal environment; ``monkeypatch`` restores it after each test."""
    monkeypatch.setenv("NOTESIFT_ENVIRONMENT", "testing")
    monkeypatch.setenv("NOTESIFT_VAULT_PATH", str(tmp_path / "vault"))
    # A developer's .env must not leak into tests
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@dataclass
class MemoryNote:
    document: NoteDocument
    body: str
    metadata: NoteMetadata


class MemoryStore:
    """Document store backed by a dict; records body and metadata requests."""

    def __init__(self) -> None:
        self.notes: dict[str, MemoryNote] = {}
        self.reads: list[str] = []
        self.metadata_requests: list[str] = []
        self.failing: set[str] = set()

    def add(
        self,
        path: str,
        body: str = "",
        mtime: float = 0.0,
        metadata: NoteMetadata | None = None,
    ) -> NoteDocument:
        document = NoteDocument(path=path, mtime=mtime, size=len(body.encode("utf-8")))
        if metadata is None:
            metadata = extract_metadata(body)
        self.notes[path] = MemoryNote(document, body, metadata)
        return document

    def list_documents(self) -> list[NoteDocument]:
        return [note.document for note in self.notes.values()]

    async def read_body(self, document: NoteDocument) -> str:
        self.reads.append(document.path)
        if document.path in self.failing:
            raise OSError(f"cannot read {document.path}")
        return self.notes[document.path].body

    async def get_metadata(self, document: NoteDocument) -> NoteMetadata:
        self.metadata_requests.append(document.path)
        return self.notes[document.path].metadata


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def scenario_store(memory_store: MemoryStore) -> MemoryStore:
    """The four-note corpus used by the end-to-end tests."""
    memory_store.add("people/bob.md", "hello bob", mtime=4000)
    memory_store.add("journal/mary.md", "Mary says good", mtime=3000)
    memory_store.add(
        "projects/launch.md",
        "alpha",
        mtime=2000,
        metadata=NoteMetadata.from_raw_frontmatter({"tags": ["project"]}),
    )
    memory_store.add(
        "tasks/chores.md",
        "---\nstatus: done\n---\nsweep the floor",
        mtime=1000,
    )
    return memory_store


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """A small vault on disk, including an excluded folder."""
    vault = tmp_path / "vault"
    (vault / "Projects").mkdir(parents=True)
    (vault / "Daily").mkdir()
    (vault / ".obsidian").mkdir()

    (vault / "Projects" / "roadmap.md").write_text(
        "---\n"
        "tags: [project, planning]\n"
        "status: active\n"
        "---\n"
        "# Roadmap\n"
        "\n"
        "Ship alpha with alice and bob.\n"
        "## Risks\n"
        "- [ ] alice reviews the budget\n",
        encoding="utf-8",
    )
    (vault / "Daily" / "2024-09-01.md").write_text(
        "# Monday\nMet bob for coffee. #meeting\n",
        encoding="utf-8",
    )
    (vault / ".obsidian" / "workspace.md").write_text("alice\n", encoding="utf-8")
    (vault / "notes.txt").write_text("alice\n", encoding="utf-8")
    return vault
