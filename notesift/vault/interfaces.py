"""
Document store interface consumed by the search engine.

The engine never touches the filesystem or parses Markdown; everything it
knows about a note comes through this protocol.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from notesift.vault.models import NoteDocument, NoteMetadata


@runtime_checkable
class DocumentStore(Protocol):
    """Interface for vault access (enumeration, body reads, metadata)."""

    def list_documents(self) -> Sequence[NoteDocument]:
        """Enumerate all Markdown notes in the vault."""
        ...

    async def read_body(self, document: NoteDocument) -> str:
        """Read a note body. May be cached; raises ``OSError`` on failure."""
        ...

    async def get_metadata(self, document: NoteDocument) -> NoteMetadata:
        """Return indexed metadata (tags, frontmatter, headings, list items).

        Only requested for notes that pass the file-name and path filters.
        """
        ...
