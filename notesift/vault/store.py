"""Filesystem-backed document store for an Obsidian-style vault."""

from pathlib import Path
from typing import Any

import aiofiles

from notesift.utils.lru_cache import VersionedCache
from notesift.utils.mixins import LoggerMixin
from notesift.vault.metadata import extract_metadata
from notesift.vault.models import NoteDocument, NoteMetadata


class VaultStore(LoggerMixin):
    """Enumerates Markdown notes under a directory and serves bodies/metadata.

    Files are read with ``aiofiles``. Bodies and extracted metadata live in
    separate LRU caches keyed by ``(path, mtime)``, so indexing a note that
    the search then rejects does not fill the body cache. ``disk_reads``
    counts every file read.
    """

    def __init__(
        self,
        vault_path: Path,
        exclude_folders: list[str] | None = None,
        cache_size: int = 512,
        index_size: int = 4096,
    ):
        self.vault_path = vault_path
        self.exclude_folders = (
            exclude_folders if exclude_folders is not None else [".obsidian", ".trash"]
        )
        self._bodies: VersionedCache[str] = VersionedCache(cache_size)
        self._metadata: VersionedCache[NoteMetadata] = VersionedCache(index_size)
        self.disk_reads = 0

    def _log_context(self) -> dict[str, Any]:
        return {"vault": str(self.vault_path)}

    def _should_exclude(self, relative: Path) -> bool:
        return any(part in self.exclude_folders for part in relative.parts[:-1])

    def list_documents(self) -> list[NoteDocument]:
        """Enumerate ``*.md`` files, skipping excluded folders."""
        if not self.vault_path.is_dir():
            self.logger.warning("Vault directory does not exist")
            return []

        documents = []
        for path in self.vault_path.rglob("*.md"):
            if not path.is_file():
                continue
            relative = path.relative_to(self.vault_path)
            if self._should_exclude(relative):
                continue
            try:
                stat = path.stat()
            except OSError as e:
                self.logger.warning(
                    "Failed to stat note", file_path=str(relative), error=str(e)
                )
                continue
            documents.append(
                NoteDocument(
                    path=relative.as_posix(),
                    mtime=stat.st_mtime * 1000,
                    size=stat.st_size,
                )
            )

        self.logger.debug("Vault enumerated", notes=len(documents))
        return documents

    async def _read(self, document: NoteDocument) -> str:
        self.disk_reads += 1
        async with aiofiles.open(
            self.vault_path / document.path, encoding="utf-8"
        ) as f:
            return await f.read()

    async def read_body(self, document: NoteDocument) -> str:
        """Read a note body through the cache."""
        cached = self._bodies.lookup(document.path, document.mtime)
        if cached is not None:
            return cached

        body = await self._read(document)
        self._bodies.store(document.path, document.mtime, body)
        return body

    async def get_metadata(self, document: NoteDocument) -> NoteMetadata:
        """Return metadata for a note, extracting it on first access.

        The text read for indexing is not added to the body cache. An
        unreadable note yields empty metadata; the failure resurfaces (and is
        counted) when the engine asks for its body.
        """
        metadata = self._metadata.lookup(document.path, document.mtime)
        if metadata is not None:
            return metadata

        text = self._bodies.get((document.path, document.mtime))
        if text is None:
            try:
                text = await self._read(document)
            except (OSError, UnicodeDecodeError) as e:
                self.logger.warning(
                    "Failed to index note", file_path=document.path, error=str(e)
                )
                return NoteMetadata()

        metadata = extract_metadata(text)
        self._metadata.store(document.path, document.mtime, metadata)
        return metadata

    def cache_stats(self) -> dict[str, Any]:
        return self._bodies.get_performance_stats()

    def index_stats(self) -> dict[str, Any]:
        return self._metadata.get_performance_stats()
