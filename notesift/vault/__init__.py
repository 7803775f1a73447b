"""
Vault access: document models, the store protocol and a filesystem store
"""

from notesift.vault.interfaces import DocumentStore
from notesift.vault.metadata import extract_metadata
from notesift.vault.models import (
    HeadingInfo,
    ListItemInfo,
    ListValue,
    NoteDocument,
    NoteMetadata,
    OtherValue,
    TextValue,
)
from notesift.vault.store import VaultStore

__all__ = [
    "DocumentStore",
    "VaultStore",
    "extract_metadata",
    # Models
    "NoteDocument",
    "NoteMetadata",
    "HeadingInfo",
    "ListItemInfo",
    "TextValue",
    "ListValue",
    "OtherValue",
]
