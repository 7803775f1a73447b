"""
Vault document and metadata models
"""

import json
from datetime import date, datetime
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def coerce_scalar(value: Any) -> str:
    """Render a single frontmatter scalar the way it reads in the note."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


class TextValue(BaseModel):
    """Frontmatter scalar (string, number, boolean, date)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str

    def as_text(self) -> str:
        return self.value

    def as_strings(self) -> list[str]:
        return [self.value]


class ListValue(BaseModel):
    """Frontmatter list; elements are kept as their string renderings."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    items: tuple[str, ...] = ()

    def as_text(self) -> str:
        # Comma-joined without spaces, matching how a list prints inline
        return ",".join(self.items)

    def as_strings(self) -> list[str]:
        return list(self.items)


class OtherValue(BaseModel):
    """Anything else (nested mappings, nulls)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["other"] = "other"
    text: str = ""

    def as_text(self) -> str:
        return self.text

    def as_strings(self) -> list[str]:
        return [self.text]


FrontmatterValue = Annotated[
    TextValue | ListValue | OtherValue, Field(discriminator="kind")
]


def to_frontmatter_value(raw: Any) -> TextValue | ListValue | OtherValue:
    """Classify a parsed YAML value into the tagged union."""
    if isinstance(raw, list | tuple | set):
        return ListValue(items=tuple(coerce_scalar(item) for item in raw))
    if raw is None or isinstance(raw, dict):
        return OtherValue(text=coerce_scalar(raw))
    return TextValue(value=coerce_scalar(raw))


class HeadingInfo(BaseModel):
    """A Markdown heading with its position in the body."""

    model_config = ConfigDict(frozen=True)

    text: str
    level: int = 1
    line: int | None = None  # 0-based line of the heading
    offset: int | None = None  # character offset, used when line is unknown


class ListItemInfo(BaseModel):
    """A list item; tasks carry a checkbox state."""

    model_config = ConfigDict(frozen=True)

    line: int
    is_task: bool = False
    checked: bool = False


class NoteMetadata(BaseModel):
    """Pre-computed metadata for one note, as provided by the document store."""

    model_config = ConfigDict(frozen=True)

    tags: tuple[str, ...] = ()  # in-body tags as written, usually "#tag"
    frontmatter: dict[str, FrontmatterValue] = Field(default_factory=dict)
    headings: tuple[HeadingInfo, ...] = ()
    list_items: tuple[ListItemInfo, ...] = ()

    @classmethod
    def from_raw_frontmatter(
        cls, frontmatter: dict[str, Any] | None = None, **kwargs: Any
    ) -> "NoteMetadata":
        """Build metadata from an untyped frontmatter mapping."""
        converted = {
            str(key): to_frontmatter_value(value)
            for key, value in (frontmatter or {}).items()
        }
        return cls(frontmatter=converted, **kwargs)


class NoteDocument(BaseModel):
    """Identity and stat of one note in the vault."""

    model_config = ConfigDict(frozen=True)

    path: str  # vault-relative POSIX path, e.g. "Projects/plan.md"
    mtime: float = 0.0  # milliseconds since the epoch
    size: int = 0

    @property
    def name(self) -> str:
        """File name including extension."""
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem
