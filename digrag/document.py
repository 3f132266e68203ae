"""Documents held by the search indices, with their metadata."""

from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

_CATEGORY_SEPARATOR = " / "

_TIMESTAMP = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp ending in 'Z'."""
    return _to_utc(value).replace(tzinfo=None).isoformat() + "Z"


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be a string, got {type(text).__name__}")
    match = _TIMESTAMP.match(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    base = match["base"].replace("t", "T").replace(" ", "T")
    fraction = match["fraction"]
    offset = match["offset"]
    if offset in ("Z", "z"):
        offset = "+00:00"
    iso = base
    if fraction:
        iso += "." + fraction[:6].ljust(6, "0")
    iso += offset
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp: {text!r}") from exc
    return parsed.astimezone(timezone.utc)


def _require_str(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


@dataclass
class Metadata:
    """Title, date and tags of a document."""

    title: str
    date: datetime
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.date = _to_utc(self.date)
        self.tags = list(self.tags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "date": format_timestamp(self.date),
            "tags": list(self.tags),
        }

    @staticmethod
    def from_dict(data: Any) -> "Metadata":
        if not isinstance(data, dict):
            raise ValueError("metadata must be a JSON object")
        try:
            title = _require_str(data, "title")
            date = parse_timestamp(data["date"])
            tags = data["tags"]
        except KeyError as exc:
            raise ValueError(f"missing metadata field {exc.args[0]!r}") from exc
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValueError("field 'tags' must be a list of strings")
        return Metadata(title=title, date=date, tags=tags)


@dataclass
class Document:
    """A document in the search index."""

    id: str
    metadata: Metadata
    text: str

    @classmethod
    def create(
        cls, title: str, date: datetime, tags: Iterable[str], text: str
    ) -> "Document":
        """Create a document with a freshly generated random id."""
        return cls(str(uuid.uuid4()), Metadata(title, date, list(tags)), text)

    @classmethod
    def with_content_id(
        cls, title: str, date: datetime, tags: Iterable[str], text: str
    ) -> "Document":
        """Create a document whose id is the hash of its title and text."""
        doc_id = cls.compute_content_hash(title, text)
        return cls(doc_id, Metadata(title, date, list(tags)), text)

    @staticmethod
    def compute_content_hash(title: str, text: str) -> str:
        """First 16 hex characters of SHA-256 over title, NUL, text."""
        digest = hashlib.sha256()
        digest.update(title.encode("utf-8"))
        digest.update(b"\0")
        digest.update(text.encode("utf-8"))
        return digest.digest()[:8].hex()

    def content_hash(self) -> str:
        """Hash of this document's title and text."""
        return self.compute_content_hash(self.metadata.title, self.text)

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def date(self) -> datetime:
        return self.metadata.date

    @property
    def tags(self) -> list[str]:
        return self.metadata.tags

    def has_tag(self, tag: str) -> bool:
        return tag in self.metadata.tags

    def category(self) -> str | None:
        """First part of a ' / ' separated title, or None for an empty title."""
        if not self.title:
            return None
        return self.title.split(_CATEGORY_SEPARATOR)[0]

    def subcategory(self) -> str | None:
        """Second part of a ' / ' separated title, if there is one."""
        parts = self.title.split(_CATEGORY_SEPARATOR)
        return parts[1] if len(parts) > 1 else None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "metadata": self.metadata.to_dict(), "text": self.text}

    @staticmethod
    def from_dict(data: Any) -> "Document":
        if not isinstance(data, dict):
            raise ValueError("document must be a JSON object")
        try:
            doc_id = _require_str(data, "id")
            metadata = Metadata.from_dict(data["metadata"])
            text = _require_str(data, "text")
        except KeyError as exc:
            raise ValueError(f"missing document field {exc.args[0]!r}") from exc
        return Document(doc_id, metadata, text)