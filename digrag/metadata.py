"""Index metadata: schema version, creation time and per-document hashes."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CURRENT_SCHEMA_VERSION = "2.0"

_FLOAT = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


def _parse_version(text: str) -> float:
    if _FLOAT.fullmatch(text) is None:
        return 0.0
    return float(text)


@dataclass
class IndexMetadata:
    """Metadata stored next to the indices, used for incremental builds."""

    doc_count: int
    created_at: str
    embedding_model: str | None = None
    schema_version: str = ""
    doc_hashes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(cls, doc_count: int, embedding_model: str | None) -> "IndexMetadata":
        """New metadata stamped with the current time and schema version."""
        return cls(
            doc_count=doc_count,
            created_at=datetime.now(timezone.utc).isoformat(),
            embedding_model=embedding_model,
            schema_version=CURRENT_SCHEMA_VERSION,
        )

    def needs_full_rebuild(self) -> bool:
        """True when the schema version is missing or older than 2.0."""
        if not self.schema_version:
            return True
        return _parse_version(self.schema_version) < 2.0

    def update_doc_hash(self, doc_id: str, content_hash: str) -> None:
        self.doc_hashes[doc_id] = content_hash

    def remove_doc_hash(self, doc_id: str) -> None:
        self.doc_hashes.pop(doc_id, None)

    def get_doc_hash(self, doc_id: str) -> str | None:
        return self.doc_hashes.get(doc_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_count": self.doc_count,
            "created_at": self.created_at,
            "embedding_model": self.embedding_model,
            "schema_version": self.schema_version,
            "doc_hashes": dict(self.doc_hashes),
        }

    @staticmethod
    def from_dict(data: Any) -> "IndexMetadata":
        if not isinstance(data, dict):
            raise ValueError("metadata must be a JSON object")
        try:
            doc_count = data["doc_count"]
            created_at = data["created_at"]
        except KeyError as exc:
            raise ValueError(f"missing metadata field {exc.args[0]!r}") from exc
        if isinstance(doc_count, bool) or not isinstance(doc_count, int) or doc_count < 0:
            raise ValueError("field 'doc_count' must be a non-negative integer")
        if not isinstance(created_at, str):
            raise ValueError("field 'created_at' must be a string")
        embedding_model = data.get("embedding_model")
        if embedding_model is not None and not isinstance(embedding_model, str):
            raise ValueError("field 'embedding_model' must be a string or null")
        schema_version = data.get("schema_version", "")
        if not isinstance(schema_version, str):
            raise ValueError("field 'schema_version' must be a string")
        doc_hashes = data.get("doc_hashes", {})
        if not isinstance(doc_hashes, dict) or not all(
            isinstance(v, str) for v in doc_hashes.values()
        ):
            raise ValueError("field 'doc_hashes' must map strings to strings")
        return IndexMetadata(
            doc_count=doc_count,
            created_at=created_at,
            embedding_model=embedding_model,
            schema_version=schema_version,
            doc_hashes=dict(doc_hashes),
        )

    def save(self, path: str | os.PathLike) -> None:
        """Write the metadata as pretty-printed JSON."""
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    @staticmethod
    def load(path: str | os.PathLike) -> "IndexMetadata":
        """Read metadata written by :meth:`save`."""
        content = Path(path).read_text(encoding="utf-8")
        return IndexMetadata.from_dict(json.loads(content))