"""Document store keyed by document id."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterable

from digrag.document import Document


class Docstore:
    """Holds full documents for retrieval by id, tag or date."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def add(self, doc: Document) -> None:
        self._documents[doc.id] = doc

    def get(self, doc_id: str) -> Document | None:
        return self._documents.get(doc_id)

    def contains(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def doc_ids(self) -> list[str]:
        return list(self._documents)

    def documents(self) -> dict[str, Document]:
        """The id-to-document mapping."""
        return self._documents

    def get_by_tag(self, tag: str) -> list[Document]:
        return [doc for doc in self._documents.values() if doc.has_tag(tag)]

    def get_all_tags(self) -> list[str]:
        """All distinct tags, sorted."""
        return sorted({tag for doc in self._documents.values() for tag in doc.tags})

    def get_recent(self, limit: int) -> list[Document]:
        """Up to ``limit`` documents, newest first."""
        docs = sorted(self._documents.values(), key=lambda d: d.date, reverse=True)
        return docs[:limit]

    def remove(self, doc_id: str) -> None:
        self._documents.pop(doc_id, None)

    def remove_batch(self, doc_ids: Iterable[str]) -> None:
        for doc_id in doc_ids:
            self._documents.pop(doc_id, None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": {key: doc.to_dict() for key, doc in self._documents.items()}
        }

    @staticmethod
    def from_dict(data: Any) -> "Docstore":
        if not isinstance(data, dict) or "documents" not in data:
            raise ValueError("docstore must be an object with a 'documents' field")
        documents = data["documents"]
        if not isinstance(documents, dict):
            raise ValueError("field 'documents' must be a JSON object")
        store = Docstore()
        for key, value in documents.items():
            store._documents[key] = Document.from_dict(value)
        return store

    def save(self, path: str | os.PathLike) -> None:
        """Write the store as pretty-printed JSON."""
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    @staticmethod
    def load(path: str | os.PathLike) -> "Docstore":
        """Read a store written by :meth:`save`."""
        content = Path(path).read_text(encoding="utf-8")
        try:
            data = json.loads(content)
        except ValueError as exc:
            raise ValueError(f"Failed to parse docstore: {exc}") from exc
        return Docstore.from_dict(data)