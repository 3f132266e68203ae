"""Difference between a new document set and an existing index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from digrag.document import Document


@dataclass
class IncrementalDiff:
    """Documents classified as added, modified, removed or unchanged."""

    added: list[Document] = field(default_factory=list)
    modified: list[Document] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @classmethod
    def compute(
        cls, new_docs: Iterable[Document], existing_hashes: Mapping[str, str]
    ) -> "IncrementalDiff":
        """Compare documents against a mapping of doc id to content hash."""
        diff = cls()
        seen: set[str] = set()
        for doc in new_docs:
            existing_hash = existing_hashes.get(doc.id)
            if existing_hash is None:
                diff.added.append(doc)
                continue
            seen.add(doc.id)
            if doc.content_hash() == existing_hash:
                diff.unchanged.append(doc.id)
            else:
                diff.modified.append(doc)
        diff.removed = [doc_id for doc_id in existing_hashes if doc_id not in seen]
        return diff

    def added_count(self) -> int:
        return len(self.added)

    def modified_count(self) -> int:
        return len(self.modified)

    def removed_count(self) -> int:
        return len(self.removed)

    def unchanged_count(self) -> int:
        return len(self.unchanged)

    def embeddings_needed(self) -> int:
        """Number of documents that need new embeddings."""
        return len(self.added) + len(self.modified)

    def needs_embedding(self) -> list[Document]:
        """Added documents followed by modified ones."""
        return [*self.added, *self.modified]

    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.removed)