"""Vector index for semantic search by cosine similarity."""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence


@dataclass
class SearchResult:
    """A document id with its relevance score."""

    doc_id: str
    score: float


def _float_list(values: Any, what: str) -> list[float]:
    if not isinstance(values, list) or not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in values
    ):
        raise ValueError(f"{what} must be a list of numbers")
    return [float(v) for v in values]


class VectorIndex:
    """Embedding vectors keyed by document id."""

    def __init__(self, dimension: int = 0) -> None:
        self.doc_ids: list[str] = []
        self.vectors: list[list[float]] = []
        self.dimension = dimension

    def add(self, doc_id: str, vector: Sequence[float]) -> None:
        """Add a vector; an index of dimension 0 takes the vector's length."""
        vector = [float(v) for v in vector]
        if self.dimension == 0:
            self.dimension = len(vector)
        self.doc_ids.append(doc_id)
        self.vectors.append(vector)

    def search(self, query_vec: Sequence[float], top_k: int) -> list[SearchResult]:
        """Documents with positive similarity to the query, best first."""
        if not self.vectors or not query_vec:
            return []
        scored = [
            (doc_id, score)
            for doc_id, vec in zip(self.doc_ids, self.vectors)
            if (score := self.cosine_similarity(query_vec, vec)) > 0.0
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [SearchResult(doc_id, score) for doc_id, score in scored[:top_k]]

    @staticmethod
    def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
        """Cosine of the angle between two vectors; 0.0 if undefined."""
        if len(a) != len(b) or not a:
            return 0.0
        dot = sum(x * y for x, y in zip(a, b))
        norm_a = math.sqrt(sum(x * x for x in a))
        norm_b = math.sqrt(sum(y * y for y in b))
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0
        return dot / (norm_a * norm_b)

    def contains(self, doc_id: str) -> bool:
        return doc_id in self.doc_ids

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self.doc_ids

    def __len__(self) -> int:
        return len(self.doc_ids)

    def remove(self, doc_id: str) -> None:
        """Remove the first entry with this id, if any."""
        try:
            idx = self.doc_ids.index(doc_id)
        except ValueError:
            return
        del self.doc_ids[idx]
        del self.vectors[idx]

    def remove_batch(self, doc_ids: Iterable[str]) -> None:
        for doc_id in doc_ids:
            self.remove(doc_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_ids": list(self.doc_ids),
            "vectors": [list(v) for v in self.vectors],
            "dimension": self.dimension,
        }

    @staticmethod
    def from_dict(data: Any) -> "VectorIndex":
        if not isinstance(data, dict):
            raise ValueError("vector index must be a JSON object")
        try:
            doc_ids = data["doc_ids"]
            vectors = data["vectors"]
            dimension = data["dimension"]
        except KeyError as exc:
            raise ValueError(f"missing vector index field {exc.args[0]!r}") from exc
        if not isinstance(doc_ids, list) or not all(isinstance(d, str) for d in doc_ids):
            raise ValueError("field 'doc_ids' must be a list of strings")
        if not isinstance(vectors, list):
            raise ValueError("field 'vectors' must be a list")
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension < 0:
            raise ValueError("field 'dimension' must be a non-negative integer")
        index = VectorIndex(dimension)
        index.doc_ids = list(doc_ids)
        index.vectors = [_float_list(v, "each vector") for v in vectors]
        return index

    def save(self, path: str | os.PathLike) -> None:
        """Write the index as pretty-printed JSON."""
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    @staticmethod
    def load(path: str | os.PathLike) -> "VectorIndex":
        """Read an index written by :meth:`save`."""
        content = Path(path).read_text(encoding="utf-8")
        return VectorIndex.from_dict(json.loads(content))