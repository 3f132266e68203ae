"""BM25 keyword index over tokenized documents."""

from __future__ import annotations

import json
import math
import os
import re
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from digrag.document import Document
from digrag.vector import SearchResult

Tokenizer = Callable[[str], list[str]]

BM25_K1 = 1.2
BM25_B = 0.75

_WORD_RUN = re.compile(r"[^\W_]+")
_SCRIPT_SEGMENT = re.compile(r"[A-Za-z0-9]+|[^A-Za-z0-9]+")
_ASCII_SEGMENT = re.compile(r"[A-Za-z0-9]+")
_CAMEL_PART = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def _default_tokenize(text: str) -> list[str]:
    """Lowercased ASCII words with their camel-case parts, and CJK bigrams."""
    tokens: list[str] = []
    for run in _WORD_RUN.findall(text):
        for segment in _SCRIPT_SEGMENT.findall(run):
            if _ASCII_SEGMENT.fullmatch(segment):
                tokens.append(segment.lower())
                parts = _CAMEL_PART.findall(segment)
                if len(parts) > 1:
                    tokens.extend(part.lower() for part in parts)
            elif len(segment) == 1:
                tokens.append(segment)
            else:
                tokens.extend(a + b for a, b in zip(segment, segment[1:]))
    return tokens


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _string_list(value: Any, what: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{what} must be a list of strings")
    return list(value)


class Bm25Index:
    """Inverted index ranked with BM25 (k1=1.2, b=0.75)."""

    def __init__(self, tokenize: Tokenizer | None = None) -> None:
        self.doc_ids: list[str] = []
        self.doc_tokens: list[list[str]] = []
        self.doc_lengths: list[int] = []
        self.avg_doc_length: float = 0.0
        self.num_docs: int = 0
        self.doc_frequencies: dict[str, int] = {}
        self._postings: dict[str, dict[int, int]] = {}
        self._tokenize: Tokenizer = tokenize or _default_tokenize

    def __len__(self) -> int:
        return len(self.doc_ids)

    @classmethod
    def build(
        cls, docs: Iterable[Document], tokenize: Tokenizer | None = None
    ) -> "Bm25Index":
        """Index documents by the tokens of their title and text."""
        tokenizer = tokenize or _default_tokenize
        docs = list(docs)
        corpus = [tokenizer(f"{doc.title} {doc.text}") for doc in docs]
        return cls.from_corpus([doc.id for doc in docs], corpus, tokenizer)

    @classmethod
    def from_corpus(
        cls,
        doc_ids: Sequence[str],
        corpus: Sequence[Sequence[str]],
        tokenize: Tokenizer | None = None,
    ) -> "Bm25Index":
        """Index already tokenized documents."""
        if len(doc_ids) != len(corpus):
            raise ValueError(
                f"{len(doc_ids)} document ids but {len(corpus)} token lists"
            )
        index = cls(tokenize)
        index.doc_ids = list(doc_ids)
        index.doc_tokens = [list(tokens) for tokens in corpus]
        index.doc_lengths = [len(tokens) for tokens in index.doc_tokens]
        index.num_docs = len(index.doc_ids)
        if index.num_docs:
            index.avg_doc_length = sum(index.doc_lengths) / index.num_docs
        for doc_idx, tokens in enumerate(index.doc_tokens):
            for term, freq in Counter(tokens).items():
                index._postings.setdefault(term, {})[doc_idx] = freq
                index.doc_frequencies[term] = index.doc_frequencies.get(term, 0) + 1
        return index

    def search(self, query: str, top_k: int) -> list[SearchResult]:
        """Documents with a positive BM25 score for the query, best first."""
        if self.num_docs == 0:
            return []
        query_tokens = self._tokenize(query)
        if not query_tokens:
            return []
        scored = [
            (doc_idx, score)
            for doc_idx, doc_len in enumerate(self.doc_lengths[: self.num_docs])
            if (score := self._score(doc_idx, doc_len, query_tokens)) > 0.0
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [
            SearchResult(self.doc_ids[doc_idx], score)
            for doc_idx, score in scored[:top_k]
        ]

    def _score(self, doc_idx: int, doc_len: int, query_tokens: list[str]) -> float:
        score = 0.0
        for token in query_tokens:
            tf = self._postings.get(token, {}).get(doc_idx, 0)
            if tf == 0:
                continue
            df = self.doc_frequencies.get(token, 0)
            if df == 0:
                continue
            idf = math.log((self.num_docs - df + 0.5) / (df + 0.5) + 1.0)
            ratio = doc_len / self.avg_doc_length if self.avg_doc_length else 0.0
            denominator = tf + BM25_K1 * (1.0 - BM25_B + BM25_B * ratio)
            score += idf * (tf * (BM25_K1 + 1.0) / denominator)
        return score

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_ids": list(self.doc_ids),
            "doc_tokens": [list(tokens) for tokens in self.doc_tokens],
            "inverted_index": {
                term: [[doc_idx, freq] for doc_idx, freq in postings.items()]
                for term, postings in self._postings.items()
            },
            "doc_lengths": list(self.doc_lengths),
            "avg_doc_length": self.avg_doc_length,
            "doc_frequencies": dict(self.doc_frequencies),
            "num_docs": self.num_docs,
        }

    @classmethod
    def from_dict(cls, data: Any, tokenize: Tokenizer | None = None) -> "Bm25Index":
        """Read either the native layout or the 'doc_ids'/'corpus' layout."""
        if not isinstance(data, dict):
            raise ValueError("BM25 index must be a JSON object")
        if "corpus" in data:
            return cls._from_corpus_layout(data, tokenize)
        try:
            doc_ids = _string_list(data["doc_ids"], "field 'doc_ids'")
            raw_tokens = data["doc_tokens"]
            raw_inverted = data["inverted_index"]
            doc_lengths = data["doc_lengths"]
            avg_doc_length = data["avg_doc_length"]
            doc_frequencies = data["doc_frequencies"]
            num_docs = data["num_docs"]
        except KeyError as exc:
            raise ValueError(f"missing BM25 index field {exc.args[0]!r}") from exc
        if not isinstance(raw_tokens, list):
            raise ValueError("field 'doc_tokens' must be a list")
        if not isinstance(doc_lengths, list) or not all(map(_is_count, doc_lengths)):
            raise ValueError("field 'doc_lengths' must be a list of counts")
        if isinstance(avg_doc_length, bool) or not isinstance(
            avg_doc_length, (int, float)
        ):
            raise ValueError("field 'avg_doc_length' must be a number")
        if not isinstance(doc_frequencies, dict) or not all(
            map(_is_count, doc_frequencies.values())
        ):
            raise ValueError("field 'doc_frequencies' must map terms to counts")
        if not _is_count(num_docs) or num_docs > len(doc_lengths):
            raise ValueError("field 'num_docs' does not match the document lengths")
        if not isinstance(raw_inverted, dict):
            raise ValueError("field 'inverted_index' must be a JSON object")

        index = cls(tokenize)
        index.doc_ids = doc_ids
        index.doc_tokens = [_string_list(t, "each token list") for t in raw_tokens]
        index.doc_lengths = list(doc_lengths)
        index.avg_doc_length = float(avg_doc_length)
        index.doc_frequencies = dict(doc_frequencies)
        index.num_docs = num_docs
        for term, postings in raw_inverted.items():
            if not isinstance(postings, list):
                raise ValueError(f"postings of {term!r} must be a list")
            entry: dict[int, int] = {}
            for posting in postings:
                if (
                    not isinstance(posting, list)
                    or len(posting) != 2
                    or not all(map(_is_count, posting))
                ):
                    raise ValueError(f"invalid posting for {term!r}: {posting!r}")
                entry[posting[0]] = posting[1]
            index._postings[term] = entry
        return index

    @classmethod
    def _from_corpus_layout(
        cls, data: dict, tokenize: Tokenizer | None
    ) -> "Bm25Index":
        try:
            doc_ids = _string_list(data["doc_ids"], "field 'doc_ids'")
            corpus = data["corpus"]
        except KeyError as exc:
            raise ValueError(f"missing BM25 index field {exc.args[0]!r}") from exc
        if not isinstance(corpus, list):
            raise ValueError("field 'corpus' must be a list")
        tokens = [_string_list(t, "each corpus entry") for t in corpus]
        return cls.from_corpus(doc_ids, tokens, tokenize)

    def save(self, path: str | os.PathLike) -> None:
        """Write the index as pretty-printed JSON."""
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    @classmethod
    def load(
        cls, path: str | os.PathLike, tokenize: Tokenizer | None = None
    ) -> "Bm25Index":
        """Read an index file in either supported layout."""
        content = Path(path).read_text(encoding="utf-8")
        try:
            data = json.loads(content)
        except ValueError as exc:
            raise ValueError(f"Failed to parse BM25 index as JSON: {exc}") from exc
        return cls.from_dict(data, tokenize)