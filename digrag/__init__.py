"""Document loading, BM25 and vector indices, and incremental index builds for note search."""

__version__ = "0.1.0"

__all__ = [
    "bm25",
    "builder",
    "changelog",
    "diff",
    "docstore",
    "document",
    "jsonl",
    "metadata",
    "vector",
]