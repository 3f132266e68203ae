"""Pipeline that builds and saves every search index from documents."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, Iterable, Protocol, Sequence

from digrag.bm25 import Bm25Index, Tokenizer
from digrag.changelog import ChangelogLoader
from digrag.docstore import Docstore
from digrag.document import Document
from digrag.metadata import IndexMetadata
from digrag.vector import VectorIndex

ProgressCallback = Callable[[int, int, str], None]

EMBEDDING_BATCH_SIZE = 10
EMBEDDING_DIMENSION = 1536
DEFAULT_BATCH_DELAY = 0.5

BM25_FILE = "bm25_index.json"
DOCSTORE_FILE = "docstore.json"
VECTOR_FILE = "faiss_index.json"
METADATA_FILE = "metadata.json"


class EmbeddingClient(Protocol):
    """Anything that turns batches of text into embedding vectors."""

    model: str

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        ...


def _no_progress(step: int, total: int, message: str) -> None:
    return None


def create_embedding_text(doc: Document) -> str:
    """Title, tags and text of a document laid out for embedding."""
    tags = ", ".join(doc.tags)
    if not tags:
        return f"# {doc.title}\n\n{doc.text}"
    return f"# {doc.title}\nタグ: {tags}\n\n{doc.text}"


class IndexBuilder:
    """Builds the BM25, document, vector and metadata files of an index."""

    def __init__(
        self,
        embedding_client: EmbeddingClient | None = None,
        *,
        tokenize: Tokenizer | None = None,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ) -> None:
        self.embedding_client = embedding_client
        self.tokenize = tokenize
        self.batch_delay = batch_delay

    def has_embedding_client(self) -> bool:
        return self.embedding_client is not None

    @staticmethod
    def load_existing_metadata(output_dir: str | os.PathLike) -> IndexMetadata | None:
        """Metadata of an existing index, or None if absent, unreadable or outdated."""
        metadata_path = Path(output_dir) / METADATA_FILE
        if not metadata_path.exists():
            return None
        try:
            metadata = IndexMetadata.load(metadata_path)
        except (OSError, ValueError):
            return None
        if metadata.needs_full_rebuild():
            return None
        return metadata

    @staticmethod
    def has_incremental_support(output_dir: str | os.PathLike) -> bool:
        return IndexBuilder.load_existing_metadata(output_dir) is not None

    def build(
        self,
        input_path: str | os.PathLike,
        output_dir: str | os.PathLike,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Parse a changelog file and build the indices without embeddings."""
        progress = progress or _no_progress
        progress(1, 5, "Parsing changelog...")
        documents = ChangelogLoader().load_from_file(input_path)
        self.build_from_documents(documents, output_dir, progress, 2)

    def build_from_documents(
        self,
        documents: Iterable[Document],
        output_dir: str | os.PathLike,
        progress: ProgressCallback | None = None,
        start_step: int = 1,
    ) -> None:
        """Build the indices from loaded documents, numbering steps from ``start_step``."""
        progress = progress or _no_progress
        documents = list(documents)
        total_steps = start_step + 3

        progress(start_step, total_steps, "Building BM25 index...")
        bm25_index = Bm25Index.build(documents, self.tokenize)

        progress(start_step + 1, total_steps, "Building document store...")
        docstore = self._build_docstore(documents)

        progress(start_step + 2, total_steps, "Saving indices...")
        self._save(output_dir, documents, bm25_index, docstore, VectorIndex(0))

        progress(total_steps, total_steps, "Done!")

    async def build_with_embeddings(
        self,
        input_path: str | os.PathLike,
        output_dir: str | os.PathLike,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Parse a changelog file and build the indices, embeddings included."""
        progress = progress or _no_progress
        progress(1, 6, "Parsing changelog...")
        documents = ChangelogLoader().load_from_file(input_path)
        await self._build_with_embeddings(documents, output_dir, progress, 2, 6)

    async def build_from_documents_with_embeddings(
        self,
        documents: Iterable[Document],
        output_dir: str | os.PathLike,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Build the indices, embeddings included, from loaded documents."""
        await self._build_with_embeddings(
            list(documents), output_dir, progress or _no_progress, 1, 5
        )

    async def _build_with_embeddings(
        self,
        documents: list[Document],
        output_dir: str | os.PathLike,
        progress: ProgressCallback,
        first_step: int,
        total_steps: int,
    ) -> None:
        bm25_step, store_step, embed_step, save_step = range(first_step, first_step + 4)

        progress(bm25_step, total_steps, "Building BM25 index...")
        bm25_index = Bm25Index.build(documents, self.tokenize)

        progress(store_step, total_steps, "Building document store...")
        docstore = self._build_docstore(documents)

        if self.embedding_client is not None:
            vector_index = await self._embed(documents, progress, embed_step, total_steps)
        else:
            progress(
                embed_step, total_steps, "Skipping embeddings (no client configured)..."
            )
            vector_index = VectorIndex(0)

        progress(save_step, total_steps, "Saving indices...")
        self._save(output_dir, documents, bm25_index, docstore, vector_index)

        progress(total_steps, total_steps, "Done!")

    async def _embed(
        self,
        documents: list[Document],
        progress: ProgressCallback,
        step: int,
        total_steps: int,
    ) -> VectorIndex:
        assert self.embedding_client is not None
        doc_count = len(documents)
        total_batches = -(-doc_count // EMBEDDING_BATCH_SIZE)
        progress(
            step,
            total_steps,
            f"Generating embeddings ({doc_count} documents in {total_batches} batches)...",
        )

        index = VectorIndex(EMBEDDING_DIMENSION)
        texts = [create_embedding_text(doc) for doc in documents]
        starts = range(0, len(texts), EMBEDDING_BATCH_SIZE)
        for batch_idx, start in enumerate(starts):
            if batch_idx > 0:
                await asyncio.sleep(self.batch_delay)
            chunk = texts[start : start + EMBEDDING_BATCH_SIZE]
            progress(
                step,
                total_steps,
                f"Embedding batch {batch_idx + 1}/{total_batches} "
                f"({len(chunk)} documents)...",
            )
            embeddings = await self.embedding_client.embed_batch(chunk)
            for doc, embedding in zip(documents[start:], embeddings):
                index.add(doc.id, embedding)
        return index

    @staticmethod
    def _build_docstore(documents: Iterable[Document]) -> Docstore:
        docstore = Docstore()
        for doc in documents:
            docstore.add(doc)
        return docstore

    def _save(
        self,
        output_dir: str | os.PathLike,
        documents: list[Document],
        bm25_index: Bm25Index,
        docstore: Docstore,
        vector_index: VectorIndex,
    ) -> None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        bm25_index.save(out / BM25_FILE)
        docstore.save(out / DOCSTORE_FILE)
        vector_index.save(out / VECTOR_FILE)

        model = self.embedding_client.model if self.embedding_client else None
        metadata = IndexMetadata.create(len(documents), model)
        for doc in documents:
            metadata.update_doc_hash(doc.id, doc.content_hash())
        metadata.save(out / METADATA_FILE)