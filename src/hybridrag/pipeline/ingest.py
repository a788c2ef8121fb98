"""Ingestion pipeline: extract → sanitize → chunk → embed → store.

This is the main entry point for adding documents to the chunk store.
Each document moves pending → processing → chunked (or failed with an
error message); a failure never aborts the rest of a batch.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Sequence

from hybridrag.chunking.base import BaseChunker
from hybridrag.chunking.boundary_chunker import BoundaryChunker
from hybridrag.chunking.schemas import Chunk, ChunkMetadata
from hybridrag.dispatch import InlineDispatcher, TaskDispatcher
from hybridrag.documents.base import TextExtractor
from hybridrag.documents.loader import FileTextExtractor
from hybridrag.documents.sanitize import page_at, prepare_pages, prepare_text
from hybridrag.documents.schemas import DocumentStatus, SourceDocument
from hybridrag.embeddings.base import EmbeddingProvider, embed_in_batches
from hybridrag.exceptions import EmbeddingError, ExtractionError, ReprocessInProgressError
from hybridrag.pipeline.locks import DocumentLockRegistry
from hybridrag.pipeline.registry import DocumentRegistry
from hybridrag.pipeline.schemas import IngestResult
from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.schemas import SearchScope, VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_EMBED_BATCH_SIZE = 32
DEFAULT_STORE_BATCH_SIZE = 50
DEFAULT_DOCUMENT_BATCH_SIZE = 10


def chunk_record_id(document_id: str, chunk_index: int) -> str:
    """Deterministic chunk id; reprocessing yields the same ids."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"hybridrag:{document_id}:{chunk_index}"))


def _with_page(chunk: Chunk, page_number: int | None) -> Chunk:
    return dataclasses.replace(
        chunk, metadata=dataclasses.replace(chunk.metadata, page_number=page_number)
    )


class IngestPipeline:
    """Orchestrates document ingestion.

    Args:
        embedding_provider: Embeds chunk texts.
        vector_store: Chunk store; also answers "does this document already
            have chunks".
        extractor: Turns a ``SourceDocument`` into text.
        chunker: Defaults to a ``BoundaryChunker`` with default sizing.
        registry: Document status table.
        locks: Per-document exclusive locks.
        dispatcher: Runs documents of a batch; inline by default.
        embed_batch_size: Texts per embedding call.
        store_batch_size: Records per ``vector_store.add`` call.
        document_batch_size: Documents handed to the dispatcher per wave.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        extractor: TextExtractor | None = None,
        chunker: BaseChunker | None = None,
        registry: DocumentRegistry | None = None,
        locks: DocumentLockRegistry | None = None,
        dispatcher: TaskDispatcher | None = None,
        embed_batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        store_batch_size: int = DEFAULT_STORE_BATCH_SIZE,
        document_batch_size: int = DEFAULT_DOCUMENT_BATCH_SIZE,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.extractor = extractor or FileTextExtractor()
        self.chunker = chunker or BoundaryChunker()
        self.registry = registry or DocumentRegistry()
        self.locks = locks or DocumentLockRegistry()
        self.dispatcher = dispatcher or InlineDispatcher()
        self.embed_batch_size = embed_batch_size
        self.store_batch_size = store_batch_size
        self.document_batch_size = document_batch_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest_document(self, document: SourceDocument, reprocess: bool = False) -> IngestResult:
        """Ingest one document.

        Documents that already have chunks are skipped unless ``reprocess``.

        Raises:
            ReprocessInProgressError: The document is being processed by
                another caller.
        """
        if reprocess:
            return self.reprocess_document(document)

        with self.locks.hold(document.document_id):
            existing = self.vector_store.count(SearchScope(document_id=document.document_id))
            if not existing:
                return self._process(document, replace_existing=False)

            logger.info("Skipping %s: already has %d chunks", document.name, existing)
            self.registry.set_status(
                document.document_id,
                document.name,
                DocumentStatus.CHUNKED,
                chunk_count=existing,
            )
            return IngestResult(
                document_id=document.document_id,
                source=document.name,
                status=DocumentStatus.CHUNKED,
                chunks_stored=existing,
                skipped=True,
            )

    def reprocess_document(self, document: SourceDocument) -> IngestResult:
        """Delete a document's chunks and regenerate them under its lock.

        Raises:
            ReprocessInProgressError: Another reprocess of the same document
                is running.
        """
        with self.locks.hold(document.document_id):
            return self._process(document, replace_existing=True)

    def ingest_batch(
        self,
        documents: Sequence[SourceDocument],
        reprocess: bool = False,
    ) -> list[IngestResult]:
        """Ingest documents in waves of ``document_batch_size``.

        Per-document failures are reported in the returned results.
        """
        # Chunked documents are skipped unless reprocessing; in-flight ones keep their status.
        keep = frozenset({DocumentStatus.PROCESSING})
        if not reprocess:
            keep |= {DocumentStatus.CHUNKED}

        results: list[IngestResult] = []
        for start in range(0, len(documents), self.document_batch_size):
            wave = documents[start : start + self.document_batch_size]
            for document in wave:
                self.registry.mark_pending(document.document_id, document.name, keep=keep)
            futures = [
                (doc, self.dispatcher.submit(self._ingest_isolated, doc, reprocess))
                for doc in wave
            ]
            for doc, future in futures:
                outcome = future.result() if future is not None else None
                results.append(outcome or self._failed(doc, "Ingestion task did not complete"))

        ok = sum(1 for r in results if r.ok)
        logger.info("Batch ingestion finished: %d/%d documents chunked", ok, len(results))
        return results

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _ingest_isolated(self, document: SourceDocument, reprocess: bool) -> IngestResult:
        try:
            return self.ingest_document(document, reprocess=reprocess)
        except ReprocessInProgressError as exc:
            logger.warning("%s", exc)
            return IngestResult(
                document_id=document.document_id,
                source=document.name,
                status=DocumentStatus.PROCESSING,
                skipped=True,
                error_message=str(exc),
            )

    def _process(self, document: SourceDocument, replace_existing: bool) -> IngestResult:
        self.registry.set_status(document.document_id, document.name, DocumentStatus.PROCESSING)
        warnings: list[str] = []

        try:
            # Step 1: Extract
            extraction = self.extractor.extract_text(document)
            warnings.extend(extraction.warnings)

            # Step 2: Sanitize (PDFs page by page so chunks keep their page)
            if extraction.format == "pdf" and extraction.page_texts:
                text, page_starts = prepare_pages(extraction.page_texts)
            else:
                text, page_starts = prepare_text(extraction.text), []
            if not text:
                raise ExtractionError(f"No text could be extracted from {document.name}")

            # Step 3: Chunk
            base = ChunkMetadata(
                document_id=document.document_id,
                document_name=document.name,
                tenant_id=document.tenant_id,
            )
            chunks = self.chunker.chunk(text, metadata=base, page_number=document.page_number)
            if not chunks:
                raise ExtractionError(f"Chunker produced zero chunks for {document.name}")
            if page_starts:
                chunks = [_with_page(c, page_at(page_starts, c.start)) for c in chunks]

            # Step 4: Embed
            embeddings = self._embed(chunks)

            # Step 5: Store (old chunks go only once the new ones are ready)
            if replace_existing:
                removed = self.vector_store.delete_document(document.document_id)
                logger.info("Removed %d previous chunks of %s", removed, document.name)
            stored = self._store(document.document_id, chunks, embeddings)

        except Exception as exc:
            if not isinstance(exc, ExtractionError | EmbeddingError):
                logger.exception("Unexpected error ingesting %s", document.name)
            else:
                logger.error("Failed to ingest %s: %s", document.name, exc)
            return self._failed(document, str(exc), warnings)

        self.registry.set_status(
            document.document_id,
            document.name,
            DocumentStatus.CHUNKED,
            chunk_count=stored,
        )
        logger.info(
            "Ingested %s: %d chunks → %d embedded → %d stored",
            document.name,
            len(chunks),
            len(embeddings),
            stored,
        )
        return IngestResult(
            document_id=document.document_id,
            source=document.name,
            status=DocumentStatus.CHUNKED,
            chunks_created=len(chunks),
            chunks_embedded=len(embeddings),
            chunks_stored=stored,
            warnings=warnings,
        )

    def _embed(self, chunks: list[Chunk]) -> list[list[float]]:
        return embed_in_batches(
            self.embedding_provider, [c.text for c in chunks], self.embed_batch_size
        )

    def _store(
        self,
        document_id: str,
        chunks: list[Chunk],
        embeddings: list[list[float]],
    ) -> int:
        records = [
            VectorRecord(
                id=chunk_record_id(document_id, chunk.chunk_index),
                text=chunk.text,
                embedding=embedding,
                metadata=chunk.metadata,
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]
        stored = 0
        for i in range(0, len(records), self.store_batch_size):
            stored += self.vector_store.add(records[i : i + self.store_batch_size])
        return stored

    def _failed(
        self,
        document: SourceDocument,
        message: str,
        warnings: list[str] | None = None,
    ) -> IngestResult:
        self.registry.set_status(
            document.document_id,
            document.name,
            DocumentStatus.FAILED,
            error_message=message,
        )
        return IngestResult(
            document_id=document.document_id,
            source=document.name,
            status=DocumentStatus.FAILED,
            error_message=message,
            warnings=warnings or [],
        )
