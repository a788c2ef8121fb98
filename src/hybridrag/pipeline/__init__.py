"""End-to-end pipelines: ingestion with status tracking, cited question answering."""

from hybridrag.pipeline.ingest import IngestPipeline
from hybridrag.pipeline.locks import DocumentLockRegistry
from hybridrag.pipeline.query import QueryPipeline
from hybridrag.pipeline.registry import DocumentRegistry
from hybridrag.pipeline.schemas import (
    Citation,
    DocumentRecord,
    IngestResult,
    RAGQuery,
    RAGResponse,
)

__all__ = [
    "Citation",
    "DocumentLockRegistry",
    "DocumentRecord",
    "DocumentRegistry",
    "IngestPipeline",
    "IngestResult",
    "QueryPipeline",
    "RAGQuery",
    "RAGResponse",
]
