"""Data models for the ingestion and query pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from hybridrag.documents.schemas import DocumentStatus


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class DocumentRecord:
    """Lifecycle state of one document."""

    document_id: str
    name: str
    status: DocumentStatus = DocumentStatus.PENDING
    chunk_count: int = 0
    error_message: str | None = None
    updated_at: str = field(default_factory=utc_now)


@dataclass
class IngestResult:
    """Result of ingesting one document."""

    document_id: str
    source: str
    status: DocumentStatus
    chunks_created: int = 0
    chunks_embedded: int = 0
    chunks_stored: int = 0
    skipped: bool = False
    error_message: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is DocumentStatus.CHUNKED


@dataclass
class Citation:
    """A source citation in a generated answer."""

    index: int
    text: str
    source: str
    section: str | None = None
    page_number: int | None = None
    score: float = 0.0


@dataclass
class RAGQuery:
    """Input to the query pipeline."""

    question: str
    tenant_id: str | None = None
    document_name: str | None = None
    top_k: int | None = None
    expand: bool = True


@dataclass
class RAGResponse:
    """Output of the query pipeline."""

    question: str
    answer: str
    citations: list[Citation] = field(default_factory=list)
    context_texts: list[str] = field(default_factory=list)
    model: str = ""
    retrieval_count: int = 0
    expanded_query: str | None = None
    expansion_source: str | None = None
    intent: str | None = None
