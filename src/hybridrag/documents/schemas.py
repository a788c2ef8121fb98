"""Data models for source documents and text extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class DocumentStatus(StrEnum):
    """Lifecycle of a document inside the ingestion job."""

    PENDING = "pending"
    PROCESSING = "processing"
    CHUNKED = "chunked"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceDocument:
    """A document handed to the ingestion job.

    Either ``path`` or ``text`` is set. ``text`` is used as-is (already
    extracted upstream); ``path`` goes through a ``TextExtractor``.
    """

    document_id: str
    name: str
    path: str | None = None
    text: str | None = None
    tenant_id: str | None = None
    page_number: int | None = None


@dataclass
class ExtractionResult:
    """Result of extracting text from a single document.

    Attributes:
        text: Full extracted text.
        page_texts: Per-page text (PDFs) or per-sheet text (Excel).
        page_count: Number of pages or sheets.
        source: Filesystem path or identifier.
        format: File extension used (pdf, docx, txt, md, xlsx).
        char_count: Length of ``text``.
        warnings: Non-fatal issues encountered during extraction.
    """

    text: str
    page_texts: list[str] = field(default_factory=list)
    page_count: int = 0
    source: str | None = None
    format: str = ""
    char_count: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
