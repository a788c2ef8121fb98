"""Abstract base class for text extraction collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hybridrag.documents.schemas import ExtractionResult, SourceDocument


class TextExtractor(ABC):
    """Interface for turning a source document into plain text."""

    @abstractmethod
    def extract_text(self, document: SourceDocument) -> ExtractionResult:
        """Extract the full text of ``document``.

        Implementations may return an empty ``text`` (scanned PDFs, empty
        files); the ingestion job treats that as a document-level failure.
        """

    @classmethod
    def extractor_name(cls) -> str:
        return cls.__name__
