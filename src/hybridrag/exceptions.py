"""Exception hierarchy shared across the package."""

from __future__ import annotations


class HybridRAGError(Exception):
    """Base exception for hybridrag."""


class ConfigurationError(HybridRAGError):
    """Raised when configuration is invalid or missing."""


class ExtractionError(HybridRAGError):
    """Raised when a document yields no usable text.

    The ingestion job maps this to a failed document status rather than
    letting it reach the chunker.
    """


class EmbeddingError(HybridRAGError):
    """Raised when an embedding provider returns an unusable response."""


class ReprocessInProgressError(HybridRAGError):
    """Raised when a document is already being (re)processed elsewhere."""

    def __init__(self, document_id: str):
        super().__init__(f"Document '{document_id}' is already being processed")
        self.document_id = document_id


__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "HybridRAGError",
    "ReprocessInProgressError",
]
