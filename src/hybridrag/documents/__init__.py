"""Document handling: extraction, cleaning, and sanitization."""

from hybridrag.documents.base import TextExtractor
from hybridrag.documents.loader import FileTextExtractor
from hybridrag.documents.sanitize import clean_document_text, prepare_text, sanitize_document_text
from hybridrag.documents.schemas import DocumentStatus, ExtractionResult, SourceDocument

__all__ = [
    "DocumentStatus",
    "ExtractionResult",
    "FileTextExtractor",
    "SourceDocument",
    "TextExtractor",
    "clean_document_text",
    "prepare_text",
    "sanitize_document_text",
]
