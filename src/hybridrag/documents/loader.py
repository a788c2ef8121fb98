"""Local text extractor: PDF, DOCX, TXT/Markdown, XLSX.

Supports both filesystem paths and in-memory bytes. Documents that arrive
with their text already extracted pass straight through.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

from hybridrag.documents.base import TextExtractor
from hybridrag.documents.schemas import ExtractionResult, SourceDocument

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".txt", ".md", ".pdf", ".docx", ".xlsx"}


class FileTextExtractor(TextExtractor):
    """Extract text from local files into an ``ExtractionResult``."""

    def __init__(self, max_file_size_mb: int | None = None):
        self.max_file_size_mb = max_file_size_mb

    def extract_text(self, document: SourceDocument) -> ExtractionResult:
        if document.text is not None:
            return ExtractionResult(
                text=document.text,
                page_texts=[document.text],
                page_count=1,
                source=document.name,
                format="text",
                char_count=len(document.text),
            )
        if document.path is None:
            raise ValueError(f"Document '{document.document_id}' has neither path nor text")
        return self.load_file(document.path)

    def load_file(self, path: str | Path) -> ExtractionResult:
        """Extract a document from a filesystem path."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        ext = self._check_extension(path.name)
        if self.max_file_size_mb is not None:
            size_mb = path.stat().st_size / (1024 * 1024)
            if size_mb > self.max_file_size_mb:
                raise ValueError(
                    f"File {path.name} is {size_mb:.1f} MB (limit {self.max_file_size_mb} MB)"
                )

        result = self._dispatch(path.read_bytes(), ext)
        result.source = str(path)
        return result

    def load_bytes(self, data: bytes, filename: str) -> ExtractionResult:
        """Extract a document from in-memory bytes."""
        ext = self._check_extension(filename)
        result = self._dispatch(data, ext)
        result.source = filename
        return result

    # ------------------------------------------------------------------
    # Private dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def _check_extension(filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise ValueError(
                f"Unsupported format '{ext}'. Supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )
        return ext

    def _dispatch(self, data: bytes, ext: str) -> ExtractionResult:
        handlers = {
            ".txt": self._load_txt,
            ".md": self._load_txt,
            ".pdf": self._load_pdf,
            ".docx": self._load_docx,
            ".xlsx": self._load_xlsx,
        }
        result = handlers[ext](data)
        result.format = ext.lstrip(".")
        result.char_count = len(result.text)
        if result.is_empty:
            logger.warning("Extraction produced no text (format=%s)", result.format)
        return result

    # ------------------------------------------------------------------
    # Format-specific loaders
    # ------------------------------------------------------------------

    @staticmethod
    def _load_txt(data: bytes) -> ExtractionResult:
        for encoding in ("utf-8", "cp1252"):
            try:
                text = data.decode(encoding)
                return ExtractionResult(text=text, page_texts=[text], page_count=1)
            except UnicodeDecodeError:
                continue
        text = data.decode("utf-8", errors="replace")
        return ExtractionResult(
            text=text,
            page_texts=[text],
            page_count=1,
            warnings=["Encoding detection fell back to utf-8 with replacements"],
        )

    @staticmethod
    def _load_pdf(data: bytes) -> ExtractionResult:
        import pdfplumber

        warnings: list[str] = []
        page_texts: list[str] = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_texts.append(page.extract_text() or "")
        except Exception as exc:
            warnings.append(f"PDF extraction error: {exc}")
            return ExtractionResult(text="", warnings=warnings)

        full_text = "\n\n".join(page_texts)
        if not full_text.strip():
            warnings.append("PDF contains no extractable text (may be scanned/image-only)")

        return ExtractionResult(
            text=full_text,
            page_texts=page_texts,
            page_count=len(page_texts),
            warnings=warnings,
        )

    @staticmethod
    def _load_docx(data: bytes) -> ExtractionResult:
        from docx import Document

        warnings: list[str] = []
        try:
            doc = Document(io.BytesIO(data))
            blocks = []
            for p in doc.paragraphs:
                if not p.text.strip():
                    continue
                style = (p.style.name or "") if p.style is not None else ""
                if style.startswith("Heading"):
                    level = style.removeprefix("Heading").strip()
                    depth = int(level) if level.isdigit() else 1
                    blocks.append(f"{'#' * min(depth, 6)} {p.text.strip()}")
                else:
                    blocks.append(p.text)
            text = "\n\n".join(blocks)
        except Exception as exc:
            warnings.append(f"DOCX extraction error: {exc}")
            return ExtractionResult(text="", warnings=warnings)

        return ExtractionResult(text=text, page_texts=[text], page_count=1, warnings=warnings)

    @staticmethod
    def _load_xlsx(data: bytes) -> ExtractionResult:
        import pandas as pd

        warnings: list[str] = []
        page_texts: list[str] = []

        try:
            xls = pd.ExcelFile(io.BytesIO(data))
            for sheet_name in xls.sheet_names:
                df = pd.read_excel(xls, sheet_name=sheet_name)
                md_table = df.head(25).to_markdown(index=False)
                header = f"## Sheet: {sheet_name} ({len(df)} rows, {len(df.columns)} cols)\n\n"
                page_texts.append(header + (md_table or "[empty sheet]"))
        except Exception as exc:
            warnings.append(f"Excel extraction error: {exc}")
            return ExtractionResult(text="", warnings=warnings)

        return ExtractionResult(
            text="\n\n".join(page_texts),
            page_texts=page_texts,
            page_count=len(page_texts),
            warnings=warnings,
        )
