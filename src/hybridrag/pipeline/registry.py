"""Document status registry.

Tracks each document through pending → processing → chunked/failed.
Optionally persisted as JSON so the CLI can report status across runs.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import threading
from pathlib import Path

from hybridrag.documents.schemas import DocumentStatus
from hybridrag.pipeline.schemas import DocumentRecord, utc_now

logger = logging.getLogger(__name__)


class DocumentRegistry:
    """Thread-safe document status table."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._records: dict[str, DocumentRecord] = {}
        if self.path is not None and self.path.exists():
            self._load()

    def get(self, document_id: str) -> DocumentRecord | None:
        with self._lock:
            return self._records.get(document_id)

    def all(self) -> list[DocumentRecord]:
        with self._lock:
            return list(self._records.values())

    def set_status(
        self,
        document_id: str,
        name: str,
        status: DocumentStatus,
        *,
        chunk_count: int | None = None,
        error_message: str | None = None,
    ) -> DocumentRecord:
        """Record a status transition; ``error_message`` is cleared unless given."""
        with self._lock:
            previous = self._records.get(document_id)
            record = DocumentRecord(
                document_id=document_id,
                name=name,
                status=status,
                chunk_count=(
                    chunk_count if chunk_count is not None
                    else previous.chunk_count if previous else 0
                ),
                error_message=error_message,
                updated_at=utc_now(),
            )
            self._records[document_id] = record
            self._save()
        logger.debug("Document %s -> %s", document_id, status)
        return record

    def mark_pending(
        self,
        document_id: str,
        name: str,
        keep: frozenset[DocumentStatus] = frozenset({DocumentStatus.PROCESSING}),
    ) -> bool:
        """Queue a document as pending unless its status is in ``keep``.

        The check and the write happen under one lock, so a document that
        another caller is processing keeps its ``processing`` status.
        """
        with self._lock:
            previous = self._records.get(document_id)
            if previous is not None and previous.status in keep:
                return False
            self._records[document_id] = DocumentRecord(
                document_id=document_id,
                name=name,
                status=DocumentStatus.PENDING,
                chunk_count=previous.chunk_count if previous else 0,
                updated_at=utc_now(),
            )
            self._save()
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        with open(self.path, encoding="utf-8") as f:
            raw = json.load(f)
        for doc_id, data in raw.items():
            data["status"] = DocumentStatus(data["status"])
            self._records[doc_id] = DocumentRecord(**data)

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = {
            doc_id: {**dataclasses.asdict(rec), "status": str(rec.status)}
            for doc_id, rec in self._records.items()
        }
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp, self.path)
