"""Citation extraction and source mapping.

Parses [1], [2], [1-3] and [1,2] markers from LLM output and maps them back
to the retrieved chunks.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from hybridrag.pipeline.schemas import Citation
from hybridrag.retrieval.schemas import RetrievedChunk

_CITATION_RE = re.compile(r"\[(\d+(?:\s*[,\-]\s*\d+)*)\]")

SNIPPET_LENGTH = 200


def cited_indices(answer: str) -> list[int]:
    """Sorted 1-based citation numbers appearing in ``answer``."""
    found: set[int] = set()
    for match in _CITATION_RE.finditer(answer):
        for part in match.group(1).split(","):
            part = part.strip()
            if "-" in part:
                start, end = (int(p) for p in part.split("-", 1))
                found.update(range(start, end + 1))
            else:
                found.add(int(part))
    return sorted(found)


def extract_citations(answer: str, chunks: Sequence[RetrievedChunk]) -> list[Citation]:
    """Map citation markers in ``answer`` to the chunks given as context.

    Out-of-range numbers are ignored.
    """
    citations: list[Citation] = []
    for idx in cited_indices(answer):
        if not 1 <= idx <= len(chunks):
            continue
        chunk = chunks[idx - 1]
        text = chunk.text
        snippet = text[:SNIPPET_LENGTH] + "..." if len(text) > SNIPPET_LENGTH else text
        meta = chunk.metadata
        citations.append(Citation(
            index=idx,
            text=snippet,
            source=meta.document_name or meta.document_id or "unknown",
            section=meta.document_section,
            page_number=meta.page_number,
            score=chunk.final_score,
        ))
    return citations


def format_citations(citations: list[Citation]) -> str:
    """Markdown source list for display."""
    if not citations:
        return ""

    lines = ["\n---\n**Sources:**"]
    for c in citations:
        parts = [f"[{c.index}]", c.source]
        if c.section:
            parts.append(f"({c.section})")
        if c.page_number is not None:
            parts.append(f"p. {c.page_number}")
        lines.append(f"- {' | '.join(parts)}")
    return "\n".join(lines)
