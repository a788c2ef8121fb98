"""Prompt templates for the answer step of the query pipeline."""

from __future__ import annotations

from collections.abc import Sequence

from hybridrag.retrieval.schemas import RetrievedChunk

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

RAG_SYSTEM_PROMPT = """\
You are a research assistant answering questions about the user's documents, \
most often financial filings. Answer using ONLY the provided context \
excerpts. If the context does not contain enough information to answer the \
question, say so explicitly.

Rules:
1. Cite sources using [1], [2], etc. corresponding to the numbered excerpts.
2. Be precise with figures; do not round unless the source rounds.
3. Distinguish between facts stated in the excerpts and your own inference.
4. If excerpts conflict, note the discrepancy.
"""

RAG_QUERY_TEMPLATE = """\
Context Excerpts:
{context}

Question: {question}

Answer the question using only the context excerpts above. Cite sources \
using [1], [2], etc.
"""


def source_label(chunk: RetrievedChunk) -> str:
    """Human-readable origin of a chunk: document, section and page."""
    meta = chunk.metadata
    parts = [meta.document_name or meta.document_id or "source"]
    headings = [h for h in meta.headings if h != "No Section"]
    if headings:
        parts.append(" > ".join(headings))
    if meta.page_number is not None:
        parts.append(f"p. {meta.page_number}")
    return ", ".join(parts)


def format_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Number the excerpts so the model can cite them.

    Returns:
        Context string with ``[n] (source)`` headers separated by rules.
    """
    return "\n\n---\n\n".join(
        f"[{i}] ({source_label(chunk)})\n{chunk.text}"
        for i, chunk in enumerate(chunks, 1)
    )


def build_rag_prompt(question: str, chunks: Sequence[RetrievedChunk]) -> str:
    return RAG_QUERY_TEMPLATE.format(context=format_context(chunks), question=question)
