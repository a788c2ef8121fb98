"""Shared fixtures for tests: synthetic documents and offline providers, no network calls."""

from __future__ import annotations

import hashlib
import re
import textwrap
from pathlib import Path

import numpy as np
import pytest

from hybridrag.embeddings.base import EmbeddingProvider
from hybridrag.llm.base import LLMProvider

DIM = 64

_WORD_RE = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# Offline providers
# ---------------------------------------------------------------------------


class MockEmbedder(EmbeddingProvider):
    """Bag-of-words embedder: shared words give positive cosine similarity."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = np.zeros(DIM, dtype=np.float32)
        vec[0] = 0.01  # never all-zero
        for word in _WORD_RE.findall(text.lower()):
            bucket = 1 + int(hashlib.md5(word.encode()).hexdigest(), 16) % (DIM - 1)
            vec[bucket] += 1.0
        return (vec / np.linalg.norm(vec)).tolist()

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._vector(query)

    @property
    def dimension(self) -> int:
        return DIM


class MockLLM(LLMProvider):
    """Returns a canned answer and records every prompt."""

    def __init__(self, answer: str = "Based on the excerpts [1], the figure is stated.") -> None:
        self.answer = answer
        self.model = "mock-llm"
        self.prompts: list[str] = []

    def generate(self, prompt, system=None, timeout=None, *, model=None) -> str:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder()


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def faiss_store():
    from hybridrag.vectorstore.faiss_store import FAISSStore

    return FAISSStore(dimension=DIM)


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def annual_report_md() -> str:
    """Markdown annual report with headings, a table, a list and prose."""
    return textwrap.dedent("""\
        # Annual Report 2024

        Acme Corp designs industrial sensors for factory automation. The
        company sells through distributors in North America and Europe and
        reported record shipments in the fourth quarter.

        ## Balance Sheet

        | Item | 2024 | 2023 |
        |------|------|------|
        | Total current assets | 1,200 | 1,050 |
        | Inventory | 300 | 280 |
        | Total current liabilities | 800 | 760 |

        The quick ratio improved to 1.13 from 1.01 as receivables were
        collected faster and inventory grew more slowly than sales.

        ## Risk Factors

        - Supply chain concentration in two foundries
        - Foreign exchange exposure on euro revenue
        - Customer concentration in the automotive segment

        ## Capital Expenditure

        Capital expenditure on property, plant and equipment rose to 85
        million dollars, driven by a new calibration facility. Depreciation
        increased in line with the larger asset base.
        """)


@pytest.fixture
def code_heavy_md() -> str:
    return textwrap.dedent("""\
        # Integration Guide

        Install the client and create a session before sending requests.

        ```python
        # configure the client
        import acme
        class Session:
            def openStream(self):
                const = 1
        ```

        ## Next Steps

        Read the reference section for the full list of options.
        """)


@pytest.fixture
def sample_md_file(tmp_path: Path, annual_report_md: str) -> Path:
    p = tmp_path / "annual_report.md"
    p.write_text(annual_report_md, encoding="utf-8")
    return p


@pytest.fixture
def sample_txt_file(tmp_path: Path) -> Path:
    p = tmp_path / "notes.txt"
    p.write_text(
        "Quarterly notes\n\nRevenue grew 6% year over year.\n\n"
        "Gross margin expanded 120 basis points.",
        encoding="utf-8",
    )
    return p


@pytest.fixture
def sample_pdf_file(tmp_path: Path) -> Path:
    """Two-page PDF built with fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "Acme Corp Form 10-K\n\n"
        "Item 1. Business\n\n"
        "Acme Corp designs industrial sensors for factory automation."
    ))

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "Item 7. Management's Discussion and Analysis\n\n"
        "Revenue increased 6% year over year. Operating margin expanded."
    ))

    p = tmp_path / "acme_10k.pdf"
    pdf.output(str(p))
    return p


@pytest.fixture
def sample_docx_file(tmp_path: Path) -> Path:
    from docx import Document

    doc = Document()
    doc.add_heading("Credit Review", level=1)
    doc.add_paragraph("Acme Corp keeps net leverage below two times EBITDA.")
    doc.add_heading("Liquidity", level=2)
    doc.add_paragraph("The revolving facility is undrawn and matures in 2028.")

    p = tmp_path / "credit_review.docx"
    doc.save(str(p))
    return p


@pytest.fixture
def sample_xlsx_file(tmp_path: Path) -> Path:
    import pandas as pd

    summary = pd.DataFrame({
        "Year": [2022, 2023, 2024],
        "Revenue": [910.0, 980.5, 1040.2],
        "Capex": [61.0, 70.4, 85.0],
    })
    segments = pd.DataFrame({
        "Segment": ["Sensors", "Software"],
        "Revenue": [820.0, 220.2],
    })

    p = tmp_path / "acme_model.xlsx"
    with pd.ExcelWriter(str(p), engine="openpyxl") as writer:
        summary.to_excel(writer, sheet_name="Summary", index=False)
        segments.to_excel(writer, sheet_name="Segments", index=False)
    return p
