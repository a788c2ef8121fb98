"""Tests for chunk classification and metadata enrichment."""

from __future__ import annotations

import pytest

from hybridrag.chunking.classifier import classify_chunk_type, score_indicators, semantic_weight
from hybridrag.chunking.enricher import (
    detect_content_type,
    detect_document_section,
    determine_position,
    enrich_chunk,
    enrich_chunks_batch,
    extract_keywords,
    position_from_index,
    relevant_headings,
)
from hybridrag.chunking.schemas import NO_SECTION, UNKNOWN_SECTION, ChunkPosition, ChunkType
from hybridrag.chunking.structure import analyze_structure

CODE_SNIPPET = "import os\n\nclass Loader:\n    def getValue(self):\n        return os.sep"
REFERENCE_SNIPPET = "| a | b |\n|---|---|\n- first\n* second\n1. third"
PROSE = (
    "Revenue grew six percent as pricing held firm. Management expects margins "
    "to expand next year while inventory normalises."
)

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassifyChunkType:
    def test_code_is_technical(self):
        assert classify_chunk_type(CODE_SNIPPET) == ChunkType.TECHNICAL

    def test_tables_and_lists_are_reference(self):
        assert classify_chunk_type(REFERENCE_SNIPPET) == ChunkType.REFERENCE

    def test_prose_is_narrative(self):
        assert classify_chunk_type(PROSE) == ChunkType.NARRATIVE

    def test_threshold_must_be_exceeded(self):
        # two code indicators only
        text = "We import parts and class them by size."
        assert score_indicators(text).code == 2
        assert classify_chunk_type(text) == ChunkType.NARRATIVE

    def test_technical_checked_before_reference(self):
        assert classify_chunk_type(CODE_SNIPPET + "\n" + REFERENCE_SNIPPET) == ChunkType.TECHNICAL

    def test_indicators_are_whole_words(self):
        text = "The classification of letters and variables in exports."
        assert score_indicators(text).code == 0

    def test_custom_thresholds(self):
        assert classify_chunk_type(PROSE, technical_threshold=-1) == ChunkType.TECHNICAL
        assert (
            classify_chunk_type(REFERENCE_SNIPPET, reference_threshold=10) == ChunkType.NARRATIVE
        )


class TestSemanticWeight:
    def test_empty(self):
        assert semantic_weight("") == 0.0
        assert semantic_weight("   ") == 0.0

    def test_formula(self):
        # unique 1.0 * 0.4 + (4.5 / 10) * 0.3 + (2 / 20) * 0.3
        assert semantic_weight("alpha beta") == pytest.approx(0.565)

    def test_bounded(self):
        long_words = " ".join(f"extraordinarily{i}" for i in range(200))
        assert 0.0 <= semantic_weight(long_words) <= 1.0

    def test_repetition_scores_lower(self):
        assert semantic_weight("the the the the the the") < semantic_weight(PROSE)


# ---------------------------------------------------------------------------
# Enrichment helpers
# ---------------------------------------------------------------------------


class TestPosition:
    @pytest.mark.parametrize(
        ("offset", "expected"),
        [
            (0, ChunkPosition.INTRO),
            (19, ChunkPosition.INTRO),
            (20, ChunkPosition.BODY),
            (80, ChunkPosition.BODY),
            (81, ChunkPosition.CONCLUSION),
        ],
    )
    def test_relative_offset(self, offset, expected):
        assert determine_position(offset, 100) == expected

    def test_empty_document(self):
        assert determine_position(0, 0) == ChunkPosition.INTRO

    def test_index_fallback(self):
        assert position_from_index(0, 10) == ChunkPosition.INTRO
        assert position_from_index(5, 10) == ChunkPosition.BODY
        assert position_from_index(9, 10) == ChunkPosition.CONCLUSION


class TestHeadingsAndSections:
    def test_known_headings_in_chunk(self):
        content = "## Risk Factors\n\nCurrency exposure."
        assert relevant_headings(content, ["Overview", "Risk Factors"]) == ["Risk Factors"]

    def test_inline_heading_fallback(self):
        assert relevant_headings("# Liquidity\n\nCash is ample.") == ["Liquidity"]

    def test_no_section(self):
        assert relevant_headings("Plain text.", ["Overview"]) == [NO_SECTION]

    def test_section_from_heading(self):
        assert detect_document_section("text", ["Risk Factors"]) == "Risk Factors"

    def test_section_from_first_line(self):
        assert detect_document_section("Liquidity review\nCash is ample.") == "Liquidity review"

    def test_section_truncated(self):
        first_line = "x" * 60
        assert detect_document_section(first_line) == "x" * 50 + "..."

    def test_section_unknown_for_long_line(self):
        assert detect_document_section("y" * 150) == UNKNOWN_SECTION


class TestKeywords:
    def test_frequency_order(self):
        text = "Revenue revenue growth growth growth margin the and 2024"
        assert extract_keywords(text, 3) == ["growth", "revenue", "margin"]

    def test_short_words_and_stopwords_dropped(self):
        assert extract_keywords("the and but with from that") == []

    def test_zero_requested(self):
        assert extract_keywords(PROSE, 0) == []


class TestContentType:
    def test_header_only(self):
        assert detect_content_type("## Balance Sheet", 0, 16, None) == "header"

    def test_table_chunk(self, annual_report_md):
        structure = analyze_structure(annual_report_md)
        table = structure.tables[0]
        content = annual_report_md[table.start:table.end]
        assert detect_content_type(content, table.start, table.end, structure) == "table"

    def test_list_chunk(self, annual_report_md):
        structure = analyze_structure(annual_report_md)
        lb = structure.lists[0]
        content = annual_report_md[lb.start:lb.end]
        assert detect_content_type(content, lb.start, lb.end, structure) == "list"

    def test_prose_is_text(self):
        assert detect_content_type(PROSE, 0, len(PROSE), analyze_structure(PROSE)) == "text"


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


class TestEnrichChunk:
    def test_full_enrichment(self, annual_report_md):
        structure = analyze_structure(annual_report_md)
        start = annual_report_md.index("## Risk Factors")
        end = structure.lists[0].end
        content = annual_report_md[start:end]

        info = enrich_chunk(
            content,
            2,
            annual_report_md,
            4,
            start_offset=start,
            end_offset=end,
            structure=structure,
            page_number=7,
        )
        assert info.headings == ["Risk Factors"]
        assert info.document_section == "Risk Factors"
        assert info.position == ChunkPosition.BODY
        assert info.content_type == "list"
        assert info.page_number == 7
        assert "concentration" in info.keywords
        assert info.chunk_type in set(ChunkType)

    def test_batch_uses_index_positions(self):
        chunks = ["first part", "middle part", "more middle", "later part", "last part"]
        infos = enrich_chunks_batch(chunks, " ".join(chunks))
        assert infos[0].position == ChunkPosition.INTRO
        assert infos[-1].position == ChunkPosition.BODY
        assert all(i.headings == [NO_SECTION] for i in infos)
