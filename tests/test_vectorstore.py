"""Tests for chunk stores: FAISS + BM25 and in-memory Qdrant."""

from __future__ import annotations

from pathlib import Path

import pytest

from hybridrag.chunking.schemas import ChunkMetadata, ChunkPosition, ChunkType
from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.factory import (
    available_stores,
    build_vector_store,
    clear_cache,
    get_vector_store,
)
from hybridrag.vectorstore.faiss_store import FAISSStore
from hybridrag.vectorstore.keyword import KeywordIndex, tokenize
from hybridrag.vectorstore.schemas import (
    SearchScope,
    VectorRecord,
    metadata_from_dict,
    metadata_to_dict,
)

from conftest import DIM, MockEmbedder

TEXTS = {
    "bs": ("acme", "10k.pdf", "doc-1", "Total current assets and inventory drive the quick ratio."),
    "cf": ("acme", "10k.pdf", "doc-1", "Capital expenditure on property plant and equipment rose."),
    "seg": ("acme", "q2.pdf", "doc-2", "Segment revenue by region grew in Europe."),
    "other": ("globex", "10k.pdf", "doc-3", "Inventory write-downs hit the quick ratio."),
}


def _records(embedder: MockEmbedder) -> list[VectorRecord]:
    return [
        VectorRecord(
            id=rid,
            text=text,
            embedding=embedder.embed(text),
            metadata=ChunkMetadata(
                document_id=doc_id,
                document_name=name,
                tenant_id=tenant,
                content_type="table" if rid == "bs" else "text",
            ),
        )
        for rid, (tenant, name, doc_id, text) in TEXTS.items()
    ]


def _qdrant():
    pytest.importorskip("qdrant_client")
    from hybridrag.vectorstore.qdrant_store import QdrantStore

    return QdrantStore(collection_name="test_chunks", dimension=DIM)


@pytest.fixture(params=["faiss", "qdrant"])
def store(request) -> VectorStore:
    if request.param == "faiss":
        return FAISSStore(dimension=DIM)
    return _qdrant()


@pytest.fixture
def loaded(store: VectorStore, embedder: MockEmbedder) -> VectorStore:
    store.add(_records(embedder))
    return store


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class TestSchemas:
    def test_scope_matches(self):
        meta = ChunkMetadata(document_id="d", document_name="n", tenant_id="t")
        assert SearchScope().matches(meta)
        assert SearchScope(tenant_id="t", document_name="n").matches(meta)
        assert not SearchScope(tenant_id="x").matches(meta)
        assert not SearchScope(document_id="other").matches(meta)

    def test_scope_to_dict(self):
        assert SearchScope().is_empty
        assert SearchScope(tenant_id="t", document_id="d").to_dict() == {
            "tenant_id": "t",
            "document_id": "d",
        }

    def test_metadata_round_trip(self):
        meta = ChunkMetadata(
            document_id="d",
            chunk_type=ChunkType.REFERENCE,
            position=ChunkPosition.CONCLUSION,
            headings=["Risk Factors"],
            keywords=["supply"],
            page_number=4,
        )
        data = metadata_to_dict(meta)
        assert data["chunk_type"] == "reference"
        assert metadata_from_dict({**data, "text": "ignored"}) == meta


# ---------------------------------------------------------------------------
# Keyword index
# ---------------------------------------------------------------------------


class TestKeywordIndex:
    def test_tokenize_keeps_compound_terms(self):
        assert tokenize("PP&E, D/E and the 10-K!") == ["pp&e", "d/e", "and", "the", "10-k"]

    def test_top_hit_normalised_to_one(self):
        index = KeywordIndex()
        index.reset([
            "capex capex capex rose",
            "capex was flat",
            "revenue grew",
            "margins held",
            "cash rose",
        ])
        ranked = index.rank("capex", top_k=10)
        assert [pos for pos, _ in ranked] == [0, 1]
        assert ranked[0][1] == pytest.approx(1.0)
        assert 0.0 <= ranked[1][1] < 1.0

    def test_only_chunks_sharing_a_term(self):
        index = KeywordIndex()
        index.reset(["alpha beta", "gamma delta"])
        assert [pos for pos, _ in index.rank("beta", 5)] == [0]
        assert index.rank("zeta", 5) == []
        assert index.rank("   ", 5) == []

    def test_accept_filter(self):
        index = KeywordIndex()
        index.reset(["capex rose", "capex fell"])
        assert [pos for pos, _ in index.rank("capex", 5, accept=lambda i: i == 1)] == [1]


# ---------------------------------------------------------------------------
# Store behaviour (both backends)
# ---------------------------------------------------------------------------


class TestVectorStore:
    def test_add_and_count(self, loaded: VectorStore):
        assert loaded.count() == 4
        assert loaded.count(SearchScope(tenant_id="acme")) == 3
        assert loaded.count(SearchScope(document_id="doc-1")) == 2

    def test_add_empty(self, store: VectorStore):
        assert store.add([]) == 0

    def test_semantic_search_ranks_overlap_first(self, loaded: VectorStore, embedder):
        results = loaded.search(embedder.embed_query("capital expenditure equipment"), top_k=2)
        assert results[0].id == "cf"
        assert results[0].score >= results[-1].score
        assert results[0].metadata.document_id == "doc-1"

    def test_search_scope_is_prefilter(self, loaded: VectorStore, embedder):
        query = embedder.embed_query("quick ratio inventory")
        results = loaded.search(query, top_k=1, scope=SearchScope(tenant_id="globex"))
        assert [r.id for r in results] == ["other"]

    def test_search_document_name_scope(self, loaded: VectorStore, embedder):
        query = embedder.embed_query("revenue")
        results = loaded.search(query, top_k=10, scope=SearchScope(document_name="q2.pdf"))
        assert {r.id for r in results} == {"seg"}

    def test_min_score(self, loaded: VectorStore, embedder):
        results = loaded.search(embedder.embed_query("segment region"), top_k=10, min_score=0.3)
        assert all(r.score >= 0.3 for r in results)
        assert "seg" in {r.id for r in results}

    def test_keyword_search(self, loaded: VectorStore):
        results = loaded.keyword_search("quick ratio", top_k=10)
        assert {r.id for r in results} == {"bs", "other"}
        assert results[0].score == pytest.approx(1.0)

    def test_keyword_search_scoped(self, loaded: VectorStore):
        results = loaded.keyword_search("quick ratio", top_k=10, scope=SearchScope(tenant_id="acme"))
        assert [r.id for r in results] == ["bs"]
        assert results[0].metadata.content_type == "table"

    def test_upsert_same_id(self, loaded: VectorStore, embedder):
        replacement = VectorRecord(
            id="seg",
            text="Segment margins fell.",
            embedding=embedder.embed("Segment margins fell."),
            metadata=ChunkMetadata(document_id="doc-2", document_name="q2.pdf", tenant_id="acme"),
        )
        loaded.add([replacement])
        assert loaded.count() == 4
        results = loaded.keyword_search("margins", top_k=5)
        assert [r.text for r in results] == ["Segment margins fell."]

    def test_delete(self, loaded: VectorStore, embedder):
        assert loaded.delete(["seg", "missing"]) == 1
        assert loaded.count() == 3
        ids = {r.id for r in loaded.search(embedder.embed_query("segment"), top_k=10)}
        assert "seg" not in ids

    def test_delete_document(self, loaded: VectorStore):
        assert loaded.delete_document("doc-1") == 2
        assert loaded.count(SearchScope(document_id="doc-1")) == 0
        assert loaded.count() == 2
        assert loaded.delete_document("doc-1") == 0
        assert loaded.keyword_search("capital expenditure", top_k=5) == []

    def test_clear(self, loaded: VectorStore, embedder):
        loaded.clear()
        assert loaded.count() == 0
        assert loaded.search(embedder.embed_query("anything"), top_k=5) == []


# ---------------------------------------------------------------------------
# FAISS specifics
# ---------------------------------------------------------------------------


class TestFAISSStore:
    def test_dimension_mismatch(self):
        store = FAISSStore(dimension=DIM)
        with pytest.raises(ValueError, match="dimension mismatch"):
            store.add([VectorRecord(id="x", text="t", embedding=[0.1, 0.2])])

    def test_save_and_load(self, tmp_path: Path, embedder: MockEmbedder):
        store = FAISSStore(dimension=DIM)
        store.add(_records(embedder))
        store.save(str(tmp_path / "index"))

        restored = FAISSStore(dimension=DIM)
        restored.load(str(tmp_path / "index"))
        assert restored.count() == 4
        hits = restored.keyword_search("quick ratio", top_k=1, scope=SearchScope(tenant_id="acme"))
        assert hits[0].id == "bs"

        # deletes still work after a reload
        assert restored.delete_document("doc-2") == 1
        assert restored.count() == 3

    def test_load_missing_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            FAISSStore(dimension=DIM).load(str(tmp_path / "nope"))


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestVectorStoreFactory:
    def setup_method(self):
        clear_cache()

    def test_available(self):
        assert available_stores() == ["faiss", "qdrant"]

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown vector store"):
            get_vector_store("pinecone")

    def test_build_from_settings_starts_empty(self, tmp_path: Path):
        from hybridrag.config import Settings

        settings = Settings()
        settings.embedding.dimension = DIM
        settings.vectorstore.path = str(tmp_path / "missing")
        store = build_vector_store(settings)
        assert isinstance(store, FAISSStore)
        assert store.count() == 0
