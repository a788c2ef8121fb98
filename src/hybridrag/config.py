"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "ollama"
    model: str = "nomic-embed-text"
    dimension: int = 768


class VectorStoreSettings(BaseModel):
    backend: str = "faiss"
    path: str = "local_data/vectorstore"
    collection: str = "knowledge_chunks"
    url: str | None = None
    qdrant_path: str | None = None


class LLMSettings(BaseModel):
    provider: str = "ollama"
    model: str = "llama3.1:8b"
    temperature: float = 0.2
    max_tokens: int = 2048


class ChunkingSettings(BaseModel):
    max_chunk_size: int = 1500
    min_chunk_size: int = 200
    overlap_size: int = 100
    respect_boundaries: bool = True
    adaptive_sizing: bool = True

    @model_validator(mode="after")
    def _check_bounds(self) -> ChunkingSettings:
        if self.min_chunk_size > self.max_chunk_size:
            raise ValueError("chunking.min_chunk_size must not exceed max_chunk_size")
        return self


class ClassifierSettings(BaseModel):
    technical_threshold: int = 2
    reference_threshold: int = 3
    keyword_count: int = 5


class RetrievalSettings(BaseModel):
    top_k: int = 5
    similarity_threshold: float = 0.05
    candidate_multiplier: int = 2
    intent_rerank: bool = True


class ExpansionSettings(BaseModel):
    enabled: bool = True
    use_llm: bool = True
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 5.0
    max_llm_calls: int = 4
    max_tokens: int = 200
    temperature: float = 0.3
    cache_backend: str = "json"
    cache_path: str = "local_data/expansion_cache.json"


class IngestionSettings(BaseModel):
    supported_formats: list[str] = Field(
        default_factory=lambda: [".pdf", ".docx", ".txt", ".md", ".xlsx"]
    )
    max_file_size_mb: int = 100
    batch_size: int = 10
    embed_batch_size: int = 32
    store_batch_size: int = 50
    max_workers: int = 4
    registry_path: str = "local_data/documents.json"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    expansion: ExpansionSettings = Field(default_factory=ExpansionSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("RAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML file, falling back to defaults.

    Args:
        path: Explicit settings file. When omitted the file is discovered
            from the working directory (honouring ``RAG_PROFILE``).
    """
    settings_path = Path(path) if path is not None else _find_settings_file()
    if settings_path is None:
        return Settings()

    with open(settings_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)
