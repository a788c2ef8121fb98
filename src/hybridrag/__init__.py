"""Hybrid semantic retrieval with content-aware document chunking."""

__version__ = "0.1.0"
