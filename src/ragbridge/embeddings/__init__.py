"""Embedding services."""

from .service import (
    Embedding,
    EmbeddingBackend,
    EmbeddingConfig,
    HashEmbeddingBackend,
    SentenceEmbeddingBackend,
    build_embedding_backend,
)
from .store import ChromaEmbeddingStore, EmbeddingStore

__all__ = [
    "Embedding",
    "EmbeddingBackend",
    "EmbeddingConfig",
    "EmbeddingStore",
    "ChromaEmbeddingStore",
    "HashEmbeddingBackend",
    "SentenceEmbeddingBackend",
    "build_embedding_backend",
]
