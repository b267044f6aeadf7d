"""Embedding store implementations."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Protocol, Sequence

import chromadb
from chromadb.api import ClientAPI
from chromadb.api.types import Documents, Embeddings as ChromaEmbeddings, IDs, Metadatas

from ragbridge.embeddings.service import EmbeddingBackend
from ragbridge.models import DocumentChunk, ScoredChunk

# Chunk metadata keys stored as first-class Chroma metadata; anything else is
# folded into a JSON blob.
_FLAT_KEYS = ("title", "url", "published", "docSource", "docId")


class EmbeddingStore(Protocol):
    """Protocol for namespaced embedding persistence backends."""

    def upsert(self, chunks: Sequence[DocumentChunk], *, namespace: str) -> Sequence[str]:
        """Persist embeddings for the provided chunks under a namespace."""

    def similarity_search(self, query: str, *, namespace: str, top_k: int = 4) -> Sequence[ScoredChunk]:
        """Return the top-k similar chunks of a namespace for the query string."""

    def has_namespace(self, namespace: str) -> bool:
        """Return whether anything was ever stored under the namespace."""

    def namespace_count(self, namespace: str) -> int:
        """Return the number of chunks stored under the namespace."""


class ChromaEmbeddingStore:
    """Chroma-backed embedding store; one collection, namespaces in metadata."""

    def __init__(
        self,
        embedding_backend: EmbeddingBackend,
        collection_name: str = "ragbridge",
        *,
        client: ClientAPI | None = None,
        persist_directory: str | Path | None = None,
    ) -> None:
        if client is not None:
            self._client = client
        elif persist_directory is not None:
            self._client = chromadb.PersistentClient(path=str(persist_directory))
        else:
            self._client = chromadb.EphemeralClient()
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self._backend = embedding_backend

    def upsert(self, chunks: Sequence[DocumentChunk], *, namespace: str) -> Sequence[str]:
        if not chunks:
            return []
        embeddings = self._backend.embed_chunks(chunks)
        ids: IDs = [embedding.chunk.chunk_id for embedding in embeddings]
        documents: Documents = [embedding.chunk.text for embedding in embeddings]
        metadatas: Metadatas = [
            self._serialize_metadata(embedding.chunk.metadata, namespace=namespace)
            for embedding in embeddings
        ]
        vectors: ChromaEmbeddings = [list(embedding.vector) for embedding in embeddings]
        self._collection.upsert(ids=ids, documents=documents, embeddings=vectors, metadatas=metadatas)
        return list(ids)

    def similarity_search(self, query: str, *, namespace: str, top_k: int = 4) -> Sequence[ScoredChunk]:
        if top_k <= 0:
            return []
        available = self.namespace_count(namespace)
        if available == 0:
            return []
        vector = list(self._backend.embed_query(query))
        results = self._collection.query(
            query_embeddings=[vector],
            n_results=min(top_k, available),
            where={"namespace": namespace},
        )
        return self._deserialize_results(results)

    def has_namespace(self, namespace: str) -> bool:
        return self.namespace_count(namespace) > 0

    def namespace_count(self, namespace: str) -> int:
        batch = self._collection.get(where={"namespace": namespace}, include=[])
        return len(batch.get("ids") or [])

    def _serialize_metadata(self, metadata: Mapping[str, Any], *, namespace: str) -> MutableMapping[str, object]:
        serialized: MutableMapping[str, object] = {"namespace": namespace}
        extra: dict[str, Any] = {}
        for key, value in metadata.items():
            if key in _FLAT_KEYS and value is not None:
                serialized[key] = str(value)
            elif key not in _FLAT_KEYS:
                extra[key] = value
        serialized["extra"] = self._dumps(extra)
        return serialized

    def _deserialize_results(self, results: Mapping[str, object]) -> Sequence[ScoredChunk]:
        ids = self._first(results.get("ids", []))
        documents = self._first(results.get("documents", []))
        metadatas = self._first(results.get("metadatas", []))
        distances = self._first(results.get("distances", []))
        retrieved: list[ScoredChunk] = []
        if not ids or not documents or not metadatas:
            return retrieved
        for idx, doc, metadata, distance in zip(ids, documents, metadatas, distances or [], strict=False):
            retrieved.append(self._deserialize_chunk(idx, doc, metadata, distance))
        # Handle cases when distances missing or shorter than ids
        if len(retrieved) < len(ids):
            for idx, doc, metadata in zip(ids[len(retrieved) :], documents[len(retrieved) :], metadatas[len(retrieved) :], strict=False):
                retrieved.append(self._deserialize_chunk(idx, doc, metadata, distance=None))
        return retrieved

    def _deserialize_chunk(
        self,
        chunk_id: str,
        document: str,
        metadata: Mapping[str, object],
        distance: float | None,
    ) -> ScoredChunk:
        restored: dict[str, Any] = self._loads_dict(metadata.get("extra"))
        for key in _FLAT_KEYS:
            if key in metadata:
                restored[key] = metadata[key]
        chunk = DocumentChunk(chunk_id=chunk_id, text=document, metadata=restored)
        score = 1.0 - float(distance) if distance is not None else None
        return ScoredChunk(chunk=chunk, score=score)

    @staticmethod
    def _first(value: object) -> Iterable:
        if isinstance(value, list):
            return value[0] if value else []
        return []

    @staticmethod
    def _dumps(value: object) -> str:
        try:
            return json.dumps(value, default=str)
        except TypeError:
            return json.dumps({}, default=str)

    @staticmethod
    def _loads_dict(value: object) -> Dict[str, Any]:
        if isinstance(value, str) and value:
            try:
                loaded = json.loads(value)
                if isinstance(loaded, dict):
                    return loaded
            except json.JSONDecodeError:
                return {}
        if isinstance(value, Mapping):
            return dict(value)
        return {}
