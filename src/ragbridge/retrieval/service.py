"""Similarity search over workspace namespaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Any, Protocol, Sequence

from ragbridge.connectors import LLMConnector
from ragbridge.embeddings import EmbeddingStore
from ragbridge.metrics.observability import get_logger
from ragbridge.models import ScoredChunk, SearchResult, SourcePassage, source_identifier


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for the Chroma-backed search provider."""

    lexical_blend_weight: float = 0.35


class SearchProvider(Protocol):
    """Similarity search as consumed by the retrieval orchestrator."""

    def has_namespace(self, namespace: str) -> bool:
        """Return whether the namespace exists in the vector index."""

    def namespace_count(self, namespace: str) -> int:
        """Return the number of vectors stored in the namespace."""

    def perform_similarity_search(
        self,
        *,
        namespace: str,
        query: str,
        connector: LLMConnector,
        similarity_threshold: float,
        top_n: int,
        filter_identifiers: AbstractSet[str] = frozenset(),
        rerank: bool = False,
    ) -> SearchResult:
        """Return ranked passages for the query or a failure message."""


class ChromaSearchProvider:
    """Search provider backed by a namespaced embedding store."""

    def __init__(self, store: EmbeddingStore, config: SearchConfig | None = None) -> None:
        self._store = store
        self._config = config or SearchConfig()
        self._logger = get_logger("retrieval.search")

    def has_namespace(self, namespace: str) -> bool:
        return self._store.has_namespace(namespace)

    def namespace_count(self, namespace: str) -> int:
        return self._store.namespace_count(namespace)

    def perform_similarity_search(
        self,
        *,
        namespace: str,
        query: str,
        connector: LLMConnector,
        similarity_threshold: float,
        top_n: int,
        filter_identifiers: AbstractSet[str] = frozenset(),
        rerank: bool = False,
    ) -> SearchResult:
        if not namespace or not query:
            return SearchResult.failure("Invalid namespace or query: both are required")
        if not self._store.has_namespace(namespace):
            return SearchResult.failure(f"Namespace {namespace} does not exist")
        try:
            # Over-fetch by the number of excluded sources so filtering does not starve top_n
            candidates = self._store.similarity_search(
                query,
                namespace=namespace,
                top_k=top_n + len(filter_identifiers),
            )
        except Exception as exc:  # noqa: BLE001 - provider failures travel as messages
            self._logger.error("search.failed", namespace=namespace, detail=str(exc))
            return SearchResult.failure(f"Similarity search failed: {exc}")

        kept: list[ScoredChunk] = []
        for candidate in candidates:
            # Hits without a distance carry no score to compare
            if candidate.score is not None and candidate.score < similarity_threshold:
                continue
            if source_identifier(candidate.chunk.metadata) in filter_identifiers:
                continue
            kept.append(candidate)
        if rerank and kept:
            kept = self._rerank(query, kept)
        kept = kept[:top_n]
        self._logger.info(
            "search.complete",
            namespace=namespace,
            model=connector.model,
            candidates=len(candidates),
            returned=len(kept),
            rerank=rerank,
        )
        sources = tuple(self._to_passage(candidate) for candidate in kept)
        return SearchResult(sources=sources, context_texts=tuple(candidate.chunk.text for candidate in kept))

    def _rerank(self, query: str, items: Sequence[ScoredChunk]) -> list[ScoredChunk]:
        weight = self._clamp_weight(self._config.lexical_blend_weight)
        tokens = set(query.lower().split())
        scored: list[tuple[ScoredChunk, float]] = []
        for item in items:
            lexical = _token_overlap_score(tokens, item.chunk.text)
            similarity = item.score if item.score is not None else 0.0
            blended = (1.0 - weight) * similarity + weight * lexical
            scored.append((item, blended))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [pair[0] for pair in scored]

    @staticmethod
    def _to_passage(item: ScoredChunk) -> SourcePassage:
        score = min(max(item.score, 0.0), 1.0) if item.score is not None else None
        metadata: dict[str, Any] = {**item.chunk.metadata, "score": score}
        return SourcePassage(
            text=item.chunk.text,
            origin="vector",
            identifier=source_identifier(item.chunk.metadata),
            title=metadata.get("title"),
            url=metadata.get("url"),
            score=score,
            metadata=metadata,
        )

    @staticmethod
    def _clamp_weight(weight: float) -> float:
        if weight < 0.0:
            return 0.0
        if weight > 1.0:
            return 1.0
        return weight


def _token_overlap_score(query_tokens: set[str], text: str) -> float:
    tokens = set(text.lower().split())
    if not tokens:
        return 0.0
    overlap = len(query_tokens.intersection(tokens))
    return overlap / max(len(query_tokens), 1)
