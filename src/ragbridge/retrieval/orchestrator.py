"""Merge pinned documents and similarity search into one context set."""

from __future__ import annotations

from dataclasses import dataclass

from ragbridge.connectors import ConnectorResolver, LLMConnector
from ragbridge.errors import RetrievalError
from ragbridge.metrics.observability import PipelineMetrics, TimedSection, get_logger
from ragbridge.models import (
    MergedContext,
    PinnedDocument,
    RetrievalOptions,
    SourcePassage,
    Workspace,
    source_identifier,
)
from ragbridge.retrieval.service import SearchProvider
from ragbridge.workspaces.pinned import PinnedDocumentProvider


@dataclass(frozen=True)
class OrchestratorConfig:
    """Presentation constants for pinned passages."""

    preview_chars: int = 1000
    continuation_marker: str = "...continued on in source document..."


class RetrievalOrchestrator:
    """Assemble pinned-first, deduplicated context for one query."""

    def __init__(
        self,
        search_provider: SearchProvider,
        pinned_provider: PinnedDocumentProvider,
        connectors: ConnectorResolver,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._search = search_provider
        self._pinned = pinned_provider
        self._connectors = connectors
        self._config = config or OrchestratorConfig()
        self._logger = get_logger("retrieval")

    def connector_for(self, workspace: Workspace) -> LLMConnector:
        return self._connectors.resolve(workspace.chat_provider, workspace.chat_model)

    def retrieve(self, workspace: Workspace, query: str, options: RetrievalOptions | None = None) -> MergedContext:
        options = options or RetrievalOptions()
        _validate(query, options)
        connector = self.connector_for(workspace)

        with TimedSection() as timer:
            pinned_passages: list[SourcePassage] = []
            pinned_texts: list[str] = []
            if options.include_pinned:
                documents = self._pinned.pinned_documents(workspace, max_tokens=connector.prompt_window_limit())
                for document in documents:
                    pinned_passages.append(self._pinned_passage(document))
                    pinned_texts.append(document.page_content)
            exclusions = frozenset(passage.identifier for passage in pinned_passages)

            rerank = options.rerank if options.rerank is not None else workspace.vector_search_mode == "rerank"
            result = self._search.perform_similarity_search(
                namespace=workspace.slug,
                query=query,
                connector=connector,
                similarity_threshold=options.threshold,
                top_n=options.top_n,
                filter_identifiers=exclusions,
                rerank=rerank,
            )
            if not result.ok:
                self._logger.error("retrieval.failed", workspace=workspace.slug, detail=result.message)
                raise RetrievalError(result.message)

            vector_passages: list[SourcePassage] = []
            vector_texts: list[str] = []
            for passage, text in zip(result.sources, result.context_texts, strict=True):
                if passage.identifier in exclusions:
                    self._logger.warning("retrieval.duplicate_dropped", identifier=passage.identifier)
                    continue
                vector_passages.append(passage)
                vector_texts.append(text)

        PipelineMetrics.observe_retrieval(
            timer.elapsed,
            len(pinned_passages),
            len(vector_passages),
            (passage.score for passage in vector_passages),
        )
        self._logger.info(
            "retrieval.complete",
            workspace=workspace.slug,
            pinned=len(pinned_passages),
            vector=len(vector_passages),
            top_n=options.top_n,
            threshold=options.threshold,
            rerank=rerank,
            duration_seconds=timer.elapsed,
        )
        return MergedContext(
            passages=(*pinned_passages, *vector_passages),
            context_texts=(*pinned_texts, *vector_texts),
            connector=connector,
        )

    def _pinned_passage(self, document: PinnedDocument) -> SourcePassage:
        content = document.page_content
        preview = content[: self._config.preview_chars]
        if len(content) > self._config.preview_chars:
            preview += self._config.continuation_marker
        metadata = {**document.metadata, "isPinned": True}
        return SourcePassage(
            text=preview,
            origin="pinned",
            identifier=source_identifier(document.metadata),
            title=metadata.get("title"),
            url=metadata.get("url"),
            score=None,
            metadata=metadata,
        )


def _validate(query: str, options: RetrievalOptions) -> None:
    if not query or not query.strip():
        raise ValueError("query must be a non-empty string")
    if options.top_n < 1:
        raise ValueError("top_n must be a positive integer")
    if not 0.0 <= options.threshold <= 1.0:
        raise ValueError("threshold must be between 0 and 1")
