"""Process-level wiring of providers, orchestrator and query service."""

from __future__ import annotations

from dataclasses import dataclass

import chromadb

from ragbridge.config import Settings, get_settings
from ragbridge.connectors import ConnectorResolver
from ragbridge.embeddings import ChromaEmbeddingStore, EmbeddingConfig, build_embedding_backend
from ragbridge.retrieval.budget import TokenBudgetAnalyzer
from ragbridge.retrieval.orchestrator import OrchestratorConfig, RetrievalOrchestrator
from ragbridge.retrieval.service import ChromaSearchProvider, SearchConfig
from ragbridge.services.query import WorkspaceQueryService
from ragbridge.workspaces import FilePinnedDocumentProvider, JsonWorkspaceRepository


@dataclass(frozen=True)
class Runtime:
    settings: Settings
    query_service: WorkspaceQueryService


def build_runtime(settings: Settings | None = None) -> Runtime:
    """Resolve configuration once and build the shared query service."""

    settings = settings or get_settings()
    backend = build_embedding_backend(
        EmbeddingConfig(
            model=settings.embedding_model,
            dim=settings.embedding_dim,
            use_model=settings.use_model_embeddings,
            normalize=True,
        ),
    )
    chroma_client = None
    if settings.chroma_host:
        chroma_client = chromadb.HttpClient(
            host=settings.chroma_host,
            port=settings.chroma_port or 8000,
            ssl=settings.chroma_ssl,
        )
    store = ChromaEmbeddingStore(
        backend,
        collection_name=settings.chroma_collection,
        client=chroma_client,
        persist_directory=None if chroma_client else settings.chroma_persist_dir,
    )
    search = ChromaSearchProvider(store, SearchConfig(lexical_blend_weight=settings.rerank_lexical_weight))
    analyzer = TokenBudgetAnalyzer(settings.tokenizer_encoding, warning_ratio=settings.token_warning_ratio)
    connectors = ConnectorResolver(
        default_provider=settings.llm_provider,
        default_model=settings.chat_model,
        default_window=settings.default_prompt_window,
        encoding_name=settings.tokenizer_encoding,
        window_overrides=dict(settings.prompt_window_overrides),
    )
    orchestrator = RetrievalOrchestrator(
        search,
        FilePinnedDocumentProvider(analyzer.count_tokens),
        connectors,
        OrchestratorConfig(preview_chars=settings.pinned_preview_chars),
    )
    query_service = WorkspaceQueryService(
        JsonWorkspaceRepository(settings.workspaces_file),
        search,
        orchestrator,
        analyzer,
        list_concurrency=settings.list_concurrency,
    )
    return Runtime(settings=settings, query_service=query_service)
