"""Workspace query facade shared by the CLI commands and the MCP tools."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from ragbridge.errors import WorkspaceNotFoundError
from ragbridge.metrics.observability import PipelineMetrics, get_logger
from ragbridge.models import MergedContext, NamespaceStats, RetrievalOptions, TokenBudget, Workspace
from ragbridge.retrieval.budget import TokenBudgetAnalyzer
from ragbridge.retrieval.orchestrator import RetrievalOrchestrator
from ragbridge.retrieval.service import SearchProvider
from ragbridge.workspaces.service import WorkspaceLookup


class WorkspaceQueryService:
    """Resolve workspaces, inspect their namespaces and run retrieval."""

    def __init__(
        self,
        workspaces: WorkspaceLookup,
        search_provider: SearchProvider,
        orchestrator: RetrievalOrchestrator,
        analyzer: TokenBudgetAnalyzer,
        *,
        list_concurrency: int = 8,
    ) -> None:
        self._workspaces = workspaces
        self._search = search_provider
        self._orchestrator = orchestrator
        self._analyzer = analyzer
        self._list_concurrency = max(1, list_concurrency)
        self._logger = get_logger("query")

    def resolve(self, reference: str, *, match_name: bool = False) -> Workspace:
        workspace = self._workspaces.find(reference) if match_name else self._workspaces.get(reference)
        if workspace is None:
            raise WorkspaceNotFoundError(reference)
        return workspace

    def namespace_stats(self, workspace: Workspace) -> NamespaceStats:
        has_namespace = self._search.has_namespace(workspace.slug)
        count = self._search.namespace_count(workspace.slug) if has_namespace else 0
        return NamespaceStats(has_namespace=has_namespace, vector_count=count)

    def list_workspaces(self) -> list[tuple[Workspace, NamespaceStats]]:
        workspaces = list(self._workspaces.all())
        if not workspaces:
            return []
        # Namespace counts are read-only and independent
        with ThreadPoolExecutor(max_workers=min(self._list_concurrency, len(workspaces))) as pool:
            stats = list(pool.map(self.namespace_stats, workspaces))
        return list(zip(workspaces, stats))

    def retrieve(self, workspace: Workspace, query: str, options: RetrievalOptions) -> MergedContext:
        return self._orchestrator.retrieve(workspace, query, options)

    def analyze_budget(self, texts: Sequence[str], connector_window: int, *, encoding_name: str | None = None) -> TokenBudget:
        budget = self._analyzer.analyze(texts, connector_window, encoding_name=encoding_name)
        PipelineMetrics.observe_budget(budget.percent_of_window)
        if budget.near_exhaustion:
            self._logger.warning(
                "budget.near_exhaustion",
                total=budget.total,
                window_limit=budget.window_limit,
                percent_of_window=budget.percent_of_window,
            )
        return budget

    def context_budget(self, context: MergedContext) -> TokenBudget:
        connector = context.connector
        return self.analyze_budget(
            context.context_texts,
            connector.prompt_window_limit(),
            encoding_name=connector.encoding_name,
        )
