"""JSON payload shapes shared by the CLI and the MCP tools."""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from ragbridge.models import MergedContext, NamespaceStats, RetrievalOptions, SourcePassage, TokenBudget, Workspace

CONTEXT_DISPLAY_SEPARATOR = "\n\n---\n\n"
NO_EMBEDDINGS_MESSAGE = "This workspace has no embedded documents"


def to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)


def passage_result(index: int, passage: SourcePassage, *, include_text: bool = True) -> dict[str, Any]:
    """Render one passage; ``score`` is always present and null for pinned passages."""

    result: dict[str, Any] = {
        "index": index,
        "type": passage.origin,
        "score": passage.score,
        "title": passage.title or "Untitled",
        "url": passage.url,
    }
    if include_text:
        result["text"] = passage.text
    result["metadata"] = dict(passage.metadata)
    return result


def passage_results(passages: Sequence[SourcePassage], *, include_text: bool = True) -> list[dict[str, Any]]:
    return [passage_result(index, passage, include_text=include_text) for index, passage in enumerate(passages, start=1)]


def echo_settings(options: RetrievalOptions) -> dict[str, Any]:
    return {
        "topN": options.top_n,
        "threshold": options.threshold,
        "rerank": bool(options.rerank),
        "includePinned": options.include_pinned,
    }


def search_payload(
    query: str,
    workspace: Workspace,
    options: RetrievalOptions,
    stats: NamespaceStats,
    context: MergedContext,
) -> dict[str, Any]:
    return {
        "query": query,
        "workspace": workspace.name,
        "settings": echo_settings(options),
        "stats": {
            "totalEmbeddings": stats.vector_count,
            "resultsFound": len(context.passages),
            "pinnedDocs": context.pinned_count,
            "vectorResults": context.vector_count,
        },
        "results": passage_results(context.passages),
    }


def empty_search_payload(query: str, workspace: Workspace, options: RetrievalOptions) -> dict[str, Any]:
    return {
        "query": query,
        "workspace": workspace.name,
        "message": NO_EMBEDDINGS_MESSAGE,
        "settings": echo_settings(options),
        "stats": {
            "totalEmbeddings": 0,
            "resultsFound": 0,
            "pinnedDocs": 0,
            "vectorResults": 0,
        },
        "results": [],
    }


def workspace_summary(workspace: Workspace, stats: NamespaceStats) -> dict[str, Any]:
    return {
        "name": workspace.name,
        "slug": workspace.slug,
        "vectorCount": stats.vector_count,
        "hasEmbeddings": stats.has_embeddings,
    }


def workspace_list_payload(entries: Iterable[tuple[Workspace, NamespaceStats]]) -> dict[str, Any]:
    summaries = [workspace_summary(workspace, stats) for workspace, stats in entries]
    return {"totalWorkspaces": len(summaries), "workspaces": summaries}


def workspace_info_payload(workspace: Workspace, stats: NamespaceStats) -> dict[str, Any]:
    return {
        "name": workspace.name,
        "slug": workspace.slug,
        "settings": {
            "chatProvider": workspace.chat_provider,
            "chatModel": workspace.chat_model,
            "topN": workspace.top_n,
            "similarityThreshold": workspace.similarity_threshold,
            "vectorSearchMode": workspace.vector_search_mode,
        },
        "stats": {
            "hasEmbeddings": stats.has_embeddings,
            "vectorCount": stats.vector_count,
        },
    }


def budget_payload(budget: TokenBudget) -> dict[str, Any]:
    return {
        "total": budget.total,
        "windowLimit": budget.window_limit,
        "percentOfWindow": budget.percent_label,
        "warning": budget.near_exhaustion,
    }


def context_payload(texts: Sequence[str]) -> dict[str, Any]:
    return {"texts": list(texts), "combined": CONTEXT_DISPLAY_SEPARATOR.join(texts)}
