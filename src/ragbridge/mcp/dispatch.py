"""Tool dispatch: validate arguments, run the query service, shape responses.

Every call resolves to a response. Failures of any kind are caught here and
rendered as ``{"content": [{"type": "text", "text": "Error: ..."}], "isError": true}``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ragbridge.errors import SchemaViolationError, UnknownToolError
from ragbridge.mcp.tool_defs import LIST_WORKSPACES, SEARCH_EMBEDDINGS, TOOL_DEFINITIONS, WORKSPACE_INFO
from ragbridge.metrics.observability import (
    PipelineMetrics,
    bind_correlation_id,
    clear_correlation_id,
    get_logger,
)
from ragbridge.models import RetrievalOptions
from ragbridge.services import formatting
from ragbridge.services.query import WorkspaceQueryService


class SearchEmbeddingsArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: str = Field(..., min_length=1)
    workspace: str = Field(..., min_length=1)
    top_n: int = Field(default=4, ge=1, alias="topN")
    threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    include_pinned: bool = Field(default=False, alias="includePinned")
    # None: not supplied, the workspace search mode decides
    rerank: Optional[bool] = None

    def options(self) -> RetrievalOptions:
        return RetrievalOptions(
            top_n=self.top_n,
            threshold=self.threshold,
            include_pinned=self.include_pinned,
            rerank=self.rerank,
        )


class WorkspaceArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    workspace: str = Field(..., min_length=1)


@dataclass(frozen=True)
class ToolResponse:
    """Single text payload, optionally flagged as an error."""

    text: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            payload["isError"] = True
        return payload


def _parse(model: type[BaseModel], tool: str, arguments: Mapping[str, Any]) -> Any:
    try:
        return model.model_validate(dict(arguments))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
            for error in exc.errors()
        )
        raise SchemaViolationError(f"Invalid arguments for {tool}: {problems}") from exc


class ToolDispatcher:
    """Stateless dispatcher for the three retrieval tools."""

    def __init__(self, query_service: WorkspaceQueryService) -> None:
        self._service = query_service
        self._handlers: dict[str, Callable[[Mapping[str, Any]], dict[str, Any]]] = {
            SEARCH_EMBEDDINGS: self.search_embeddings,
            LIST_WORKSPACES: self.list_workspaces,
            WORKSPACE_INFO: self.workspace_info,
        }
        self._logger = get_logger("mcp.dispatch")

    @staticmethod
    def list_tools() -> list[dict[str, Any]]:
        return copy.deepcopy(TOOL_DEFINITIONS)

    def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResponse:
        bind_correlation_id(uuid4().hex)
        metric_name = name if name in self._handlers else "unknown"
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownToolError(name)
            payload = handler(arguments or {})
        except Exception as exc:  # noqa: BLE001 - dispatch boundary, every failure becomes an envelope
            self._logger.error("tool.error", tool=name, error_type=type(exc).__name__, detail=str(exc))
            PipelineMetrics.observe_tool_call(metric_name, "error")
            return ToolResponse(text=f"Error: {exc}", is_error=True)
        finally:
            clear_correlation_id()
        PipelineMetrics.observe_tool_call(metric_name, "ok")
        return ToolResponse(text=formatting.to_json(payload))

    def search_embeddings(self, arguments: Mapping[str, Any]) -> dict[str, Any]:
        args: SearchEmbeddingsArgs = _parse(SearchEmbeddingsArgs, SEARCH_EMBEDDINGS, arguments)
        options = args.options()
        workspace = self._service.resolve(args.workspace)
        stats = self._service.namespace_stats(workspace)
        if not stats.has_embeddings:
            return formatting.empty_search_payload(args.query, workspace, options)
        context = self._service.retrieve(workspace, args.query, options)
        return formatting.search_payload(args.query, workspace, options, stats, context)

    def list_workspaces(self, arguments: Mapping[str, Any]) -> dict[str, Any]:
        return formatting.workspace_list_payload(self._service.list_workspaces())

    def workspace_info(self, arguments: Mapping[str, Any]) -> dict[str, Any]:
        args: WorkspaceArgs = _parse(WorkspaceArgs, WORKSPACE_INFO, arguments)
        workspace = self._service.resolve(args.workspace)
        return formatting.workspace_info_payload(workspace, self._service.namespace_stats(workspace))
