"""Service layer shared by the CLI and MCP surfaces."""

from .query import WorkspaceQueryService

__all__ = ["WorkspaceQueryService"]
