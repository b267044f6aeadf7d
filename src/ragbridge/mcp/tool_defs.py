"""MCP tool definitions returned by tools/list.

The schemas are served verbatim; argument validation in the dispatcher mirrors
them (required keys, defaults).
"""

from __future__ import annotations

from typing import Any

SEARCH_EMBEDDINGS = "search_embeddings"
LIST_WORKSPACES = "list_workspaces"
WORKSPACE_INFO = "workspace_info"

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": SEARCH_EMBEDDINGS,
        "description": "Search for relevant documents in a workspace using semantic similarity",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query text",
                },
                "workspace": {
                    "type": "string",
                    "description": "The workspace slug to search in",
                },
                "topN": {
                    "type": "number",
                    "description": "Number of results to return (default: 4)",
                    "default": 4,
                },
                "threshold": {
                    "type": "number",
                    "description": "Similarity threshold 0-1 (default: 0.25)",
                    "default": 0.25,
                },
                "includePinned": {
                    "type": "boolean",
                    "description": "Include pinned documents in results",
                    "default": False,
                },
                "rerank": {
                    "type": "boolean",
                    "description": "Use reranking for better results",
                    "default": False,
                },
            },
            "required": ["query", "workspace"],
        },
    },
    {
        "name": LIST_WORKSPACES,
        "description": "List all available workspaces",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
    {
        "name": WORKSPACE_INFO,
        "description": "Get information about a specific workspace",
        "inputSchema": {
            "type": "object",
            "properties": {
                "workspace": {
                    "type": "string",
                    "description": "The workspace slug",
                },
            },
            "required": ["workspace"],
        },
    },
]
