"""MCP surface: tool definitions, dispatch and the stdio server."""

from .dispatch import ToolDispatcher, ToolResponse
from .tool_defs import TOOL_DEFINITIONS

__all__ = ["TOOL_DEFINITIONS", "ToolDispatcher", "ToolResponse"]
