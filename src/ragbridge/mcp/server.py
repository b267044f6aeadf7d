"""
MCP stdio server exposing workspace retrieval tools.

Transport: stdio only. Tool calls are answered with a single JSON text
content item; failures carry ``isError`` and an ``Error: <message>`` text.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

import anyio
import anyio.to_thread
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from ragbridge.config import get_settings
from ragbridge.mcp.dispatch import ToolDispatcher
from ragbridge.metrics.observability import configure_logging, get_logger
from ragbridge.runtime import build_runtime


class ToolCallFailed(Exception):
    """Carries an already-rendered error text to the SDK's isError result."""


def build_server(dispatcher: ToolDispatcher, name: str = "ragbridge-rag") -> Server:
    server: Server = Server(name)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=tool["name"], description=tool["description"], inputSchema=tool["inputSchema"])
            for tool in dispatcher.list_tools()
        ]

    # Arguments are validated by the dispatcher so schema errors share the error envelope
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        response = await anyio.to_thread.run_sync(dispatcher.call_tool, name, arguments or {})
        if response.is_error:
            raise ToolCallFailed(response.text)
        return [types.TextContent(type="text", text=response.text)]

    return server


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the ragbridge MCP server (stdio).")
    parser.add_argument(
        "--workspaces-file",
        type=Path,
        default=None,
        help="Workspace registry JSON file (overrides RAGBRIDGE_WORKSPACES_FILE)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    settings = get_settings({"workspaces_file": args.workspaces_file} if args.workspaces_file else None)
    configure_logging()
    logger = get_logger("mcp.server")
    runtime = build_runtime(settings)
    server = build_server(ToolDispatcher(runtime.query_service), settings.mcp_server_name)
    logger.info("server.started", name=settings.mcp_server_name, workspaces_file=str(settings.workspaces_file))
    try:
        anyio.run(serve_stdio, server)
    except KeyboardInterrupt:
        logger.info("server.stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
