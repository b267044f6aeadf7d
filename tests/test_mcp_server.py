"""End-to-end tool calls through the MCP SDK over in-memory streams."""

from __future__ import annotations

import json

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from ragbridge.mcp.dispatch import ToolDispatcher
from ragbridge.mcp.server import build_server
from ragbridge.mcp.tool_defs import TOOL_DEFINITIONS

from retrieval_stubs import StubSearchProvider, make_service, make_workspace, vector_passage


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def server():
    search = StubSearchProvider({"docs": 2}, {"docs": [vector_passage("install", 0.8), vector_passage("faq", 0.6)]})
    dispatcher = ToolDispatcher(make_service([make_workspace("docs", name="Docs")], search))
    return build_server(dispatcher, "test-rag")


@pytest.mark.anyio
async def test_tools_are_advertised_verbatim(server):
    async with create_connected_server_and_client_session(server) as client:
        listed = await client.list_tools()

    assert [tool.name for tool in listed.tools] == [tool["name"] for tool in TOOL_DEFINITIONS]
    for tool, definition in zip(listed.tools, TOOL_DEFINITIONS):
        assert tool.description == definition["description"]
        assert tool.inputSchema == definition["inputSchema"]


@pytest.mark.anyio
async def test_search_returns_json_text(server):
    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("search_embeddings", {"query": "install", "workspace": "docs", "topN": 1})

    assert not result.isError
    payload = json.loads(result.content[0].text)
    assert payload["stats"]["resultsFound"] == 1
    assert payload["results"][0]["title"] == "install"


@pytest.mark.anyio
async def test_failures_come_back_flagged(server):
    async with create_connected_server_and_client_session(server) as client:
        missing = await client.call_tool("workspace_info", {"workspace": "ghost"})
        unknown = await client.call_tool("drop_tables", {})

    assert missing.isError
    assert missing.content[0].text == 'Error: Workspace "ghost" not found'
    assert unknown.isError
    assert unknown.content[0].text == "Error: Unknown tool: drop_tables"
