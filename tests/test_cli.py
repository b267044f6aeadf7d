"""Tests for the query command-line tools."""

from __future__ import annotations

import json

from ragbridge.cli import query_embeddings, rag_query
from ragbridge.retrieval.budget import TokenBudgetAnalyzer

from retrieval_stubs import (
    StubPinnedProvider,
    StubSearchProvider,
    make_runtime,
    make_service,
    make_workspace,
    pinned_document,
    vector_passage,
)


def _runtime(pinned: StubPinnedProvider | None = None, analyzer: TokenBudgetAnalyzer | None = None, search=None):
    search = search or StubSearchProvider(
        {"docs": 10, "empty": 0},
        {"docs": [vector_passage(f"doc-{i}", 0.9 - i * 0.05) for i in range(10)]},
    )
    workspaces = [make_workspace("docs", name="Product Docs"), make_workspace("empty", name="Empty")]
    return make_runtime(make_service(workspaces, search, pinned, analyzer))


def test_unknown_workspace_exits_with_error(capsys):
    code = query_embeddings.main(["-w", "ghost", "-q", "install steps"], runtime=_runtime())

    captured = capsys.readouterr()
    assert code == 1
    assert 'Error: Workspace "ghost" not found' in captured.err


def test_empty_workspace_warns_and_exits_with_error(capsys):
    code = rag_query.main(["-w", "empty", "-q", "install steps"], runtime=_runtime())

    captured = capsys.readouterr()
    assert code == 1
    assert "Warning: This workspace has no embedded documents" in captured.err


def test_provider_failure_exits_with_error(capsys):
    search = StubSearchProvider({"docs": 3}, message="backend down")
    code = rag_query.main(["-w", "docs", "-q", "q"], runtime=_runtime(search=search))

    assert code == 1
    assert "Error: backend down" in capsys.readouterr().err


def test_query_json_output_by_workspace_name(capsys):
    code = query_embeddings.main(
        ["-w", "Product Docs", "-q", "install steps", "-n", "3", "--json", "--scores"],
        runtime=_runtime(),
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["workspace"] == "Product Docs"
    assert len(payload["results"]) == 3
    assert payload["results"][0]["score"] == 0.9
    assert "text" in payload["results"][0]


def test_query_citations_only_drops_text_and_scores(capsys):
    query_embeddings.main(["-w", "docs", "-q", "q", "--json", "--citations-only"], runtime=_runtime())

    result = json.loads(capsys.readouterr().out)["results"][0]
    assert "text" not in result
    assert "score" not in result
    assert result["title"] == "doc-0"


def test_no_results_is_not_an_error(capsys):
    code = query_embeddings.main(["-w", "docs", "-q", "q", "-t", "0.99"], runtime=_runtime())

    assert code == 0
    assert "No relevant documents found for your query." in capsys.readouterr().out


def test_rag_query_json_with_pins_context_and_tokens(capsys):
    pinned = StubPinnedProvider({"docs": [pinned_document("handbook", "the team handbook")]})
    code = rag_query.main(
        ["-w", "docs", "-q", "q", "-n", "2", "--include-pinned", "--show-context", "--token-count", "--json"],
        runtime=_runtime(pinned),
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    results = payload["results"]
    assert results["pinnedSources"] == 1
    assert results["vectorSources"] == 2
    assert results["totalSources"] == 3
    assert [source["type"] for source in results["sources"]] == ["pinned", "vector", "vector"]
    assert payload["settings"]["includePinned"] is True
    assert payload["context"]["texts"][0] == "the team handbook"
    assert payload["context"]["combined"].count("\n\n---\n\n") == 2
    assert payload["tokenCount"] == {
        "total": 9,
        "windowLimit": 10_000,
        "percentOfWindow": "0.1%",
        "warning": False,
    }


def test_token_analysis_failure_is_best_effort(capsys):
    def broken_loader(name):
        raise OSError("encoding download failed")

    code = rag_query.main(
        ["-w", "docs", "-q", "q", "--token-count", "--json"],
        runtime=_runtime(analyzer=TokenBudgetAnalyzer(loader=broken_loader)),
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert "encoding download failed" in payload["tokenCount"]["error"]
    assert payload["results"]["totalSources"] == 4


def test_rag_query_text_output_flags_near_exhaustion(capsys):
    big = " ".join(["word"] * 9000)
    pinned = StubPinnedProvider({"docs": [pinned_document("huge", big)]})
    search = StubSearchProvider({"docs": 1}, {"docs": []})

    code = rag_query.main(
        ["-w", "docs", "-q", "q", "--include-pinned", "--token-count"],
        runtime=_runtime(pinned, search=search),
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Pinned Documents (1):" in out
    assert "Usage: 90.0% of context window" in out
    assert "Warning: Context is using >80% of the model's token window" in out
