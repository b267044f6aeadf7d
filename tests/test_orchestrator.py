from __future__ import annotations

import pytest

from ragbridge.connectors import ConnectorResolver
from ragbridge.errors import RetrievalError
from ragbridge.models import RetrievalOptions
from ragbridge.retrieval.orchestrator import RetrievalOrchestrator

from retrieval_stubs import (
    StubPinnedProvider,
    StubSearchProvider,
    make_workspace,
    pinned_document,
    vector_passage,
)


def _orchestrator(search: StubSearchProvider, pinned: StubPinnedProvider | None = None) -> RetrievalOrchestrator:
    return RetrievalOrchestrator(
        search,
        pinned or StubPinnedProvider(),
        ConnectorResolver(default_provider="openai", default_model="local-model", default_window=10_000),
    )


def _ten_vectors() -> list:
    return [vector_passage(f"doc-{i}", 0.9 - i * 0.05) for i in range(10)]


def test_vector_only_respects_top_n():
    search = StubSearchProvider({"docs": 10}, {"docs": _ten_vectors()})
    context = _orchestrator(search).retrieve(make_workspace(), "install steps", RetrievalOptions(top_n=3))

    assert len(context.passages) <= 3
    assert all(passage.origin == "vector" for passage in context.passages)
    assert list(context.context_texts) == [passage.text for passage in context.passages]


def test_pinned_come_first_in_provider_order_regardless_of_top_n():
    pins = [pinned_document("guide", "pinned guide"), pinned_document("faq", "pinned faq")]
    search = StubSearchProvider({"docs": 10}, {"docs": _ten_vectors()})
    pinned = StubPinnedProvider({"docs": pins})

    context = _orchestrator(search, pinned).retrieve(
        make_workspace(), "install steps", RetrievalOptions(top_n=1, include_pinned=True)
    )

    assert [passage.title for passage in context.passages[:2]] == ["guide", "faq"]
    assert all(passage.origin == "pinned" and passage.score is None for passage in context.passages[:2])
    assert context.pinned_count == 2
    assert context.vector_count == 1
    assert context.context_texts[:2] == ("pinned guide", "pinned faq")


def test_pinned_identifiers_are_excluded_from_vector_results():
    shared = vector_passage("guide", 0.95)
    search = StubSearchProvider({"docs": 10}, {"docs": [shared, *_ten_vectors()]})
    pinned = StubPinnedProvider({"docs": [pinned_document("guide", "full guide text")]})

    context = _orchestrator(search, pinned).retrieve(
        make_workspace(), "guide", RetrievalOptions(top_n=3, include_pinned=True)
    )

    pinned_ids = {passage.identifier for passage in context.pinned}
    assert search.calls[0]["filter_identifiers"] == pinned_ids
    assert pinned_ids.isdisjoint(passage.identifier for passage in context.vector)


def test_pinned_phase_runs_before_search_with_window_budget():
    events: list[str] = []
    search = StubSearchProvider({"docs": 1}, {"docs": _ten_vectors()})
    search.events = events
    pinned = StubPinnedProvider({"docs": [pinned_document("guide", "text")]}, events=events)

    _orchestrator(search, pinned).retrieve(make_workspace(), "q", RetrievalOptions(include_pinned=True))

    assert events == ["pinned", "search"]
    assert pinned.max_tokens == [10_000]


def test_pinned_lookup_skipped_when_not_requested():
    search = StubSearchProvider({"docs": 1}, {"docs": _ten_vectors()})
    pinned = StubPinnedProvider({"docs": [pinned_document("guide", "text")]})

    context = _orchestrator(search, pinned).retrieve(make_workspace(), "q", RetrievalOptions())

    assert pinned.events == []
    assert context.pinned_count == 0


def test_pinned_preview_is_truncated_with_marker():
    long_text = "x" * 1500
    pinned = StubPinnedProvider({"docs": [pinned_document("long", long_text), pinned_document("short", "tiny")]})
    search = StubSearchProvider({"docs": 1})

    context = _orchestrator(search, pinned).retrieve(make_workspace(), "q", RetrievalOptions(include_pinned=True))

    long_passage, short_passage = context.pinned
    assert long_passage.text == "x" * 1000 + "...continued on in source document..."
    assert short_passage.text == "tiny"
    assert long_passage.metadata["isPinned"] is True
    assert context.context_texts[0] == long_text


def test_same_source_pinned_twice_shares_identifier():
    pins = [
        pinned_document("guide", "first copy"),
        pinned_document("guide", "a different body"),
    ]
    search = StubSearchProvider({"docs": 1})
    context = _orchestrator(search, StubPinnedProvider({"docs": pins})).retrieve(
        make_workspace(), "q", RetrievalOptions(include_pinned=True)
    )

    first, second = context.pinned
    assert first.identifier == second.identifier


@pytest.mark.parametrize(
    ("requested", "mode", "expected"),
    [
        (None, "rerank", True),
        (None, "default", False),
        (True, "default", True),
        (False, "rerank", False),
    ],
)
def test_rerank_resolution(requested, mode, expected):
    search = StubSearchProvider({"docs": 1})
    workspace = make_workspace(vector_search_mode=mode)

    _orchestrator(search).retrieve(workspace, "q", RetrievalOptions(rerank=requested))

    assert search.calls[0]["rerank"] is expected


def test_provider_failure_raises_retrieval_error():
    search = StubSearchProvider({"docs": 1}, message="Vector backend unavailable")

    with pytest.raises(RetrievalError, match="Vector backend unavailable"):
        _orchestrator(search).retrieve(make_workspace(), "q", RetrievalOptions())
    assert len(search.calls) == 1


def test_empty_result_is_not_an_error():
    search = StubSearchProvider({"docs": 3}, {"docs": []})

    context = _orchestrator(search).retrieve(make_workspace(), "q", RetrievalOptions(include_pinned=True))

    assert context.is_empty
    assert list(context.context_texts) == []


def test_options_are_passed_through_to_search():
    search = StubSearchProvider({"docs": 1})
    workspace = make_workspace(chat_model="gpt-4")

    _orchestrator(search).retrieve(workspace, "install", RetrievalOptions(top_n=7, threshold=0.5))

    call = search.calls[0]
    assert call["namespace"] == "docs"
    assert call["top_n"] == 7
    assert call["threshold"] == 0.5
    assert call["window"] == 8_192


@pytest.mark.parametrize(
    ("query", "options"),
    [
        ("   ", RetrievalOptions()),
        ("q", RetrievalOptions(top_n=0)),
        ("q", RetrievalOptions(threshold=1.5)),
    ],
)
def test_invalid_inputs_are_rejected(query, options):
    search = StubSearchProvider({"docs": 1})
    with pytest.raises(ValueError):
        _orchestrator(search).retrieve(make_workspace(), query, options)
    assert search.calls == []
