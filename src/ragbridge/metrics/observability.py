"""Observability helpers for ragbridge."""

from __future__ import annotations

import logging
import sys
import time
from typing import Iterable

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    # stdout carries CLI output and the MCP stdio channel; logs go to stderr
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "ragbridge") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


def _clamp_score(score: float) -> float:
    if score < 0.0:
        return 0.0
    if score > 1.0:
        return 1.0
    return score


class PipelineMetrics:
    """Prometheus metrics for retrieval and tool dispatch."""

    retrieval_latency = Histogram(
        "ragbridge_retrieval_duration_seconds",
        "Time spent assembling retrieval context.",
        buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0),
    )
    vector_passage_count = Histogram(
        "ragbridge_vector_passage_count",
        "Number of passages returned by similarity search.",
        buckets=(0, 1, 2, 3, 5, 8, 13),
    )
    pinned_passage_count = Histogram(
        "ragbridge_pinned_passage_count",
        "Number of pinned documents merged into context.",
        buckets=(0, 1, 2, 3, 5, 8, 13),
    )
    similarity_score = Histogram(
        "ragbridge_similarity_score",
        "Similarity score of vector passages.",
        buckets=(0.0, 0.25, 0.5, 0.75, 1.0),
    )
    context_window_usage = Histogram(
        "ragbridge_context_window_usage_percent",
        "Share of the model prompt window consumed by assembled context.",
        buckets=(5, 10, 25, 50, 80, 100, 150),
    )
    tool_calls = Counter(
        "ragbridge_tool_calls_total",
        "MCP tool calls by tool and outcome.",
        ["tool", "outcome"],
    )

    @classmethod
    def observe_retrieval(
        cls,
        duration_seconds: float,
        pinned_count: int,
        vector_count: int,
        scores: Iterable[float | None],
    ) -> None:
        cls.retrieval_latency.observe(duration_seconds)
        cls.pinned_passage_count.observe(pinned_count)
        cls.vector_passage_count.observe(vector_count)
        for score in scores:
            if score is not None:
                cls.similarity_score.observe(_clamp_score(score))

    @classmethod
    def observe_budget(cls, percent_of_window: float) -> None:
        cls.context_window_usage.observe(percent_of_window)

    @classmethod
    def observe_tool_call(cls, tool: str, outcome: str) -> None:
        cls.tool_calls.labels(tool=tool, outcome=outcome).inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.elapsed = time.perf_counter() - self._start


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
