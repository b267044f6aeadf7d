"""Argument handling and error boundary shared by the query commands."""

from __future__ import annotations

import argparse
import sys
import traceback
from typing import Callable

from ragbridge.config import Settings
from ragbridge.errors import EmptyNamespaceError
from ragbridge.metrics.observability import get_logger
from ragbridge.models import NamespaceStats, RetrievalOptions, Workspace
from ragbridge.services.query import WorkspaceQueryService


def build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("-w", "--workspace", required=True, help="Workspace name or slug to query")
    parser.add_argument("-q", "--query", required=True, help="Query text to search for")
    parser.add_argument("-n", "--top-n", type=int, default=4, help="Number of results to return")
    parser.add_argument("-t", "--threshold", type=float, default=0.25, help="Similarity threshold (0-1)")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    # None when absent so the workspace search mode decides
    parser.add_argument("--rerank", action="store_true", default=None, help="Use reranking for better results")
    parser.add_argument(
        "--citations-only",
        action="store_true",
        help="Only return document citations without content",
    )
    return parser


def retrieval_options(args: argparse.Namespace, *, include_pinned: bool = False) -> RetrievalOptions:
    return RetrievalOptions(
        top_n=args.top_n,
        threshold=args.threshold,
        include_pinned=include_pinned,
        rerank=args.rerank,
    )


def open_workspace(service: WorkspaceQueryService, reference: str) -> tuple[Workspace, NamespaceStats]:
    """Resolve a workspace by slug or name and require embedded documents."""

    workspace = service.resolve(reference, match_name=True)
    stats = service.namespace_stats(workspace)
    if not stats.has_embeddings:
        raise EmptyNamespaceError(workspace.slug)
    return workspace, stats


def preview(text: str, limit: int) -> str:
    return f"{text[:limit]}..."


def format_score(score: float | None) -> str:
    return f"{score * 100:.1f}%" if score is not None else ""


def run_command(command: Callable[[], None], settings: Settings, *, name: str) -> int:
    """Run a command body, mapping failures to stderr output and exit code 1."""

    logger = get_logger(f"cli.{name}")
    try:
        command()
    except EmptyNamespaceError as exc:
        print(f"Warning: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:  # noqa: BLE001 - outermost CLI boundary
        logger.error("cli.error", command=name, error_type=type(exc).__name__, detail=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        if settings.debug:
            traceback.print_exc(file=sys.stderr)
        return 1
    return 0
