"""Show exactly what context a query would hand to an LLM.

Extends the plain embedding query with pinned documents, the full context
dump and a token budget analysis against the workspace model's window.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

from ragbridge.cli.common import build_parser, format_score, open_workspace, preview, retrieval_options, run_command
from ragbridge.config import get_settings
from ragbridge.errors import BudgetAnalysisError
from ragbridge.metrics.observability import configure_logging
from ragbridge.models import MergedContext, TokenBudget
from ragbridge.runtime import Runtime, build_runtime
from ragbridge.services import formatting
from ragbridge.services.query import WorkspaceQueryService


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = build_parser(
        "ragbridge-rag",
        "Advanced RAG query tool - see exactly what context would be provided to an LLM.",
    )
    parser.add_argument("--include-pinned", action="store_true", help="Include pinned documents in context")
    parser.add_argument("--show-context", action="store_true", help="Show the full context that would be sent to LLM")
    parser.add_argument("--token-count", action="store_true", help="Show token counts for context")
    return parser.parse_args(argv)


def _budget(service: WorkspaceQueryService, context: MergedContext) -> TokenBudget | str:
    """Token budget, or the failure message; counting is best-effort."""

    try:
        return service.context_budget(context)
    except BudgetAnalysisError as exc:
        return str(exc)


def _json_output(args: argparse.Namespace, service: WorkspaceQueryService, workspace_name: str, context: MergedContext) -> dict[str, Any]:
    options = retrieval_options(args, include_pinned=args.include_pinned)
    output: dict[str, Any] = {
        "query": args.query,
        "workspace": workspace_name,
        "settings": formatting.echo_settings(options),
        "results": {
            "totalSources": len(context.passages),
            "pinnedSources": context.pinned_count,
            "vectorSources": context.vector_count,
            "sources": formatting.passage_results(context.passages, include_text=not args.citations_only),
        },
    }
    if args.show_context:
        output["context"] = formatting.context_payload(context.context_texts)
    if args.token_count:
        budget = _budget(service, context)
        output["tokenCount"] = formatting.budget_payload(budget) if isinstance(budget, TokenBudget) else {"error": budget}
    return output


def _print_sources(args: argparse.Namespace, context: MergedContext) -> None:
    print("\n=== Search Results ===")
    pinned = context.pinned
    if pinned:
        print(f"\nPinned Documents ({len(pinned)}):")
        for index, passage in enumerate(pinned, start=1):
            print(f"[P{index}] {passage.title or 'Untitled'}")
            if passage.url:
                print(f"    {passage.url}")
            if not args.citations_only:
                print(f"    {preview(passage.text, 150)}")
    vector = context.vector
    if vector:
        print(f"\nVector Search Results ({len(vector)}):")
        for index, passage in enumerate(vector, start=1):
            print(f"[V{index}] {passage.title or 'Untitled'} {format_score(passage.score)}".rstrip())
            if passage.url:
                print(f"    {passage.url}")
            if not args.citations_only:
                print(f"    {preview(passage.text, 150)}")
    if context.is_empty:
        print("\nNo relevant documents found.")


def _print_context(context: MergedContext) -> None:
    print("\n=== Full Context (as would be sent to LLM) ===")
    print("--- START CONTEXT ---")
    for index, text in enumerate(context.context_texts, start=1):
        print(f"\n[Document {index}]")
        print(text)
        print("\n---")
    print("--- END CONTEXT ---")


def _print_budget(service: WorkspaceQueryService, context: MergedContext) -> None:
    budget = _budget(service, context)
    print("\n=== Token Analysis ===")
    if not isinstance(budget, TokenBudget):
        print(f"Warning: token analysis unavailable ({budget})", file=sys.stderr)
        return
    print(f"Total context tokens: {budget.total:,}")
    print(f"Model window limit: {budget.window_limit:,}")
    print(f"Usage: {budget.percent_label} of context window")
    if budget.near_exhaustion:
        print("Warning: Context is using >80% of the model's token window")


def rag_query(args: argparse.Namespace, runtime: Runtime) -> None:
    service = runtime.query_service
    workspace, stats = open_workspace(service, args.workspace)
    if not args.json:
        print("\n=== RAG Query Analysis ===")
        print(f"Workspace: {workspace.name}")
        print(f"Total embeddings: {stats.vector_count}")
        print(f'Query: "{args.query}"\n')

    options = retrieval_options(args, include_pinned=args.include_pinned)
    context = service.retrieve(workspace, args.query, options)

    if args.json:
        print(formatting.to_json(_json_output(args, service, workspace.name, context)))
        return

    if context.pinned_count:
        print(f"Found {context.pinned_count} pinned documents\n")
    _print_sources(args, context)
    if args.show_context and context.context_texts:
        _print_context(context)
    if args.token_count and context.context_texts:
        _print_budget(service, context)


def main(argv: Sequence[str] | None = None, *, runtime: Runtime | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    settings = runtime.settings if runtime else get_settings()
    configure_logging(logging.DEBUG if settings.debug else logging.WARNING)
    return run_command(
        lambda: rag_query(args, runtime or build_runtime(settings)),
        settings,
        name="rag",
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
