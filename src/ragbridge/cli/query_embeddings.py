"""Query workspace embeddings directly, without pinned documents."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from ragbridge.cli.common import build_parser, format_score, open_workspace, preview, retrieval_options, run_command
from ragbridge.config import get_settings
from ragbridge.metrics.observability import configure_logging
from ragbridge.runtime import Runtime, build_runtime
from ragbridge.services import formatting


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = build_parser(
        "ragbridge-query",
        "Query document embeddings directly without using the chat interface.",
    )
    parser.add_argument("--scores", action="store_true", help="Include similarity scores in output")
    return parser.parse_args(argv)


def query_embeddings(args: argparse.Namespace, runtime: Runtime) -> None:
    service = runtime.query_service
    workspace, stats = open_workspace(service, args.workspace)
    if not args.json:
        print(f"Searching in workspace: {workspace.name}")
        print(f"Total embeddings: {stats.vector_count}")
        print(f'Query: "{args.query}"\n')

    context = service.retrieve(workspace, args.query, retrieval_options(args))

    if args.json:
        results = formatting.passage_results(context.passages, include_text=not args.citations_only)
        if not args.scores:
            for result in results:
                result.pop("score")
        print(formatting.to_json({"query": args.query, "workspace": workspace.name, "results": results}))
        return

    if context.is_empty:
        print("No relevant documents found for your query.")
        return
    print(f"Found {len(context.passages)} relevant documents:\n")
    for index, passage in enumerate(context.passages, start=1):
        print(f"[{index}] {passage.title or 'Untitled Document'}")
        if passage.url:
            print(f"    Source: {passage.url}")
        if args.scores and passage.score is not None:
            print(f"    Score: {format_score(passage.score)}")
        if not args.citations_only:
            print(f"    Content: {preview(passage.text, 200)}")
        print("")


def main(argv: Sequence[str] | None = None, *, runtime: Runtime | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    settings = runtime.settings if runtime else get_settings()
    configure_logging(logging.DEBUG if settings.debug else logging.WARNING)
    return run_command(
        lambda: query_embeddings(args, runtime or build_runtime(settings)),
        settings,
        name="query",
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
