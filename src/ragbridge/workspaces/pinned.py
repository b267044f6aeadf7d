"""Pinned documents read from the files a workspace points at."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol, Sequence

from ragbridge.errors import BudgetAnalysisError
from ragbridge.metrics.observability import get_logger
from ragbridge.models import PinnedDocument, Workspace


class PinnedDocumentProvider(Protocol):
    """Return the documents pinned to a workspace."""

    def pinned_documents(self, workspace: Workspace, *, max_tokens: int | None = None) -> Sequence[PinnedDocument]:
        """Return full-text pinned documents that fit in ``max_tokens``."""


class FilePinnedDocumentProvider:
    """Load pinned documents from disk, stopping short of the token budget.

    Documents are returned in pin order. A document that would push the running
    total past ``max_tokens`` is skipped; smaller ones after it may still fit.
    """

    def __init__(self, count_tokens: Callable[[str], int], *, encoding: str = "utf-8") -> None:
        self._count_tokens = count_tokens
        self._encoding = encoding
        self._logger = get_logger("workspaces.pinned")

    def pinned_documents(self, workspace: Workspace, *, max_tokens: int | None = None) -> Sequence[PinnedDocument]:
        documents: list[PinnedDocument] = []
        used = 0
        for ref in workspace.pinned_documents:
            path = Path(ref.path)
            if not path.is_file():
                self._logger.warning("pinned.missing", workspace=workspace.slug, path=ref.path)
                continue
            try:
                content = path.read_text(encoding=self._encoding)
            except (UnicodeDecodeError, OSError) as exc:
                self._logger.warning("pinned.unreadable", workspace=workspace.slug, path=ref.path, detail=str(exc))
                continue
            if not content.strip():
                continue
            tokens = self._token_estimate(workspace, ref.path, content)
            if max_tokens is not None and used + tokens > max_tokens:
                self._logger.warning(
                    "pinned.over_budget",
                    workspace=workspace.slug,
                    path=ref.path,
                    tokens=tokens,
                    used=used,
                    max_tokens=max_tokens,
                )
                continue
            used += tokens
            documents.append(
                PinnedDocument(
                    page_content=content,
                    metadata={
                        "title": ref.title or path.name,
                        "url": ref.url,
                        "published": ref.published,
                        "docSource": str(path),
                        "token_count_estimate": tokens,
                    },
                )
            )
        return documents

    def _token_estimate(self, workspace: Workspace, path: str, content: str) -> int:
        try:
            return self._count_tokens(content)
        except BudgetAnalysisError as exc:
            # Roughly four characters per token when the tokenizer is unavailable
            self._logger.warning("pinned.token_count_failed", workspace=workspace.slug, path=path, detail=str(exc))
            return len(content) // 4
