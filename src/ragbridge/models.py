"""Shared domain models used across the retrieval surfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Mapping, Sequence

if TYPE_CHECKING:
    from ragbridge.connectors import LLMConnector

SearchMode = Literal["default", "rerank"]
PassageOrigin = Literal["pinned", "vector"]


def source_identifier(metadata: Mapping[str, Any]) -> str:
    """Return the dedup key for a source document.

    Built from the document's identity (title and published timestamp), so two
    chunks or pins of the same source collide no matter what text they carry.
    """

    return f"title:{metadata.get('title')}-timestamp:{metadata.get('published')}"


@dataclass(frozen=True)
class PinnedDocumentRef:
    """Pointer from a workspace to a document that is always in context."""

    path: str
    title: str | None = None
    url: str | None = None
    published: str | None = None


@dataclass(frozen=True)
class Workspace:
    """Workspace record with its retrieval defaults."""

    name: str
    slug: str
    chat_provider: str | None = None
    chat_model: str | None = None
    top_n: int = 4
    similarity_threshold: float = 0.25
    vector_search_mode: SearchMode = "default"
    pinned_documents: tuple[PinnedDocumentRef, ...] = ()


@dataclass(frozen=True)
class PinnedDocument:
    """Full-text pinned document as returned by a pinned provider."""

    page_content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentChunk:
    """Embedded chunk of a source document as held by the vector index."""

    chunk_id: str
    text: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoredChunk:
    """Chunk returned from the vector store with its similarity, if the store reported one."""

    chunk: DocumentChunk
    score: float | None


@dataclass(frozen=True)
class SourcePassage:
    """Unit of retrieved context, either pinned or from vector search."""

    text: str
    origin: PassageOrigin
    identifier: str
    title: str | None = None
    url: str | None = None
    score: float | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_pinned(self) -> bool:
        return self.origin == "pinned"


@dataclass(frozen=True)
class SearchResult:
    """Search provider response: ranked passages or a failure message."""

    sources: tuple[SourcePassage, ...] = ()
    context_texts: tuple[str, ...] = ()
    message: str | None = None

    @classmethod
    def failure(cls, message: str) -> "SearchResult":
        return cls(message=message)

    @property
    def ok(self) -> bool:
        return self.message is None


@dataclass(frozen=True)
class RetrievalOptions:
    """Per-query retrieval knobs. ``rerank=None`` defers to the workspace."""

    top_n: int = 4
    threshold: float = 0.25
    include_pinned: bool = False
    rerank: bool | None = None


@dataclass(frozen=True)
class MergedContext:
    """Pinned passages followed by vector passages, with their raw texts."""

    passages: Sequence[SourcePassage]
    context_texts: Sequence[str]
    connector: "LLMConnector"

    @property
    def pinned(self) -> list[SourcePassage]:
        return [passage for passage in self.passages if passage.origin == "pinned"]

    @property
    def vector(self) -> list[SourcePassage]:
        return [passage for passage in self.passages if passage.origin == "vector"]

    @property
    def pinned_count(self) -> int:
        return len(self.pinned)

    @property
    def vector_count(self) -> int:
        return len(self.vector)

    @property
    def is_empty(self) -> bool:
        return not self.passages


@dataclass(frozen=True)
class TokenBudget:
    """Token usage of an assembled context against a model window."""

    total: int
    window_limit: int
    percent_of_window: float
    near_exhaustion: bool

    @property
    def percent_label(self) -> str:
        return f"{self.percent_of_window:.1f}%"


@dataclass(frozen=True)
class NamespaceStats:
    """Vector index occupancy for one workspace."""

    has_namespace: bool
    vector_count: int

    @property
    def has_embeddings(self) -> bool:
        return self.has_namespace and self.vector_count > 0
