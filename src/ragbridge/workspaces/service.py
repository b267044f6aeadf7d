"""Workspace lookup backed by a JSON registry file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ragbridge.models import PinnedDocumentRef, Workspace


class WorkspaceLookup(Protocol):
    """Resolve workspaces by slug and enumerate them."""

    def get(self, slug: str) -> Workspace | None:
        """Return the workspace with the slug, or None."""

    def find(self, slug_or_name: str) -> Workspace | None:
        """Return the workspace matching a slug, falling back to its display name."""

    def all(self) -> Sequence[Workspace]:
        """Return every known workspace."""


class PinnedDocumentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: str
    title: Optional[str] = None
    url: Optional[str] = None
    published: Optional[str] = None


class WorkspaceRecord(BaseModel):
    """Registry entry; keys follow the camelCase of the workspace export format."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    chat_provider: Optional[str] = Field(default=None, alias="chatProvider")
    chat_model: Optional[str] = Field(default=None, alias="chatModel")
    top_n: int = Field(default=4, ge=1, alias="topN")
    similarity_threshold: float = Field(default=0.25, ge=0.0, le=1.0, alias="similarityThreshold")
    vector_search_mode: Literal["default", "rerank"] = Field(default="default", alias="vectorSearchMode")
    pinned_documents: List[PinnedDocumentRecord] = Field(default_factory=list, alias="pinnedDocuments")

    def to_workspace(self, base_dir: Path | None = None) -> Workspace:
        pins = tuple(
            PinnedDocumentRef(
                path=str(base_dir / pin.path) if base_dir is not None else pin.path,
                title=pin.title,
                url=pin.url,
                published=pin.published,
            )
            for pin in self.pinned_documents
        )
        return Workspace(
            name=self.name,
            slug=self.slug,
            chat_provider=self.chat_provider,
            chat_model=self.chat_model,
            top_n=self.top_n,
            similarity_threshold=self.similarity_threshold,
            vector_search_mode=self.vector_search_mode,
            pinned_documents=pins,
        )


class WorkspaceRegistry(BaseModel):
    workspaces: List[WorkspaceRecord] = Field(default_factory=list)


class InMemoryWorkspaceRepository:
    """Workspace lookup over an in-memory list."""

    def __init__(self, workspaces: Iterable[Workspace] = ()) -> None:
        self._workspaces = list(workspaces)

    def get(self, slug: str) -> Workspace | None:
        for workspace in self._workspaces:
            if workspace.slug == slug:
                return workspace
        return None

    def find(self, slug_or_name: str) -> Workspace | None:
        workspace = self.get(slug_or_name)
        if workspace is not None:
            return workspace
        for candidate in self._workspaces:
            if candidate.name == slug_or_name:
                return candidate
        return None

    def all(self) -> Sequence[Workspace]:
        return list(self._workspaces)


class JsonWorkspaceRepository(InMemoryWorkspaceRepository):
    """Workspace lookup read from a JSON registry file.

    Relative pinned document paths resolve against the registry's directory.
    The file is read once; a missing file means no workspaces.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        super().__init__(self._load())

    def _load(self) -> list[Workspace]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            registry = WorkspaceRegistry.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ValueError(f"Invalid workspace registry {self._path}: {exc}") from exc
        base_dir = self._path.resolve().parent
        return [record.to_workspace(base_dir) for record in registry.workspaces]
