"""Workspace lookup and pinned documents."""

from .pinned import FilePinnedDocumentProvider, PinnedDocumentProvider
from .service import InMemoryWorkspaceRepository, JsonWorkspaceRepository, WorkspaceLookup

__all__ = [
    "FilePinnedDocumentProvider",
    "InMemoryWorkspaceRepository",
    "JsonWorkspaceRepository",
    "PinnedDocumentProvider",
    "WorkspaceLookup",
]
