"""Failure taxonomy shared by the CLI and the MCP surface."""

from __future__ import annotations


class RagBridgeError(RuntimeError):
    """Base class for failures surfaced to callers."""


class WorkspaceNotFoundError(RagBridgeError):
    """Raised when a workspace slug does not resolve."""

    def __init__(self, slug: str) -> None:
        super().__init__(f'Workspace "{slug}" not found')
        self.slug = slug


class EmptyNamespaceError(RagBridgeError):
    """Raised when a workspace resolves but has no embedded documents."""

    def __init__(self, slug: str) -> None:
        super().__init__("This workspace has no embedded documents")
        self.slug = slug


class RetrievalError(RagBridgeError):
    """Raised when the search provider reports a failure message."""


class BudgetAnalysisError(RagBridgeError):
    """Raised when the tokenizer fails while counting context tokens."""


class UnknownToolError(RagBridgeError):
    """Raised for tool names the dispatcher does not expose."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class SchemaViolationError(RagBridgeError):
    """Raised when tool arguments do not satisfy the declared schema."""
