"""Retrieval components."""

from .budget import TokenBudgetAnalyzer
from .orchestrator import OrchestratorConfig, RetrievalOrchestrator
from .service import ChromaSearchProvider, SearchConfig, SearchProvider

__all__ = [
    "ChromaSearchProvider",
    "OrchestratorConfig",
    "RetrievalOrchestrator",
    "SearchConfig",
    "SearchProvider",
    "TokenBudgetAnalyzer",
]
