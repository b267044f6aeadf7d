"""Runtime configuration for the ragbridge surfaces."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="ragbridge_", env_file=".env", case_sensitive=False)

    # Print tracebacks next to CLI errors
    debug: bool = False

    # Workspace registry (JSON file with workspaces and their pins)
    workspaces_file: Path = Path("./workspaces.json")

    # Process-wide LLM defaults, used when a workspace does not set its own
    llm_provider: str = "openai"
    chat_model: str = "gpt-4o"
    default_prompt_window: int = 8192
    prompt_window_overrides: dict[str, int] = {}
    tokenizer_encoding: str = "cl100k_base"
    token_warning_ratio: float = 0.8

    pinned_preview_chars: int = 1000

    chroma_persist_dir: Path = Path("./.chroma")
    chroma_collection: str = "ragbridge-default"
    chroma_host: str | None = None
    chroma_port: int | None = None
    chroma_ssl: bool = False

    embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dim: int = 384
    use_model_embeddings: bool = False

    rerank_lexical_weight: float = 0.35

    list_concurrency: int = 8
    mcp_server_name: str = "ragbridge-rag"


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
