from __future__ import annotations

from ragbridge.config import Settings, get_settings
from ragbridge.connectors import ConnectorResolver


def test_defaults_embedding_model_and_dim():
    settings = get_settings({})
    assert settings.embedding_model == "BAAI/bge-small-en-v1.5"
    assert settings.embedding_dim == 384


def test_retrieval_defaults():
    settings = get_settings({})
    assert settings.pinned_preview_chars == 1000
    assert settings.token_warning_ratio == 0.8
    assert settings.tokenizer_encoding == "cl100k_base"


def test_prompt_window_overrides_env(monkeypatch):
    monkeypatch.setenv("RAGBRIDGE_PROMPT_WINDOW_OVERRIDES", '{"local-llama": 4096}')
    settings = Settings()
    assert settings.prompt_window_overrides == {"local-llama": 4096}


def test_connector_resolution_prefers_workspace_then_defaults():
    resolver = ConnectorResolver(
        default_provider="openai",
        default_model="gpt-4o",
        default_window=2048,
        window_overrides={"local-llama": 4096},
    )

    assert resolver.resolve().model == "gpt-4o"
    assert resolver.resolve().prompt_window_limit() == 128_000
    workspace_connector = resolver.resolve("ollama", "local-llama")
    assert workspace_connector.provider == "ollama"
    assert workspace_connector.prompt_window_limit() == 4096
    assert resolver.resolve(model="unheard-of").prompt_window_limit() == 2048
