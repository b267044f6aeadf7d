"""LLM connector resolution: prompt window and token encoding per model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol

# Prompt windows of commonly configured chat models.
KNOWN_PROMPT_WINDOWS: Mapping[str, int] = {
    "gpt-3.5-turbo": 16_385,
    "gpt-4": 8_192,
    "gpt-4-turbo": 128_000,
    "gpt-4o": 128_000,
    "gpt-4o-mini": 128_000,
    "claude-3-haiku-20240307": 200_000,
    "claude-3-5-sonnet-latest": 200_000,
    "llama3": 8_192,
    "mistral": 32_000,
}


class LLMConnector(Protocol):
    """What retrieval needs from a chat model connector."""

    provider: str
    model: str
    encoding_name: str

    def prompt_window_limit(self) -> int:
        """Return the maximum number of prompt tokens the model accepts."""


@dataclass(frozen=True)
class ChatConnector:
    """Resolved chat model with its prompt window."""

    provider: str
    model: str
    window_limit: int
    encoding_name: str = "cl100k_base"

    def prompt_window_limit(self) -> int:
        return self.window_limit


@dataclass(frozen=True)
class ConnectorResolver:
    """Resolve a workspace's provider/model pair into a connector.

    Defaults come from process configuration and are fixed at construction.
    """

    default_provider: str
    default_model: str
    default_window: int = 8_192
    encoding_name: str = "cl100k_base"
    window_overrides: Mapping[str, int] = field(default_factory=dict)

    def resolve(self, provider: str | None = None, model: str | None = None) -> ChatConnector:
        resolved_provider = provider or self.default_provider
        resolved_model = model or self.default_model
        window = self.window_overrides.get(resolved_model) or KNOWN_PROMPT_WINDOWS.get(resolved_model)
        return ChatConnector(
            provider=resolved_provider,
            model=resolved_model,
            window_limit=window or self.default_window,
            encoding_name=self.encoding_name,
        )
