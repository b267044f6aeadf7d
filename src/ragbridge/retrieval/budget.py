"""Token budget analysis of assembled context.

Counting uses tiktoken encodings (``cl100k_base`` unless the connector says
otherwise). The analyzer only reports usage; it never trims or mutates the
context it is given.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Protocol, Sequence

import tiktoken

from ragbridge.errors import BudgetAnalysisError
from ragbridge.models import TokenBudget

CONTEXT_SEPARATOR = "\n\n"


class Encoding(Protocol):
    def encode(self, text: str) -> list[int]:
        """Return token ids for the text."""


EncodingLoader = Callable[[str], Encoding]


@contextmanager
def open_encoding(name: str, loader: EncodingLoader = tiktoken.get_encoding) -> Iterator[Encoding]:
    """Acquire an encoding for the duration of one count and release it after."""

    encoding = loader(name)
    try:
        yield encoding
    finally:
        release = getattr(encoding, "free", None)
        if callable(release):
            release()


class TokenBudgetAnalyzer:
    """Report how much of a prompt window a list of context texts consumes."""

    def __init__(
        self,
        encoding_name: str = "cl100k_base",
        *,
        warning_ratio: float = 0.8,
        separator: str = CONTEXT_SEPARATOR,
        loader: EncodingLoader = tiktoken.get_encoding,
    ) -> None:
        self._encoding_name = encoding_name
        self._warning_ratio = warning_ratio
        self._separator = separator
        self._loader = loader

    def count_tokens(self, text: str, *, encoding_name: str | None = None) -> int:
        try:
            with open_encoding(encoding_name or self._encoding_name, self._loader) as encoding:
                return len(encoding.encode(text))
        except Exception as exc:  # noqa: BLE001 - any tokenizer fault is a budget failure
            raise BudgetAnalysisError(f"Token counting failed: {exc}") from exc

    def analyze(
        self,
        texts: Sequence[str],
        window_limit: int,
        *,
        encoding_name: str | None = None,
    ) -> TokenBudget:
        if window_limit <= 0:
            raise ValueError("window_limit must be a positive integer")
        total = self.count_tokens(self._separator.join(texts), encoding_name=encoding_name)
        percent = round(total / window_limit * 100, 1)
        return TokenBudget(
            total=total,
            window_limit=window_limit,
            percent_of_window=percent,
            near_exhaustion=total > window_limit * self._warning_ratio,
        )
