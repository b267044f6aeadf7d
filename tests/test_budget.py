from __future__ import annotations

import pytest

from ragbridge.errors import BudgetAnalysisError
from ragbridge.retrieval.budget import TokenBudgetAnalyzer

from retrieval_stubs import WordEncoding, word_analyzer


def _words(count: int) -> str:
    return " ".join(["token"] * count)


def test_ninety_percent_usage_sets_warning():
    budget = word_analyzer().analyze([_words(4500), _words(4500)], 10_000)

    assert budget.total == 9000
    assert budget.percent_of_window == 90.0
    assert budget.percent_label == "90.0%"
    assert budget.near_exhaustion is True


def test_usage_below_threshold_is_not_flagged():
    budget = word_analyzer().analyze([_words(800)], 1000)

    assert budget.percent_label == "80.0%"
    assert budget.near_exhaustion is False


def test_percent_rounds_to_one_decimal():
    budget = word_analyzer().analyze([_words(1)], 3)

    assert budget.percent_of_window == 33.3


def test_percent_is_monotonic_as_texts_are_appended():
    analyzer = word_analyzer()
    texts: list[str] = []
    previous = -1.0
    for size in (10, 0, 25, 3, 40):
        texts.append(_words(size))
        budget = analyzer.analyze(texts, 500)
        assert budget.percent_of_window >= previous
        assert budget.percent_of_window == round(100 * budget.total / 500, 1)
        previous = budget.percent_of_window


def test_empty_context_counts_zero():
    budget = word_analyzer().analyze([], 100)
    assert budget.total == 0
    assert budget.percent_label == "0.0%"


def test_encoding_released_even_when_counting_fails():
    class BrokenEncoding(WordEncoding):
        def encode(self, text: str) -> list[int]:
            raise RuntimeError("tokenizer crashed")

    encoding = BrokenEncoding()
    analyzer = TokenBudgetAnalyzer(loader=lambda name: encoding)

    with pytest.raises(BudgetAnalysisError, match="tokenizer crashed"):
        analyzer.analyze(["text"], 100)
    assert encoding.freed is True


def test_encoding_name_is_forwarded_to_loader():
    requested: list[str] = []

    def loader(name: str) -> WordEncoding:
        requested.append(name)
        return WordEncoding()

    analyzer = TokenBudgetAnalyzer("cl100k_base", loader=loader)
    analyzer.analyze(["a b"], 10, encoding_name="o200k_base")
    analyzer.count_tokens("a")

    assert requested == ["o200k_base", "cl100k_base"]


def test_non_positive_window_is_rejected():
    with pytest.raises(ValueError):
        word_analyzer().analyze(["a"], 0)
