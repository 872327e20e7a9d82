"""
Semantic test: median of timestamps.

Invariant:
Odd lengths return the middle value, even lengths the mean of the two
middle values truncated toward zero, a single value is returned as is.
"""

from __future__ import annotations

import pytest

from learning_analytics.analytics.analysable import median


def test_single_value_is_its_own_median() -> None:
    assert median([1700000000]) == 1700000000


def test_odd_length_returns_middle_value() -> None:
    assert median([30, 10, 20]) == 20
    assert median([5, 1, 9, 7, 3]) == 5


def test_even_length_returns_truncated_mean() -> None:
    assert median([1, 2, 3, 4]) == 2
    assert median([10, 20]) == 15
    assert median([-3, -2]) == -2


def test_empty_sequence_is_rejected() -> None:
    with pytest.raises(ValueError):
        median([])
