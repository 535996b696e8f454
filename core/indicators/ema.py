"""Exponential moving average.

Two forms of the same recurrence:

1. ``EmaState`` + ``ema_update`` - an immutable accumulator advanced one
   price at a time, used by streaming strategies.
2. ``ema`` - a NumPy batch calculation over a full series, the reference
   the streaming form must agree with.

Warm-up: the first ``period`` observations are averaged arithmetically and
no value is reported until ``period`` observations have been seen. After
that, ``value = prev * (1 - k) + price * k`` with ``k = 2 / (period + 1)``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class EmaState:
    """Accumulator for one EMA period."""

    period: int
    count: int = 0
    value: float | None = None
    seed_sum: float = 0.0

    def __post_init__(self) -> None:
        if self.period < 1:
            raise ValueError(f"EMA period must be positive, got {self.period}")

    @property
    def multiplier(self) -> float:
        return 2.0 / (self.period + 1)

    @property
    def is_ready(self) -> bool:
        return self.count >= self.period


def ema_update(state: EmaState, price: float) -> tuple[EmaState, float | None]:
    """Advance ``state`` by one observation.

    Returns:
        (new_state, current EMA value or None while warming up)
    """
    count = state.count + 1

    if count <= state.period:
        seed_sum = state.seed_sum + price
        new_state = replace(state, count=count, seed_sum=seed_sum, value=seed_sum / count)
        if count < state.period:
            return new_state, None
        return new_state, new_state.value

    k = state.multiplier
    value = state.value * (1 - k) + price * k
    new_state = replace(state, count=count, value=value)
    return new_state, value


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average over a full series.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, with NaN for initial values)
    """
    if period < 1:
        raise ValueError(f"EMA period must be positive, got {period}")
    if len(values) < period:
        return [float("nan")] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    multiplier = 2.0 / (period + 1)

    result = np.empty_like(arr)
    result[: period - 1] = np.nan
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, len(arr)):
        result[i] = result[i - 1] * (1 - multiplier) + arr[i] * multiplier

    return result.tolist()
