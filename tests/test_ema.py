"""Tests for the EMA accumulator and batch EMA."""

import math
import random

import pytest

from core.indicators import EmaState, ema, ema_update


def _stream(values: list[float], period: int) -> list[float | None]:
    state = EmaState(period)
    out = []
    for v in values:
        state, value = ema_update(state, v)
        out.append(value)
    return out


class TestEmaState:
    """Tests for the immutable accumulator."""

    def test_initial_state(self):
        state = EmaState(5)
        assert state.count == 0
        assert state.value is None
        assert not state.is_ready
        assert state.multiplier == pytest.approx(2 / 6)

    def test_rejects_non_positive_period(self):
        with pytest.raises(ValueError):
            EmaState(0)
        with pytest.raises(ValueError):
            EmaState(-3)

    def test_update_does_not_mutate(self):
        state = EmaState(3)
        new_state, _ = ema_update(state, 10.0)
        assert state.count == 0
        assert new_state.count == 1

    def test_unavailable_until_period_observations(self):
        values = _stream([1.0, 2.0, 3.0, 4.0], period=3)
        assert values[0] is None
        assert values[1] is None
        assert values[2] is not None

    def test_seed_is_arithmetic_mean(self):
        values = _stream([2.0, 4.0, 9.0], period=3)
        assert values[2] == pytest.approx(5.0)

    def test_smoothing_after_seed(self):
        # period 3 -> k = 0.5
        values = _stream([2.0, 4.0, 9.0, 13.0], period=3)
        assert values[3] == pytest.approx(5.0 * 0.5 + 13.0 * 0.5)

    def test_period_one_tracks_price(self):
        values = _stream([3.0, 7.0, 5.0], period=1)
        assert values == pytest.approx([3.0, 7.0, 5.0])

    def test_ready_flag(self):
        state = EmaState(2)
        state, _ = ema_update(state, 1.0)
        assert not state.is_ready
        state, _ = ema_update(state, 1.0)
        assert state.is_ready


class TestBatchEma:
    """Tests for the NumPy batch EMA."""

    def test_short_series_is_all_nan(self):
        result = ema([1.0, 2.0], 3)
        assert len(result) == 2
        assert all(math.isnan(v) for v in result)

    def test_warmup_is_nan(self):
        result = ema([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        assert math.isnan(result[0])
        assert math.isnan(result[1])
        assert result[2] == pytest.approx(2.0)
        assert result[3] == pytest.approx(3.0)

    def test_matches_streaming_form(self):
        rng = random.Random(7)
        closes = [100 + rng.uniform(-5, 5) for _ in range(200)]
        for period in (2, 5, 14, 30):
            batch = ema(closes, period)
            streamed = _stream(closes, period)
            for b, s in zip(batch, streamed):
                if s is None:
                    assert math.isnan(b)
                else:
                    assert b == pytest.approx(s, rel=1e-12)
