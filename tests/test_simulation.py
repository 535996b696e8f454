"""Tests for the single-position SimulationRunner."""

import random

import pytest

from backtest.simulation import SimulationRunner
from core.models import Candle, PositionState, Signal
from core.strategy.ema_crossover import EmaCrossoverConfig, EmaCrossoverStrategy

HOUR_MS = 3_600_000
T0 = 1_704_067_200_000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_candle(index: int, close: float) -> Candle:
    open_time = T0 + index * HOUR_MS
    return Candle(
        open_time=open_time,
        close_time=open_time + HOUR_MS - 1,
        open=close,
        high=close,
        low=close,
        close=close,
        volume=1.0,
    )


class ScriptedStrategy:
    """Strategy that replays a fixed list of signals."""

    name = "scripted"
    params: dict = {}

    def __init__(self, signals: list[Signal]):
        self._signals = iter(signals)
        self.calls = 0

    def consume(self, candle: Candle) -> Signal:
        self.calls += 1
        return next(self._signals)


def _run(closes: list[float], signals: list[Signal], force_close: bool = False):
    candles = [_make_candle(i, c) for i, c in enumerate(closes)]
    runner = SimulationRunner(force_close_at_end=force_close)
    return runner.run(candles, ScriptedStrategy(signals))


B, S, H = Signal.BUY, Signal.SELL, Signal.HOLD


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class TestStateMachine:
    """Transitions of the FLAT/LONG machine."""

    def test_initial_state_is_flat(self):
        assert SimulationRunner().state is PositionState.FLAT

    def test_buy_opens_long(self):
        runner = SimulationRunner()
        runner.step(_make_candle(0, 100), B)
        assert runner.state is PositionState.LONG

    def test_sell_when_flat_is_ignored(self):
        runner = SimulationRunner()
        assert runner.step(_make_candle(0, 100), S) is None
        assert runner.state is PositionState.FLAT

    def test_buy_when_long_is_ignored(self):
        result = _run([100, 200, 110], [B, B, S])
        # Entry stays at the first BUY
        assert result.trades[0].entry_price == 100
        assert result.total_return == pytest.approx(0.10)

    def test_hold_is_noop(self):
        runner = SimulationRunner()
        runner.step(_make_candle(0, 100), H)
        assert runner.state is PositionState.FLAT
        runner.step(_make_candle(1, 100), B)
        runner.step(_make_candle(2, 50), H)
        assert runner.state is PositionState.LONG

    def test_sell_returns_completed_trade(self):
        runner = SimulationRunner()
        runner.step(_make_candle(0, 100), B)
        trade = runner.step(_make_candle(1, 90), S)
        assert trade is not None
        assert trade.entry_price == 100
        assert trade.exit_price == 90
        assert trade.entry_time == T0 + HOUR_MS - 1
        assert trade.exit_time == T0 + 2 * HOUR_MS - 1
        assert runner.state is PositionState.FLAT


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    """Aggregate result calculation."""

    def test_single_winning_trade(self):
        result = _run([100, 105, 110], [B, H, S])
        assert result.trade_count == 1
        assert result.wins == 1
        assert result.losses == 0
        assert result.total_return == pytest.approx(0.10)
        assert result.win_rate == 1.0
        assert result.to_results() == {
            "profit": pytest.approx(0.10),
            "winRate": 1.0,
            "trades": 1,
            "wins": 1,
            "losses": 0,
        }

    def test_open_position_discarded(self):
        result = _run([100, 120, 130], [B, H, H])
        assert result.trade_count == 0
        assert result.total_return == 0.0
        assert result.win_rate == 0.0
        assert result.open_position is True

    def test_force_close_at_end(self):
        result = _run([100, 120, 130], [B, H, H], force_close=True)
        assert result.trade_count == 1
        assert result.wins == 1
        assert result.total_return == pytest.approx(0.30)
        assert result.trades[0].forced is True
        assert result.open_position is False

    def test_breakeven_counts_as_loss(self):
        result = _run([100, 100], [B, S])
        assert result.wins == 0
        assert result.losses == 1
        assert result.win_rate == 0.0

    def test_returns_are_additive_not_compounded(self):
        # +10% then +10%: additive 0.20, compounded would be 0.21
        result = _run([100, 110, 200, 220], [B, S, B, S])
        assert result.total_return == pytest.approx(0.20)
        assert result.trade_count == 2
        assert result.win_rate == 1.0

    def test_mixed_trades(self):
        result = _run([100, 90, 50, 60, 10, 10], [B, S, B, S, B, S])
        assert result.trade_count == 3
        assert result.wins == 1
        assert result.losses == 2
        assert result.win_rate == pytest.approx(1 / 3)
        assert result.total_return == pytest.approx(-0.10 + 0.20 + 0.0)

    def test_no_trades_win_rate_zero(self):
        result = _run([100, 101], [H, H])
        assert result.trade_count == 0
        assert result.win_rate == 0.0

    def test_empty_stream(self):
        result = SimulationRunner().run([], ScriptedStrategy([]))
        assert result.trade_count == 0
        assert result.open_position is False

    def test_strategy_called_once_per_candle(self):
        candles = [_make_candle(i, 100) for i in range(7)]
        strategy = ScriptedStrategy([H] * 7)
        SimulationRunner().run(candles, strategy)
        assert strategy.calls == 7


# ---------------------------------------------------------------------------
# Properties over random streams
# ---------------------------------------------------------------------------

class TestProperties:
    """Invariants that hold for any candle/signal stream."""

    def test_counts_and_win_rate_bounds(self):
        rng = random.Random(11)
        for _ in range(100):
            n = rng.randint(0, 60)
            closes = [rng.uniform(1, 100) for _ in range(n)]
            signals = [rng.choice([B, S, H]) for _ in range(n)]
            result = _run(closes, signals)
            assert result.trade_count == result.wins + result.losses
            assert 0.0 <= result.win_rate <= 1.0
            assert result.total_return == pytest.approx(
                sum(t.pnl_fraction for t in result.trades)
            )

    def test_rerun_is_identical(self):
        rng = random.Random(5)
        closes = [100 + rng.gauss(0, 4) for _ in range(400)]
        candles = [_make_candle(i, c) for i, c in enumerate(closes)]
        config = EmaCrossoverConfig(short_period=5, long_period=21)

        first = SimulationRunner().run(candles, EmaCrossoverStrategy(config))
        second = SimulationRunner().run(candles, EmaCrossoverStrategy(config))
        assert first == second
        assert first.total_return == second.total_return
