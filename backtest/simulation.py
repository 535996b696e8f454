"""Single-position account simulation.

State machine, starting FLAT:
- FLAT --BUY--> LONG (entry at candle close)
- LONG --SELL--> FLAT (trade recorded at candle close)
- FLAT ignores SELL, LONG ignores BUY, HOLD is a no-op.

A position still open when the stream ends is discarded unless
``force_close_at_end`` is set, in which case it is closed at the last close.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.models import BacktestResult, Candle, PositionState, Signal, Trade
from core.strategy import Strategy

logger = logging.getLogger(__name__)


class SimulationRunner:
    """Drive one run's position state machine and accumulate metrics."""

    def __init__(self, force_close_at_end: bool = False):
        self.force_close_at_end = force_close_at_end

        self.state = PositionState.FLAT
        self._entry_price = 0.0
        self._entry_time = 0

        self._total_return = 0.0
        self._wins = 0
        self._losses = 0
        self._trades: list[Trade] = []

    @property
    def trade_count(self) -> int:
        return len(self._trades)

    def step(self, candle: Candle, signal: Signal) -> Trade | None:
        """Apply one signal. Returns the trade it completed, if any."""
        if signal is Signal.BUY and self.state is PositionState.FLAT:
            self.state = PositionState.LONG
            self._entry_price = candle.close
            self._entry_time = candle.close_time
            return None

        if signal is Signal.SELL and self.state is PositionState.LONG:
            return self._close(candle)

        return None

    def _close(self, candle: Candle, forced: bool = False) -> Trade:
        trade = Trade(
            entry_price=self._entry_price,
            exit_price=candle.close,
            entry_time=self._entry_time,
            exit_time=candle.close_time,
            forced=forced,
        )
        pnl = trade.pnl_fraction
        self._total_return += pnl
        if pnl > 0:
            self._wins += 1
        else:
            self._losses += 1
        self._trades.append(trade)

        self.state = PositionState.FLAT
        self._entry_price = 0.0
        self._entry_time = 0
        return trade

    def finish(self, last_candle: Candle | None = None) -> BacktestResult:
        """Close out the run and build the result."""
        open_position = self.state is PositionState.LONG
        if open_position:
            if self.force_close_at_end and last_candle is not None:
                self._close(last_candle, forced=True)
                open_position = False
            else:
                logger.debug(
                    "Discarding open position entered at %s", self._entry_price
                )

        trade_count = self.trade_count
        win_rate = self._wins / trade_count if trade_count > 0 else 0.0
        return BacktestResult(
            total_return=self._total_return,
            win_rate=win_rate,
            trade_count=trade_count,
            wins=self._wins,
            losses=self._losses,
            trades=list(self._trades),
            open_position=open_position,
        )

    def run(self, candles: Iterable[Candle], strategy: Strategy) -> BacktestResult:
        """Stream candles through ``strategy`` and this runner, in order."""
        last: Candle | None = None
        for candle in candles:
            signal = strategy.consume(candle)
            self.step(candle, signal)
            last = candle
        return self.finish(last)
