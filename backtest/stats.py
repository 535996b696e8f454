"""Statistics calculator for backtest results.

Extends the headline metrics with per-trade distribution figures and the
drawdown of the cumulative return curve. Returns are additive (sum of
per-trade pnl fractions), matching ``BacktestResult.total_return``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from core.models import BacktestResult

logger = logging.getLogger(__name__)


@dataclass
class TradeStats:
    """Distribution of completed trades."""

    trade_count: int = 0
    total_return: float = 0.0
    avg_return: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    forced_exits: int = 0
    equity_curve: list[float] = field(default_factory=list)


class StatisticsCalculator:
    """Calculate trade statistics for a completed run."""

    def calculate(self, result: BacktestResult) -> TradeStats:
        stats = TradeStats(trade_count=result.trade_count)
        if not result.trades:
            return stats

        pnl = np.array([t.pnl_fraction for t in result.trades], dtype=np.float64)
        wins = pnl[pnl > 0]
        losses = pnl[pnl <= 0]

        stats.total_return = float(pnl.sum())
        stats.avg_return = float(pnl.mean())
        stats.best_trade = float(pnl.max())
        stats.worst_trade = float(pnl.min())
        stats.avg_win = float(wins.mean()) if wins.size else 0.0
        stats.avg_loss = float(losses.mean()) if losses.size else 0.0

        gross_loss = float(-losses.sum())
        gross_profit = float(wins.sum())
        if gross_loss > 0:
            stats.profit_factor = gross_profit / gross_loss
        else:
            stats.profit_factor = float("inf") if gross_profit > 0 else 0.0

        stats.forced_exits = sum(1 for t in result.trades if t.forced)
        stats.equity_curve, stats.max_drawdown = self._drawdown(pnl)
        return stats

    @staticmethod
    def _drawdown(pnl: np.ndarray) -> tuple[list[float], float]:
        """Cumulative (additive) return curve and its largest peak-to-trough drop."""
        curve = np.concatenate(([0.0], np.cumsum(pnl)))
        peaks = np.maximum.accumulate(curve)
        max_dd = float((peaks - curve).max())
        return curve[1:].tolist(), max_dd
