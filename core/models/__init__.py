"""Data models."""

from core.models.candle import Candle
from core.models.signal import BacktestResult, PositionState, Signal, Trade

__all__ = [
    "Candle",
    "Signal",
    "PositionState",
    "Trade",
    "BacktestResult",
]
