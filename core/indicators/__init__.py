"""Technical indicators (pure math, no I/O)."""

from core.indicators.ema import EmaState, ema, ema_update

__all__ = [
    "EmaState",
    "ema",
    "ema_update",
]
