"""Signal, position and trade models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Signal(str, Enum):
    """Per-candle strategy decision."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class PositionState(str, Enum):
    """Single-lot position state. No shorting, no pyramiding."""

    FLAT = "flat"
    LONG = "long"


class Trade(BaseModel):
    """One completed entry/exit pair."""

    model_config = ConfigDict(frozen=True)

    entry_price: float
    exit_price: float
    entry_time: int
    exit_time: int
    forced: bool = False  # Closed at end of range rather than by a SELL

    @property
    def pnl_fraction(self) -> float:
        """Profit/loss as a fraction of the entry price."""
        return (self.exit_price - self.entry_price) / self.entry_price

    @property
    def is_win(self) -> bool:
        return self.pnl_fraction > 0


class BacktestResult(BaseModel):
    """Aggregate outcome of one simulated run.

    ``total_return`` is the arithmetic sum of per-trade pnl fractions.
    It is deliberately not compounded.
    """

    total_return: float = 0.0
    win_rate: float = 0.0
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    trades: list[Trade] = Field(default_factory=list)
    open_position: bool = False

    def to_results(self) -> dict:
        """Outbound ``results`` mapping."""
        return {
            "profit": self.total_return,
            "winRate": self.win_rate,
            "trades": self.trade_count,
            "wins": self.wins,
            "losses": self.losses,
        }
