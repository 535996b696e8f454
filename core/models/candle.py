"""Candle (OHLCV bar) data model."""

from pydantic import BaseModel, ConfigDict, model_validator


class Candle(BaseModel):
    """One closed OHLCV bar.

    Times are epoch milliseconds as returned by the exchange; prices and
    volume are parsed to float.
    """

    model_config = ConfigDict(frozen=True)

    open_time: int
    close_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @model_validator(mode="after")
    def _check_times(self) -> "Candle":
        if self.open_time >= self.close_time:
            raise ValueError(
                f"open_time ({self.open_time}) must be before close_time ({self.close_time})"
            )
        return self
