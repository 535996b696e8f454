"""EMA Crossover strategy implementation.

Simple trend-following signal generator:
- Short EMA crosses above Long EMA -> BUY
- Short EMA crosses below Long EMA -> SELL
- Anything else -> HOLD

Both EMAs are streamed with ``ema_update``; a cross needs two consecutive
candles on which both EMAs are available.

This module is pure business logic with no I/O dependencies.
"""

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from core.errors import InvalidParameters
from core.indicators import EmaState, ema_update
from core.models import Candle, Signal
from core.strategy.ema_crossover.models import (
    EMA_CROSSOVER_STRATEGY_NAME,
    EmaCrossoverConfig,
)
from core.strategy.registry import StrategyKind, register_strategy

logger = logging.getLogger(__name__)


def detect_cross(
    prev_short: float,
    prev_long: float,
    short: float,
    long: float,
) -> Signal:
    """Classify the move between two consecutive (short, long) EMA pairs."""
    # Bullish crossover: short was at or below long, now strictly above
    if prev_short <= prev_long and short > long:
        return Signal.BUY
    # Bearish crossover: short was at or above long, now strictly below
    if prev_short >= prev_long and short < long:
        return Signal.SELL
    return Signal.HOLD


@register_strategy(StrategyKind.EMA_CROSSOVER)
class EmaCrossoverStrategy:
    """EMA Crossover trend-following strategy.

    Signal Logic:
    - BUY: short EMA crosses above long EMA
    - SELL: short EMA crosses below long EMA
    - HOLD: no cross, or either EMA still warming up
    """

    def __init__(self, config: EmaCrossoverConfig | None = None):
        self.config = config or EmaCrossoverConfig()

        self.short_period = self.config.short_period
        self.long_period = self.config.long_period

        if self.short_period >= self.long_period:
            raise InvalidParameters(
                "shortEma must be less than longEma",
                short_period=self.short_period,
                long_period=self.long_period,
            )

        self._short = EmaState(self.short_period)
        self._long = EmaState(self.long_period)

        # Previous EMA values for crossover detection
        self._prev_short: float | None = None
        self._prev_long: float | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "EmaCrossoverStrategy":
        """Build from a request-style parameter map, applying defaults."""
        try:
            config = EmaCrossoverConfig.model_validate(dict(params))
        except ValidationError as e:
            errors = e.errors()
            first = errors[0] if errors else {}
            raise InvalidParameters(
                f"Invalid ema_crossover parameters: {first.get('msg', str(e))}",
                field=".".join(str(p) for p in first.get("loc", ())),
                value=first.get("input"),
            ) from e
        return cls(config)

    @classmethod
    def default_params(cls) -> dict[str, Any]:
        return EmaCrossoverConfig().model_dump(by_alias=True)

    # ------------------------------------------------------------------
    # Strategy Protocol properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return EMA_CROSSOVER_STRATEGY_NAME

    @property
    def params(self) -> dict[str, Any]:
        return self.config.model_dump(by_alias=True)

    @property
    def short_ema(self) -> float | None:
        return self._prev_short

    @property
    def long_ema(self) -> float | None:
        return self._prev_long

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def consume(self, candle: Candle) -> Signal:
        """Advance both EMAs with the candle close and classify it."""
        self._short, short_value = ema_update(self._short, candle.close)
        self._long, long_value = ema_update(self._long, candle.close)

        signal = Signal.HOLD
        if (
            short_value is not None
            and long_value is not None
            and self._prev_short is not None
            and self._prev_long is not None
        ):
            signal = detect_cross(
                self._prev_short, self._prev_long, short_value, long_value
            )
            if signal is not Signal.HOLD:
                logger.debug(
                    "EMA %s @ %s short=%.6f long=%.6f",
                    signal.value, candle.close, short_value, long_value,
                )

        self._prev_short = short_value
        self._prev_long = long_value
        return signal
