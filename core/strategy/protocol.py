"""Strategy protocol defining the interface all strategies must implement."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.models.candle import Candle
from core.models.signal import Signal


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all signal generators must implement.

    A strategy instance belongs to exactly one run. ``consume`` is called
    once per candle, in ascending time order, and never shared across runs.
    """

    @property
    def name(self) -> str:
        """Registered strategy identifier (e.g., 'ema_crossover')."""
        ...

    @property
    def params(self) -> dict[str, Any]:
        """Resolved parameters in their outbound key style."""
        ...

    def consume(self, candle: Candle) -> Signal:
        """Update internal state with ``candle`` and classify it.

        Args:
            candle: The next closed candle in the stream.

        Returns:
            BUY, SELL or HOLD.
        """
        ...
