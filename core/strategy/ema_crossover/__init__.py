"""EMA Crossover strategy package.

Importing this package triggers strategy registration via the
@register_strategy decorator on EmaCrossoverStrategy.
"""

from core.strategy.ema_crossover.generator import EmaCrossoverStrategy, detect_cross
from core.strategy.ema_crossover.models import (
    DEFAULT_LONG_PERIOD,
    DEFAULT_SHORT_PERIOD,
    EMA_CROSSOVER_STRATEGY_NAME,
    EmaCrossoverConfig,
)

__all__ = [
    "EmaCrossoverStrategy",
    "EmaCrossoverConfig",
    "detect_cross",
    "EMA_CROSSOVER_STRATEGY_NAME",
    "DEFAULT_SHORT_PERIOD",
    "DEFAULT_LONG_PERIOD",
]
