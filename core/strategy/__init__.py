"""Strategy plugin system.

Public API:
- Strategy: Protocol that all strategies must implement
- StrategyKind: Closed enum of known strategy variants
- register_strategy: Decorator to register a strategy class under a kind
- create_strategy: Factory function to instantiate strategies by name
- list_strategies: Discover all registered strategies
- get_strategy_class: Get strategy class by name without instantiating

Importing this package auto-registers all built-in strategies.
"""

from core.strategy.protocol import Strategy
from core.strategy.registry import (
    StrategyKind,
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
    resolve_kind,
    strategy_defaults,
)

# Import built-in strategies to trigger auto-registration
import core.strategy.ema_crossover  # noqa: F401

__all__ = [
    "Strategy",
    "StrategyKind",
    "register_strategy",
    "create_strategy",
    "list_strategies",
    "get_strategy_class",
    "resolve_kind",
    "strategy_defaults",
]
