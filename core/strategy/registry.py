"""Closed strategy registry.

Strategies are keyed by ``StrategyKind``, a closed enum. Only a member of
that enum can be registered, and the only string-based step is resolving a
request's strategy name to a kind.

Usage:
    @register_strategy(StrategyKind.EMA_CROSSOVER)
    class EmaCrossoverStrategy:
        ...

    strategy = create_strategy("ema_crossover", {"shortEma": 5, "longEma": 20})
    strategies = list_strategies()
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping

from core.errors import UnknownStrategy

logger = logging.getLogger(__name__)


class StrategyKind(str, Enum):
    """Every strategy variant the engine knows about."""

    EMA_CROSSOVER = "ema_crossover"


# Global registry: strategy kind -> strategy class
_REGISTRY: dict[StrategyKind, type] = {}


def register_strategy(kind: StrategyKind):
    """Decorator to register a strategy class under a kind.

    The class must provide ``from_params(params)`` and ``default_params()``
    classmethods.

    Raises:
        ValueError: If the kind is already registered.
    """
    kind = StrategyKind(kind)

    def decorator(cls):
        if kind in _REGISTRY:
            raise ValueError(
                f"Strategy '{kind.value}' is already registered by {_REGISTRY[kind].__name__}"
            )
        _REGISTRY[kind] = cls
        logger.debug("Registered strategy: %s -> %s", kind.value, cls.__name__)
        return cls

    return decorator


def resolve_kind(name: str) -> StrategyKind:
    """Map a strategy name to its kind.

    Raises:
        UnknownStrategy: If no kind (or no registered class) matches.
    """
    try:
        kind = StrategyKind(name)
    except ValueError:
        raise UnknownStrategy(
            f"Unknown strategy '{name}'. Available: {', '.join(list_strategies()) or '(none)'}",
            strategy=name,
        ) from None
    if kind not in _REGISTRY:
        raise UnknownStrategy(
            f"Strategy '{name}' is not registered", strategy=name
        )
    return kind


def get_strategy_class(name: str | StrategyKind) -> type:
    """Get the strategy class by name or kind (without instantiating).

    Raises:
        UnknownStrategy: If nothing is registered under the given name.
    """
    kind = name if isinstance(name, StrategyKind) else resolve_kind(name)
    return _REGISTRY[kind]


def create_strategy(name: str | StrategyKind, params: Mapping[str, Any] | None = None):
    """Create a fresh strategy instance from caller-supplied parameters.

    Missing parameters fall back to the strategy's defaults.

    Raises:
        UnknownStrategy: If the name is not registered.
        InvalidParameters: If the parameters violate the strategy's constraints.
    """
    cls = get_strategy_class(name)
    return cls.from_params(params or {})


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(kind.value for kind in _REGISTRY)


def strategy_defaults() -> dict[str, dict[str, Any]]:
    """Default parameters for every registered strategy."""
    return {kind.value: cls.default_params() for kind, cls in sorted(_REGISTRY.items())}
