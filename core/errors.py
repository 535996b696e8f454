"""Backtest error taxonomy.

Every failure a backtest request can hit is one of a closed set of kinds.
Errors carry structured context (field name, offending value, symbol, ...)
so callers branch on ``kind`` instead of matching message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of request-scoped failure kinds."""

    INVALID_REQUEST = "invalid_request"
    UNKNOWN_STRATEGY = "unknown_strategy"
    INVALID_PARAMETERS = "invalid_parameters"
    NO_DATA = "no_data"
    RETRIEVAL_FAILURE = "retrieval_failure"


class BacktestError(Exception):
    """Base class for all backtest failures."""

    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, reason: str, **context: Any):
        super().__init__(reason)
        self.reason = reason
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form used by the HTTP layer and the CLI."""
        return {
            "kind": self.kind.value,
            "reason": self.reason,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r}, {self.context!r})"


class InvalidRequest(BacktestError):
    """Missing field, unparseable date, or ``from >= to``."""

    kind = ErrorKind.INVALID_REQUEST


class UnknownStrategy(BacktestError):
    """Strategy name is not in the registry."""

    kind = ErrorKind.UNKNOWN_STRATEGY


class InvalidParameters(BacktestError):
    """Strategy construction constraint violated."""

    kind = ErrorKind.INVALID_PARAMETERS


class NoData(BacktestError):
    """Fetch succeeded but returned zero candles."""

    kind = ErrorKind.NO_DATA


class RetrievalFailure(BacktestError):
    """Transport or API error while paginating market data."""

    kind = ErrorKind.RETRIEVAL_FAILURE


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)
