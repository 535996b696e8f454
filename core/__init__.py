"""Core backtest logic: models, indicators, strategies and errors.

This package contains pure business logic with no I/O dependencies
(no network or storage access). It is shared by the HTTP service (app/)
and the backtest pipeline (backtest/).
"""
