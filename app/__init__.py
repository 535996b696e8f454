"""HTTP service exposing the backtest pipeline."""
