"""Exchange clients."""

from backtest.clients.binance_rest import BinanceRestClient, parse_kline_row

__all__ = [
    "BinanceRestClient",
    "parse_kline_row",
]
