"""CLI entry point for the backtesting system.

Usage:
    python -m backtest --symbol BTCUSDT --start 2024-01-01 --end 2024-03-01
    python -m backtest --symbol ETHUSDT --start 2024-01-01 --end 2024-06-01 --short 5 --long 20
    python -m backtest --symbol BTCUSDT --start 2024-01-01 --end 2024-03-01 --force-close -o out.json
    python -m backtest --list-strategies
"""

import argparse
import asyncio
import logging
import sys

from core.errors import BacktestError, RetrievalFailure
from core.strategy import strategy_defaults

from backtest.config import get_backtest_settings
from backtest.orchestrator import create_orchestrator
from backtest.report import ReportFormatter
from backtest.stats import StatisticsCalculator

DEFAULT_SYMBOL = "BTCUSDT"
DEFAULT_STRATEGY = "ema_crossover"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Backtest a signal strategy on Binance klines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backtest --symbol BTCUSDT --start 2024-01-01 --end 2024-03-01
  python -m backtest --symbol ETHUSDT --start 2024-01-01 --end 2024-06-01 --short 5 --long 20
  python -m backtest --list-strategies
        """,
    )

    parser.add_argument(
        "--list-strategies",
        action="store_true",
        help="List registered strategies and their default parameters",
    )

    # Backtest parameters
    parser.add_argument(
        "--symbol",
        type=str,
        default=DEFAULT_SYMBOL,
        help=f"Trading pair (default: {DEFAULT_SYMBOL})",
    )
    parser.add_argument("--start", type=str, default=None, help="Start date (ISO-8601)")
    parser.add_argument("--end", type=str, default=None, help="End date (ISO-8601)")
    parser.add_argument(
        "--strategy",
        type=str,
        default=DEFAULT_STRATEGY,
        help=f"Strategy name (default: {DEFAULT_STRATEGY})",
    )
    parser.add_argument("--short", type=int, default=None, help="Short EMA period")
    parser.add_argument("--long", type=int, default=None, help="Long EMA period")
    parser.add_argument(
        "--interval",
        type=str,
        default=None,
        help="Kline interval (default: BACKTEST_INTERVAL or 1h)",
    )
    parser.add_argument(
        "--force-close",
        action="store_true",
        help="Close an open position at the last candle instead of discarding it",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def cmd_list_strategies() -> None:
    """List registered strategies."""
    for name, params in strategy_defaults().items():
        defaults = ", ".join(f"{k}={v}" for k, v in params.items())
        print(f"  {name:<20} {defaults}")


async def cmd_run_backtest(args: argparse.Namespace) -> int:
    """Run a backtest. Returns the process exit code."""
    if args.start is None or args.end is None:
        print("Error: --start and --end are required for backtest")
        return 2

    settings = get_backtest_settings()
    if args.interval:
        settings = settings.model_copy(update={"interval": args.interval})

    params: dict[str, int] = {}
    if args.short is not None:
        params["shortEma"] = args.short
    if args.long is not None:
        params["longEma"] = args.long

    request = {
        "symbol": args.symbol,
        "from": args.start,
        "to": args.end,
        "strategy": args.strategy,
        "params": params,
    }
    if args.force_close:
        request["forceClose"] = True

    orchestrator, client = create_orchestrator(settings)
    try:
        print(f"\nBacktest: {args.symbol} {args.strategy} ({settings.interval})")
        print(f"Period: {args.start} → {args.end}")
        response = await orchestrator.run(request)
    except RetrievalFailure as e:
        print(f"Error: {e.reason} {e.context}")
        return 1
    except BacktestError as e:
        print(f"Error [{e.kind.value}]: {e.reason}")
        return 2
    finally:
        await client.close()

    stats = StatisticsCalculator().calculate(response.detail)
    ReportFormatter.print_console(response, stats)

    if args.output:
        ReportFormatter.save_json(response, args.output, stats)
    return 0


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if args.list_strategies:
        cmd_list_strategies()
        return 0
    return await cmd_run_backtest(args)


def cli() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
