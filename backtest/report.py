"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone

from backtest.orchestrator import BacktestResponse
from backtest.stats import StatisticsCalculator, TradeStats


def _fmt_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(response: BacktestResponse, stats: TradeStats | None = None) -> None:
        """Print formatted report to console."""
        if stats is None:
            stats = StatisticsCalculator().calculate(response.detail)
        r = response.results
        params = ", ".join(f"{k}={v}" for k, v in response.params.items())

        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS — {response.strategy} ({params})")
        print("=" * 70)
        print(f"  Symbol:  {response.symbol}")
        if response.start and response.end:
            print(f"  Period:  {response.start:%Y-%m-%d %H:%M} → {response.end:%Y-%m-%d %H:%M}")
        print(f"  Candles: {response.candles}")

        print("\n" + "-" * 70)
        print("  OVERALL")
        print("-" * 70)
        print(f"  Trades:         {r.trades}")
        print(f"  Wins:           {r.wins}")
        print(f"  Losses:         {r.losses}")
        print(f"  Win rate:       {r.win_rate * 100:.1f}%")
        print(f"  Total return:   {r.profit * 100:+.2f}% (sum of trades)")
        if response.detail.open_position:
            print("  Open position:  discarded at end of range")

        if stats.trade_count:
            pf = "inf" if math.isinf(stats.profit_factor) else f"{stats.profit_factor:.2f}"
            print("\n" + "-" * 70)
            print("  TRADE DISTRIBUTION")
            print("-" * 70)
            print(f"  Avg trade:      {stats.avg_return * 100:+.2f}%")
            print(f"  Best / worst:   {stats.best_trade * 100:+.2f}% / {stats.worst_trade * 100:+.2f}%")
            print(f"  Avg win / loss: {stats.avg_win * 100:+.2f}% / {stats.avg_loss * 100:+.2f}%")
            print(f"  Profit factor:  {pf}")
            print(f"  Max drawdown:   {stats.max_drawdown * 100:.2f}%")
            if stats.forced_exits:
                print(f"  Forced exits:   {stats.forced_exits}")

            print("\n" + "-" * 70)
            print("  TRADES (last 10)")
            print("-" * 70)
            print(f"  {'Entry':<17} {'Exit':<17} {'Entry $':>12} {'Exit $':>12} {'PnL':>8}")
            for t in response.detail.trades[-10:]:
                print(
                    f"  {_fmt_time(t.entry_time):<17} {_fmt_time(t.exit_time):<17} "
                    f"{t.entry_price:>12.4f} {t.exit_price:>12.4f} {t.pnl_fraction * 100:>+7.2f}%"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(response: BacktestResponse, stats: TradeStats | None = None) -> dict:
        """Convert results to JSON-serializable dict."""
        if stats is None:
            stats = StatisticsCalculator().calculate(response.detail)
        data = response.to_dict()
        data["stats"] = {
            "candles": response.candles,
            "avg_return": stats.avg_return,
            "best_trade": stats.best_trade,
            "worst_trade": stats.worst_trade,
            "avg_win": stats.avg_win,
            "avg_loss": stats.avg_loss,
            "profit_factor": None if math.isinf(stats.profit_factor) else stats.profit_factor,
            "max_drawdown": stats.max_drawdown,
            "open_position_discarded": response.detail.open_position,
        }
        data["trades"] = [
            {
                "entry_time": t.entry_time,
                "exit_time": t.exit_time,
                "entry_price": t.entry_price,
                "exit_price": t.exit_price,
                "pnl_fraction": t.pnl_fraction,
                "forced": t.forced,
            }
            for t in response.detail.trades
        ]
        return data

    @staticmethod
    def save_json(response: BacktestResponse, filepath: str, stats: TradeStats | None = None) -> None:
        """Save results to JSON file."""
        data = ReportFormatter.to_dict(response, stats)
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        print(f"\nResults saved to {filepath}")
