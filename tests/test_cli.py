"""Tests for the backtest command line."""

from unittest.mock import AsyncMock

import pytest

from backtest import __main__ as cli
from backtest.orchestrator import BacktestOrchestrator
from core.errors import RetrievalFailure
from core.models import Candle

HOUR_MS = 3_600_000
T0 = 1_704_067_200_000


def _make_candle(index: int, close: float) -> Candle:
    open_time = T0 + index * HOUR_MS
    return Candle(
        open_time=open_time,
        close_time=open_time + HOUR_MS - 1,
        open=close,
        high=close,
        low=close,
        close=close,
        volume=1.0,
    )


@pytest.fixture
def fetcher(monkeypatch):
    """Replace the production wiring with a mocked fetcher."""
    mock_fetcher = AsyncMock()
    mock_fetcher.fetch.return_value = [
        _make_candle(i, c) for i, c in enumerate([10, 10, 10, 12, 14, 9, 8])
    ]
    client = AsyncMock()
    captured = {}

    def fake_create(settings=None, client_=None):
        captured["settings"] = settings
        orchestrator = BacktestOrchestrator(
            mock_fetcher,
            interval=settings.interval,
            force_close_at_end=settings.force_close_at_end,
        )
        return orchestrator, client

    monkeypatch.setattr(cli, "create_orchestrator", fake_create)
    mock_fetcher.captured = captured
    mock_fetcher.client = client
    return mock_fetcher


class TestParseArgs:

    def test_defaults(self):
        args = cli.parse_args([])
        assert args.symbol == "BTCUSDT"
        assert args.strategy == "ema_crossover"
        assert args.short is None
        assert args.force_close is False

    def test_all_flags(self):
        args = cli.parse_args([
            "--symbol", "ETHUSDT", "--start", "2024-01-01", "--end", "2024-02-01",
            "--short", "5", "--long", "20", "--interval", "4h", "--force-close",
            "-o", "out.json", "-v",
        ])
        assert args.symbol == "ETHUSDT"
        assert (args.short, args.long) == (5, 20)
        assert args.interval == "4h"
        assert args.force_close is True
        assert args.output == "out.json"
        assert args.verbose is True


class TestMain:

    @pytest.mark.asyncio
    async def test_list_strategies(self, capsys):
        assert await cli.main(["--list-strategies"]) == 0
        out = capsys.readouterr().out
        assert "ema_crossover" in out
        assert "shortEma=10" in out

    @pytest.mark.asyncio
    async def test_requires_dates(self, capsys):
        assert await cli.main(["--symbol", "BTCUSDT"]) == 2
        assert "--start and --end are required" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_successful_run(self, fetcher, capsys, tmp_path):
        output = tmp_path / "result.json"
        code = await cli.main([
            "--start", "2024-01-01", "--end", "2024-01-02",
            "--short", "2", "--long", "3", "--interval", "4h", "-o", str(output),
        ])

        assert code == 0
        assert fetcher.fetch.await_args.args[1] == "4h"
        assert fetcher.captured["settings"].interval == "4h"
        fetcher.client.close.assert_awaited_once()
        assert "BACKTEST RESULTS" in capsys.readouterr().out
        assert output.exists()

    @pytest.mark.asyncio
    async def test_invalid_parameters_exit_code(self, fetcher, capsys):
        code = await cli.main([
            "--start", "2024-01-01", "--end", "2024-01-02", "--short", "30", "--long", "10",
        ])
        assert code == 2
        assert "invalid_parameters" in capsys.readouterr().out
        fetcher.client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retrieval_failure_exit_code(self, fetcher):
        fetcher.fetch.side_effect = RetrievalFailure("Binance returned HTTP 500")
        code = await cli.main(["--start", "2024-01-01", "--end", "2024-01-02"])
        assert code == 1
        fetcher.client.close.assert_awaited_once()
