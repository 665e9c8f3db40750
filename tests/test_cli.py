"""Tests for the command-line interface."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from stock_vignette.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_MARKET_DATA_ERROR,
    EXIT_OK,
    create_parser,
    main,
)
from stock_vignette.data.errors import ApiError
from stock_vignette.data.models import Bar, BarsQuery, TickerDetails


def make_bar(symbol: str, close: float) -> Bar:
    """Create a simple bar."""
    return Bar(
        ticker_symbol=symbol,
        volume=1000.0,
        volume_weighted_average_price=close,
        open=close,
        close=close,
        high=close + 1,
        low=close - 1,
        transaction_count=5,
    )


@pytest.fixture
def api_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide an API key and quiet logging."""
    monkeypatch.setenv("POLYGON_API_KEY", "K")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")


class TestParser:
    """Tests for argument parsing."""

    def test_bars_defaults(self) -> None:
        """Test default bars options."""
        args = create_parser().parse_args(
            ["bars", "Apple", "--start", "2022-01-01", "--end", "2022-06-01"]
        )
        assert args.command == "bars"
        assert args.multiplier == 1
        assert args.timespan == "day"
        assert args.sort == "asc"
        assert args.unadjusted is False
        assert args.limit == 5000

    def test_rejects_unknown_timespan(self) -> None:
        """Test that argparse rejects bad timespans."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(
                ["bars", "AAPL", "--start", "2022-01-01", "--end", "2022-01-02", "--timespan", "decade"]
            )


class TestMain:
    """Tests for main()."""

    def test_no_command(self) -> None:
        """Test that no command prints help and fails."""
        assert main([]) == EXIT_MARKET_DATA_ERROR

    def test_resolve_without_key(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that resolve needs no API key."""
        monkeypatch.delenv("POLYGON_API_KEY", raising=False)
        assert main(["resolve", "Apple", "Google", "IBM"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {
            "Apple": "AAPL",
            "Google": "GOOGL",
            "IBM": "IBM",
        }

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test exit code 2 when POLYGON_API_KEY is not set."""
        monkeypatch.delenv("POLYGON_API_KEY", raising=False)
        assert main(["details", "AAPL"]) == EXIT_CONFIG_ERROR

    @pytest.mark.usefixtures("api_env")
    def test_bars(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test bars output and query options."""
        with patch(
            "stock_vignette.cli.PolygonClient.fetch_bars", new_callable=AsyncMock
        ) as mock_fetch:
            mock_fetch.return_value = [make_bar("AAPL", 150.0)]
            code = main(
                [
                    "bars", "Apple", "--start", "2022-01-01", "--end", "2022-06-01",
                    "--sort", "desc", "--unadjusted", "--limit", "10",
                ]
            )

        assert code == EXIT_OK
        query = mock_fetch.call_args.args[0]
        assert isinstance(query, BarsQuery)
        assert query.api_key == "K"
        assert query.sort_order == "desc"
        assert query.adjusted is False
        assert query.limit == 10
        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["ticker_symbol"] == "AAPL"
        assert rows[0]["close"] == 150.0

    @pytest.mark.usefixtures("api_env")
    def test_details(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test details output."""
        details = TickerDetails.model_validate({"ticker": "AAPL", "address.city": "CUPERTINO"})
        with patch(
            "stock_vignette.cli.PolygonClient.fetch_details", new_callable=AsyncMock
        ) as mock_fetch:
            mock_fetch.return_value = details
            assert main(["details", "Apple", "--date", "2023-01-05"]) == EXIT_OK

        query = mock_fetch.call_args.args[0]
        assert query.as_of_date.isoformat() == "2023-01-05"
        assert json.loads(capsys.readouterr().out) == {
            "ticker": "AAPL",
            "address.city": "CUPERTINO",
        }

    @pytest.mark.usefixtures("api_env")
    def test_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test per-ticker summaries."""
        data = {
            "AAPL": [make_bar("AAPL", 100.0), make_bar("AAPL", 110.0)],
            "MSFT": [],
        }

        async def fake_fetch(query: BarsQuery) -> list[Bar]:
            return data[query.ticker]

        with patch(
            "stock_vignette.cli.PolygonClient.fetch_bars", side_effect=fake_fetch
        ):
            code = main(
                ["summary", "Apple", "Microsoft", "--start", "2022-01-01", "--end", "2022-01-31"]
            )

        assert code == EXIT_OK
        summaries = json.loads(capsys.readouterr().out)
        assert len(summaries) == 1
        assert summaries[0]["ticker_symbol"] == "AAPL"
        assert summaries[0]["mean_close"] == pytest.approx(105.0)

    @pytest.mark.usefixtures("api_env")
    def test_api_error_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that market data errors map to exit code 1."""
        with patch(
            "stock_vignette.cli.PolygonClient.fetch_details", new_callable=AsyncMock
        ) as mock_fetch:
            mock_fetch.side_effect = ApiError(404, "not found")
            assert main(["details", "ZZZZ"]) == EXIT_MARKET_DATA_ERROR

        assert "404" in capsys.readouterr().err

    @pytest.mark.usefixtures("api_env")
    def test_invalid_query_exit_code(self) -> None:
        """Test that invalid dates fail before any request."""
        with patch(
            "stock_vignette.cli.PolygonClient.fetch_bars", new_callable=AsyncMock
        ) as mock_fetch:
            code = main(["bars", "AAPL", "--start", "soon", "--end", "2022-01-31"])

        assert code == EXIT_MARKET_DATA_ERROR
        mock_fetch.assert_not_called()
