"""Tabular reshaping and summary statistics over projected bars.

The vignette fetches bars for a handful of companies, turns them into rows
a table/chart library can consume, and derives per-ticker summaries.
"""

import asyncio
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

import numpy as np
import structlog
from pydantic import BaseModel

from stock_vignette.data.models import Bar, Timespan
from stock_vignette.data.polygon import PolygonClient

logger = structlog.get_logger(__name__)


class TickerSummary(BaseModel):
    """Summary statistics for one ticker's bars.

    Attributes:
        ticker_symbol: Ticker symbol.
        bar_count: Number of bars summarized.
        mean_close: Mean closing price.
        mean_range: Mean of ``high - low`` per bar.
        mean_vwap: Mean volume-weighted average price.
        total_volume: Sum of volumes.
    """

    ticker_symbol: str
    bar_count: int
    mean_close: float
    mean_range: float
    mean_vwap: float
    total_volume: float


def bars_to_rows(bars: Iterable[Bar]) -> list[dict[str, Any]]:
    """Convert bars into plain rows with named columns."""
    return [bar.model_dump() for bar in bars]


def summarize_bars(bars: Iterable[Bar]) -> list[TickerSummary]:
    """Summarize bars per ticker symbol.

    Tickers appear in order of first occurrence. A ticker with no bars
    does not appear at all.
    """
    grouped: dict[str, list[Bar]] = defaultdict(list)
    for bar in bars:
        grouped[bar.ticker_symbol].append(bar)

    summaries = []
    for symbol, rows in grouped.items():
        close = np.array([bar.close for bar in rows], dtype=float)
        high = np.array([bar.high for bar in rows], dtype=float)
        low = np.array([bar.low for bar in rows], dtype=float)
        vwap = np.array([bar.volume_weighted_average_price for bar in rows], dtype=float)
        volume = np.array([bar.volume for bar in rows], dtype=float)

        summaries.append(
            TickerSummary(
                ticker_symbol=symbol,
                bar_count=len(rows),
                mean_close=float(np.mean(close)),
                mean_range=float(np.mean(high - low)),
                mean_vwap=float(np.mean(vwap)),
                total_volume=float(np.sum(volume)),
            )
        )
    return summaries


async def fetch_companies(
    client: PolygonClient,
    companies: Sequence[str],
    start: date | str,
    end: date | str,
    timespan: Timespan | str = Timespan.DAY,
    **query_options: Any,
) -> dict[str, list[Bar]]:
    """Fetch bars for several companies concurrently.

    Names that resolve to the same symbol are fetched once, and each
    symbol gets its own independent request. On the first failure the
    remaining requests are cancelled and that error propagates.

    Args:
        client: Polygon client.
        companies: Company names or ticker symbols.
        start: First day of the range.
        end: Last day of the range.
        timespan: Bar timespan.
        **query_options: Extra BarsQuery fields (multiplier, limit, ...).

    Returns:
        Bars keyed by resolved ticker symbol, in input order.
    """
    symbols = list(dict.fromkeys(client.resolve(name) for name in companies))
    queries = [
        client.bars_query(symbol, start, end, timespan=timespan, **query_options)
        for symbol in symbols
    ]
    logger.info("fetching_companies", companies=list(companies), symbols=symbols)

    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(client.fetch_bars(query)) for query in queries]
    except ExceptionGroup as e:
        raise e.exceptions[0]

    return {symbol: task.result() for symbol, task in zip(symbols, tasks, strict=True)}
