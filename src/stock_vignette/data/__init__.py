"""Data layer for Polygon.io market data.

This module provides:
- TickerResolver: Company name to ticker symbol resolution
- PolygonClient: Async client for the aggregates and ticker-details endpoints
- Data models: BarsQuery, DetailsQuery, Bar, TickerDetails
- Error hierarchy rooted at MarketDataError
"""

from stock_vignette.data.errors import (
    ApiError,
    InvalidQueryError,
    MalformedResponseError,
    MarketDataError,
    TransportError,
)
from stock_vignette.data.models import (
    Bar,
    BarsQuery,
    DetailsQuery,
    SortOrder,
    TickerDetails,
    Timespan,
)
from stock_vignette.data.polygon import PolygonClient, flatten_details, project_bars
from stock_vignette.data.resolver import TickerAlias, TickerResolver, resolve_ticker

__all__ = [
    "ApiError",
    "Bar",
    "BarsQuery",
    "DetailsQuery",
    "InvalidQueryError",
    "MalformedResponseError",
    "MarketDataError",
    "PolygonClient",
    "SortOrder",
    "TickerAlias",
    "TickerDetails",
    "TickerResolver",
    "Timespan",
    "TransportError",
    "flatten_details",
    "project_bars",
    "resolve_ticker",
]
