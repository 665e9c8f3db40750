"""Polygon.io API client for aggregates and ticker reference data.

This module builds request URLs for the two supported endpoints, performs
a single GET per call and projects the JSON body into typed results.
"""

import re
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import ValidationError

from stock_vignette.data.errors import (
    ApiError,
    InvalidQueryError,
    MalformedResponseError,
    TransportError,
)
from stock_vignette.data.models import (
    Bar,
    BarsQuery,
    DetailsQuery,
    TickerDetails,
    adjusted_token,
    sort_token,
    timespan_token,
)
from stock_vignette.data.resolver import TickerResolver, default_resolver

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.polygon.io"

# Polygon's short aggregate keys mapped to Bar field names.
BAR_FIELD_MAP: dict[str, str] = {
    "v": "volume",
    "vw": "volume_weighted_average_price",
    "o": "open",
    "c": "close",
    "h": "high",
    "l": "low",
    "n": "transaction_count",
}

_API_KEY_PATTERN = re.compile(r"(apiKey=)[^&]*")


def redact_api_key(url: str) -> str:
    """Mask the apiKey query parameter of a URL for logging."""
    return _API_KEY_PATTERN.sub(r"\1***", url)


def project_bars(payload: Any, default_symbol: str | None = None) -> list[Bar]:
    """Project an aggregates response body into Bar rows.

    Args:
        payload: Parsed JSON body.
        default_symbol: Symbol to attach when the body has no ``ticker``.

    Returns:
        One Bar per element of ``results``; empty if ``results`` is
        absent or empty.

    Raises:
        MalformedResponseError: If the body or a result row has the wrong shape.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError("Aggregates response is not a JSON object")

    results = payload.get("results")
    if results is None or results == []:
        return []
    if not isinstance(results, list):
        raise MalformedResponseError("Aggregates 'results' is not an array")

    symbol = payload.get("ticker", default_symbol)
    if not isinstance(symbol, str):
        raise MalformedResponseError("Aggregates response has no 'ticker'")

    bars = []
    for index, row in enumerate(results):
        if not isinstance(row, dict):
            raise MalformedResponseError(
                f"Aggregates result {index} is not an object",
                details={"index": index},
            )
        missing = [key for key in BAR_FIELD_MAP if key not in row]
        if missing:
            raise MalformedResponseError(
                f"Aggregates result {index} is missing {', '.join(missing)}",
                details={"index": index, "missing": missing},
            )
        try:
            bars.append(
                Bar(
                    ticker_symbol=symbol,
                    **{field: row[key] for key, field in BAR_FIELD_MAP.items()},
                )
            )
        except ValidationError as e:
            raise MalformedResponseError(
                f"Aggregates result {index} has invalid values",
                details={"index": index, "errors": e.errors(include_url=False)},
            ) from e
    return bars


def flatten_details(results: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested objects into dot-joined keys.

    ``{"address": {"city": "X"}}`` becomes ``{"address.city": "X"}``.
    Lists, scalars and empty objects are kept as they are.
    """
    flat: dict[str, Any] = {}
    for key, value in results.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            flat.update(flatten_details(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def project_details(payload: Any) -> TickerDetails:
    """Project a ticker-details response body into a TickerDetails record.

    Raises:
        MalformedResponseError: If ``results`` is missing or has no ticker.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), dict):
        raise MalformedResponseError("Ticker details response has no 'results' object")

    try:
        return TickerDetails.model_validate(flatten_details(payload["results"]))
    except ValidationError as e:
        raise MalformedResponseError(
            "Ticker details 'results' has no valid 'ticker'",
            details={"errors": e.errors(include_url=False)},
        ) from e


class PolygonClient:
    """Async client for the Polygon.io aggregates and ticker-details endpoints.

    Each fetch issues exactly one GET: there is no retry, pagination or
    caching. The API key is always passed explicitly.

    Example:
        async with PolygonClient(api_key="...") as client:
            bars = await client.fetch_bars(
                client.bars_query("Apple", "2022-01-01", "2022-06-01")
            )
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        resolver: TickerResolver | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Polygon client.

        Args:
            api_key: Polygon.io API key, used by the query helpers.
            base_url: API base URL.
            resolver: Ticker resolver, the default alias table if None.
            http_client: Externally owned httpx client. Left open on close.
        """
        if not api_key:
            raise InvalidQueryError("api_key", api_key, "must be a non-empty string")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._resolver = resolver or default_resolver
        self._client = http_client
        self._owns_client = http_client is None
        self._logger = logger.bind(component="polygon_client")

    def resolve(self, ticker: str) -> str:
        """Resolve a company name to the symbol used in request paths."""
        return self._resolver.resolve(ticker)

    def bars_query(self, ticker: str, start: Any, end: Any, **kwargs: Any) -> BarsQuery:
        """Build a BarsQuery carrying this client's API key."""
        return BarsQuery(ticker=ticker, start=start, end=end, api_key=self.api_key, **kwargs)

    def details_query(self, ticker: str, as_of_date: Any = None) -> DetailsQuery:
        """Build a DetailsQuery carrying this client's API key."""
        return DetailsQuery(ticker=ticker, api_key=self.api_key, as_of_date=as_of_date)

    def build_bars_url(self, query: BarsQuery) -> str:
        """Build the aggregates URL for a query.

        Args:
            query: Bars query.

        Returns:
            Full request URL with ``sort``, ``adjusted``, ``limit`` and
            ``apiKey`` in that order.

        Raises:
            InvalidQueryError: If sort order, adjusted flag or timespan
                cannot be mapped to an accepted token.
        """
        symbol = self.resolve(query.ticker)
        path = (
            f"/v2/aggs/ticker/{symbol}/range/{query.multiplier}/"
            f"{timespan_token(query.timespan)}/"
            f"{query.start.strftime('%Y-%m-%d')}/{query.end.strftime('%Y-%m-%d')}/"
        )
        params = [
            ("sort", sort_token(query.sort_order)),
            ("adjusted", adjusted_token(query.adjusted)),
            ("limit", query.limit),
            ("apiKey", query.api_key),
        ]
        return f"{self.base_url}{path}?{urlencode(params)}"

    def build_details_url(self, query: DetailsQuery) -> str:
        """Build the ticker-details URL for a query.

        The ``date`` parameter is only present when ``as_of_date`` is set.
        """
        symbol = self.resolve(query.ticker)
        params: list[tuple[str, Any]] = []
        if query.as_of_date is not None:
            params.append(("date", query.as_of_date.strftime("%Y-%m-%d")))
        params.append(("apiKey", query.api_key))
        return f"{self.base_url}/v3/reference/tickers/{symbol}?{urlencode(params)}"

    async def fetch_bars(self, query: BarsQuery) -> list[Bar]:
        """Fetch and project aggregates for a query.

        Returns:
            Projected bars, empty when the response has no results.

        Raises:
            InvalidQueryError: If the URL cannot be built.
            TransportError: On network failure.
            ApiError: On a non-2xx response.
            MalformedResponseError: If the body cannot be projected.
        """
        url = self.build_bars_url(query)
        payload = await self._request(url)
        bars = project_bars(payload, default_symbol=self.resolve(query.ticker))
        self._logger.info("bars_fetched", ticker=query.ticker, count=len(bars))
        return bars

    async def fetch_details(self, query: DetailsQuery) -> TickerDetails:
        """Fetch and flatten ticker reference data for a query.

        Raises:
            TransportError: On network failure.
            ApiError: On a non-2xx response.
            MalformedResponseError: If the body has no ``results`` object.
        """
        url = self.build_details_url(query)
        payload = await self._request(url)
        details = project_details(payload)
        self._logger.info("details_fetched", ticker=details.ticker)
        return details

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def _request(self, url: str) -> Any:
        """Issue one GET and parse the JSON body.

        Raises:
            TransportError: If no response was received.
            ApiError: If the status is not 2xx.
            MalformedResponseError: If the body is not valid JSON.
        """
        client = await self._get_client()
        safe_url = redact_api_key(url)
        self._logger.debug("polygon_request", url=safe_url)

        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            self._logger.error("polygon_transport_error", url=safe_url, error=str(e))
            raise TransportError(
                f"Request to Polygon failed: {e}", details={"url": safe_url}
            ) from e

        self._logger.debug("polygon_response", url=safe_url, status=response.status_code)

        if not response.is_success:
            self._logger.warning(
                "polygon_api_error", url=safe_url, status=response.status_code
            )
            raise ApiError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Response body is not valid JSON", details={"url": safe_url}
            ) from e

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PolygonClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
