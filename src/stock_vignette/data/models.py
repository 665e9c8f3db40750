"""Data models for the Polygon.io aggregates and ticker-details endpoints.

Query objects and response projections are frozen Pydantic models. Query
validation failures surface as InvalidQueryError.
"""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator

from stock_vignette.data.errors import InvalidQueryError


class Timespan(str, Enum):
    """Size of the time window of one bar."""

    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class SortOrder(str, Enum):
    """Order of bars by timestamp."""

    ASCENDING = "asc"
    DESCENDING = "desc"


_SORT_TOKENS = {
    "asc": "asc",
    "ascending": "asc",
    "desc": "desc",
    "descending": "desc",
}

_ADJUSTED_TOKENS = {
    "true": "true",
    "false": "false",
}


def sort_token(value: SortOrder | str) -> str:
    """Map a sort order to the wire token ``asc`` or ``desc``.

    Raises:
        InvalidQueryError: If the value is not a recognized sort order.
    """
    if isinstance(value, SortOrder):
        return value.value
    if isinstance(value, str) and value.lower() in _SORT_TOKENS:
        return _SORT_TOKENS[value.lower()]
    raise InvalidQueryError("sort_order", value, "expected 'asc' or 'desc'")


def adjusted_token(value: bool | str) -> str:
    """Map an adjusted flag to the wire token ``true`` or ``false``.

    Raises:
        InvalidQueryError: If the value is not boolean-like.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str) and value.lower() in _ADJUSTED_TOKENS:
        return _ADJUSTED_TOKENS[value.lower()]
    raise InvalidQueryError("adjusted", value, "expected true or false")


def timespan_token(value: Timespan | str) -> str:
    """Map a timespan to its wire token.

    Raises:
        InvalidQueryError: If the value is not a known timespan.
    """
    if isinstance(value, Timespan):
        return value.value
    try:
        return Timespan(str(value).lower()).value
    except ValueError:
        allowed = ", ".join(t.value for t in Timespan)
        raise InvalidQueryError("timespan", value, f"expected one of {allowed}") from None


class QueryModel(BaseModel):
    """Base for request parameter objects.

    Construction raises InvalidQueryError instead of ValidationError so
    callers see one error type for bad input.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            first = e.errors(include_url=False)[0]
            field = str(first["loc"][0]) if first["loc"] else "query"
            raise InvalidQueryError(field, first.get("input"), first["msg"]) from e

    @field_validator("ticker", "api_key", check_fields=False)
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class BarsQuery(QueryModel):
    """Parameters of one aggregates (bars) request.

    Attributes:
        ticker: Company name or ticker symbol.
        start: First day of the range.
        end: Last day of the range.
        api_key: Polygon.io API key.
        multiplier: Number of timespans per bar.
        timespan: Size of the time window.
        adjusted: Whether results are adjusted for splits.
        sort_order: Sort bars ascending or descending by time.
        limit: Maximum number of base aggregates queried.
    """

    ticker: str = Field(..., min_length=1)
    start: date
    end: date
    api_key: str = Field(..., min_length=1)
    multiplier: int = Field(default=1, gt=0, strict=True)
    timespan: Timespan | StrictStr = Timespan.DAY
    adjusted: StrictBool | StrictStr = True
    sort_order: SortOrder | StrictStr = SortOrder.ASCENDING
    limit: int = Field(default=5000, gt=0, strict=True)


class DetailsQuery(QueryModel):
    """Parameters of one ticker-details request.

    Attributes:
        ticker: Company name or ticker symbol.
        api_key: Polygon.io API key.
        as_of_date: Point in time for the reference data, latest if None.
    """

    ticker: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)
    as_of_date: date | None = None


class Bar(BaseModel):
    """One projected row of aggregates data.

    Attributes:
        ticker_symbol: Symbol from the response's top-level ``ticker``.
        volume: Trading volume (``v``).
        volume_weighted_average_price: VWAP (``vw``).
        open: Opening price (``o``).
        close: Closing price (``c``).
        high: High price (``h``).
        low: Low price (``l``).
        transaction_count: Number of transactions (``n``).
    """

    model_config = ConfigDict(frozen=True)

    ticker_symbol: str
    volume: float
    volume_weighted_average_price: float
    open: float
    close: float
    high: float
    low: float
    transaction_count: int


class TickerDetails(BaseModel):
    """Flattened ticker reference data.

    Only ``ticker`` is declared; every other field of the API's ``results``
    object is kept as an extra field under its flattened (dot-joined) name,
    e.g. ``address.city``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    ticker: str

    @property
    def record(self) -> dict[str, Any]:
        """All fields as one flat dictionary."""
        return self.model_dump()

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a field by its flattened name."""
        return self.record.get(key, default)
