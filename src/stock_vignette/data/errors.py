"""Exception hierarchy for the market data client.

Exception Hierarchy:
    MarketDataError (base)
    ├── InvalidQueryError - Caller input could not be validated or mapped
    ├── TransportError - Network failure before a response was received
    ├── ApiError - Non-2xx HTTP response
    └── MalformedResponseError - Body is not JSON or lacks expected fields
"""

from typing import Any


class MarketDataError(Exception):
    """Base exception for all market data errors.

    Attributes:
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidQueryError(MarketDataError):
    """Raised when a query cannot be built from the caller's input.

    Attributes:
        field: Name of the offending query field.
        value: The rejected value.
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            details={"field": field, "value": repr(value)},
        )
        self.field = field
        self.value = value


class TransportError(MarketDataError):
    """Raised when the request fails before an HTTP response arrives."""

    pass


class ApiError(MarketDataError):
    """Raised for non-2xx HTTP responses.

    Attributes:
        status: HTTP status code.
        body: Raw response body.
    """

    def __init__(self, status: int, body: str) -> None:
        super().__init__(
            f"Polygon API error {status}: {body}",
            details={"status": status},
        )
        self.status = status
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        base = super().to_dict()
        base["body"] = self.body
        return base


class MalformedResponseError(MarketDataError):
    """Raised when a response body cannot be parsed or projected."""

    pass
