"""Company name to ticker symbol resolution.

Known company names (and their legal variants) map to the official ticker
symbol. Anything unrecognized is assumed to already be a ticker and passes
through unchanged.
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class TickerAlias:
    """A group of names that all resolve to one ticker symbol.

    Attributes:
        aliases: Accepted names, stored lower-case.
        canonical_symbol: Symbol returned for any of the aliases.
    """

    aliases: frozenset[str]
    canonical_symbol: str

    @classmethod
    def of(cls, symbol: str, *names: str) -> "TickerAlias":
        """Build an alias group from loose names."""
        return cls(
            aliases=frozenset(name.lower() for name in names),
            canonical_symbol=symbol.upper(),
        )


DEFAULT_ALIASES: tuple[TickerAlias, ...] = (
    TickerAlias.of("AAPL", "apple", "apple inc."),
    TickerAlias.of("GOOGL", "google", "alphabet inc. class a"),
    TickerAlias.of("AMZN", "amazon", "amazon.com, inc."),
    TickerAlias.of("MSFT", "microsoft", "microsoft corporation"),
)


class TickerResolver:
    """Resolves company names to ticker symbols.

    Matching is case-insensitive and on the exact full string: "Google"
    resolves, "Google Inc" does not.

    Example:
        resolver = TickerResolver()
        resolver.resolve("Apple")  # "AAPL"
        resolver.resolve("NVDA")  # "NVDA"
    """

    def __init__(self, aliases: Iterable[TickerAlias] = DEFAULT_ALIASES) -> None:
        """Initialize the resolver.

        Args:
            aliases: Alias groups to recognize.

        Raises:
            ValueError: If one name is claimed by two different symbols.
        """
        self._lookup: dict[str, str] = {}
        for group in aliases:
            for name in group.aliases:
                existing = self._lookup.get(name)
                if existing is not None and existing != group.canonical_symbol:
                    raise ValueError(
                        f"Alias {name!r} maps to both {existing} and {group.canonical_symbol}"
                    )
                self._lookup[name] = group.canonical_symbol

    @property
    def known_names(self) -> frozenset[str]:
        """All recognized (lower-case) names."""
        return frozenset(self._lookup)

    def resolve(self, name: str) -> str:
        """Return the ticker symbol for a company name.

        Args:
            name: Company name or ticker symbol, any case.

        Returns:
            The canonical symbol if the name is known, else ``name`` unchanged.
        """
        return self._lookup.get(name.lower(), name)


default_resolver = TickerResolver()


def resolve_ticker(name: str) -> str:
    """Resolve a name with the default alias table."""
    return default_resolver.resolve(name)
