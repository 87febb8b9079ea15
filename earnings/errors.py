"""Earnings engine error types."""


class EarningsError(Exception):
    """Base class for earnings reconciliation errors."""


class NoProviderDataError(EarningsError):
    """Every provider was unavailable, so nothing could be reconciled.

    Distinct from an empty ``EarningsReport``, which means the providers
    answered but had no quarters for the symbol.
    """

    def __init__(self, symbol: str, sources: list[str]) -> None:
        self.symbol = symbol
        self.sources = sources
        super().__init__(f"No data from any source for {symbol} ({', '.join(sources)})")


class InvalidSymbolError(EarningsError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Invalid symbol: {symbol!r}")
