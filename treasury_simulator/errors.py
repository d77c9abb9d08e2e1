"""Exception hierarchy shared by the analytical modules."""


class TreasurySimulatorError(Exception):
    """Base class for all simulator errors."""


class InvalidParameterError(TreasurySimulatorError, ValueError):
    """An operation received an argument outside its valid range."""


class MissingMarketDataError(TreasurySimulatorError, KeyError):
    """A required market quote (e.g. an FX pair) is not available."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"No market quote available for {self.key!r}"
