"""
Error taxonomy.

FetchFailure and ParseFailure on the balance path are absorbed by the balance
cache (lookups degrade to absent). TokenCatalogUnavailable is always raised to
the caller since a missing catalog decides whether a trade can be built at all.
"""

from typing import Optional


class SwapDeskError(Exception):
    """Base error for the aggregation engine."""
    pass


class FetchFailure(SwapDeskError):
    """A provider request failed (network, timeout or HTTP status)."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ParseFailure(SwapDeskError):
    """Provider or persisted data did not have the expected shape."""
    pass


class ValidationFailure(SwapDeskError):
    """Caller supplied an invalid value."""
    pass


class ConfigurationFailure(SwapDeskError):
    """An operation was invoked without its required preconditions."""
    pass


class TokenCatalogUnavailable(FetchFailure):
    """The authoritative token list could not be fetched."""
    pass
