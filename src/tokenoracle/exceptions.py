"""Exception hierarchy shared by the resolver, the backfill worker and the API."""


class TokenOracleError(Exception):
    """Base class for all token-oracle errors."""


class InvalidRequestError(TokenOracleError):
    """Client supplied a missing or unsupported token/network."""


class ExternalServiceError(TokenOracleError):
    """A price or chain provider failed: rate limit, HTTP error, timeout, bad payload."""


class CreationDateNotFoundError(ExternalServiceError):
    """No first transfer could be found for a token, so its history has no start date."""


class StoreUnavailableError(TokenOracleError):
    """The historical price store is not connected or not reachable."""


class PriceResolutionError(TokenOracleError):
    """No tier could produce a price for the request."""
