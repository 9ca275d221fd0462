"""Exceptions raised by urifetch."""


class FetchError(Exception):
    """Base class for all urifetch errors."""


class ConfigurationError(FetchError, ValueError):
    """Invalid fetch options. Raised before any network I/O."""


class FetchFailure(FetchError):
    """The fetch did not produce a result.

    Covers network-level errors and HTTP statuses that are neither a
    success nor one of the specially handled codes (301, 304, 410).
    """

    def __init__(self, message: str, uri: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.uri = uri
        self.status_code = status_code


class CacheDecodeError(FetchError):
    """A cached blob could not be turned back into a CachedEntry."""
