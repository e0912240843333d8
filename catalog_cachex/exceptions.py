class CacheXError(Exception):
    """Base class for all exceptions in CatalogCacheX."""


class CacheError(CacheXError):
    """Exception raised for cache-related errors."""


class StorageError(CacheXError):
    """Exception raised when the key-value storage fails."""


class StoreNotFoundError(CacheXError):
    """Exception raised when no default cache store has been registered."""


class CodecError(CacheError):
    """Exception raised when a cache entry cannot be converted."""


class EncodeError(CodecError):
    """The payload cannot be represented as JSON (cyclic or unsupported values)."""


class DecodeError(CodecError):
    """The persisted text is not a well-formed cache entry."""


class RemoteCatalogError(CacheXError):
    """Exception raised by the remote catalog on network, lookup or server failure."""

    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(message)
        self.status = status


class UnknownCacheKeyError(CacheError):
    """Exception raised when a diagnostic cache name is not being monitored."""
