"""
Cache Domain Exceptions

Domain-specific exceptions for cache operations.
Storage failures are wrapped once by the store and then propagated unmodified.
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Base exception for cache errors.

    All cache operations should raise this or its subclasses.
    Never swallow storage exceptions - always preserve context.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class CacheInvalidArgumentException(CacheException, ValueError):
    """Raised when a key, region, value or policy argument is invalid."""

    def __init__(self, message: str, argument: Optional[str] = None):
        details = {}
        if argument:
            details["argument"] = argument

        super().__init__(
            message=message, error_code="CACHE_INVALID_ARGUMENT", details=details
        )


class CacheOperationNotSupportedException(CacheException, NotImplementedError):
    """Raised for operations this storage model does not offer.

    Enumerating keys, counting entries, bulk reads and arbitrary change
    monitor creation would each need a full scan of the backing store.
    """

    def __init__(self, operation: str, reason: Optional[str] = None):
        details = {"operation": operation}
        message = f"Operation '{operation}' is not supported by this cache"
        if reason:
            details["reason"] = reason
            message = f"{message}: {reason}"

        super().__init__(
            message=message, error_code="CACHE_OPERATION_NOT_SUPPORTED", details=details
        )


class StorageUnavailableException(CacheException):
    """Raised when the storage collaborator fails to complete an I/O call."""

    def __init__(
        self,
        operation: str,
        region: Optional[str] = None,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if region:
            details["region"] = region
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Cache storage unavailable during '{operation}'",
            error_code="CACHE_STORAGE_UNAVAILABLE",
            details=details,
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class CacheDecodeException(CacheException):
    """Raised when a stored value cannot be read back as the cache's value type."""

    def __init__(
        self,
        key: Optional[str] = None,
        value_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if key:
            details["key"] = key
        if value_type:
            details["value_type"] = value_type
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message="Stored cache value could not be decoded",
            error_code="CACHE_DECODE_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error
