"""
Cache Infrastructure Exceptions

Backend-specific exceptions for tagged cache operations. The store catches
these itself and degrades to the persistence layer; they never reach a
service caller.
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Failure of a cache backend primitive."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "CACHE_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class CacheConnectionException(CacheException):
    """Raised when the cache backend cannot be reached."""

    def __init__(
        self,
        message: str = "Cache backend connection failed",
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_CONNECTION_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class CacheSerializationException(CacheException):
    """Raised when a value cannot be encoded or a stored entry cannot be decoded."""

    def __init__(
        self,
        key: str,
        original_error: Optional[Exception] = None,
    ):
        details = {"key": key}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Cache entry could not be (de)serialized: {key}",
            error_code="CACHE_SERIALIZATION_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error
