"""
Maintenance Search - Errors

Exception taxonomy for the search pipeline.
"""

from typing import Any, Dict, Optional


class SearchError(Exception):
    """
    Base exception for all search errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class InvalidQueryError(SearchError):
    """Raised when a forced search is shorter than the minimum length."""

    def __init__(self, query: str, min_length: int):
        super().__init__(
            f"Query must have at least {min_length} characters",
            "INVALID_QUERY",
            {"query": query, "min_length": min_length},
        )


class StorageUnavailableError(SearchError):
    """Raised when the storage collaborator fails."""

    def __init__(self, message: str = "Storage unavailable", operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, "STORAGE_UNAVAILABLE", details)


class HistoryWriteError(SearchError):
    """Raised when the history log cannot be written."""

    def __init__(self, message: str = "Failed to write search history"):
        super().__init__(message, "HISTORY_WRITE_FAILED")
