"""Custom exceptions for analytics error handling."""

from __future__ import annotations

from typing import Any, Dict, Optional


class TicketAnalyticsException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class BadRequestError(TicketAnalyticsException):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


# ===== VALIDATION EXCEPTIONS =====


class ValidationException(TicketAnalyticsException):
    """Base exception for validation errors."""


class InvalidFilterError(ValidationException):
    """Raised when an analytics filter value is not recognised."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            f"Invalid value for filter '{field}'",
            error_code="INVALID_FILTER",
            details={"field": field, "value": value},
            status_code=400,
        )


class InvalidWindowError(ValidationException):
    """Raised when the requested reporting window cannot be resolved."""

    def __init__(self, message: str = "invalid_window", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="INVALID_WINDOW", details=details, status_code=400)


class InvalidConfigurationError(ValidationException):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="INVALID_CONFIG", details=details, status_code=500)


# ===== DATABASE EXCEPTIONS =====


class DatabaseException(TicketAnalyticsException):
    """Base exception for database errors."""


class DatabaseQueryError(DatabaseException):
    """Raised when a storage read or write fails."""

    def __init__(self, message: str, query: Optional[str] = None):
        details = {"query": query} if query else {}
        super().__init__(message, error_code="DB_QUERY_ERROR", details=details, status_code=500)
