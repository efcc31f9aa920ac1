"""
Exception classes for tableprep.
"""

from typing import Any, Dict, Optional


class TableprepError(Exception):
    """Base exception for all tableprep errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(TableprepError):
    """Raised when there's an error in configuration."""

    pass


class ContractViolationError(TableprepError, TypeError):
    """Raised when a caller passes arguments that break the API contract.

    These are never retried and are raised before any database I/O.
    """

    pass


class InvalidTableSpecError(ContractViolationError):
    """Raised when a table name or its column list is malformed."""

    def __init__(self, table_name: Any, reason: str) -> None:
        super().__init__(
            f"Invalid table spec for {table_name!r}: {reason}",
            {"table": table_name},
        )
        self.table_name = table_name
        self.reason = reason


class InvalidColumnSpecError(ContractViolationError):
    """Raised when a column description lacks a usable name or type."""

    def __init__(self, column: Any, reason: str) -> None:
        super().__init__(f"Invalid column spec {column!r}: {reason}")
        self.column = column
        self.reason = reason


class ValidationError(ContractViolationError):
    """Raised when a value is rejected by its validation predicate."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"{value!r} is of an invalid type")
        self.value = value


class DatabaseError(TableprepError):
    """Raised when there's an error with database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when the connection pool is closed or cannot be used."""

    pass
