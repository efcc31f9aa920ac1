"""
tableprep: convention-driven MySQL schema manager.

tableprep creates and extends MySQL tables from a short column list,
prefixing every column with the singular table name and adding
``created_at``/``updated_at`` audit columns, and runs plain queries on
a shared async connection pool.
"""

__version__ = "0.1.0"

from .config import ConnectionSettings, TableprepConfig
from .exceptions import (
    TableprepError,
    ConfigurationError,
    ContractViolationError,
    InvalidColumnSpecError,
    InvalidTableSpecError,
    ValidationError,
    DatabaseError,
    DatabaseConnectionError,
)
from .manager import DatabaseManager, setup
from .schema.models import ColumnSpec, TableSpec

__all__ = [
    "__version__",
    "ConnectionSettings",
    "TableprepConfig",
    "DatabaseManager",
    "setup",
    "ColumnSpec",
    "TableSpec",
    "TableprepError",
    "ConfigurationError",
    "ContractViolationError",
    "InvalidColumnSpecError",
    "InvalidTableSpecError",
    "ValidationError",
    "DatabaseError",
    "DatabaseConnectionError",
]
