"""
Database integration package for tableprep.

This package provides:
- Async MySQL connection pooling
- Single-statement query execution
- Table and column introspection
- Value escaping
"""

from .connection import ConnectionPool, QueryResult
from .introspection import SchemaIntrospector
from .escaping import escape, validate_and_escape

__all__ = [
    "ConnectionPool",
    "QueryResult",
    "SchemaIntrospector",
    "escape",
    "validate_and_escape",
]
