"""
Database schema introspection for tableprep.

Answers the questions the reconciler asks before issuing DDL: does a
table exist, which tables are there, and which columns does one have.
"""

import logging
from typing import List

from .connection import ConnectionPool
from .escaping import escape


logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` only matches itself."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SchemaIntrospector:
    """Database schema introspection utilities."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def table_exists(self, table: str) -> bool:
        """
        Check if a table with exactly this name exists.

        ``SHOW TABLES LIKE`` treats ``_`` and ``%`` as wildcards, so both
        are escaped and the returned names are compared exactly as well.
        """
        rows = await self.pool.fetch(f"SHOW TABLES LIKE {escape(escape_like(table))}")
        exists = any(_first_value(row) == table for row in rows)
        logger.debug(f"Table {table} exists: {exists}")
        return exists

    async def list_tables(self) -> List[str]:
        """List all tables in the current database."""
        rows = await self.pool.fetch("SHOW TABLES")
        return [_first_value(row) for row in rows]

    async def list_base_tables(self) -> List[str]:
        """List tables in the current database, leaving out views."""
        rows = await self.pool.fetch("SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'")
        return [_first_value(row) for row in rows]

    async def list_columns(self, table: str) -> List[str]:
        """List column names of ``table`` in ordinal order."""
        rows = await self.pool.fetch(f"SHOW COLUMNS IN `{table}`")
        return [row["Field"] for row in rows]


def _first_value(row):
    # SHOW TABLES names its first column after the database.
    return next(iter(row.values()))
