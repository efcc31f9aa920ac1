"""
Public entry point for tableprep.

``DatabaseManager`` bundles the connection pool, introspection and the
schema reconciler behind one object configured once at construction.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from .config import ConnectionSettings
from .database.connection import ConnectionPool, QueryResult, Row, run_statement
from .database.escaping import escape, validate_and_escape
from .database.introspection import SchemaIntrospector
from .schema.operations import build_select_by_id, build_truncate_statements
from .schema.reconciler import ReconciliationResult, SchemaReconciler


logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Convention-driven MySQL access.

    Example:
        async with DatabaseManager({"database": "shop", "user": "root"}) as db:
            await db.initialize_table("products", [
                {"name": "id", "type": "BIGINT UNSIGNED NOT NULL PRIMARY KEY AUTO_INCREMENT"},
                {"name": "info", "type": "TEXT NOT NULL"},
            ])
            row = await db.insert_and_select(
                "products", "INSERT INTO `products` SET `product_info` = 'x'"
            )
    """

    def __init__(self, settings: Union[ConnectionSettings, Mapping[str, Any]]):
        if not isinstance(settings, ConnectionSettings):
            settings = ConnectionSettings(**settings)
        self.settings = settings
        self.timestamp_fallback = settings.timestamp_fallback
        self.charset = settings.passthrough_options.get("charset", "utf8mb4")

        self.pool = ConnectionPool(settings)
        self.introspector = SchemaIntrospector(self.pool)
        self.reconciler = SchemaReconciler(
            self.pool,
            introspector=self.introspector,
            timestamp_fallback=self.timestamp_fallback,
        )

    def escape(self, value: Any) -> str:
        """Escape a value for inclusion in a statement."""
        return escape(value, self.charset)

    def validate_and_escape(
        self,
        value: Any,
        predicate: Callable[[Any], bool],
        is_json: bool = False,
    ) -> str:
        """Escape ``value`` after ``predicate`` accepts it; raises ValidationError otherwise."""
        return validate_and_escape(value, predicate, is_json, self.charset)

    async def query(self, statement: str) -> QueryResult:
        """Run an already escaped statement on a pooled connection."""
        return await self.pool.execute(statement)

    async def table_exists(self, table_name: str) -> bool:
        return await self.introspector.table_exists(table_name)

    async def list_tables(self) -> List[str]:
        return await self.introspector.list_tables()

    async def list_columns(self, table_name: str) -> List[str]:
        return await self.introspector.list_columns(table_name)

    async def initialize_table(
        self, table_name: Any, columns: Any
    ) -> ReconciliationResult:
        """Create ``table_name`` or add its missing columns. See SchemaReconciler."""
        return await self.reconciler.initialize_table(table_name, columns)

    async def insert_and_select(self, table_name: str, statement: str) -> Optional[Row]:
        """
        Run an INSERT and read the new row back by its generated id.

        The two statements are separate round trips; if the row is deleted
        in between, None is returned.
        """
        inserted = await self.pool.execute(statement)
        selected = await self.pool.execute(build_select_by_id(table_name, inserted.insert_id))
        return selected.first()

    async def truncate_all_tables(self) -> List[str]:
        """
        Empty every base table in the database, keeping their definitions.

        Runs on a standalone connection so that disabling foreign key
        checks never affects pooled sessions.
        """
        tables = await self.introspector.list_base_tables()

        async with self.pool.single_connection() as connection:
            for table in tables:
                for statement in build_truncate_statements(table):
                    await run_statement(connection, statement)
                logger.debug(f"Truncated table {table}")

        logger.info(f"Truncated {len(tables)} tables")
        return tables

    async def close(self) -> None:
        await self.pool.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def setup(settings: Union[ConnectionSettings, Mapping[str, Any]]) -> DatabaseManager:
    """Create a DatabaseManager from connection settings."""
    return DatabaseManager(settings)
