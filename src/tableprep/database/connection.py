"""
Database connection management for tableprep.

Provides an async MySQL connection pool built on aiomysql, a query
executor that always hands its connection back, and standalone
connections for session-scoped work outside the pool.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, Sequence, Union

import aiomysql

from ..config import ConnectionSettings
from ..exceptions import DatabaseConnectionError


logger = logging.getLogger(__name__)

Row = Dict[str, Any]


@dataclass
class QueryResult:
    """Rows and server metadata produced by one statement."""

    rows: List[Row] = field(default_factory=list)
    insert_id: Optional[int] = None
    affected_rows: int = 0
    warning_count: int = 0
    message: str = ""

    @classmethod
    def from_cursor(cls, cursor: Any, rows: Optional[Sequence[Row]]) -> "QueryResult":
        """
        Build a result from an executed aiomysql cursor.

        The warning count and info message live on the driver's raw
        result packet, which the cursor keeps as ``_result``.
        """
        raw = getattr(cursor, "_result", None)
        message = getattr(raw, "message", None) or ""
        if isinstance(message, (bytes, bytearray)):
            message = message.decode("utf-8", errors="replace")

        rowcount = cursor.rowcount
        return cls(
            rows=list(rows or []),
            insert_id=cursor.lastrowid,
            affected_rows=rowcount if rowcount and rowcount > 0 else 0,
            warning_count=getattr(raw, "warning_count", 0) or 0,
            message=message.strip(),
        )

    def first(self) -> Optional[Row]:
        """First row of the result set, if any."""
        return self.rows[0] if self.rows else None

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> Row:
        return self.rows[index]


class ConnectionPool:
    """Async MySQL connection pool wrapper."""

    def __init__(self, settings: Union[ConnectionSettings, Mapping[str, Any]]):
        if not isinstance(settings, ConnectionSettings):
            settings = ConnectionSettings(**settings)
        self.settings = settings
        self._pool: Optional[aiomysql.Pool] = None
        self._closed = False
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to database and initialize pool. Alias for initialize()."""
        await self.initialize()

    async def initialize(self) -> None:
        """Create the underlying pool once; later calls are no-ops."""
        async with self._lock:
            if self._closed:
                raise DatabaseConnectionError("Pool has been closed")
            if self._pool is not None:
                return

            logger.info(
                f"Initializing connection pool to {self.settings.host}:{self.settings.port}"
                f"/{self.settings.database} (max={self.settings.connection_limit})"
            )

            try:
                self._pool = await aiomysql.create_pool(**self.settings.to_pool_kwargs())
            except Exception as e:
                logger.error(f"Failed to initialize connection pool: {e}")
                raise

            logger.info("Connection pool initialized successfully")

    async def close(self) -> None:
        """Close the pool and wait for its connections to shut down."""
        async with self._lock:
            self._closed = True
            if self._pool is not None:
                logger.info("Closing connection pool")
                self._pool.close()
                await self._pool.wait_closed()
                self._pool = None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiomysql.Connection]:
        """Lease a connection; it goes back to the pool however the block exits."""
        if self._pool is None:
            await self.initialize()

        async with self._pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def single_connection(self, **options: Any) -> AsyncIterator[aiomysql.Connection]:
        """
        Open a connection that is not a pool member.

        Used for session-scoped settings that must not leak into pooled
        connections. The connection is closed on exit, never reused.
        """
        if self._closed:
            raise DatabaseConnectionError("Pool has been closed")

        kwargs = self.settings.to_connection_kwargs()
        kwargs.update(options)
        connection = await aiomysql.connect(**kwargs)
        try:
            yield connection
        finally:
            connection.close()

    async def execute(self, statement: str, args: Any = None) -> QueryResult:
        """
        Run exactly one statement on a pooled connection.

        The statement is sent as given; callers are responsible for
        escaping. Driver errors propagate unchanged.
        """
        async with self.acquire() as connection:
            return await run_statement(connection, statement, args)

    async def fetch(self, statement: str, args: Any = None) -> List[Row]:
        """Fetch all rows from a query."""
        result = await self.execute(statement, args)
        return result.rows

    async def fetchrow(self, statement: str, args: Any = None) -> Optional[Row]:
        """Fetch a single row from a query."""
        result = await self.execute(statement, args)
        return result.first()

    def get_stats(self) -> Dict[str, Any]:
        """Get connection pool statistics."""
        if self._pool is None:
            return {
                "size": 0,
                "free": 0,
                "acquired": 0,
                "maxsize": self.settings.connection_limit,
                "initialized": False,
            }

        return {
            "size": self._pool.size,
            "free": self._pool.freesize,
            "acquired": self._pool.size - self._pool.freesize,
            "maxsize": self._pool.maxsize,
            "initialized": True,
        }

    @property
    def is_initialized(self) -> bool:
        """Check if pool is initialized."""
        return self._pool is not None

    @property
    def is_closed(self) -> bool:
        return self._closed


async def run_statement(
    connection: aiomysql.Connection, statement: str, args: Any = None
) -> QueryResult:
    """Execute one statement on ``connection`` and collect its first result set."""
    async with connection.cursor(aiomysql.DictCursor) as cursor:
        await cursor.execute(statement, args)
        rows = await cursor.fetchall()
        return QueryResult.from_cursor(cursor, rows)
