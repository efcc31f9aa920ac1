"""
Pytest configuration and shared fixtures for tableprep tests.

This module provides shared fixtures and utilities for testing all tableprep components.
"""

import asyncio
import os
import re
import socket
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pymysql
import pytest

from tableprep.config import ConnectionSettings
from tableprep.database.connection import QueryResult


# ============================================================================
# Test Configuration Fixtures
# ============================================================================

@pytest.fixture
def connection_settings() -> ConnectionSettings:
    """Connection settings for a local test database."""
    return ConnectionSettings(
        host="localhost",
        user="root",
        password="",
        database="test",
    )


@pytest.fixture
def fallback_settings() -> ConnectionSettings:
    """Connection settings with the timestamp trigger fallback enabled."""
    return ConnectionSettings(
        host="localhost",
        user="root",
        password="",
        database="test",
        timestamp_fallback=True,
    )


@pytest.fixture
def product_columns() -> List[Dict[str, str]]:
    """Column list used throughout the reconciliation tests."""
    return [
        {"name": "id", "type": "BIGINT UNSIGNED NOT NULL PRIMARY KEY AUTO_INCREMENT"},
        {"name": "info", "type": "TEXT NOT NULL"},
    ]


# ============================================================================
# aiomysql Mocks
# ============================================================================

def make_cursor(
    rows: Optional[List[Dict[str, Any]]] = None,
    lastrowid: Optional[int] = None,
    rowcount: int = 0,
    warning_count: int = 0,
    message: bytes = b"",
    execute_error: Optional[Exception] = None,
) -> MagicMock:
    """Build a mock aiomysql DictCursor usable with ``async with``."""
    cursor = MagicMock()
    cursor.execute = AsyncMock(side_effect=execute_error)
    cursor.fetchall = AsyncMock(return_value=rows or [])
    cursor.lastrowid = lastrowid
    cursor.rowcount = rowcount
    cursor._result = SimpleNamespace(warning_count=warning_count, message=message)
    cursor.__aenter__ = AsyncMock(return_value=cursor)
    cursor.__aexit__ = AsyncMock(return_value=None)
    return cursor


def make_connection(*cursors: MagicMock) -> MagicMock:
    """Build a mock aiomysql connection whose cursor() yields ``cursors`` in order."""
    connection = MagicMock()
    connection.cursor = MagicMock(side_effect=list(cursors))
    connection.close = MagicMock()
    return connection


def make_pool(connection: MagicMock) -> MagicMock:
    """Build a mock aiomysql pool whose acquire() hands out ``connection``."""
    pool = MagicMock()

    acquire_cm = MagicMock()
    acquire_cm.__aenter__ = AsyncMock(return_value=connection)
    acquire_cm.__aexit__ = AsyncMock(return_value=None)

    pool.acquire = MagicMock(return_value=acquire_cm)
    pool.close = MagicMock()
    pool.wait_closed = AsyncMock()
    pool.size = 2
    pool.freesize = 1
    pool.maxsize = 10
    return pool


# ============================================================================
# In-memory MySQL stand-in
# ============================================================================

def _unquote(literal: str) -> str:
    body = literal[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


def _like_to_regex(pattern: str) -> "re.Pattern":
    parts = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(parts) + "$")


class FakeMySQL:
    """
    Just enough of a MySQL server for the statements tableprep issues.

    Stands in for ConnectionPool: ``execute``/``fetch`` yield to the event
    loop first so that concurrent callers interleave like real round trips.
    """

    def __init__(self, database: str = "test"):
        self.database = database
        self.tables: Dict[str, List[str]] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.triggers: List[str] = []
        self.views: List[str] = []
        self.statements: List[str] = []

    async def execute(self, statement: str, args: Any = None) -> QueryResult:
        await asyncio.sleep(0)
        self.statements.append(statement)
        return self._handle(statement.strip())

    async def fetch(self, statement: str, args: Any = None) -> List[Dict[str, Any]]:
        return (await self.execute(statement, args)).rows

    def _handle(self, statement: str) -> QueryResult:
        match = re.fullmatch(r"SHOW TABLES LIKE ('.*')", statement)
        if match:
            regex = _like_to_regex(_unquote(match.group(1)))
            return QueryResult(rows=[
                {f"Tables_in_{self.database}": name}
                for name in self.tables if regex.match(name)
            ])

        if statement == "SHOW TABLES":
            return QueryResult(rows=[
                {f"Tables_in_{self.database}": name}
                for name in [*self.tables, *self.views]
            ])

        if statement == "SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'":
            return QueryResult(rows=[
                {f"Tables_in_{self.database}": name, "Table_type": "BASE TABLE"}
                for name in self.tables
            ])

        match = re.fullmatch(r"SHOW COLUMNS IN `(\w+)`", statement)
        if match:
            table = self._require_table(match.group(1))
            return QueryResult(rows=[{"Field": name} for name in self.tables[table]])

        match = re.fullmatch(r"CREATE TABLE IF NOT EXISTS `(\w+)` \((.*)\)", statement)
        if match:
            table, definitions = match.groups()
            if table in self.tables:
                return QueryResult(warning_count=1)
            self.tables[table] = re.findall(r"`(\w+)`", definitions)
            self.rows[table] = []
            return QueryResult()

        match = re.fullmatch(r"ALTER TABLE `(\w+)` ADD \((.*)\)", statement)
        if match:
            table, definitions = match.groups()
            self._require_table(table)
            names = re.findall(r"`(\w+)`", definitions)
            for name in names:
                if name in self.tables[table]:
                    raise pymysql.err.OperationalError(1060, f"Duplicate column name '{name}'")
            self.tables[table].extend(names)
            return QueryResult(message="Records: 0  Duplicates: 0  Warnings: 0")

        match = re.fullmatch(r"CREATE TRIGGER (\w+) BEFORE INSERT ON (\w+) .*", statement)
        if match:
            if match.group(1) in self.triggers:
                raise pymysql.err.OperationalError(1359, "Trigger already exists")
            self.triggers.append(match.group(1))
            return QueryResult()

        raise pymysql.err.ProgrammingError(1064, f"Unsupported statement: {statement}")

    def _require_table(self, table: str) -> str:
        if table not in self.tables:
            raise pymysql.err.ProgrammingError(1146, f"Table '{self.database}.{table}' doesn't exist")
        return table


@pytest.fixture
def fake_mysql() -> FakeMySQL:
    """In-memory server standing in for a ConnectionPool."""
    return FakeMySQL()


# ============================================================================
# Live MySQL (integration tests)
# ============================================================================

@pytest.fixture(scope="session")
def mysql_settings() -> ConnectionSettings:
    """
    Settings for a live MySQL server, read from TABLEPREP_TEST_* variables.

    Integration tests are skipped when nothing listens on the port.
    """
    host = os.environ.get("TABLEPREP_TEST_HOST", "localhost")
    port = int(os.environ.get("TABLEPREP_TEST_PORT", "3306"))

    try:
        with socket.create_connection((host, port), timeout=1):
            pass
    except OSError:
        pytest.skip(f"MySQL is not reachable on {host}:{port}")

    return ConnectionSettings(
        host=host,
        port=port,
        user=os.environ.get("TABLEPREP_TEST_USER", "root"),
        password=os.environ.get("TABLEPREP_TEST_PASSWORD", ""),
        database=os.environ.get("TABLEPREP_TEST_DATABASE", "test"),
        timestamp_fallback=os.environ.get("TABLEPREP_TEST_TIMESTAMP_FALLBACK", "") == "1",
    )


@pytest.fixture(autouse=True)
def mark_integration_tests(request):
    """
    Automatically mark tests in integration directory.
    """
    if "integration" in str(request.fspath):
        request.node.add_marker(pytest.mark.integration)


@pytest.fixture
def aiomysql_mocks() -> SimpleNamespace:
    """Builders for mock aiomysql cursors, connections and pools."""
    return SimpleNamespace(cursor=make_cursor, connection=make_connection, pool=make_pool)
