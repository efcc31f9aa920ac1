"""
Schema reconciliation core logic for tableprep.

Brings a table in line with its declared columns by creating it or by
adding the columns it is missing. Reconciliation is strictly additive:
columns are never dropped, renamed or retyped.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple

from ..database.connection import ConnectionPool, QueryResult
from ..database.introspection import SchemaIntrospector
from .columns import build_final_columns
from .models import ColumnSpec, TableSpec
from .operations import build_created_at_trigger, build_schema_statement


logger = logging.getLogger(__name__)


class ReconciliationStatus(str, Enum):
    """Outcome of a reconciliation."""

    CREATED = "created"
    ALTERED = "altered"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ReconciliationPlan:
    """What a reconciliation is about to do. Computed fresh for every call."""

    table: str
    table_exists: bool
    final_columns: Tuple[ColumnSpec, ...]

    @property
    def is_noop(self) -> bool:
        return not self.final_columns

    @property
    def statement(self) -> Optional[str]:
        """The CREATE/ALTER statement, or None when nothing is missing."""
        if self.is_noop:
            return None
        return build_schema_statement(self.table, self.final_columns, self.table_exists)


@dataclass
class ReconciliationResult:
    """Result of a schema reconciliation operation."""

    status: ReconciliationStatus
    table: str
    statement: Optional[str] = None
    columns_added: List[ColumnSpec] = field(default_factory=list)
    trigger_installed: bool = False
    query_result: Optional[QueryResult] = None
    execution_time_ms: float = 0.0

    @property
    def changed(self) -> bool:
        return self.status != ReconciliationStatus.UNCHANGED

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns_added]


class SchemaReconciler:
    """
    Creates or extends tables following the tableprep naming convention.

    Every column gets the singular table name as prefix and every table
    gets ``created_at``/``updated_at`` audit columns. Calls share no state,
    so concurrent reconciliations of one table are allowed; a race on
    first creation is absorbed by ``CREATE TABLE IF NOT EXISTS``.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        introspector: Optional[SchemaIntrospector] = None,
        timestamp_fallback: bool = False,
    ):
        self.pool = pool
        self.introspector = introspector or SchemaIntrospector(pool)
        self.timestamp_fallback = timestamp_fallback

    async def initialize_table(
        self, table_name: Any, columns: Any
    ) -> ReconciliationResult:
        """
        Ensure ``table_name`` exists with ``columns``.

        Args:
            table_name: Logical table name
            columns: Non-empty list of ColumnSpecs or ``{"name", "type"}`` mappings

        Returns:
            ReconciliationResult describing the statement that ran, if any

        Raises:
            InvalidTableSpecError: malformed name or column list, raised before any query
            InvalidColumnSpecError: a column lacks a name or a type
        """
        spec = TableSpec.from_input(table_name, columns)
        plan = await self.plan(spec)
        return await self.apply(plan)

    async def plan(self, spec: TableSpec) -> ReconciliationPlan:
        """Inspect the database and work out which columns are missing."""
        table_exists = await self.introspector.table_exists(spec.name)

        existing_columns: Optional[FrozenSet[str]] = None
        if table_exists:
            existing_columns = frozenset(await self.introspector.list_columns(spec.name))

        final_columns = build_final_columns(
            spec.name, spec.columns, existing_columns, self.timestamp_fallback
        )

        return ReconciliationPlan(
            table=spec.name,
            table_exists=table_exists,
            final_columns=final_columns,
        )

    async def apply(self, plan: ReconciliationPlan) -> ReconciliationResult:
        """Execute the DDL for ``plan`` and install the fallback trigger when needed."""
        start_time = asyncio.get_event_loop().time()

        if plan.is_noop:
            logger.debug(f"Table {plan.table} is up to date")
            return ReconciliationResult(
                status=ReconciliationStatus.UNCHANGED,
                table=plan.table,
            )

        statement = plan.statement
        status = (
            ReconciliationStatus.ALTERED if plan.table_exists else ReconciliationStatus.CREATED
        )

        logger.info(
            f"{'Altering' if plan.table_exists else 'Creating'} table {plan.table} "
            f"with columns {[column.name for column in plan.final_columns]}"
        )
        query_result = await self.pool.execute(statement)

        trigger_installed = False
        if self._needs_trigger(query_result):
            await self.pool.execute(build_created_at_trigger(plan.table))
            trigger_installed = True
            logger.info(f"Installed created_at trigger on {plan.table}")

        return ReconciliationResult(
            status=status,
            table=plan.table,
            statement=statement,
            columns_added=list(plan.final_columns),
            trigger_installed=trigger_installed,
            query_result=query_result,
            execution_time_ms=(asyncio.get_event_loop().time() - start_time) * 1000,
        )

    async def initialize_tables(
        self, specs: Sequence[TableSpec]
    ) -> List[ReconciliationResult]:
        """Reconcile several tables one after another, stopping at the first error."""
        results = []
        for spec in specs:
            results.append(await self.initialize_table(spec.name, spec.columns))
        return results

    def _needs_trigger(self, result: QueryResult) -> bool:
        # Only a clean CREATE qualifies: an existing table yields a warning
        # and every ALTER returns an info string.
        return (
            self.timestamp_fallback
            and result.warning_count == 0
            and not result.message
        )
