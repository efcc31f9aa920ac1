"""
DDL statement builders for tableprep.

All builders return plain statement text. Table and column names are
interpolated as-is, so they must come from trusted configuration.
"""

from typing import List, Sequence

from .columns import CREATED_AT, format_column_definitions
from .models import ColumnSpec
from .naming import prefix_column_name


def build_create_table(table_name: str, columns: Sequence[ColumnSpec]) -> str:
    """``CREATE TABLE IF NOT EXISTS`` so racing creators do not fail."""
    return (
        f"CREATE TABLE IF NOT EXISTS `{table_name}` "
        f"({format_column_definitions(columns)})"
    )


def build_add_columns(table_name: str, columns: Sequence[ColumnSpec]) -> str:
    return f"ALTER TABLE `{table_name}` ADD ({format_column_definitions(columns)})"


def build_schema_statement(
    table_name: str, columns: Sequence[ColumnSpec], table_exists: bool
) -> str:
    """Pick ALTER for an existing table, CREATE otherwise."""
    if table_exists:
        return build_add_columns(table_name, columns)
    return build_create_table(table_name, columns)


def trigger_name(table_name: str) -> str:
    return f"{table_name}_trigger"


def build_created_at_trigger(table_name: str) -> str:
    """
    Trigger that nulls ``<singular>_created_at`` on every insert.

    A TIMESTAMP column assigned NULL takes the current time, which gives
    ``created_at`` an insert timestamp on servers that cannot declare a
    second CURRENT_TIMESTAMP default.
    """
    return (
        f"CREATE TRIGGER {trigger_name(table_name)}"
        f" BEFORE INSERT ON {table_name}"
        f" FOR EACH ROW SET"
        f" NEW.{prefix_column_name(table_name, CREATED_AT)} = NULL"
    )


def build_truncate_statements(table_name: str) -> List[str]:
    """Statements that empty one table regardless of foreign keys.

    They must run on a single session: FOREIGN_KEY_CHECKS is session scoped.
    """
    return [
        "SET FOREIGN_KEY_CHECKS = 0",
        f"TRUNCATE TABLE `{table_name}`",
        "SET FOREIGN_KEY_CHECKS = 1",
    ]


def build_select_by_id(table_name: str, row_id: int) -> str:
    """Select one row by its ``<singular>_id`` primary key."""
    return (
        f"SELECT * FROM `{table_name}` "
        f"WHERE `{prefix_column_name(table_name, 'id')}` = {int(row_id)}"
    )
