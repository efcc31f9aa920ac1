"""
Column spec transformation for tableprep.

Turns the columns a caller asks for into the exact list of physical
columns a CREATE or ALTER statement has to carry: audit timestamps
appended, names prefixed, already existing columns removed.
"""

from typing import AbstractSet, Any, Iterable, List, Optional, Sequence, Tuple

from .models import AUDIT_COLUMN_NAMES, ColumnSpec, coerce_columns
from .naming import prefix_columns


CREATED_AT, UPDATED_AT = AUDIT_COLUMN_NAMES

# Older MySQL servers allow only one CURRENT_TIMESTAMP default per table.
CREATED_AT_FALLBACK_TYPE = "TIMESTAMP DEFAULT '0000-00-00 00:00:00'"
AUTO_TIMESTAMP_TYPE = (
    "TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"
)


def timestamp_columns(fallback_mode: bool) -> Tuple[ColumnSpec, ColumnSpec]:
    """Return the ``created_at``/``updated_at`` audit columns."""
    created_type = CREATED_AT_FALLBACK_TYPE if fallback_mode else AUTO_TIMESTAMP_TYPE
    return (
        ColumnSpec(name=CREATED_AT, type=created_type),
        ColumnSpec(name=UPDATED_AT, type=AUTO_TIMESTAMP_TYPE),
    )


def add_timestamp_columns(
    columns: Iterable[ColumnSpec], fallback_mode: bool
) -> List[ColumnSpec]:
    """Append the audit columns to ``columns``."""
    return list(columns) + list(timestamp_columns(fallback_mode))


def build_final_columns(
    table_name: str,
    caller_columns: Sequence[Any],
    existing_columns: Optional[AbstractSet[str]],
    fallback_mode: bool,
) -> Tuple[ColumnSpec, ...]:
    """
    Compute the physical columns that still have to be created.

    Args:
        table_name: Logical table name, used for the column prefix
        caller_columns: ColumnSpecs or ``{"name", "type"}`` mappings
        existing_columns: Physical column names already in the table,
            or None when the table does not exist yet
        fallback_mode: Pick the trigger-compatible ``created_at`` type

    Returns:
        Prefixed specs in caller order followed by the audit columns,
        minus anything listed in ``existing_columns``.

    Raises:
        InvalidColumnSpecError: a caller column lacks a name or a type,
            uses an audit column name, or repeats another column.
    """
    columns = add_timestamp_columns(coerce_columns(caller_columns), fallback_mode)
    columns = prefix_columns(table_name, columns)

    if existing_columns is not None:
        columns = [column for column in columns if column.name not in existing_columns]

    return tuple(columns)


def format_column_definitions(columns: Iterable[ColumnSpec]) -> str:
    """Join column definitions for use inside ``( ... )``."""
    return ", ".join(column.definition() for column in columns)
