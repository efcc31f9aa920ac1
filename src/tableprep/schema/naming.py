"""
Naming conventions for tableprep tables and columns.

Every physical column is named after the singular form of its table,
e.g. table ``products`` stores ``info`` as ``product_info``.
"""

from typing import Iterable, List

from .models import ColumnSpec


def singularize(name: str) -> str:
    """Strip the trailing run of ``s`` characters from ``name``.

    This is a naming convention, not an English inflector:
    ``cats`` -> ``cat``, ``bus`` -> ``bu``, ``address`` -> ``addre``.
    """
    if name.endswith("s"):
        return name.rstrip("s")
    return name


def prefix_column_name(table_name: str, column_name: str) -> str:
    """Return the physical name of ``column_name`` inside ``table_name``."""
    return f"{singularize(table_name)}_{column_name}"


def prefix_columns(table_name: str, columns: Iterable[ColumnSpec]) -> List[ColumnSpec]:
    """Return new specs whose names carry the table prefix, in the same order."""
    return [
        column.model_copy(update={"name": prefix_column_name(table_name, column.name)})
        for column in columns
    ]
