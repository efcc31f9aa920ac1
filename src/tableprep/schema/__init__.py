"""
Schema management package for tableprep.

This package provides:
- Typed table and column specs
- The column naming convention
- Column spec transformation and DDL builders
- Additive schema reconciliation (``tableprep.schema.reconciler``)
"""

from .models import ColumnSpec, TableSpec
from .naming import singularize, prefix_columns, prefix_column_name
from .columns import build_final_columns, timestamp_columns

__all__ = [
    "ColumnSpec",
    "TableSpec",
    "singularize",
    "prefix_columns",
    "prefix_column_name",
    "build_final_columns",
    "timestamp_columns",
]
