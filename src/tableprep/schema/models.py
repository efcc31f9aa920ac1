"""
Typed table and column descriptions.

Callers may hand in plain mappings (``{"name": "id", "type": "INT"}``);
they are converted to these records at the API boundary so the rest of
the pipeline never sees a column without a name or a type.
"""

from typing import Any, List, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvalidColumnSpecError, InvalidTableSpecError


# Appended to every table by the schema pipeline, never declared by callers.
AUDIT_COLUMN_NAMES = ("created_at", "updated_at")


class ColumnSpec(BaseModel):
    """One column: its logical name and a raw DDL type fragment."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: StrictStr = Field(..., min_length=1, description="Column name")
    type: StrictStr = Field(
        ..., min_length=1, description="DDL type and constraints, used verbatim"
    )

    @classmethod
    def coerce(cls, value: Any) -> "ColumnSpec":
        """Build a ColumnSpec from a mapping, or return ``value`` if it already is one."""
        if isinstance(value, ColumnSpec):
            return value
        if not isinstance(value, Mapping):
            raise InvalidColumnSpecError(value, "expected a mapping with 'name' and 'type'")

        missing = [key for key in ("name", "type") if key not in value]
        if missing:
            raise InvalidColumnSpecError(value, f"missing {', '.join(missing)}")

        try:
            return cls.model_validate(dict(value))
        except PydanticValidationError as e:
            raise InvalidColumnSpecError(value, "name and type must be non-empty strings") from e

    def definition(self) -> str:
        """Render as a quoted column definition for CREATE/ALTER."""
        return f"`{self.name}` {self.type}"


class TableSpec(BaseModel):
    """A table name plus the ordered columns it should have."""

    model_config = ConfigDict(frozen=True)

    name: StrictStr = Field(..., min_length=1, description="Table name")
    columns: List[ColumnSpec] = Field(..., min_length=1, description="Column specs")

    @field_validator("columns")
    @classmethod
    def validate_column_names(cls, v):
        try:
            check_column_names(v)
        except InvalidColumnSpecError as e:
            raise ValueError(e.message)
        return v

    @classmethod
    def from_input(cls, table_name: Any, columns: Any) -> "TableSpec":
        """Validate raw caller input.

        Raises:
            InvalidTableSpecError: name is not a non-empty string, or columns
                is not a non-empty list/tuple.
            InvalidColumnSpecError: a column lacks a name or a type, uses an
                audit column name, or repeats another column.
        """
        if not isinstance(table_name, str) or not table_name:
            raise InvalidTableSpecError(table_name, "table name must be a non-empty string")
        if not isinstance(columns, (list, tuple)) or len(columns) == 0:
            raise InvalidTableSpecError(table_name, "columns must be a non-empty list")

        return cls(name=table_name, columns=coerce_columns(columns))


def coerce_columns(columns: Sequence[Any]) -> List[ColumnSpec]:
    """Convert every element of ``columns`` to a ColumnSpec and check their names."""
    coerced = [ColumnSpec.coerce(column) for column in columns]
    check_column_names(coerced)
    return coerced


def check_column_names(columns: Sequence[ColumnSpec]) -> None:
    """
    Reject audit column names and repeated names.

    Names compare case-insensitively, like MySQL column names.
    """
    seen = set()
    for column in columns:
        key = column.name.lower()
        if key in AUDIT_COLUMN_NAMES:
            raise InvalidColumnSpecError(
                column.name, f"{key} is added to every table automatically"
            )
        if key in seen:
            raise InvalidColumnSpecError(column.name, "duplicate column name")
        seen.add(key)
