"""
Value escaping for hand-built MySQL statements.
"""

import json
from typing import Any, Callable

from pymysql.converters import escape_item

from ..exceptions import ValidationError


DEFAULT_CHARSET = "utf8mb4"


def escape(value: Any, charset: str = DEFAULT_CHARSET) -> str:
    """Render ``value`` as a SQL literal (strings come back quoted)."""
    return escape_item(value, charset)


def validate_and_escape(
    value: Any,
    predicate: Callable[[Any], bool],
    is_json: bool = False,
    charset: str = DEFAULT_CHARSET,
) -> str:
    """
    Check ``value`` with ``predicate`` and escape it.

    Args:
        value: The value to check and escape
        predicate: Returns truthy when ``value`` is acceptable
        is_json: Serialize ``value`` to JSON text before escaping
        charset: Connection charset used for string escaping

    Raises:
        ValidationError: ``predicate`` rejected the value
    """
    if not predicate(value):
        raise ValidationError(value)

    return escape(json.dumps(value) if is_json else value, charset)
