"""Custom SQLAlchemy types for cross-database compatibility.

This module provides custom column types that work across different
database backends (PostgreSQL, SQLite) used in production and testing.
"""

import json
from typing import Any, List, Optional

from sqlalchemy import String, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import ARRAY


class StringArray(TypeDecorator):
    """
    A string array type that works with both PostgreSQL and SQLite.

    - On PostgreSQL: Uses native ARRAY(String)
    - On SQLite: Stores as JSON text

    Used for AttemptAnswer.selected_option_ids, where ids are stored in their
    string form and order is preserved as submitted.
    """

    impl = Text  # Default implementation (used for SQLite)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        """Choose implementation based on database dialect."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String(36)))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Optional[List[Any]], dialect) -> Any:
        """Convert Python list to database format."""
        if value is None:
            return None

        items = [str(v) for v in value]
        if dialect.name == "postgresql":
            return items
        return json.dumps(items)

    def process_result_value(self, value: Any, dialect) -> Optional[List[str]]:
        """Convert database value to Python list."""
        if value is None:
            return None

        if dialect.name == "postgresql":
            return list(value)
        if isinstance(value, str):
            return json.loads(value)
        return value
