"""Exception hierarchy.

Every error carries a machine-readable ``code`` and a ``context`` dict so it
can be logged as structured data. Validation and schema errors are also
``ValueError`` subclasses, type-mapping errors are ``TypeError`` subclasses,
so callers that only know the builtins still catch them.
"""

from __future__ import annotations

import json
from typing import Any, Optional


class OrmhouseError(Exception):
    """Base class for all errors raised by ormhouse."""

    code: str = "ORMHOUSE_ERROR"

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation (name, message, code, context)."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


class ValidationError(OrmhouseError, ValueError):
    """Malformed schema, column, record, identifier or condition."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        constraint: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, {**(context or {}), "field": field, "value": value, "constraint": constraint})
        self.field = field
        self.value = value
        self.constraint = constraint


class TypeMappingError(OrmhouseError, TypeError):
    """A value or column cannot be mapped to/from a database type."""

    code = "TYPE_MAPPING_ERROR"

    def __init__(
        self,
        message: str,
        source_type: Optional[str] = None,
        target_type: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            {**(context or {}), "source_type": source_type, "target_type": target_type, "value": value},
        )
        self.source_type = source_type
        self.target_type = target_type
        self.value = value


class SchemaError(OrmhouseError, ValueError):
    """Structural problem with a table schema (e.g. unknown or duplicate column)."""

    code = "SCHEMA_ERROR"

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        column_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, {**(context or {}), "table_name": table_name, "column_name": column_name})
        self.table_name = table_name
        self.column_name = column_name


class QueryError(OrmhouseError):
    """The execution collaborator failed to run a statement."""

    code = "QUERY_ERROR"

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, {**(context or {}), "sql": sql, "params": params})
        self.sql = sql
        self.params = params


class ModelError(OrmhouseError):
    """Misuse of a model (e.g. unguarded UPDATE/DELETE, missing primary key)."""

    code = "MODEL_ERROR"

    def __init__(self, message: str, model_name: Optional[str] = None, context: Optional[dict[str, Any]] = None):
        super().__init__(message, {**(context or {}), "model_name": model_name})
        self.model_name = model_name


def format_error(error: BaseException) -> str:
    """Render an error as a single log-friendly string."""
    if isinstance(error, OrmhouseError):
        context = json.dumps(error.context, default=repr, ensure_ascii=False)
        return f"[{error.code}] {error.message}\nContext: {context}"
    return f"[{type(error).__name__}] {error}"


__all__ = [
    "OrmhouseError",
    "ValidationError",
    "TypeMappingError",
    "SchemaError",
    "QueryError",
    "ModelError",
    "format_error",
]
