"""Literal and raw-SQL field values."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ._bases import FieldValue


class LiteralValue(FieldValue):
    """Compare a field for equality with ``value``, whatever its shape.

    Wrap a mapping in LiteralValue when it must be bound as a value rather
    than read as an operator set (e.g. a record whose keys are ``in``/``between``).
    """

    value: Any = None


class RawExpression(FieldValue):
    """Literal SQL emitted verbatim by the WHERE compiler.

    ``values`` are carried for the caller; the compiler never binds them.
    """

    sql: str
    values: tuple[Any, ...] = Field(default_factory=tuple)


def raw(sql: str, *values: Any) -> RawExpression:
    """Build a RawExpression (e.g. ``raw("toYear(created_at) = 2024")``)."""
    return RawExpression(sql=sql, values=values)
