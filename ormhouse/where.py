"""WHERE clause compiler.

A condition is either a mapping (``{"age": {"gt": 18}, "or": [...]}``) or one
of the tagged nodes from ``ormhouse.expressions``. Field values are bound as
``{paramN:Type}`` placeholders, never interpolated.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from .errors import ValidationError
from .expressions import (
    And,
    LiteralValue,
    Not,
    Operator,
    OperatorSet,
    Or,
    RawExpression,
    looks_like_operator_set,
)
from .sql_builder import param_name, placeholder, quote_identifier
from .type_mapper import param_type

ALWAYS_TRUE = "1=1"
ALWAYS_FALSE = "1=0"

AND_KEYS = ("and", "$and")
OR_KEYS = ("or", "$or")
NOT_KEYS = ("not", "$not")

_COMPARISONS = {
    Operator.GT: ">",
    Operator.GTE: ">=",
    Operator.LT: "<",
    Operator.LTE: "<=",
    Operator.LIKE: "LIKE",
    Operator.NOT_LIKE: "NOT LIKE",
    Operator.ILIKE: "ILIKE",
}


class WhereClause(BaseModel):
    """Compiled predicate and its named parameters."""

    model_config = {"arbitrary_types_allowed": True}

    sql: str
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_trivial(self) -> bool:
        return self.sql == ALWAYS_TRUE


class _Compilation:
    """Parameter accumulator for a single ``build()`` call."""

    def __init__(self, start: int):
        self.index = start
        self.params: dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        name = param_name(self.index)
        self.params[name] = value
        sql = placeholder(self.index, param_type(value))
        self.index += 1
        return sql

    # --- nodes ---

    def condition(self, condition: Any) -> str:
        if condition is None:
            return ""
        if isinstance(condition, And):
            return self.group(condition.conditions, "AND", "and")
        if isinstance(condition, Or):
            return self.group(condition.conditions, "OR", "or")
        if isinstance(condition, Not):
            return self.negate(condition.condition)
        if not isinstance(condition, Mapping):
            raise ValidationError(
                f"WHERE condition must be a mapping, got {type(condition).__name__}", value=condition
            )
        parts = []
        for key, value in condition.items():
            if key in AND_KEYS:
                sql = self.group(value, "AND", key)
            elif key in OR_KEYS:
                sql = self.group(value, "OR", key)
            elif key in NOT_KEYS:
                sql = self.negate(value)
            else:
                sql = self.field(key, value)
            if sql:
                parts.append(sql)
        return " AND ".join(parts)

    def group(self, children: Any, joiner: str, key: str) -> str:
        if isinstance(children, (Mapping, And, Or, Not)):
            children = [children]
        if not isinstance(children, (list, tuple)):
            raise ValidationError(f"'{key}' requires a list of conditions", key, children)
        parts = [sql for sql in (self.condition(child) for child in children) if sql]
        if not parts:
            return ""
        return "(" + f" {joiner} ".join(parts) + ")"

    def negate(self, child: Any) -> str:
        sql = self.condition(child)
        return f"NOT ({sql})" if sql else ""

    # --- field entries ---

    def field(self, field: str, value: Any) -> str:
        name = quote_identifier(field)
        if isinstance(value, RawExpression):
            return value.sql
        if value is None:
            return f"{name} IS NULL"
        if isinstance(value, LiteralValue):
            if value.value is None:
                return f"{name} IS NULL"
            return f"{name} = {self.bind(value.value)}"
        if isinstance(value, OperatorSet):
            return self.operators(field, name, value)
        if looks_like_operator_set(value):
            return self.operators(field, name, OperatorSet.from_mapping(value, field))
        return f"{name} = {self.bind(value)}"

    def operators(self, field: str, name: str, operator_set: OperatorSet) -> str:
        return " AND ".join(
            self.operator(field, name, operator, value)
            for operator, value in operator_set.operators
        )

    def operator(self, field: str, name: str, operator: Operator, value: Any) -> str:
        if operator == Operator.EQ:
            return f"{name} IS NULL" if value is None else f"{name} = {self.bind(value)}"
        if operator == Operator.NE:
            return f"{name} IS NOT NULL" if value is None else f"{name} != {self.bind(value)}"
        if operator in _COMPARISONS:
            return f"{name} {_COMPARISONS[operator]} {self.bind(value)}"
        if operator in (Operator.IN, Operator.NOT_IN):
            keyword = "IN" if operator == Operator.IN else "NOT IN"
            if not isinstance(value, (list, tuple)):
                raise ValidationError(f"{keyword} operator requires a list", field, value, operator.value)
            if not value:
                return ALWAYS_FALSE if operator == Operator.IN else ALWAYS_TRUE
            return f"{name} {keyword} (" + ", ".join(self.bind(item) for item in value) + ")"
        if operator == Operator.BETWEEN:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ValidationError(
                    "BETWEEN operator requires exactly 2 values", field, value, operator.value
                )
            low, high = value
            return f"{name} BETWEEN {self.bind(low)} AND {self.bind(high)}"
        if operator == Operator.IS_NULL:
            return f"{name} IS NULL" if value else f"{name} IS NOT NULL"
        if operator == Operator.NOT_NULL:
            return f"{name} IS NOT NULL" if value else f"{name} IS NULL"
        raise ValidationError(f"Unknown operator: {operator}", field, value, "operator")


class WhereBuilder:
    """Compile condition trees to SQL.

    The builder holds no state between calls: ``build`` may be called many
    times, with different starting offsets, and always yields fresh output.
    """

    def __init__(self, starting_param_index: int = 0):
        self.starting_param_index = starting_param_index

    def build(self, condition: Any, starting_param_index: Optional[int] = None) -> WhereClause:
        start = self.starting_param_index if starting_param_index is None else starting_param_index
        compilation = _Compilation(start)
        sql = compilation.condition(condition)
        return WhereClause(sql=sql or ALWAYS_TRUE, params=compilation.params)


def build_where_clause(condition: Any, starting_param_index: int = 0) -> WhereClause:
    return WhereBuilder(starting_param_index).build(condition)


__all__ = [
    "WhereBuilder",
    "WhereClause",
    "build_where_clause",
    "ALWAYS_TRUE",
    "ALWAYS_FALSE",
]
