"""Field-level operator sets (``{"gt": 18, "lt": 65}``) and their helpers."""

from __future__ import annotations

import enum
from typing import Any, Mapping, Sequence

from ..errors import ValidationError
from ._bases import FieldValue


class Operator(str, enum.Enum):
    """Closed vocabulary of field operators."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "notIn"
    LIKE = "like"
    NOT_LIKE = "notLike"
    ILIKE = "ilike"
    BETWEEN = "between"
    IS_NULL = "isNull"
    NOT_NULL = "notNull"


# Python-friendly spellings accepted as well as the canonical keys.
OPERATOR_ALIASES: dict[str, Operator] = {
    **{op.value: op for op in Operator},
    "in_": Operator.IN,
    "not_in": Operator.NOT_IN,
    "not_like": Operator.NOT_LIKE,
    "is_null": Operator.IS_NULL,
    "not_null": Operator.NOT_NULL,
}


def is_operator_key(key: Any) -> bool:
    return isinstance(key, str) and key in OPERATOR_ALIASES


def looks_like_operator_set(value: Any) -> bool:
    """True for a plain mapping with at least one operator key."""
    return isinstance(value, Mapping) and any(is_operator_key(key) for key in value)


class OperatorSet(FieldValue):
    """Ordered operators applied to one field, ANDed together."""

    operators: tuple[tuple[Operator, Any], ...]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], field: str | None = None) -> OperatorSet:
        """Build from ``{"gt": 18, ...}``; unknown keys are rejected by name."""
        operators = []
        for key, value in mapping.items():
            if isinstance(key, Operator):
                operators.append((key, value))
                continue
            operator = OPERATOR_ALIASES.get(key) if isinstance(key, str) else None
            if operator is None:
                raise ValidationError(f"Unknown operator: {key}", field, key, "operator")
            operators.append((operator, value))
        return cls(operators=tuple(operators))

    @classmethod
    def of(cls, **operators: Any) -> OperatorSet:
        return cls.from_mapping(operators)

    def __and__(self, other: OperatorSet) -> OperatorSet:
        return OperatorSet(operators=self.operators + other.operators)


def eq(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.EQ, value),))


def ne(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.NE, value),))


def gt(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.GT, value),))


def gte(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.GTE, value),))


def lt(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.LT, value),))


def lte(value: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.LTE, value),))


def in_(values: Sequence[Any]) -> OperatorSet:
    return OperatorSet(operators=((Operator.IN, values),))


def not_in(values: Sequence[Any]) -> OperatorSet:
    return OperatorSet(operators=((Operator.NOT_IN, values),))


def like(pattern: str) -> OperatorSet:
    return OperatorSet(operators=((Operator.LIKE, pattern),))


def not_like(pattern: str) -> OperatorSet:
    return OperatorSet(operators=((Operator.NOT_LIKE, pattern),))


def ilike(pattern: str) -> OperatorSet:
    return OperatorSet(operators=((Operator.ILIKE, pattern),))


def between(low: Any, high: Any) -> OperatorSet:
    return OperatorSet(operators=((Operator.BETWEEN, (low, high)),))


def is_null() -> OperatorSet:
    return OperatorSet(operators=((Operator.IS_NULL, True),))


def is_not_null() -> OperatorSet:
    return OperatorSet(operators=((Operator.NOT_NULL, True),))
