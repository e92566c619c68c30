from ._bases import Condition, FieldValue
from .values import LiteralValue, RawExpression, raw
from .operators import (
    OPERATOR_ALIASES,
    Operator,
    OperatorSet,
    between,
    eq,
    gt,
    gte,
    ilike,
    in_,
    is_not_null,
    is_null,
    is_operator_key,
    like,
    looks_like_operator_set,
    lt,
    lte,
    ne,
    not_in,
    not_like,
)
from .logical import And, Not, Or, and_, not_, or_

__all__ = [
    "Condition",
    "FieldValue",
    "LiteralValue",
    "RawExpression",
    "raw",
    "Operator",
    "OperatorSet",
    "OPERATOR_ALIASES",
    "is_operator_key",
    "looks_like_operator_set",
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "in_",
    "not_in",
    "like",
    "not_like",
    "ilike",
    "between",
    "is_null",
    "is_not_null",
    "And",
    "Or",
    "Not",
    "and_",
    "or_",
    "not_",
]
