"""Base node types for WHERE condition trees."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Condition(BaseModel):
    """A tree node that compiles to a boolean SQL expression.

    Plain mappings (``{"age": {"gt": 18}}``) are conditions too; this base is
    for the tagged combinators. ``&``, ``|`` and ``~`` build And/Or/Not nodes.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __and__(self, other: Any):
        from .logical import And
        return And(conditions=(self, other))

    def __rand__(self, other: Any):
        from .logical import And
        return And(conditions=(other, self))

    def __or__(self, other: Any):
        from .logical import Or
        return Or(conditions=(self, other))

    def __ror__(self, other: Any):
        from .logical import Or
        return Or(conditions=(other, self))

    def __invert__(self):
        from .logical import Not
        return Not(condition=self)


class FieldValue(BaseModel):
    """Tagged value of one field entry: a literal, an operator set, or raw SQL."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
