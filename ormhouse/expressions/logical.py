"""Logical combinators: AND, OR and NOT groups of conditions."""

from __future__ import annotations

from typing import Any

from ._bases import Condition


class And(Condition):
    """All child conditions must hold; rendered ``(a AND b ...)``."""

    conditions: tuple[Any, ...] = ()


class Or(Condition):
    """At least one child condition must hold; rendered ``(a OR b ...)``."""

    conditions: tuple[Any, ...] = ()


class Not(Condition):
    """Negation of a single condition; rendered ``NOT (a)``."""

    condition: Any


def and_(*conditions: Any) -> And:
    return And(conditions=conditions)


def or_(*conditions: Any) -> Or:
    return Or(conditions=conditions)


def not_(condition: Any) -> Not:
    return Not(condition=condition)
