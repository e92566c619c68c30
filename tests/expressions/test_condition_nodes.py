"""Tests for the tagged condition vocabulary (LiteralValue, OperatorSet, RawExpression, And/Or/Not)."""

import pytest

from ormhouse import ValidationError
from ormhouse.expressions import (
    And,
    LiteralValue,
    Not,
    Operator,
    OperatorSet,
    Or,
    RawExpression,
    and_,
    between,
    eq,
    gt,
    gte,
    in_,
    is_not_null,
    is_null,
    looks_like_operator_set,
    lte,
    not_,
    not_in,
    or_,
    raw,
)
from ormhouse.where import build_where_clause


def compile_(condition):
    clause = build_where_clause(condition)
    return clause.sql, clause.params


def test_literal_value_disambiguates_operator_shaped_mapping():
    payload = {"in": [1, 2]}
    sql, params = compile_({"meta": LiteralValue(value=payload)})
    assert sql == "`meta` = {param0:String}"
    assert params == {"param0": payload}


def test_literal_none_is_null():
    assert compile_({"age": LiteralValue(value=None)}) == ("`age` IS NULL", {})


def test_mapping_without_operator_keys_is_a_literal():
    assert not looks_like_operator_set({"street": "x"})
    assert looks_like_operator_set({"street": "x", "gt": 1})
    sql, params = compile_({"address": {"street": "x"}})
    assert sql == "`address` = {param0:String}"
    assert params == {"param0": {"street": "x"}}


def test_raw_expression_is_emitted_verbatim():
    expression = raw("toYear(`created_at`) = 2024", 1)
    assert isinstance(expression, RawExpression)
    assert expression.values == (1,)
    assert compile_({"created_at": expression}) == ("toYear(`created_at`) = 2024", {})


def test_raw_expression_field_name_is_still_checked():
    with pytest.raises(ValidationError):
        compile_({"bad-name": raw("1=1")})


def test_operator_set_from_mapping_and_aliases():
    operator_set = OperatorSet.of(in_=[1], not_null=True)
    assert operator_set.operators == ((Operator.IN, [1]), (Operator.NOT_NULL, True))
    with pytest.raises(ValidationError, match="Unknown operator: nope"):
        OperatorSet.from_mapping({"nope": 1}, "age")


def test_helper_constructors():
    assert compile_({"age": gte(18) & lte(65)})[0] == "`age` >= {param0:Int32} AND `age` <= {param1:Int32}"
    assert compile_({"age": between(1, 2)})[0] == "`age` BETWEEN {param0:Int32} AND {param1:Int32}"
    assert compile_({"id": in_([])})[0] == "1=0"
    assert compile_({"id": not_in([])})[0] == "1=1"
    assert compile_({"age": is_null()})[0] == "`age` IS NULL"
    assert compile_({"age": is_not_null()})[0] == "`age` IS NOT NULL"
    assert compile_({"name": eq("x")}) == ("`name` = {param0:String}", {"param0": "x"})


def test_tagged_logical_nodes():
    condition = and_({"a": 1}, {"b": gt(2)})
    assert isinstance(condition, And)
    assert compile_(condition)[0] == "(`a` = {param0:Int32} AND `b` > {param1:Int32})"

    condition = or_({"a": 1}, not_({"b": 2}))
    assert isinstance(condition, Or)
    assert compile_(condition)[0] == "(`a` = {param0:Int32} OR NOT (`b` = {param1:Int32}))"


def test_operator_overloads():
    condition = and_({"a": 1}) | {"b": 2}
    assert isinstance(condition, Or)
    assert compile_(condition)[0] == "((`a` = {param0:Int32}) OR `b` = {param1:Int32})"

    negated = ~or_({"a": 1})
    assert isinstance(negated, Not)
    assert compile_(negated)[0] == "NOT ((`a` = {param0:Int32}))"


def test_tagged_nodes_inside_mappings():
    sql, _ = compile_({"name": "x", "$or": [and_({"a": 1}), {"b": 2}]})
    assert sql == "`name` = {param0:String} AND ((`a` = {param1:Int32}) OR `b` = {param2:Int32})"


def test_nodes_are_immutable():
    condition = and_({"a": 1})
    with pytest.raises(Exception):
        condition.conditions = ()
