"""Tests for native type rendering (render_type, render_param_type, param_type)."""

import decimal

import pytest

from ormhouse import ColumnDefinition, DataType, TypeMappingError
from ormhouse.type_mapper import param_type, render_param_type, render_type


def col(**kwargs):
    return ColumnDefinition(**kwargs)


def test_decimal():
    assert render_type(col(type=DataType.Decimal, precision=10, scale=2)) == "Decimal(10, 2)"
    assert render_type(col(type=DataType.Decimal, precision=10, scale=2, nullable=True)) == "Nullable(Decimal(10, 2))"
    assert render_type(col(type=DataType.Decimal, precision=18)) == "Decimal(18, 0)"


def test_parameterized_kinds():
    assert render_type(col(type=DataType.FixedString, length=16)) == "FixedString(16)"
    assert render_type(col(type=DataType.DateTime64, precision=6)) == "DateTime64(6)"
    assert render_type(col(type=DataType.DateTime64)) == "DateTime64(3)"
    assert render_type(col(type=DataType.Array, element_type=DataType.String)) == "Array(String)"
    assert render_type(col(type=DataType.LowCardinality, element_type=DataType.String)) == "LowCardinality(String)"
    assert render_type(col(type=DataType.Nullable, element_type=DataType.UInt8)) == "Nullable(UInt8)"


def test_plain_kinds():
    assert render_type(col(type=DataType.UInt64)) == "UInt64"
    assert render_type(col(type=DataType.String, nullable=True)) == "Nullable(String)"
    assert render_type(col(type=DataType.IPv4)) == "IPv4"


def test_enum_ordinals_follow_declaration_order():
    column = col(type=DataType.Enum8, enum_values=("active", "it's off"))
    assert render_type(column) == "Enum8('active' = 1, 'it''s off' = 2)"


def test_nullable_is_outermost():
    column = col(type=DataType.Array, element_type=DataType.Int32, nullable=True)
    assert render_type(column) == "Nullable(Array(Int32))"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"type": DataType.Array},
        {"type": DataType.LowCardinality},
        {"type": DataType.FixedString},
        {"type": DataType.Decimal},
        {"type": DataType.Enum16},
    ],
)
def test_missing_parameter_fails(kwargs):
    with pytest.raises(TypeMappingError, match="requires"):
        render_type(col(**kwargs))


def test_param_type_for_columns():
    assert render_param_type(col(type=DataType.UInt32)) == "UInt32"
    assert render_param_type(col(type=DataType.Enum8, enum_values=("a",))) == "String"
    assert render_param_type(col(type=DataType.Enum8, enum_values=("a",), nullable=True)) == "Nullable(String)"


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "Nullable(String)"),
        (False, "UInt8"),
        (-(2**31), "Int32"),
        (2**31, "Int64"),
        (-(2**63), "Int64"),
        (2**63, "UInt64"),
        (2**64 - 1, "UInt64"),
        (0.5, "Float64"),
        (decimal.Decimal("1.5"), "Float64"),
        ("x", "String"),
        ((1, 2), "Array(String)"),
        (object(), "String"),
    ],
)
def test_param_type_for_values(value, expected):
    assert param_type(value) == expected
