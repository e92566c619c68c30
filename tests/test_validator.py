"""Tests for ormhouse.validator."""

import re

import pytest

from ormhouse import ColumnDefinition, DataType, ValidationError
from ormhouse.validator import (
    apply_rules,
    create_rule,
    is_valid_email,
    is_valid_identifier,
    is_valid_ipv4,
    is_valid_ipv6,
    is_valid_url,
    is_valid_uuid,
    sanitize_input,
    validate_column_definition,
    validate_data,
    validate_length,
    validate_partial_data,
    validate_pattern,
    validate_query_options,
    validate_range,
    validate_schema,
    validate_table_name,
    validate_where_condition,
)


def schema(**columns):
    return {name: ColumnDefinition.coerce(definition, name) for name, definition in columns.items()}


USERS = schema(
    id={"type": DataType.UInt32, "primaryKey": True},
    name={"type": DataType.String},
    age={"type": DataType.UInt8, "nullable": True},
    status={"type": DataType.String, "default": "active"},
)


def test_identifiers():
    assert is_valid_identifier("_user_1")
    assert not is_valid_identifier("1user")
    assert not is_valid_identifier("user-name")
    assert not is_valid_identifier(None)


def test_table_names():
    validate_table_name("events")
    validate_table_name("t" * 64)
    with pytest.raises(ValidationError, match="too long"):
        validate_table_name("t" * 65)
    with pytest.raises(ValidationError, match="Invalid table name"):
        validate_table_name("my table")
    with pytest.raises(ValidationError, match="non-empty"):
        validate_table_name("")


@pytest.mark.parametrize(
    "definition,message",
    [
        ({"type": DataType.FixedString}, "positive length"),
        ({"type": DataType.FixedString, "length": 0}, "positive length"),
        ({"type": DataType.Decimal}, "positive precision"),
        ({"type": DataType.Decimal, "precision": 5, "scale": 6}, "scale"),
        ({"type": DataType.Array}, "element_type"),
        ({"type": DataType.LowCardinality}, "element_type"),
        ({"type": DataType.Enum8}, "enum_values"),
        ({"type": DataType.Enum8, "enumValues": [str(i) for i in range(257)]}, "more than 256"),
        ({"type": DataType.UInt32, "primaryKey": True, "nullable": True}, "cannot be nullable"),
        ({"type": DataType.String, "autoIncrement": True}, "Auto increment"),
    ],
)
def test_column_invariants(definition, message):
    with pytest.raises(ValidationError, match=message):
        validate_column_definition("col", ColumnDefinition.coerce(definition, "col"))


def test_valid_columns_pass():
    validate_column_definition("d", ColumnDefinition(type=DataType.Decimal, precision=10, scale=10))
    validate_column_definition("e", ColumnDefinition(type=DataType.Enum16, enum_values=tuple(str(i) for i in range(300))))
    validate_column_definition("n", ColumnDefinition(type=DataType.UInt64, auto_increment=True))


def test_schema_level_checks():
    with pytest.raises(ValidationError, match="at least one field"):
        validate_schema({})
    with pytest.raises(ValidationError, match="Multiple primary keys found: a, b") as info:
        validate_schema(schema(a={"type": DataType.UInt8, "primaryKey": True}, b={"type": DataType.UInt8, "primaryKey": True}))
    assert info.value.value == ["a", "b"]
    with pytest.raises(ValidationError, match="Invalid field name"):
        validate_schema(schema(**{"bad-name": {"type": DataType.String}}))


def test_validate_data():
    validate_data({"id": 1, "name": "bob"}, USERS)
    with pytest.raises(ValidationError, match="Field 'name' is required") as info:
        validate_data({"id": 1}, USERS)
    assert info.value.constraint == "required"
    with pytest.raises(ValidationError, match="Unknown field 'nope'"):
        validate_data({"id": 1, "name": "bob", "nope": 1}, USERS)
    with pytest.raises(ValidationError, match="Invalid value for field 'age'"):
        validate_data({"id": 1, "name": "bob", "age": 300}, USERS)


def test_validate_data_single_required_field():
    single = schema(title={"type": DataType.String})
    with pytest.raises(ValidationError):
        validate_data({}, single)
    validate_data({"title": "x"}, single)


def test_validate_partial_data():
    validate_partial_data({"name": None, "age": None, "status": None}, USERS)
    validate_partial_data({"age": 30}, USERS)
    with pytest.raises(ValidationError, match="Cannot update primary key field 'id'"):
        validate_partial_data({"id": None}, USERS)
    with pytest.raises(ValidationError, match="Cannot update primary key"):
        validate_partial_data({"id": 2}, USERS)
    with pytest.raises(ValidationError, match="Unknown field"):
        validate_partial_data({"nope": 1}, USERS)
    with pytest.raises(ValidationError, match="Invalid value"):
        validate_partial_data({"age": "old"}, USERS)


def test_query_options():
    validate_query_options(limit=0, offset=10, timeout=5)
    for kwargs in ({"limit": -1}, {"offset": 1.5}, {"timeout": 0}, {"limit": True}):
        with pytest.raises(ValidationError):
            validate_query_options(**kwargs)


def test_where_condition_keys():
    validate_where_condition({"age": {"gt": 1}, "$or": [], "in": 1})
    with pytest.raises(ValidationError, match="Invalid WHERE condition"):
        validate_where_condition({"a b": 1})


def test_sanitize_input():
    assert sanitize_input("a\0b") == "ab"
    assert sanitize_input(12) == "12"


def test_format_predicates():
    assert is_valid_email("a@b.io")
    assert not is_valid_email("a@b")
    assert is_valid_uuid("123e4567-e89b-12d3-a456-426614174000")
    assert not is_valid_uuid("123e4567-e89b-62d3-a456-426614174000")
    assert is_valid_ipv4("192.168.0.255")
    assert not is_valid_ipv4("256.1.1.1")
    assert not is_valid_ipv4("1.2.3")
    assert is_valid_ipv6("2001:db8::1")
    assert is_valid_ipv6("::1")
    assert not is_valid_ipv6("2001:db8::g")
    assert is_valid_url("https://example.com/path?q=1")
    assert not is_valid_url("not a url")


def test_rules_short_circuit_with_field_name():
    calls = []

    def positive(value):
        calls.append("positive")
        return value > 0

    def even(value):
        calls.append("even")
        return value % 2 == 0

    rules = [create_rule(positive, "must be positive"), create_rule(even, "must be even")]
    apply_rules(4, rules, "count")
    calls.clear()
    with pytest.raises(ValidationError, match="must be positive") as info:
        apply_rules(-3, rules, "count")
    assert calls == ["positive"]
    assert info.value.field == "count"
    assert info.value.constraint == "custom"


def test_range_length_pattern():
    validate_range(5, 1, 10)
    with pytest.raises(ValidationError):
        validate_range(11, 1, 10, "score")
    validate_length("abc", 1, 3)
    with pytest.raises(ValidationError):
        validate_length("abcd", 1, 3)
    validate_pattern("abc", r"^[a-z]+$")
    with pytest.raises(ValidationError):
        validate_pattern("ABC", re.compile(r"^[a-z]+$"))
