"""Tests for to_wire_value / from_wire_value."""

import datetime
import decimal
import enum

import pytest

from ormhouse import DataType, TypeMappingError
from ormhouse.type_mapper import from_wire_value, to_wire_value


class Color(enum.Enum):
    RED = "red"


def test_none_is_none_for_every_kind():
    for kind in DataType:
        assert to_wire_value(None, kind) is None
        assert from_wire_value(None, kind) is None


def test_numbers():
    assert to_wire_value("42", DataType.UInt32) == 42
    assert to_wire_value(3.0, DataType.Int8) == 3
    assert to_wire_value(1, DataType.Float32) == 1.0
    assert to_wire_value("1.25", DataType.Decimal) == decimal.Decimal("1.25")
    with pytest.raises(TypeMappingError, match="integer"):
        to_wire_value(1.5, DataType.Int32)
    with pytest.raises(TypeMappingError):
        to_wire_value("abc", DataType.Float64)


def test_64_bit_integers_stay_exact():
    big = 2**64 - 1
    assert to_wire_value(big, DataType.UInt64) == big
    assert from_wire_value(str(big), DataType.UInt64) == big
    assert isinstance(from_wire_value("12", DataType.Int64), int)
    assert from_wire_value("9007199254740993", DataType.Int64) == 9007199254740993


def test_booleans():
    assert to_wire_value(True, DataType.Boolean) is True
    assert to_wire_value("yes", DataType.Boolean) is True
    assert from_wire_value(0, DataType.Boolean) is False
    assert from_wire_value("true", DataType.Boolean) is True


def test_text_and_enums():
    assert to_wire_value(12, DataType.String) == "12"
    assert to_wire_value(Color.RED, DataType.Enum8) == "red"


def test_dates():
    moment = datetime.datetime(2024, 1, 2, 3, 4, 5, 123000)
    assert to_wire_value(moment, DataType.DateTime) == "2024-01-02 03:04:05"
    assert to_wire_value(moment, DataType.DateTime64) == "2024-01-02 03:04:05.123000"
    assert to_wire_value(moment, DataType.Date) == "2024-01-02"
    assert to_wire_value(datetime.date(2024, 1, 2), DataType.DateTime) == "2024-01-02 00:00:00"


def test_aware_datetimes_are_normalized_to_utc():
    tz = datetime.timezone(datetime.timedelta(hours=2))
    moment = datetime.datetime(2024, 1, 2, 12, 0, 0, tzinfo=tz)
    assert to_wire_value(moment, DataType.DateTime) == "2024-01-02 10:00:00"


def test_dates_from_wire():
    assert from_wire_value("2024-01-02", DataType.Date) == datetime.date(2024, 1, 2)
    assert from_wire_value("2024-01-02 03:04:05", DataType.DateTime) == datetime.datetime(2024, 1, 2, 3, 4, 5)
    with pytest.raises(TypeMappingError, match="date/time"):
        from_wire_value("yesterday", DataType.DateTime)


def test_arrays():
    assert to_wire_value((1, 2), DataType.Array) == [1, 2]
    assert to_wire_value(["1", "2"], DataType.Array, DataType.UInt8) == [1, 2]
    assert from_wire_value("[1, 2]", DataType.Array) == [1, 2]
    with pytest.raises(TypeMappingError, match="array"):
        to_wire_value("not a list", DataType.Array)


def test_json_and_map():
    assert to_wire_value({"a": 1}, DataType.JSON) == '{"a": 1}'
    assert to_wire_value({"é": 1}, DataType.Map) == '{"é": 1}'
    assert from_wire_value('{"a": [1, 2]}', DataType.JSON) == {"a": [1, 2]}
    assert from_wire_value({"a": 1}, DataType.Map) == {"a": 1}
    with pytest.raises(TypeMappingError, match="object"):
        to_wire_value("text", DataType.JSON)


def test_wrappers_delegate_to_element_type():
    assert to_wire_value("5", DataType.LowCardinality, DataType.UInt8) == 5
    assert from_wire_value("7", DataType.Nullable, DataType.Int16) == 7


@pytest.mark.parametrize(
    "value,kind",
    [
        (42, DataType.UInt32),
        (-5, DataType.Int64),
        (2**63 - 1, DataType.Int64),
        (1.5, DataType.Float64),
        (decimal.Decimal("12.34"), DataType.Decimal),
        ("hello", DataType.String),
        (True, DataType.Boolean),
        (datetime.date(2024, 2, 29), DataType.Date),
        (datetime.datetime(2024, 2, 29, 23, 59, 58), DataType.DateTime),
        (["a", "b"], DataType.Array),
        ({"nested": {"list": [1, 2]}}, DataType.JSON),
    ],
)
def test_round_trip(value, kind):
    assert from_wire_value(to_wire_value(value, kind), kind) == value
