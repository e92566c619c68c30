"""Conversion between column kinds and Python values.

Renders native type strings from column definitions, converts values to and
from their wire representation, checks values against a column, and infers
kinds (or placeholder types) from bare Python values.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import ipaddress
import json
import math
import uuid
from typing import Any, Optional

from .errors import TypeMappingError
from .types import (
    DATE_TYPES,
    ENUM_TYPES,
    FLOAT_TYPES,
    INTEGER_RANGES,
    INTEGER_TYPES,
    NUMERIC_TYPES,
    STRING_TYPES,
    TEXT_TYPES,
    ColumnDefinition,
    DataType,
)

EPOCH = datetime.datetime(1970, 1, 1)

_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DATETIME64_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
_INT32_MIN, _INT32_MAX = INTEGER_RANGES[DataType.Int32]
_INT64_MAX = INTEGER_RANGES[DataType.Int64][1]
_UINT64_MAX = INTEGER_RANGES[DataType.UInt64][1]


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def render_type(column: ColumnDefinition) -> str:
    """Native type string for a column, e.g. ``Nullable(Decimal(10, 2))``."""
    kind = column.type

    if kind == DataType.FixedString:
        if not column.length:
            raise TypeMappingError("FixedString type requires length", str(kind), None, column)
        sql = f"FixedString({column.length})"
    elif kind == DataType.Decimal:
        if not column.precision:
            raise TypeMappingError("Decimal type requires precision", str(kind), None, column)
        sql = f"Decimal({column.precision}, {column.scale or 0})"
    elif kind == DataType.DateTime64:
        precision = 3 if column.precision is None else column.precision
        sql = f"DateTime64({precision})"
    elif kind in (DataType.Array, DataType.LowCardinality, DataType.Nullable):
        if column.element_type is None:
            raise TypeMappingError(f"{kind} type requires element_type", str(kind), None, column)
        sql = f"{kind}({column.element_type})"
    elif kind in ENUM_TYPES:
        if not column.enum_values:
            raise TypeMappingError("Enum type requires enum_values", str(kind), None, column)
        members = ", ".join(
            f"{_quote(value)} = {ordinal}"
            for ordinal, value in enumerate(column.enum_values, start=1)
        )
        sql = f"{kind}({members})"
    else:
        sql = str(kind)

    if column.nullable:
        sql = f"Nullable({sql})"
    return sql


def render_param_type(column: ColumnDefinition) -> str:
    """Placeholder type used when binding a value for a known column."""
    if column.type in ENUM_TYPES:
        return "Nullable(String)" if column.nullable else "String"
    return render_type(column)


def param_type(value: Any) -> str:
    """Placeholder type inferred from a bare value (``{paramN:<type>}``)."""
    if value is None:
        return "Nullable(String)"
    if isinstance(value, bool):
        return "UInt8"
    if isinstance(value, int):
        if _INT32_MIN <= value <= _INT32_MAX:
            return "Int32"
        if _INT64_MAX < value <= _UINT64_MAX:
            return "UInt64"
        return "Int64"
    if isinstance(value, (float, decimal.Decimal)):
        return "Float64"
    if isinstance(value, str):
        return "String"
    if isinstance(value, datetime.datetime):
        return "DateTime"
    if isinstance(value, datetime.date):
        return "Date"
    if isinstance(value, (list, tuple)):
        return "Array(String)"
    return "String"


def _to_int(value: Any, kind: DataType) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise TypeMappingError("Expected integer value", type(value).__name__, str(kind), value)
        return int(value)
    if isinstance(value, decimal.Decimal):
        if value != value.to_integral_value():
            raise TypeMappingError("Expected integer value", type(value).__name__, str(kind), value)
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError as error:
        raise TypeMappingError("Expected integer value", type(value).__name__, str(kind), value) from error


def _to_float(value: Any, kind: DataType) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as error:
        raise TypeMappingError("Expected numeric value", type(value).__name__, str(kind), value) from error


def _to_decimal(value: Any, kind: DataType) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    try:
        return decimal.Decimal(str(value))
    except decimal.InvalidOperation as error:
        raise TypeMappingError("Expected decimal value", type(value).__name__, str(kind), value) from error


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t", "yes", "y")
    return bool(value)


def _to_text(value: Any) -> str:
    if isinstance(value, enum.Enum):
        return value.value if isinstance(value.value, str) else value.name
    return str(value)


def _parse_datetime(value: Any, kind: DataType) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as error:
            raise TypeMappingError("Invalid date/time value", "str", str(kind), value) from error
    raise TypeMappingError("Invalid date/time value", type(value).__name__, str(kind), value)


def _naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def to_wire_value(value: Any, kind: DataType, element_type: Optional[DataType] = None) -> Any:
    """Convert a Python value into the form sent to the database.

    ``None`` maps to ``None`` whatever the kind. ``element_type`` converts the
    elements of Array values and the payload of LowCardinality/Nullable.
    """
    if value is None:
        return None
    kind = DataType(kind)

    if kind in INTEGER_TYPES:
        return _to_int(value, kind)
    if kind in FLOAT_TYPES:
        return _to_float(value, kind)
    if kind == DataType.Decimal:
        return _to_decimal(value, kind)
    if kind == DataType.Boolean:
        return _to_bool(value)
    if kind in TEXT_TYPES or kind in ENUM_TYPES:
        return _to_text(value)
    if kind in DATE_TYPES:
        moment = _naive_utc(_parse_datetime(value, kind))
        if kind in (DataType.Date, DataType.Date32):
            return moment.date().isoformat()
        if kind == DataType.DateTime64:
            return moment.strftime(_DATETIME64_FORMAT)
        return moment.strftime(_DATETIME_FORMAT)
    if kind == DataType.Array:
        if not isinstance(value, (list, tuple)):
            raise TypeMappingError("Expected array value", type(value).__name__, str(kind), value)
        if element_type is None:
            return list(value)
        return [to_wire_value(item, element_type) for item in value]
    if kind == DataType.Tuple:
        if not isinstance(value, (list, tuple)):
            raise TypeMappingError("Expected tuple value", type(value).__name__, str(kind), value)
        return list(value)
    if kind == DataType.Map:
        if not isinstance(value, dict):
            raise TypeMappingError("Expected object value", type(value).__name__, str(kind), value)
        return json.dumps(value, ensure_ascii=False, default=str)
    if kind == DataType.JSON:
        if not isinstance(value, (dict, list)):
            raise TypeMappingError("Expected object value", type(value).__name__, str(kind), value)
        return json.dumps(value, ensure_ascii=False, default=str)
    if kind in (DataType.LowCardinality, DataType.Nullable) and element_type is not None:
        return to_wire_value(value, element_type)
    return value


def from_wire_value(value: Any, kind: DataType, element_type: Optional[DataType] = None) -> Any:
    """Convert a value received from the database into a Python value."""
    if value is None:
        return None
    kind = DataType(kind)

    if kind in INTEGER_TYPES:
        # Python ints are exact at any width, 64-bit kinds included.
        return _to_int(value, kind)
    if kind in FLOAT_TYPES:
        return _to_float(value, kind)
    if kind == DataType.Decimal:
        return _to_decimal(value, kind)
    if kind == DataType.Boolean:
        return _to_bool(value)
    if kind in TEXT_TYPES or kind in ENUM_TYPES:
        return str(value)
    if kind in (DataType.Date, DataType.Date32):
        if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
            return value
        return _parse_datetime(value, kind).date()
    if kind in DATE_TYPES:
        return _parse_datetime(value, kind)
    if kind == DataType.Array:
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, (list, tuple)):
            raise TypeMappingError(
                "Expected array value from database", type(value).__name__, str(kind), value
            )
        if element_type is None:
            return list(value)
        return [from_wire_value(item, element_type) for item in value]
    if kind in (DataType.JSON, DataType.Map):
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return value
    if kind in (DataType.LowCardinality, DataType.Nullable) and element_type is not None:
        return from_wire_value(value, element_type)
    return value


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return not math.isnan(value)
    return isinstance(value, (int, decimal.Decimal))


def _is_date_like(value: Any) -> bool:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return True
    if not isinstance(value, str):
        return False
    try:
        datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def is_valid(value: Any, column: ColumnDefinition) -> bool:
    """Check a value against a column.

    Returns False for ordinary mismatches; raises TypeMappingError only when
    ``value`` is None and the column is not nullable.
    """
    if value is None:
        if not column.nullable:
            raise TypeMappingError(
                "Value cannot be null for non-nullable column", "NoneType", str(column.type), value
            )
        return True

    kind = column.type
    if kind in INTEGER_TYPES:
        low, high = INTEGER_RANGES[kind]
        return _is_integer(value) and low <= value <= high
    if kind in FLOAT_TYPES or kind == DataType.Decimal:
        return _is_number(value)
    if kind == DataType.Boolean:
        return isinstance(value, bool)
    if kind == DataType.UUID:
        return isinstance(value, (str, uuid.UUID))
    if kind == DataType.IPv4:
        return isinstance(value, (str, ipaddress.IPv4Address))
    if kind == DataType.IPv6:
        return isinstance(value, (str, ipaddress.IPv6Address))
    if kind in TEXT_TYPES:
        if not isinstance(value, str):
            return False
        if kind == DataType.FixedString and column.length:
            return len(value) <= column.length
        return True
    if kind in DATE_TYPES:
        return _is_date_like(value)
    if kind in (DataType.Array, DataType.Tuple):
        return isinstance(value, (list, tuple))
    if kind == DataType.Map:
        return isinstance(value, dict)
    if kind == DataType.JSON:
        return isinstance(value, (dict, list))
    if kind in ENUM_TYPES:
        if not isinstance(value, (str, enum.Enum)):
            return False
        if column.enum_values:
            return _to_text(value) in column.enum_values
        return True
    return True


def infer_type(value: Any) -> DataType:
    """Best-effort column kind for a bare Python value."""
    if value is None:
        return DataType.Nullable
    if isinstance(value, bool):
        return DataType.Boolean
    if isinstance(value, int):
        return DataType.Int32 if _INT32_MIN <= value <= _INT32_MAX else DataType.Int64
    if isinstance(value, float):
        return DataType.Float64
    if isinstance(value, decimal.Decimal):
        return DataType.Decimal
    if isinstance(value, str):
        return DataType.String
    if isinstance(value, datetime.datetime):
        return DataType.DateTime
    if isinstance(value, datetime.date):
        return DataType.Date
    if isinstance(value, uuid.UUID):
        return DataType.UUID
    if isinstance(value, ipaddress.IPv4Address):
        return DataType.IPv4
    if isinstance(value, ipaddress.IPv6Address):
        return DataType.IPv6
    if isinstance(value, (list, tuple)):
        return DataType.Array
    if isinstance(value, dict):
        return DataType.JSON
    return DataType.String


def default_for(kind: DataType) -> Any:
    """Zero value of a column kind."""
    kind = DataType(kind)
    if kind in INTEGER_TYPES:
        return 0
    if kind in FLOAT_TYPES:
        return 0.0
    if kind == DataType.Decimal:
        return decimal.Decimal(0)
    if kind == DataType.Boolean:
        return False
    if kind in TEXT_TYPES:
        return ""
    if kind in (DataType.Date, DataType.Date32):
        return EPOCH.date()
    if kind in DATE_TYPES:
        return EPOCH
    if kind == DataType.Array:
        return []
    if kind in (DataType.JSON, DataType.Map):
        return {}
    return None


def compatible(source: DataType, target: DataType) -> bool:
    """True when both kinds are identical or belong to the same broad family."""
    source, target = DataType(source), DataType(target)
    if source == target:
        return True
    return any(
        source in family and target in family
        for family in (NUMERIC_TYPES, STRING_TYPES, DATE_TYPES)
    )


__all__ = [
    "render_type",
    "render_param_type",
    "param_type",
    "to_wire_value",
    "from_wire_value",
    "is_valid",
    "infer_type",
    "default_for",
    "compatible",
    "EPOCH",
]
