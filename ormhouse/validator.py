"""Validation of schema definitions, column definitions and record payloads.

All functions are pure: they either return (a bool for the ``is_valid_*``
predicates) or raise ``ValidationError``.
"""

from __future__ import annotations

import re
import urllib.parse
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .errors import ValidationError
from .type_mapper import is_valid
from .types import ENUM_MAX_VALUES, ENUM_TYPES, INTEGER_TYPES, ColumnDefinition, DataType

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_TABLE_NAME_LENGTH = 64

WHERE_OPERATORS = frozenset(
    ("eq", "ne", "gt", "gte", "lt", "lte", "in", "notIn", "like", "notLike", "ilike", "between", "isNull", "notNull")
)
LOGICAL_KEYS = frozenset(("and", "or", "not", "$and", "$or", "$not"))

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)
_IPV4_PATTERN = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
_IPV6_GROUP = r"[0-9a-fA-F]{1,4}"
_IPV4_TAIL = r"((25[0-5]|(2[0-4]|1?[0-9])?[0-9])\.){3}(25[0-5]|(2[0-4]|1?[0-9])?[0-9])"
_IPV6_PATTERN = re.compile(
    "^("
    rf"({_IPV6_GROUP}:){{7}}{_IPV6_GROUP}"
    rf"|({_IPV6_GROUP}:){{1,7}}:"
    rf"|({_IPV6_GROUP}:){{1,6}}:{_IPV6_GROUP}"
    rf"|({_IPV6_GROUP}:){{1,5}}(:{_IPV6_GROUP}){{1,2}}"
    rf"|({_IPV6_GROUP}:){{1,4}}(:{_IPV6_GROUP}){{1,3}}"
    rf"|({_IPV6_GROUP}:){{1,3}}(:{_IPV6_GROUP}){{1,4}}"
    rf"|({_IPV6_GROUP}:){{1,2}}(:{_IPV6_GROUP}){{1,5}}"
    rf"|{_IPV6_GROUP}:((:{_IPV6_GROUP}){{1,6}})"
    rf"|:((:{_IPV6_GROUP}){{1,7}}|:)"
    r"|fe80:(:[0-9a-fA-F]{0,4}){0,4}%[0-9a-zA-Z]+"
    rf"|::(ffff(:0{{1,4}})?:)?{_IPV4_TAIL}"
    rf"|({_IPV6_GROUP}:){{1,4}}:{_IPV4_TAIL}"
    ")$"
)
_URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


# --- identifiers ---

def is_valid_identifier(identifier: Any) -> bool:
    """True if identifier matches ``^[A-Za-z_][A-Za-z0-9_]*$``."""
    return isinstance(identifier, str) and IDENTIFIER_PATTERN.match(identifier) is not None


def validate_table_name(table_name: Any) -> None:
    if not table_name or not isinstance(table_name, str):
        raise ValidationError("Table name must be a non-empty string", "table_name", table_name)
    if not is_valid_identifier(table_name):
        raise ValidationError(
            f"Invalid table name '{table_name}'. Table names must start with a letter or underscore "
            "and contain only alphanumeric characters and underscores.",
            "table_name",
            table_name,
        )
    if len(table_name) > MAX_TABLE_NAME_LENGTH:
        raise ValidationError(
            f"Table name '{table_name}' is too long. Maximum length is {MAX_TABLE_NAME_LENGTH} characters.",
            "table_name",
            table_name,
        )


# --- schema / columns ---

def validate_column_definition(field_name: str, column: ColumnDefinition) -> None:
    """Check one column against the per-kind invariants."""
    if not is_valid_identifier(field_name):
        raise ValidationError(
            f"Invalid field name '{field_name}'. Field names must start with a letter or underscore "
            "and contain only alphanumeric characters and underscores.",
            field_name,
        )

    kind = column.type
    if kind == DataType.FixedString:
        if not column.length or column.length <= 0:
            raise ValidationError(f"FixedString column '{field_name}' requires a positive length", field_name)
    elif kind == DataType.Decimal:
        if not column.precision or column.precision <= 0:
            raise ValidationError(f"Decimal column '{field_name}' requires a positive precision", field_name)
        if column.scale is not None and not 0 <= column.scale <= column.precision:
            raise ValidationError(f"Decimal column '{field_name}' scale must be between 0 and precision", field_name)
    elif kind in (DataType.Array, DataType.LowCardinality, DataType.Nullable):
        if column.element_type is None:
            raise ValidationError(f"{kind} column '{field_name}' requires element_type", field_name)
    elif kind in ENUM_TYPES:
        if not column.enum_values:
            raise ValidationError(f"Enum column '{field_name}' requires enum_values", field_name)
        max_values = ENUM_MAX_VALUES[kind]
        if len(column.enum_values) > max_values:
            raise ValidationError(
                f"{kind} column '{field_name}' cannot have more than {max_values} values", field_name
            )

    if column.primary_key and column.nullable:
        raise ValidationError(f"Primary key column '{field_name}' cannot be nullable", field_name)

    if column.auto_increment and kind not in INTEGER_TYPES:
        raise ValidationError(
            f"Auto increment is only supported for integer types, but column '{field_name}' is {kind}",
            field_name,
        )


def validate_schema(schema: Mapping[str, ColumnDefinition]) -> None:
    """Check a whole schema definition: non-empty, at most one primary key, valid columns."""
    if not schema:
        raise ValidationError("Schema must have at least one field")

    primary_keys = [name for name, column in schema.items() if column.primary_key]
    if len(primary_keys) > 1:
        raise ValidationError(
            f"Multiple primary keys found: {', '.join(primary_keys)}. Only one primary key is allowed.",
            value=primary_keys,
            constraint="primaryKey",
        )

    for name, column in schema.items():
        validate_column_definition(name, column)


# --- records ---

def _check_unknown_fields(data: Mapping[str, Any], schema: Mapping[str, ColumnDefinition]) -> None:
    for field_name in data:
        if field_name not in schema:
            raise ValidationError(f"Unknown field '{field_name}'", field_name, data[field_name])


def _check_value(field_name: str, value: Any, column: ColumnDefinition) -> None:
    if not is_valid(value, column):
        raise ValidationError(
            f"Invalid value for field '{field_name}': expected {column.type}",
            field_name,
            value,
            "type",
        )


def validate_data(data: Mapping[str, Any], schema: Mapping[str, ColumnDefinition]) -> None:
    """Validate a full record (create-time)."""
    _check_unknown_fields(data, schema)
    for field_name, column in schema.items():
        value = data.get(field_name)
        if value is None:
            if not column.nullable and not column.has_default and not column.auto_increment:
                raise ValidationError(f"Field '{field_name}' is required", field_name, value, "required")
            continue
        _check_value(field_name, value, column)


def validate_partial_data(data: Mapping[str, Any], schema: Mapping[str, ColumnDefinition]) -> None:
    """Validate a partial record (update-time).

    The primary key may not appear at all; ``None`` is accepted for any field.
    """
    _check_unknown_fields(data, schema)
    for field_name, value in data.items():
        column = schema[field_name]
        if column.primary_key:
            raise ValidationError(
                f"Cannot update primary key field '{field_name}'", field_name, value, "primaryKey"
            )
        if value is not None:
            _check_value(field_name, value, column)


# --- queries ---

def validate_query_options(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    timeout: Optional[int] = None,
) -> None:
    def is_int(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    if limit is not None and (not is_int(limit) or limit < 0):
        raise ValidationError("Limit must be a non-negative integer", "limit", limit)
    if offset is not None and (not is_int(offset) or offset < 0):
        raise ValidationError("Offset must be a non-negative integer", "offset", offset)
    if timeout is not None and (not is_int(timeout) or timeout <= 0):
        raise ValidationError("Timeout must be a positive integer", "timeout", timeout)


def validate_where_condition(condition: Any) -> None:
    """Shallow check that every key of a condition mapping is an operator, a combinator or an identifier."""
    if not isinstance(condition, Mapping):
        return
    for key in condition:
        if key in LOGICAL_KEYS or key in WHERE_OPERATORS:
            continue
        if not is_valid_identifier(key):
            raise ValidationError(f"Invalid WHERE condition operator or field: '{key}'", key, condition)


def sanitize_input(value: Any) -> str:
    """Stringify and strip NUL bytes."""
    return str(value).replace("\0", "")


# --- formats ---

def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and _EMAIL_PATTERN.match(email) is not None


def is_valid_uuid(value: str) -> bool:
    return isinstance(value, str) and _UUID_PATTERN.match(value) is not None


def is_valid_ipv4(ip: str) -> bool:
    if not isinstance(ip, str) or not _IPV4_PATTERN.match(ip):
        return False
    return all(0 <= int(part) <= 255 for part in ip.split("."))


def is_valid_ipv6(ip: str) -> bool:
    return isinstance(ip, str) and _IPV6_PATTERN.match(ip) is not None


def is_valid_url(url: str) -> bool:
    if not isinstance(url, str) or not url or any(c.isspace() for c in url):
        return False
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError:
        return False
    if not parsed.scheme or not _URL_SCHEME_PATTERN.match(parsed.scheme):
        return False
    return bool(parsed.netloc or parsed.path)


# --- ad hoc rules ---

class ValidationRule(BaseModel):
    """A predicate and the message raised when it fails."""

    model_config = ConfigDict(frozen=True)

    check: Callable[[Any], bool]
    message: str


def create_rule(check: Callable[[Any], bool], message: str) -> ValidationRule:
    return ValidationRule(check=check, message=message)


def apply_rules(value: Any, rules: Iterable[ValidationRule], field_name: Optional[str] = None) -> None:
    """Apply rules in order; raise on the first one that fails."""
    for rule in rules:
        if not rule.check(value):
            raise ValidationError(rule.message, field_name, value, "custom")


def validate_range(value: float, low: float, high: float, field_name: Optional[str] = None) -> None:
    if value < low or value > high:
        raise ValidationError(f"Value must be between {low} and {high}", field_name, value, "range")


def validate_length(value: str, low: int, high: int, field_name: Optional[str] = None) -> None:
    if len(value) < low or len(value) > high:
        raise ValidationError(f"Length must be between {low} and {high} characters", field_name, value, "length")


def validate_pattern(value: str, pattern: str | re.Pattern, field_name: Optional[str] = None) -> None:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    if not compiled.search(value):
        raise ValidationError(
            f"Value does not match required pattern: {compiled.pattern}", field_name, value, "pattern"
        )


__all__ = [
    "IDENTIFIER_PATTERN",
    "MAX_TABLE_NAME_LENGTH",
    "WHERE_OPERATORS",
    "LOGICAL_KEYS",
    "ValidationRule",
    "is_valid_identifier",
    "validate_table_name",
    "validate_column_definition",
    "validate_schema",
    "validate_data",
    "validate_partial_data",
    "validate_query_options",
    "validate_where_condition",
    "sanitize_input",
    "is_valid_email",
    "is_valid_uuid",
    "is_valid_ipv4",
    "is_valid_ipv6",
    "is_valid_url",
    "create_rule",
    "apply_rules",
    "validate_range",
    "validate_length",
    "validate_pattern",
]
