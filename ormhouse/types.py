"""Column type vocabulary shared by every other module.

``DataType`` enumerates the database column kinds, ``ColumnDefinition`` is one
column's contract, and ``LiteralDefault`` / ``GeneratorDefault`` make the two
flavours of default value explicit instead of sniffing for callables.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Callable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class DataType(str, enum.Enum):
    """Native column kinds of the target database."""

    UInt8 = "UInt8"
    UInt16 = "UInt16"
    UInt32 = "UInt32"
    UInt64 = "UInt64"
    Int8 = "Int8"
    Int16 = "Int16"
    Int32 = "Int32"
    Int64 = "Int64"

    Float32 = "Float32"
    Float64 = "Float64"
    Decimal = "Decimal"

    String = "String"
    FixedString = "FixedString"

    Date = "Date"
    Date32 = "Date32"
    DateTime = "DateTime"
    DateTime64 = "DateTime64"

    Boolean = "Boolean"
    UUID = "UUID"

    Enum8 = "Enum8"
    Enum16 = "Enum16"

    Array = "Array"
    Tuple = "Tuple"
    Map = "Map"
    Nested = "Nested"
    JSON = "JSON"

    Nullable = "Nullable"
    LowCardinality = "LowCardinality"
    IPv4 = "IPv4"
    IPv6 = "IPv6"

    def __str__(self) -> str:
        return self.value


# Inclusive value ranges of the fixed-width integer kinds.
INTEGER_RANGES: dict[DataType, tuple[int, int]] = {
    DataType.UInt8: (0, 2**8 - 1),
    DataType.UInt16: (0, 2**16 - 1),
    DataType.UInt32: (0, 2**32 - 1),
    DataType.UInt64: (0, 2**64 - 1),
    DataType.Int8: (-(2**7), 2**7 - 1),
    DataType.Int16: (-(2**15), 2**15 - 1),
    DataType.Int32: (-(2**31), 2**31 - 1),
    DataType.Int64: (-(2**63), 2**63 - 1),
}

INTEGER_TYPES = frozenset(INTEGER_RANGES)
INT64_TYPES = frozenset((DataType.UInt64, DataType.Int64))
FLOAT_TYPES = frozenset((DataType.Float32, DataType.Float64))
NUMERIC_TYPES = INTEGER_TYPES | FLOAT_TYPES | {DataType.Decimal}
STRING_TYPES = frozenset((DataType.String, DataType.FixedString, DataType.UUID))
TEXT_TYPES = STRING_TYPES | {DataType.IPv4, DataType.IPv6}
DATE_TYPES = frozenset((DataType.Date, DataType.Date32, DataType.DateTime, DataType.DateTime64))
ENUM_TYPES = frozenset((DataType.Enum8, DataType.Enum16))
WRAPPER_TYPES = frozenset((DataType.Array, DataType.LowCardinality, DataType.Nullable))

ENUM_MAX_VALUES: dict[DataType, int] = {
    DataType.Enum8: 256,
    DataType.Enum16: 65536,
}


class LiteralDefault(BaseModel):
    """A fixed default value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    value: Any = None

    def resolve(self) -> Any:
        return self.value


class GeneratorDefault(BaseModel):
    """A default produced by calling a zero-argument function at use time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["generator"] = "generator"
    factory: Callable[[], Any]

    def resolve(self) -> Any:
        return self.factory()


Default = Annotated[Union[LiteralDefault, GeneratorDefault], Field(discriminator="kind")]


class ColumnDefinition(BaseModel):
    """Contract of a single database column.

    Accepts both snake_case names and the camelCase spelling of the
    schema-definition format (``primaryKey``, ``elementType``, ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: DataType
    nullable: bool = False
    primary_key: bool = Field(False, alias="primaryKey")
    unique: bool = False
    auto_increment: bool = Field(False, alias="autoIncrement")
    default: Optional[Default] = None
    comment: Optional[str] = None
    element_type: Optional[DataType] = Field(None, alias="elementType")
    precision: Optional[int] = None
    scale: Optional[int] = None
    length: Optional[int] = None
    enum_values: Optional[tuple[str, ...]] = Field(None, alias="enumValues")

    @field_validator("default", mode="before")
    @classmethod
    def _wrap_default(cls, value: Any) -> Any:
        if value is None or isinstance(value, (LiteralDefault, GeneratorDefault)):
            return value
        if callable(value):
            return GeneratorDefault(factory=value)
        return LiteralDefault(value=value)

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def resolve_default(self) -> Any:
        """Value of the default (calling the generator if any); None when there is none."""
        if self.default is None:
            return None
        return self.default.resolve()

    def to_definition(self) -> dict[str, Any]:
        """Plain mapping of the non-default settings, accepted back by ``coerce``."""
        data = self.model_dump(exclude_defaults=True, exclude={"default"})
        data["type"] = self.type
        if isinstance(self.default, LiteralDefault):
            data["default"] = self.default.value
        elif isinstance(self.default, GeneratorDefault):
            data["default"] = self.default.factory
        return data

    def merged(self, changes: Mapping[str, Any], name: Optional[str] = None) -> ColumnDefinition:
        """New definition with ``changes`` (snake_case or camelCase keys) applied."""
        data: dict[str, Any] = {field: getattr(self, field) for field in type(self).model_fields}
        aliases = {info.alias: field for field, info in type(self).model_fields.items() if info.alias}
        for key, value in changes.items():
            data[aliases.get(key, key)] = value
        return type(self).coerce(data, name)

    @classmethod
    def coerce(cls, definition: Any, name: Optional[str] = None) -> ColumnDefinition:
        """Build a ColumnDefinition from an instance, a bare DataType, or a mapping."""
        if isinstance(definition, cls):
            return definition
        if isinstance(definition, DataType):
            return cls(type=definition)
        if not isinstance(definition, Mapping):
            raise ValidationError(
                f"Column '{name}' definition must be a mapping or ColumnDefinition, "
                f"got {type(definition).__name__}",
                name,
                definition,
            )
        if not definition.get("type"):
            raise ValidationError(f"Column '{name}' is missing type", name)
        try:
            return cls.model_validate(dict(definition))
        except PydanticValidationError as error:
            raise ValidationError(
                f"Invalid definition for column '{name}': {error.errors()[0]['msg']}",
                name,
                dict(definition),
            ) from error


__all__ = [
    "DataType",
    "ColumnDefinition",
    "Default",
    "LiteralDefault",
    "GeneratorDefault",
    "INTEGER_RANGES",
    "INTEGER_TYPES",
    "INT64_TYPES",
    "FLOAT_TYPES",
    "NUMERIC_TYPES",
    "STRING_TYPES",
    "TEXT_TYPES",
    "DATE_TYPES",
    "ENUM_TYPES",
    "WRAPPER_TYPES",
    "ENUM_MAX_VALUES",
]
