"""Table schemas: validated, immutable column sets plus their DDL.

A ``TableSchema`` can only exist in a valid state: the table name and every
column are checked on construction, and add/remove/modify return a new
schema rather than changing this one.
"""

from __future__ import annotations

import decimal
import json
from typing import Any, Iterable, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .errors import SchemaError, ValidationError
from .sql_builder import quote_identifier
from .type_mapper import render_type
from .types import ColumnDefinition, DataType, ENUM_MAX_VALUES
from .validator import validate_column_definition, validate_data, validate_schema, validate_table_name

DEFAULT_ENGINE = "MergeTree()"


def _quote_text(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _default_literal(value: Any) -> str:
    if isinstance(value, str):
        return _quote_text(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, decimal.Decimal)):
        return str(value)
    return _quote_text(json.dumps(value, default=str, ensure_ascii=False))


def _coerce_definition(definition: Any) -> dict[str, ColumnDefinition]:
    if not isinstance(definition, Mapping):
        raise ValidationError(
            f"Schema definition must be a mapping, got {type(definition).__name__}", value=definition
        )
    return {name: ColumnDefinition.coerce(column, name) for name, column in definition.items()}


class TableSchema(BaseModel):
    """A named, ordered, validated set of column definitions.

    Columns keep their declaration order; it is the column order of the
    generated CREATE TABLE statement.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[tuple[str, ColumnDefinition], ...]

    def __init__(self, name: str, definition: Mapping[str, Any]):
        validate_table_name(name)
        columns = _coerce_definition(definition)
        validate_schema(columns)
        super().__init__(name=name, columns=tuple(columns.items()))

    # --- lookup ---

    @property
    def definition(self) -> dict[str, ColumnDefinition]:
        """Column definitions by name (a fresh dict on every access)."""
        return dict(self.columns)

    @property
    def column_names(self) -> list[str]:
        return [name for name, _ in self.columns]

    @property
    def primary_key(self) -> Optional[str]:
        for name, column in self.columns:
            if column.primary_key:
                return name
        return None

    def get_column(self, name: str) -> Optional[ColumnDefinition]:
        return self.definition.get(name)

    def has_column(self, name: str) -> bool:
        return name in self.definition

    def _require_column(self, name: str) -> ColumnDefinition:
        column = self.get_column(name)
        if column is None:
            raise SchemaError(f"Column '{name}' does not exist in table '{self.name}'", self.name, name)
        return column

    def column_types(self) -> dict[str, DataType]:
        return {name: column.type for name, column in self.columns}

    def required_columns(self) -> list[str]:
        """Columns a new record must provide."""
        return [
            name
            for name, column in self.columns
            if not column.nullable
            and not column.has_default
            and not column.auto_increment
            and not column.primary_key
        ]

    def optional_columns(self) -> list[str]:
        return [
            name
            for name, column in self.columns
            if column.nullable or column.has_default or column.auto_increment
        ]

    def get_defaults(self) -> dict[str, Any]:
        """Default value per column that declares one; generators are called now."""
        return {name: column.resolve_default() for name, column in self.columns if column.has_default}

    def validate(self, data: Any) -> bool:
        """Validate a full record for insertion; raises on the first problem."""
        if not isinstance(data, Mapping):
            raise SchemaError(f"Expected a mapping, got {type(data).__name__}", self.name)
        validate_data(data, self.definition)
        return True

    # --- DDL ---

    def to_create_table_sql(
        self,
        engine: str = DEFAULT_ENGINE,
        order_by: Optional[Sequence[str]] = None,
        partition_by: Optional[str] = None,
        if_not_exists: bool = False,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> str:
        header = "CREATE TABLE "
        if if_not_exists:
            header += "IF NOT EXISTS "
        header += quote_identifier(self.name)

        column_sql = []
        for name, column in self.columns:
            sql = f"{quote_identifier(name)} {render_type(column)}"
            if column.comment:
                sql += f" COMMENT {_quote_text(column.comment)}"
            column_sql.append(sql)
        lines = [header + " (\n  " + ",\n  ".join(column_sql) + "\n)"]

        lines.append(f"ENGINE = {engine or DEFAULT_ENGINE}")
        if order_by:
            lines.append("ORDER BY (" + ", ".join(quote_identifier(name) for name in order_by) + ")")
        else:
            lines.append("ORDER BY " + quote_identifier(self.primary_key or self.column_names[0]))
        if partition_by:
            lines.append(f"PARTITION BY {partition_by}")
        if settings:
            rendered = []
            for key, value in settings.items():
                if isinstance(value, str):
                    value = _quote_text(value)
                elif isinstance(value, bool):
                    value = int(value)
                rendered.append(f"{key} = {value}")
            lines.append("SETTINGS " + ", ".join(rendered))
        return "\n".join(lines)

    def to_drop_table_sql(self, if_exists: bool = False) -> str:
        return "DROP TABLE " + ("IF EXISTS " if if_exists else "") + quote_identifier(self.name)

    def get_column_sql(self, name: str) -> str:
        """Full definition of one column, as used after ``ALTER TABLE ... ADD COLUMN``."""
        column = self._require_column(name)
        sql = f"{quote_identifier(name)} {render_type(column)}"
        if not column.nullable:
            sql += " NOT NULL"
        if column.has_default:
            sql += f" DEFAULT {_default_literal(column.resolve_default())}"
        if column.comment:
            sql += f" COMMENT {_quote_text(column.comment)}"
        return sql

    # --- derived schemas ---

    def add_column(self, name: str, definition: Any) -> TableSchema:
        if self.has_column(name):
            raise SchemaError(f"Column '{name}' already exists in table '{self.name}'", self.name, name)
        column = ColumnDefinition.coerce(definition, name)
        validate_column_definition(name, column)
        return TableSchema(self.name, {**self.definition, name: column})

    def remove_column(self, name: str) -> TableSchema:
        self._require_column(name)
        return TableSchema(self.name, {key: column for key, column in self.columns if key != name})

    def modify_column(self, name: str, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> TableSchema:
        """New schema where column ``name`` has ``changes`` merged into its definition."""
        column = self._require_column(name).merged({**(changes or {}), **kwargs}, name)
        validate_column_definition(name, column)
        return TableSchema(self.name, {**self.definition, name: column})

    def clone(self, **modifications: Any) -> TableSchema:
        """New schema with whole column definitions replaced or added by name."""
        return TableSchema(self.name, {**self.definition, **modifications})

    # --- serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": {name: column.to_definition() for name, column in self.columns},
            "primary_key": self.primary_key,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TableSchema:
        return cls(data["name"], data["columns"])


class SchemaBuilder:
    """Fluent column-by-column schema definition.

    ``create_schema().uint("id", primary_key=True).string("name").build("users")``
    """

    def __init__(self):
        self._columns: dict[str, ColumnDefinition] = {}

    def column(self, name: str, definition: Any) -> SchemaBuilder:
        column = ColumnDefinition.coerce(definition, name)
        validate_column_definition(name, column)
        self._columns[name] = column
        return self

    def _typed(self, name: str, kind: DataType, options: dict[str, Any]) -> SchemaBuilder:
        return self.column(name, {**options, "type": kind})

    def int(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Int32, options)

    def uint(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.UInt32, options)

    def bigint(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Int64, options)

    def float(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Float64, options)

    def string(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.String, options)

    def boolean(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Boolean, options)

    def date(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Date, options)

    def datetime(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.DateTime, options)

    def uuid(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.UUID, options)

    def json(self, name: str, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.JSON, options)

    def array(self, name: str, element_type: DataType, **options: Any) -> SchemaBuilder:
        return self._typed(name, DataType.Array, {**options, "element_type": element_type})

    def enum(self, name: str, values: Iterable[str], **options: Any) -> SchemaBuilder:
        values = tuple(values)
        kind = DataType.Enum8 if len(values) <= ENUM_MAX_VALUES[DataType.Enum8] else DataType.Enum16
        return self._typed(name, kind, {**options, "enum_values": values})

    def get_schema(self) -> dict[str, ColumnDefinition]:
        return dict(self._columns)

    def build(self, table_name: str) -> TableSchema:
        return TableSchema(table_name, self._columns)


def create_schema() -> SchemaBuilder:
    return SchemaBuilder()


def define_schema(name: str, definition: Mapping[str, Any]) -> TableSchema:
    return TableSchema(name, definition)


def column(type: DataType, **options: Any) -> ColumnDefinition:
    """Shorthand for a column definition: ``column(DataType.UInt32, primary_key=True)``."""
    return ColumnDefinition.coerce({**options, "type": type})


__all__ = [
    "TableSchema",
    "SchemaBuilder",
    "create_schema",
    "define_schema",
    "column",
    "DEFAULT_ENGINE",
]
