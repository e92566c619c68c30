"""ormhouse: typed query construction for ClickHouse, built on Pydantic."""

from .errors import (
    OrmhouseError,
    ValidationError,
    TypeMappingError,
    SchemaError,
    QueryError,
    ModelError,
    format_error,
)
from .types import DataType, ColumnDefinition, LiteralDefault, GeneratorDefault
from .type_mapper import (
    render_type,
    to_wire_value,
    from_wire_value,
    is_valid,
    infer_type,
    default_for,
    compatible,
)
from .validator import validate_data, validate_partial_data, create_rule, apply_rules
from .sql_builder import SQLBuilder, BuiltQuery, quote_identifier
from .expressions import (
    LiteralValue,
    OperatorSet,
    RawExpression,
    raw,
    And,
    Or,
    Not,
    and_,
    or_,
    not_,
    eq,
    ne,
    gt,
    gte,
    lt,
    lte,
    in_,
    not_in,
    like,
    not_like,
    ilike,
    between,
    is_null,
    is_not_null,
)
from .where import WhereBuilder, WhereClause, build_where_clause
from .schema import TableSchema, SchemaBuilder, create_schema, define_schema, column
from .model import Model, QueryState
from .client import Client, ClientConfig, Executor
