"""Query orchestration for one table.

``Model`` is a fluent, immutable query builder: every chainable call returns
a new Model carrying a deep copy of its ``QueryState``, so a partially built
query can be branched freely. Compilation is pure; execution goes through the
owning client's ``query``/``command``.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .errors import ModelError, ValidationError
from .schema import TableSchema
from .sql_builder import ORDER_DIRECTIONS, SQLBuilder, quote_identifier
from .type_mapper import from_wire_value, render_param_type, to_wire_value
from .validator import validate_partial_data, validate_query_options, validate_where_condition
from .where import WhereBuilder, WhereClause

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger("ormhouse")

AGGREGATE_FUNCTIONS = frozenset(("COUNT", "SUM", "AVG", "MIN", "MAX", "MEDIAN", "STDDEV"))


class QueryState(BaseModel):
    """Everything a chain of builder calls has accumulated so far."""

    model_config = {"arbitrary_types_allowed": True}

    where_conditions: list[Any] = Field(default_factory=list)
    """Condition trees, ANDed together."""
    select_fields: Optional[list[str]] = None
    """Selected columns; None selects ``*``."""
    order_by_fields: list[tuple[str, str]] = Field(default_factory=list)
    """(field, direction) pairs in order."""
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    group_by_fields: Optional[list[str]] = None

    def clone(self, **changes: Any) -> QueryState:
        """Deep copy with ``changes`` applied; the copy shares nothing with self."""
        data = {name: copy.deepcopy(getattr(self, name)) for name in type(self).model_fields}
        data.update(copy.deepcopy(changes))
        return type(self)(**data)


class Model(BaseModel):
    """Query builder and CRUD entry point for a single table."""

    model_config = {"arbitrary_types_allowed": True}

    table: TableSchema
    client: Optional[Any] = Field(default=None, exclude=True)
    """Owning ``Client``; required only for execution."""
    state: QueryState = Field(default_factory=QueryState)

    @property
    def name(self) -> str:
        return self.table.name

    def clone_query_with(self, **changes: Any) -> Model:
        """Return a new Model with the same table and client and an updated copy of the state."""
        return type(self)(table=self.table, client=self.client, state=self.state.clone(**changes))

    def _check_field(self, field: str) -> str:
        if not self.table.has_column(field):
            raise ValidationError(f"Unknown field '{field}' for table '{self.name}'", field)
        return field

    # --- chainable ---

    def where(self, condition: Any = None, **fields: Any) -> Model:
        """Add a condition (mapping or tagged node) and/or field equalities.

        Examples:
            where({"age": {"gt": 18}})
            where(status="active")
            where(or_({"role": "admin"}, {"age": gte(21)}))
        """
        conditions = list(self.state.where_conditions)
        if condition is not None:
            validate_where_condition(condition)
            conditions.append(condition)
        if fields:
            validate_where_condition(fields)
            conditions.append(dict(fields))
        return self.clone_query_with(where_conditions=conditions)

    def filter(self, condition: Any = None, **fields: Any) -> Model:
        """Alias for where()."""
        return self.where(condition, **fields)

    def select(self, *fields: str) -> Model:
        return self.clone_query_with(select_fields=[self._check_field(f) for f in fields] or None)

    def order_by(self, field: str, direction: str = "ASC") -> Model:
        direction = direction.upper()
        if direction not in ORDER_DIRECTIONS:
            raise ValidationError(f"Invalid ORDER BY direction: {direction}", "direction", direction)
        order = list(self.state.order_by_fields) + [(self._check_field(field), direction)]
        return self.clone_query_with(order_by_fields=order)

    def limit(self, count: int) -> Model:
        validate_query_options(limit=count)
        return self.clone_query_with(limit_value=count)

    def offset(self, count: int) -> Model:
        validate_query_options(offset=count)
        return self.clone_query_with(offset_value=count)

    def group_by(self, *fields: str) -> Model:
        return self.clone_query_with(group_by_fields=[self._check_field(f) for f in fields])

    def reset(self) -> Model:
        """Same table and client, empty state."""
        return type(self)(table=self.table, client=self.client)

    # --- compilation ---

    def _where_condition(self, override: Any = None) -> Any:
        if override is not None:
            return override
        conditions = self.state.where_conditions
        if not conditions:
            return None
        if len(conditions) == 1:
            return conditions[0]
        return {"and": list(conditions)}

    def compile_where(self, condition: Any = None, starting_param_index: int = 0) -> WhereClause:
        """WHERE clause for ``condition``, or for the accumulated conditions when None."""
        return WhereBuilder(starting_param_index).build(self._where_condition(condition))

    def _apply_where(self, builder: SQLBuilder, condition: Any = None) -> dict[str, Any]:
        clause = self.compile_where(condition, builder.next_param_index)
        if not clause.is_trivial:
            builder.where(clause.sql)
        return clause.params

    def _select_builder(self) -> tuple[SQLBuilder, dict[str, Any]]:
        builder = SQLBuilder().select(self.state.select_fields).from_(self.name)
        params = self._apply_where(builder)
        if self.state.group_by_fields:
            builder.group_by(self.state.group_by_fields)
        for field, direction in self.state.order_by_fields:
            builder.order_by(field, direction)
        if self.state.limit_value is not None:
            builder.limit(self.state.limit_value)
        if self.state.offset_value is not None:
            builder.offset(self.state.offset_value)
        return builder, params

    @property
    def sql(self) -> str:
        """SELECT statement for the current state."""
        return self._select_builder()[0].build().sql

    @property
    def params(self) -> dict[str, Any]:
        """Named parameters of the SELECT statement."""
        return self._select_builder()[1]

    def select_query(self) -> tuple[str, dict[str, Any]]:
        builder, params = self._select_builder()
        return builder.build().sql, params

    def count_query(self) -> tuple[str, dict[str, Any]]:
        builder = SQLBuilder().select_raw("COUNT(*) AS `count`").from_(self.name)
        params = self._apply_where(builder)
        return builder.build().sql, params

    def aggregate_query(self, aggregates: Mapping[str, tuple[str, str]]) -> tuple[str, dict[str, Any]]:
        if not aggregates:
            raise ValidationError("aggregate requires at least one aggregation", "aggregates")
        expressions = []
        for alias, (function, field) in aggregates.items():
            function = function.upper()
            if function not in AGGREGATE_FUNCTIONS:
                raise ValidationError(f"Unknown aggregate function: {function}", alias, function)
            target = "*" if field == "*" else quote_identifier(self._check_field(field))
            expressions.append(f"{function}({target}) AS {quote_identifier(alias)}")
        builder = SQLBuilder().select_raw(*expressions).from_(self.name)
        params = self._apply_where(builder)
        if self.state.group_by_fields:
            builder.group_by(self.state.group_by_fields)
        return builder.build().sql, params

    def _require_where(self, operation: str, condition: Any) -> Any:
        condition = self._where_condition(condition)
        # a condition compiling to 1=1 would be dropped and hit every row
        if condition is None or self.compile_where(condition).is_trivial:
            raise ModelError(
                f"{operation} requires a WHERE condition; pass one or chain .where() first", self.name
            )
        return condition

    def _wire_types(self, fields: Iterable[str]) -> dict[str, str]:
        return {field: render_param_type(self.table.definition[field]) for field in fields}

    def _to_wire(self, field: str, value: Any) -> Any:
        column = self.table.definition[field]
        return to_wire_value(value, column.type, column.element_type)

    def update_query(self, data: Mapping[str, Any], where: Any = None) -> tuple[str, dict[str, Any]]:
        """UPDATE statement; SET values take ``param0..`` and the WHERE continues the numbering."""
        if not data:
            raise ModelError("UPDATE requires at least one field to update", self.name)
        condition = self._require_where("UPDATE", where)
        for field in data:
            self._check_field(field)
        values = {field: self._to_wire(field, value) for field, value in data.items()}
        builder = SQLBuilder().update(self.name).set(values, self._wire_types(values))
        where_params = self._apply_where(builder, condition)
        built = builder.build()
        return built.sql, {**built.named_params(), **where_params}

    def delete_query(self, where: Any = None) -> tuple[str, dict[str, Any]]:
        condition = self._require_where("DELETE", where)
        builder = SQLBuilder().delete_from(self.name)
        params = self._apply_where(builder, condition)
        return builder.build().sql, params

    def prepare_record(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Record with defaults filled in for absent fields."""
        record = dict(data)
        for name, column in self.table.columns:
            if column.has_default and record.get(name) is None:
                record[name] = column.resolve_default()
        return record

    def insert_query(self, records: Sequence[Mapping[str, Any]]) -> tuple[str, dict[str, Any]]:
        """INSERT of already prepared records; columns follow declaration order."""
        if not records:
            raise ValidationError("INSERT requires at least one record", "records")
        present = set()
        for record in records:
            present.update(record)
        for field in present:
            self._check_field(field)
        columns = [name for name in self.table.column_names if name in present]
        rows = [[self._to_wire(name, record.get(name)) for name in columns] for record in records]
        wire_types = self._wire_types(columns)
        built = SQLBuilder().insert_into(self.name, columns).values(rows, [wire_types[c] for c in columns]).build()
        return built.sql, built.named_params()

    # --- execution ---

    @property
    def _client(self) -> Client:
        if self.client is None:
            raise ModelError(f"Model '{self.name}' is not bound to a client", self.name)
        return self.client

    def instance_from_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Convert a result row into Python values; unknown columns (aliases, aggregates) pass through."""
        record = {}
        for key, value in row.items():
            column = self.table.get_column(key)
            record[key] = value if column is None else from_wire_value(value, column.type, column.element_type)
        return record

    def iter(self) -> Iterator[dict[str, Any]]:
        sql, params = self.select_query()
        for row in self._client.query(sql, params):
            yield self.instance_from_row(row)

    def all(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        model = self if limit is None else self.limit(limit)
        return list(model.iter())

    def first(self) -> Optional[dict[str, Any]]:
        for record in self.limit(1).iter():
            return record
        return None

    def find(self, condition: Any = None, **fields: Any) -> list[dict[str, Any]]:
        return self.where(condition, **fields).all()

    def find_one(self, condition: Any = None, **fields: Any) -> Optional[dict[str, Any]]:
        return self.where(condition, **fields).first()

    def find_by_pk(self, value: Any) -> Optional[dict[str, Any]]:
        primary_key = self.table.primary_key
        if primary_key is None:
            raise ModelError(f"No primary key defined for table {self.name}", self.name)
        return self.find_one({primary_key: value})

    def count(self, condition: Any = None) -> int:
        model = self if condition is None else self.where(condition)
        sql, params = model.count_query()
        rows = self._client.query(sql, params)
        if not rows:
            return 0
        return int(rows[0].get("count", 0))

    def exists(self) -> bool:
        return self.count() > 0

    def aggregate(self, **aggregates: tuple[str, str]) -> dict[str, Any]:
        """Run aggregations, e.g. ``aggregate(total=("SUM", "amount"), n=("COUNT", "*"))``."""
        sql, params = self.aggregate_query(aggregates)
        rows = self._client.query(sql, params)
        return dict(rows[0]) if rows else {}

    def create(
        self,
        data: Mapping[str, Any],
        validate: bool = True,
        fields: Optional[Sequence[str]] = None,
    ) -> dict[str, Any]:
        """Insert one record and return it with defaults filled in."""
        record = self.prepare_record(data)
        if validate:
            self.table.validate(record)
        if fields is not None:
            record = {name: value for name, value in record.items() if name in fields}
        sql, params = self.insert_query([record])
        self._client.command(sql, params)
        return record

    def bulk_create(
        self,
        records: Sequence[Mapping[str, Any]],
        validate: bool = True,
        batch_size: int = 1000,
    ) -> list[dict[str, Any]]:
        """Insert many records, one INSERT statement per batch."""
        if not records:
            raise ValidationError("bulk_create requires at least one record", "records")
        if batch_size <= 0:
            raise ValidationError("batch_size must be positive", "batch_size", batch_size)
        prepared = [self.prepare_record(record) for record in records]
        if validate:
            for record in prepared:
                self.table.validate(record)
        for start in range(0, len(prepared), batch_size):
            sql, params = self.insert_query(prepared[start:start + batch_size])
            self._client.command(sql, params)
        return prepared

    def update(self, data: Mapping[str, Any], where: Any = None) -> None:
        """UPDATE matching rows. ``None`` for a non-nullable field leaves that field untouched."""
        definition = self.table.definition
        validate_partial_data(data, definition)
        data = {name: value for name, value in data.items() if value is not None or definition[name].nullable}
        sql, params = self.update_query(data, where)
        self._client.command(sql, params)

    def destroy(self, where: Any = None, truncate: bool = False) -> None:
        """DELETE matching rows; ``truncate=True`` empties the table instead."""
        if truncate:
            self.truncate()
            return
        sql, params = self.delete_query(where)
        self._client.command(sql, params)

    def truncate(self) -> None:
        logger.info("TRUNCATE TABLE %s", self.name)
        self._client.command(f"TRUNCATE TABLE {quote_identifier(self.name)}", {})

    def raw(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> list[dict[str, Any]]:
        """Run arbitrary SQL through the client; rows are returned unconverted."""
        return self._client.query(sql, dict(params or {}))


__all__ = ["Model", "QueryState", "AGGREGATE_FUNCTIONS"]
