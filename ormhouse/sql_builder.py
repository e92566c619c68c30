"""Low-level statement assembler.

``SQLBuilder`` collects clause fragments and renders one statement. Values
given to ``values()``/``set()`` become ``{paramN:Type}`` placeholders and are
returned positionally by ``build()``; ``BuiltQuery.named_params`` turns them
into the ``param0, param1, ...`` mapping the execution side expects.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .errors import ValidationError
from .type_mapper import param_type
from .validator import is_valid_identifier

ORDER_DIRECTIONS = ("ASC", "DESC")


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, rejecting anything outside the identifier grammar."""
    if not is_valid_identifier(name):
        raise ValidationError(f"Invalid SQL identifier: {name}", "identifier", name)
    return f"`{name}`"


def param_name(index: int) -> str:
    return f"param{index}"


def placeholder(index: int, type_name: str) -> str:
    return "{" + param_name(index) + ":" + type_name + "}"


def positional_to_named(values: Sequence[Any], start: int = 0) -> dict[str, Any]:
    """Map positional values to ``{"param<start>": v0, "param<start+1>": v1, ...}``."""
    return {param_name(start + i): value for i, value in enumerate(values)}


class BuiltQuery(BaseModel):
    """A rendered statement and its positional parameter values."""

    model_config = {"arbitrary_types_allowed": True}

    sql: str
    params: list[Any] = Field(default_factory=list)

    def named_params(self, start: int = 0) -> dict[str, Any]:
        return positional_to_named(self.params, start)


class SQLBuilder:
    """Chainable builder for SELECT / INSERT / UPDATE / DELETE statements.

    Placeholders are numbered from ``start_param_index`` so that fragments
    compiled elsewhere (e.g. a WHERE clause) can continue the numbering.
    """

    def __init__(self, start_param_index: int = 0):
        self._start = start_param_index
        self._statement: Optional[str] = None
        self._table: Optional[str] = None
        self._select: list[str] = []
        self._raw: list[str] = []
        self._insert_columns: list[str] = []
        self._value_rows: list[str] = []
        self._assignments: list[str] = []
        self._where: list[str] = []
        self._group_by: list[str] = []
        self._order_by: list[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._params: list[Any] = []

    @staticmethod
    def identifier(name: str) -> str:
        return quote_identifier(name)

    @property
    def next_param_index(self) -> int:
        """Index the next bound value would get."""
        return self._start + len(self._params)

    def _bind(self, value: Any, type_name: Optional[str] = None) -> str:
        index = self.next_param_index
        self._params.append(value)
        return placeholder(index, type_name or param_type(value))

    def _field(self, name: str) -> str:
        return "*" if name == "*" else quote_identifier(name)

    # --- SELECT ---

    def select(self, fields: Optional[Iterable[str]] = None) -> SQLBuilder:
        self._statement = "SELECT"
        self._select = [self._field(f) for f in (fields or ["*"])]
        return self

    def select_raw(self, *expressions: str) -> SQLBuilder:
        """Select verbatim expressions, e.g. ``COUNT(*) AS `count```."""
        self._statement = "SELECT"
        self._select = list(expressions)
        return self

    def raw(self, sql: str) -> SQLBuilder:
        """Append a verbatim fragment at the end of the statement (e.g. ``SETTINGS ...``)."""
        self._raw.append(sql)
        return self

    def from_(self, table: str) -> SQLBuilder:
        self._table = quote_identifier(table)
        return self

    def where(self, sql: str) -> SQLBuilder:
        if sql:
            self._where.append(sql)
        return self

    def group_by(self, fields: Iterable[str]) -> SQLBuilder:
        self._group_by.extend(quote_identifier(f) for f in fields)
        return self

    def order_by(self, field: str, direction: str = "ASC") -> SQLBuilder:
        direction = direction.upper()
        if direction not in ORDER_DIRECTIONS:
            raise ValidationError(f"Invalid ORDER BY direction: {direction}", "direction", direction)
        self._order_by.append(f"{quote_identifier(field)} {direction}")
        return self

    def limit(self, count: int) -> SQLBuilder:
        self._limit = int(count)
        return self

    def offset(self, count: int) -> SQLBuilder:
        self._offset = int(count)
        return self

    # --- INSERT ---

    def insert_into(self, table: str, columns: Iterable[str]) -> SQLBuilder:
        self._statement = "INSERT"
        self._table = quote_identifier(table)
        self._insert_columns = [quote_identifier(c) for c in columns]
        return self

    def values(self, rows: Iterable[Sequence[Any]], types: Optional[Sequence[str]] = None) -> SQLBuilder:
        """Add value rows; ``types`` gives the placeholder type per column (else inferred)."""
        for row in rows:
            if len(row) != len(self._insert_columns):
                raise ValidationError(
                    f"Expected {len(self._insert_columns)} values per row, got {len(row)}", "values", row
                )
            placeholders = [
                self._bind(value, types[i] if types else None)
                for i, value in enumerate(row)
            ]
            self._value_rows.append("(" + ", ".join(placeholders) + ")")
        return self

    # --- UPDATE / DELETE ---

    def update(self, table: str) -> SQLBuilder:
        self._statement = "UPDATE"
        self._table = quote_identifier(table)
        return self

    def set(self, data: Mapping[str, Any], types: Optional[Mapping[str, str]] = None) -> SQLBuilder:
        for name, value in data.items():
            type_name = types.get(name) if types else None
            self._assignments.append(f"{quote_identifier(name)} = {self._bind(value, type_name)}")
        return self

    def delete_from(self, table: str) -> SQLBuilder:
        self._statement = "DELETE"
        self._table = quote_identifier(table)
        return self

    # --- rendering ---

    def _sql_tail(self) -> list[str]:
        parts = []
        if self._where:
            parts.append("WHERE " + " AND ".join(self._where))
        if self._group_by:
            parts.append("GROUP BY " + ", ".join(self._group_by))
        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))
        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")
        if self._offset is not None:
            parts.append(f"OFFSET {self._offset}")
        return parts

    def _require_table(self) -> str:
        if self._table is None:
            raise ValidationError("Statement has no table", "table")
        return self._table

    def build(self) -> BuiltQuery:
        if self._statement == "INSERT":
            if not self._value_rows:
                raise ValidationError("INSERT requires at least one row of values", "values")
            sql = (
                f"INSERT INTO {self._require_table()} ({', '.join(self._insert_columns)}) "
                f"VALUES {', '.join(self._value_rows)}"
            )
            return BuiltQuery(sql=sql, params=list(self._params))

        if self._statement == "UPDATE":
            if not self._assignments:
                raise ValidationError("UPDATE requires at least one assignment", "set")
            parts = [f"UPDATE {self._require_table()} SET " + ", ".join(self._assignments)]
        elif self._statement == "DELETE":
            parts = [f"DELETE FROM {self._require_table()}"]
        else:
            parts = ["SELECT " + ", ".join(self._select or ["*"]), f"FROM {self._require_table()}"]
        parts.extend(self._sql_tail())
        parts.extend(self._raw)
        return BuiltQuery(sql=" ".join(parts), params=list(self._params))


__all__ = [
    "SQLBuilder",
    "BuiltQuery",
    "quote_identifier",
    "param_name",
    "placeholder",
    "positional_to_named",
    "ORDER_DIRECTIONS",
]
