"""Client: owns the model registry and talks to the execution collaborator.

The client never opens connections itself. It is given an ``Executor``
(anything with ``execute_query`` and ``execute_command``) and routes every
compiled statement through it.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from .errors import ModelError, OrmhouseError, QueryError, format_error
from .model import Model
from .schema import DEFAULT_ENGINE, TableSchema

logger = logging.getLogger("ormhouse")


@runtime_checkable
class Executor(Protocol):
    """What the client needs from whatever actually runs SQL.

    Both methods receive SQL containing ``{paramN:Type}`` placeholders and
    the matching ``{"paramN": value}`` mapping.
    """

    def execute_query(self, sql: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        ...  # pylint: disable=unnecessary-ellipsis

    def execute_command(self, sql: str, params: Mapping[str, Any]) -> None:
        ...  # pylint: disable=unnecessary-ellipsis


class ClientConfig(BaseModel):
    """Client settings."""

    database: Optional[str] = None
    """Database name, carried for the executor and for log records."""
    default_engine: str = DEFAULT_ENGINE
    """Table engine used by ``sync()`` when none is given."""
    log_queries: bool = True
    """Log each statement at DEBUG level."""


class Client:
    """Entry point: define models, run statements, create and drop tables.

    Each client has its own registry; two clients never see each other's models.
    """

    def __init__(self, executor: Executor, config: Optional[ClientConfig] = None):
        if not isinstance(executor, Executor):
            raise TypeError(
                f"executor must provide execute_query() and execute_command(); got {type(executor).__name__}"
            )
        self.executor = executor
        self.config = config or ClientConfig()
        self._models: dict[str, Model] = {}

    # --- registry ---

    def define(self, name: str, definition: Mapping[str, Any] | TableSchema) -> Model:
        """Register a table and return its Model. Redefining a name replaces it."""
        table = definition if isinstance(definition, TableSchema) else TableSchema(name, definition)
        if table.name != name:
            table = TableSchema(name, table.definition)
        model = Model(table=table, client=self)
        if name in self._models:
            logger.warning("Redefining model %s", name)
        self._models[name] = model
        logger.info("Defined model %s (%d columns)", name, len(table.columns))
        return model

    def model(self, name: str) -> Model:
        try:
            return self._models[name]
        except KeyError as error:
            raise ModelError(f"No model defined with name `{name}`", name) from error

    @property
    def models(self) -> dict[str, Model]:
        return dict(self._models)

    # --- execution ---

    def _log(self, kind: str, sql: str, params: Mapping[str, Any]) -> None:
        if self.config.log_queries:
            logger.debug("%s [%s] %s params=%s", kind, self.config.database or "-", sql, sorted(params))

    def _fail(self, sql: str, params: Mapping[str, Any], error: Exception) -> QueryError:
        wrapped = QueryError(f"Statement failed: {error}", sql, dict(params))
        logger.error("%s", format_error(wrapped))
        return wrapped

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> list[dict[str, Any]]:
        """Run a statement that returns rows."""
        params = dict(params or {})
        self._log("QUERY", sql, params)
        try:
            rows = self.executor.execute_query(sql, params)
        except OrmhouseError:
            raise
        except Exception as error:
            raise self._fail(sql, params, error) from error
        return list(rows or [])

    def command(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> None:
        """Run a statement that returns nothing (DDL, INSERT, ALTER ...)."""
        params = dict(params or {})
        self._log("COMMAND", sql, params)
        try:
            self.executor.execute_command(sql, params)
        except OrmhouseError:
            raise
        except Exception as error:
            raise self._fail(sql, params, error) from error

    # --- DDL ---

    def sync(self, if_not_exists: bool = True, engine: Optional[str] = None) -> None:
        """CREATE TABLE for every defined model, in definition order."""
        for name, model in self._models.items():
            logger.info("CREATE TABLE %s", name)
            sql = model.table.to_create_table_sql(
                engine=engine or self.config.default_engine,
                if_not_exists=if_not_exists,
            )
            self.command(sql)

    def drop(self, if_exists: bool = True) -> None:
        """DROP TABLE for every defined model."""
        for name, model in self._models.items():
            logger.info("DROP TABLE %s", name)
            self.command(model.table.to_drop_table_sql(if_exists=if_exists))


__all__ = ["Client", "ClientConfig", "Executor"]
