import pytest

from ormhouse import Client, ClientConfig, DataType


class RecordingExecutor:
    """Stands in for a database: records statements and returns canned rows."""

    def __init__(self):
        self.queries: list[tuple[str, dict]] = []
        self.commands: list[tuple[str, dict]] = []
        self.rows: list[dict] = []
        self.error: Exception | None = None

    def execute_query(self, sql, params):
        self.queries.append((sql, dict(params)))
        if self.error is not None:
            raise self.error
        return list(self.rows)

    def execute_command(self, sql, params):
        self.commands.append((sql, dict(params)))
        if self.error is not None:
            raise self.error


USERS = {
    "id": {"type": DataType.UInt32, "primaryKey": True},
    "name": {"type": DataType.String},
    "age": {"type": DataType.UInt8, "nullable": True},
}


@pytest.fixture(scope="function")
def executor():
    return RecordingExecutor()


@pytest.fixture(scope="function")
def client(executor):
    return Client(executor, ClientConfig(database="test"))


@pytest.fixture(scope="function")
def users(client):
    """`users` model: id (UInt32 primary key), name (String), age (nullable UInt8)."""
    return client.define("users", USERS)
