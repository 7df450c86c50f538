# ==============================================
# Tests for PostgresClient
# ==============================================
#
# psycopg2.connect is monkeypatched with an in-memory connection,
# so these run without a PostgreSQL server.
#
# ==============================================

import psycopg2
import pytest

from pgdrift.config import DatabaseConfig
from pgdrift.db.postgres_client import PostgresClient
from pgdrift.errors import DatabaseError


class StubCursor:
    def __init__(self, connection, name=None):
        self.connection = connection
        self.name = name
        self.itersize = None
        self.closed = False
        self.description = None
        self._rows = []

    def execute(self, query, params=None):
        self.connection.executed.append((query, params))
        if self.connection.fail_with is not None:
            raise self.connection.fail_with
        self._rows = list(self.connection.rows)
        self.description = [("col",)]

    def fetchall(self):
        return self._rows

    def __iter__(self):
        return iter(self._rows)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class StubConnection:
    def __init__(self, rows=(), fail_with=None):
        self.rows = list(rows)
        self.fail_with = fail_with
        self.executed = []
        self.cursors = []
        self.session = {}
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, name=None, cursor_factory=None):
        cursor = StubCursor(self, name=name)
        self.cursors.append(cursor)
        return cursor

    def set_session(self, **kwargs):
        self.session.update(kwargs)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = 1


@pytest.fixture
def connect(monkeypatch):
    """Patch psycopg2.connect; returns a list of (args, kwargs) per call."""
    calls = []

    def install(connection):
        def fake_connect(*args, **kwargs):
            calls.append((args, kwargs))
            return connection
        monkeypatch.setattr(psycopg2, "connect", fake_connect)
        return calls

    return install


class TestConnection:

    def test_dsn_wins(self, connect):
        calls = connect(StubConnection())
        with PostgresClient(dsn="postgresql://db/app", host="ignored"):
            pass

        assert calls[0][0] == ("postgresql://db/app",)
        assert calls[0][1] == {"connect_timeout": 30}

    def test_discrete_params_from_config(self, connect):
        calls = connect(StubConnection())
        config = DatabaseConfig(host="db", port=6543, user="u", database="app", connect_timeout=5)

        with PostgresClient.from_config(config):
            pass

        assert calls[0][1] == {
            "host": "db",
            "port": 6543,
            "user": "u",
            "password": None,
            "dbname": "app",
            "connect_timeout": 5,
        }

    def test_session_is_read_only(self, connect):
        connection = StubConnection()
        connect(connection)

        with PostgresClient(dsn="postgresql://db/app"):
            assert connection.session == {"readonly": True}
        assert connection.closed

    def test_connect_failure(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise psycopg2.OperationalError("connection refused")
        monkeypatch.setattr(psycopg2, "connect", refuse)

        with pytest.raises(DatabaseError, match="Failed to connect to PostgreSQL"):
            PostgresClient(dsn="postgresql://db/app").connect()


class TestQueries:

    def test_fetch_helpers(self, connect):
        connect(StubConnection(rows=[{"n": 3}]))
        client = PostgresClient(dsn="postgresql://db/app")

        assert client.fetch_all("SELECT 3 AS n") == [{"n": 3}]
        assert client.fetch_one("SELECT 3 AS n") == {"n": 3}
        assert client.fetch_scalar("SELECT 3 AS n") == 3

    def test_query_failure_rolls_back(self, connect):
        connection = StubConnection(fail_with=psycopg2.ProgrammingError("syntax error"))
        connect(connection)
        client = PostgresClient(dsn="postgresql://db/app")

        with pytest.raises(DatabaseError, match="Query failed"):
            client.fetch_all("SELEC 1")
        assert connection.rollbacks == 1


class TestStream:

    def test_uses_named_cursor(self, connect):
        connection = StubConnection(rows=[({"a": 1},), ({"a": 2},)])
        connect(connection)
        client = PostgresClient(dsn="postgresql://db/app")

        documents = list(client.stream('SELECT "m" FROM "t"', itersize=10))

        assert documents == [{"a": 1}, {"a": 2}]
        cursor = connection.cursors[0]
        assert cursor.name.startswith("pgdrift_stream_")
        assert cursor.itersize == 10
        assert cursor.closed

    def test_cursor_names_are_unique(self, connect):
        connection = StubConnection(rows=[(1,)])
        connect(connection)
        client = PostgresClient(dsn="postgresql://db/app")

        list(client.stream("SELECT 1"))
        list(client.stream("SELECT 1"))

        assert connection.cursors[0].name != connection.cursors[1].name

    def test_early_close_releases_cursor(self, connect):
        connection = StubConnection(rows=[(1,), (2,), (3,)])
        connect(connection)
        stream = PostgresClient(dsn="postgresql://db/app").stream("SELECT 1")

        assert next(stream) == 1
        stream.close()

        assert connection.cursors[0].closed
        assert connection.rollbacks == 1

    def test_failure_is_wrapped(self, connect):
        connect(StubConnection(fail_with=psycopg2.ProgrammingError("relation \"t\" does not exist")))
        stream = PostgresClient(dsn="postgresql://db/app").stream("SELECT 1")

        with pytest.raises(DatabaseError, match="Sampling query failed"):
            list(stream)
