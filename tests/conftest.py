# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# This file contains shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - clean_environment (autouse)
#     Drop PGDRIFT_* / PG* / DATABASE_URL from the environment, reset
#     the config singleton and detach CLI log handlers.
#
# - fake_client_factory
#     Build a FakeClient: an in-memory stand-in for PostgresClient
#     that records every query and serves canned catalog rows and
#     documents. No PostgreSQL server is needed.
#
# - sample_documents / user_documents
#     Small realistic jsonb payloads.
#
# - analyze_documents
#     Helper that runs the analyzer and returns finalized stats.
#
# ==============================================

import logging
import os

import pytest

from pgdrift.analysis.json_analyzer import JsonAnalyzer
from pgdrift.config import reset_config
from pgdrift.errors import DatabaseError


def build_stats(documents):
    """Analyze documents and return the finalized path → FieldStats map."""
    analyzer = JsonAnalyzer()
    analyzer.analyze_many(documents)
    return analyzer.finalize()


def _for_table(value, query):
    # dict values are keyed by table name, matched against the quoted identifier
    if isinstance(value, dict):
        for table, table_value in value.items():
            if f'"{table}"' in query:
                return table_value
        return None
    return value


class FakeClient:
    """
    Records queries and answers them from canned data.

    Args:
        documents: list of documents, or {table: [documents]}
        row_count: int, or {table: int}, returned for COUNT(*)
        primary_key: str / None, or {table: str}
        columns: rows for jsonb discovery
        estimate: reltuples value
        failing_tables: tables whose sampling query raises DatabaseError
    """

    def __init__(
        self,
        documents=None,
        row_count=0,
        primary_key=None,
        columns=None,
        estimate=None,
        failing_tables=(),
    ):
        self.documents = documents if documents is not None else []
        self.row_count = row_count
        self.primary_key = primary_key
        self.columns = columns or []
        self.estimate = estimate
        self.failing_tables = set(failing_tables)

        self.queries = []
        self.streamed_queries = []
        self.itersizes = []
        self.open_streams = 0
        self.connected = False

    def fetch_all(self, query, params=None):
        self.queries.append((query, params))

        if "information_schema.columns" in query:
            return [dict(row) for row in self.columns]
        if "pg_index" in query:
            pk = _for_table(self.primary_key, params[0] if params else "")
            return [{"column_name": pk}] if pk else []
        if "reltuples" in query:
            return [{"estimate": self.estimate}]
        if "COUNT(*)" in query:
            return [{"row_count": _for_table(self.row_count, query)}]

        raise AssertionError(f"Unexpected query: {query}")

    def fetch_one(self, query, params=None):
        rows = self.fetch_all(query, params)
        return rows[0] if rows else None

    def fetch_scalar(self, query, params=None):
        row = self.fetch_one(query, params)
        if row is None:
            return None
        return next(iter(row.values()), None)

    def stream(self, query, params=None, itersize=1000):
        self.streamed_queries.append(query)
        self.itersizes.append(itersize)
        self.open_streams += 1
        try:
            for table in self.failing_tables:
                if f'"{table}"' in query:
                    raise DatabaseError(f'relation "{table}" does not exist')
            for document in _for_table(self.documents, query) or []:
                yield document
        finally:
            self.open_streams -= 1

    def __enter__(self):
        self.connected = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.connected = False


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate every test from the developer's environment and config cache."""
    for name in list(os.environ):
        if name.startswith("PGDRIFT_") or name.startswith("PG") or name == "DATABASE_URL":
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
    pgdrift_logger = logging.getLogger("pgdrift")
    for handler in list(pgdrift_logger.handlers):
        pgdrift_logger.removeHandler(handler)
    pgdrift_logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_client_factory():
    """Return the FakeClient class so tests can build configured instances."""
    return FakeClient


@pytest.fixture
def sample_documents():
    """A small set of user profile payloads with some drift."""
    return [
        {"name": "Alice", "age": 30, "email": "alice@example.com",
         "addresses": [{"city": "Paris"}, {"city": "Lyon"}]},
        {"name": "Bob", "age": "31", "email": "bob@example.com"},
        {"name": "Carol", "age": 42, "old_email": "carol@old.example.com",
         "email": "carol@example.com"},
        {"name": "Dan", "age": None, "version": 2, "addresses": []},
    ]


@pytest.fixture
def user_documents():
    """200 uniform user documents: name/email everywhere, plan on 10%."""
    documents = []
    for i in range(200):
        document = {
            "name": f"user{i}",
            "email": f"user{i}@example.com",
            "score": i,
        }
        if i % 10 == 0:
            document["plan"] = "pro"
        documents.append(document)
    return documents


@pytest.fixture
def analyze_documents():
    """Return a helper: documents → finalized stats map."""
    return build_stats
