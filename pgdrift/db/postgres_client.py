# ==============================================
# PostgresClient
# ==============================================
#
# PURPOSE:
#   Manages the PostgreSQL connection and every read query pgdrift
#   issues. pgdrift never writes: index DDL is returned as text.
#
# CLASS: PostgresClient
# ---------------------
#   Stateful: holds one psycopg2 connection.
#
#   Constructor:
#   ------------
#   - __init__(dsn=None, host, port, user, password, database, connect_timeout)
#       Store connection params. Don't connect yet.
#       A DSN / URL ("postgresql://...") wins over the discrete params.
#
#   - from_config(config: DatabaseConfig) -> PostgresClient  (classmethod)
#
#   Methods:
#   --------
#   - connect() -> None
#   - close() -> None
#
#   - fetch_all(query, params=None) -> list[dict]
#       Execute SELECT and return rows as dicts.
#
#   - fetch_one(query, params=None) -> dict | None
#
#   - fetch_scalar(query, params=None) -> Any
#       First column of the first row, or None.
#
#   - stream(query, params=None, itersize=1000) -> Iterator[Any]
#       Lazily yield the first column of every row through a named
#       (server-side) cursor, so only `itersize` rows are held in
#       memory at a time. Closing the generator closes the cursor.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with PostgresClient(...) as db:` usage.
#
#   Every psycopg2.Error is re-raised as pgdrift.errors.DatabaseError.
#
# ==============================================

import itertools
import logging
from typing import Any, Dict, Iterator, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from pgdrift.errors import DatabaseError

logger = logging.getLogger(__name__)

# Server-side cursor names must be unique per connection
_cursor_ids = itertools.count(1)


class PostgresClient:
    """
    Read-only PostgreSQL access for sampling and catalog queries.

    Usage:
        with PostgresClient("postgresql://localhost/app") as db:
            rows = db.fetch_all("SELECT 1 AS one")
            for doc in db.stream('SELECT "data" FROM "events"'):
                ...
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: str = "localhost",
        port: int = 5432,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        connect_timeout: int = 30,
    ):
        self.dsn = dsn
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connect_timeout = connect_timeout
        self.connection = None

    @classmethod
    def from_config(cls, config) -> "PostgresClient":
        """
        Build a client from a DatabaseConfig.

        Args:
            config: pgdrift.config.DatabaseConfig
        """
        return cls(
            dsn=config.url,
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            connect_timeout=config.connect_timeout,
        )

    # ======================================
    # Connection lifecycle
    # ======================================
    def connect(self) -> None:
        """Open the connection. No-op when already connected."""
        if self.connection is not None and not self.connection.closed:
            return

        try:
            if self.dsn:
                self.connection = psycopg2.connect(
                    self.dsn, connect_timeout=self.connect_timeout
                )
            else:
                self.connection = psycopg2.connect(
                    host=self.host,
                    port=self.port,
                    user=self.user,
                    password=self.password,
                    dbname=self.database,
                    connect_timeout=self.connect_timeout,
                )
        except psycopg2.Error as exc:
            raise DatabaseError(f"Failed to connect to PostgreSQL: {exc}") from exc

        # Sampling never writes, let the server enforce it
        self.connection.set_session(readonly=True)
        logger.debug("Connected to PostgreSQL (%s)", self._target())

    def close(self) -> None:
        """Close the connection cleanly."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def _target(self) -> str:
        if self.dsn:
            return "dsn"
        return f"{self.host}:{self.port}/{self.database}"

    def _ensure_connected(self):
        if self.connection is None or self.connection.closed:
            self.connect()
        return self.connection

    # ======================================
    # Queries
    # ======================================
    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """
        Execute a SELECT and return all rows as dicts.

        Raises:
            DatabaseError: If the query fails
        """
        conn = self._ensure_connected()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
            conn.commit()
            return rows
        except psycopg2.Error as exc:
            conn.rollback()
            raise DatabaseError(f"Query failed: {exc}") from exc

    def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """Execute a SELECT and return the first row, or None."""
        rows = self.fetch_all(query, params)
        return rows[0] if rows else None

    def fetch_scalar(self, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a SELECT and return the first column of the first row, or None."""
        row = self.fetch_one(query, params)
        if row is None:
            return None
        return next(iter(row.values()), None)

    def stream(
        self,
        query: str,
        params: Optional[tuple] = None,
        itersize: int = 1000,
    ) -> Iterator[Any]:
        """
        Lazily yield the first column of every row.

        jsonb values arrive already decoded (dict / list / scalars).

        Args:
            query: SELECT whose first column is yielded
            params: Optional query parameters
            itersize: Rows fetched per network round trip

        Yields:
            Decoded first-column values

        Raises:
            DatabaseError: If the query fails
        """
        conn = self._ensure_connected()
        cursor = conn.cursor(name=f"pgdrift_stream_{next(_cursor_ids)}")
        cursor.itersize = itersize
        try:
            cursor.execute(query, params)
            for row in cursor:
                yield row[0]
        except psycopg2.Error as exc:
            raise DatabaseError(f"Sampling query failed: {exc}") from exc
        finally:
            # Runs on exhaustion, on error and when the consumer stops early
            if not cursor.closed:
                cursor.close()
            if not conn.closed:
                conn.rollback()

    def __enter__(self) -> "PostgresClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
