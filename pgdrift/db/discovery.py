# ==============================================
# Catalog discovery
# ==============================================
#
# PURPOSE:
#   Catalog lookups the sampler and the scan-all sweep rely on:
#     - which jsonb columns exist
#     - how many rows a table has (estimated and exact)
#     - whether a table has a single-column integer primary key
#
# FUNCTIONS:
# ----------
# - discover_jsonb_columns(client) -> list[JsonbColumn]
# - estimate_row_count(client, schema, table) -> int | None
# - get_row_count(client, schema, table) -> int
# - find_primary_key(client, schema, table) -> str | None
#
#   `client` is anything with fetch_all / fetch_one / fetch_scalar,
#   normally a PostgresClient.
#
# ==============================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pgdrift.errors import DatabaseError, SamplingError
from pgdrift.utils.naming import qualified_name

logger = logging.getLogger(__name__)


@dataclass
class JsonbColumn:
    """A jsonb column found in the catalog."""
    schema: str
    table: str
    column: str
    estimated_rows: Optional[int] = None

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.table}.{self.column}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "table": self.table,
            "column": self.column,
            "estimated_rows": self.estimated_rows,
        }


DISCOVER_JSONB_COLUMNS_SQL = """
    SELECT
        c.table_schema AS schema,
        c.table_name AS "table",
        c.column_name AS "column",
        s.n_live_tup AS estimated_rows
    FROM information_schema.columns c
    LEFT JOIN pg_stat_user_tables s
        ON s.schemaname = c.table_schema
       AND s.relname = c.table_name
    WHERE c.data_type = 'jsonb'
      AND c.table_schema NOT IN ('pg_catalog', 'information_schema')
    ORDER BY c.table_schema, c.table_name, c.column_name
"""

ESTIMATE_ROW_COUNT_SQL = """
    SELECT reltuples::bigint AS estimate
    FROM pg_class
    WHERE oid = %s::regclass
"""

# Only single-column integer keys are usable for random id probing
FIND_PRIMARY_KEY_SQL = """
    SELECT a.attname AS column_name
    FROM pg_index i
    JOIN pg_attribute a
        ON a.attrelid = i.indrelid
       AND a.attnum = ANY(i.indkey)
    WHERE i.indrelid = %s::regclass
      AND i.indisprimary
      AND i.indnatts = 1
      AND a.atttypid IN ('int2'::regtype, 'int4'::regtype, 'int8'::regtype)
    LIMIT 1
"""


def discover_jsonb_columns(client) -> List[JsonbColumn]:
    """
    List every jsonb column outside the system schemas.

    Returns:
        Columns ordered by schema, table, column
    """
    rows = client.fetch_all(DISCOVER_JSONB_COLUMNS_SQL)
    columns = [
        JsonbColumn(
            schema=row["schema"],
            table=row["table"],
            column=row["column"],
            estimated_rows=row.get("estimated_rows"),
        )
        for row in rows
    ]
    logger.info("Discovered %d jsonb columns", len(columns))
    return columns


def estimate_row_count(client, schema: str, table: str) -> Optional[int]:
    """
    Planner estimate from pg_class.reltuples.

    Returns:
        The estimate, or None when the table has never been analyzed
        (reltuples is -1 or 0 in that case)
    """
    try:
        estimate = client.fetch_scalar(ESTIMATE_ROW_COUNT_SQL, (qualified_name(table, schema),))
    except DatabaseError as exc:
        raise SamplingError(f"Could not estimate rows of {schema}.{table}: {exc}") from exc

    if estimate is None or estimate <= 0:
        return None
    return int(estimate)


def get_row_count(client, schema: str, table: str) -> int:
    """
    Exact row count via COUNT(*).

    Raises:
        SamplingError: If the count query fails
    """
    query = f"SELECT COUNT(*) AS row_count FROM {qualified_name(table, schema)}"
    try:
        count = client.fetch_scalar(query)
    except DatabaseError as exc:
        raise SamplingError(f"Could not count rows of {schema}.{table}: {exc}") from exc
    return int(count or 0)


def find_primary_key(client, schema: str, table: str) -> Optional[str]:
    """
    Name of the table's single-column integer primary key.

    Returns:
        The column name, or None if there is no such key

    Raises:
        SamplingError: If the catalog query fails
    """
    try:
        row = client.fetch_one(FIND_PRIMARY_KEY_SQL, (qualified_name(table, schema),))
    except DatabaseError as exc:
        raise SamplingError(
            f"Could not look up primary key of {schema}.{table}: {exc}"
        ) from exc

    if row is None:
        return None
    return row["column_name"]
