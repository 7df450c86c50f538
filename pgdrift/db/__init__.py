# ==============================================
# DB: PostgreSQL access
# ==============================================
#
# This package reads from PostgreSQL. It never writes: index DDL is
# produced as text by pgdrift.analysis.index_advisor.
#
# Modules:
# --------
# - postgres_client.py  → Connection, queries, server-side cursor streaming
# - discovery.py        → jsonb column discovery, row counts, primary keys
# - sampler.py          → Sampling strategies and the Sampler
#
# ==============================================

from .discovery import JsonbColumn, discover_jsonb_columns
from .postgres_client import PostgresClient
from .sampler import (
    FullScan,
    RandomSample,
    ReservoirPK,
    Sampler,
    TableSample,
    select_strategy,
)

__all__ = [
    "JsonbColumn",
    "discover_jsonb_columns",
    "PostgresClient",
    "FullScan",
    "RandomSample",
    "ReservoirPK",
    "Sampler",
    "TableSample",
    "select_strategy",
]
