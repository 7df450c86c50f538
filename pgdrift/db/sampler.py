# ==============================================
# Sampler
# ==============================================
#
# PURPOSE:
#   Choose how to read a representative set of JSON documents from
#   one jsonb column, then stream them out of PostgreSQL.
#
# STRATEGIES (closed union, frozen dataclasses):
# ----------------------------------------------
#   FullScan()                     → every non-NULL row
#   RandomSample(limit)            → ORDER BY random() LIMIT n
#   ReservoirPK(sample_size, pk)   → random ids joined on the PK index
#   TableSample(percentage, limit) → TABLESAMPLE SYSTEM block sampling
#
#   Each exposes: max_samples, describe(), build_query(schema, table, column)
#
# SELECTION (select_strategy):
# ----------------------------
#   row count unknown / <= 0   → exact COUNT(*)
#   sample_size >= rows        → FullScan
#   rows < 100,000             → RandomSample
#   rows < 10,000,000          → ReservoirPK, or RandomSample if no usable PK
#   otherwise                  → TableSample(clamp(n / rows * 100, 0.1, 100))
#
# CLASS: Sampler
# --------------
#   - Sampler(strategy, production_mode=False, show_progress=False)
#   - Sampler.auto(client, schema, table, estimated_rows, sample_size, ...)
#   - stream(client, schema, table, column) -> Iterator[Any]   (lazy)
#   - sample(client, schema, table, column) -> list             (materialised)
#   - describe() -> str
#
#   Production mode caps TableSample at PRODUCTION_MAX_PERCENTAGE.
#
# ==============================================

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Iterator, List, Optional, Union

import click

from pgdrift.utils.naming import qualified_name, quote_identifier

from .discovery import find_primary_key, get_row_count

logger = logging.getLogger(__name__)


# Row count boundaries between strategies
RANDOM_SAMPLE_MAX_ROWS = 100_000
RESERVOIR_MAX_ROWS = 10_000_000

# TABLESAMPLE percentage bounds
MIN_TABLESAMPLE_PERCENTAGE = 0.1
MAX_TABLESAMPLE_PERCENTAGE = 100.0

PRODUCTION_MAX_PERCENTAGE = 1.0


def _base_query(schema: str, table: str, column: str) -> str:
    column_sql = quote_identifier(column)
    return f"SELECT {column_sql} FROM {qualified_name(table, schema)} WHERE {column_sql} IS NOT NULL"


@dataclass(frozen=True)
class FullScan:
    """Read every non-NULL row. Deterministic."""

    kind: ClassVar[str] = "full_scan"

    @property
    def max_samples(self) -> Optional[int]:
        # Unbounded: the table is smaller than the requested sample
        return None

    def describe(self) -> str:
        return "Full table scan (all non-NULL rows)"

    def build_query(self, schema: str, table: str, column: str) -> str:
        return _base_query(schema, table, column)


@dataclass(frozen=True)
class RandomSample:
    """Uniform random rows via ORDER BY random()."""
    limit: int

    kind: ClassVar[str] = "random"

    @property
    def max_samples(self) -> int:
        return self.limit

    def describe(self) -> str:
        return f"Random sampling (up to {self.limit} rows)"

    def build_query(self, schema: str, table: str, column: str) -> str:
        return f"{_base_query(schema, table, column)} ORDER BY random() LIMIT {int(self.limit)}"


@dataclass(frozen=True)
class ReservoirPK:
    """
    Probe random primary key values in [0, MAX(pk)] and fetch matching
    rows through the PK index. Twice as many ids as wanted are drawn to
    absorb gaps in the key sequence; fewer rows than sample_size may
    come back when the keys are very sparse.
    """
    sample_size: int
    pk: str

    kind: ClassVar[str] = "reservoir_pk"

    @property
    def max_samples(self) -> int:
        return self.sample_size

    def describe(self) -> str:
        return f"Reservoir sampling using PK '{self.pk}' (up to {self.sample_size} rows)"

    def build_query(self, schema: str, table: str, column: str) -> str:
        relation = qualified_name(table, schema)
        column_sql = quote_identifier(column)
        pk_sql = quote_identifier(self.pk)
        size = int(self.sample_size)
        return (
            f"WITH random_ids AS ("
            f" SELECT DISTINCT floor(random() * ((SELECT MAX({pk_sql}) FROM {relation}) + 1))::bigint AS rand_id"
            f" FROM generate_series(1, {size * 2})"
            f") "
            f"SELECT t.{column_sql} FROM {relation} t"
            f" INNER JOIN random_ids r ON t.{pk_sql} = r.rand_id"
            f" WHERE t.{column_sql} IS NOT NULL"
            f" LIMIT {size}"
        )


@dataclass(frozen=True)
class TableSample:
    """Block sampling with TABLESAMPLE SYSTEM, for very large tables."""
    percentage: float
    limit: int

    kind: ClassVar[str] = "table_sample"

    @property
    def max_samples(self) -> int:
        return self.limit

    def describe(self) -> str:
        return f"TABLESAMPLE {self.percentage:.2f}% (up to {self.limit} rows)"

    def build_query(self, schema: str, table: str, column: str) -> str:
        column_sql = quote_identifier(column)
        return (
            f"SELECT {column_sql} FROM {qualified_name(table, schema)}"
            f" TABLESAMPLE SYSTEM ({self.percentage:.2f})"
            f" WHERE {column_sql} IS NOT NULL"
            f" LIMIT {int(self.limit)}"
        )


SamplingStrategy = Union[FullScan, RandomSample, ReservoirPK, TableSample]


def tablesample_percentage(sample_size: int, row_count: int) -> float:
    """
    Percentage of the table to sample, clamped to [0.1, 100.0].

    Examples:
        tablesample_percentage(5000, 50_000_000) → 0.1  (0.01 clamped up)
        tablesample_percentage(5_000_000, 20_000_000) → 25.0
    """
    percentage = sample_size / row_count * 100.0
    return max(MIN_TABLESAMPLE_PERCENTAGE, min(percentage, MAX_TABLESAMPLE_PERCENTAGE))


def select_strategy(
    client,
    schema: str,
    table: str,
    estimated_rows: Optional[int],
    sample_size: int,
) -> SamplingStrategy:
    """
    Pick a sampling strategy from the table size.

    Args:
        client: PostgresClient (or anything with fetch_scalar / fetch_one)
        schema: Table schema
        table: Table name
        estimated_rows: Row estimate, None or <= 0 forces an exact count
        sample_size: Desired number of documents

    Returns:
        The chosen strategy

    Raises:
        ValueError: If sample_size is not positive
        SamplingError: If the row count or PK lookup fails
    """
    if sample_size <= 0:
        raise ValueError(f"sample_size must be positive, got {sample_size}")

    if estimated_rows is not None and estimated_rows > 0:
        row_count = estimated_rows
    else:
        row_count = get_row_count(client, schema, table)

    if sample_size >= row_count:
        strategy: SamplingStrategy = FullScan()
    elif row_count < RANDOM_SAMPLE_MAX_ROWS:
        strategy = RandomSample(limit=sample_size)
    elif row_count < RESERVOIR_MAX_ROWS:
        pk = find_primary_key(client, schema, table)
        if pk is not None:
            strategy = ReservoirPK(sample_size=sample_size, pk=pk)
        else:
            logger.info(
                "No single-column integer primary key on %s.%s, "
                "falling back to random sampling",
                schema, table,
            )
            strategy = RandomSample(limit=sample_size)
    else:
        strategy = TableSample(
            percentage=tablesample_percentage(sample_size, row_count),
            limit=sample_size,
        )

    logger.info("Sampling %s.%s (%d rows): %s", schema, table, row_count, strategy.describe())
    return strategy


class Sampler:
    """
    Runs a SamplingStrategy against one column.
    """

    def __init__(
        self,
        strategy: SamplingStrategy,
        production_mode: bool = False,
        show_progress: bool = False,
        fetch_size: int = 1000,
    ):
        """
        Args:
            strategy: The strategy to execute
            production_mode: Cap TABLESAMPLE at PRODUCTION_MAX_PERCENTAGE
            show_progress: Draw a progress bar on stderr while streaming
            fetch_size: Rows per server-side cursor round trip
        """
        self.production_mode = production_mode
        self.show_progress = show_progress
        self.fetch_size = fetch_size
        self.strategy = self._apply_production_cap(strategy)

    @classmethod
    def auto(
        cls,
        client,
        schema: str,
        table: str,
        estimated_rows: Optional[int],
        sample_size: int,
        production_mode: bool = False,
        show_progress: bool = False,
        fetch_size: int = 1000,
    ) -> "Sampler":
        """Build a sampler with an automatically selected strategy."""
        strategy = select_strategy(client, schema, table, estimated_rows, sample_size)
        return cls(
            strategy,
            production_mode=production_mode,
            show_progress=show_progress,
            fetch_size=fetch_size,
        )

    def _apply_production_cap(self, strategy: SamplingStrategy) -> SamplingStrategy:
        if (
            self.production_mode
            and isinstance(strategy, TableSample)
            and strategy.percentage > PRODUCTION_MAX_PERCENTAGE
        ):
            logger.warning(
                "Production mode limits sampling to %.0f%%. Reducing from %.2f%%",
                PRODUCTION_MAX_PERCENTAGE, strategy.percentage,
            )
            return dataclasses.replace(strategy, percentage=PRODUCTION_MAX_PERCENTAGE)
        return strategy

    def describe(self) -> str:
        return self.strategy.describe()

    def build_query(self, schema: str, table: str, column: str) -> str:
        return self.strategy.build_query(schema, table, column)

    def stream(self, client, schema: str, table: str, column: str) -> Iterator[Any]:
        """
        Lazily yield decoded documents.

        Closing the returned generator early closes the database cursor.
        """
        query = self.build_query(schema, table, column)
        logger.debug("Sampling query: %s", query)
        documents = client.stream(query, itersize=self.fetch_size)

        try:
            if not self.show_progress:
                yield from documents
                return

            with click.progressbar(
                documents,
                length=self.strategy.max_samples,
                label=f"Sampling {schema}.{table}.{column}",
                show_pos=True,
                file=click.get_text_stream("stderr"),
            ) as bar:
                yield from bar
        finally:
            documents.close()

    def sample(self, client, schema: str, table: str, column: str) -> List[Any]:
        """Collect every sampled document into a list."""
        return list(self.stream(client, schema, table, column))

