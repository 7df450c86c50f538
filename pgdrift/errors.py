# ==============================================
# Exceptions
# ==============================================
#
# All errors raised by pgdrift derive from PgDriftError so callers
# (the CLI, the multi-column sweep) can catch one type.
#
# A table without a primary key is NOT an error: the sampler
# silently falls back to random sampling.
#
# ==============================================


class PgDriftError(Exception):
    """
    Base exception for all pgdrift errors
    """
    pass


class DatabaseError(PgDriftError):
    """
    Raised when connecting to or querying PostgreSQL fails
    """
    pass


class SamplingError(DatabaseError):
    """
    Raised when a row count or primary key lookup fails
    while choosing a sampling strategy
    """
    pass


class NoSamplesError(PgDriftError):
    """
    Raised when sampling returns zero usable documents.

    An empty report would read as "no drift", so this is surfaced
    as a failure instead.
    """

    def __init__(self, schema: str, table: str, column: str):
        self.schema = schema
        self.table = table
        self.column = column
        super().__init__(
            f"No samples found in {schema}.{table}.{column}. "
            f"Column may be empty or NULL."
        )


class InvalidIdentifierError(PgDriftError):
    """
    Raised when a schema/table/column name cannot be quoted safely
    """
    pass
