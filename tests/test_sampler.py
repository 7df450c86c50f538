# ==============================================
# Tests for strategy selection and the Sampler
# ==============================================

import logging

import pytest

from pgdrift.db.discovery import estimate_row_count, find_primary_key, get_row_count
from pgdrift.db.sampler import (
    FullScan,
    RandomSample,
    ReservoirPK,
    Sampler,
    TableSample,
    select_strategy,
    tablesample_percentage,
)
from pgdrift.errors import DatabaseError, SamplingError


def count_queries(client):
    return [q for q, _ in client.queries if "COUNT(*)" in q]


# ==============================================
# select_strategy
# ==============================================

class TestSelectStrategy:

    def test_small_table_full_scan(self, fake_client_factory):
        client = fake_client_factory(row_count=50)
        strategy = select_strategy(client, "public", "users", None, 5000)

        assert strategy == FullScan()
        assert strategy.max_samples is None

    def test_sample_equal_to_rows_is_full_scan(self, fake_client_factory):
        client = fake_client_factory(row_count=5000)
        assert select_strategy(client, "public", "users", None, 5000) == FullScan()

    def test_medium_table_random(self, fake_client_factory):
        client = fake_client_factory(row_count=50_000)
        assert select_strategy(client, "public", "users", None, 5000) == RandomSample(limit=5000)

    def test_large_table_with_pk_reservoir(self, fake_client_factory):
        client = fake_client_factory(row_count=5_000_000, primary_key="id")
        strategy = select_strategy(client, "public", "users", None, 5000)

        assert strategy == ReservoirPK(sample_size=5000, pk="id")

    def test_large_table_without_pk_falls_back(self, fake_client_factory, caplog):
        client = fake_client_factory(row_count=5_000_000)

        with caplog.at_level(logging.INFO, logger="pgdrift"):
            strategy = select_strategy(client, "public", "users", None, 5000)

        assert strategy == RandomSample(limit=5000)
        assert "falling back to random sampling" in caplog.text

    def test_huge_table_tablesample_clamped(self, fake_client_factory):
        client = fake_client_factory(row_count=50_000_000)
        strategy = select_strategy(client, "public", "events", None, 5000)

        assert isinstance(strategy, TableSample)
        assert strategy.percentage == pytest.approx(0.1)
        assert strategy.limit == 5000

    def test_boundaries(self, fake_client_factory):
        below_random_limit = fake_client_factory(row_count=99_999, primary_key="id")
        at_random_limit = fake_client_factory(row_count=100_000, primary_key="id")
        at_reservoir_limit = fake_client_factory(row_count=10_000_000, primary_key="id")

        assert isinstance(select_strategy(below_random_limit, "public", "t", None, 10), RandomSample)
        assert isinstance(select_strategy(at_random_limit, "public", "t", None, 10), ReservoirPK)
        assert isinstance(select_strategy(at_reservoir_limit, "public", "t", None, 10), TableSample)

    def test_positive_estimate_skips_count(self, fake_client_factory):
        client = fake_client_factory(row_count=10)
        strategy = select_strategy(client, "public", "users", 50_000, 5000)

        assert isinstance(strategy, RandomSample)
        assert count_queries(client) == []

    @pytest.mark.parametrize("estimate", [None, 0, -1])
    def test_unknown_estimate_counts(self, fake_client_factory, estimate):
        client = fake_client_factory(row_count=10)
        strategy = select_strategy(client, "public", "users", estimate, 5000)

        assert strategy == FullScan()
        assert len(count_queries(client)) == 1

    @pytest.mark.parametrize("sample_size", [0, -5])
    def test_non_positive_sample_size(self, fake_client_factory, sample_size):
        with pytest.raises(ValueError):
            select_strategy(fake_client_factory(row_count=10), "public", "t", None, sample_size)

    def test_tablesample_percentage(self):
        assert tablesample_percentage(5000, 50_000_000) == pytest.approx(0.1)
        assert tablesample_percentage(5_000_000, 20_000_000) == pytest.approx(25.0)
        assert tablesample_percentage(100, 10) == pytest.approx(100.0)


# ==============================================
# Catalog lookups
# ==============================================

class FailingClient:
    def fetch_scalar(self, query, params=None):
        raise DatabaseError("permission denied")

    def fetch_one(self, query, params=None):
        raise DatabaseError("permission denied")


class TestDiscoveryLookups:

    def test_primary_key_lookup_uses_regclass(self, fake_client_factory):
        client = fake_client_factory(primary_key={"users": "id"})

        assert find_primary_key(client, "public", "users") == "id"
        assert find_primary_key(client, "public", "orders") is None
        assert client.queries[0][1] == ('"public"."users"',)

    def test_estimate_row_count(self, fake_client_factory):
        assert estimate_row_count(fake_client_factory(estimate=1200), "public", "t") == 1200
        assert estimate_row_count(fake_client_factory(estimate=-1), "public", "t") is None

    def test_count_query_is_quoted(self, fake_client_factory):
        client = fake_client_factory(row_count=7)
        assert get_row_count(client, "my schema", 'od"d') == 7
        assert client.queries[0][0] == 'SELECT COUNT(*) AS row_count FROM "my schema"."od""d"'

    def test_lookup_failures_become_sampling_errors(self):
        with pytest.raises(SamplingError):
            get_row_count(FailingClient(), "public", "t")
        with pytest.raises(SamplingError):
            find_primary_key(FailingClient(), "public", "t")
        with pytest.raises(SamplingError):
            estimate_row_count(FailingClient(), "public", "t")


# ==============================================
# Queries
# ==============================================

class TestQueries:

    def test_full_scan_query(self):
        assert FullScan().build_query("public", "users", "metadata") == (
            'SELECT "metadata" FROM "public"."users" WHERE "metadata" IS NOT NULL'
        )

    def test_random_query(self):
        query = RandomSample(limit=100).build_query("public", "users", "metadata")
        assert query.endswith("WHERE \"metadata\" IS NOT NULL ORDER BY random() LIMIT 100")

    def test_reservoir_query(self):
        query = ReservoirPK(sample_size=100, pk="id").build_query("public", "users", "metadata")

        assert 'SELECT MAX("id") FROM "public"."users"' in query
        assert "DISTINCT" in query
        assert "generate_series(1, 200)" in query
        assert 'INNER JOIN random_ids r ON t."id" = r.rand_id' in query
        assert query.endswith("LIMIT 100")

    def test_tablesample_query(self):
        query = TableSample(percentage=0.1, limit=5000).build_query("public", "events", "payload")
        assert query == (
            'SELECT "payload" FROM "public"."events" TABLESAMPLE SYSTEM (0.10)'
            ' WHERE "payload" IS NOT NULL LIMIT 5000'
        )

    def test_hostile_names_are_quoted(self):
        query = FullScan().build_query("public", 'users"; DROP TABLE x; --', "m")
        assert '"users""; DROP TABLE x; --"' in query

    def test_describe(self):
        assert FullScan().describe() == "Full table scan (all non-NULL rows)"
        assert RandomSample(limit=10).describe() == "Random sampling (up to 10 rows)"
        assert ReservoirPK(sample_size=10, pk="id").describe() == (
            "Reservoir sampling using PK 'id' (up to 10 rows)"
        )
        assert TableSample(percentage=0.5, limit=10).describe() == "TABLESAMPLE 0.50% (up to 10 rows)"


# ==============================================
# Sampler
# ==============================================

class TestSampler:

    def test_production_mode_caps_tablesample(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pgdrift"):
            sampler = Sampler(TableSample(percentage=25.0, limit=10), production_mode=True)

        assert sampler.strategy.percentage == pytest.approx(1.0)
        assert "Production mode limits sampling to 1%" in caplog.text

    def test_production_mode_leaves_small_percentages(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pgdrift"):
            sampler = Sampler(TableSample(percentage=0.1, limit=10), production_mode=True)

        assert sampler.strategy.percentage == pytest.approx(0.1)
        assert caplog.text == ""

    def test_cap_only_in_production_mode(self):
        sampler = Sampler(TableSample(percentage=25.0, limit=10))
        assert sampler.strategy.percentage == pytest.approx(25.0)

    def test_auto(self, fake_client_factory):
        client = fake_client_factory(row_count=3)
        sampler = Sampler.auto(client, "public", "users", None, 100, fetch_size=50)

        assert sampler.strategy == FullScan()
        assert sampler.fetch_size == 50

    def test_sample_streams_documents(self, fake_client_factory, sample_documents):
        client = fake_client_factory(documents=sample_documents)
        sampler = Sampler(FullScan(), fetch_size=250)

        assert sampler.sample(client, "public", "users", "metadata") == sample_documents
        assert client.itersizes == [250]
        assert client.streamed_queries == [FullScan().build_query("public", "users", "metadata")]
        assert client.open_streams == 0

    def test_stream_is_lazy(self, fake_client_factory, sample_documents):
        client = fake_client_factory(documents=sample_documents)
        stream = Sampler(FullScan()).stream(client, "public", "users", "metadata")

        assert client.streamed_queries == []
        next(stream)
        assert client.open_streams == 1

    def test_closing_stream_early_closes_cursor(self, fake_client_factory, sample_documents):
        client = fake_client_factory(documents=sample_documents)
        stream = Sampler(FullScan()).stream(client, "public", "users", "metadata")

        next(stream)
        stream.close()

        assert client.open_streams == 0

    def test_stream_with_progress_bar(self, fake_client_factory, sample_documents):
        client = fake_client_factory(documents=sample_documents)
        sampler = Sampler(RandomSample(limit=10), show_progress=True)

        assert sampler.sample(client, "public", "users", "metadata") == sample_documents
        assert client.open_streams == 0

    def test_stream_errors_propagate(self, fake_client_factory):
        client = fake_client_factory(failing_tables=["users"])

        with pytest.raises(DatabaseError):
            Sampler(FullScan()).sample(client, "public", "users", "metadata")
