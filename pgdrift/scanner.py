# ==============================================
# Scanner: orchestration
# ==============================================
#
# PURPOSE:
#   Glue the pieces together for one column or for every jsonb
#   column in the database:
#
#     select_strategy → Sampler.stream → JsonAnalyzer → finalize
#                                                  ├→ DriftDetector
#                                                  └→ IndexAdvisor
#
#   Every run allocates fresh analyzer state. Nothing is shared
#   between columns.
#
# FUNCTIONS:
# ----------
# - analyze_column(client, schema, table, column, ...) -> AnalysisResult
# - recommend_for_column(client, schema, table, column, ...) -> IndexReport
# - scan_all(client, sample_size, drift_config, ...) -> ScanAllResult
#     One failing column never aborts the sweep: it is logged and
#     recorded with samples_analyzed=0 and its error message.
#
# ==============================================

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pgdrift.analysis.drift_detector import DriftDetector
from pgdrift.analysis.field_stats import FieldStats
from pgdrift.analysis.index_advisor import IndexAdvisor, IndexPriority, IndexRecommendation
from pgdrift.analysis.issues import DriftIssue, count_by_severity
from pgdrift.analysis.json_analyzer import JsonAnalyzer
from pgdrift.analysis.thresholds import DriftConfig, IndexConfig
from pgdrift.db.discovery import JsonbColumn, discover_jsonb_columns
from pgdrift.db.sampler import Sampler
from pgdrift.errors import NoSamplesError, PgDriftError

logger = logging.getLogger(__name__)


# ======================================
# Results
# ======================================

@dataclass
class AnalysisResult:
    """Outcome of a drift analysis of one jsonb column."""
    schema: str
    table: str
    column: str
    strategy: str
    samples_analyzed: int
    stats: Dict[str, FieldStats]
    issues: List[DriftIssue]

    @property
    def total_paths(self) -> int:
        return len(self.stats)

    @property
    def max_depth(self) -> int:
        return max((fs.depth for fs in self.stats.values()), default=0)

    @property
    def severity_counts(self) -> Dict[str, int]:
        return count_by_severity(self.issues)

    def sorted_stats(self) -> List[FieldStats]:
        return [self.stats[path] for path in sorted(self.stats)]

    def to_dict(self) -> Dict[str, Any]:
        counts = self.severity_counts
        return {
            "schema": self.schema,
            "table": self.table,
            "column": self.column,
            "strategy": self.strategy,
            "samples_analyzed": self.samples_analyzed,
            "field_stats": [fs.to_dict() for fs in self.sorted_stats()],
            "drift_issues": [issue.to_dict() for issue in self.issues],
            "summary": {
                "total_paths": self.total_paths,
                "max_depth": self.max_depth,
                "critical_issues": counts["critical"],
                "warning_issues": counts["warning"],
                "info_issues": counts["info"],
            },
        }


@dataclass
class IndexReport:
    """Index recommendations for one jsonb column."""
    schema: str
    table: str
    column: str
    strategy: str
    samples_analyzed: int
    total_paths: int
    recommendations: List[IndexRecommendation]

    @property
    def priority_counts(self) -> Dict[str, int]:
        counts = {priority.name.lower(): 0 for priority in IndexPriority}
        for rec in self.recommendations:
            counts[rec.priority.name.lower()] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "table": self.table,
            "column": self.column,
            "strategy": self.strategy,
            "samples_analyzed": self.samples_analyzed,
            "total_paths": self.total_paths,
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "summary": {
                "total_recommendations": len(self.recommendations),
                **{f"{name}_priority": count for name, count in self.priority_counts.items()},
            },
        }


@dataclass
class ColumnScanResult:
    """One column of a scan-all sweep."""
    column: JsonbColumn
    samples_analyzed: int = 0
    issues: List[DriftIssue] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def severity_counts(self) -> Dict[str, int]:
        return count_by_severity(self.issues)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        counts = self.severity_counts
        return {
            **self.column.to_dict(),
            "samples_analyzed": self.samples_analyzed,
            "total_issues": len(self.issues),
            "critical_issues": counts["critical"],
            "warning_issues": counts["warning"],
            "info_issues": counts["info"],
            "drift_issues": [issue.to_dict() for issue in self.issues],
            "error": self.error,
        }


@dataclass
class ScanAllResult:
    """Every column of a scan-all sweep, in discovery order."""
    columns: List[ColumnScanResult] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return sum(len(c.issues) for c in self.columns)

    @property
    def severity_counts(self) -> Dict[str, int]:
        totals = {"critical": 0, "warning": 0, "info": 0}
        for column_result in self.columns:
            for name, count in column_result.severity_counts.items():
                totals[name] += count
        return totals

    @property
    def failed_columns(self) -> List[ColumnScanResult]:
        return [c for c in self.columns if c.failed]

    def to_dict(self) -> Dict[str, Any]:
        counts = self.severity_counts
        return {
            "columns": [c.to_dict() for c in self.columns],
            "summary": {
                "total_columns": len(self.columns),
                "failed_columns": len(self.failed_columns),
                "total_issues": self.total_issues,
                "critical_issues": counts["critical"],
                "warning_issues": counts["warning"],
                "info_issues": counts["info"],
            },
        }


# ======================================
# Orchestration
# ======================================

def collect_stats(
    client,
    schema: str,
    table: str,
    column: str,
    sample_size: int,
    production_mode: bool = False,
    show_progress: bool = False,
    estimated_rows: Optional[int] = None,
    fetch_size: int = 1000,
) -> Tuple[Sampler, int, Dict[str, FieldStats]]:
    """
    Sample one column and build its finalized stats map.

    Returns:
        (sampler, samples_analyzed, stats)

    Raises:
        NoSamplesError: If the column yields no non-NULL documents
        SamplingError / DatabaseError: If the database calls fail
    """
    sampler = Sampler.auto(
        client,
        schema,
        table,
        estimated_rows,
        sample_size,
        production_mode=production_mode,
        show_progress=show_progress,
        fetch_size=fetch_size,
    )

    analyzer = JsonAnalyzer()
    samples = analyzer.analyze_many(sampler.stream(client, schema, table, column))
    if samples == 0:
        raise NoSamplesError(schema, table, column)

    stats = analyzer.finalize()
    logger.info(
        "Analyzed %d documents from %s.%s.%s: %d unique paths",
        samples, schema, table, column, len(stats),
    )
    return sampler, samples, stats


def analyze_column(
    client,
    schema: str,
    table: str,
    column: str,
    sample_size: int = 5000,
    drift_config: Optional[DriftConfig] = None,
    production_mode: bool = False,
    show_progress: bool = False,
    estimated_rows: Optional[int] = None,
    fetch_size: int = 1000,
) -> AnalysisResult:
    """
    Sample a jsonb column and detect schema drift.

    Args:
        client: Connected PostgresClient
        schema: Table schema
        table: Table name
        column: jsonb column name
        sample_size: Desired number of documents
        drift_config: Drift thresholds (defaults if None)
        production_mode: Cap TABLESAMPLE at 1%
        show_progress: Draw a progress bar while sampling
        estimated_rows: Known row estimate, skips COUNT(*) when positive
        fetch_size: Rows per cursor round trip

    Returns:
        AnalysisResult
    """
    sampler, samples, stats = collect_stats(
        client, schema, table, column, sample_size,
        production_mode=production_mode,
        show_progress=show_progress,
        estimated_rows=estimated_rows,
        fetch_size=fetch_size,
    )
    issues = DriftDetector(drift_config).detect(stats)

    return AnalysisResult(
        schema=schema,
        table=table,
        column=column,
        strategy=sampler.describe(),
        samples_analyzed=samples,
        stats=stats,
        issues=issues,
    )


def recommend_for_column(
    client,
    schema: str,
    table: str,
    column: str,
    sample_size: int = 5000,
    index_config: Optional[IndexConfig] = None,
    production_mode: bool = False,
    show_progress: bool = False,
    estimated_rows: Optional[int] = None,
    fetch_size: int = 1000,
) -> IndexReport:
    """
    Sample a jsonb column and recommend indexes for it.

    Same arguments as analyze_column, with index thresholds instead
    of drift thresholds.
    """
    sampler, samples, stats = collect_stats(
        client, schema, table, column, sample_size,
        production_mode=production_mode,
        show_progress=show_progress,
        estimated_rows=estimated_rows,
        fetch_size=fetch_size,
    )
    recommendations = IndexAdvisor(index_config).recommend(stats, table, column, schema=schema)

    return IndexReport(
        schema=schema,
        table=table,
        column=column,
        strategy=sampler.describe(),
        samples_analyzed=samples,
        total_paths=len(stats),
        recommendations=recommendations,
    )


def scan_all(
    client,
    sample_size: int = 5000,
    drift_config: Optional[DriftConfig] = None,
    columns: Optional[List[JsonbColumn]] = None,
    fetch_size: int = 1000,
    production_mode: bool = False,
) -> ScanAllResult:
    """
    Analyze every jsonb column in the database.

    Args:
        client: Connected PostgresClient
        sample_size: Desired number of documents per column
        drift_config: Drift thresholds (defaults if None)
        columns: Columns to scan; discovered from the catalog if None
        fetch_size: Rows per cursor round trip
        production_mode: Cap TABLESAMPLE at 1% on every column

    Returns:
        ScanAllResult, one entry per column (empty if there are none)
    """
    if columns is None:
        columns = discover_jsonb_columns(client)

    result = ScanAllResult()
    if not columns:
        logger.info("No JSONB columns found in the database")
        return result

    for jsonb_column in columns:
        try:
            analysis = analyze_column(
                client,
                jsonb_column.schema,
                jsonb_column.table,
                jsonb_column.column,
                sample_size=sample_size,
                drift_config=drift_config,
                estimated_rows=jsonb_column.estimated_rows,
                fetch_size=fetch_size,
                production_mode=production_mode,
            )
        except PgDriftError as exc:
            logger.error("Failed to analyze %s: %s", jsonb_column.full_name, exc)
            result.columns.append(ColumnScanResult(column=jsonb_column, error=str(exc)))
            continue

        result.columns.append(ColumnScanResult(
            column=jsonb_column,
            samples_analyzed=analysis.samples_analyzed,
            issues=analysis.issues,
        ))

    return result
