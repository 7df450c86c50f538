# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Provides command-line interface to pgdrift.
#   This is how users interact with the system.
#
# COMMANDS:
# ---------
# 1. List every jsonb column:
#    pgdrift discover -d postgresql://localhost/app
#
# 2. Detect drift in one column:
#    pgdrift analyze users metadata --sample-size 10000
#    pgdrift analyze analytics.events payload -f json --save
#
# 3. Recommend indexes for one column:
#    pgdrift index users metadata --min-occurrences 50
#
# 4. Sweep every jsonb column:
#    pgdrift scan-all -f json
#    pgdrift scan-all --production
#
#   TABLE may be "schema.table"; a bare name means schema "public".
#   Every command reads DATABASE_URL when -d is not given, and falls
#   back to PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE.
#
# IMPLEMENTATION:
# ---------------
# - click group; PgDriftError becomes a ClickException (exit code 1)
# - Output is plain text (click.echo / click.style) or JSON
#
# ==============================================

import dataclasses
import json
from contextlib import contextmanager
from typing import Any, Dict, Optional

import click

from pgdrift import __version__
from pgdrift.analysis.issues import Severity
from pgdrift.config import AppConfig, configure_logging, get_config
from pgdrift.db.discovery import discover_jsonb_columns
from pgdrift.db.postgres_client import PostgresClient
from pgdrift.errors import PgDriftError
from pgdrift.persistence.report_store import ReportStore
from pgdrift.scanner import (
    AnalysisResult,
    IndexReport,
    ScanAllResult,
    analyze_column,
    recommend_for_column,
    scan_all,
)
from pgdrift.utils.naming import parse_table_name

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

PRIORITY_COLORS = {
    "High": "red",
    "Medium": "yellow",
    "Low": "cyan",
}


def make_client(config: AppConfig, database_url: Optional[str]) -> PostgresClient:
    """Build a PostgresClient, preferring an explicit URL over config."""
    client = PostgresClient.from_config(config.database)
    if database_url:
        client.dsn = database_url
    return client


@contextmanager
def handle_errors():
    """Turn pgdrift errors into a clean CLI failure."""
    try:
        yield
    except PgDriftError as exc:
        raise click.ClickException(str(exc)) from exc


def echo_json(data: Dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


# ======================================
# Shared options
# ======================================

def database_option(func):
    return click.option(
        "-d", "--database-url",
        envvar="DATABASE_URL",
        default=None,
        help="PostgreSQL URL (default: $DATABASE_URL, then PG* variables).",
    )(func)


def output_options(func):
    func = click.option(
        "--save", is_flag=True,
        help="Also write the report as JSON under the report directory.",
    )(func)
    func = click.option(
        "-f", "--format", "output_format",
        type=click.Choice(["text", "json"]), default="text", show_default=True,
        help="Output format.",
    )(func)
    func = click.option(
        "-s", "--sample-size",
        type=click.IntRange(min=1), default=None,
        help="Number of documents to sample (default: $PGDRIFT_SAMPLE_SIZE or 5000).",
    )(func)
    return func


def drift_threshold_options(func):
    func = click.option(
        "--no-evolution", is_flag=True,
        help="Skip version marker / deprecated naming / mutually exclusive checks.",
    )(func)
    func = click.option(
        "--missing-threshold", type=click.FloatRange(0.0, 1.0), default=None,
        help="Density below which an expected key counts as missing (default 0.95).",
    )(func)
    func = click.option(
        "--sparse-threshold", type=click.FloatRange(0.0, 1.0), default=None,
        help="Maximum density of a sparse field (default 0.80).",
    )(func)
    func = click.option(
        "--ghost-threshold", type=click.FloatRange(0.0, 1.0), default=None,
        help="Maximum density of a ghost key (default 0.10).",
    )(func)
    func = click.option(
        "--type-threshold", type=click.FloatRange(0.0, 100.0), default=None,
        help="Minority type percentage that counts as inconsistent (default 5.0).",
    )(func)
    return func


def drift_config_from(config: AppConfig, type_threshold, ghost_threshold,
                      sparse_threshold, missing_threshold, no_evolution):
    overrides = {
        "type_inconsistency_threshold": type_threshold,
        "ghost_key_threshold": ghost_threshold,
        "sparse_field_threshold": sparse_threshold,
        "missing_key_threshold": missing_threshold,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if no_evolution:
        overrides["detect_schema_evolution"] = False
    return dataclasses.replace(config.drift, **overrides)


pass_config = click.make_pass_decorator(AppConfig)


# ======================================
# Commands
# ======================================

@click.group()
@click.version_option(__version__, prog_name="pgdrift")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for messages on stderr (default: $PGDRIFT_LOG_LEVEL or WARNING).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """pgdrift - JSONB schema drift detection for PostgreSQL."""
    config = get_config()
    configure_logging(log_level or config.log_level)
    ctx.obj = config


@cli.command()
@database_option
@click.option(
    "-f", "--format", "output_format",
    type=click.Choice(["text", "json"]), default="text", show_default=True,
)
@pass_config
def discover(config: AppConfig, database_url: Optional[str], output_format: str) -> None:
    """List every JSONB column in the database."""
    with handle_errors(), make_client(config, database_url) as client:
        columns = discover_jsonb_columns(client)

    if output_format == "json":
        echo_json({"columns": [c.to_dict() for c in columns], "count": len(columns)})
        return

    if not columns:
        click.secho("No JSONB columns found.", fg="yellow")
        return

    click.secho("\nJSONB Columns:", bold=True, fg="green")
    click.echo(f"  {'Schema':<20} {'Table':<30} {'Column':<25} {'Est. Rows':>12}")
    for c in columns:
        rows = "N/A" if c.estimated_rows is None else str(c.estimated_rows)
        click.echo(f"  {c.schema:<20} {c.table:<30} {c.column:<25} {rows:>12}")
    click.echo(f"\nFound {len(columns)} JSONB column(s)")


@cli.command()
@click.argument("table")
@click.argument("column")
@database_option
@output_options
@drift_threshold_options
@click.option("--production", is_flag=True, help="Cap TABLESAMPLE at 1% of the table.")
@pass_config
def analyze(
    config: AppConfig,
    table: str,
    column: str,
    database_url: Optional[str],
    sample_size: Optional[int],
    output_format: str,
    save: bool,
    type_threshold: Optional[float],
    ghost_threshold: Optional[float],
    sparse_threshold: Optional[float],
    missing_threshold: Optional[float],
    no_evolution: bool,
    production: bool,
) -> None:
    """Detect schema drift in one JSONB column."""
    schema, table_name = parse_table_name(table)
    drift_config = drift_config_from(
        config, type_threshold, ghost_threshold, sparse_threshold, missing_threshold, no_evolution
    )

    with handle_errors(), make_client(config, database_url) as client:
        result = analyze_column(
            client,
            schema,
            table_name,
            column,
            sample_size=sample_size or config.sampling.sample_size,
            drift_config=drift_config,
            production_mode=production or config.sampling.production_mode,
            show_progress=config.sampling.show_progress and output_format == "text",
            fetch_size=config.sampling.fetch_size,
        )

    if output_format == "json":
        echo_json(result.to_dict())
    else:
        print_analysis(result)

    if save:
        path = ReportStore(config.report_dir).save_analysis(result)
        click.echo(f"Report saved to {path}", err=True)


@cli.command()
@click.argument("table")
@click.argument("column")
@database_option
@output_options
@click.option("--high-density", type=click.FloatRange(0.0, 1.0), default=None,
              help="Density at which fields join the GIN index (default 0.8).")
@click.option("--medium-density", type=click.FloatRange(0.0, 1.0), default=None,
              help="Density at or below which fields get a partial index (default 0.2).")
@click.option("--min-occurrences", type=click.IntRange(min=0), default=None,
              help="Ignore fields seen fewer times than this (default 100).")
@click.option("--production", is_flag=True, help="Cap TABLESAMPLE at 1% of the table.")
@pass_config
def index(
    config: AppConfig,
    table: str,
    column: str,
    database_url: Optional[str],
    sample_size: Optional[int],
    output_format: str,
    save: bool,
    high_density: Optional[float],
    medium_density: Optional[float],
    min_occurrences: Optional[int],
    production: bool,
) -> None:
    """Recommend indexes for one JSONB column."""
    schema, table_name = parse_table_name(table)
    overrides = {
        "high_density_threshold": high_density,
        "medium_density_threshold": medium_density,
        "min_occurrences": min_occurrences,
    }
    index_config = dataclasses.replace(
        config.index, **{k: v for k, v in overrides.items() if v is not None}
    )

    with handle_errors(), make_client(config, database_url) as client:
        report = recommend_for_column(
            client,
            schema,
            table_name,
            column,
            sample_size=sample_size or config.sampling.sample_size,
            index_config=index_config,
            production_mode=production or config.sampling.production_mode,
            show_progress=config.sampling.show_progress and output_format == "text",
            fetch_size=config.sampling.fetch_size,
        )

    if output_format == "json":
        echo_json(report.to_dict())
    else:
        print_index_report(report)

    if save:
        path = ReportStore(config.report_dir).save_index_report(report)
        click.echo(f"Report saved to {path}", err=True)


@cli.command("scan-all")
@database_option
@output_options
@drift_threshold_options
@click.option("--production", is_flag=True, help="Cap TABLESAMPLE at 1% of each table.")
@pass_config
def scan_all_command(
    config: AppConfig,
    database_url: Optional[str],
    sample_size: Optional[int],
    output_format: str,
    save: bool,
    type_threshold: Optional[float],
    ghost_threshold: Optional[float],
    sparse_threshold: Optional[float],
    missing_threshold: Optional[float],
    no_evolution: bool,
    production: bool,
) -> None:
    """Detect schema drift in every JSONB column."""
    drift_config = drift_config_from(
        config, type_threshold, ghost_threshold, sparse_threshold, missing_threshold, no_evolution
    )

    with handle_errors(), make_client(config, database_url) as client:
        result = scan_all(
            client,
            sample_size=sample_size or config.sampling.sample_size,
            drift_config=drift_config,
            fetch_size=config.sampling.fetch_size,
            production_mode=production or config.sampling.production_mode,
        )

    if output_format == "json":
        echo_json(result.to_dict())
    else:
        print_scan_all(result)

    if save:
        path = ReportStore(config.report_dir).save_scan(result)
        click.echo(f"Report saved to {path}", err=True)


# ======================================
# Text output
# ======================================

def print_analysis(result: AnalysisResult) -> None:
    counts = result.severity_counts

    click.echo(
        f"\n{click.style('Analyzing', bold=True, fg='green')} "
        f"{result.schema}.{result.table}.{result.column} ({result.samples_analyzed} samples)"
    )
    click.echo(f"Strategy: {result.strategy}\n")

    click.secho("Schema Summary:", bold=True)
    click.echo(f"  Total unique paths: {result.total_paths}")
    click.echo(f"  Max nesting depth: {result.max_depth}")

    if not result.issues:
        click.secho("  No drift issues found!", fg="green", bold=True)
    else:
        click.echo(
            f"  Issues found: {click.style(str(counts['critical']), fg='red')} critical, "
            f"{click.style(str(counts['warning']), fg='yellow')} warnings, "
            f"{click.style(str(counts['info']), fg='cyan')} info"
        )

    click.secho("\nFields:", bold=True)
    click.echo(f"  {'Path':<45} {'Density':>8} {'Nulls':>7}  Types")
    for fs in result.sorted_stats():
        types = ", ".join(f"{t}:{n}" for t, n in fs.types.items())
        click.echo(
            f"  {fs.path:<45} {fs.density * 100:>7.1f}% {fs.null_percentage:>6.1f}%  {types}"
        )

    for severity in (Severity.CRITICAL, Severity.WARNING, Severity.INFO):
        issues = [i for i in result.issues if i.severity == severity]
        if not issues:
            continue
        click.secho(f"\n{severity.label} Issues:", bold=True, fg=SEVERITY_COLORS[severity])
        for issue in issues:
            click.echo(f"  {issue.path}: {issue.description()}")


def print_index_report(report: IndexReport) -> None:
    click.echo(
        f"\n{click.style('Index Recommendations', bold=True, fg='green')} for "
        f"{report.schema}.{report.table}.{report.column} "
        f"({report.samples_analyzed} samples, {report.total_paths} paths)"
    )
    click.echo(f"Strategy: {report.strategy}")

    if not report.recommendations:
        click.secho("\nNo index recommendations.", fg="yellow")
        return

    for number, rec in enumerate(report.recommendations, start=1):
        priority = rec.priority.label
        click.echo(
            f"\n{number}. [{click.style(priority, fg=PRIORITY_COLORS[priority], bold=True)}] "
            f"{rec.index_type.label} on {rec.field_path}"
        )
        click.echo(f"   Reason:  {rec.reason}")
        click.echo(f"   Benefit: {rec.estimated_benefit}")
        click.echo("   SQL:")
        for line in rec.sql.splitlines():
            click.echo(f"     {line}")


def print_scan_all(result: ScanAllResult) -> None:
    if not result.columns:
        click.secho("No JSONB columns found in the database.", fg="yellow")
        return

    click.secho(f"\nScanned {len(result.columns)} JSONB column(s)\n", bold=True, fg="green")
    for column_result in result.columns:
        name = column_result.column.full_name
        if column_result.failed:
            click.echo(f"  {name}: {click.style('ERROR', fg='red')} {column_result.error}")
            continue
        counts = column_result.severity_counts
        click.echo(
            f"  {name}: {column_result.samples_analyzed} samples, "
            f"{len(column_result.issues)} issues "
            f"(critical {counts['critical']}, warning {counts['warning']}, info {counts['info']})"
        )

    counts = result.severity_counts
    click.echo(
        f"\nTotal: {result.total_issues} issues "
        f"({counts['critical']} critical, {counts['warning']} warnings, {counts['info']} info), "
        f"{len(result.failed_columns)} column(s) failed"
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
