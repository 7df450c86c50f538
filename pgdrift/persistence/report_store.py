import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from pgdrift import __version__


logger = logging.getLogger(__name__)

REPORT_FORMAT_VERSION = "1.0"


# ==============================================
# ReportStore
# ==============================================
#
# PURPOSE:
#   Persist analysis output to disk as JSON so that runs can be
#   compared over time (is drift getting worse?) or fed to other
#   tooling without re-sampling the database.
#
# WHAT IS PERSISTED:
#   1. Drift analyses         → AnalysisResult.to_dict()
#   2. Index recommendations  → IndexReport.to_dict()
#   3. Scan-all sweeps        → ScanAllResult.to_dict()
#
#   Every payload is wrapped with:
#     - generated_at     → UTC ISO-8601 timestamp
#     - version          → report format version
#     - pgdrift_version  → package version that wrote it
#
# CLASS: ReportStore
# ------------------
#   Stateful: holds a reference to the report directory.
#
#   Constructor:
#   ------------
#   - __init__(report_dir: str = "reports/")
#       Create report directory if it doesn't exist.
#
class ReportStore:
    """
    Handles persistence of analysis reports to disk.

    Files created:
    - reports/<schema>.<table>.<column>.analysis.json  → Drift analysis
    - reports/<schema>.<table>.<column>.indexes.json   → Index recommendations
    - reports/scan_all.json                            → Scan-all sweep
    """

    def __init__(self, report_dir: Union[str, Path] = "reports/"):
        """
        Initialize the report store.

        Args:
            report_dir: Directory to store report files
        """
        self.report_dir = Path(report_dir)

        # Create directory if it doesn't exist
        self.report_dir.mkdir(parents=True, exist_ok=True)

        self.scan_file = self.report_dir / "scan_all.json"

#   Methods:
#   --------
#   SAVING:
#   - save_analysis(result: AnalysisResult) -> Path
#   - save_index_report(report: IndexReport) -> Path
#   - save_scan(result: ScanAllResult) -> Path
#
    def column_file(self, schema: str, table: str, column: str, kind: str) -> Path:
        """
        Path of a per-column report.

        Args:
            kind: "analysis" or "indexes"
        """
        return self.report_dir / f"{schema}.{table}.{column}.{kind}.json"

    def save_analysis(self, result) -> Path:
        """
        Save a drift analysis to disk.

        Args:
            result: pgdrift.scanner.AnalysisResult

        Returns:
            Path of the written file
        """
        path = self.column_file(result.schema, result.table, result.column, "analysis")
        self._write(path, "analysis", result.to_dict())
        logger.info("Saved analysis of %d paths to %s", result.total_paths, path)
        return path

    def save_index_report(self, report) -> Path:
        """
        Save index recommendations to disk.

        Args:
            report: pgdrift.scanner.IndexReport

        Returns:
            Path of the written file
        """
        path = self.column_file(report.schema, report.table, report.column, "indexes")
        self._write(path, "indexes", report.to_dict())
        logger.info("Saved %d index recommendations to %s", len(report.recommendations), path)
        return path

    def save_scan(self, result) -> Path:
        """
        Save a scan-all sweep to disk.

        Args:
            result: pgdrift.scanner.ScanAllResult

        Returns:
            Path of the written file
        """
        self._write(self.scan_file, "scan_all", result.to_dict())
        logger.info("Saved scan of %d columns to %s", len(result.columns), self.scan_file)
        return self.scan_file

    def _write(self, path: Path, kind: str, payload: Dict[str, Any]) -> None:
        document = {
            "kind": kind,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": REPORT_FORMAT_VERSION,
            "pgdrift_version": __version__,
            "report": payload,
        }

        # Examples may hold Decimal values decoded from jsonb
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, default=str)

#   LOADING:
#   - load(path) -> dict
#       Read a report written by any save_* method. Relative paths
#       are resolved against the report directory.
#
#   - list_reports() -> list[Path]
#
    def load(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a report from disk.

        Args:
            path: File path, absolute or relative to the report directory

        Returns:
            The stored document (kind, generated_at, version, report)

        Raises:
            FileNotFoundError: If the report does not exist
        """
        path = Path(path)
        if not path.is_absolute() and not path.exists():
            path = self.report_dir / path

        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)

        logger.debug("Loaded %s report from %s", document.get("kind"), path)
        return document

    def list_reports(self) -> List[Path]:
        """All report files, sorted by name."""
        return sorted(self.report_dir.glob("*.json"))

# FILE STRUCTURE:
# ---------------
#   reports/
#   ├── public.users.metadata.analysis.json
#   ├── public.users.metadata.indexes.json
#   └── scan_all.json
#
# =============================================
