# ==============================================
# ANALYSIS: Statistics, drift detection, index advice
# ==============================================
#
# This package observes JSON documents and turns the observations
# into findings. It never talks to the database.
#
# Three-step process:
#   Step 1 (Analysis):  Walk documents → build statistics per path
#   Step 2 (Drift):     Apply heuristics on stats → DriftIssues
#   Step 3 (Indexing):  Apply density rules on stats → IndexRecommendations
#
# Modules:
# --------
# - json_type.py        → Six primitive JSON kinds
# - field_stats.py      → Data class to hold statistics for one path
# - json_analyzer.py    → Walk documents, accumulate stats per path
# - thresholds.py       → DriftConfig and IndexConfig
# - issues.py           → DriftIssue data classes and Severity
# - drift_detector.py   → Apply heuristics on stats, output DriftIssues
# - index_advisor.py    → Apply density rules on stats, output DDL suggestions
#
# ==============================================

from .drift_detector import DriftDetector, detect_drift
from .field_stats import FieldStats
from .index_advisor import (
    IndexAdvisor,
    IndexPriority,
    IndexRecommendation,
    IndexType,
    recommend_indexes,
)
from .issues import (
    DeprecatedNaming,
    GhostKey,
    MissingKey,
    MutuallyExclusive,
    SchemaEvolution,
    Severity,
    SparseField,
    TypeDistribution,
    TypeInconsistency,
    VersionMarker,
)
from .json_analyzer import JsonAnalyzer
from .json_type import JsonType
from .thresholds import DriftConfig, IndexConfig

__all__ = [
    "JsonType",
    "FieldStats",
    "JsonAnalyzer",
    "DriftConfig",
    "IndexConfig",
    "Severity",
    "TypeDistribution",
    "TypeInconsistency",
    "GhostKey",
    "SparseField",
    "MissingKey",
    "SchemaEvolution",
    "VersionMarker",
    "DeprecatedNaming",
    "MutuallyExclusive",
    "DriftDetector",
    "detect_drift",
    "IndexAdvisor",
    "IndexPriority",
    "IndexRecommendation",
    "IndexType",
    "recommend_indexes",
]
