# ==============================================
# Thresholds (Data Classes)
# ==============================================
#
# PURPOSE:
#   Configurable thresholds consumed by the drift detector and the
#   index advisor. Kept apart from the logic so that config.py can
#   build them from environment variables and the CLI can override
#   single values.
#
# CLASSES:
# --------
# - DriftConfig (dataclass)
#     - type_inconsistency_threshold: float → Minority type % that fires (default 5.0)
#     - ghost_key_threshold: float          → Max density of a ghost key (default 0.10)
#     - sparse_field_threshold: float       → Max density of a sparse field (default 0.80)
#     - missing_key_threshold: float        → Density below which a key is "missing" (default 0.95)
#     - detect_schema_evolution: bool       → Run the cross-field checks (default True)
#
# - IndexConfig (dataclass)
#     - high_density_threshold: float       → GIN candidates (default 0.8)
#     - medium_density_threshold: float     → Partial GIN cut-off (default 0.2)
#     - min_occurrences: int                → Ignore rarer fields (default 100)
#
# ==============================================

from dataclasses import dataclass


@dataclass
class DriftConfig:
    """
    Thresholds that control drift detection.

    The three density bands partition (0, 1]:
        (0, ghost]                → ghost key
        (ghost, sparse]           → sparse field
        (sparse, missing)         → missing key
        [missing, 1]              → no density issue
    """

    type_inconsistency_threshold: float = 5.0
    """
    Minimum percentage of non-dominant types for a type inconsistency.
    Default 5.0 = at least 5% of occurrences must differ from the dominant type.
    """

    ghost_key_threshold: float = 0.10
    """
    Maximum density for a ghost key.
    Default 0.10 = present in at most 10% of documents.
    """

    sparse_field_threshold: float = 0.80
    """
    Maximum density for a sparse field.
    Default 0.80 = present in more than 10% and at most 80% of documents.
    """

    missing_key_threshold: float = 0.95
    """
    Fields denser than sparse_field_threshold but below this value are
    expected keys with gaps. Default 0.95.
    """

    detect_schema_evolution: bool = True
    """Whether to run the version marker / deprecated naming / mutually exclusive checks."""


@dataclass
class IndexConfig:
    """
    Thresholds that control index recommendations.
    """

    high_density_threshold: float = 0.8
    """Fields at or above this density are folded into one GIN index."""

    medium_density_threshold: float = 0.2
    """Fields at or below this density get a partial GIN index each."""

    min_occurrences: int = 100
    """Fields seen fewer times than this are never recommended."""
