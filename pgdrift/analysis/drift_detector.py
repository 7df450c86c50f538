# ==============================================
# DriftDetector
# ==============================================
#
# PURPOSE:
#   Takes the finalized FieldStats map from the JsonAnalyzer and
#   applies heuristic rules to produce a ranked list of DriftIssues.
#   Pure function of (stats, thresholds): never errors, never mutates.
#
# CLASS: DriftDetector
# --------------------
#   Stateless: takes stats in, produces issues out.
#
#   Constructor:
#   ------------
#   - __init__(config: DriftConfig)
#
#   Methods:
#   --------
#   - detect(stats: dict[str, FieldStats]) -> list[DriftIssue]
#       Run every per-field rule on every path, then the schema
#       evolution rules once over the whole map, then sort.
#
#   PER-FIELD RULES (independent, may co-fire on one path):
#
#     RULE 1: TYPE INCONSISTENCY
#       >= 2 types AND minority % >= type_inconsistency_threshold
#
#     RULE 2: GHOST KEY      0 < density <= ghost
#     RULE 3: SPARSE FIELD   ghost < density <= sparse
#     RULE 4: MISSING KEY    sparse < density < missing
#       Rules 2-4 are mutually exclusive density bands.
#
#   CROSS-FIELD RULES (only if config.detect_schema_evolution):
#
#     RULE 5: VERSION MARKER     a segment is version / schema_version / v / api_version
#     RULE 6: DEPRECATED NAMING  old_x / legacy_x / deprecated_x next to x
#     RULE 7: MUTUALLY EXCLUSIVE a_v1 / a_v2 whose densities sum to ~max
#
#   ORDER: severity descending, then path ascending.
#
# ==============================================

import logging
from typing import Dict, List, Optional

from .field_stats import FieldStats
from .issues import (
    DeprecatedNaming,
    DriftIssue,
    GhostKey,
    MissingKey,
    MutuallyExclusive,
    SchemaEvolution,
    SparseField,
    TypeDistribution,
    TypeInconsistency,
    VersionMarker,
)
from .thresholds import DriftConfig

logger = logging.getLogger(__name__)


class DriftDetector:
    """
    Applies heuristic rules to FieldStats to detect schema drift.
    """

    VERSION_MARKERS = ("version", "schema_version", "v", "api_version")
    DEPRECATED_PREFIXES = ("old_", "legacy_", "deprecated_")

    # Max gap between sum(densities) and max(density) for variants
    # to be considered mutually exclusive
    EXCLUSIVE_TOLERANCE = 0.1

    def __init__(self, config: Optional[DriftConfig] = None):
        """
        Args:
            config: Optional DriftConfig. Defaults are used if not provided.
        """
        self.config = config or DriftConfig()

    def detect(self, stats: Dict[str, FieldStats]) -> List[DriftIssue]:
        """
        Detect drift across all observed paths.

        Args:
            stats: Finalized path → FieldStats map

        Returns:
            Issues sorted by severity (Critical first), then path
        """
        issues: List[DriftIssue] = []

        for field_stats in stats.values():
            for check in (
                self.check_type_inconsistency,
                self.check_ghost_key,
                self.check_sparse_field,
                self.check_missing_key,
            ):
                issue = check(field_stats)
                if issue is not None:
                    issues.append(issue)

        if self.config.detect_schema_evolution:
            issues.extend(self.check_schema_evolution(stats))

        issues.sort(key=lambda issue: (-issue.severity, issue.path))

        logger.debug("Detected %d drift issues across %d paths", len(issues), len(stats))
        return issues

    # ======================================
    # Per-field rules
    # ======================================
    def check_type_inconsistency(self, stats: FieldStats) -> Optional[TypeInconsistency]:
        """
        RULE 1: the path carries two or more JSON types.

        The minority share is everything outside the single largest
        bucket, so a 50/50 split counts as 50% minority.
        """
        if len(stats.types) < 2:
            return None

        total_typed = sum(stats.types.values())
        if total_typed == 0:
            return None

        distributions = {
            json_type: TypeDistribution(
                json_type=json_type,
                count=count,
                percentage=count / total_typed * 100.0,
            )
            for json_type, count in stats.types.items()
        }

        max_count = max(stats.types.values())
        minority_percentage = (total_typed - max_count) / total_typed * 100.0

        if minority_percentage < self.config.type_inconsistency_threshold:
            return None

        return TypeInconsistency(
            path=stats.path,
            types=distributions,
            minority_percentage=minority_percentage,
        )

    def check_ghost_key(self, stats: FieldStats) -> Optional[GhostKey]:
        """RULE 2: 0 < density <= ghost_key_threshold."""
        if 0.0 < stats.density <= self.config.ghost_key_threshold:
            return GhostKey(
                path=stats.path,
                density=stats.density,
                occurrences=stats.occurrences,
                total_samples=stats.total_samples,
            )
        return None

    def check_sparse_field(self, stats: FieldStats) -> Optional[SparseField]:
        """RULE 3: ghost_key_threshold < density <= sparse_field_threshold."""
        if self.config.ghost_key_threshold < stats.density <= self.config.sparse_field_threshold:
            return SparseField(
                path=stats.path,
                density=stats.density,
                occurrences=stats.occurrences,
                total_samples=stats.total_samples,
            )
        return None

    def check_missing_key(self, stats: FieldStats) -> Optional[MissingKey]:
        """RULE 4: sparse_field_threshold < density < missing_key_threshold."""
        if self.config.sparse_field_threshold < stats.density < self.config.missing_key_threshold:
            return MissingKey(
                path=stats.path,
                density=stats.density,
                expected_occurrences=stats.total_samples,
                actual_occurrences=stats.occurrences,
            )
        return None

    # ======================================
    # Cross-field rules
    # ======================================
    def check_schema_evolution(self, stats: Dict[str, FieldStats]) -> List[SchemaEvolution]:
        """
        Run RULES 5-7 over the whole stats map.

        Paths are visited in sorted order so output does not depend
        on the order in which documents were analyzed.
        """
        paths = sorted(stats)
        issues: List[SchemaEvolution] = []
        issues.extend(self._find_version_markers(paths))
        issues.extend(self._find_deprecated_names(paths, stats))
        issues.extend(self._find_mutually_exclusive(paths, stats))
        return issues

    def _find_version_markers(self, paths: List[str]) -> List[SchemaEvolution]:
        issues = []
        for path in paths:
            segments = (segment.lower() for segment in path.split("."))
            if any(segment in self.VERSION_MARKERS for segment in segments):
                issues.append(SchemaEvolution(
                    path=path,
                    pattern=VersionMarker(marker_path=path),
                ))
        return issues

    def _find_deprecated_names(
        self,
        paths: List[str],
        stats: Dict[str, FieldStats]
    ) -> List[SchemaEvolution]:
        issues = []
        for path in paths:
            lowered = path.lower()
            for prefix in self.DEPRECATED_PREFIXES:
                if not lowered.startswith(prefix):
                    continue
                new_path = path[len(prefix):]
                if new_path and new_path in stats:
                    issues.append(SchemaEvolution(
                        path=path,
                        pattern=DeprecatedNaming(old_path=path, new_path=new_path),
                    ))
                break
        return issues

    def _find_mutually_exclusive(
        self,
        paths: List[str],
        stats: Dict[str, FieldStats]
    ) -> List[SchemaEvolution]:
        # Best-effort: "address_v1" and "address_v2" share base "address",
        # "user_id" and "order_id" do not
        families: Dict[str, List[str]] = {}
        for path in paths:
            if "_" not in path:
                continue
            base = path.rsplit("_", 1)[0]
            families.setdefault(base, []).append(path)

        issues = []
        for base in sorted(families):
            members = families[base]
            if len(members) < 2:
                continue
            densities = [stats[p].density for p in members]
            if abs(sum(densities) - max(densities)) < self.EXCLUSIVE_TOLERANCE:
                issues.append(SchemaEvolution(
                    path=base,
                    pattern=MutuallyExclusive(paths=tuple(members)),
                ))
        return issues


def detect_drift(
    stats: Dict[str, FieldStats],
    config: Optional[DriftConfig] = None
) -> List[DriftIssue]:
    """
    Convenience wrapper: DriftDetector(config).detect(stats).
    """
    return DriftDetector(config).detect(stats)
