# ==============================================
# Drift Issues (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that represent the OUTPUT of drift detection.
#   One instance per detected condition, carrying the path and the
#   evidence (counts / percentages) that triggered it.
#
# ENUMS:
# ------
# - Severity(IntEnum): INFO < WARNING < CRITICAL
#
# CLASSES:
# --------
# - TypeDistribution      → One bucket of a type histogram with its percentage
#
# - EvolutionPattern (closed union):
#     VersionMarker(marker_path)
#     DeprecatedNaming(old_path, new_path)
#     MutuallyExclusive(paths)
#
# - DriftIssue (closed union):
#     TypeInconsistency(path, types, minority_percentage)
#     GhostKey(path, density, occurrences, total_samples)
#     SparseField(path, density, occurrences, total_samples)
#     MissingKey(path, density, expected_occurrences, actual_occurrences)
#     SchemaEvolution(path, pattern)
#
#   Every issue exposes:
#     - kind: str            → stable tag ("type_inconsistency", ...)
#     - severity: Severity   → derived from the evidence, never stored
#     - description() -> str
#     - to_dict() -> dict
#
# ==============================================

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Dict, List, Tuple, Union

from .json_type import JsonType


class Severity(IntEnum):
    """Severity of a drift issue. Higher is worse."""
    INFO = 1
    WARNING = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class TypeDistribution:
    """How often one JSON type was seen at a path."""
    json_type: JsonType
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "json_type": self.json_type.value,
            "count": self.count,
            "percentage": self.percentage,
        }


# ======================================
# Schema evolution patterns
# ======================================

@dataclass(frozen=True)
class VersionMarker:
    """A path segment looks like a schema version field."""
    marker_path: str

    kind: ClassVar[str] = "version_marker"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "marker_path": self.marker_path}


@dataclass(frozen=True)
class DeprecatedNaming:
    """An old_/legacy_/deprecated_ path coexists with its renamed successor."""
    old_path: str
    new_path: str

    kind: ClassVar[str] = "deprecated_naming"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "old_path": self.old_path, "new_path": self.new_path}


@dataclass(frozen=True)
class MutuallyExclusive:
    """Sibling variants (address_v1 / address_v2) that never appear together."""
    paths: Tuple[str, ...]

    kind: ClassVar[str] = "mutually_exclusive"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "paths": list(self.paths)}


EvolutionPattern = Union[VersionMarker, DeprecatedNaming, MutuallyExclusive]


# ======================================
# Drift issues
# ======================================

@dataclass(frozen=True)
class TypeInconsistency:
    """
    A path holds more than one JSON type and the minority share
    is at least the configured threshold.
    """
    path: str
    types: Dict[JsonType, TypeDistribution]
    minority_percentage: float

    kind: ClassVar[str] = "type_inconsistency"

    @property
    def severity(self) -> Severity:
        if self.minority_percentage >= 10.0:
            return Severity.CRITICAL
        if self.minority_percentage >= 5.0:
            return Severity.WARNING
        return Severity.INFO

    def description(self) -> str:
        ranked = sorted(self.types.values(), key=lambda td: td.percentage, reverse=True)
        breakdown = ", ".join(f"{td.json_type}: {td.percentage:.1f}%" for td in ranked)
        return f"Type inconsistency (minority: {self.minority_percentage:.1f}%): {breakdown}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            **_base_dict(self),
            "types": [td.to_dict() for td in self.types.values()],
            "minority_percentage": self.minority_percentage,
        }


@dataclass(frozen=True)
class GhostKey:
    """A field present in only a tiny fraction of documents."""
    path: str
    density: float
    occurrences: int
    total_samples: int

    kind: ClassVar[str] = "ghost_key"

    @property
    def severity(self) -> Severity:
        return Severity.INFO

    def description(self) -> str:
        return (
            f"Ghost key: {self.density * 100:.2f}% present "
            f"({self.occurrences}/{self.total_samples} samples)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **_base_dict(self),
            "density": self.density,
            "occurrences": self.occurrences,
            "total_samples": self.total_samples,
        }


@dataclass(frozen=True)
class SparseField:
    """An optional field with moderate presence."""
    path: str
    density: float
    occurrences: int
    total_samples: int

    kind: ClassVar[str] = "sparse_field"

    @property
    def severity(self) -> Severity:
        return Severity.INFO

    def description(self) -> str:
        return (
            f"Sparse field: {self.density * 100:.2f}% present "
            f"({self.occurrences}/{self.total_samples} samples)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **_base_dict(self),
            "density": self.density,
            "occurrences": self.occurrences,
            "total_samples": self.total_samples,
        }


@dataclass(frozen=True)
class MissingKey:
    """A field that should be present everywhere but has gaps."""
    path: str
    density: float
    expected_occurrences: int
    actual_occurrences: int

    kind: ClassVar[str] = "missing_key"

    @property
    def severity(self) -> Severity:
        # Under the default thresholds density is always < 0.95 here,
        # so INFO is only reachable with a looser missing_key_threshold.
        if self.density < 0.90:
            return Severity.CRITICAL
        if self.density < 0.95:
            return Severity.WARNING
        return Severity.INFO

    @property
    def missing_count(self) -> int:
        return max(self.expected_occurrences - self.actual_occurrences, 0)

    def description(self) -> str:
        missing_percentage = (1.0 - self.density) * 100
        return (
            f"Missing key: {missing_percentage:.2f}% missing "
            f"({self.missing_count}/{self.expected_occurrences} samples missing field)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **_base_dict(self),
            "density": self.density,
            "expected_occurrences": self.expected_occurrences,
            "actual_occurrences": self.actual_occurrences,
        }


@dataclass(frozen=True)
class SchemaEvolution:
    """A naming pattern that suggests the schema has changed over time."""
    path: str
    pattern: EvolutionPattern

    kind: ClassVar[str] = "schema_evolution"

    @property
    def severity(self) -> Severity:
        return Severity.WARNING

    def description(self) -> str:
        pattern = self.pattern
        if isinstance(pattern, VersionMarker):
            return f"Schema evolution: version marker '{pattern.marker_path}'"
        if isinstance(pattern, DeprecatedNaming):
            return (
                f"Schema evolution: deprecated field '{pattern.old_path}' "
                f"-> '{pattern.new_path}'"
            )
        if isinstance(pattern, MutuallyExclusive):
            return f"Schema evolution: mutually exclusive fields: {', '.join(pattern.paths)}"
        raise TypeError(f"Unknown evolution pattern: {pattern!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {**_base_dict(self), "pattern": self.pattern.to_dict()}


DriftIssue = Union[TypeInconsistency, GhostKey, SparseField, MissingKey, SchemaEvolution]


def _base_dict(issue: DriftIssue) -> Dict[str, Any]:
    return {
        "kind": issue.kind,
        "path": issue.path,
        "severity": issue.severity.label,
        "description": issue.description(),
    }


def count_by_severity(issues: List[DriftIssue]) -> Dict[str, int]:
    """
    Count issues per severity.

    Returns:
        {"critical": n, "warning": n, "info": n}
    """
    counts = {"critical": 0, "warning": 0, "info": 0}
    for issue in issues:
        counts[issue.severity.name.lower()] += 1
    return counts
