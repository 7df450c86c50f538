# ==============================================
# IndexAdvisor
# ==============================================
#
# PURPOSE:
#   Turn finalized FieldStats into index recommendations for a
#   JSONB column, with ready-to-review CREATE INDEX statements.
#   The DDL is advisory text only; nothing here touches a database.
#
# ELIGIBILITY (all kinds):
#   occurrences >= min_occurrences AND dominant type is not object/array
#
# RULES:
#   density >= high                    → ONE consolidated GIN index
#                                         naming every such field   (HIGH)
#   medium < density < high, scalar    → B-tree on extracted value   (MEDIUM)
#   0 < density <= medium              → Partial GIN per field       (LOW)
#
# ORDER: HIGH, MEDIUM, LOW (stable within each band)
#
# ==============================================

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pgdrift.utils.naming import build_index_name, qualified_name, quote_identifier, quote_literal

from .field_stats import FieldStats
from .json_type import JsonType
from .thresholds import IndexConfig

logger = logging.getLogger(__name__)


class IndexType(Enum):
    GIN = "gin"
    PARTIAL = "partial_gin"
    BTREE_EXTRACTED = "btree_ext"

    @property
    def label(self) -> str:
        return {
            IndexType.GIN: "GIN",
            IndexType.PARTIAL: "Partial GIN",
            IndexType.BTREE_EXTRACTED: "B-tree (extracted)",
        }[self]


class IndexPriority(Enum):
    HIGH = 0
    MEDIUM = 1
    LOW = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass
class IndexRecommendation:
    """A single index suggestion for a JSONB column."""
    field_path: str
    index_type: IndexType
    priority: IndexPriority
    reason: str
    sql: str
    estimated_benefit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_path": self.field_path,
            "index_type": self.index_type.label,
            "priority": self.priority.label,
            "reason": self.reason,
            "sql": self.sql,
            "estimated_benefit": self.estimated_benefit,
        }


# JSON type → (cast suffix, PostgreSQL type name)
_EXTRACTED_CASTS = {
    JsonType.STRING: ("", "TEXT"),
    JsonType.NUMBER: ("::NUMERIC", "NUMERIC"),
    JsonType.BOOLEAN: ("::BOOLEAN", "BOOLEAN"),
}


class IndexAdvisor:
    """
    Recommends GIN, partial GIN and extracted B-tree indexes for one
    JSONB column based on field density and type.
    """

    def __init__(self, config: Optional[IndexConfig] = None):
        self.config = config or IndexConfig()

    def recommend(
        self,
        stats: Union[Dict[str, FieldStats], Iterable[FieldStats]],
        table: str,
        column: str,
        schema: Optional[str] = None,
    ) -> List[IndexRecommendation]:
        """
        Produce ranked index recommendations.

        Args:
            stats: Finalized path → FieldStats map (or an iterable of FieldStats)
            table: Table that owns the JSONB column
            column: The JSONB column
            schema: Optional schema to qualify the table with in DDL

        Returns:
            Recommendations ordered HIGH → MEDIUM → LOW
        """
        values = stats.values() if isinstance(stats, dict) else stats
        eligible = [s for s in sorted(values, key=lambda s: s.path) if self._is_eligible(s)]

        recommendations: List[IndexRecommendation] = []

        high_density = [s for s in eligible if s.density >= self.config.high_density_threshold]
        if high_density:
            recommendations.append(
                self._consolidated_gin(table, column, schema, high_density)
            )

        for field_stats in eligible:
            density = field_stats.density
            if density >= self.config.high_density_threshold:
                continue

            if 0.0 < density <= self.config.medium_density_threshold:
                recommendations.append(
                    self._partial_gin(table, column, schema, field_stats)
                )
            elif density > self.config.medium_density_threshold:
                dominant_type = field_stats.dominant_type
                if dominant_type is not None and dominant_type.is_scalar:
                    recommendations.append(
                        self._btree_extracted(table, column, schema, field_stats, dominant_type)
                    )

        recommendations.sort(key=lambda rec: rec.priority.value)
        logger.debug("Generated %d index recommendations for %s.%s",
                     len(recommendations), table, column)
        return recommendations

    def _is_eligible(self, stats: FieldStats) -> bool:
        if stats.occurrences < self.config.min_occurrences:
            return False
        dominant_type = stats.dominant_type
        return dominant_type is not None and not dominant_type.is_container

    # ======================================
    # Recommendation builders
    # ======================================
    def _consolidated_gin(
        self,
        table: str,
        column: str,
        schema: Optional[str],
        fields: List[FieldStats],
    ) -> IndexRecommendation:
        # max() keeps the first of equal densities, and fields are path-sorted
        primary = max(fields, key=lambda s: s.density)
        index_name = build_index_name(table, column, "", IndexType.GIN.value)
        field_list = ", ".join(f"{s.path} ({s.density * 100:.1f}%)" for s in fields)

        sql = (
            f"-- GIN index for high-density fields: {field_list}\n"
            f"CREATE INDEX {quote_identifier(index_name)} "
            f"ON {qualified_name(table, schema)} USING GIN ({quote_identifier(column)});"
        )

        if len(fields) == 1:
            reason = (
                f"High density ({primary.density * 100:.1f}%) - present in "
                f"{primary.occurrences}/{primary.total_samples} samples. "
                f"GIN index enables fast JSONB queries (@>, ?, ?&, ?|)"
            )
        else:
            reason = (
                f"{len(fields)} high-density fields ({field_list}). "
                f"Single GIN index supports fast JSONB queries (@>, ?, ?&, ?|) for all fields."
            )

        return IndexRecommendation(
            field_path=primary.path,
            index_type=IndexType.GIN,
            priority=IndexPriority.HIGH,
            reason=reason,
            sql=sql,
            estimated_benefit=(
                "Improved query performance for existence checks and containment "
                "queries across all high-density fields."
            ),
        )

    def _partial_gin(
        self,
        table: str,
        column: str,
        schema: Optional[str],
        stats: FieldStats,
    ) -> IndexRecommendation:
        index_name = build_index_name(table, column, stats.path, IndexType.PARTIAL.value)
        predicate = existence_predicate(column, stats.path)

        sql = (
            f"-- Partial GIN index for sparse field: "
            f"{stats.density * 100:.1f}% of rows contain this field\n"
            f"CREATE INDEX {quote_identifier(index_name)} "
            f"ON {qualified_name(table, schema)} USING GIN ({quote_identifier(column)}) "
            f"WHERE {predicate};"
        )

        return IndexRecommendation(
            field_path=stats.path,
            index_type=IndexType.PARTIAL,
            priority=IndexPriority.LOW,
            reason=(
                f"Sparse field ({stats.density * 100:.1f}%) - only "
                f"{stats.occurrences}/{stats.total_samples} samples have this field. "
                f"Partial index reduces index size and maintenance cost."
            ),
            sql=sql,
            estimated_benefit=(
                f"Smaller index (~{stats.density * 100:.1f}% of full GIN), faster updates, "
                f"same query performance for matching rows"
            ),
        )

    def _btree_extracted(
        self,
        table: str,
        column: str,
        schema: Optional[str],
        stats: FieldStats,
        json_type: JsonType,
    ) -> IndexRecommendation:
        index_name = build_index_name(table, column, stats.path, IndexType.BTREE_EXTRACTED.value)
        cast, pg_type = _EXTRACTED_CASTS[json_type]
        extraction = f"{quote_identifier(column)} #>> {text_path_literal(stats.path)}"
        if cast:
            expression = f"(({extraction}){cast})"
        else:
            expression = f"({extraction})"

        sql = (
            f"-- B-tree index on extracted {pg_type} value: {stats.density * 100:.1f}% density\n"
            f"CREATE INDEX {quote_identifier(index_name)} "
            f"ON {qualified_name(table, schema)} ({expression}) "
            f"WHERE {expression} IS NOT NULL;"
        )

        return IndexRecommendation(
            field_path=stats.path,
            index_type=IndexType.BTREE_EXTRACTED,
            priority=IndexPriority.MEDIUM,
            reason=(
                f"Medium density {json_type} field ({stats.density * 100:.1f}%) - "
                f"{stats.occurrences}/{stats.total_samples} samples. "
                f"B-tree index on extracted value supports range queries and sorting."
            ),
            sql=sql,
            estimated_benefit=(
                "Improved query performance for lookups and range queries on scalar values."
            ),
        )


# ======================================
# Path → SQL expression helpers
# ======================================

def _path_keys(path: str) -> List[str]:
    """Object keys along a path, with array markers dropped."""
    return [segment.replace("[]", "") for segment in path.split(".") if segment.replace("[]", "")]


def text_path_literal(path: str) -> str:
    """
    Render a path as a quoted PostgreSQL text[] literal for #> / #>>.

    Examples:
        text_path_literal("user.email") → '{"user","email"}'
    """
    elements = ",".join(
        '"' + key.replace("\\", "\\\\").replace('"', '\\"') + '"'
        for key in _path_keys(path)
    )
    return quote_literal("{" + elements + "}")


def jsonpath_literal(path: str) -> str:
    """
    Render a path as a quoted SQL/JSON path literal.

    Examples:
        jsonpath_literal("addresses[].city") → '$."addresses"[*]."city"'
    """
    parts = ["$"]
    for segment in path.split("."):
        key = segment.replace("[]", "")
        if key:
            parts.append('."' + key.replace("\\", "\\\\").replace('"', '\\"') + '"')
        parts.append("[*]" * segment.count("[]"))
    return quote_literal("".join(parts))


def existence_predicate(column: str, path: str) -> str:
    """
    Predicate that is true only for rows that carry the path.

    Examples:
        existence_predicate("metadata", "plan")
            → "metadata" ? 'plan'
        existence_predicate("metadata", "billing.plan")
            → "metadata" #> '{"billing"}' ? 'plan'
        existence_predicate("metadata", "addresses[].city")
            → "metadata" @? '$."addresses"[*]."city"'
    """
    column_sql = quote_identifier(column)

    if "[]" in path:
        return f"{column_sql} @? {jsonpath_literal(path)}"

    keys = path.split(".")
    if len(keys) == 1:
        return f"{column_sql} ? {quote_literal(keys[0])}"

    parent = ".".join(keys[:-1])
    return f"{column_sql} #> {text_path_literal(parent)} ? {quote_literal(keys[-1])}"


def recommend_indexes(
    stats: Union[Dict[str, FieldStats], Iterable[FieldStats]],
    table: str,
    column: str,
    config: Optional[IndexConfig] = None,
    schema: Optional[str] = None,
) -> List[IndexRecommendation]:
    """
    Convenience wrapper: IndexAdvisor(config).recommend(...).
    """
    return IndexAdvisor(config).recommend(stats, table, column, schema=schema)
