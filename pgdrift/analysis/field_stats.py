# ==============================================
# FieldStats
# ==============================================
#
# PURPOSE:
#   Data class that holds all observed statistics for a single
#   JSON path. This is the "evidence" that the drift detector and
#   the index advisor make their decisions on.
#
# WHY THIS CLASS EXISTS:
#   While sampled documents are walked, every path needs its own
#   counters: how often does it appear? in how many documents?
#   how often is it null? which JSON types does it take?
#   This class is the container for all that evidence.
#
# CLASS: FieldStats (dataclass)
# -----------------------------
#   Attributes:
#   -----------
#   - path: str                     → "user.profile.email", "addresses[].city"
#   - depth: int                    → 1-based nesting depth (root fields = 1)
#   - occurrences: int              → Times the path was visited (array elements count each)
#   - document_count: int           → Documents in which the path appeared at least once
#   - total_samples: int            → Documents analyzed (set on finalize)
#   - density: float                → document_count / total_samples (set on finalize)
#   - null_count: int               → Occurrences whose value was JSON null
#   - types: dict[JsonType, int]    → {STRING: 92, NUMBER: 8}
#   - examples: list                → First MAX_EXAMPLES values seen (diagnostic only)
#
#   Density counts documents, not occurrences. Outside arrays the two
#   are equal. Under an array, "addresses[].city" seen twice in one of
#   two documents has occurrences 2 but density 0.5, so density stays
#   within [0, 1].
#
#   Computed Properties:
#   --------------------
#   - dominant_type -> JsonType | None
#   - is_polymorphic -> bool
#   - null_percentage -> float
#
#   Methods:
#   --------
#   - record(value) -> None
#   - finalize(total_samples) -> None
#   - to_dict() / from_dict()
#
#   Invariants:
#   -----------
#   null_count <= occurrences
#   sum(types.values()) == occurrences
#   0.0 <= density <= 1.0 once finalized
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .json_type import JsonType


MAX_EXAMPLES = 10


@dataclass
class FieldStats:
    """
    Holds observed statistics for a single JSON path across many documents.
    """

    # --- Core identity ---
    path: str
    depth: int = 1

    # --- Counters ---
    occurrences: int = 0
    document_count: int = 0
    null_count: int = 0
    types: Dict[JsonType, int] = field(default_factory=dict)

    # --- Set by finalize() ---
    total_samples: int = 0
    density: float = 0.0

    # --- Debugging / inspection ---
    examples: List[Any] = field(default_factory=list)

    # ======================================
    # Update logic
    # ======================================
    def record(self, value: Any) -> None:
        """
        Record one occurrence of this path with its value.

        Args:
            value: The decoded JSON value found at this path
        """
        self.occurrences += 1

        json_type = JsonType.from_value(value)
        self.types[json_type] = self.types.get(json_type, 0) + 1

        if value is None:
            self.null_count += 1

        if len(self.examples) < MAX_EXAMPLES:
            self.examples.append(value)

    def mark_document(self) -> None:
        """Count one more document that contains this path."""
        self.document_count += 1

    def finalize(self, total_samples: int) -> None:
        """
        Fix the sample total and compute density.

        Args:
            total_samples: Number of top-level documents analyzed
        """
        self.total_samples = total_samples
        if total_samples > 0:
            self.density = min(self.document_count / total_samples, 1.0)
        else:
            self.density = 0.0

    # ======================================
    # Computed properties
    # ======================================
    @property
    def dominant_type(self) -> Optional[JsonType]:
        """
        Return the most frequently observed type.

        Ties go to the type that was seen first.
        """
        if not self.types:
            return None
        return max(self.types, key=self.types.get)

    @property
    def is_polymorphic(self) -> bool:
        return len(self.types) > 1

    @property
    def null_percentage(self) -> float:
        if self.occurrences == 0:
            return 0.0
        return self.null_count / self.occurrences * 100.0

    # ======================================
    # Serialization
    # ======================================
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert stats to a JSON-serializable dictionary.

        Returns:
            A dictionary representation suitable for JSON storage.
        """
        return {
            "path": self.path,
            "depth": self.depth,
            "occurrences": self.occurrences,
            "document_count": self.document_count,
            "total_samples": self.total_samples,
            "density": self.density,
            "null_count": self.null_count,
            "types": {json_type.value: count for json_type, count in self.types.items()},
            "examples": list(self.examples),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldStats":
        """
        Reconstruct FieldStats from a stored report.

        Args:
            data: Dictionary produced by to_dict()

        Returns:
            A FieldStats instance
        """
        fs = cls(path=data["path"], depth=data.get("depth", 1))
        fs.occurrences = data.get("occurrences", 0)
        fs.document_count = data.get("document_count", fs.occurrences)
        fs.total_samples = data.get("total_samples", 0)
        fs.density = data.get("density", 0.0)
        fs.null_count = data.get("null_count", 0)
        fs.types = {
            JsonType(name): count for name, count in data.get("types", {}).items()
        }
        fs.examples = list(data.get("examples", []))
        return fs
