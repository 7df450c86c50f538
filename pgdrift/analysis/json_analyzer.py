# ==============================================
# JsonAnalyzer
# ==============================================
#
# PURPOSE:
#   Walk sampled JSON documents and accumulate per-path statistics
#   (FieldStats). This is the "observation engine": it watches the
#   data and builds evidence for the drift detector and index advisor.
#
# CLASS: JsonAnalyzer
# -------------------
#   Stateful: owns the path → FieldStats map for one analysis run.
#   Never shared between runs or threads.
#
#   Methods:
#   --------
#   - analyze(document) -> None
#       Fold one decoded document into the stats map.
#
#   - analyze_many(documents: Iterable) -> int
#       Fold a (possibly lazy) stream of documents. Returns how many.
#
#   - finalize() -> dict[str, FieldStats]
#       Stamp total_samples on every path, compute density, hand
#       the map over to the caller.
#
# PATH RULES:
# -----------
#   {"user": {"email": "a"}}             → user, user.email
#   {"addresses": [{"city": "A"}]}       → addresses, addresses[].city
#   {"tags": ["a", "b"]}                 → tags  (scalars inside arrays are not fields)
#   {"items": []}                        → items (no items[] path)
#
#   Depth goes up by one for every container, object or array:
#   addresses = 1, addresses[].city = 3.
#
# ==============================================

from typing import Any, Dict, Iterable, List, Set, Tuple

from .field_stats import FieldStats


# (path, value, depth, is_field)
_Frame = Tuple[str, Any, int, bool]


class JsonAnalyzer:
    """
    Walks JSON documents and accumulates FieldStats per path.

    Traversal uses an explicit stack, so arbitrarily deep documents
    cannot exhaust the interpreter's recursion limit. The visit order
    is the same as a recursive depth-first walk in key order.
    """

    def __init__(self):
        self.stats: Dict[str, FieldStats] = {}
        self.total_samples: int = 0

    def analyze(self, document: Any) -> None:
        """
        Analyze a single JSON document.

        Args:
            document: A decoded JSON value (normally a dict)
        """
        self.total_samples += 1
        seen: Set[str] = set()

        stack: List[_Frame] = [("", document, 0, False)]
        while stack:
            path, value, depth, is_field = stack.pop()

            if is_field:
                self._record_field(path, value, depth, seen)

            if isinstance(value, dict):
                children = [
                    (self._child_path(path, key), child, depth + 1, True)
                    for key, child in value.items()
                ]
            elif isinstance(value, (list, tuple)):
                array_path = f"{path}[]"
                children = [(array_path, item, depth + 1, False) for item in value]
            else:
                # Leaf node, already recorded by its parent
                continue

            # Reverse so the first key / element is popped first
            stack.extend(reversed(children))

    def analyze_many(self, documents: Iterable[Any]) -> int:
        """
        Analyze every document from an iterable (list or lazy stream).

        Returns:
            Number of documents folded in by this call
        """
        count = 0
        for document in documents:
            self.analyze(document)
            count += 1
        return count

    def finalize(self) -> Dict[str, FieldStats]:
        """
        Compute densities and return the stats map.

        Returns:
            Dictionary mapping path → FieldStats
        """
        for field_stats in self.stats.values():
            field_stats.finalize(self.total_samples)
        return self.stats

    def _record_field(self, path: str, value: Any, depth: int, seen: Set[str]) -> None:
        field_stats = self.stats.get(path)
        if field_stats is None:
            field_stats = FieldStats(path=path, depth=depth)
            self.stats[path] = field_stats

        field_stats.record(value)

        # Density counts documents, not array positions
        if path not in seen:
            seen.add(path)
            field_stats.mark_document()

    @staticmethod
    def _child_path(parent: str, key: str) -> str:
        """
        Combine a parent path and an object key with dot notation.

        Examples:
            _child_path("", "user") → "user"
            _child_path("user", "email") → "user.email"
            _child_path("addresses[]", "city") → "addresses[].city"
        """
        if not parent:
            return key
        return f"{parent}.{key}"
