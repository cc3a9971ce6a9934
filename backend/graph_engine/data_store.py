"""
Append-only in-memory store for node results during a run.
"""

from typing import Any, Dict, Iterator, Tuple

_MISSING = object()


class NodeResultStore:
    """
    Maps node id -> the value that node produced.

    A run writes each node's result exactly once, in execution order, and
    never removes entries, so iteration order is execution order.
    """

    def __init__(self):
        self._results: Dict[str, Any] = {}

    def record(self, node_id: str, result: Any) -> None:
        if node_id in self._results:
            raise KeyError(f"Result for node {node_id} already recorded")
        self._results[node_id] = result

    def get(self, node_id: str, default: Any = None) -> Any:
        return self._results.get(node_id, default)

    def has_result(self, node_id: str) -> bool:
        return node_id in self._results

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._results

    def __len__(self) -> int:
        return len(self._results)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._results.items())

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._results)
