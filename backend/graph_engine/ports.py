"""
Input resolution for a node about to execute.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Sequence

from .data_store import NodeResultStore
from .schema import WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)

_ABSENT = object()


def _output_field(result: Any, handle: str) -> Any:
    """Value an edge reads from ``result``; records and lists are indexed by handle."""
    if isinstance(result, Mapping):
        return result.get(handle, _ABSENT)
    if isinstance(result, (list, tuple)):
        if handle.isdecimal() and int(handle) < len(result):
            return result[int(handle)]
        return _ABSENT
    return result


class PortResolver:
    """
    Computes a node's effective inputs from its static values and the
    results already produced by upstream nodes.

    Edges are applied in declaration order on top of the static values, so
    wiring always overrides a static value and, when several edges feed the
    same input, the last declared edge wins.
    """

    def resolve_inputs(
        self,
        node: WorkflowNode,
        edges: Sequence[WorkflowEdge],
        results: NodeResultStore,
    ) -> Dict[str, Any]:
        inputs: Dict[str, Any] = dict(node.values)

        for edge in edges:
            if edge.target != node.id or not edge.carries_data:
                continue
            if not results.has_result(edge.source):
                logger.debug(
                    "Node %s: no result from %s yet for input '%s'",
                    node.id, edge.source, edge.target_handle,
                )
                continue

            value = _output_field(results.get(edge.source), edge.source_handle)
            # Absent fields leave whatever the input already held.
            if value is not _ABSENT:
                inputs[edge.target_handle] = value

        return inputs
