"""
Build execution plans for workflow graphs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .errors import CycleDetected
from .schema import Workflow, WorkflowEdge


@dataclass
class ExecutionPlan:
    ordered_nodes: List[str]
    upstream: Dict[str, List[WorkflowEdge]]
    downstream: Dict[str, List[WorkflowEdge]]


class GraphScheduler:
    """Turns a node/edge set into a deterministic linear execution order."""

    def build(self, workflow: Workflow) -> ExecutionPlan:
        ordered_nodes = self.order(workflow.node_ids, workflow.edges)

        upstream: Dict[str, List[WorkflowEdge]] = {node_id: [] for node_id in ordered_nodes}
        downstream: Dict[str, List[WorkflowEdge]] = {node_id: [] for node_id in ordered_nodes}
        for edge in workflow.edges:
            if edge.source in downstream and edge.target in upstream:
                downstream[edge.source].append(edge)
                upstream[edge.target].append(edge)

        return ExecutionPlan(ordered_nodes=ordered_nodes, upstream=upstream, downstream=downstream)

    @staticmethod
    def order(node_ids: Iterable[str], edges: Sequence[WorkflowEdge]) -> List[str]:
        """
        Kahn's algorithm with a declaration-order tie break.

        Zero in-degree nodes are seeded in the order they are declared, and
        each node is enqueued the moment its last incoming edge is consumed,
        so identical inputs always produce the identical order. Edges that
        reference undeclared nodes are ignored here; validation reports them.

        Raises:
            CycleDetected: if some node can never reach in-degree zero. No
                partial order is returned in that case.
        """
        declared = list(dict.fromkeys(node_ids))
        indegree = {node_id: 0 for node_id in declared}
        targets: Dict[str, List[str]] = {node_id: [] for node_id in declared}

        for edge in edges:
            if edge.source not in indegree or edge.target not in indegree:
                continue
            targets[edge.source].append(edge.target)
            indegree[edge.target] += 1

        queue = [node_id for node_id in declared if indegree[node_id] == 0]
        ordered: List[str] = []

        while queue:
            node_id = queue.pop(0)
            ordered.append(node_id)
            for target_id in targets[node_id]:
                indegree[target_id] -= 1
                if indegree[target_id] == 0:
                    queue.append(target_id)

        if len(ordered) != len(declared):
            raise CycleDetected()
        return ordered
