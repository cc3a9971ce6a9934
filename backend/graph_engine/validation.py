"""
Static structural checks for workflow documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from .errors import CycleDetected
from .planner import GraphScheduler
from .schema import Workflow, WorkflowEdge

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {'valid': self.valid, 'errors': list(self.errors), 'warnings': list(self.warnings)}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class WorkflowValidator:
    """
    Validates raw workflow documents without executing anything.

    Unlike the runner, which stops at the first fatal condition, validation
    always walks the whole document and reports every problem it finds.
    """

    def __init__(self, known_types: Iterable[str], scheduler: Optional[GraphScheduler] = None):
        self.known_types = frozenset(known_types)
        self.scheduler = scheduler or GraphScheduler()

    def validate(self, workflow: Any) -> ValidationReport:
        if isinstance(workflow, Workflow):
            workflow = workflow.to_dict()

        report = ValidationReport()
        if not isinstance(workflow, Mapping):
            report.errors.append('Workflow document must be a JSON object')
            return report

        nodes = workflow.get('nodes')
        edges = workflow.get('edges')
        if not isinstance(nodes, list):
            report.errors.append('Missing "nodes" array')
        if not isinstance(edges, list):
            report.errors.append('Missing "edges" array')
        if report.errors:
            return report

        node_ids = self._check_nodes(nodes, report)
        scheduling_edges = self._check_edges(edges, node_ids, report)

        try:
            self.scheduler.order(node_ids, scheduling_edges)
        except CycleDetected:
            report.errors.append('Workflow contains cycles')

        if not workflow.get('rpcEndpoint'):
            report.warnings.append('No RPC endpoint specified in workflow')

        logger.debug(
            "Validated workflow %s: %d errors, %d warnings",
            workflow.get('id'), len(report.errors), len(report.warnings),
        )
        return report

    def _check_nodes(self, nodes: List[Any], report: ValidationReport) -> List[str]:
        node_ids: List[str] = []
        seen = set()

        for index, node in enumerate(nodes):
            if not isinstance(node, Mapping) or not isinstance(node.get('id'), str):
                report.errors.append(f"Node at index {index} is missing an id")
                continue

            node_id = node['id']
            if node_id in seen:
                report.errors.append(f"Duplicate node ID: {node_id}")
            else:
                seen.add(node_id)
                node_ids.append(node_id)

            data = node.get('data')
            node_type = data.get('type') if isinstance(data, Mapping) else None
            if not isinstance(node_type, str) or not node_type:
                report.errors.append(f"Node {node_id} is missing type")
            elif node_type not in self.known_types:
                report.errors.append(f"Unknown node type: {node_type} (node: {node_id})")

            position = node.get('position')
            if (not isinstance(position, Mapping)
                    or not _is_number(position.get('x'))
                    or not _is_number(position.get('y'))):
                report.warnings.append(f"Node {node_id} has invalid position")

        return node_ids

    def _check_edges(self, edges: List[Any], node_ids: List[str], report: ValidationReport) -> List[WorkflowEdge]:
        known = set(node_ids)
        edge_ids = set()
        scheduling_edges: List[WorkflowEdge] = []

        for index, edge in enumerate(edges):
            if not isinstance(edge, Mapping):
                report.errors.append(f"Edge at index {index} is not an object")
                continue

            edge_id = edge.get('id')
            if not isinstance(edge_id, str):
                report.errors.append(f"Edge at index {index} is missing an id")
                edge_id = f"#{index}"
            elif edge_id in edge_ids:
                report.errors.append(f"Duplicate edge ID: {edge_id}")
            edge_ids.add(edge_id)

            source, target = edge.get('source'), edge.get('target')
            if not isinstance(source, str):
                source = repr(source)
            if not isinstance(target, str):
                target = repr(target)
            if source not in known:
                report.errors.append(f"Edge {edge_id} references non-existent source: {source}")
            if target not in known:
                report.errors.append(f"Edge {edge_id} references non-existent target: {target}")
            if source in known and target in known:
                scheduling_edges.append(WorkflowEdge(id=edge_id, source=source, target=target))

        return scheduling_edges
