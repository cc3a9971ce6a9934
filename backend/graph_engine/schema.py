"""
Workflow document model and JSON codec.

A workflow document is the node-link JSON emitted by the visual editor:

    {"id", "name", "description"?, "nodes": [...], "edges": [...],
     "rpcEndpoint", "createdAt", "updatedAt"}

Nodes keep their executable payload under ``data`` (label, category, type
tag, declared ports, static values, color). Layout fields are carried so a
parsed document can be written back unchanged, but execution ignores them.
"""

from __future__ import annotations

import json
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Mapping, Optional, Tuple

from config import DEFAULT_RPC_ENDPOINT
from .errors import ParseError, StructuralError

EXPORT_FORMAT_VERSION = "1.0"


class DataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    PUBLIC_KEY = "publicKey"
    OBJECT = "object"
    CONNECTION = "connection"
    ANY = "any"


class PortDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class PortSpec:
    id: str
    name: str
    direction: PortDirection
    data_type: str = DataType.ANY.value
    required: bool = False
    default_value: Any = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PortSpec":
        if not isinstance(raw, Mapping) or not isinstance(raw.get('id'), str):
            raise ParseError(f"Invalid port declaration: {raw!r}")
        try:
            direction = PortDirection(raw.get('type', PortDirection.INPUT.value))
        except ValueError:
            raise ParseError(f"Invalid port direction for port {raw['id']}: {raw.get('type')!r}")
        return cls(
            id=raw['id'],
            name=raw.get('name', raw['id']),
            direction=direction,
            data_type=raw.get('dataType', DataType.ANY.value),
            required=bool(raw.get('required', False)),
            default_value=raw.get('defaultValue'),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'id': self.id,
            'name': self.name,
            'type': self.direction.value,
            'dataType': self.data_type,
        }
        if self.required:
            payload['required'] = True
        if self.default_value is not None:
            payload['defaultValue'] = self.default_value
        return payload


@dataclass(frozen=True)
class NodePosition:
    x: float
    y: float

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["NodePosition"]:
        if not isinstance(raw, Mapping):
            return None
        x, y = raw.get('x'), raw.get('y')
        if not _is_number(x) or not _is_number(y):
            return None
        return cls(x=x, y=y)


@dataclass(frozen=True)
class WorkflowNode:
    id: str
    node_type: str
    label: str = ""
    category: str = ""
    inputs: Tuple[PortSpec, ...] = ()
    outputs: Tuple[PortSpec, ...] = ()
    values: Dict[str, Any] = field(default_factory=dict)
    color: str = ""
    position: Optional[NodePosition] = None
    canvas_type: str = "custom"

    @property
    def display_name(self) -> str:
        return self.label or self.id

    @classmethod
    def from_dict(cls, raw: Any) -> "WorkflowNode":
        if not isinstance(raw, Mapping) or not isinstance(raw.get('id'), str):
            raise ParseError(f"Node without a string id: {raw!r}")
        data = raw.get('data') or {}
        if not isinstance(data, Mapping):
            raise ParseError(f"Node {raw['id']} has a non-object data payload")
        values = data.get('values') or {}
        if not isinstance(values, Mapping):
            raise ParseError(f"Node {raw['id']} has non-object values")
        node_type = data.get('type') or ''
        if not isinstance(node_type, str):
            raise ParseError(f"Node {raw['id']} has a non-string type")
        return cls(
            id=raw['id'],
            node_type=node_type,
            label=data.get('label') or '',
            category=data.get('category') or '',
            inputs=_ports(raw['id'], data, 'inputs'),
            outputs=_ports(raw['id'], data, 'outputs'),
            values=dict(values),
            color=data.get('color') or '',
            position=NodePosition.from_raw(raw.get('position')),
            canvas_type=raw.get('type') or 'custom',
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'id': self.id,
            'type': self.canvas_type,
            'data': {
                'label': self.label,
                'category': self.category,
                'type': self.node_type,
                'inputs': [p.to_dict() for p in self.inputs],
                'outputs': [p.to_dict() for p in self.outputs],
                'values': dict(self.values),
                'color': self.color,
            },
        }
        if self.position is not None:
            payload['position'] = {'x': self.position.x, 'y': self.position.y}
        return payload


@dataclass(frozen=True)
class WorkflowEdge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    @property
    def carries_data(self) -> bool:
        """Edges missing either handle only constrain ordering."""
        return bool(self.source_handle) and bool(self.target_handle)

    @classmethod
    def from_dict(cls, raw: Any) -> "WorkflowEdge":
        if not isinstance(raw, Mapping):
            raise ParseError(f"Invalid edge: {raw!r}")
        for key in ('id', 'source', 'target'):
            if not isinstance(raw.get(key), str):
                raise ParseError(f"Edge is missing string field '{key}': {raw!r}")
        return cls(
            id=raw['id'],
            source=raw['source'],
            target=raw['target'],
            source_handle=raw.get('sourceHandle') or None,
            target_handle=raw.get('targetHandle') or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = {'id': self.id, 'source': self.source, 'target': self.target}
        if self.source_handle:
            payload['sourceHandle'] = self.source_handle
        if self.target_handle:
            payload['targetHandle'] = self.target_handle
        return payload


@dataclass(frozen=True)
class Workflow:
    id: str
    name: str
    nodes: Tuple[WorkflowNode, ...] = ()
    edges: Tuple[WorkflowEdge, ...] = ()
    rpc_endpoint: str = ""
    description: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @cached_property
    def nodes_by_id(self) -> Dict[str, WorkflowNode]:
        # First declaration wins; duplicates are reported by check_structure.
        index: Dict[str, WorkflowNode] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        return index

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.nodes_by_id.get(node_id)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'id': self.id,
            'name': self.name,
            'nodes': [n.to_dict() for n in self.nodes],
            'edges': [e.to_dict() for e in self.edges],
            'rpcEndpoint': self.rpc_endpoint,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }
        if self.description is not None:
            payload['description'] = self.description
        return payload

    def to_export_dict(self) -> Dict[str, Any]:
        document = self.to_dict()
        return {
            'version': EXPORT_FORMAT_VERSION,
            'name': self.name,
            'description': self.description,
            'nodes': document['nodes'],
            'edges': document['edges'],
            'rpcEndpoint': self.rpc_endpoint,
            'exportedAt': _utc_now(),
        }


def _ports(node_id: str, data: Mapping[str, Any], key: str) -> Tuple[PortSpec, ...]:
    ports = data.get(key) or []
    if not isinstance(ports, list):
        raise ParseError(f"Node {node_id} has a non-array {key} declaration")
    return tuple(PortSpec.from_dict(p) for p in ports)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def parse_workflow(document: Any) -> Workflow:
    """
    Parse a workflow document (mapping or JSON text) into a Workflow.

    Raises:
        ParseError: the document is not JSON, not an object, or lacks the
            node/edge containers or well-formed node and edge entries.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except ValueError as exc:
            # JSONDecodeError, or UnicodeDecodeError for undecodable bytes
            raise ParseError(f"Invalid JSON format: {exc}") from exc

    if isinstance(document, Workflow):
        return document
    if not isinstance(document, Mapping):
        raise ParseError("Workflow document must be a JSON object")

    nodes = document.get('nodes')
    edges = document.get('edges')
    if not isinstance(nodes, list):
        raise ParseError('Missing "nodes" array')
    if not isinstance(edges, list):
        raise ParseError('Missing "edges" array')

    return Workflow(
        id=str(document.get('id') or ''),
        name=document.get('name') or 'Unnamed',
        description=document.get('description'),
        nodes=tuple(WorkflowNode.from_dict(n) for n in nodes),
        edges=tuple(WorkflowEdge.from_dict(e) for e in edges),
        rpc_endpoint=document.get('rpcEndpoint') or '',
        created_at=document.get('createdAt') or '',
        updated_at=document.get('updatedAt') or '',
    )


def check_structure(workflow: Workflow) -> None:
    """
    Reject duplicate node or edge ids and edges pointing at undeclared nodes.

    Raises:
        StructuralError: on the first violation found.
    """
    edge_ids = set()
    seen = set()
    for node in workflow.nodes:
        if node.id in seen:
            raise StructuralError(f"Duplicate node ID: {node.id}", node_id=node.id)
        seen.add(node.id)

    for edge in workflow.edges:
        if edge.id in edge_ids:
            raise StructuralError(f"Duplicate edge ID: {edge.id}")
        edge_ids.add(edge.id)
        if edge.source not in seen:
            raise StructuralError(f"Edge {edge.id} references non-existent source: {edge.source}")
        if edge.target not in seen:
            raise StructuralError(f"Edge {edge.id} references non-existent target: {edge.target}")


def new_workflow(name: str, description: Optional[str] = None,
                 rpc_endpoint: str = DEFAULT_RPC_ENDPOINT) -> Workflow:
    if not name or not name.strip():
        raise ValueError("Name is required")
    now = _utc_now()
    return Workflow(
        id=str(uuid.uuid4()),
        name=name.strip(),
        description=description or None,
        rpc_endpoint=rpc_endpoint,
        created_at=now,
        updated_at=now,
    )


def describe_workflow(workflow: Workflow) -> Dict[str, Any]:
    """Summary statistics for a workflow, grouped by node category."""
    counts = Counter(node.category for node in workflow.nodes)
    categories = [
        {'category': category, 'count': count}
        for category, count in sorted(counts.items(), key=lambda item: item[1], reverse=True)
    ]
    return {
        'id': workflow.id,
        'name': workflow.name or 'Unnamed',
        'description': workflow.description or 'No description',
        'rpcEndpoint': workflow.rpc_endpoint or 'Not set',
        'createdAt': workflow.created_at,
        'updatedAt': workflow.updated_at,
        'categories': categories,
        'totalNodes': len(workflow.nodes),
        'totalEdges': len(workflow.edges),
        'avgConnectionsPerNode': round(len(workflow.edges) / max(len(workflow.nodes), 1), 2),
    }
