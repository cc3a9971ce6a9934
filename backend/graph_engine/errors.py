"""
Error taxonomy for workflow loading, scheduling and execution.
"""

from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base class for every fatal workflow condition."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message)
        self.node_id = node_id
        self.summary = None

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ParseError(WorkflowError, ValueError):
    """Raised when a workflow document is malformed."""


class StructuralError(WorkflowError, ValueError):
    """Raised for duplicate or dangling ids in an otherwise parseable document."""


class CycleDetected(WorkflowError):
    """Raised when no execution order exists for a graph."""

    def __init__(self, message: str = "Workflow contains cycles - cannot determine execution order"):
        super().__init__(message)


class ConnectivityError(WorkflowError):
    """Raised when the RPC collaborator cannot be reached."""


class UnknownNodeType(WorkflowError):
    def __init__(self, node_type: str, node_id: Optional[str] = None):
        super().__init__(f"No executor found for node type: {node_type}", node_id=node_id)
        self.node_type = node_type


class NodeExecutionError(WorkflowError):
    """Raised by an executor when its own business rule fails."""

    def __init__(self, message: str, node_id: Optional[str] = None, node_type: Optional[str] = None):
        super().__init__(message, node_id=node_id)
        self.node_type = node_type
