"""
Workflow graph runtime
======================

Provides the core building blocks for executing workflow documents:

- Workflow document model and codec
- Graph scheduling (deterministic topological order)
- Port resolution between node results and inputs
- Node executor registry and node catalog
- Static validation
"""

from .errors import (  # noqa: F401
    ConnectivityError,
    CycleDetected,
    NodeExecutionError,
    ParseError,
    StructuralError,
    UnknownNodeType,
    WorkflowError,
)
from .schema import Workflow, parse_workflow  # noqa: F401
from .planner import ExecutionPlan, GraphScheduler  # noqa: F401
from .validation import ValidationReport, WorkflowValidator  # noqa: F401
