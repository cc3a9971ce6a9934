"""
Graph Executor - sequential run engine for workflow documents.

Architecture:
- WorkflowRunner: orchestrates one run through Loading -> ConnectivityCheck
  -> Scheduled -> Executing -> Completed | Failed
- GraphScheduler fixes the node order up front
- PortResolver wires upstream results into each node's inputs
- NodeExecutorRegistry runs the node's executor

Nodes run strictly one at a time in scheduler order, even where the graph
would allow parallelism: output sinks and result ordering observe side
effects in exactly that order. The first fatal error stops the run; results
recorded before it stay on the attached summary and nothing is rolled back.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from flow_control import FlowControlHub, OutputSink
from graph_engine.context import ExecutionContext
from graph_engine.errors import ConnectivityError, StructuralError, WorkflowError
from graph_engine.identity import LocalSignerResolver, SignerResolver
from graph_engine.node_executors import NodeExecutorRegistry
from graph_engine.planner import GraphScheduler
from graph_engine.ports import PortResolver
from graph_engine.schema import Workflow, check_structure, parse_workflow
from graph_engine.state import ExecutionState, ProgressListener
from graph_engine.values import format_result
from rpc_client import RpcHandle, SolanaRpcClient
from utils.logging_utils import log_run

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    LOADING = "loading"
    CONNECTIVITY_CHECK = "connectivity_check"
    SCHEDULED = "scheduled"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunOptions:
    rpc: Optional[str] = None          # Overrides the workflow's endpoint
    keypair: Optional[str] = None      # Path to a local keypair file
    dry_run: bool = False
    verbose: bool = False


@dataclass
class RunSummary:
    workflow_id: str
    workflow_name: str
    status: RunPhase
    succeeded: int = 0
    failed: int = 0
    duration_ms: float = 0.0
    execution_order: List[str] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)
    failed_node_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == RunPhase.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'workflow_id': self.workflow_id,
            'workflow_name': self.workflow_name,
            'status': self.status.value,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'duration_ms': round(self.duration_ms, 3),
            'execution_order': list(self.execution_order),
            'results': dict(self.results),
            'failed_node_id': self.failed_node_id,
            'error': self.error,
        }


RpcFactory = Callable[[str], RpcHandle]
SignerFactory = Callable[[Optional[str]], SignerResolver]


class WorkflowRunner:
    """
    Runs workflows against an RPC collaborator.

    Collaborators are injected so hosts and tests can substitute them; the
    defaults talk to a real Solana RPC node and log sink output.
    """

    def __init__(
        self,
        registry: Optional[NodeExecutorRegistry] = None,
        scheduler: Optional[GraphScheduler] = None,
        resolver: Optional[PortResolver] = None,
        rpc_factory: RpcFactory = SolanaRpcClient,
        signer_factory: SignerFactory = LocalSignerResolver,
        sink: Optional[OutputSink] = None,
        progress_listener: Optional[ProgressListener] = None,
    ):
        self.registry = registry or NodeExecutorRegistry()
        self.scheduler = scheduler or GraphScheduler()
        self.resolver = resolver or PortResolver()
        self.rpc_factory = rpc_factory
        self.signer_factory = signer_factory
        self.sink = sink if sink is not None else FlowControlHub()
        self.progress_listener = progress_listener

    async def execute(self, document: Any, options: Optional[RunOptions] = None) -> RunSummary:
        """
        Execute a workflow document.

        Returns:
            RunSummary for a completed run.

        Raises:
            WorkflowError: the first fatal condition, with the partial
                RunSummary attached as ``error.summary``.
        """
        options = options or RunOptions()
        summary = RunSummary(workflow_id='', workflow_name='', status=RunPhase.LOADING)

        try:
            workflow = self._load(document)
        except WorkflowError as exc:
            raise self._fail(summary, exc)
        summary.workflow_id = workflow.id
        summary.workflow_name = workflow.name

        with log_run(workflow.id):
            rpc_endpoint = options.rpc or workflow.rpc_endpoint
            if not rpc_endpoint:
                raise self._fail(summary, ConnectivityError(
                    "No RPC endpoint specified. Pass an rpc option or set rpcEndpoint in the workflow."
                ))

            summary.status = RunPhase.CONNECTIVITY_CHECK
            rpc = await self._connect(rpc_endpoint, summary)
            try:
                return await self._run(workflow, rpc, rpc_endpoint, options, summary)
            finally:
                close = getattr(rpc, 'close', None)
                if close is not None:
                    close()

    def _load(self, document: Any) -> Workflow:
        workflow = parse_workflow(document)
        check_structure(workflow)
        logger.info(
            "Loaded workflow: %s (%d nodes, %d edges)",
            workflow.name, len(workflow.nodes), len(workflow.edges),
        )
        return workflow

    async def _connect(self, rpc_endpoint: str, summary: RunSummary) -> RpcHandle:
        logger.info("Testing RPC connection: %s", rpc_endpoint)
        rpc = None
        try:
            rpc = self.rpc_factory(rpc_endpoint)
            slot = await rpc.get_slot()
        except Exception as exc:
            close = getattr(rpc, 'close', None)
            if close is not None:
                close()
            error = ConnectivityError(f"Could not reach RPC endpoint {rpc_endpoint}: {exc}")
            raise self._fail(summary, error) from exc
        logger.info("Connected to RPC (slot: %s)", slot)
        return rpc

    async def _run(
        self,
        workflow: Workflow,
        rpc: RpcHandle,
        rpc_endpoint: str,
        options: RunOptions,
        summary: RunSummary,
    ) -> RunSummary:
        summary.status = RunPhase.SCHEDULED
        try:
            plan = self.scheduler.build(workflow)
        except WorkflowError as exc:
            raise self._fail(summary, exc)
        summary.execution_order = list(plan.ordered_nodes)
        logger.info("Execution order determined (%d steps)", len(plan.ordered_nodes))

        ctx = ExecutionContext(
            rpc_endpoint=rpc_endpoint,
            sink=self.sink,
            signer=self.signer_factory(options.keypair),
            dry_run=options.dry_run,
            verbose=options.verbose,
        )
        state = ExecutionState(total_nodes=len(plan.ordered_nodes), listener=self.progress_listener)
        if options.dry_run:
            logger.info("[DRY RUN] No transactions will be sent")

        summary.status = RunPhase.EXECUTING
        for node_id in plan.ordered_nodes:
            node = workflow.get_node(node_id)
            if node is None:
                raise self._fail(summary, StructuralError(
                    f"Scheduled node {node_id} is not declared in the workflow", node_id=node_id
                ), state, ctx)

            state.set_current_node(node_id)
            logger.info(
                "[%d/%d] %s", state.success + state.failed + 1, state.total_nodes, node.display_name
            )
            try:
                inputs = self.resolver.resolve_inputs(node, workflow.edges, ctx.results)
                result = await self.registry.dispatch(node.node_type, inputs, ctx, rpc, node_id=node_id)
            except WorkflowError as exc:
                state.increment(success=False)
                logger.error("Node %s (%s) failed: %s", node.display_name, node_id, exc)
                raise self._fail(summary, exc, state, ctx)

            ctx.results.record(node_id, result)
            state.increment(success=True)
            if options.verbose:
                logger.info("     Result: %s", format_result(result))

        summary.status = RunPhase.COMPLETED
        self._fill_counts(summary, state, ctx)
        logger.info(
            "Execution complete: %d succeeded, %d failed, %.0fms",
            summary.succeeded, summary.failed, summary.duration_ms,
        )
        return summary

    @staticmethod
    def _fill_counts(summary: RunSummary, state: Optional[ExecutionState],
                     ctx: Optional[ExecutionContext]) -> None:
        if state is not None:
            summary.succeeded = state.success
            summary.failed = state.failed
            summary.duration_ms = state.elapsed_ms
        if ctx is not None:
            summary.results = ctx.results.as_dict()

    def _fail(
        self,
        summary: RunSummary,
        error: WorkflowError,
        state: Optional[ExecutionState] = None,
        ctx: Optional[ExecutionContext] = None,
    ) -> WorkflowError:
        summary.status = RunPhase.FAILED
        summary.failed_node_id = error.node_id
        summary.error = str(error)
        self._fill_counts(summary, state, ctx)
        error.summary = summary
        if error.node_id:
            logger.error("Workflow execution stopped due to error in node: %s", error.node_id)
        else:
            logger.error("Workflow execution failed: %s", error)
        return error


async def execute_workflow(document: Any, options: Optional[RunOptions] = None, **collaborators) -> RunSummary:
    """Convenience entry point: build a runner with ``collaborators`` and execute once."""
    return await WorkflowRunner(**collaborators).execute(document, options)
