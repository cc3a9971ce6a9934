"""
Shared fixtures: a scripted RPC handle, an in-memory sink and a runner
wired to both.
"""

import pytest

from flow_control import FlowControlHub, create_flow_config
from graph_engine.context import ExecutionContext
from graph_engine.node_executors import NodeExecutorRegistry
from graph_executor import WorkflowRunner

from factories import FAKE_ENDPOINT, FakeRpc


@pytest.fixture
def fake_rpc():
    return FakeRpc()


@pytest.fixture
def memory_sink():
    return FlowControlHub(create_flow_config("memory"))


@pytest.fixture
def registry():
    return NodeExecutorRegistry()


@pytest.fixture
def ctx(memory_sink):
    return ExecutionContext(rpc_endpoint=FAKE_ENDPOINT, sink=memory_sink)


@pytest.fixture
def rpc_endpoints():
    """Endpoints the runner asked the RPC factory for, in order."""
    return []


@pytest.fixture
def runner(fake_rpc, memory_sink, rpc_endpoints):
    def rpc_factory(endpoint):
        rpc_endpoints.append(endpoint)
        return fake_rpc

    return WorkflowRunner(rpc_factory=rpc_factory, sink=memory_sink)
