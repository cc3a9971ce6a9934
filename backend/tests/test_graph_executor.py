import pytest

from graph_engine.errors import (
    ConnectivityError,
    CycleDetected,
    NodeExecutionError,
    ParseError,
    StructuralError,
    UnknownNodeType,
)
from graph_executor import RunOptions, RunPhase, WorkflowRunner, execute_workflow

from factories import FakeRpc, edge, node, workflow_doc


@pytest.mark.asyncio
async def test_single_node_run(runner, fake_rpc):
    summary = await runner.execute(workflow_doc([node("A", "math-add", {"a": 2, "b": 3})]))

    assert summary.status == RunPhase.COMPLETED
    assert summary.is_success
    assert summary.results == {"A": {"result": 5}}
    assert summary.succeeded == 1
    assert summary.failed == 0
    assert summary.execution_order == ["A"]
    assert summary.workflow_id == "wf-1"
    assert fake_rpc.closed


@pytest.mark.asyncio
async def test_results_flow_into_downstream_sink(runner, memory_sink):
    document = workflow_doc(
        [node("A", "math-add", {"a": 2, "b": 3}), node("B", "output-log", {"label": "Sum"})],
        [edge("e1", "A", "B", "result", "value")],
    )
    summary = await runner.execute(document)

    assert summary.results == {"A": {"result": 5}, "B": 5}
    assert [(r.node_id, r.label, r.value) for r in memory_sink.records] == [("B", "Sum", 5)]


@pytest.mark.asyncio
async def test_nodes_run_in_dependency_order(runner, memory_sink):
    document = workflow_doc(
        [
            node("show", "output-display"),
            node("double", "math-multiply", {"b": 2}),
            node("lamports", "input-number", {"value": 750_000_000}),
            node("sol", "lamports-to-sol"),
        ],
        [
            edge("e1", "lamports", "double", "value", "a"),
            edge("e2", "double", "sol", "result", "lamports"),
            edge("e3", "sol", "show", "sol", "value"),
        ],
    )
    summary = await runner.execute(document)

    assert summary.execution_order == ["lamports", "double", "sol", "show"]
    assert summary.results["sol"] == {"sol": 1.5}
    assert [r.value for r in memory_sink.records] == [1.5]


@pytest.mark.asyncio
async def test_output_forwards_raw_value_downstream(runner):
    document = workflow_doc(
        [node("num", "input-number", {"value": 4}), node("show", "output-display"),
         node("add", "math-add", {"b": 1})],
        [edge("e1", "num", "show", "value", "value"), edge("e2", "show", "add", "whatever", "a")],
    )
    summary = await runner.execute(document)
    assert summary.results["add"] == {"result": 5}


@pytest.mark.asyncio
async def test_cycle_fails_before_any_node_runs(runner, fake_rpc, memory_sink):
    document = workflow_doc(
        [node("A", "output-display", {"value": 1}), node("B", "output-display", {"value": 2})],
        [edge("e1", "A", "B"), edge("e2", "B", "A")],
    )
    with pytest.raises(CycleDetected) as exc_info:
        await runner.execute(document)

    summary = exc_info.value.summary
    assert summary.status == RunPhase.FAILED
    assert summary.succeeded == 0
    assert summary.results == {}
    assert summary.execution_order == []
    assert memory_sink.records == []
    assert fake_rpc.calls == [("get_slot",)]


@pytest.mark.asyncio
async def test_failing_node_halts_run(runner, memory_sink):
    document = workflow_doc(
        [node("A", "math-divide", {"a": 10, "b": 0}), node("B", "output-display", {"value": "never"})],
    )
    with pytest.raises(NodeExecutionError) as exc_info:
        await runner.execute(document)

    error = exc_info.value
    assert error.node_id == "A"
    assert error.node_type == "math-divide"

    summary = error.summary
    assert summary.status == RunPhase.FAILED
    assert summary.failed_node_id == "A"
    assert summary.succeeded == 0
    assert summary.failed == 1
    assert "Division by zero" in summary.error
    assert summary.results == {}
    assert memory_sink.records == []


@pytest.mark.asyncio
async def test_results_before_failure_are_kept(runner, memory_sink):
    document = workflow_doc(
        [node("show", "output-display", {"value": "first"}), node("bad", "input-publickey", {"value": "nope"}),
         node("after", "output-display", {"value": "second"})],
    )
    with pytest.raises(NodeExecutionError) as exc_info:
        await runner.execute(document)

    summary = exc_info.value.summary
    assert summary.results == {"show": "first"}
    assert summary.succeeded == 1
    assert summary.failed_node_id == "bad"
    assert [r.value for r in memory_sink.records] == ["first"]


@pytest.mark.asyncio
async def test_unknown_node_type_fails_at_that_node(runner):
    document = workflow_doc([node("ok", "get-slot"), node("mystery", "transfer-sol")])
    with pytest.raises(UnknownNodeType) as exc_info:
        await runner.execute(document)

    assert exc_info.value.node_id == "mystery"
    assert exc_info.value.summary.results == {"ok": {"slot": 1234}}


@pytest.mark.asyncio
async def test_unreachable_endpoint_fails_connectivity_check(memory_sink):
    rpc = FakeRpc(unreachable=True)
    runner = WorkflowRunner(rpc_factory=lambda endpoint: rpc, sink=memory_sink)

    with pytest.raises(ConnectivityError) as exc_info:
        await runner.execute(workflow_doc([node("A", "math-add")]))

    assert "Could not reach RPC endpoint" in str(exc_info.value)
    assert exc_info.value.summary.status == RunPhase.FAILED
    assert exc_info.value.summary.workflow_name == "Test workflow"
    assert rpc.closed


@pytest.mark.asyncio
async def test_missing_endpoint_is_a_connectivity_error(runner, rpc_endpoints):
    with pytest.raises(ConnectivityError, match="No RPC endpoint"):
        await runner.execute(workflow_doc([node("A", "math-add")], rpc_endpoint=""))
    assert rpc_endpoints == []


@pytest.mark.asyncio
async def test_rpc_option_overrides_workflow_endpoint(runner, rpc_endpoints):
    summary = await runner.execute(
        workflow_doc([node("conn", "rpc-connection")]),
        RunOptions(rpc="http://override.test"),
    )
    assert rpc_endpoints == ["http://override.test"]
    assert summary.results["conn"] == {"connection": True, "endpoint": "http://override.test"}


@pytest.mark.asyncio
async def test_keypair_option_reaches_wallet_node(runner, tmp_path):
    keypair = tmp_path / "id.json"
    keypair.write_text("[]")
    summary = await runner.execute(
        workflow_doc([node("w", "wallet-connect")]),
        RunOptions(keypair=str(keypair), dry_run=True, verbose=True),
    )
    assert summary.results["w"]["connected"] is True


@pytest.mark.asyncio
async def test_malformed_documents_fail_while_loading(runner, rpc_endpoints):
    with pytest.raises(ParseError) as exc_info:
        await runner.execute({"name": "no containers"})
    assert exc_info.value.summary.status == RunPhase.FAILED

    with pytest.raises(ParseError):
        await runner.execute("{not json")

    with pytest.raises(ParseError, match="Invalid JSON format") as exc_info:
        await runner.execute(b"\xff\xfe{")
    assert exc_info.value.summary.status == RunPhase.FAILED

    bad_ports = workflow_doc([node("n1", "get-slot")])
    bad_ports["nodes"][0]["data"]["inputs"] = 5
    with pytest.raises(ParseError, match="non-array inputs"):
        await runner.execute(bad_ports)

    with pytest.raises(StructuralError, match="Duplicate edge ID: e1"):
        await runner.execute(workflow_doc(
            [node("A", "math-add"), node("B", "output-log")],
            [edge("e1", "A", "B", "result", "value"), edge("e1", "A", "B", "result", "label")],
        ))

    with pytest.raises(StructuralError, match="Duplicate node ID: n1"):
        await runner.execute(workflow_doc([node("n1", "get-slot"), node("n1", "get-slot")]))

    with pytest.raises(StructuralError, match="non-existent target"):
        await runner.execute(workflow_doc([node("n1", "get-slot")], [edge("e1", "n1", "ghost")]))

    assert rpc_endpoints == []


@pytest.mark.asyncio
async def test_progress_listener_sees_every_node(fake_rpc, memory_sink):
    updates = []
    runner = WorkflowRunner(rpc_factory=lambda endpoint: fake_rpc, sink=memory_sink,
                            progress_listener=updates.append)
    await runner.execute(workflow_doc([node("a", "get-slot"), node("b", "get-block-height")]))

    assert updates[-1] == {"progress": "2/2", "current_node_id": "b", "success": 2, "failed": 0}


@pytest.mark.asyncio
async def test_execute_workflow_entry_point(fake_rpc, memory_sink):
    summary = await execute_workflow(
        workflow_doc([node("A", "math-subtract", {"a": 5, "b": 8})]),
        rpc_factory=lambda endpoint: fake_rpc,
        sink=memory_sink,
    )
    assert summary.results == {"A": {"result": -3}}
    assert summary.to_dict()["status"] == "completed"
