import itertools

import pytest

from graph_engine.errors import CycleDetected
from graph_engine.planner import GraphScheduler
from graph_engine.schema import WorkflowEdge, parse_workflow

from factories import edge, node, workflow_doc


def _edges(*pairs):
    return [WorkflowEdge(id=f"e{i}", source=s, target=t) for i, (s, t) in enumerate(pairs)]


def _assert_respects_edges(order, edges):
    position = {node_id: index for index, node_id in enumerate(order)}
    for e in edges:
        assert position[e.source] < position[e.target], e


def test_chain_runs_in_dependency_order_regardless_of_declaration():
    order = GraphScheduler.order(["c", "b", "a"], _edges(("a", "b"), ("b", "c")))
    assert order == ["a", "b", "c"]


def test_independent_nodes_keep_declaration_order():
    assert GraphScheduler.order(["x", "y", "z"], []) == ["x", "y", "z"]
    assert GraphScheduler.order(["z", "x", "y"], []) == ["z", "x", "y"]


def test_newly_ready_nodes_queue_behind_earlier_roots():
    # a and d are roots; b becomes ready only after a, so d runs first
    order = GraphScheduler.order(["a", "b", "d"], _edges(("a", "b")))
    assert order == ["a", "d", "b"]


def test_diamond_follows_edge_declaration_order():
    edges = _edges(("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"))
    assert GraphScheduler.order(["a", "c", "b", "d"], edges) == ["a", "b", "c", "d"]

    swapped = _edges(("a", "c"), ("a", "b"), ("b", "d"), ("c", "d"))
    assert GraphScheduler.order(["a", "c", "b", "d"], swapped) == ["a", "c", "b", "d"]


def test_every_declaration_order_yields_a_valid_permutation():
    edges = _edges(("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"), ("e", "d"))
    for ids in itertools.permutations(["a", "b", "c", "d", "e"]):
        order = GraphScheduler.order(list(ids), edges)
        assert sorted(order) == sorted(ids)
        _assert_respects_edges(order, edges)


def test_order_is_deterministic():
    ids = ["n3", "n1", "n4", "n2"]
    edges = _edges(("n1", "n2"), ("n3", "n2"), ("n4", "n1"))
    first = GraphScheduler.order(ids, edges)
    assert all(GraphScheduler.order(ids, edges) == first for _ in range(10))


def test_parallel_edges_count_toward_indegree():
    edges = _edges(("a", "b"), ("a", "b"))
    assert GraphScheduler.order(["b", "a"], edges) == ["a", "b"]


@pytest.mark.parametrize("pairs", [
    (("a", "b"), ("b", "a")),
    (("a", "a"),),
    (("a", "b"), ("b", "c"), ("c", "a")),
])
def test_cycles_raise_without_partial_order(pairs):
    with pytest.raises(CycleDetected) as exc_info:
        GraphScheduler.order(["a", "b", "c"], _edges(*pairs))
    assert "cycles" in str(exc_info.value)


def test_cycle_downstream_of_valid_prefix_still_raises():
    edges = _edges(("root", "a"), ("a", "b"), ("b", "a"))
    with pytest.raises(CycleDetected):
        GraphScheduler.order(["root", "a", "b"], edges)


def test_edges_to_undeclared_nodes_are_ignored():
    assert GraphScheduler.order(["a", "b"], _edges(("ghost", "a"), ("a", "b"))) == ["a", "b"]


def test_empty_graph_has_empty_order():
    assert GraphScheduler.order([], []) == []


def test_build_indexes_edges_by_node():
    workflow = parse_workflow(workflow_doc(
        [node("a", "input-number"), node("b", "math-add"), node("c", "output-log")],
        [edge("e1", "a", "b", "value", "a"), edge("e2", "b", "c", "result", "value")],
    ))
    plan = GraphScheduler().build(workflow)

    assert plan.ordered_nodes == ["a", "b", "c"]
    assert [e.id for e in plan.downstream["a"]] == ["e1"]
    assert [e.id for e in plan.upstream["b"]] == ["e1"]
    assert [e.id for e in plan.upstream["c"]] == ["e2"]
    assert plan.upstream["a"] == []
