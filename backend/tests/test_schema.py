import json

import pytest

from graph_engine.errors import ParseError, StructuralError
from graph_engine.schema import (
    EXPORT_FORMAT_VERSION,
    PortDirection,
    check_structure,
    describe_workflow,
    new_workflow,
    parse_workflow,
)

from factories import edge, node, workflow_doc


def _ported_node():
    raw = node("add", "math-add", {"a": 1}, label="Add", category="math")
    raw["data"]["inputs"] = [{"id": "a", "name": "A", "type": "input", "dataType": "number", "required": True}]
    raw["data"]["outputs"] = [{"id": "result", "name": "Result", "type": "output", "dataType": "number"}]
    raw["data"]["color"] = "#00C2FF"
    raw["position"] = {"x": 10, "y": 20.5}
    return raw


def test_parse_reads_node_payload():
    workflow = parse_workflow(workflow_doc([_ported_node()], [edge("e1", "add", "add", "", "")]))

    add = workflow.get_node("add")
    assert add.node_type == "math-add"
    assert add.label == "Add"
    assert add.category == "math"
    assert add.values == {"a": 1}
    assert add.inputs[0].direction == PortDirection.INPUT
    assert add.inputs[0].required
    assert add.outputs[0].data_type == "number"
    assert add.position.y == 20.5

    [e1] = workflow.edges
    assert e1.source_handle is None
    assert not e1.carries_data


def test_parse_accepts_json_text():
    text = json.dumps(workflow_doc([node("a", "get-slot")]))
    assert parse_workflow(text).node_ids == ["a"]
    assert parse_workflow(text.encode()).node_ids == ["a"]


def test_round_trip_through_to_dict():
    document = workflow_doc([_ported_node()], [edge("e1", "add", "add", "result", "a")])
    document["description"] = "demo"
    assert parse_workflow(document).to_dict() == document


@pytest.mark.parametrize("document, message", [
    ("{broken", "Invalid JSON format"),
    ([], "must be a JSON object"),
    ({"edges": []}, 'Missing "nodes" array'),
    ({"nodes": []}, 'Missing "edges" array'),
    ({"nodes": [{"data": {}}], "edges": []}, "Node without a string id"),
    ({"nodes": [{"id": "a", "data": "x"}], "edges": []}, "non-object data payload"),
    ({"nodes": [{"id": "a", "data": {"values": 3}}], "edges": []}, "non-object values"),
    ({"nodes": [], "edges": [{"id": "e", "source": "a"}]}, "missing string field 'target'"),
    ({"nodes": [{"id": "a", "data": {"inputs": 5}}], "edges": []}, "non-array inputs"),
    ({"nodes": [{"id": "a", "data": {"outputs": {"id": "x"}}}], "edges": []}, "non-array outputs"),
    (b"\xff\xfe{", "Invalid JSON format"),
])
def test_parse_errors(document, message):
    with pytest.raises(ParseError, match=message):
        parse_workflow(document)


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_workflow("{broken")


def test_duplicate_ids_resolve_to_first_declaration():
    workflow = parse_workflow(workflow_doc([node("n", "get-slot"), node("n", "get-block-height")]))
    assert workflow.get_node("n").node_type == "get-slot"
    with pytest.raises(StructuralError, match="Duplicate node ID: n"):
        check_structure(workflow)


def test_check_structure_dangling_source():
    workflow = parse_workflow(workflow_doc([node("a", "get-slot")], [edge("e9", "x", "a")]))
    with pytest.raises(StructuralError, match="Edge e9 references non-existent source: x"):
        check_structure(workflow)


def test_defaults_for_sparse_document():
    workflow = parse_workflow({"nodes": [], "edges": []})
    assert workflow.name == "Unnamed"
    assert workflow.rpc_endpoint == ""
    assert workflow.description is None


def test_export_document():
    workflow = parse_workflow(workflow_doc([_ported_node()]))
    exported = workflow.to_export_dict()

    assert exported["version"] == EXPORT_FORMAT_VERSION
    assert exported["name"] == "Test workflow"
    assert exported["nodes"] == [_ported_node()]
    assert exported["exportedAt"].endswith("Z")
    assert "id" not in exported


def test_new_workflow():
    workflow = new_workflow("  Balance check ", rpc_endpoint="http://rpc.local")
    assert workflow.name == "Balance check"
    assert workflow.nodes == () and workflow.edges == ()
    assert workflow.rpc_endpoint == "http://rpc.local"
    assert workflow.created_at == workflow.updated_at
    assert len(workflow.id) == 36
    assert new_workflow("x").id != new_workflow("x").id

    with pytest.raises(ValueError, match="Name is required"):
        new_workflow("   ")


def test_describe_workflow():
    document = workflow_doc(
        [node("a", "get-slot", category="rpc"), node("b", "math-add", category="math"),
         node("c", "math-divide", category="math")],
        [edge("e1", "a", "b", "slot", "a")],
    )
    info = describe_workflow(parse_workflow(document))

    assert info["totalNodes"] == 3
    assert info["totalEdges"] == 1
    assert info["avgConnectionsPerNode"] == 0.33
    assert info["categories"] == [{"category": "math", "count": 2}, {"category": "rpc", "count": 1}]
    assert info["description"] == "No description"


def test_check_structure_duplicate_edge_id():
    workflow = parse_workflow(workflow_doc(
        [node("a", "get-slot"), node("b", "output-log")],
        [edge("e1", "a", "b", "slot", "value"), edge("e1", "a", "b", "slot", "label")],
    ))
    with pytest.raises(StructuralError, match="Duplicate edge ID: e1"):
        check_structure(workflow)
