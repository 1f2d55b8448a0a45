"""
Definition parser tests
"""
import json

import pytest
import yaml

from workflow_runtime.core import (
    BranchDecision, DefinitionParser, DocumentValidator, WorkflowEngine, WorkflowGraph, WorkflowRunner,
    format_validation_errors
)
from workflow_runtime.exceptions import DefinitionError, DefinitionParseError
from workflow_runtime.models import WorkflowStatus


class TestRuntimeLayout:
    """Documents whose outputs carry their targets"""

    def test_parse_dict(self, parser, e2e_document):
        definition = parser.parse_dict(e2e_document)

        assert definition.id == "e2e"
        assert definition.version == "1.0.0"
        assert [node.id for node in definition.nodes] == ["trigger", "cond", "photo", "print"]

        cond = definition.nodes[1]
        assert cond.config == {"field": "hasPhoto", "operator": "is_true"}
        assert [(output.id, output.target) for output in cond.outputs] == [("then", "print"), ("else", "photo")]
        assert definition.nodes[3].outputs[0].target is None

    def test_alternative_target_keys(self, parser, build_document):
        definition = parser.parse_dict(build_document([
            {"id": "a", "type": "TRIGGER_MANUAL", "outputs": [{"id": "default", "next": "b"}]},
            {"id": "b", "type": "PRINT", "outputs": [{"id": "default", "to": "a"}]}
        ]))

        assert definition.nodes[0].outputs[0].target == "b"
        assert definition.nodes[1].outputs[0].target == "a"

    def test_missing_id_gets_generated(self, parser, build_document):
        document = build_document([{"id": "a", "type": "TRIGGER_MANUAL"}])
        del document["id"]

        definition = parser.parse_dict(document)

        assert definition.id

    def test_yaml_string(self, parser, e2e_document):
        definition = parser.parse(yaml.safe_dump(e2e_document))

        assert definition.id == "e2e"
        assert len(definition.nodes) == 4

    def test_round_trip_through_to_dict(self, parser, e2e_definition):
        again = parser.parse_dict(e2e_definition.to_dict())

        assert again.to_dict() == e2e_definition.to_dict()


class TestCanvasLayout:
    """Builder exports with data blocks and edges"""

    def test_edges_are_folded_into_outputs(self, parser, canvas_document):
        definition = parser.parse_dict(canvas_document)
        nodes = {node.id: node for node in definition.nodes}

        assert nodes["trigger"].type == "TRIGGER_MANUAL"
        assert nodes["trigger"].get_output("default").target == "cond"
        assert nodes["cond"].get_output("then").target == "print"
        assert nodes["cond"].get_output("else").target == "photo"
        assert nodes["photo"].get_output("default").target == "print"
        assert nodes["print"].get_output("default").target is None

    def test_step_type_comes_from_data_block(self, parser, canvas_document):
        definition = parser.parse_dict(canvas_document)
        trigger = definition.nodes[0]

        assert trigger.type == "TRIGGER_MANUAL"
        assert trigger.label == "Start"
        assert trigger.metadata["canvasType"] == "workflowStep"
        assert trigger.metadata["position"] == {"x": 0, "y": 0}
        assert trigger.metadata["category"] == "trigger"
        assert trigger.metadata["stepNumber"] == 0
        assert "outputs" not in trigger.metadata

    def test_data_block_without_outputs_gets_default(self, parser, canvas_document):
        del canvas_document["steps"]["nodes"][2]["data"]["outputs"]

        definition = parser.parse_dict(canvas_document)

        assert definition.nodes[2].output_ids == ["default"]
        assert definition.nodes[2].get_output("default").target == "print"

    def test_guestbook_flow_with_photo(self, parser, guestbook_document):
        definition = parser.parse_dict(guestbook_document)
        engine = WorkflowEngine(definition)

        engine.start()
        assert engine.current_node.id == "gb1"
        engine.complete_step()
        engine.complete_step(data={"name": "Ada"})
        engine.complete_step(data={"message": "Congratulations!"})

        assert engine.current_node.id == "gb4"
        assert engine.evaluate_condition() is BranchDecision.UNRESOLVED

        engine.complete_step("then", {"user_choice": "yes"})
        assert engine.current_node.id == "gb5"
        engine.complete_step(data={"photo": "data:selfie"})
        assert engine.current_node.id == "gb6"
        engine.complete_step()

        assert engine.status is WorkflowStatus.COMPLETED
        assert engine.state.collected_data["photo"] == "data:selfie"

    def test_guestbook_flow_without_photo(self, parser, guestbook_document):
        runner = WorkflowRunner(parser.parse_dict(guestbook_document))

        runner.start()
        runner.complete_step()
        runner.complete_step(data={"name": "Ada"})
        runner.complete_step(data={"message": "Congratulations!", "user_choice": "no"})

        # the condition resolves on its own and skips the photo
        assert runner.current_node.id == "gb6"
        assert runner.state.collected_data["_condition_gb4"] is False

    def test_canvas_graph_matches_runtime_graph(self, parser, canvas_document, e2e_document):
        canvas = WorkflowGraph(parser.parse_dict(canvas_document))
        runtime = WorkflowGraph(parser.parse_dict(e2e_document))

        for node in runtime.nodes:
            for output in node.outputs:
                expected = runtime.next_node(node.id, output.id)
                actual = canvas.next_node(node.id, output.id)
                assert (actual.id if actual else None) == (expected.id if expected else None)

    def test_undeclared_handle(self, parser, canvas_document):
        canvas_document["steps"]["edges"].append({"source": "cond", "target": "print", "sourceHandle": "maybe"})

        with pytest.raises(DefinitionError) as exc_info:
            parser.parse_dict(canvas_document)

        assert any("undeclared output 'maybe'" in error for error in exc_info.value.errors)

    def test_output_bound_twice(self, parser, canvas_document):
        canvas_document["steps"]["edges"].append({"source": "photo", "target": "cond"})

        with pytest.raises(DefinitionError) as exc_info:
            parser.parse_dict(canvas_document)

        assert any("bound to more than one node" in error for error in exc_info.value.errors)

    def test_unknown_edge_source(self, parser, canvas_document):
        canvas_document["steps"]["edges"].append({"source": "ghost", "target": "cond"})

        with pytest.raises(DefinitionError) as exc_info:
            parser.parse_dict(canvas_document)

        assert any("'ghost' not found" in error for error in exc_info.value.errors)


class TestDocumentErrors:
    """Unreadable or malformed documents"""

    def test_not_a_mapping(self, parser):
        with pytest.raises(DefinitionParseError):
            parser.parse_dict(["not", "a", "workflow"])

    def test_schema_errors(self, parser):
        with pytest.raises(DefinitionError) as exc_info:
            parser.parse_dict({"id": "broken", "steps": {"nodes": [{"label": "no id"}]}})

        errors = exc_info.value.errors
        assert errors
        assert all(error.startswith("steps.nodes.0") for error in errors)

    def test_missing_steps(self, parser):
        with pytest.raises(DefinitionError) as exc_info:
            parser.parse_dict({"id": "empty"})

        assert exc_info.value.errors == ["root: 'steps' is a required property"]

    def test_invalid_yaml(self, parser):
        with pytest.raises(DefinitionParseError):
            parser.parse_string("steps: [unclosed")

    def test_unsupported_file_format(self, parser, tmp_path):
        path = tmp_path / "workflow.txt"
        path.write_text("steps: {}")

        with pytest.raises(DefinitionParseError):
            parser.parse_file(path)

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(DefinitionParseError):
            parser.parse(tmp_path / "missing.yaml")

    def test_invalid_json_file(self, parser, tmp_path):
        path = tmp_path / "workflow.json"
        path.write_text("{not json")

        with pytest.raises(DefinitionParseError):
            parser.parse(str(path))


class TestFiles:
    """Definitions on disk"""

    def test_json_file(self, parser, tmp_path, canvas_document):
        path = tmp_path / "canvas.json"
        path.write_text(json.dumps(canvas_document))

        definition = parser.parse(path)

        assert definition.id == "canvas"

    def test_example_definitions_are_valid(self, parser, examples_dir):
        paths = sorted(examples_dir.glob("*.*"))
        assert paths

        for path in paths:
            graph = WorkflowGraph(parser.parse(path))
            assert graph.entry_node is not None


class TestValidator:
    """DocumentValidator and error formatting"""

    def test_valid_document(self, e2e_document):
        assert DocumentValidator().validate(e2e_document["workflow"]) == []

    def test_format_errors(self):
        assert format_validation_errors([]) == "No validation errors"
        formatted = format_validation_errors(["a", "b", "c"], max_errors=2)
        assert "  - a" in formatted
        assert "... and 1 more errors" in formatted
