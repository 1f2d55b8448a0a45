"""
CLI tests
"""
import json

import pytest
from click.testing import CliRunner

from workflow_runtime.cli import cli, parse_assignments


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def canvas_file(tmp_path, canvas_document):
    path = tmp_path / "canvas.json"
    path.write_text(json.dumps(canvas_document))
    return str(path)


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("steps:\n  nodes:\n    - id: a\n      type: PRINT\n")
    return str(path)


class TestCLI:
    """workflow-runtime commands"""

    def test_validate(self, runner, canvas_file):
        result = runner.invoke(cli, ["validate", canvas_file])

        assert result.exit_code == 0
        assert "is valid" in result.output
        assert "entry 'trigger'" in result.output

    def test_validate_invalid(self, runner, broken_file):
        result = runner.invoke(cli, ["validate", broken_file])

        assert result.exit_code == 1
        assert "No entry node" in result.output

    def test_inspect(self, runner, canvas_file):
        result = runner.invoke(cli, ["inspect", canvas_file])

        assert result.exit_code == 0
        assert "* trigger [TRIGGER_MANUAL]" in result.output
        assert "--else--> photo" in result.output
        assert "--default--> (end)" in result.output

    def test_inspect_json(self, runner, canvas_file):
        result = runner.invoke(cli, ["inspect", canvas_file, "--as-json"])

        assert result.exit_code == 0
        document = json.loads(result.output)
        assert document["id"] == "canvas"
        assert len(document["steps"]["nodes"]) == 4

    def test_run_interactive(self, runner, canvas_file):
        answers = "\n".join([
            "", "",                 # trigger: default output, no data
            "else", "",             # condition: no photo yet
            "", "photo=data:abc",   # take photo
            "", "printed=true",     # print
        ]) + "\n"

        result = runner.invoke(cli, ["run", canvas_file], input=answers)

        assert result.exit_code == 0, result.output
        assert "Status: completed" in result.output
        summary = json.loads(result.output[result.output.rindex("{\n"):])
        assert summary == {
            "triggered": True,
            "triggerType": "TRIGGER_MANUAL",
            "condition_choice": "else",
            "photo": "data:abc",
            "printed": True
        }

    def test_run_back_and_quit(self, runner, canvas_file):
        answers = "\n".join(["", "", "back", "quit"]) + "\n"

        result = runner.invoke(cli, ["run", canvas_file], input=answers)

        assert result.exit_code == 0
        assert "Status: running" in result.output

    def test_run_rejected_output(self, runner, canvas_file):
        answers = "\n".join(["sideways", "", "quit"]) + "\n"

        result = runner.invoke(cli, ["run", canvas_file], input=answers)

        assert "Rejected" in result.output


class TestParseAssignments:
    """key=value parsing"""

    def test_typed_values(self):
        assert parse_assignments("a=1 b=true c=hello d=1.5 e=") == {
            "a": 1, "b": True, "c": "hello", "d": 1.5, "e": ""
        }

    def test_missing_equals(self):
        from click import BadParameter

        with pytest.raises(BadParameter):
            parse_assignments("oops")
