"""Tests for the ArchTrace command-line interface."""

import json

import pytest
from click.testing import CliRunner

from archtrace.cli.main import cli


@pytest.fixture()
def model_file(small_model, tmp_path):
    path = tmp_path / "model.json"
    path.write_text(json.dumps(small_model.to_dict()), encoding="utf-8")
    return str(path)


@pytest.fixture()
def runner():
    return CliRunner()


def _run(runner, model_file, *args):
    return runner.invoke(cli, ["--model", model_file, *args])


class TestGroup:
    def test_missing_model(self, runner, monkeypatch):
        monkeypatch.delenv("ARCHTRACE_MODEL", raising=False)
        result = runner.invoke(cli, ["stats"])
        assert result.exit_code != 0
        assert "No model given" in result.output

    def test_model_from_env(self, runner, model_file):
        result = runner.invoke(cli, ["stats"], env={"ARCHTRACE_MODEL": model_file})
        assert result.exit_code == 0
        assert "Elements: 4" in result.output

    def test_unreadable_model(self, runner, tmp_path):
        result = runner.invoke(cli, ["--model", str(tmp_path / "none.json"), "stats"])
        assert result.exit_code != 0
        assert "Cannot load model" in result.output


class TestCommands:
    def test_stats(self, runner, model_file):
        result = _run(runner, model_file, "stats")
        assert result.exit_code == 0
        assert "Elements: 4  Relationships: 4" in result.output
        assert "Graph edges: 5 (1 synthetic reverse)" in result.output
        assert "Serving: 1" in result.output

    def test_validate(self, runner, model_file):
        result = _run(runner, model_file, "validate")
        assert result.exit_code == 0
        assert "Model is valid." in result.output

    def test_related(self, runner, model_file):
        result = _run(runner, model_file, "related", "A", "--direction", "outgoing")
        assert result.exit_code == 0
        lines = [line.strip() for line in result.output.splitlines()]
        assert lines[0].startswith("B  distance=1  via R1 (Serving)")
        assert lines[2].startswith("C  distance=2")

    def test_related_with_layer(self, runner, model_file):
        result = _run(
            runner, model_file, "related", "A", "--direction", "outgoing", "--layer", "Technology"
        )
        assert result.output.strip().startswith("C  distance=2")

    def test_related_none(self, runner, model_file):
        result = _run(runner, model_file, "related", "C", "--direction", "outgoing")
        assert "No related elements found." in result.output

    def test_path(self, runner, model_file):
        result = _run(runner, model_file, "path", "A", "C")
        assert result.exit_code == 0
        assert result.output.strip() == "A -> B -> C"

    def test_path_not_found(self, runner, model_file):
        result = _run(runner, model_file, "path", "A", "C", "--max-hops", "1")
        assert "No path from A to C within 1 hops." in result.output

    def test_paths(self, runner, model_file):
        result = _run(runner, model_file, "paths", "A", "C", "--k", "5")
        assert result.exit_code == 0
        assert "1. A -> B -> C" in result.output
        assert "2. A -> D -> C" in result.output

    def test_paths_with_comma_separated_types(self, runner, model_file):
        result = _run(runner, model_file, "paths", "A", "C", "--rel-type", "Serving,Flow")
        assert "1. A -> B -> C" in result.output
        assert "2." not in result.output

    def test_between(self, runner, model_file):
        result = _run(runner, model_file, "between", "A", "C")
        assert result.exit_code == 0
        assert "Shortest distance: 2" in result.output
        assert "A -> B -> C  [R1, R2]" in result.output
        assert "A -> D -> C  [R3, R4]" in result.output

    def test_between_k_shortest(self, runner, model_file):
        result = _run(runner, model_file, "between", "A", "C", "--mode", "k-shortest")
        assert result.exit_code == 0
        assert "A -> B -> C  [R1, R2]" in result.output
        assert "A -> D -> C  [R3, R4]" in result.output

        result = _run(
            runner, model_file, "between", "A", "C", "--mode", "k-shortest", "--max-paths", "1"
        )
        assert "A -> B -> C" in result.output
        assert "A -> D -> C" not in result.output

    def test_between_bad_mode(self, runner, model_file):
        result = _run(runner, model_file, "between", "A", "C", "--mode", "longest")
        assert result.exit_code != 0

    def test_between_none(self, runner, model_file):
        result = _run(runner, model_file, "between", "C", "A", "--direction", "outgoing")
        assert "No paths found." in result.output

    def test_trace(self, runner, model_file):
        result = _run(runner, model_file, "trace", "A", "--direction", "outgoing", "--depth", "1")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data["nodesById"]) == {"A", "B", "D"}
        assert data["nodesById"]["A"]["expanded"] is True
        assert data["frontierByNodeId"]["B"] == ["A"]

    def test_trace_stop_at_layer(self, runner, model_file):
        result = _run(
            runner,
            model_file,
            "trace",
            "A",
            "--direction",
            "outgoing",
            "--depth",
            "3",
            "--stop-at-layer",
            "Application,Business",
        )
        data = json.loads(result.output)
        assert set(data["nodesById"]) == {"A", "B", "D"}

    def test_matrix(self, runner, model_file):
        result = _run(runner, model_file, "matrix", "--rows", "A,D", "--cols", "B", "--cols", "C")
        assert result.exit_code == 0
        assert "Total: 2" in result.output

    def test_notation_option(self, runner, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(
            json.dumps(
                {
                    "elements": [{"id": "x", "type": "T"}, {"id": "y", "type": "T"}],
                    "relationships": [
                        {
                            "id": "r",
                            "type": "Association",
                            "sourceElementId": "x",
                            "targetElementId": "y",
                        }
                    ],
                }
            ),
            encoding="utf-8",
        )
        args = ["path", "y", "x", "--direction", "outgoing"]
        generic = runner.invoke(cli, ["--model", str(path), *args])
        assert "No path" in generic.output
        archimate = runner.invoke(cli, ["--model", str(path), "--notation", "archimate", *args])
        assert archimate.output.strip() == "y -> x"
