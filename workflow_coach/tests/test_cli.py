"""Tests for the workflow-coach CLI."""

from pathlib import Path
import json

from click.testing import CliRunner
import pytest

from workflow_coach.cli import cli
from workflow_coach.workflow.graph import WorkflowGraph


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    (tmp_path / "catalog.yaml").write_text(
        "nodes:\n"
        "  reader: source\n"
        "  filter: other\n"
        "  writer: other\n",
        encoding="utf-8",
    )
    (tmp_path / "community.jsonl").write_text(
        '{"successor": "reader", "count": 7}\n'
        '{"node": "reader", "successor": "filter", "count": 5}\n'
        '{"predecessor": "reader", "node": "filter", "successor": "writer", "count": 4}\n',
        encoding="utf-8",
    )
    (tmp_path / "local.jsonl").write_text(
        '{"node": "reader", "successor": "filter", "count": 2}\n'
        '{"node": "reader", "successor": "writer", "count": 1}\n',
        encoding="utf-8",
    )
    path = tmp_path / "coach.yaml"
    path.write_text(
        "catalog: catalog.yaml\n"
        "sources:\n"
        "  - name: community\n"
        "    path: community.jsonl\n"
        "  - name: local\n"
        "    path: local.jsonl\n",
        encoding="utf-8",
    )
    return path


def test_recommend_successors(config_path: Path):
    result = CliRunner().invoke(cli, ["-c", str(config_path), "recommend", "reader"])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "community | local"
    assert lines[1] == "1. filter (5, 100.0%) | filter (2, 66.7%)"
    assert lines[2] == "2. - | writer (1, 33.3%)"


def test_recommend_predecessors(config_path: Path):
    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "--predecessors", "filter"]
    )

    assert result.exit_code == 0, result.output
    assert "1. reader (5, 100.0%) | reader (2, 100.0%)" in result.output


def test_recommend_workflow_starts(config_path: Path):
    result = CliRunner().invoke(cli, ["-c", str(config_path), "recommend"])

    assert result.exit_code == 0, result.output
    assert "1. reader (12, 100.0%) | reader (3, 100.0%)" in result.output


def test_recommend_in_workflow(config_path: Path, tmp_path: Path):
    workflow = tmp_path / "workflow.json"
    workflow.write_text(
        json.dumps(
            {
                "nodes": [
                    {"key": "r", "node_id": "reader", "in_ports": 0},
                    {"key": "f", "node_id": "filter"},
                ],
                "connections": [{"source": "r", "source_port": 0, "dest": "f"}],
            }
        ),
        encoding="utf-8",
    )

    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "-w", str(workflow), "f"]
    )

    assert result.exit_code == 0, result.output
    assert "1. writer (4, 100.0%) | -" in result.output


def test_recommend_unknown_workflow_node(config_path: Path, tmp_path: Path):
    workflow = tmp_path / "workflow.json"
    workflow.write_text('{"nodes": [], "connections": []}', encoding="utf-8")

    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "-w", str(workflow), "x"]
    )

    assert result.exit_code == 1
    assert "Cannot resolve node" in result.output


def test_recommend_two_nodes_is_an_error(config_path: Path):
    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "reader", "filter"]
    )

    assert result.exit_code == 1
    assert "more than one node are not supported" in result.output


def test_recommend_without_recommendations(config_path: Path):
    result = CliRunner().invoke(cli, ["-c", str(config_path), "recommend", "writer"])

    assert result.exit_code == 0
    assert "No recommendations." in result.output


def test_nothing_loaded(tmp_path: Path):
    (tmp_path / "catalog.yaml").write_text("nodes: {}\n", encoding="utf-8")
    config = tmp_path / "coach.yaml"
    config.write_text(
        "catalog: catalog.yaml\nsources:\n  - path: missing.jsonl\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli, ["-c", str(config), "recommend", "reader"])

    assert result.exit_code == 1
    assert "No node recommendations loaded." in result.output


def test_missing_catalog_is_reported(tmp_path: Path):
    config = tmp_path / "coach.yaml"
    config.write_text("sources: []\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["-c", str(config), "most-frequent"])

    assert result.exit_code == 1
    assert "No node catalog configured" in result.output


def test_invalid_config_is_reported(tmp_path: Path):
    config = tmp_path / "coach.yaml"
    config.write_text("sources: {a: 1}\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["-c", str(config), "sources"])

    assert result.exit_code == 1
    assert "'sources' must be a list" in result.output


def test_most_frequent(config_path: Path):
    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "most-frequent", "-n", "1"]
    )

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "community | local"
    assert lines[1].startswith("1. reader (5, ")
    assert len(lines) == 2


def test_sources(config_path: Path, tmp_path: Path):
    result = CliRunner().invoke(cli, ["-c", str(config_path), "sources"])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].split()[:2] == ["community", "enabled"]
    assert lines[1].split()[:2] == ["local", "enabled"]
    assert str(tmp_path / "local.jsonl") in lines[1]


def test_export(config_path: Path, tmp_path: Path):
    out = tmp_path / "snapshot.json"

    result = CliRunner().invoke(cli, ["-c", str(config_path), "export", str(out)])

    assert result.exit_code == 0, result.output
    assert "Sources: 2" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [s["name"] for s in data["sources"]] == ["community", "local"]
    assert data["snapshot_hash"][:12] in result.output


def test_recommend_in_saved_workflow_with_numeric_keys(
    config_path: Path, tmp_path: Path
):
    workflow = WorkflowGraph()
    workflow.add_node(1, "reader", in_ports=0)
    workflow.add_node(3, "filter")
    workflow.connect(1, 0, 3, 0)
    path = tmp_path / "saved.json"
    workflow.save(path)

    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "-w", str(path), "3"]
    )

    assert result.exit_code == 0, result.output
    assert "1. writer (4, 100.0%) | -" in result.output


def test_recommend_component_in_workflow(config_path: Path, tmp_path: Path):
    workflow = tmp_path / "workflow.json"
    workflow.write_text(
        '{"nodes": [{"key": "c", "node_id": null}], "connections": []}',
        encoding="utf-8",
    )

    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "-w", str(workflow), "c"]
    )

    assert result.exit_code == 1
    assert "Cannot resolve node c" in result.output
    assert "not a plain node" in result.output


def test_invalid_workflow_file(config_path: Path, tmp_path: Path):
    workflow = tmp_path / "workflow.json"
    workflow.write_text("{not json", encoding="utf-8")

    result = CliRunner().invoke(
        cli, ["-c", str(config_path), "recommend", "-w", str(workflow), "x"]
    )

    assert result.exit_code == 1
    assert "Invalid workflow" in result.output


def test_join_limit_is_reported(config_path: Path):
    limited = config_path.parent / "limited.yaml"
    limited.write_text(
        config_path.read_text(encoding="utf-8") + "max_join_sources: 1\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli, ["-c", str(limited), "recommend", "reader"])

    assert result.exit_code == 1
    assert "Cannot join recommendations" in result.output
    assert "limit is 1" in result.output
