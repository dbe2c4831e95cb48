"""Tests for the command line entry point."""

import json

import pytest

from src.cohesion_graph.cli import build_parser, config_from_args, main
from src.cohesion_graph.config import CohesionGraphConfig


@pytest.fixture
def source_file(tmp_path, worked_source, monkeypatch):
    for name in ("STORE_PATH", "ALGORITHM", "RESOLUTION", "SEED", "LABEL_PROPERTY", "LOG_LEVEL"):
        monkeypatch.delenv(f"COHESION_GRAPH_{name}", raising=False)
    path = tmp_path / "calculator.py"
    path.write_text(worked_source, encoding="utf-8")
    return path


class TestArguments:

    def test_overrides_replace_base_values(self):
        args = build_parser().parse_args([
            "a.py", "--store", "graph.json", "--reset", "--algorithm", "label_propagation",
            "--resolution", "0.8", "--seed", "5", "--log-level", "DEBUG", "-c", "A", "-c", "B",
        ])
        config = config_from_args(args, CohesionGraphConfig(label_property="cluster"))

        assert args.class_names == ["A", "B"]
        assert config.store_path == "graph.json"
        assert config.reset_store is True
        assert config.community_algorithm == "label_propagation"
        assert config.community_resolution == 0.8
        assert config.community_seed == 5
        assert config.log_level == "DEBUG"
        assert config.label_property == "cluster"

    def test_defaults_keep_base_values(self):
        base = CohesionGraphConfig(community_seed=9)

        assert config_from_args(build_parser().parse_args(["a.py"]), base) == base

    def test_bad_log_level_from_environment_is_a_usage_error(self, source_file, monkeypatch):
        monkeypatch.setenv("COHESION_GRAPH_LOG_LEVEL", "verbose")

        with pytest.raises(SystemExit) as exc_info:
            main([str(source_file)])

        assert exc_info.value.code == 2

    def test_unknown_algorithm_is_a_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["a.py", "--algorithm", "girvan_newman"])

        assert exc_info.value.code == 2


class TestMain:

    def test_text_report(self, source_file, capsys):
        assert main([str(source_file)]) == 0

        out = capsys.readouterr().out
        assert f"{source_file}: class Calculator" in out
        assert "8 members, 7 self-accesses" in out
        assert "#1 community" in out

    def test_json_report(self, source_file, capsys):
        assert main([str(source_file), "--format", "json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["errors"] == []
        assert data["classes"][0]["class_name"] == "Calculator"
        assert data["statistics"]["edge_types"] == {"OWNS": 8, "ACCESSES": 7}

    def test_errors_set_exit_status(self, source_file, tmp_path, capsys):
        missing = tmp_path / "missing.py"

        assert main([str(source_file), str(missing)]) == 1
        assert f"ERROR {missing}" in capsys.readouterr().out

    def test_unknown_class(self, source_file, capsys):
        assert main([str(source_file), "--class", "Nope"]) == 1
        assert "Class 'Nope' not found" in capsys.readouterr().out

    def test_store_persists_between_runs(self, source_file, tmp_path, capsys):
        store_path = tmp_path / "graph.json"

        assert main([str(source_file), "--store", str(store_path)]) == 0
        saved = json.loads(store_path.read_text(encoding="utf-8"))
        assert saved["metadata"] == {"node_count": 9, "edge_count": 15}

        assert main([str(source_file), "--store", str(store_path), "--reset", "-f", "json"]) == 0
        assert json.loads(store_path.read_text(encoding="utf-8"))["metadata"] == saved["metadata"]

    def test_corrupt_store_fails(self, source_file, tmp_path):
        store_path = tmp_path / "graph.json"
        store_path.write_text("[]", encoding="utf-8")

        assert main([str(source_file), "--store", str(store_path)]) == 1
