import logging

import pytest
import yaml

from fea_solver.cli.run_task import TEMPLATE_CONFIG, main
from fea_solver.elements.TETRA10 import NODE_COORDINATES


@pytest.fixture
def task_file(tmp_path):
    path = tmp_path / "task.yaml"
    path.write_text(
        yaml.dump(
            {
                "task": {"element": {"gauss_nodes_count": 4}},
                "mesh": {
                    "nodes": [list(c) for c in NODE_COORDINATES],
                    "elements": [list(range(10))],
                },
            }
        )
    )
    return path


@pytest.fixture
def broken_task_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text(
        yaml.dump(
            {
                "task": {"element": {"gauss_nodes_count": 3}},
                "mesh": {
                    "nodes": [list(c) for c in NODE_COORDINATES],
                    "elements": [list(range(10))],
                },
            }
        )
    )
    return path


class TestCli:
    def test_template(self, capsys):
        assert main(["--template"]) == 0
        out = capsys.readouterr().out
        assert "TETRAHEDRA10" in out

    def test_template_is_valid_yaml(self):
        data = yaml.safe_load(TEMPLATE_CONFIG)
        assert data["task"]["model"]["name"] == "A5"
        assert data["mesh"]["file"] == "body.vtu"

    def test_no_arguments(self, capsys):
        assert main([]) == 1

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.yaml")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_run(self, task_file, capsys):
        assert main([str(task_file)]) == 0
        out = capsys.readouterr().out
        assert "Computed 1 local stiffness matrices" in out
        assert "global size 30" in out

    def test_preview(self, task_file, capsys):
        assert main([str(task_file), "--preview"]) == 0
        out = capsys.readouterr().out
        assert "Task Configuration" in out
        assert "10 nodes, 1 elements" in out

    def test_validate(self, task_file, capsys):
        assert main([str(task_file), "--validate"]) == 0
        assert "Configuration is valid" in capsys.readouterr().out

    def test_validate_rejects_bad_task(self, broken_task_file, capsys):
        assert main([str(broken_task_file), "--validate"]) == 1
        assert "Validation failed" in capsys.readouterr().out

    def test_run_rejects_bad_task(self, broken_task_file, capsys):
        assert main([str(broken_task_file)]) == 1
        assert "gauss_nodes_count" in capsys.readouterr().out

    def test_malformed_yaml(self, tmp_path, capsys):
        path = tmp_path / "task.yaml"
        path.write_text("task: [unclosed\n")
        assert main([str(path)]) == 1
        assert "Malformed YAML" in capsys.readouterr().out

    def test_non_numeric_field(self, tmp_path, capsys):
        path = tmp_path / "task.yaml"
        path.write_text(
            yaml.dump(
                {
                    "task": {"element": {"gauss_nodes_count": "four"}},
                    "mesh": {
                        "nodes": [list(c) for c in NODE_COORDINATES],
                        "elements": [list(range(10))],
                    },
                }
            )
        )
        assert main([str(path)]) == 1
        assert "Invalid configuration value" in capsys.readouterr().out

    def test_validate_malformed_yaml(self, tmp_path, capsys):
        path = tmp_path / "task.yaml"
        path.write_text("task: [unclosed\n")
        assert main([str(path), "--validate"]) == 1
        assert "Validation failed" in capsys.readouterr().out

    def test_dump(self, task_file, caplog):
        caplog.set_level(logging.INFO, logger="fea_solver")
        with caplog.at_level(logging.DEBUG):
            assert main([str(task_file), "--dump"]) == 0
        assert "Constitutive matrix (Voigt)" in caplog.text
        assert "Local stiffness matrix for element 0" in caplog.text
