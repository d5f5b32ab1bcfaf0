import pytest
import yaml

from fea_solver.core.config import (
    BoundaryConditionsConfig,
    ElementType,
    MeshConfig,
    ModelConfig,
    ModelType,
    PrescribedBoundaryType,
    PrescribedNode,
    SimulationConfig,
    SolutionParams,
    TaskConfig,
    TaskType,
)
from fea_solver.core.exceptions import ConfigurationError
from fea_solver.elements.TETRA10 import NODE_COORDINATES


@pytest.fixture
def config_dict():
    return {
        "task": {
            "type": "CARTESIAN3D",
            "model": {"name": "A5", "parameters": [120.0, 80.0]},
            "solution": {"modified_newton": False, "load_increments_count": 10},
            "element": {"type": "TETRAHEDRA10", "nodes_count": 10, "gauss_nodes_count": 4},
        },
        "mesh": {
            "nodes": [list(c) for c in NODE_COORDINATES],
            "elements": [list(range(10))],
        },
        "boundary_conditions": {
            "prescribed": [{"node_id": 0, "values": [0.0, 0.0, 0.0], "type": 7}],
        },
    }


class TestDefaults:
    def test_task_defaults(self):
        task = TaskConfig()
        assert task.type == TaskType.CARTESIAN3D
        assert task.dof == 3
        assert task.element_type == ElementType.TETRAHEDRA10
        assert task.model.model == ModelType.A5
        assert task.model.parameters == [100.0, 100.0]
        assert task.solution.nodes_per_element == 10
        assert task.solution.gauss_nodes_count == 5
        assert task.desired_tolerance == 1e-8
        assert task.modified_newton is True

    def test_enum_from_string(self):
        task = TaskConfig(type="cartesian3d", element_type="tetrahedra10")
        assert task.type == TaskType.CARTESIAN3D
        assert task.element_type == ElementType.TETRAHEDRA10

    def test_model_name_with_dash(self):
        assert ModelConfig(model="compressible-neohookean").model == ModelType.COMPRESSIBLE_NEOHOOKEAN


class TestValidationErrors:
    def test_invalid_enum(self):
        with pytest.raises(ConfigurationError, match="Invalid ElementType"):
            TaskConfig(element_type="HEXA8")

    @pytest.mark.parametrize("dof", [0, 4])
    def test_invalid_dof(self, dof):
        with pytest.raises(ConfigurationError):
            TaskConfig(dof=dof)

    def test_non_positive_tolerance(self):
        with pytest.raises(ConfigurationError):
            TaskConfig(desired_tolerance=0.0)

    def test_too_many_parameters(self):
        with pytest.raises(ConfigurationError, match="At most 10"):
            ModelConfig(parameters=[1.0] * 11)

    def test_non_positive_gauss_count(self):
        with pytest.raises(ConfigurationError):
            SolutionParams(gauss_nodes_count=0)

    @pytest.mark.parametrize("code", [-1, 8])
    def test_prescribed_type_out_of_range(self, code):
        with pytest.raises(ConfigurationError):
            PrescribedNode(node_id=0, type=code)

    def test_prescribed_values_length(self):
        with pytest.raises(ConfigurationError):
            PrescribedNode(node_id=0, values=[0.0, 0.0])

    def test_mesh_requires_source(self):
        with pytest.raises(ConfigurationError):
            MeshConfig()

    def test_mesh_sources_exclusive(self):
        with pytest.raises(ConfigurationError, match="exclusive"):
            MeshConfig(file="body.vtu", nodes=[[0.0, 0.0, 0.0]], elements=[[0]])

    def test_inline_mesh_needs_both_tables(self):
        with pytest.raises(ConfigurationError):
            MeshConfig(nodes=[[0.0, 0.0, 0.0]])


class TestPrescribedNode:
    def test_components(self):
        node = PrescribedNode(node_id=3, type=PrescribedBoundaryType.PRESCRIBEDXZ)
        assert node.prescribed_components == [0, 2]

    def test_free(self):
        assert PrescribedNode(node_id=3, type=0).prescribed_components == []


class TestSimulationConfig:
    def test_from_dict(self, config_dict):
        config = SimulationConfig.from_dict(config_dict)
        assert config.task.model.parameters == [120.0, 80.0]
        assert config.task.solution.gauss_nodes_count == 4
        assert config.task.modified_newton is False
        assert config.task.load_increments_count == 10
        assert len(config.boundary_conditions.prescribed) == 1

    def test_engineering_constants(self, config_dict):
        config_dict["task"]["model"] = {"name": "A5", "E": 250.0, "nu": 0.25}
        config = SimulationConfig.from_dict(config_dict)
        lmbda, mu = config.task.model.parameters
        assert lmbda == pytest.approx(100.0)
        assert mu == pytest.approx(100.0)

    def test_lame_keys(self, config_dict):
        config_dict["task"]["model"] = {"name": "A5", "lambda": 1.0, "mu": 2.0}
        assert SimulationConfig.from_dict(config_dict).task.model.parameters == [1.0, 2.0]

    def test_missing_mesh(self, config_dict):
        del config_dict["mesh"]
        with pytest.raises(ConfigurationError, match="mesh"):
            SimulationConfig.from_dict(config_dict)

    def test_relative_mesh_file(self, config_dict, tmp_path):
        config_dict["mesh"] = {"file": "body.vtu"}
        config = SimulationConfig.from_dict(config_dict, base_path=tmp_path)
        assert config.mesh.file == str(tmp_path / "body.vtu")

    def test_yaml_round_trip(self, config_dict, tmp_path):
        config = SimulationConfig.from_dict(config_dict)
        path = tmp_path / "task.yaml"
        config.save_yaml(path)
        loaded = SimulationConfig.from_yaml(path)
        assert loaded.to_dict() == config.to_dict()

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SimulationConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="empty or malformed"):
            SimulationConfig.from_yaml(path)

    def test_from_yaml_syntax_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("task: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Malformed YAML"):
            SimulationConfig.from_yaml(path)

    @pytest.mark.parametrize(
        "section,key,value",
        [
            ("element", "gauss_nodes_count", "four"),
            ("solution", "desired_tolerance", "tight"),
            ("solution", "load_increments_count", [1, 2]),
        ],
    )
    def test_wrong_value_type(self, config_dict, section, key, value):
        config_dict["task"][section][key] = value
        with pytest.raises(ConfigurationError, match="Invalid configuration value"):
            SimulationConfig.from_dict(config_dict)

    def test_prescribed_without_node_id(self, config_dict):
        config_dict["boundary_conditions"]["prescribed"] = [{"values": [0.0, 0.0, 0.0]}]
        with pytest.raises(ConfigurationError, match="node_id"):
            SimulationConfig.from_dict(config_dict)

    def test_mesh_section_not_a_mapping(self, config_dict):
        config_dict["mesh"] = ["body.vtu"]
        with pytest.raises(ConfigurationError):
            SimulationConfig.from_dict(config_dict)

    def test_inline_mesh(self, config_dict):
        mesh = SimulationConfig.from_dict(config_dict).load_mesh()
        assert mesh.node_count == 10
        assert mesh.element_count == 1

    def test_validate_warnings(self, config_dict):
        warnings = SimulationConfig.from_dict(config_dict).validate()
        assert any("not used" in w for w in warnings)
        assert any("prescribed" in w for w in warnings)

    def test_validate_clean(self, config_dict):
        config_dict["task"]["solution"] = {}
        del config_dict["boundary_conditions"]
        assert SimulationConfig.from_dict(config_dict).validate() == []

    def test_str(self, config_dict):
        text = str(SimulationConfig.from_dict(config_dict))
        assert "TETRAHEDRA10" in text
        assert "4 Gauss points" in text

    def test_to_dict_is_yaml_serialisable(self, config_dict):
        config = SimulationConfig(
            task=TaskConfig(),
            mesh=MeshConfig(file="body.vtu"),
            boundary_conditions=BoundaryConditionsConfig(),
        )
        data = yaml.safe_load(yaml.dump(config.to_dict()))
        assert data["task"]["element"]["gauss_nodes_count"] == 5
        assert data["mesh"] == {"file": "body.vtu"}
