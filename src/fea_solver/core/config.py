"""
Task Configuration Module.

This module provides a YAML-based configuration system for element stiffness
runs. The same data can also be read from the XML task format
(see ``fea_solver.core.io.readers``).

Example YAML configuration:
    task:
      type: "CARTESIAN3D"
      model:
        name: "A5"
        parameters: [100.0, 100.0]
      solution:
        modified_newton: true
        load_increments_count: 10
        desired_tolerance: 1.0e-8
      element:
        type: "TETRAHEDRA10"
        nodes_count: 10
        gauss_nodes_count: 4

    mesh:
      file: "body.vtu"

    boundary_conditions:
      prescribed:
        - node_id: 0
          values: [0.0, 0.0, 0.0]
          type: 7
"""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from fea_solver.core.exceptions import ConfigurationError

MAX_DOF = 3
MAX_MATERIAL_PARAMETERS = 10


class TaskType(str, Enum):
    """Type of the boundary value problem."""

    CARTESIAN3D = "CARTESIAN3D"


class ModelType(str, Enum):
    """Material model identifier.

    ``A5`` is isotropic linear elasticity parametrised by the Lamé constants.
    ``COMPRESSIBLE_NEOHOOKEAN`` is recognised but not implemented.
    """

    A5 = "A5"
    COMPRESSIBLE_NEOHOOKEAN = "COMPRESSIBLE_NEOHOOKEAN"


class ElementType(str, Enum):
    """Supported finite element types."""

    TETRAHEDRA10 = "TETRAHEDRA10"


class PrescribedBoundaryType(IntFlag):
    """Which displacement components of a node are prescribed."""

    FREE = 0
    PRESCRIBEDX = 1
    PRESCRIBEDY = 2
    PRESCRIBEDXY = 3
    PRESCRIBEDZ = 4
    PRESCRIBEDXZ = 5
    PRESCRIBEDYZ = 6
    PRESCRIBEDXYZ = 7


def _enum_value(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper().replace("-", "_"))
    except ValueError:
        valid = [e.value for e in enum_cls]
        raise ConfigurationError(
            f"Invalid {enum_cls.__name__}: {value}. Valid: {valid}"
        ) from None


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class ModelConfig:
    """Material model and its ordered parameter list."""

    model: ModelType = ModelType.A5
    parameters: List[float] = field(default_factory=lambda: [100.0, 100.0])

    def __post_init__(self):
        self.model = _enum_value(ModelType, self.model)
        self.parameters = [float(p) for p in self.parameters]
        if len(self.parameters) > MAX_MATERIAL_PARAMETERS:
            raise ConfigurationError(
                f"At most {MAX_MATERIAL_PARAMETERS} material parameters allowed, "
                f"got {len(self.parameters)}"
            )

    @property
    def parameters_count(self) -> int:
        return len(self.parameters)


@dataclass
class SolutionParams:
    """Parameters derived from the element type and quadrature choice."""

    nodes_per_element: int = 10
    gauss_nodes_count: int = 5
    msize: int = 0  # global system size, set by the solver session

    def __post_init__(self):
        if self.nodes_per_element <= 0:
            raise ConfigurationError(
                f"nodes_per_element must be positive: {self.nodes_per_element}"
            )
        if self.gauss_nodes_count <= 0:
            raise ConfigurationError(
                f"gauss_nodes_count must be positive: {self.gauss_nodes_count}"
            )


@dataclass
class TaskConfig:
    """Input parameters of the task, independent of geometry and loads.

    Load incrementation, line search, arc length and Newton settings are
    carried for the global solution stage and are not used by the element
    stiffness computation.
    """

    type: TaskType = TaskType.CARTESIAN3D
    model: ModelConfig = field(default_factory=ModelConfig)
    dof: int = MAX_DOF
    element_type: ElementType = ElementType.TETRAHEDRA10
    load_increments_count: int = 0
    desired_tolerance: float = 1e-8
    linesearch_max: int = 0
    arclength_max: int = 0
    modified_newton: bool = True
    solution: SolutionParams = field(default_factory=SolutionParams)

    def __post_init__(self):
        self.type = _enum_value(TaskType, self.type)
        self.element_type = _enum_value(ElementType, self.element_type)
        if not 0 < self.dof <= MAX_DOF:
            raise ConfigurationError(f"dof must be in 1..{MAX_DOF}: {self.dof}")
        if self.load_increments_count < 0:
            raise ConfigurationError(
                f"load_increments_count must be non-negative: {self.load_increments_count}"
            )
        if self.desired_tolerance <= 0:
            raise ConfigurationError(
                f"desired_tolerance must be positive: {self.desired_tolerance}"
            )
        if self.linesearch_max < 0 or self.arclength_max < 0:
            raise ConfigurationError("linesearch_max and arclength_max must be non-negative")


@dataclass
class PrescribedNode:
    """Prescribed displacement of a single node."""

    node_id: int
    values: List[float] = field(default_factory=lambda: [0.0] * MAX_DOF)
    type: PrescribedBoundaryType = PrescribedBoundaryType.PRESCRIBEDXYZ

    def __post_init__(self):
        self.values = [float(v) for v in self.values]
        if len(self.values) != MAX_DOF:
            raise ConfigurationError(f"values must have {MAX_DOF} components")
        try:
            code = int(self.type)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid prescribed boundary type: {self.type}") from None
        if not 0 <= code <= int(PrescribedBoundaryType.PRESCRIBEDXYZ):
            raise ConfigurationError(f"Invalid prescribed boundary type: {self.type}")
        self.type = PrescribedBoundaryType(code)

    @property
    def prescribed_components(self) -> List[int]:
        """Indices of the constrained displacement components."""
        return [i for i in range(MAX_DOF) if self.type & (1 << i)]


@dataclass
class BoundaryConditionsConfig:
    """Prescribed displacements. Carried for the global solution stage."""

    prescribed: List[PrescribedNode] = field(default_factory=list)


@dataclass
class MeshConfig:
    """Geometry source: a mesh file or inline node/element tables."""

    file: Optional[str] = None
    nodes: Optional[List[List[float]]] = None
    elements: Optional[List[List[int]]] = None

    def __post_init__(self):
        inline = self.nodes is not None or self.elements is not None
        if self.file is None and not inline:
            raise ConfigurationError("Mesh requires either 'file' or 'nodes' and 'elements'")
        if self.file is not None and inline:
            raise ConfigurationError("Mesh 'file' and inline 'nodes'/'elements' are exclusive")
        if inline and (self.nodes is None or self.elements is None):
            raise ConfigurationError("Inline mesh requires both 'nodes' and 'elements'")


@dataclass
class SimulationConfig:
    """Complete task configuration."""

    task: TaskConfig
    mesh: MeshConfig
    boundary_conditions: BoundaryConditionsConfig = field(
        default_factory=BoundaryConditionsConfig
    )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "SimulationConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        SimulationConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ConfigurationError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Malformed YAML in {yaml_path}: {e}") from None

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file is empty or malformed: {yaml_path}")

        return cls.from_dict(data, base_path=yaml_path.parent)

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], base_path: Optional[Path] = None
    ) -> "SimulationConfig":
        """Create configuration from dictionary.

        Parameters
        ----------
        data : dict
            Configuration dictionary.
        base_path : Path, optional
            Base path for resolving a relative mesh file path.

        Raises
        ------
        ConfigurationError
            If a section is missing or a value has the wrong type.
        """
        try:
            return cls._from_dict(data, base_path)
        except ConfigurationError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e!r}") from e

    @classmethod
    def _from_dict(cls, data: Dict[str, Any], base_path: Optional[Path]) -> "SimulationConfig":
        task_data = data.get("task", {}) or {}

        model_data = task_data.get("model", {}) or {}
        model_config = ModelConfig(
            model=model_data.get("name", ModelType.A5.value),
            parameters=_model_parameters(model_data),
        )

        element_data = task_data.get("element", {}) or {}
        solution_data = task_data.get("solution", {}) or {}
        solution_params = SolutionParams(
            nodes_per_element=int(element_data.get("nodes_count", 10)),
            gauss_nodes_count=int(element_data.get("gauss_nodes_count", 5)),
        )

        task_config = TaskConfig(
            type=task_data.get("type", TaskType.CARTESIAN3D.value),
            model=model_config,
            dof=int(task_data.get("dof", MAX_DOF)),
            element_type=element_data.get("type", ElementType.TETRAHEDRA10.value),
            load_increments_count=int(solution_data.get("load_increments_count", 0)),
            desired_tolerance=float(solution_data.get("desired_tolerance", 1e-8)),
            linesearch_max=int(solution_data.get("linesearch_max", 0)),
            arclength_max=int(solution_data.get("arclength_max", 0)),
            modified_newton=bool(solution_data.get("modified_newton", True)),
            solution=solution_params,
        )

        mesh_data = data.get("mesh")
        if not mesh_data:
            raise ConfigurationError("Missing 'mesh' section")
        mesh_file = mesh_data.get("file")
        if mesh_file and base_path and not Path(mesh_file).is_absolute():
            mesh_file = str(base_path / mesh_file)
        mesh_config = MeshConfig(
            file=mesh_file,
            nodes=mesh_data.get("nodes"),
            elements=mesh_data.get("elements"),
        )

        bc_data = data.get("boundary_conditions", {}) or {}
        prescribed = [
            PrescribedNode(
                node_id=int(p["node_id"]),
                values=p.get("values", [0.0] * MAX_DOF),
                type=p.get("type", PrescribedBoundaryType.PRESCRIBEDXYZ),
            )
            for p in bc_data.get("prescribed", [])
        ]

        return cls(
            task=task_config,
            mesh=mesh_config,
            boundary_conditions=BoundaryConditionsConfig(prescribed=prescribed),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        task = self.task
        result = {
            "task": {
                "type": task.type.value,
                "dof": task.dof,
                "model": {
                    "name": task.model.model.value,
                    "parameters": list(task.model.parameters),
                },
                "solution": {
                    "modified_newton": task.modified_newton,
                    "load_increments_count": task.load_increments_count,
                    "desired_tolerance": task.desired_tolerance,
                    "linesearch_max": task.linesearch_max,
                    "arclength_max": task.arclength_max,
                },
                "element": {
                    "type": task.element_type.value,
                    "nodes_count": task.solution.nodes_per_element,
                    "gauss_nodes_count": task.solution.gauss_nodes_count,
                },
            },
            "mesh": {},
        }

        if self.mesh.file:
            result["mesh"]["file"] = self.mesh.file
        else:
            result["mesh"]["nodes"] = [list(map(float, n)) for n in self.mesh.nodes]
            result["mesh"]["elements"] = [list(map(int, e)) for e in self.mesh.elements]

        if self.boundary_conditions.prescribed:
            result["boundary_conditions"] = {
                "prescribed": [
                    {"node_id": p.node_id, "values": list(p.values), "type": int(p.type)}
                    for p in self.boundary_conditions.prescribed
                ]
            }

        return result

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def load_mesh(self):
        """Build the mesh described by the ``mesh`` section.

        Returns
        -------
        TetraMesh
        """
        from fea_solver.core.io.readers import load_mesh
        from fea_solver.core.mesh import TetraMesh

        if self.mesh.file:
            return load_mesh(self.mesh.file)
        return TetraMesh(self.mesh.nodes, self.mesh.elements)

    def validate(self) -> List[str]:
        """Validate the complete configuration.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []
        task = self.task

        if task.model.model == ModelType.A5 and task.model.parameters_count > 2:
            warnings.append(
                f"Model A5 uses 2 parameters, {task.model.parameters_count - 2} extra ignored"
            )
        if task.load_increments_count or task.linesearch_max or task.arclength_max:
            warnings.append(
                "Load increments, line search and arc length are not used by the "
                "element stiffness computation"
            )
        if self.boundary_conditions.prescribed:
            warnings.append(
                f"{len(self.boundary_conditions.prescribed)} prescribed nodes are carried "
                "but not applied"
            )

        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        task = self.task
        lines = [
            "Task Configuration",
            "=" * 40,
            f"Task: {task.type.value} (dof={task.dof})",
            f"Model: {task.model.model.value} parameters={task.model.parameters}",
            f"Element: {task.element_type.value} "
            f"({task.solution.nodes_per_element} nodes, "
            f"{task.solution.gauss_nodes_count} Gauss points)",
            f"Solution: modified_newton={task.modified_newton}, "
            f"increments={task.load_increments_count}, "
            f"tolerance={task.desired_tolerance:g}",
        ]
        if self.mesh.file:
            lines.append(f"Mesh: file {self.mesh.file}")
        else:
            lines.append(
                f"Mesh: inline ({len(self.mesh.nodes)} nodes, {len(self.mesh.elements)} elements)"
            )
        lines.append(
            f"Boundary Conditions: {len(self.boundary_conditions.prescribed)} prescribed nodes"
        )
        return "\n".join(lines)


def _model_parameters(model_data: Dict[str, Any]) -> Sequence[float]:
    """Material parameters from either Lamé constants or E/nu.

    Accepts ``parameters: [lambda, mu]``, ``lambda``/``mu`` keys or
    ``E``/``nu`` keys.
    """
    if "parameters" in model_data:
        return model_data["parameters"]
    if "lambda" in model_data and "mu" in model_data:
        return [model_data["lambda"], model_data["mu"]]
    if "E" in model_data and "nu" in model_data:
        from fea_solver.constitutive.elastic import lame_from_engineering

        return list(lame_from_engineering(float(model_data["E"]), float(model_data["nu"])))
    return [100.0, 100.0]
