"""
Task and mesh readers.

This module contains functions for loading task input from:
- XML task files (task parameters, geometry and boundary conditions)
- YAML task files (see ``fea_solver.core.config``)
- Mesh files readable by meshio (10-node tetrahedra only)
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from fea_solver.core.config import (
    MAX_DOF,
    BoundaryConditionsConfig,
    MeshConfig,
    ModelConfig,
    ModelType,
    PrescribedNode,
    SimulationConfig,
    SolutionParams,
    TaskConfig,
    TaskType,
)
from fea_solver.core.exceptions import ConfigurationError, MeshError
from fea_solver.core.mesh import TetraMesh

logger = logging.getLogger(__name__)

MESHIO_TETRA10 = "tetra10"

# node1 .. node10 name 1-based local positions
_NODE_ATTR = re.compile(r"node(\d+)$")

PathLike = Union[str, Path]


# =============================================================================
# Mesh files
# =============================================================================


def load_mesh(filepath: PathLike) -> TetraMesh:
    """
    Load a 10-node tetrahedral mesh using meshio.

    Only ``tetra10`` cell blocks are kept; other cell types (surface
    triangles, lines, ...) are skipped with a warning. meshio uses the VTK
    node ordering for ``tetra10``, which matches the element shape functions.

    Parameters
    ----------
    filepath : str or Path
        Path to any mesh format meshio can read (.vtu, .vtk, .msh, .inp, ...).

    Returns
    -------
    TetraMesh

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    MeshError
        If the file contains no ``tetra10`` cells.
    """
    import meshio

    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {filepath}")

    mio = meshio.read(str(path))

    blocks = []
    for cell_block in mio.cells:
        if cell_block.type == MESHIO_TETRA10:
            blocks.append(np.asarray(cell_block.data, dtype=np.int64))
        else:
            logger.warning("Skipping unsupported cell type '%s' in %s", cell_block.type, path)

    if not blocks:
        raise MeshError(f"No '{MESHIO_TETRA10}' cells found in {path}")

    points = np.asarray(mio.points, dtype=float)
    if points.shape[1] == 2:
        points = np.hstack([points, np.zeros((points.shape[0], 1))])

    mesh = TetraMesh(points, np.vstack(blocks))
    logger.info("Loaded mesh %s: %d nodes, %d elements", path, mesh.node_count, mesh.element_count)
    return mesh


# =============================================================================
# XML task files
# =============================================================================


def _tag(element: ET.Element) -> str:
    return element.tag.upper()


def _attrs(element: ET.Element) -> Dict[str, str]:
    """Attributes with lower-cased names and stripped values."""
    return {k.lower(): v.strip() for k, v in element.attrib.items()}


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _tag(child) == name]


def _child(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if element is None:
        return None
    found = _children(element, name)
    return found[0] if found else None


def _int(attrs: Dict[str, str], key: str, default: Optional[int] = None) -> Optional[int]:
    if key not in attrs:
        return default
    try:
        return int(attrs[key])
    except ValueError:
        raise ConfigurationError(f"Attribute '{key}' must be an integer: {attrs[key]}") from None


def _float(attrs: Dict[str, str], key: str, default: Optional[float] = None) -> Optional[float]:
    if key not in attrs:
        return default
    try:
        return float(attrs[key])
    except ValueError:
        raise ConfigurationError(f"Attribute '{key}' must be a number: {attrs[key]}") from None


def _count(element: ET.Element, default: int) -> int:
    count = _int(_attrs(element), "count", default)
    if count < 0:
        raise MeshError(f"{element.tag} count must be non-negative: {count}")
    return count


def _parse_model(model_elem: Optional[ET.Element]) -> ModelConfig:
    if model_elem is None:
        return ModelConfig()

    attrs = _attrs(model_elem)
    name = attrs.get("name", ModelType.A5.value).upper()
    if name != ModelType.A5.value:
        raise ConfigurationError(f"Unknown model type {name}")

    parameters = [100.0, 100.0]
    params_elem = _child(model_elem, "MODEL-PARAMETERS")
    if params_elem is not None:
        # Parameters are taken positionally, in attribute order
        attrs = _attrs(params_elem)
        parameters = [_float(attrs, key) for key in attrs]
    return ModelConfig(model=ModelType.A5, parameters=parameters)


def _parse_solution(solution_elem: Optional[ET.Element], task_kwargs: Dict, solution: Dict) -> None:
    if solution_elem is None:
        return

    attrs = _attrs(solution_elem)
    if "modified-newton" in attrs:
        task_kwargs["modified_newton"] = attrs["modified-newton"].lower() in ("yes", "true")
    if "task-type" in attrs:
        task_kwargs["type"] = TaskType(attrs["task-type"].upper())
    if "load-increments-count" in attrs:
        task_kwargs["load_increments_count"] = _int(attrs, "load-increments-count")
    if "desired-tolerance" in attrs:
        task_kwargs["desired_tolerance"] = _float(attrs, "desired-tolerance")

    element_type = _child(solution_elem, "ELEMENT-TYPE")
    if element_type is not None:
        et_attrs = _attrs(element_type)
        if "name" in et_attrs:
            task_kwargs["element_type"] = et_attrs["name"].upper()
        if "nodes-count" in et_attrs:
            solution["nodes_per_element"] = _int(et_attrs, "nodes-count")
        if "gauss-nodes-count" in et_attrs:
            solution["gauss_nodes_count"] = _int(et_attrs, "gauss-nodes-count")

    line_search = _child(solution_elem, "LINE-SEARCH")
    if line_search is not None:
        task_kwargs["linesearch_max"] = _int(_attrs(line_search), "max", 0)

    arc_length = _child(solution_elem, "ARC-LENGTH")
    if arc_length is not None:
        task_kwargs["arclength_max"] = _int(_attrs(arc_length), "max", 0)


def _parse_nodes(nodes_elem: Optional[ET.Element]) -> np.ndarray:
    if nodes_elem is None:
        raise MeshError("Missing NODES section in GEOMETRY")

    node_elems = _children(nodes_elem, "NODE")
    count = _count(nodes_elem, len(node_elems))
    nodes = np.full((count, MAX_DOF), np.nan)
    for node_elem in node_elems:
        attrs = _attrs(node_elem)
        node_id = _int(attrs, "id")
        if node_id is None or not 0 <= node_id < count:
            raise MeshError(f"Node id out of range [0, {count}): {attrs.get('id')}")
        nodes[node_id] = [_float(attrs, axis, 0.0) for axis in ("x", "y", "z")]

    missing = np.flatnonzero(np.isnan(nodes).any(axis=1))
    if missing.size:
        raise MeshError(f"{missing.size} node(s) not defined, first missing id {missing[0]}")
    return nodes


def _parse_elements(elements_elem: Optional[ET.Element], nodes_per_element: int) -> np.ndarray:
    if elements_elem is None:
        raise MeshError("Missing ELEMENTS section in GEOMETRY")

    element_elems = _children(elements_elem, "ELEMENT")
    count = _count(elements_elem, len(element_elems))
    elements = np.full((count, nodes_per_element), -1, dtype=np.int64)
    defined = np.zeros(count, dtype=bool)
    for element_elem in element_elems:
        attrs = _attrs(element_elem)
        element_id = _int(attrs, "id")
        if element_id is None or not 0 <= element_id < count:
            raise MeshError(f"Element id out of range [0, {count}): {attrs.get('id')}")
        for key in attrs:
            match = _NODE_ATTR.match(key)
            if match is None:
                if key.startswith("node"):
                    logger.warning("Element %d: ignoring attribute '%s'", element_id, key)
                continue
            position = int(match.group(1)) - 1
            if not 0 <= position < nodes_per_element:
                raise MeshError(f"Element {element_id}: invalid local node attribute '{key}'")
            elements[element_id, position] = _int(attrs, key)
        defined[element_id] = True

    missing = np.flatnonzero(~defined)
    if missing.size:
        raise MeshError(f"{missing.size} element(s) not defined, first missing id {missing[0]}")
    return elements


def _parse_prescribed(bc_elem: Optional[ET.Element]) -> List[PrescribedNode]:
    presc_elem = _child(bc_elem, "PRESCRIBED-DISPLACEMENTS")
    if presc_elem is None:
        return []

    node_elems = _children(presc_elem, "PRESC-NODE")
    count = _count(presc_elem, len(node_elems))
    prescribed: List[Optional[PrescribedNode]] = [None] * count
    for node_elem in node_elems:
        attrs = _attrs(node_elem)
        index = _int(attrs, "id")
        if index is None or not 0 <= index < count:
            raise ConfigurationError(
                f"Prescribed node id out of range [0, {count}): {attrs.get('id')}"
            )
        prescribed[index] = PrescribedNode(
            node_id=_int(attrs, "node-id", 0),
            values=[_float(attrs, axis, 0.0) for axis in ("x", "y", "z")],
            type=_int(attrs, "type", 7),
        )
    return [p for p in prescribed if p is not None]


def load_task_xml(filepath: PathLike) -> Tuple[SimulationConfig, TetraMesh]:
    """
    Load a task from the XML input format.

    Tag and attribute names are case-insensitive. Layout::

        <task>
          <model name="A5">
            <model-parameters lambda="100" mu="100"/>
          </model>
          <solution modified-newton="yes" task-type="CARTESIAN3D"
                    load-increments-count="10" desired-tolerance="1e-8">
            <element-type name="TETRAHEDRA10" nodes-count="10" gauss-nodes-count="4"/>
            <line-search max="10"/>
            <arc-length max="0"/>
          </solution>
          <input-data>
            <geometry>
              <nodes count="10">
                <node id="0" x="0" y="0" z="0"/> ...
              </nodes>
              <elements count="1">
                <element id="0" node1="0" ... node10="9"/>
              </elements>
            </geometry>
            <boundary-conditions>
              <prescribed-displacements count="1">
                <presc-node id="0" node-id="0" x="0" y="0" z="0" type="7"/>
              </prescribed-displacements>
            </boundary-conditions>
          </input-data>
        </task>

    Parameters
    ----------
    filepath : str or Path
        Path to the XML task file.

    Returns
    -------
    config : SimulationConfig
        Task configuration; its mesh section holds the inline tables
    mesh : TetraMesh
        Parsed geometry

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ConfigurationError
        If the file is malformed or names an unsupported model.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Task file not found: {filepath}")

    try:
        root = ET.parse(str(path)).getroot()
    except ET.ParseError as e:
        raise ConfigurationError(f"Malformed XML in {path}: {e}") from None

    if _tag(root) != "TASK":
        raise ConfigurationError(f"Root element must be TASK, got {root.tag}")

    task_kwargs: Dict = {"model": _parse_model(_child(root, "MODEL"))}
    solution: Dict = {}
    try:
        _parse_solution(_child(root, "SOLUTION"), task_kwargs, solution)
    except ValueError as e:
        raise ConfigurationError(str(e)) from None

    solution_params = SolutionParams(**solution)
    task = TaskConfig(solution=solution_params, **task_kwargs)

    input_data = _child(root, "INPUT-DATA")
    geometry = _child(input_data, "GEOMETRY")
    if geometry is None:
        raise MeshError(f"Missing INPUT-DATA/GEOMETRY in {path}")
    nodes = _parse_nodes(_child(geometry, "NODES"))
    elements = _parse_elements(_child(geometry, "ELEMENTS"), solution_params.nodes_per_element)
    prescribed = _parse_prescribed(_child(input_data, "BOUNDARY-CONDITIONS"))

    config = SimulationConfig(
        task=task,
        mesh=MeshConfig(nodes=nodes.tolist(), elements=elements.tolist()),
        boundary_conditions=BoundaryConditionsConfig(prescribed=prescribed),
    )
    mesh = TetraMesh(nodes, elements)
    logger.info("Loaded task %s: %d nodes, %d elements", path, mesh.node_count, mesh.element_count)
    return config, mesh


# =============================================================================
# Dispatch
# =============================================================================


def load_task(filepath: PathLike) -> Tuple[SimulationConfig, TetraMesh]:
    """
    Load a task file, choosing the reader from the file extension.

    ``.xml`` files use :func:`load_task_xml`; ``.yaml``/``.yml`` files use
    :meth:`SimulationConfig.from_yaml`, loading the mesh it references.

    Raises
    ------
    ConfigurationError
        If the extension is not recognized.
    """
    path = Path(filepath)
    ext = path.suffix.lower()
    if ext == ".xml":
        return load_task_xml(path)
    if ext in (".yaml", ".yml"):
        config = SimulationConfig.from_yaml(path)
        return config, config.load_mesh()
    raise ConfigurationError(f"Unknown task file format '{ext}'. Use .xml, .yaml or .yml.")


__all__ = ["load_mesh", "load_task", "load_task_xml"]
