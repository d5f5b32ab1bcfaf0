import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import numpy as np

from fea_solver.constitutive.elastic import (
    elasticity_tensor,
    material_from_parameters,
    tensor_to_voigt,
)
from fea_solver.core.assembler import LocalStiffnessAssembler
from fea_solver.core.config import MAX_DOF, TaskConfig
from fea_solver.core.database import ElementDatabase
from fea_solver.core.exceptions import ConfigurationError
from fea_solver.core.helpers import format_matrix
from fea_solver.core.mesh import TetraMesh
from fea_solver.elements import ElementFactory

logger = logging.getLogger(__name__)


@dataclass
class ElementStiffness:
    """
    Local stiffness matrix of one element.

    Attributes
    ----------
    index : int
        Element index in the mesh
    node_ids : tuple of int
        Global node ids in local node order
    dofs : np.ndarray
        Global DOF index of every row/column of ``matrix``
    matrix : np.ndarray
        Local stiffness matrix (n_nodes·dof × n_nodes·dof)
    skipped_points : int
        Gauss points skipped because of a singular Jacobian
    """

    index: int
    node_ids: Tuple[int, ...]
    dofs: np.ndarray
    matrix: np.ndarray
    skipped_points: int = 0


@dataclass
class SolveSummary:
    """Counts gathered by :meth:`FeaSolver.solve`."""

    elements: int
    degenerate_points: int
    global_size: int


StiffnessSink = Callable[[ElementStiffness], None]


class FeaSolver:
    """
    Element stiffness computation over a whole mesh.

    The session owns everything derived from the task: the element kind, the
    Gauss point database, the elasticity tensor and the assembler. Used as a
    context manager the database is released on exit.

    Parameters
    ----------
    task : TaskConfig
        Task parameters (model, element type, quadrature)
    mesh : TetraMesh
        Geometry

    Raises
    ------
    ConfigurationError
        If the task cannot be run: unsupported element type, mismatched
        element size, unsupported dof or Gauss point count, or insufficient
        material parameters.
    MeshError
        If the connectivity does not match the element size or references
        missing nodes.

    Examples
    --------
    >>> with FeaSolver(config.task, mesh) as solver:
    ...     summary = solver.solve(sink=collect)
    """

    def __init__(self, task: TaskConfig, mesh: TetraMesh):
        self.task = task
        self.mesh = mesh

        self.element = ElementFactory.get_element(task.element_type)
        npe = task.solution.nodes_per_element
        if npe != self.element.nodes_per_element:
            raise ConfigurationError(
                f"{task.element_type.value} has {self.element.nodes_per_element} nodes, "
                f"task specifies {npe}"
            )
        if task.dof != MAX_DOF:
            raise ConfigurationError(f"Only dof={MAX_DOF} is supported, got {task.dof}")

        self.database = ElementDatabase(self.element, task.solution.gauss_nodes_count)
        self.material = material_from_parameters(task.model.model, task.model.parameters)
        mesh.validate(npe)

        self.dof = task.dof
        task.solution.msize = mesh.node_count * self.dof
        self.ctensor = elasticity_tensor(self.material)
        self._assembler: Optional[LocalStiffnessAssembler] = None

        logger.info(
            "Solver session: %s, %d Gauss points, model %s, %d elements, %d nodes",
            self.element.name,
            len(self.database),
            task.model.model.value,
            mesh.element_count,
            mesh.node_count,
        )

    def __enter__(self) -> "FeaSolver":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.database.clear()
        self._assembler = None

    @property
    def global_size(self) -> int:
        """Dimension of the global system."""
        return self.task.solution.msize

    def prepare(self) -> LocalStiffnessAssembler:
        """Build the element database and the assembler. No-op if already done."""
        if self._assembler is None or not self.database.is_built:
            self._assembler = LocalStiffnessAssembler(self.database, self.ctensor)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "Constitutive matrix (Voigt):\n%s", format_matrix(tensor_to_voigt(self.ctensor))
                )
        return self._assembler

    def global_dof_indices(self, element: int) -> np.ndarray:
        """Global DOF indices of an element: node_id·dof + i, in local order."""
        node_ids = self.mesh.elements[element]
        return (node_ids[:, None] * self.dof + np.arange(self.dof)).ravel()

    def element_stiffness(self, element: int) -> ElementStiffness:
        """Compute the local stiffness matrix of ``element``."""
        if not 0 <= element < self.mesh.element_count:
            raise IndexError(
                f"Element index {element} out of range [0, {self.mesh.element_count})"
            )
        assembler = self.prepare()
        matrix, skipped = assembler.local_stiffness(element, self.mesh.element_coords(element))
        return ElementStiffness(
            index=element,
            node_ids=self.mesh.element_node_ids(element),
            dofs=self.global_dof_indices(element),
            matrix=matrix,
            skipped_points=skipped,
        )

    def iter_element_stiffness(self) -> Iterator[ElementStiffness]:
        """Yield the local stiffness of every element in index order."""
        for element in range(self.mesh.element_count):
            yield self.element_stiffness(element)

    def solve(self, sink: Optional[StiffnessSink] = None) -> SolveSummary:
        """
        Compute the local stiffness matrix of every element.

        Parameters
        ----------
        sink : callable, optional
            Called with each :class:`ElementStiffness` record. Records are not
            kept by the solver.

        Returns
        -------
        SolveSummary
        """
        if logger.isEnabledFor(logging.DEBUG):
            self._dump_input()

        self.prepare()
        elements = 0
        degenerate = 0
        for record in self.iter_element_stiffness():
            elements += 1
            degenerate += record.skipped_points
            if sink is not None:
                sink(record)

        if degenerate:
            logger.warning("%d degenerate Gauss point(s) skipped", degenerate)
        logger.info(
            "Computed %d local stiffness matrices (global size %d)", elements, self.global_size
        )
        return SolveSummary(
            elements=elements, degenerate_points=degenerate, global_size=self.global_size
        )

    def _dump_input(self) -> None:
        task = self.task
        lines = [
            f"Task: {task.type.value}, dof={task.dof}",
            f"Model: {task.model.model.value} parameters={task.model.parameters}",
            f"Element: {task.element_type.value}, nodes={task.solution.nodes_per_element}, "
            f"Gauss points={task.solution.gauss_nodes_count}",
            f"Nodes ({self.mesh.node_count}):",
        ]
        for node_id, (x, y, z) in enumerate(self.mesh.nodes):
            lines.append(f"  {node_id:6d}: {x: .6e} {y: .6e} {z: .6e}")
        lines.append(f"Elements ({self.mesh.element_count}):")
        for element in range(self.mesh.element_count):
            ids = " ".join(str(n) for n in self.mesh.element_node_ids(element))
            lines.append(f"  {element:6d}: {ids}")
        logger.debug("Input data:\n%s", "\n".join(lines))
