from abc import ABC, abstractmethod
from typing import Dict, Type

import numpy as np

from fea_solver.core.config import ElementType
from fea_solver.core.exceptions import ConfigurationError
from fea_solver.elements.quadrature import QuadratureRule, get_rule


class FiniteElementKind(ABC):
    """Capabilities of an isoparametric element type.

    A kind knows its node count, its shape functions and their derivatives in
    reference coordinates, and which quadrature rules it can be integrated
    with. It holds no geometry: the same instance serves every element of a
    mesh.

    Attributes
    ----------
    name : str
        Element type name (e.g. "TETRA10")
    nodes_per_element : int
        Number of nodes (and shape functions)
    dofs_per_node : int
        Displacement components per node
    """

    name: str = ""
    nodes_per_element: int = 0
    dofs_per_node: int = 3

    @abstractmethod
    def shape(self, i: int, r: float, s: float, t: float) -> float:
        """Value of shape function ``i`` at (r, s, t)."""

    @abstractmethod
    def dshape(self, i: int, axis: int, r: float, s: float, t: float) -> float:
        """Derivative of shape function ``i`` along local ``axis`` (0=r, 1=s, 2=t)."""

    @property
    @abstractmethod
    def quadrature_rules(self) -> Dict[int, QuadratureRule]:
        """Available quadrature rules keyed by number of points."""

    def quadrature(self, count: int) -> QuadratureRule:
        return get_rule(self.quadrature_rules, count)

    def shape_functions(self, r: float, s: float, t: float) -> np.ndarray:
        """All shape function values at (r, s, t), shape (n_nodes,)."""
        return np.array([self.shape(i, r, s, t) for i in range(self.nodes_per_element)])

    def shape_function_derivatives(self, r: float, s: float, t: float) -> np.ndarray:
        """Local derivatives at (r, s, t), shape (3, n_nodes).

        Row ``axis`` holds ∂N_i/∂ξ_axis for every node ``i``.
        """
        return np.array(
            [
                [self.dshape(i, axis, r, s, t) for i in range(self.nodes_per_element)]
                for axis in range(3)
            ]
        )

    @property
    def dofs_count(self) -> int:
        return self.nodes_per_element * self.dofs_per_node

    def __repr__(self):
        return f"<{type(self).__name__} name={self.name} nodes={self.nodes_per_element}>"


class ElementFactory:
    @staticmethod
    def element_map() -> Dict[ElementType, Type[FiniteElementKind]]:
        from .TETRA10 import TETRA10

        return {ElementType.TETRAHEDRA10: TETRA10}

    @staticmethod
    def get_element(element_type) -> FiniteElementKind:
        """Instantiate the element kind for ``element_type``.

        Raises
        ------
        ConfigurationError
            If the element type is unknown.
        """
        try:
            element_type = ElementType(element_type)
            return ElementFactory.element_map()[element_type]()
        except (KeyError, ValueError):
            raise ConfigurationError(f"Unsupported element type: {element_type}") from None
