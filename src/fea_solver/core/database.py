"""
Element database.

For a given element kind and quadrature rule the shape functions and their
local derivatives at the Gauss points never depend on element geometry, so
they are evaluated once per solver session and reused for every element.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from fea_solver.elements.elements import FiniteElementKind
from fea_solver.elements.quadrature import QuadratureRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaussNode:
    """Precomputed data for one Gauss point.

    Attributes
    ----------
    weight : float
        Integration weight (reference volume included)
    forms : np.ndarray
        Shape function values N_k, shape (n_nodes,)
    dforms : np.ndarray
        Local derivatives ∂N_k/∂ξ_i, shape (3, n_nodes). Rows are local axes,
        columns are nodes.
    """

    weight: float
    forms: np.ndarray
    dforms: np.ndarray


class ElementDatabase:
    """Gauss point cache for one element kind and quadrature rule.

    Parameters
    ----------
    element : FiniteElementKind
        Element kind providing shape functions and quadrature rules
    gauss_nodes_count : int
        Number of Gauss points; selects the quadrature rule

    Raises
    ------
    ConfigurationError
        If the element kind has no rule with ``gauss_nodes_count`` points.
    """

    def __init__(self, element: FiniteElementKind, gauss_nodes_count: int):
        self.element = element
        self.rule: QuadratureRule = element.quadrature(gauss_nodes_count)
        self._gauss_nodes: Optional[List[GaussNode]] = None

    @property
    def is_built(self) -> bool:
        return self._gauss_nodes is not None

    def build(self) -> "ElementDatabase":
        """Evaluate shape functions at every Gauss point. No-op if already built."""
        if self._gauss_nodes is not None:
            return self

        npe = self.element.nodes_per_element
        gauss_nodes = []
        for point in self.rule:
            r, s, t = point.coords
            forms = np.array([self.element.shape(k, r, s, t) for k in range(npe)])
            dforms = np.array(
                [[self.element.dshape(k, axis, r, s, t) for k in range(npe)] for axis in range(3)]
            )
            forms.setflags(write=False)
            dforms.setflags(write=False)
            gauss_nodes.append(GaussNode(weight=point.weight, forms=forms, dforms=dforms))

        self._gauss_nodes = gauss_nodes
        logger.debug(
            "Element database built: %s, rule %s (%d points)",
            self.element.name,
            self.rule.name,
            len(gauss_nodes),
        )
        return self

    def clear(self) -> None:
        """Release the cached Gauss point data."""
        self._gauss_nodes = None

    def _require_built(self) -> List[GaussNode]:
        if self._gauss_nodes is None:
            raise RuntimeError("Element database has not been built")
        return self._gauss_nodes

    def __len__(self) -> int:
        return len(self.rule)

    def __getitem__(self, gauss: int) -> GaussNode:
        return self._require_built()[gauss]

    def __iter__(self) -> Iterator[GaussNode]:
        return iter(self._require_built())

    def __repr__(self):
        state = "built" if self.is_built else "empty"
        return f"<ElementDatabase {self.element.name} {self.rule.name} {state}>"
