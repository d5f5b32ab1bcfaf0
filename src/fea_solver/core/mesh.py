"""
Tetrahedral mesh container.

Holds the node coordinate table and the element connectivity table as dense,
0-based numpy arrays. Both tables are read-only once constructed.
"""

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from fea_solver.core.exceptions import MeshError


class TetraMesh:
    """
    Node coordinates and element connectivity of a solid mesh.

    Parameters
    ----------
    nodes : array_like
        Node coordinates (n_nodes × 3). Node ids are row indices.
    elements : array_like
        Connectivity (n_elements × nodes_per_element) of 0-based node ids.

    Raises
    ------
    MeshError
        If the arrays have the wrong rank, width or dtype.
    """

    def __init__(self, nodes: Iterable[Sequence[float]], elements: Iterable[Sequence[int]]):
        nodes = np.asarray(nodes, dtype=float)
        if nodes.ndim != 2 or nodes.shape[1] != 3:
            raise MeshError(f"Nodes must be an (n, 3) array, got shape {nodes.shape}")
        if not np.all(np.isfinite(nodes)):
            raise MeshError("Node coordinates must be finite")

        raw = np.asarray(elements)
        if raw.ndim != 2:
            raise MeshError(
                f"Elements must be an (m, nodes_per_element) array, got shape {raw.shape}"
            )
        if raw.size and not np.issubdtype(raw.dtype, np.integer):
            if not np.all(np.equal(np.mod(raw, 1), 0)):
                raise MeshError("Element connectivity must contain integer node ids")
        connectivity = raw.astype(np.int64)

        nodes.setflags(write=False)
        connectivity.setflags(write=False)
        self._nodes = nodes
        self._elements = connectivity

    @property
    def nodes(self) -> np.ndarray:
        return self._nodes

    @property
    def elements(self) -> np.ndarray:
        return self._elements

    @property
    def node_count(self) -> int:
        return self._nodes.shape[0]

    @property
    def element_count(self) -> int:
        return self._elements.shape[0]

    @property
    def nodes_per_element(self) -> int:
        return self._elements.shape[1]

    def element_node_ids(self, element: int) -> Tuple[int, ...]:
        return tuple(int(n) for n in self._elements[element])

    def element_coords(self, element: int) -> np.ndarray:
        """Coordinates of the nodes of ``element`` in local node order (npe × 3)."""
        return self._nodes[self._elements[element]]

    def validate(self, nodes_per_element: int) -> None:
        """Check connectivity against the configured element size.

        Raises
        ------
        MeshError
            If an element has the wrong node count or references a node that
            does not exist.
        """
        if self.element_count and self.nodes_per_element != nodes_per_element:
            raise MeshError(
                f"Elements have {self.nodes_per_element} nodes, "
                f"expected {nodes_per_element}"
            )
        bad: List[int] = []
        if self.element_count:
            out_of_range = (self._elements < 0) | (self._elements >= self.node_count)
            bad = [int(e) for e in np.flatnonzero(out_of_range.any(axis=1))]
        if bad:
            first = bad[0]
            raise MeshError(
                f"{len(bad)} element(s) reference non-existent nodes "
                f"(node count {self.node_count}); first is element {first}: "
                f"{self.element_node_ids(first)}"
            )

    def __repr__(self):
        return f"<TetraMesh nodes={self.node_count} elements={self.element_count}>"
