"""10-node quadratic tetrahedron.

Shape functions follow G. Dhondt, "The Finite Element Method for
Three-Dimensional Thermomechanical Applications", p. 72 (CalculiX ordering,
identical to the VTK/meshio ``tetra10`` ordering).

Node ordering:

               t
               |
               3
              /|\\
             / | \\
            7  |  9
           /   8   \\
          /    |    \\
         0 ----|-6---2 --- s
          \\    |   /
           4   |  5
            \\  | /
             \\ |/
               1
                \\
                 r

    Corners: 0 (0,0,0), 1 (1,0,0), 2 (0,1,0), 3 (0,0,1)
    Edge midpoints: 4 (0-1), 5 (1-2), 6 (0-2), 7 (0-3), 8 (1-3), 9 (2-3)

Natural coordinates: r, s, t ∈ [0, 1] with r + s + t ≤ 1
"""

from typing import Dict

from fea_solver.elements.elements import FiniteElementKind
from fea_solver.elements.quadrature import TETRAHEDRON_RULES, QuadratureRule

NODES_PER_ELEMENT = 10

# Reference coordinates of the nodes, in node order
NODE_COORDINATES = (
    (0.0, 0.0, 0.0),
    (1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.5, 0.0, 0.0),
    (0.5, 0.5, 0.0),
    (0.0, 0.5, 0.0),
    (0.0, 0.0, 0.5),
    (0.5, 0.0, 0.5),
    (0.0, 0.5, 0.5),
)


def _check_node(i: int) -> None:
    if not 0 <= i < NODES_PER_ELEMENT:
        raise IndexError(f"TETRA10 node index out of range: {i}")


def tetra10_shape(i: int, r: float, s: float, t: float) -> float:
    """Value of shape function ``i`` at local coordinates (r, s, t)."""
    _check_node(i)
    u = 1 - r - s - t
    if i == 0:
        return (2 * u - 1) * u
    if i == 1:
        return (2 * r - 1) * r
    if i == 2:
        return (2 * s - 1) * s
    if i == 3:
        return (2 * t - 1) * t
    if i == 4:
        return 4 * r * u
    if i == 5:
        return 4 * r * s
    if i == 6:
        return 4 * s * u
    if i == 7:
        return 4 * t * u
    if i == 8:
        return 4 * r * t
    return 4 * s * t


def tetra10_df_dr(i: int, r: float, s: float, t: float) -> float:
    _check_node(i)
    return (
        4 * t + 4 * s + 4 * r - 3,
        4 * r - 1,
        0.0,
        0.0,
        -4 * t - 4 * s - 8 * r + 4,
        4 * s,
        -4 * s,
        -4 * t,
        4 * t,
        0.0,
    )[i]


def tetra10_df_ds(i: int, r: float, s: float, t: float) -> float:
    _check_node(i)
    return (
        4 * t + 4 * s + 4 * r - 3,
        0.0,
        4 * s - 1,
        0.0,
        -4 * r,
        4 * r,
        -4 * t - 8 * s - 4 * r + 4,
        -4 * t,
        0.0,
        4 * t,
    )[i]


def tetra10_df_dt(i: int, r: float, s: float, t: float) -> float:
    _check_node(i)
    return (
        4 * t + 4 * s + 4 * r - 3,
        0.0,
        0.0,
        4 * t - 1,
        -4 * r,
        0.0,
        -4 * s,
        -8 * t - 4 * s - 4 * r + 4,
        4 * r,
        4 * s,
    )[i]


_DERIVATIVES = (tetra10_df_dr, tetra10_df_ds, tetra10_df_dt)


def tetra10_dshape(i: int, axis: int, r: float, s: float, t: float) -> float:
    """Derivative of shape function ``i`` along local ``axis``.

    Parameters
    ----------
    i : int
        Node (shape function) index, 0..9
    axis : int
        0 for r, 1 for s, 2 for t
    r, s, t : float
        Local coordinates
    """
    if not 0 <= axis < 3:
        raise IndexError(f"Local axis out of range: {axis}")
    return float(_DERIVATIVES[axis](i, r, s, t))


class TETRA10(FiniteElementKind):
    """10-node quadratic tetrahedron with 4- and 5-point Gauss rules."""

    name = "TETRA10"
    nodes_per_element = NODES_PER_ELEMENT
    dofs_per_node = 3

    def shape(self, i: int, r: float, s: float, t: float) -> float:
        return tetra10_shape(i, r, s, t)

    def dshape(self, i: int, axis: int, r: float, s: float, t: float) -> float:
        return tetra10_dshape(i, axis, r, s, t)

    @property
    def quadrature_rules(self) -> Dict[int, QuadratureRule]:
        return TETRAHEDRON_RULES
