"""Gauss quadrature tables for simplex elements.

Each point carries ``(weight, r, s, t)``. The volume of the reference
tetrahedron (1/6) is already folded into the weights, so integrals are
evaluated as ``Σ f(r, s, t) · |det J| · w`` with no further scaling.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

import numpy as np

from fea_solver.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class QuadraturePoint:
    """Single integration point in reference coordinates."""

    weight: float
    r: float
    s: float
    t: float

    @property
    def coords(self) -> Tuple[float, float, float]:
        return self.r, self.s, self.t


@dataclass(frozen=True)
class QuadratureRule:
    """Ordered, immutable set of integration points.

    Parameters
    ----------
    name : str
        Human readable identifier (e.g. ``"tetra-4"``)
    points : Tuple[QuadraturePoint, ...]
        Integration points in table order
    """

    name: str
    points: Tuple[QuadraturePoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[QuadraturePoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> QuadraturePoint:
        return self.points[index]

    @property
    def weights(self) -> np.ndarray:
        return np.array([p.weight for p in self.points])

    def weights_sum(self) -> float:
        return float(np.sum(self.weights))


# =============================================================================
# TETRAHEDRON rules
# =============================================================================

# 4-point rule, degree 2
_A4 = 0.58541020
_B4 = 0.13819660

TETRA10_GAUSS_4 = QuadratureRule(
    name="tetra-4",
    points=(
        QuadraturePoint((1 / 4.0) / 6.0, _A4, _B4, _B4),
        QuadraturePoint((1 / 4.0) / 6.0, _B4, _A4, _B4),
        QuadraturePoint((1 / 4.0) / 6.0, _B4, _B4, _A4),
        QuadraturePoint((1 / 4.0) / 6.0, _B4, _B4, _B4),
    ),
)

# 5-point rule, degree 3 (negative centroid weight)
TETRA10_GAUSS_5 = QuadratureRule(
    name="tetra-5",
    points=(
        QuadraturePoint((-4 / 5.0) / 6.0, 1 / 4.0, 1 / 4.0, 1 / 4.0),
        QuadraturePoint((9 / 20.0) / 6.0, 1 / 2.0, 1 / 6.0, 1 / 6.0),
        QuadraturePoint((9 / 20.0) / 6.0, 1 / 6.0, 1 / 2.0, 1 / 6.0),
        QuadraturePoint((9 / 20.0) / 6.0, 1 / 6.0, 1 / 6.0, 1 / 2.0),
        QuadraturePoint((9 / 20.0) / 6.0, 1 / 6.0, 1 / 6.0, 1 / 6.0),
    ),
)

TETRAHEDRON_RULES: Dict[int, QuadratureRule] = {
    4: TETRA10_GAUSS_4,
    5: TETRA10_GAUSS_5,
}


def get_rule(rules: Dict[int, QuadratureRule], count: int) -> QuadratureRule:
    """Select a rule by number of points.

    Raises
    ------
    ConfigurationError
        If no rule with ``count`` points is available.
    """
    try:
        return rules[count]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported gauss_nodes_count {count}. Valid: {sorted(rules)}"
        ) from None
