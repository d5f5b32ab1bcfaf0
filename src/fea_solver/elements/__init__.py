from .elements import ElementFactory, FiniteElementKind
from .quadrature import TETRA10_GAUSS_4, TETRA10_GAUSS_5, QuadraturePoint, QuadratureRule
from .TETRA10 import TETRA10

__all__ = [
    "ElementFactory",
    "FiniteElementKind",
    "TETRA10",
    "QuadraturePoint",
    "QuadratureRule",
    "TETRA10_GAUSS_4",
    "TETRA10_GAUSS_5",
]
