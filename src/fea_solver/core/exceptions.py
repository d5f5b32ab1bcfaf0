"""
Exception hierarchy for fea-solver.

Configuration and input problems abort a solver session before any element
is processed. A singular Jacobian is local to one Gauss point and is handled
by the stiffness assembler.
"""

import numpy as np


class FeaError(Exception):
    """Base class for all fea-solver errors."""


class ConfigurationError(FeaError, ValueError):
    """Unsupported element type, quadrature rule, material model or parameters."""


class MeshError(ConfigurationError):
    """Malformed node coordinates or element connectivity."""


class SingularMatrixError(FeaError, np.linalg.LinAlgError):
    """A 3×3 matrix has a determinant at or below machine epsilon.

    Attributes
    ----------
    det : float
        The offending determinant.
    """

    def __init__(self, det: float):
        super().__init__(f"Matrix is singular (det={det:.3e})")
        self.det = det
