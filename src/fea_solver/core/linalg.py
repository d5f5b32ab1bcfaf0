"""Closed-form 3×3 determinant and inverse.

Jacobian matrices of 3D isoparametric elements are always 3×3, so the
cofactor formulas are used directly instead of a general LU factorisation.
"""

from typing import Tuple

import numpy as np

from fea_solver.core.exceptions import SingularMatrixError


def _as_3x3(matrix) -> np.ndarray:
    m = np.asarray(matrix, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {m.shape}")
    return m


def det3x3(matrix) -> float:
    """Determinant of a 3×3 matrix by cofactor expansion along the first row.

    Parameters
    ----------
    matrix : array_like
        3×3 matrix.

    Returns
    -------
    float
        det(matrix)
    """
    m = _as_3x3(matrix)
    return float(
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


def inv3x3(matrix) -> Tuple[np.ndarray, float]:
    """Inverse of a 3×3 matrix from its adjugate.

    The input is never modified; a new array is returned.

    Parameters
    ----------
    matrix : array_like
        3×3 matrix.

    Returns
    -------
    inverse : np.ndarray
        3×3 inverse matrix
    det : float
        Determinant of the input matrix

    Raises
    ------
    SingularMatrixError
        If |det| is at or below the machine epsilon of the matrix dtype.
    """
    m = _as_3x3(matrix)
    det = det3x3(m)
    if abs(det) <= np.finfo(m.dtype).eps:
        raise SingularMatrixError(det)

    adj = np.array(
        [
            [
                m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1],
                m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2],
                m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1],
            ],
            [
                m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2],
                m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0],
                m[0, 2] * m[1, 0] - m[0, 0] * m[1, 2],
            ],
            [
                m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0],
                m[0, 1] * m[2, 0] - m[0, 0] * m[2, 1],
                m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0],
            ],
        ]
    )
    return adj / det, det
