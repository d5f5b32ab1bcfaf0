"""
Element stiffness assembly.

For every Gauss point of an element the Jacobian of the isoparametric map is
built from the nodal coordinates and the precomputed local derivatives,
inverted, and used to obtain the shape function gradients in global
coordinates. These are contracted with the elasticity tensor in indicial form
(Bonet & Wood, eq. 7.35):

    K_ab,ij = Σ_gauss Σ_kl  ∂N_a/∂x_k · C_ikjl · ∂N_b/∂x_l · |det J| · w

Gauss points with a singular Jacobian contribute nothing and are reported.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from fea_solver.core.database import ElementDatabase, GaussNode
from fea_solver.core.exceptions import SingularMatrixError
from fea_solver.core.helpers import format_matrix
from fea_solver.core.linalg import inv3x3

logger = logging.getLogger(__name__)


@dataclass
class ShapeGradients:
    """Shape function gradients at one Gauss point of one element.

    Attributes
    ----------
    grad : np.ndarray
        ∂N_j/∂x_i, shape (3, n_nodes). Rows are global axes, columns nodes.
    detJ : float
        Determinant of the Jacobian before inversion
    inv_jacobian : np.ndarray
        Inverse Jacobian (3×3)
    """

    grad: np.ndarray
    detJ: float
    inv_jacobian: np.ndarray


def compute_jacobian(dforms: np.ndarray, coords: np.ndarray) -> np.ndarray:
    """Jacobian of the isoparametric map.

    J[i, j] = Σ_k ∂N_k/∂ξ_i · x_k,j

    Parameters
    ----------
    dforms : np.ndarray
        Local derivatives (3 × n_nodes)
    coords : np.ndarray
        Nodal coordinates of the element (n_nodes × 3)

    Returns
    -------
    np.ndarray
        3×3 Jacobian
    """
    return dforms @ coords


def compute_shape_gradients(
    gauss_node: GaussNode, coords: np.ndarray
) -> Optional[ShapeGradients]:
    """Global shape function gradients at a Gauss point.

    [∂N/∂x, ∂N/∂y, ∂N/∂z]ᵀ = J⁻¹ · [∂N/∂r, ∂N/∂s, ∂N/∂t]ᵀ

    Parameters
    ----------
    gauss_node : GaussNode
        Precomputed Gauss point data
    coords : np.ndarray
        Nodal coordinates of the element (n_nodes × 3)

    Returns
    -------
    ShapeGradients or None
        None when the Jacobian is singular (collapsed or flat element).
    """
    J = compute_jacobian(gauss_node.dforms, coords)
    try:
        inv_J, det_J = inv3x3(J)
    except SingularMatrixError:
        return None
    return ShapeGradients(grad=inv_J @ gauss_node.dforms, detJ=det_J, inv_jacobian=inv_J)


def stiffness_contribution(grads: ShapeGradients, ctensor: np.ndarray, weight: float) -> np.ndarray:
    """Stiffness contribution of one Gauss point.

    Returns
    -------
    np.ndarray
        (n_nodes·dof) × (n_nodes·dof) matrix; entry [a·dof+i, b·dof+j] is
        Σ_kl grad[k,a]·C[i,k,j,l]·grad[l,b] · |detJ| · weight.
    """
    grad = grads.grad
    n_nodes = grad.shape[1]
    dof = ctensor.shape[0]
    blocks = np.einsum("ka,ikjl,lb->aibj", grad, ctensor, grad)
    return blocks.reshape(n_nodes * dof, n_nodes * dof) * abs(grads.detJ) * weight


class LocalStiffnessAssembler:
    """
    Computes local stiffness matrices of single elements.

    Parameters
    ----------
    database : ElementDatabase
        Built Gauss point cache
    ctensor : np.ndarray
        Elasticity tensor C_ijkl (3, 3, 3, 3)

    Attributes
    ----------
    dof : int
        Degrees of freedom per node
    size : int
        Dimension of the local stiffness matrix
    """

    def __init__(self, database: ElementDatabase, ctensor: np.ndarray):
        ctensor = np.asarray(ctensor, dtype=float)
        if ctensor.ndim != 4 or len(set(ctensor.shape)) != 1:
            raise ValueError(f"Elasticity tensor must be (d, d, d, d), got {ctensor.shape}")
        self.database = database.build()
        self.ctensor = ctensor
        self.dof = ctensor.shape[0]
        self.size = database.element.nodes_per_element * self.dof

    def local_stiffness(self, element: int, coords: np.ndarray) -> Tuple[np.ndarray, int]:
        """Local stiffness matrix of one element.

        Parameters
        ----------
        element : int
            Element index, used for diagnostics only
        coords : np.ndarray
            Nodal coordinates of the element in local node order (n_nodes × 3)

        Returns
        -------
        stiffness : np.ndarray
            (n_nodes·dof) × (n_nodes·dof) matrix
        skipped : int
            Number of Gauss points skipped because of a singular Jacobian
        """
        coords = np.asarray(coords, dtype=float)
        stiffness = np.zeros((self.size, self.size))
        skipped = 0
        debug = logger.isEnabledFor(logging.DEBUG)

        for gauss, gauss_node in enumerate(self.database):
            grads = compute_shape_gradients(gauss_node, coords)
            if grads is None:
                skipped += 1
                logger.warning(
                    "Degenerate Jacobian in element %d at Gauss point %d; point skipped",
                    element,
                    gauss,
                )
                continue
            if debug:
                logger.debug(
                    "Element %d, Gauss point %d: det(J)=%.6g\nInverse Jacobian:\n%s\n"
                    "Shape gradients:\n%s",
                    element,
                    gauss,
                    grads.detJ,
                    format_matrix(grads.inv_jacobian),
                    format_matrix(grads.grad),
                )
            stiffness += stiffness_contribution(grads, self.ctensor, gauss_node.weight)

        if debug:
            logger.debug("Local stiffness matrix for element %d:\n%s", element, format_matrix(stiffness))

        return stiffness, skipped
