"""
Linear Elastic Constitutive Models.

Material kinds are modelled as separate classes, each holding exactly the
parameters it needs. The only implemented kind is isotropic linear
elasticity (model ``A5``), whose rank-4 elasticity tensor is

    C_ijkl = λ δ_ij δ_kl + μ δ_ik δ_jl + μ δ_il δ_jk

The tensor depends only on (λ, μ), never on element geometry, so a solver
session builds it once.

References
----------
- Bonet, J. and Wood, R.D. (1997). "Nonlinear Continuum Mechanics for
  Finite Element Analysis", 1st ed., Cambridge University Press.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from fea_solver.core.config import ModelType
from fea_solver.core.exceptions import ConfigurationError

# Voigt index I -> tensor index pair (i, j)
VOIGT_PAIRS = ((0, 0), (1, 1), (2, 2), (0, 1), (1, 2), (0, 2))


@dataclass(frozen=True)
class LinearIsotropicMaterial:
    """
    Isotropic linear elastic material described by the Lamé constants.

    Parameters
    ----------
    lmbda : float
        First Lamé parameter λ.
    mu : float
        Shear modulus μ.
    name : str
        The name of the material.
    """

    lmbda: float
    mu: float
    name: str = "A5"

    kind = ModelType.A5
    parameters_count = 2

    @property
    def E(self) -> float:
        """Young's modulus."""
        return self.mu * (3 * self.lmbda + 2 * self.mu) / (self.lmbda + self.mu)

    @property
    def nu(self) -> float:
        """Poisson's ratio."""
        return self.lmbda / (2 * (self.lmbda + self.mu))


Material = Union[LinearIsotropicMaterial]


def lame_from_engineering(E: float, nu: float) -> Tuple[float, float]:
    """Lamé constants (λ, μ) from Young's modulus and Poisson's ratio.

    Raises
    ------
    ConfigurationError
        If E is not positive or nu is outside (-1, 0.5).
    """
    if E <= 0:
        raise ConfigurationError(f"Young's modulus must be positive: {E}")
    if not -1 < nu < 0.5:
        raise ConfigurationError(f"Poisson's ratio must be in (-1, 0.5): {nu}")
    lmbda = E * nu / ((1 + nu) * (1 - 2 * nu))
    mu = E / (2 * (1 + nu))
    return lmbda, mu


def material_from_parameters(model, parameters: Sequence[float]) -> Material:
    """Build the material variant for ``model`` from an ordered parameter list.

    Parameters beyond those the model needs are ignored.

    Raises
    ------
    ConfigurationError
        If the model is not implemented or too few parameters are given.
    """
    try:
        model = ModelType(model)
    except ValueError:
        raise ConfigurationError(f"Unknown material model: {model}") from None
    if model == ModelType.A5:
        if len(parameters) < LinearIsotropicMaterial.parameters_count:
            raise ConfigurationError(
                f"Model {model.value} requires {LinearIsotropicMaterial.parameters_count} "
                f"parameters (lambda, mu), got {len(parameters)}"
            )
        return LinearIsotropicMaterial(lmbda=float(parameters[0]), mu=float(parameters[1]))
    raise ConfigurationError(f"Material model {model.value} is not implemented")


def elasticity_tensor(material: Material) -> np.ndarray:
    """Rank-4 elasticity tensor C_ijkl of shape (3, 3, 3, 3).

    Parameters
    ----------
    material : LinearIsotropicMaterial
        Material variant.

    Returns
    -------
    np.ndarray
        Tensor with minor and major symmetries.
    """
    if not isinstance(material, LinearIsotropicMaterial):
        raise TypeError(f"Unsupported material type: {type(material)}")

    delta = np.eye(3)
    return (
        material.lmbda * np.einsum("ij,kl->ijkl", delta, delta)
        + material.mu * np.einsum("ik,jl->ijkl", delta, delta)
        + material.mu * np.einsum("il,jk->ijkl", delta, delta)
    )


def tensor_to_voigt(ctensor: np.ndarray) -> np.ndarray:
    """Collapse a rank-4 tensor to its 6×6 Voigt matrix.

    Ordering: [xx, yy, zz, xy, yz, xz].
    """
    C = np.zeros((6, 6))
    for I, (i, j) in enumerate(VOIGT_PAIRS):
        for J, (k, l) in enumerate(VOIGT_PAIRS):
            C[I, J] = ctensor[i, j, k, l]
    return C
