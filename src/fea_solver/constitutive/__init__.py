"""
Constitutive models package for fea_solver.

This package contains the material variants and the construction of the
rank-4 elasticity tensor used by the stiffness assembler.
"""

from fea_solver.constitutive.elastic import (
    LinearIsotropicMaterial,
    Material,
    elasticity_tensor,
    lame_from_engineering,
    material_from_parameters,
    tensor_to_voigt,
)

__all__ = [
    "LinearIsotropicMaterial",
    "Material",
    "elasticity_tensor",
    "lame_from_engineering",
    "material_from_parameters",
    "tensor_to_voigt",
]
