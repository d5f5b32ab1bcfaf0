"""
Core module for fea_solver.

Provides configuration, mesh handling, the element database and the local
stiffness assembler.
"""

from .config import SimulationConfig, TaskConfig
from .exceptions import ConfigurationError, FeaError, MeshError, SingularMatrixError

__all__ = [
    "SimulationConfig",
    "TaskConfig",
    "FeaError",
    "ConfigurationError",
    "MeshError",
    "SingularMatrixError",
]
