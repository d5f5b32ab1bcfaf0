"""Local stiffness computation for 10-node tetrahedral solid meshes."""

__version__ = "0.1.0"
