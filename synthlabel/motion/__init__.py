"""Poses and camera placement helpers."""

from .pose import Pose, euler_xyz_to_matrix, matrix_to_euler_xyz
from .trajectory import orbit_positions

__all__ = ["Pose", "euler_xyz_to_matrix", "matrix_to_euler_xyz", "orbit_positions"]
