from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import numpy as np


def euler_xyz_to_matrix(euler_rad: Sequence[float]) -> np.ndarray:
    """Rotation matrix for intrinsic X→Y→Z Euler angles (R = Rx @ Ry @ Rz)."""
    rx, ry, rz = (float(a) for a in euler_rad)
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)
    Rx = np.array([[1,0,0],[0,cx,-sx],[0,sx,cx]])
    Ry = np.array([[cy,0,sy],[0,1,0],[-sy,0,cy]])
    Rz = np.array([[cz,-sz,0],[sz,cz,0],[0,0,1]])
    return (Rx @ Ry @ Rz).astype(float)


def matrix_to_euler_xyz(R: np.ndarray) -> tuple[float, float, float]:
    m = np.asarray(R, dtype=np.float64)
    m13 = float(np.clip(m[0, 2], -1.0, 1.0))
    y = float(np.arcsin(m13))
    if abs(m13) < 0.9999999:
        x = float(np.arctan2(-m[1, 2], m[2, 2]))
        z = float(np.arctan2(-m[0, 1], m[0, 0]))
    else:
        # gimbal lock: fold all rotation into x
        x = float(np.arctan2(m[2, 1], m[1, 1]))
        z = 0.0
    return (x, y, z)


@dataclass
class Pose:
    t: np.ndarray   # (3,)
    R: np.ndarray   # (3,3)

    @staticmethod
    def identity() -> "Pose":
        return Pose(t=np.zeros(3, dtype=float), R=np.eye(3))

    @staticmethod
    def from_xyz_euler(xyz: Sequence[float], euler_rad: Sequence[float]) -> "Pose":
        return Pose(t=np.array(xyz, dtype=float), R=euler_xyz_to_matrix(euler_rad))

    @staticmethod
    def look_at(
        eye: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
    ) -> "Pose":
        """Pose whose local -Z axis points from ``eye`` towards ``target``."""
        eye_v = np.asarray(eye, dtype=np.float64)
        z = eye_v - np.asarray(target, dtype=np.float64)
        if np.linalg.norm(z) < 1e-12:
            z = np.array([0.0, 0.0, 1.0])
        z = z / np.linalg.norm(z)
        up_v = np.asarray(up, dtype=np.float64)
        x = np.cross(up_v, z)
        if np.linalg.norm(x) < 1e-12:
            # eye is straight above/below target; nudge off the up axis
            z = z + np.array([1e-4, 0.0, 0.0]) if abs(up_v[2]) == 1.0 else z + np.array([0.0, 0.0, 1e-4])
            z = z / np.linalg.norm(z)
            x = np.cross(up_v, z)
        x = x / np.linalg.norm(x)
        y = np.cross(z, x)
        R = np.column_stack([x, y, z])
        return Pose(t=eye_v.copy(), R=R)

    def euler(self) -> tuple[float, float, float]:
        return matrix_to_euler_xyz(self.R)

    def matrix(self) -> np.ndarray:
        M = np.eye(4)
        M[:3, :3] = self.R
        M[:3, 3] = self.t
        return M

    def inverse_matrix(self) -> np.ndarray:
        M = np.eye(4)
        M[:3, :3] = self.R.T
        M[:3, 3] = -self.R.T @ self.t
        return M
