from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

from ..motion.pose import Pose


@dataclass
class PerspectiveCamera:
    """Pinhole camera looking down its local -Z axis (OpenGL conventions).

    ``fov_deg`` is the vertical field of view; ``aspect`` is width / height.
    """

    fov_deg: float = 50.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 1000.0
    pose: Pose = field(default_factory=Pose.identity)

    def __post_init__(self) -> None:
        if not (0.0 < self.fov_deg < 180.0):
            raise ValueError("fov_deg must lie in (0, 180)")
        if self.aspect <= 0.0:
            raise ValueError("aspect must be positive")
        if not (0.0 < self.near < self.far):
            raise ValueError("camera planes must satisfy 0 < near < far")

    @property
    def position(self) -> tuple[float, float, float]:
        return (float(self.pose.t[0]), float(self.pose.t[1]), float(self.pose.t[2]))

    @property
    def rotation(self) -> tuple[float, float, float]:
        return self.pose.euler()

    def look_at(
        self,
        eye: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
    ) -> None:
        self.pose = Pose.look_at(eye, target, up)

    def projection_matrix(self) -> np.ndarray:
        f = 1.0 / np.tan(np.deg2rad(self.fov_deg) / 2.0)
        n, fa = self.near, self.far
        P = np.zeros((4, 4), dtype=np.float64)
        P[0, 0] = f / self.aspect
        P[1, 1] = f
        P[2, 2] = (fa + n) / (n - fa)
        P[2, 3] = 2.0 * fa * n / (n - fa)
        P[3, 2] = -1.0
        return P

    def view_matrix(self) -> np.ndarray:
        return self.pose.inverse_matrix()

    def view_projection_matrix(self) -> np.ndarray:
        return self.projection_matrix() @ self.view_matrix()


@dataclass
class CameraRig:
    """Camera positions sharing one set of intrinsics for a capture run."""

    positions: np.ndarray
    fov_deg: float = 50.0
    near: float = 0.1
    far: float = 1000.0
    width: int = 1024
    height: int = 1024
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        self.target = np.asarray(self.target, dtype=np.float64).reshape(3)
        if self.width <= 0 or self.height <= 0:
            raise ValueError("resolution must be positive")
        if not (0.0 < self.fov_deg < 180.0):
            raise ValueError("fov_deg must lie in (0, 180)")
        if not (0.0 < self.near < self.far):
            raise ValueError("camera planes must satisfy 0 < near < far")

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    @property
    def aspect(self) -> float:
        return self.width / float(self.height)

    def camera_for(self, index: int) -> PerspectiveCamera:
        camera = PerspectiveCamera(fov_deg=self.fov_deg, aspect=self.aspect, near=self.near, far=self.far)
        camera.look_at(self.positions[index], self.target)
        return camera

    def cameras(self) -> Iterator[tuple[int, PerspectiveCamera]]:
        for index in range(len(self)):
            yield index, self.camera_for(index)
