from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..sensors.camera import PerspectiveCamera
from .scene import AABB
from .utils import round_half_up

# Edges of a box whose corners are indexed by AABB.corners(): pairs of
# indices differing in exactly one bit.
_BOX_EDGES = [(i, i | bit) for i in range(8) for bit in (1, 2, 4) if not i & bit]


@dataclass(frozen=True)
class PixelBBox:
    """Axis-aligned box in pixel space (origin top-left)."""

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple[float, float]:
        return (0.5 * (self.x_min + self.x_max), 0.5 * (self.y_min + self.y_max))

    def as_xywh(self) -> tuple[float, float, float, float]:
        return (self.x_min, self.y_min, self.width, self.height)

    def iou(self, other: "PixelBBox") -> float:
        ix = max(0.0, min(self.x_max, other.x_max) - max(self.x_min, other.x_min))
        iy = max(0.0, min(self.y_max, other.y_max) - max(self.y_min, other.y_min))
        inter = ix * iy
        union = self.area + other.area - inter
        if union <= 0.0:
            return 0.0
        return inter / union


@dataclass
class BoundingBoxProjector:
    """Projects world-space AABBs to clipped 2D pixel boxes.

    The result bounds the projected box, not the object's silhouette, so it
    over-approximates rotated objects.
    """

    min_size_px: float = 5.0
    round_pixels: bool = True

    def project(
        self,
        aabb: AABB,
        camera: PerspectiveCamera,
        width: int,
        height: int,
    ) -> Optional[PixelBBox]:
        clip = self._clip_points(aabb, camera.view_projection_matrix())
        if clip is None:
            return None

        ndc = clip[:, :2] / clip[:, 3:4]
        px = (ndc[:, 0] * 0.5 + 0.5) * width
        py = (1.0 - (ndc[:, 1] * 0.5 + 0.5)) * height
        if self.round_pixels:
            px = round_half_up(px)
            py = round_half_up(py)

        x_min = max(0.0, float(px.min()))
        x_max = min(float(width), float(px.max()))
        y_min = max(0.0, float(py.min()))
        y_max = min(float(height), float(py.max()))

        if x_max <= 0.0 or x_min >= width or y_max <= 0.0 or y_min >= height:
            return None
        if x_max - x_min <= 0.0 or y_max - y_min <= 0.0:
            return None
        if (x_max - x_min) < self.min_size_px or (y_max - y_min) < self.min_size_px:
            return None
        return PixelBBox(x_min, y_min, x_max, y_max)

    @staticmethod
    def _clip_points(aabb: AABB, view_projection: np.ndarray) -> Optional[np.ndarray]:
        """Clip-space points of the box, cut against the near plane.

        Returns ``None`` when the box lies entirely behind the near plane or
        entirely beyond the far plane.
        """
        corners = aabb.corners()
        homo = np.hstack([corners, np.ones((8, 1))])
        clip = homo @ view_projection.T

        # OpenGL clip volume: -w <= z <= w
        near_dist = clip[:, 2] + clip[:, 3]
        far_dist = clip[:, 3] - clip[:, 2]
        if np.all(far_dist < 0.0):
            return None
        inside = near_dist >= 0.0
        if not np.any(inside):
            return None
        if np.all(inside):
            return clip

        points: List[np.ndarray] = [clip[i] for i in range(8) if inside[i]]
        for a, b in _BOX_EDGES:
            if inside[a] == inside[b]:
                continue
            t = near_dist[a] / (near_dist[a] - near_dist[b])
            points.append(clip[a] + t * (clip[b] - clip[a]))
        out = np.asarray(points, dtype=np.float64)
        # points exactly on the near plane have w == near > 0
        out = out[out[:, 3] > 0.0]
        if out.shape[0] == 0:
            return None
        return out
