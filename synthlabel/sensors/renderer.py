from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from PIL import Image, ImageDraw

from ..core.errors import RendererUnavailableError
from ..core.projector import BoundingBoxProjector, PixelBBox
from ..core.scene import Scene
from .camera import PerspectiveCamera

PALETTE = [
    (230, 25, 75),
    (60, 180, 75),
    (255, 225, 25),
    (67, 99, 216),
    (245, 130, 49),
    (145, 30, 180),
    (70, 240, 240),
    (240, 50, 230),
    (188, 246, 12),
    (0, 128, 128),
]


def mesh_color(index: int) -> Tuple[int, int, int]:
    return PALETTE[index % len(PALETTE)]


@dataclass
class FlatRenderer:
    """Stand-in renderer that paints each mesh's projected box as a flat quad.

    Meshes are drawn far-to-near over a grey background and shaded by the
    scene's mean light intensity and colour. The result is PNG-encoded.
    """

    background: Tuple[int, int, int] = (128, 128, 128)
    as_data_url: bool = False

    def __post_init__(self) -> None:
        self._projector = BoundingBoxProjector(min_size_px=0.0, round_pixels=True)

    def _light_tint(self, scene: Scene) -> np.ndarray:
        lights = scene.lights()
        if not lights:
            return np.ones(3)
        intensity = float(np.mean([l.intensity for l in lights]))
        color = np.mean([l.color for l in lights], axis=0)
        return np.clip(color * (0.5 + 0.5 * intensity), 0.0, 1.0)

    def render(self, scene: Scene, camera: PerspectiveCamera, width: int, height: int) -> bytes | str:
        if width <= 0 or height <= 0:
            raise RendererUnavailableError(f"Cannot render at {width}x{height}")
        img = Image.new("RGB", (int(width), int(height)), self.background)
        draw = ImageDraw.Draw(img)
        tint = self._light_tint(scene)
        eye = np.asarray(camera.position, dtype=np.float64)

        queue: List[Tuple[float, int, PixelBBox]] = []
        for idx, obj in enumerate(scene.meshes()):
            box = obj.world_aabb()
            bbox = self._projector.project(box, camera, width, height)
            if bbox is None:
                continue
            dist = float(np.linalg.norm(box.center - eye))
            queue.append((dist, idx, bbox))

        for _, idx, bbox in sorted(queue, key=lambda item: -item[0]):
            base = np.asarray(mesh_color(idx), dtype=np.float64)
            fill = tuple(int(c) for c in np.clip(base * tint, 0, 255))
            draw.rectangle([bbox.x_min, bbox.y_min, bbox.x_max - 1, bbox.y_max - 1], fill=fill)

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        data = buf.getvalue()
        if self.as_data_url:
            return "data:image/png;base64," + base64.b64encode(data).decode("ascii")
        return data
