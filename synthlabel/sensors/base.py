from __future__ import annotations
from typing import Protocol, Union
import numpy as np
from ..core.scene import Scene
from .camera import PerspectiveCamera

# Encoded image bytes, a ``data:image/...;base64,`` URL, or an HxWx3/4 uint8 buffer.
ImagePayload = Union[bytes, str, np.ndarray]

class Renderer(Protocol):
    """Turns a scene and camera into an image read back at ``width`` x ``height``.

    Implementations raise ``RendererUnavailableError`` when they cannot render
    at all, and ``CaptureError`` when only the current capture failed.
    """
    def render(self, scene: Scene, camera: PerspectiveCamera, width: int, height: int) -> ImagePayload: ...
