from __future__ import annotations

import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, List, Optional, Sequence

import numpy as np

from ..motion.pose import euler_xyz_to_matrix
from .errors import SceneBusyError
from .utils import get_logger

_log = get_logger()

# Objects currently held by a sweep, whichever Scene wrapper leased them.
_LEASED_OBJECTS: "weakref.WeakSet[SceneObject]" = weakref.WeakSet()


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box in world (or local) units."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]

    @staticmethod
    def from_points(points: np.ndarray) -> "AABB":
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        mn = pts.min(axis=0)
        mx = pts.max(axis=0)
        return AABB(tuple(float(v) for v in mn), tuple(float(v) for v in mx))  # type: ignore[arg-type]

    @staticmethod
    def centered(size: Sequence[float] = (1.0, 1.0, 1.0)) -> "AABB":
        half = np.asarray(size, dtype=np.float64) * 0.5
        return AABB(tuple(float(v) for v in -half), tuple(float(v) for v in half))  # type: ignore[arg-type]

    def corners(self) -> np.ndarray:
        """The 8 corners; bit 0/1/2 of the row index selects max on x/y/z."""
        mn = np.asarray(self.min, dtype=np.float64)
        mx = np.asarray(self.max, dtype=np.float64)
        out = np.empty((8, 3), dtype=np.float64)
        for i in range(8):
            out[i, 0] = mx[0] if i & 1 else mn[0]
            out[i, 1] = mx[1] if i & 2 else mn[1]
            out[i, 2] = mx[2] if i & 4 else mn[2]
        return out

    @property
    def size(self) -> np.ndarray:
        return np.asarray(self.max, dtype=np.float64) - np.asarray(self.min, dtype=np.float64)

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (np.asarray(self.min, dtype=np.float64) + np.asarray(self.max, dtype=np.float64))

    @property
    def volume(self) -> float:
        return float(np.prod(self.size))

    def contains(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p >= np.asarray(self.min)) and np.all(p <= np.asarray(self.max)))

    def intersection(self, other: "AABB") -> Optional["AABB"]:
        mn = np.maximum(np.asarray(self.min), np.asarray(other.min))
        mx = np.minimum(np.asarray(self.max), np.asarray(other.max))
        if np.any(mn > mx):
            return None
        return AABB(tuple(float(v) for v in mn), tuple(float(v) for v in mx))  # type: ignore[arg-type]

    def iou(self, other: "AABB") -> float:
        inter = self.intersection(other)
        if inter is None:
            return 0.0
        inter_vol = inter.volume
        union = self.volume + other.volume - inter_vol
        if union <= 0.0:
            return 0.0
        return inter_vol / union


class ObjectKind(str, Enum):
    MESH = "mesh"
    LIGHT = "light"
    CAMERA = "camera"


class LightType(str, Enum):
    POINT = "point"
    DIRECTIONAL = "directional"
    SPOT = "spot"
    AMBIENT = "ambient"


def _vec3(v: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3).copy()


@dataclass(eq=False)
class SceneObject:
    """An object owned by the host scene graph.

    Only the pose (and, for lights, intensity/colour) is ever written by the
    pipeline; objects are never created or destroyed by it.
    """

    kind: ClassVar[ObjectKind] = ObjectKind.MESH

    id: str
    name: str = ""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))  # Euler XYZ, radians
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    local_bounds: AABB = field(default_factory=AABB.centered)

    def __post_init__(self) -> None:
        self.position = _vec3(self.position)
        self.rotation = _vec3(self.rotation)
        self.scale = _vec3(self.scale)
        if not self.name:
            self.name = self.id

    @property
    def is_light(self) -> bool:
        return self.kind is ObjectKind.LIGHT

    @property
    def is_camera(self) -> bool:
        return self.kind is ObjectKind.CAMERA

    def world_matrix(self) -> np.ndarray:
        M = np.eye(4)
        M[:3, :3] = euler_xyz_to_matrix(self.rotation) @ np.diag(self.scale)
        M[:3, 3] = self.position
        return M

    def world_aabb(self) -> AABB:
        corners = self.local_bounds.corners()
        M = self.world_matrix()
        world = corners @ M[:3, :3].T + M[:3, 3]
        return AABB.from_points(world)


@dataclass(eq=False)
class MeshObject(SceneObject):
    kind: ClassVar[ObjectKind] = ObjectKind.MESH


@dataclass(eq=False)
class LightObject(SceneObject):
    kind: ClassVar[ObjectKind] = ObjectKind.LIGHT

    light_type: LightType = LightType.POINT
    intensity: float = 1.0
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.light_type = LightType(self.light_type)
        self.intensity = float(self.intensity)
        self.color = tuple(float(c) for c in self.color)  # type: ignore[assignment]
        if len(self.color) != 3:
            raise ValueError("Light color must have three channels.")

    @property
    def is_directional(self) -> bool:
        return self.light_type is LightType.DIRECTIONAL


@dataclass(eq=False)
class CameraObject(SceneObject):
    kind: ClassVar[ObjectKind] = ObjectKind.CAMERA


class Scene:
    """Ordered collection of scene objects with exclusive-access leasing."""

    def __init__(self, objects: Iterable[SceneObject] = ()) -> None:
        self._objects: List[SceneObject] = []
        self._by_id: dict[str, SceneObject] = {}
        self._leased = False
        for obj in objects:
            self.add(obj)

    @staticmethod
    def wrap(objects: "Scene | Iterable[SceneObject]") -> "Scene":
        if isinstance(objects, Scene):
            return objects
        return Scene(objects)

    def add(self, obj: SceneObject) -> None:
        if obj.id in self._by_id:
            raise ValueError(f"Duplicate scene object id '{obj.id}'")
        self._objects.append(obj)
        self._by_id[obj.id] = obj

    def get(self, object_id: str) -> Optional[SceneObject]:
        return self._by_id.get(object_id)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._by_id

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    @property
    def objects(self) -> List[SceneObject]:
        return list(self._objects)

    def meshes(self) -> List[SceneObject]:
        return [o for o in self._objects if o.kind is ObjectKind.MESH]

    def lights(self) -> List[LightObject]:
        return [o for o in self._objects if isinstance(o, LightObject)]

    @property
    def leased(self) -> bool:
        return self._leased or any(obj in _LEASED_OBJECTS for obj in self._objects)

    @contextmanager
    def lease(self) -> Iterator["Scene"]:
        """Exclusive access to the scene's live transforms for one sweep.

        The lock is held on the objects, so two ``Scene`` wrappers built over
        the same objects cannot both be leased.
        """
        if self.leased:
            raise SceneBusyError("A capture sweep is already running against this scene.")
        held = list(self._objects)
        self._leased = True
        _LEASED_OBJECTS.update(held)
        _log.debug("Scene leased (%d objects)", len(held))
        try:
            yield self
        finally:
            for obj in held:
                _LEASED_OBJECTS.discard(obj)
            self._leased = False
