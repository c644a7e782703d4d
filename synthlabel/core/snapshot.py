"""Baseline capture/restore for scene object poses and light properties.

A :class:`Baseline` is taken once before any randomisation and is the only
state randomisation perturbs from. ``restore`` writes it back in full.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

import numpy as np

from .scene import LightObject, LightType, ObjectKind, Scene, SceneObject
from .utils import get_logger

_log = get_logger()

Vec3 = Tuple[float, float, float]


def _as_tuple(v: np.ndarray) -> Vec3:
    return (float(v[0]), float(v[1]), float(v[2]))


@dataclass(frozen=True)
class BaselineEntry:
    kind: ObjectKind
    position: Vec3
    rotation: Vec3
    scale: Vec3
    light_type: Optional[LightType] = None
    intensity: Optional[float] = None
    color: Optional[Vec3] = None

    @property
    def is_light(self) -> bool:
        return self.kind is ObjectKind.LIGHT

    @property
    def is_camera(self) -> bool:
        return self.kind is ObjectKind.CAMERA

    @property
    def is_directional_light(self) -> bool:
        return self.light_type is LightType.DIRECTIONAL


class Baseline(Mapping[str, BaselineEntry]):
    """Immutable mapping of object id → :class:`BaselineEntry`."""

    def __init__(self, entries: Mapping[str, BaselineEntry]) -> None:
        self._entries: Dict[str, BaselineEntry] = dict(entries)

    def __getitem__(self, key: str) -> BaselineEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Baseline):
            return self._entries == other._entries
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Baseline({len(self._entries)} objects)"


def _entry_for(obj: SceneObject) -> BaselineEntry:
    if isinstance(obj, LightObject):
        return BaselineEntry(
            kind=obj.kind,
            position=_as_tuple(obj.position),
            rotation=_as_tuple(obj.rotation),
            scale=_as_tuple(obj.scale),
            light_type=obj.light_type,
            intensity=float(obj.intensity),
            color=(float(obj.color[0]), float(obj.color[1]), float(obj.color[2])),
        )
    return BaselineEntry(
        kind=obj.kind,
        position=_as_tuple(obj.position),
        rotation=_as_tuple(obj.rotation),
        scale=_as_tuple(obj.scale),
    )


def apply_entry(obj: SceneObject, entry: BaselineEntry) -> None:
    """Write one baseline entry back onto ``obj``.

    New values are built before any field is assigned so a failure leaves the
    object untouched.
    """
    position = np.array(entry.position, dtype=np.float64)
    rotation = np.array(entry.rotation, dtype=np.float64)
    scale = np.array(entry.scale, dtype=np.float64)
    light_values = None
    if isinstance(obj, LightObject) and entry.intensity is not None and entry.color is not None:
        light_values = (float(entry.intensity), tuple(entry.color))

    obj.position = position
    obj.rotation = rotation
    obj.scale = scale
    if light_values is not None:
        obj.intensity, obj.color = light_values  # type: ignore[union-attr]


class TransformSnapshotStore:
    """Captures and restores baseline state for a set of scene objects."""

    @staticmethod
    def capture(objects: Iterable[SceneObject]) -> Baseline:
        entries: Dict[str, BaselineEntry] = {}
        for obj in objects:
            entries[obj.id] = _entry_for(obj)
        _log.debug("Captured baseline for %d objects", len(entries))
        return Baseline(entries)

    @staticmethod
    def restore(objects: Iterable[SceneObject], baseline: Baseline) -> int:
        """Restore every object present in ``baseline``; returns how many were restored."""
        restored = 0
        for obj in objects:
            entry = baseline.get(obj.id)
            if entry is None:
                _log.debug("Object '%s' has no baseline entry; leaving it as is", obj.id)
                continue
            apply_entry(obj, entry)
            restored += 1
        return restored


def capture_baseline(objects: Iterable[SceneObject]) -> Baseline:
    return TransformSnapshotStore.capture(objects)


def restore_baseline(objects: Iterable[SceneObject], baseline: Baseline) -> int:
    return TransformSnapshotStore.restore(objects, baseline)


@contextmanager
def scoped_baseline(scene: Scene | Iterable[SceneObject]) -> Iterator[Baseline]:
    """Capture a baseline, yield it, and restore it on every exit path."""
    objects = list(Scene.wrap(scene))
    baseline = TransformSnapshotStore.capture(objects)
    try:
        yield baseline
    finally:
        restored = TransformSnapshotStore.restore(objects, baseline)
        _log.debug("Restored baseline for %d objects", restored)
