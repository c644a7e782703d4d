from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, ValidationError

from .errors import AnnotationImportError
from .scene import Scene, SceneObject
from .utils import get_logger

_log = get_logger()

DOCUMENT_VERSION = "1.0"


@dataclass(frozen=True)
class AnnotationClass:
    id: str
    name: str
    color: str = "#ff0000"
    description: str = ""


@dataclass
class ObjectAnnotation:
    class_id: str
    timestamp: float = field(default_factory=time.time)
    attributes: Dict[str, Any] = field(default_factory=dict)


class AnnotationStore:
    """Object id → class assignment plus the class registry."""

    def __init__(
        self,
        classes: Iterable[AnnotationClass] = (),
        annotations: Optional[Dict[str, ObjectAnnotation]] = None,
    ) -> None:
        self._classes: List[AnnotationClass] = list(classes)
        self._annotations: Dict[str, ObjectAnnotation] = dict(annotations or {})

    @property
    def classes(self) -> List[AnnotationClass]:
        return list(self._classes)

    @property
    def annotations(self) -> Dict[str, ObjectAnnotation]:
        return dict(self._annotations)

    def __len__(self) -> int:
        return len(self._annotations)

    def class_by_id(self, class_id: str) -> Optional[AnnotationClass]:
        for cls in self._classes:
            if cls.id == class_id:
                return cls
        return None

    def class_for(self, object_id: str) -> Optional[AnnotationClass]:
        ann = self._annotations.get(object_id)
        if ann is None:
            return None
        return self.class_by_id(ann.class_id)

    def add_class(self, cls: AnnotationClass) -> None:
        if self.class_by_id(cls.id) is not None:
            raise ValueError(f"Class with ID {cls.id} already exists")
        self._classes.append(cls)

    def update_class(self, class_id: str, **updates: Any) -> AnnotationClass:
        for i, cls in enumerate(self._classes):
            if cls.id == class_id:
                updates.pop("id", None)
                new_cls = AnnotationClass(**{**cls.__dict__, **updates})
                self._classes[i] = new_cls
                return new_cls
        raise ValueError(f"Class with ID {class_id} not found")

    def remove_class(self, class_id: str) -> None:
        self._classes = [c for c in self._classes if c.id != class_id]
        for object_id in [k for k, v in self._annotations.items() if v.class_id == class_id]:
            del self._annotations[object_id]

    def set_annotation(self, object_id: str, class_id: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        if self.class_by_id(class_id) is None:
            raise ValueError(f"Class with ID {class_id} not found")
        self._annotations[object_id] = ObjectAnnotation(class_id=class_id, attributes=dict(attributes or {}))

    def remove_annotation(self, object_id: str) -> None:
        self._annotations.pop(object_id, None)

    def clear(self) -> None:
        self._annotations.clear()


@dataclass(frozen=True)
class Annotation2D:
    object_id: str
    class_id: str
    class_name: str
    bbox: Tuple[float, float, float, float]  # x, y, w, h in pixels
    area: float
    iscrowd: int = 0


ImageHandle = Union[bytes, str, np.ndarray]


@dataclass(frozen=True)
class CapturedImage:
    """One rendered view of one randomised sample."""

    id: str
    pixel_data: ImageHandle
    width: int
    height: int
    camera_position: Tuple[float, float, float]
    camera_rotation: Tuple[float, float, float]
    annotations: Tuple[Annotation2D, ...] = ()
    sample_index: int = 0
    camera_index: int = 0


@dataclass
class GenerationRun:
    """Images captured by one sweep together with the class registry."""

    images: List[CapturedImage] = field(default_factory=list)
    classes: List[AnnotationClass] = field(default_factory=list)
    skipped: List[Tuple[int, int]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def annotation_count(self) -> int:
        return sum(len(img.annotations) for img in self.images)


# -- annotation document import/export --

class _ClassModel(BaseModel):
    id: str
    name: str
    color: str = "#ff0000"
    description: str = ""


class _BoundingBoxModel(BaseModel):
    min: Tuple[float, float, float]
    max: Tuple[float, float, float]


class _ExportedAnnotationModel(BaseModel):
    classId: str
    className: Optional[str] = None
    objectName: Optional[str] = None
    position: Optional[Tuple[float, float, float]] = None
    rotation: Optional[Tuple[float, float, float]] = None
    scale: Optional[Tuple[float, float, float]] = None
    boundingBox: Optional[_BoundingBoxModel] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class _AnnotationDocumentModel(BaseModel):
    version: str
    classes: List[_ClassModel]
    annotations: Dict[str, _ExportedAnnotationModel]
    metadata: Dict[str, Any] = Field(default_factory=dict)


def _object_entry(obj: SceneObject, ann: ObjectAnnotation, cls: AnnotationClass) -> Dict[str, Any]:
    box = obj.world_aabb()
    return {
        "classId": ann.class_id,
        "className": cls.name,
        "objectName": obj.name,
        "position": [float(v) for v in obj.position],
        "rotation": [float(v) for v in obj.rotation],
        "scale": [float(v) for v in obj.scale],
        "boundingBox": {"min": list(box.min), "max": list(box.max)},
        "attributes": dict(ann.attributes),
    }


def export_annotation_document(
    scene: Scene | Iterable[SceneObject],
    store: AnnotationStore,
    class_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Serialise the store's annotations for objects present in ``scene``.

    When ``class_id`` is given only that class is exported; an unknown class
    raises ``ValueError``.
    """
    scene = Scene.wrap(scene)
    only_cls = None
    if class_id is not None:
        only_cls = store.class_by_id(class_id)
        if only_cls is None:
            raise ValueError(f"Class with ID {class_id} not found")

    exported: Dict[str, Any] = {}
    for object_id, ann in store.annotations.items():
        if only_cls is not None and ann.class_id != only_cls.id:
            continue
        obj = scene.get(object_id)
        if obj is None:
            continue
        cls = store.class_by_id(ann.class_id)
        if cls is None:
            continue
        exported[object_id] = _object_entry(obj, ann, cls)

    metadata: Dict[str, Any] = {
        "timestamp": int(time.time() * 1000),
        "objectCount": len(scene),
        "annotatedCount": len(exported),
    }
    classes = store.classes if only_cls is None else [only_cls]
    if only_cls is not None:
        metadata["className"] = only_cls.name
    return {
        "version": DOCUMENT_VERSION,
        "classes": [
            {"id": c.id, "name": c.name, "color": c.color, "description": c.description}
            for c in classes
        ],
        "annotations": exported,
        "metadata": metadata,
    }


def import_annotation_document(data: Any, scene: Scene | Iterable[SceneObject]) -> AnnotationStore:
    """Validate an annotation document and build a store from it.

    Malformed documents are rejected as a whole. Annotations for objects that
    are not in ``scene`` are dropped.
    """
    if not isinstance(data, dict):
        raise AnnotationImportError("Invalid annotation data format: root must be a mapping")
    try:
        doc = _AnnotationDocumentModel.model_validate(data)
    except ValidationError as exc:
        raise AnnotationImportError(f"Invalid annotation data format: {exc}") from exc

    scene = Scene.wrap(scene)
    classes = [AnnotationClass(c.id, c.name, c.color, c.description) for c in doc.classes]
    known = {c.id for c in classes}
    annotations: Dict[str, ObjectAnnotation] = {}
    for object_id, ann in doc.annotations.items():
        if object_id not in scene:
            continue
        if ann.classId not in known:
            raise AnnotationImportError(
                f"Invalid annotation data format: '{object_id}' refers to unknown class '{ann.classId}'"
            )
        annotations[object_id] = ObjectAnnotation(class_id=ann.classId, attributes=dict(ann.attributes))

    _log.info("Imported %d annotations with %d classes", len(annotations), len(classes))
    return AnnotationStore(classes, annotations)
