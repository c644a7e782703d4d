"""synthlabel – domain-randomised synthetic dataset generator.

Takes a 3D scene whose objects carry class labels and produces labelled 2D
image datasets:
- Scene, tagged objects and AABBs (core.scene)
- Baseline snapshot / restore (core.snapshot)
- Position, rotation, scale and lighting jitter (core.randomizer)
- World AABB → clipped pixel box projection (core.projector)
- Sample × camera capture loop with cancellation (core.sweep)
- COCO / Pascal VOC / YOLO exporters (core.exporter)
- Zip packaging of annotations plus images (core.packager)

Rendering is delegated to any object satisfying ``sensors.base.Renderer``;
``sensors.renderer.FlatRenderer`` is a Pillow-based stand-in.
"""

from .core.scene import (AABB, Scene, SceneObject, MeshObject, LightObject,
                         CameraObject, ObjectKind, LightType)
from .core.annotations import (
    AnnotationClass, AnnotationStore, Annotation2D, CapturedImage, GenerationRun,
    export_annotation_document, import_annotation_document,
)
from .core.snapshot import TransformSnapshotStore, capture_baseline, restore_baseline, scoped_baseline
from .core.randomizer import DomainRandomizer
from .core.projector import BoundingBoxProjector, PixelBBox
from .core.sweep import CaptureSweep, CancellationToken, SweepStep, capture_sweep
from .core.exporter import ExportFormat, export_as, export_coco, export_pascal_voc, export_yolo
from .core.packager import Archive, package_dataset, package_for_download
from .sensors.camera import PerspectiveCamera, CameraRig
from .sensors.renderer import FlatRenderer
