from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

import numpy as np

from ..sensors.base import Renderer
from ..sensors.camera import CameraRig, PerspectiveCamera
from .annotations import Annotation2D, AnnotationStore, CapturedImage, GenerationRun
from .errors import CaptureError, PreconditionError, RendererUnavailableError
from .projector import BoundingBoxProjector
from .randomizer import DomainRandomizer
from .scene import ObjectKind, Scene, SceneObject
from .snapshot import scoped_baseline
from .utils import get_logger

_log = get_logger()

ProgressCallback = Callable[[float], None]
PreviewCallback = Callable[[CapturedImage], None]


class CancellationToken:
    """Cooperative cancellation flag checked between captures."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class SweepStep:
    """Outcome of one (sample, camera) capture. ``image`` is None when skipped."""

    sample_index: int
    camera_index: int
    completed: int
    total: int
    image: Optional[CapturedImage]

    @property
    def progress(self) -> float:
        return (self.completed / self.total) * 100.0 if self.total else 100.0


def image_id(sample_index: int, camera_index: int) -> str:
    return f"sample_{sample_index}_camera_{camera_index}"


class CaptureSweep:
    """Drives the sample × camera double loop.

    Randomisation happens once per sample so every view of a sample shows the
    same scene. The scene is leased for the whole sweep and returned to its
    baseline exactly once, on every exit path (completion, error,
    cancellation, or the consumer closing the iterator).
    """

    def __init__(
        self,
        renderer: Optional[Renderer],
        randomizer: Optional[DomainRandomizer] = None,
        projector: Optional[BoundingBoxProjector] = None,
    ) -> None:
        self.renderer = renderer
        self.randomizer = randomizer if randomizer is not None else DomainRandomizer()
        self.projector = projector if projector is not None else BoundingBoxProjector()

    # -- public API --
    def iter_captures(
        self,
        scene: Scene | Iterable[SceneObject],
        store: AnnotationStore,
        rig: CameraRig,
        sample_count: int,
        rng: Optional[np.random.Generator] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Iterator[SweepStep]:
        """Validate inputs, then return a lazy iterator over capture steps.

        Precondition failures are raised here, before the scene is touched.
        """
        scene = Scene.wrap(scene)
        self._check_preconditions(scene, store, rig, sample_count)
        if rng is None:
            rng = np.random.default_rng()
        return self._sweep(scene, store, rig, int(sample_count), rng, cancel)

    def run(
        self,
        scene: Scene | Iterable[SceneObject],
        store: AnnotationStore,
        rig: CameraRig,
        sample_count: int,
        *,
        rng: Optional[np.random.Generator] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_preview: Optional[PreviewCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> GenerationRun:
        run = GenerationRun(classes=store.classes)
        last: Optional[SweepStep] = None
        for step in self.iter_captures(scene, store, rig, sample_count, rng=rng, cancel=cancel):
            self._record(run, step, on_progress, on_preview)
            last = step
        run.cancelled = last is None or last.completed < last.total
        return run

    async def arun(
        self,
        scene: Scene | Iterable[SceneObject],
        store: AnnotationStore,
        rig: CameraRig,
        sample_count: int,
        *,
        rng: Optional[np.random.Generator] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_preview: Optional[PreviewCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> GenerationRun:
        """Same as :meth:`run` but yields to the event loop after each capture."""
        run = GenerationRun(classes=store.classes)
        last: Optional[SweepStep] = None
        for step in self.iter_captures(scene, store, rig, sample_count, rng=rng, cancel=cancel):
            self._record(run, step, on_progress, on_preview)
            last = step
            await asyncio.sleep(0)
        run.cancelled = last is None or last.completed < last.total
        return run

    # -- internals --
    def _check_preconditions(self, scene: Scene, store: AnnotationStore, rig: CameraRig, sample_count: int) -> None:
        if not self._targets(scene, store):
            raise PreconditionError(
                "No annotated objects: annotate at least one object before generating synthetic data."
            )
        if len(rig) == 0:
            raise PreconditionError("No camera positions configured: add at least one camera position.")
        try:
            rig.camera_for(0)
        except ValueError as exc:
            raise PreconditionError(f"Invalid camera settings: {exc}") from exc
        if sample_count < 1:
            raise PreconditionError(f"sample_count must be at least 1 (got {sample_count}).")
        if self.renderer is None:
            raise RendererUnavailableError("Renderer unavailable: no renderer was provided for the capture sweep.")

    @staticmethod
    def _targets(scene: Scene, store: AnnotationStore) -> List[SceneObject]:
        return [
            obj for obj in scene
            if obj.kind is ObjectKind.MESH and store.class_for(obj.id) is not None
        ]

    @staticmethod
    def _record(
        run: GenerationRun,
        step: SweepStep,
        on_progress: Optional[ProgressCallback],
        on_preview: Optional[PreviewCallback],
    ) -> None:
        if step.image is not None:
            first = not run.images
            run.images.append(step.image)
            if first and on_preview is not None:
                on_preview(step.image)
        else:
            run.skipped.append((step.sample_index, step.camera_index))
        if on_progress is not None:
            on_progress(step.progress)

    def _sweep(
        self,
        scene: Scene,
        store: AnnotationStore,
        rig: CameraRig,
        sample_count: int,
        rng: np.random.Generator,
        cancel: Optional[CancellationToken],
    ) -> Iterator[SweepStep]:
        total = sample_count * len(rig)
        completed = 0
        _log.info(
            "Starting capture sweep: %d samples x %d cameras at %dx%d",
            sample_count, len(rig), rig.width, rig.height,
        )
        with scene.lease(), scoped_baseline(scene) as baseline:
            for i in range(sample_count):
                self.randomizer.randomize(scene, baseline, rng)
                for j in range(len(rig)):
                    if cancel is not None and cancel.cancelled:
                        _log.info("Capture sweep cancelled after %d/%d captures", completed, total)
                        return
                    image = self._capture(scene, store, rig, i, j)
                    completed += 1
                    yield SweepStep(i, j, completed, total, image)
        _log.info("Capture sweep finished: %d captures", completed)

    def _capture(self, scene: Scene, store: AnnotationStore, rig: CameraRig, i: int, j: int) -> Optional[CapturedImage]:
        assert self.renderer is not None
        camera = rig.camera_for(j)
        try:
            payload = self.renderer.render(scene, camera, rig.width, rig.height)
        except CaptureError as exc:
            _log.warning("Failed to capture sample %d camera %d: %s", i, j, exc)
            return None
        if payload is None or (isinstance(payload, (bytes, str)) and payload in (b"", "", "data:,")):
            _log.warning("Failed to capture sample %d camera %d: renderer returned no image data", i, j)
            return None

        annotations = self._annotate(scene, store, camera, rig)
        return CapturedImage(
            id=image_id(i, j),
            pixel_data=payload,
            width=rig.width,
            height=rig.height,
            camera_position=camera.position,
            camera_rotation=camera.rotation,
            annotations=tuple(annotations),
            sample_index=i,
            camera_index=j,
        )

    def _annotate(
        self,
        scene: Scene,
        store: AnnotationStore,
        camera: PerspectiveCamera,
        rig: CameraRig,
    ) -> List[Annotation2D]:
        out: List[Annotation2D] = []
        for obj in self._targets(scene, store):
            cls = store.class_for(obj.id)
            assert cls is not None
            bbox = self.projector.project(obj.world_aabb(), camera, rig.width, rig.height)
            if bbox is None:
                continue
            x, y, w, h = bbox.as_xywh()
            out.append(
                Annotation2D(
                    object_id=obj.id,
                    class_id=cls.id,
                    class_name=cls.name,
                    bbox=(x, y, w, h),
                    area=w * h,
                    iscrowd=0,
                )
            )
        return out


def capture_sweep(
    scene: Scene | Iterable[SceneObject],
    store: AnnotationStore,
    rig: CameraRig,
    sample_count: int,
    *,
    renderer: Optional[Renderer],
    randomizer: Optional[DomainRandomizer] = None,
    projector: Optional[BoundingBoxProjector] = None,
    rng: Optional[np.random.Generator] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_preview: Optional[PreviewCallback] = None,
    cancel: Optional[CancellationToken] = None,
) -> GenerationRun:
    sweep = CaptureSweep(renderer, randomizer=randomizer, projector=projector)
    return sweep.run(
        scene, store, rig, sample_count,
        rng=rng, on_progress=on_progress, on_preview=on_preview, cancel=cancel,
    )
