from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..config import ScenarioConfig
from ..core.annotations import AnnotationClass, AnnotationStore
from ..core.projector import BoundingBoxProjector
from ..core.randomizer import DomainRandomizer
from ..core.scene import AABB, CameraObject, LightObject, LightType, MeshObject, Scene, SceneObject
from ..motion.trajectory import orbit_positions
from ..sensors.base import Renderer
from ..sensors.camera import CameraRig
from ..sensors.renderer import FlatRenderer


def build_scene(cfg: ScenarioConfig) -> Scene:
    objects: List[SceneObject] = []
    for obj_cfg in cfg.scene.objects:
        rotation = np.deg2rad(np.asarray(obj_cfg.rotation_deg, dtype=np.float64))
        name = obj_cfg.name or obj_cfg.id
        if obj_cfg.kind == "mesh":
            objects.append(
                MeshObject(
                    id=obj_cfg.id,
                    name=name,
                    position=np.asarray(obj_cfg.position, dtype=np.float64),
                    rotation=rotation,
                    scale=np.asarray(obj_cfg.scale, dtype=np.float64),
                    local_bounds=AABB.centered(obj_cfg.size),
                )
            )
        elif obj_cfg.kind == "light":
            objects.append(
                LightObject(
                    id=obj_cfg.id,
                    name=name,
                    position=np.asarray(obj_cfg.position, dtype=np.float64),
                    rotation=rotation,
                    light_type=LightType(obj_cfg.light_type),
                    intensity=obj_cfg.intensity,
                    color=tuple(obj_cfg.color),
                )
            )
        elif obj_cfg.kind == "camera":
            objects.append(
                CameraObject(
                    id=obj_cfg.id,
                    name=name,
                    position=np.asarray(obj_cfg.position, dtype=np.float64),
                    rotation=rotation,
                )
            )
        else:
            raise ValueError(f"Unsupported object kind: {obj_cfg.kind}")
    return Scene(objects)


def build_annotation_store(cfg: ScenarioConfig) -> AnnotationStore:
    store = AnnotationStore(
        AnnotationClass(c.id, c.name, c.color, c.description) for c in cfg.scene.classes
    )
    for object_id, class_id in cfg.scene.annotations.items():
        store.set_annotation(object_id, class_id)
    return store


def build_randomizer(cfg: ScenarioConfig) -> DomainRandomizer:
    return DomainRandomizer(cfg.randomization)


def build_projector(cfg: ScenarioConfig) -> BoundingBoxProjector:
    return BoundingBoxProjector(min_size_px=cfg.generation.min_bbox_px)


def build_camera_rig(cfg: ScenarioConfig) -> CameraRig:
    cam_cfg = cfg.camera
    positions = [tuple(p) for p in cam_cfg.positions]
    if cam_cfg.orbit is not None:
        positions.extend(
            orbit_positions(
                cam_cfg.orbit.radius,
                cam_cfg.orbit.height,
                cam_cfg.orbit.count,
                start_deg=cam_cfg.orbit.start_deg,
            )
        )
    width, height = cam_cfg.resolution
    return CameraRig(
        positions=np.asarray(positions, dtype=np.float64).reshape(-1, 3),
        fov_deg=cam_cfg.fov_deg,
        near=cam_cfg.near,
        far=cam_cfg.far,
        width=width,
        height=height,
        target=np.asarray(cam_cfg.target, dtype=np.float64),
    )


def build_renderer(cfg: ScenarioConfig, renderer: Optional[Renderer] = None) -> Renderer:
    if renderer is not None:
        return renderer
    return FlatRenderer()
