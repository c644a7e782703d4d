from __future__ import annotations

from pathlib import Path
from typing import Annotated, Dict, Literal, Optional, Union, List

import yaml
from pydantic import BaseModel, Field, model_validator


Vec3 = tuple[float, float, float]


class PositionRandomizationConfig(BaseModel):
    enabled: bool = True
    range: Vec3 = (2.0, 0.5, 2.0)

    @model_validator(mode="after")
    def _validate_range(self) -> "PositionRandomizationConfig":
        if any(r < 0.0 for r in self.range):
            raise ValueError("position range must be non-negative")
        return self


class RotationRandomizationConfig(BaseModel):
    enabled: bool = True
    range_deg: Vec3 = (45.0, 180.0, 45.0)

    @model_validator(mode="after")
    def _validate_range(self) -> "RotationRandomizationConfig":
        if any(r < 0.0 for r in self.range_deg):
            raise ValueError("rotation range must be non-negative")
        return self


class ScaleRandomizationConfig(BaseModel):
    enabled: bool = True
    uniform: bool = True
    min: float = 0.8
    max: float = 1.2

    @model_validator(mode="after")
    def _validate_bounds(self) -> "ScaleRandomizationConfig":
        if self.min <= 0.0:
            raise ValueError("scale min must be positive")
        if self.min > self.max:
            raise ValueError("scale min must not exceed max")
        return self


class LightingRandomizationConfig(BaseModel):
    enabled: bool = True
    intensity_range: tuple[float, float] = (0.8, 1.2)
    color_variation: float = 0.1

    @model_validator(mode="after")
    def _validate_bounds(self) -> "LightingRandomizationConfig":
        lo, hi = self.intensity_range
        if lo < 0.0 or lo > hi:
            raise ValueError("intensity_range must satisfy 0 <= min <= max")
        if self.color_variation < 0.0:
            raise ValueError("color_variation must be non-negative")
        return self


class RandomizationConfig(BaseModel):
    enabled: bool = True
    position: PositionRandomizationConfig = PositionRandomizationConfig()
    rotation: RotationRandomizationConfig = RotationRandomizationConfig()
    scale: ScaleRandomizationConfig = ScaleRandomizationConfig()
    lighting: LightingRandomizationConfig = LightingRandomizationConfig()


class OrbitConfig(BaseModel):
    radius: float
    height: float = 5.0
    count: int = 4
    start_deg: float = 45.0

    @model_validator(mode="after")
    def _validate(self) -> "OrbitConfig":
        if self.radius <= 0.0:
            raise ValueError("orbit radius must be positive")
        if self.count <= 0:
            raise ValueError("orbit count must be positive")
        return self


def _default_camera_positions() -> List[Vec3]:
    return [(5.0, 5.0, 5.0), (-5.0, 5.0, 5.0), (5.0, 5.0, -5.0), (-5.0, 5.0, -5.0)]


class CameraConfig(BaseModel):
    positions: List[Vec3] = Field(default_factory=_default_camera_positions)
    orbit: Optional[OrbitConfig] = None
    target: Vec3 = (0.0, 0.0, 0.0)
    fov_deg: float = 50.0
    near: float = 0.1
    far: float = 1000.0
    resolution: tuple[int, int] = (1024, 1024)

    @model_validator(mode="after")
    def _validate_intrinsics(self) -> "CameraConfig":
        if not (0.0 < self.fov_deg < 180.0):
            raise ValueError("fov_deg must lie in (0, 180)")
        if not (0.0 < self.near < self.far):
            raise ValueError("camera planes must satisfy 0 < near < far")
        width, height = self.resolution
        if width <= 0 or height <= 0:
            raise ValueError("resolution must be positive")
        return self


OutputFormat = Literal["coco", "pascal_voc", "yolo"]


class GenerationConfig(BaseModel):
    samples: int = Field(default=100, ge=1)
    output_format: OutputFormat = "coco"
    min_bbox_px: float = Field(default=5.0, ge=0.0)


class MeshObjectConfig(BaseModel):
    kind: Literal["mesh"] = "mesh"
    id: str
    name: Optional[str] = None
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation_deg: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    size: Vec3 = (1.0, 1.0, 1.0)


class LightObjectConfig(BaseModel):
    kind: Literal["light"]
    id: str
    name: Optional[str] = None
    light_type: Literal["point", "directional", "spot", "ambient"] = "point"
    position: Vec3 = (0.0, 5.0, 0.0)
    rotation_deg: Vec3 = (0.0, 0.0, 0.0)
    intensity: float = 1.0
    color: Vec3 = (1.0, 1.0, 1.0)

    @model_validator(mode="after")
    def _validate_light(self) -> "LightObjectConfig":
        if self.intensity < 0.0:
            raise ValueError("light intensity must be non-negative")
        if any(c < 0.0 or c > 1.0 for c in self.color):
            raise ValueError("light color channels must lie in [0, 1]")
        return self


class CameraObjectConfig(BaseModel):
    kind: Literal["camera"]
    id: str
    name: Optional[str] = None
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation_deg: Vec3 = (0.0, 0.0, 0.0)


SceneObjectConfig = Annotated[
    Union[MeshObjectConfig, LightObjectConfig, CameraObjectConfig],
    Field(discriminator="kind"),
]


class ClassConfig(BaseModel):
    id: str
    name: str
    color: str = "#ff0000"
    description: str = ""


class SceneConfig(BaseModel):
    objects: List[SceneObjectConfig] = Field(default_factory=list)
    classes: List[ClassConfig] = Field(default_factory=list)
    annotations: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_references(self) -> "SceneConfig":
        object_ids = [o.id for o in self.objects]
        if len(set(object_ids)) != len(object_ids):
            raise ValueError("scene object ids must be unique")
        class_ids = [c.id for c in self.classes]
        if len(set(class_ids)) != len(class_ids):
            raise ValueError("class ids must be unique")
        class_names = [c.name for c in self.classes]
        if len(set(class_names)) != len(class_names):
            raise ValueError("class names must be unique")
        kinds = {o.id: o.kind for o in self.objects}
        for object_id, class_id in self.annotations.items():
            if object_id not in kinds:
                raise ValueError(f"annotation refers to unknown object '{object_id}'")
            if kinds[object_id] != "mesh":
                raise ValueError(f"only mesh objects can be annotated (got {kinds[object_id]} '{object_id}')")
            if class_id not in class_ids:
                raise ValueError(f"annotation for '{object_id}' refers to unknown class '{class_id}'")
        return self


class OutputConfig(BaseModel):
    path: Path = Path("synthetic_data.zip")

    @model_validator(mode="after")
    def _validate_suffix(self) -> "OutputConfig":
        if self.path.suffix.lower() != ".zip":
            raise ValueError("output path must end with .zip")
        return self


class ScenarioConfig(BaseModel):
    scene: SceneConfig
    randomization: RandomizationConfig = RandomizationConfig()
    camera: CameraConfig = CameraConfig()
    generation: GenerationConfig = GenerationConfig()
    output: OutputConfig = OutputConfig()
    seed: Optional[int] = None


def load_config(path: str | Path) -> ScenarioConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = ScenarioConfig.model_validate(data)
    if not cfg.output.path.is_absolute():
        cfg.output.path = (path.parent / cfg.output.path).resolve()
    return cfg
