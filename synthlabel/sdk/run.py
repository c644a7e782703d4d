from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np

from ..config import ScenarioConfig, load_config
from ..core.annotations import GenerationRun
from ..core.exporter import ExportFormat, export_as
from ..core.packager import package_dataset
from ..core.sweep import CancellationToken, CaptureSweep, ProgressCallback
from ..core.utils import get_logger
from ..runtime.builders import (
    build_annotation_store,
    build_camera_rig,
    build_projector,
    build_randomizer,
    build_renderer,
    build_scene,
)
from ..sensors.base import Renderer

_log = get_logger()


@dataclass(frozen=True)
class ConfigRunResult:
    """Summary of a generation run driven by a configuration file."""

    stats: Dict[str, int]
    output_path: Path
    config: ScenarioConfig
    run: GenerationRun


def generate_from_config(
    config: Union[str, Path, ScenarioConfig],
    *,
    output: Optional[Path] = None,
    seed: Optional[int] = None,
    samples: Optional[int] = None,
    output_format: Optional[str] = None,
    renderer: Optional[Renderer] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancellationToken] = None,
) -> ConfigRunResult:
    """Run a synthetic-data scenario described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~synthlabel.config.schema.ScenarioConfig`.
    output:
        Optional override for the archive path. Must end in ``.zip``.
    seed:
        Optional RNG seed. Falls back to the value in the config or ``12345``.
    samples:
        Optional override for the number of randomised samples.
    output_format:
        Optional override for the annotation format (``coco``, ``pascal_voc`` or ``yolo``).
    renderer:
        Renderer used for captures. Defaults to :class:`~synthlabel.sensors.renderer.FlatRenderer`.

    Returns
    -------
    ConfigRunResult
        Includes run statistics (images, annotations, skipped, archived_images),
        the archive path, the resolved configuration and the captured run.
    """

    cfg = load_config(config) if not isinstance(config, ScenarioConfig) else config.model_copy(deep=True)

    if samples is not None:
        if samples < 1:
            raise ValueError("samples must be at least 1")
        cfg.generation.samples = int(samples)
    if output_format is not None:
        cfg.generation.output_format = ExportFormat(output_format).value

    if output is not None:
        out_path = Path(output).resolve()
        if out_path.suffix.lower() != ".zip":
            raise ValueError(f"Unsupported output extension '{out_path.suffix}'")
        cfg.output.path = out_path
    else:
        cfg.output.path = Path(cfg.output.path).resolve()

    scene = build_scene(cfg)
    store = build_annotation_store(cfg)
    rig = build_camera_rig(cfg)
    sweep = CaptureSweep(
        build_renderer(cfg, renderer),
        randomizer=build_randomizer(cfg),
        projector=build_projector(cfg),
    )

    run_seed = seed if seed is not None else (cfg.seed if cfg.seed is not None else 12345)
    rng = np.random.default_rng(run_seed)

    run = sweep.run(scene, store, rig, cfg.generation.samples, rng=rng, on_progress=on_progress, cancel=cancel)
    document = export_as(cfg.generation.output_format, run.images, run.classes)
    archive = package_dataset(run.images, document, filename=cfg.output.path.name)
    archive.save(cfg.output.path)
    _log.info("Wrote %s", cfg.output.path)

    stats = {
        "images": len(run.images),
        "annotations": run.annotation_count,
        "skipped": len(run.skipped),
        "archived_images": archive.image_count,
    }
    return ConfigRunResult(stats=stats, output_path=Path(cfg.output.path), config=cfg, run=run)
