from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml


def _box(object_id: str, position, size=(1.0, 1.0, 1.0), rotation_deg=(0.0, 0.0, 0.0)) -> Dict[str, Any]:
    return {
        "kind": "mesh",
        "id": object_id,
        "position": list(position),
        "rotation_deg": list(rotation_deg),
        "size": list(size),
    }


def _light(object_id: str, light_type: str, position, intensity: float = 1.0) -> Dict[str, Any]:
    return {
        "kind": "light",
        "id": object_id,
        "light_type": light_type,
        "position": list(position),
        "intensity": intensity,
    }


def _demo(samples: int) -> Dict[str, Any]:
    return {
        "scene": {
            "objects": [
                _box("car_1", (0.0, 0.5, 0.0), size=(2.0, 1.0, 1.0)),
                _box("tree_1", (-2.5, 1.5, -1.0), size=(0.8, 3.0, 0.8)),
                _box("sign_1", (2.0, 1.0, 1.5), size=(0.6, 2.0, 0.1), rotation_deg=(0.0, 30.0, 0.0)),
                _light("sun", "directional", (5.0, 10.0, 5.0), intensity=1.0),
                _light("fill", "ambient", (0.0, 5.0, 0.0), intensity=0.4),
            ],
            "classes": [
                {"id": "cls_car", "name": "car", "color": "#e6194b"},
                {"id": "cls_tree", "name": "tree", "color": "#3cb44b"},
                {"id": "cls_sign", "name": "sign", "color": "#ffe119"},
            ],
            "annotations": {"car_1": "cls_car", "tree_1": "cls_tree", "sign_1": "cls_sign"},
        },
        "camera": {
            "positions": [[6.0, 4.0, 6.0], [-6.0, 4.0, 6.0]],
            "orbit": {"radius": 8.0, "height": 5.0, "count": 4},
            "resolution": [640, 480],
        },
        "generation": {"samples": samples, "output_format": "coco"},
        "output": {"path": "demo_dataset.zip"},
        "seed": 7,
    }


def _single(samples: int) -> Dict[str, Any]:
    return {
        "scene": {
            "objects": [_box("box_1", (0.0, 0.0, 0.0))],
            "classes": [{"id": "cls_box", "name": "box"}],
            "annotations": {"box_1": "cls_box"},
        },
        "randomization": {"enabled": False},
        "camera": {
            "positions": [[0.0, 0.0, 5.0], [5.0, 0.0, 0.0]],
            "resolution": [256, 256],
        },
        "generation": {"samples": samples},
        "output": {"path": "single_dataset.zip"},
        "seed": 1,
    }


def generate_scenario(preset: str, path: Path, samples: int = 10) -> Path:
    """Write a ready-to-run scenario YAML for ``preset`` (``demo`` or ``single``)."""
    preset = preset.lower()
    if samples < 1:
        raise ValueError("samples must be at least 1.")
    if preset == "demo":
        data = _demo(samples)
    elif preset == "single":
        data = _single(samples)
    else:
        raise ValueError(f"Unknown scenario preset '{preset}'.")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path
