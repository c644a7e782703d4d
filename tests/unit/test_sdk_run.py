from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest
import yaml

from synthlabel.config import load_config
from synthlabel.core.errors import PreconditionError
from synthlabel.sdk import generate_from_config


def _write_config(path: Path, output_name: str, *, annotate: bool = True, randomize: bool = False) -> None:
    config = {
        "scene": {
            "objects": [
                {"kind": "mesh", "id": "box_1"},
                {"kind": "light", "id": "key", "light_type": "point", "position": [2.0, 4.0, 2.0]},
            ],
            "classes": [{"id": "cls_box", "name": "box"}],
            "annotations": {"box_1": "cls_box"} if annotate else {},
        },
        "randomization": {"enabled": randomize},
        "camera": {"positions": [[0.0, 0.0, 5.0], [5.0, 0.0, 0.0]], "resolution": [128, 96]},
        "generation": {"samples": 3},
        "output": {"path": output_name},
        "seed": 4,
    }
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f)


def test_generate_from_config_writes_coco_archive(tmp_path: Path) -> None:
    cfg_path = tmp_path / "scenario.yaml"
    _write_config(cfg_path, "dataset.zip")

    result = generate_from_config(cfg_path)

    assert result.output_path == (tmp_path / "dataset.zip").resolve()
    assert result.stats == {"images": 6, "annotations": 6, "skipped": 0, "archived_images": 6}
    with zipfile.ZipFile(result.output_path) as zf:
        names = zf.namelist()
        coco = json.loads(zf.read("annotations.json"))
    assert len(names) == 7
    assert sum(n.startswith("images/") for n in names) == 6
    assert len(coco["images"]) == 6
    assert len(coco["categories"]) == 1
    assert len(coco["annotations"]) == 6
    assert coco["images"][0]["width"] == 128 and coco["images"][0]["height"] == 96


def test_overrides_do_not_touch_loaded_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "scenario.yaml"
    _write_config(cfg_path, "dataset.zip", randomize=True)
    cfg = load_config(cfg_path)

    out = tmp_path / "custom" / "yolo.zip"
    result = generate_from_config(cfg, output=out, samples=2, output_format="yolo", seed=9)

    assert cfg.generation.samples == 3
    assert cfg.generation.output_format == "coco"
    assert result.config.generation.samples == 2
    assert result.stats["images"] == 4
    with zipfile.ZipFile(out) as zf:
        doc = json.loads(zf.read("annotations.json"))
    assert doc["classes"] == ["box"]
    assert len(doc["data"]) == 4


def test_seed_makes_runs_repeatable(tmp_path: Path) -> None:
    cfg_path = tmp_path / "scenario.yaml"
    _write_config(cfg_path, "dataset.zip", randomize=True)
    a = generate_from_config(cfg_path, output=tmp_path / "a.zip", seed=21)
    b = generate_from_config(cfg_path, output=tmp_path / "b.zip", seed=21)
    assert [img.annotations for img in a.run.images] == [img.annotations for img in b.run.images]


def test_rejects_bad_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "scenario.yaml"
    _write_config(cfg_path, "dataset.zip")
    with pytest.raises(ValueError):
        generate_from_config(cfg_path, output=tmp_path / "out.tar")
    with pytest.raises(ValueError):
        generate_from_config(cfg_path, samples=0)
    with pytest.raises(ValueError):
        generate_from_config(cfg_path, output_format="kitti")


def test_unannotated_scene_fails_precondition(tmp_path: Path) -> None:
    cfg_path = tmp_path / "scenario.yaml"
    _write_config(cfg_path, "dataset.zip", annotate=False)
    with pytest.raises(PreconditionError):
        generate_from_config(cfg_path)
    assert not (tmp_path / "dataset.zip").exists()
