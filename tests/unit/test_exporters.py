from __future__ import annotations

import datetime as dt
from typing import Sequence, Tuple

import pytest

from synthlabel.core.annotations import Annotation2D, AnnotationClass, CapturedImage
from synthlabel.core.errors import ExportError
from synthlabel.core.exporter import (
    ExportFormat,
    category_ids,
    export_as,
    export_coco,
    export_pascal_voc,
    export_yolo,
)

CLASSES = [
    AnnotationClass("c1", "car"),
    AnnotationClass("c2", "tree"),
    AnnotationClass("c3", "sign"),
]


def _ann(name: str, bbox: Tuple[float, float, float, float], class_id: str = "") -> Annotation2D:
    return Annotation2D(
        object_id=f"obj_{name}",
        class_id=class_id or name,
        class_name=name,
        bbox=bbox,
        area=bbox[2] * bbox[3],
    )


def _image(image_id: str, anns: Sequence[Annotation2D], size: Tuple[int, int] = (100, 100)) -> CapturedImage:
    return CapturedImage(
        id=image_id,
        pixel_data=b"",
        width=size[0],
        height=size[1],
        camera_position=(0.0, 0.0, 5.0),
        camera_rotation=(0.0, 0.0, 0.0),
        annotations=tuple(anns),
    )


def test_category_ids_follow_class_order() -> None:
    assert category_ids(CLASSES) == {"car": 1, "tree": 2, "sign": 3}


def test_coco_and_yolo_index_conventions() -> None:
    img = _image(
        "sample_0_camera_0",
        [_ann("car", (0, 0, 10, 10)), _ann("tree", (10, 10, 10, 10)), _ann("sign", (20, 20, 10, 10))],
    )
    coco = export_coco([img], CLASSES)
    assert [(c["id"], c["name"]) for c in coco["categories"]] == [(1, "car"), (2, "tree"), (3, "sign")]
    assert [a["category_id"] for a in coco["annotations"]] == [1, 2, 3]

    yolo = export_yolo([img], CLASSES)
    assert yolo["classes"] == ["car", "tree", "sign"]
    assert [line.split()[0] for line in yolo["data"][0]["annotations"]] == ["0", "1", "2"]


def test_coco_structure() -> None:
    img = _image("sample_0_camera_0", [_ann("car", (10, 20, 30, 40))])
    created = dt.datetime(2024, 5, 1, tzinfo=dt.timezone.utc)
    coco = export_coco([img], CLASSES, created=created)
    assert set(coco) == {"info", "licenses", "images", "annotations", "categories"}
    assert coco["info"]["year"] == 2024
    assert coco["images"] == [
        {"id": 1, "file_name": "sample_0_camera_0.png", "width": 100, "height": 100}
    ]
    ann = coco["annotations"][0]
    assert ann["bbox"] == [10.0, 20.0, 30.0, 40.0]
    assert ann["area"] == 1200.0
    assert ann["iscrowd"] == 0
    assert ann["image_id"] == 1


def test_coco_annotation_ids_are_globally_unique() -> None:
    images = [
        _image("sample_0_camera_0", [_ann("car", (0, 0, 5, 5)), _ann("tree", (5, 5, 5, 5))]),
        _image("sample_0_camera_1", [_ann("car", (0, 0, 5, 5)), _ann("sign", (5, 5, 5, 5))]),
    ]
    coco = export_coco(images, CLASSES)
    assert [a["id"] for a in coco["annotations"]] == [1, 2, 3, 4]
    assert [a["image_id"] for a in coco["annotations"]] == [1, 1, 2, 2]


def test_coco_resolves_category_by_name_and_skips_unknown() -> None:
    img = _image(
        "sample_0_camera_0",
        [_ann("car", (0, 0, 5, 5), class_id="renamed"), _ann("bike", (5, 5, 5, 5))],
    )
    coco = export_coco([img], CLASSES)
    assert len(coco["annotations"]) == 1
    assert coco["annotations"][0]["category_id"] == 1


def test_images_are_ordered_by_id() -> None:
    images = [_image("sample_10_camera_0", []), _image("sample_2_camera_0", []), _image("sample_2_camera_1", [])]
    coco = export_coco(images, CLASSES)
    assert [i["file_name"] for i in coco["images"]] == [
        "sample_2_camera_0.png",
        "sample_2_camera_1.png",
        "sample_10_camera_0.png",
    ]
    voc = export_pascal_voc(images, CLASSES)
    assert [f["filename"] for f in voc] == [i["file_name"] for i in coco["images"]]


def test_pascal_voc_fields() -> None:
    img = _image("sample_0_camera_0", [_ann("car", (10, 20, 30, 40))])
    (record,) = export_pascal_voc([img], CLASSES)
    assert record["filename"] == "sample_0_camera_0.png"
    assert (record["width"], record["height"]) == (100, 100)
    assert record["objects"] == [
        {
            "name": "car",
            "pose": "Unspecified",
            "truncated": 0,
            "difficult": 0,
            "bndbox": {"xmin": 10, "ymin": 20, "xmax": 40, "ymax": 60},
        }
    ]


def test_yolo_line_format() -> None:
    img = _image("sample_0_camera_0", [_ann("car", (10, 20, 30, 40))])
    yolo = export_yolo([img], CLASSES)
    assert yolo["data"] == [
        {"image": "sample_0_camera_0.png", "annotations": ["0 0.250000 0.400000 0.300000 0.400000"]}
    ]


def test_exports_are_deterministic() -> None:
    images = [_image(f"sample_{i}_camera_0", [_ann("tree", (i, i, 4, 4))]) for i in (3, 1, 2)]
    created = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    assert export_coco(images, CLASSES, created=created) == export_coco(list(reversed(images)), CLASSES, created=created)
    assert export_yolo(images, CLASSES) == export_yolo(list(reversed(images)), CLASSES)


def test_export_as_dispatch() -> None:
    img = _image("sample_0_camera_0", [_ann("car", (10, 20, 30, 40))])
    assert "categories" in export_as("coco", [img], CLASSES)
    assert isinstance(export_as(ExportFormat.PASCAL_VOC, [img], CLASSES), list)
    assert export_as("yolo", [img], CLASSES)["classes"] == ["car", "tree", "sign"]
    with pytest.raises(ExportError):
        export_as("kitti", [img], CLASSES)


def test_duplicate_class_names_are_rejected_by_every_format() -> None:
    classes = CLASSES + [AnnotationClass("c4", "car")]
    img = _image("sample_0_camera_0", [_ann("car", (10, 20, 30, 40))])
    with pytest.raises(ExportError, match="car"):
        category_ids(classes)
    for fmt in ExportFormat:
        with pytest.raises(ExportError):
            export_as(fmt, [img], classes)
