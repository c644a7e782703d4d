from __future__ import annotations

import datetime as _dt
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .annotations import AnnotationClass, CapturedImage
from .errors import ExportError
from .utils import get_logger, natural_key

_log = get_logger()


class ExportFormat(str, Enum):
    COCO = "coco"
    PASCAL_VOC = "pascal_voc"
    YOLO = "yolo"


def image_filename(image: CapturedImage) -> str:
    return f"{image.id}.png"


def _ordered(images: Sequence[CapturedImage]) -> List[CapturedImage]:
    return sorted(images, key=lambda img: natural_key(img.id))


def category_ids(classes: Sequence[AnnotationClass]) -> Dict[str, int]:
    """Class name → 1-based category id, following the order of ``classes``.

    Raises :class:`ExportError` on duplicate names, which no format can tell apart.
    """
    out: Dict[str, int] = {}
    for cls in classes:
        if cls.name in out:
            raise ExportError(f"Duplicate class name '{cls.name}' in export classes")
        out[cls.name] = len(out) + 1
    return out


def export_coco(
    images: Sequence[CapturedImage],
    classes: Sequence[AnnotationClass],
    info: Optional[Dict[str, Any]] = None,
    created: Optional[_dt.datetime] = None,
) -> Dict[str, Any]:
    """COCO detection document.

    Annotation ids come from a single counter over the whole export, so they
    stay unique regardless of how many boxes an image holds.
    """
    created = created or _dt.datetime.now(_dt.timezone.utc)
    cats = category_ids(classes)
    doc_info = {
        "description": "Synthetic dataset generated with domain randomization",
        "version": "1.0",
        "year": created.year,
        "contributor": "synthlabel",
        "date_created": created.isoformat(),
    }
    if info:
        doc_info.update(info)

    coco_images: List[Dict[str, Any]] = []
    coco_annotations: List[Dict[str, Any]] = []
    next_ann_id = 1
    for image_id, img in enumerate(_ordered(images), start=1):
        coco_images.append({
            "id": image_id,
            "file_name": image_filename(img),
            "width": int(img.width),
            "height": int(img.height),
        })
        for ann in img.annotations:
            category_id = cats.get(ann.class_name)
            if category_id is None:
                _log.warning("Skipping annotation on %s: unknown class '%s'", img.id, ann.class_name)
                continue
            x, y, w, h = (float(v) for v in ann.bbox)
            coco_annotations.append({
                "id": next_ann_id,
                "image_id": image_id,
                "category_id": category_id,
                "bbox": [x, y, w, h],
                "area": w * h,
                "iscrowd": 0,
                "segmentation": [],
            })
            next_ann_id += 1

    return {
        "info": doc_info,
        "licenses": [],
        "images": coco_images,
        "annotations": coco_annotations,
        "categories": [
            {"id": cid, "name": name, "supercategory": "object"}
            for name, cid in cats.items()
        ],
    }


def export_pascal_voc(
    images: Sequence[CapturedImage],
    classes: Sequence[AnnotationClass],
) -> List[Dict[str, Any]]:
    """One VOC record per image with absolute min/max pixel corners."""
    known = category_ids(classes)
    files: List[Dict[str, Any]] = []
    for img in _ordered(images):
        objects = []
        for ann in img.annotations:
            if ann.class_name not in known:
                _log.warning("Skipping annotation on %s: unknown class '%s'", img.id, ann.class_name)
                continue
            x, y, w, h = ann.bbox
            objects.append({
                "name": ann.class_name,
                "pose": "Unspecified",
                "truncated": 0,
                "difficult": 0,
                "bndbox": {"xmin": x, "ymin": y, "xmax": x + w, "ymax": y + h},
            })
        files.append({
            "filename": image_filename(img),
            "width": int(img.width),
            "height": int(img.height),
            "objects": objects,
        })
    return files


def export_yolo(
    images: Sequence[CapturedImage],
    classes: Sequence[AnnotationClass],
) -> Dict[str, Any]:
    """YOLO lines ``"idx cx cy w h"`` normalised by image size; idx is 0-based."""
    index = {name: cid - 1 for name, cid in category_ids(classes).items()}
    data: List[Dict[str, Any]] = []
    for img in _ordered(images):
        W, H = float(img.width), float(img.height)
        lines: List[str] = []
        for ann in img.annotations:
            idx = index.get(ann.class_name)
            if idx is None:
                _log.warning("Skipping annotation on %s: unknown class '%s'", img.id, ann.class_name)
                continue
            x, y, w, h = (float(v) for v in ann.bbox)
            cx = (x + w / 2.0) / W
            cy = (y + h / 2.0) / H
            lines.append(f"{idx} {cx:.6f} {cy:.6f} {w / W:.6f} {h / H:.6f}")
        data.append({"image": image_filename(img), "annotations": lines})
    return {"classes": list(index), "data": data}


def export_as(
    fmt: ExportFormat | str,
    images: Sequence[CapturedImage],
    classes: Sequence[AnnotationClass],
) -> Any:
    try:
        fmt = ExportFormat(fmt)
    except ValueError as exc:
        raise ExportError(f"Unsupported export format: {fmt!r}") from exc
    if fmt is ExportFormat.COCO:
        return export_coco(images, classes)
    if fmt is ExportFormat.PASCAL_VOC:
        return export_pascal_voc(images, classes)
    return export_yolo(images, classes)
