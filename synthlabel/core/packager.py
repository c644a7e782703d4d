from __future__ import annotations

import base64
import binascii
import io
import json
import pathlib
import zipfile
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .annotations import CapturedImage, ImageHandle
from .errors import ExportError
from .utils import get_logger

_log = get_logger()

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
ANNOTATIONS_ENTRY = "annotations.json"
IMAGES_DIR = "images"
DEFAULT_ARCHIVE_NAME = "synthetic_data.zip"


@dataclass(frozen=True)
class Archive:
    """In-memory zip blob. Nothing touches disk until :meth:`save` is called."""

    filename: str
    data: bytes
    image_count: int
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    def namelist(self) -> List[str]:
        with zipfile.ZipFile(io.BytesIO(self.data)) as zf:
            return zf.namelist()

    def save(self, path: str | pathlib.Path) -> pathlib.Path:
        path = pathlib.Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


def _to_png(raw: bytes) -> bytes:
    """Fully decode ``raw``; valid PNG passes through untouched, anything else is re-encoded."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            if img.format == "PNG" and raw.startswith(PNG_SIGNATURE):
                return raw
            buf = io.BytesIO()
            img.save(buf, format="PNG")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ValueError(f"unreadable image bytes: {exc}") from exc
    return buf.getvalue()


def decode_image_payload(payload: ImageHandle) -> bytes:
    """Turn a renderer payload into PNG bytes.

    Accepts encoded image bytes, a ``data:image/...;base64,`` URL, or an
    ``HxW``/``HxWx3``/``HxWx4`` uint8 array. Raises ``ValueError`` otherwise.
    """
    if isinstance(payload, np.ndarray):
        arr = payload
        if arr.dtype != np.uint8 or arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
            raise ValueError(f"unsupported pixel buffer: dtype={arr.dtype} shape={arr.shape}")
        if arr.size == 0:
            raise ValueError("empty pixel buffer")
        buf = io.BytesIO()
        Image.fromarray(arr).save(buf, format="PNG")
        return buf.getvalue()

    if isinstance(payload, str):
        header, sep, body = payload.partition(",")
        if not sep or not header.startswith("data:") or not header.endswith(";base64"):
            raise ValueError("not a base64 data URL")
        try:
            raw = base64.b64decode(body, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"bad base64 payload: {exc}") from exc
        payload = raw

    if isinstance(payload, (bytes, bytearray, memoryview)):
        raw = bytes(payload)
        if not raw:
            raise ValueError("empty image payload")
        return _to_png(raw)

    raise ValueError(f"unsupported image payload type: {type(payload).__name__}")


def package_dataset(
    images: Sequence[CapturedImage],
    document: Any,
    filename: str = DEFAULT_ARCHIVE_NAME,
    compresslevel: int = 6,
) -> Archive:
    """Zip ``annotations.json`` plus ``images/{id}.png`` for every decodable image.

    Undecodable payloads are left out with a warning. Any other failure while
    building the archive raises :class:`ExportError`.
    """
    try:
        doc_bytes = json.dumps(document, indent=2).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ExportError(f"Annotation document is not JSON serialisable: {exc}") from exc

    skipped: List[str] = []
    written = 0
    buf = io.BytesIO()
    try:
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as zf:
            zf.writestr(ANNOTATIONS_ENTRY, doc_bytes)
            for img in images:
                try:
                    png = decode_image_payload(img.pixel_data)
                except ValueError as exc:
                    _log.warning("Skipping image %s: %s", img.id, exc)
                    skipped.append(img.id)
                    continue
                zf.writestr(f"{IMAGES_DIR}/{img.id}.png", png)
                written += 1
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
        raise ExportError(f"Failed to build archive {filename}: {exc}") from exc

    _log.info("Packaged %d images into %s (%d skipped)", written, filename, len(skipped))
    return Archive(filename=filename, data=buf.getvalue(), image_count=written, skipped=tuple(skipped))


def package_for_download(
    images: Sequence[CapturedImage],
    document: Any,
    filename: str = DEFAULT_ARCHIVE_NAME,
) -> bytes:
    return package_dataset(images, document, filename=filename).data
