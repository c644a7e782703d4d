from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from ..config.schema import RandomizationConfig
from .scene import LightObject, SceneObject
from .snapshot import Baseline, BaselineEntry, apply_entry
from .utils import clamp, get_logger

_log = get_logger()


class DomainRandomizer:
    """Perturbs object poses and light properties around a captured baseline.

    Every call first resets each object to its baseline entry, so repeated
    calls never compound. All randomness comes from the ``rng`` argument; the
    draw order per object is position x/y/z, rotation x/y/z, scale, light
    intensity, light colour r/g/b.
    """

    def __init__(self, config: Optional[RandomizationConfig] = None) -> None:
        self.config = config if config is not None else RandomizationConfig()

    def randomize(
        self,
        objects: Iterable[SceneObject],
        baseline: Baseline,
        rng: np.random.Generator,
    ) -> int:
        """Randomise ``objects`` in place; returns the number of objects perturbed."""
        perturbed = 0
        for obj in objects:
            entry = baseline.get(obj.id)
            if entry is None:
                # added to the scene after the baseline was taken
                _log.debug("No baseline for '%s'; skipping", obj.id)
                continue
            if entry.is_camera:
                continue
            apply_entry(obj, entry)
            if not self.config.enabled:
                continue

            if entry.is_light:
                if entry.is_directional_light:
                    self._rotate(obj, entry, rng)
                if isinstance(obj, LightObject):
                    self._relight(obj, entry, rng)
            else:
                self._translate(obj, entry, rng)
                self._rotate(obj, entry, rng)
                self._rescale(obj, entry, rng)
            perturbed += 1
        return perturbed

    @staticmethod
    def _jitter(base: float, spread: float, rng: np.random.Generator) -> float:
        return base + (rng.random() - 0.5) * 2.0 * spread

    def _translate(self, obj: SceneObject, entry: BaselineEntry, rng: np.random.Generator) -> None:
        cfg = self.config.position
        if not cfg.enabled:
            return
        bx, by, bz = entry.position
        rx, ry, rz = cfg.range
        x = self._jitter(bx, rx, rng)
        # never below the baseline height
        y = max(by, self._jitter(by, ry, rng))
        z = self._jitter(bz, rz, rng)
        obj.position = np.array([x, y, z], dtype=np.float64)

    def _rotate(self, obj: SceneObject, entry: BaselineEntry, rng: np.random.Generator) -> None:
        cfg = self.config.rotation
        if not cfg.enabled:
            return
        spread = np.deg2rad(np.asarray(cfg.range_deg, dtype=np.float64))
        obj.rotation = np.array(
            [self._jitter(entry.rotation[a], float(spread[a]), rng) for a in range(3)],
            dtype=np.float64,
        )

    def _rescale(self, obj: SceneObject, entry: BaselineEntry, rng: np.random.Generator) -> None:
        cfg = self.config.scale
        if not cfg.enabled:
            return
        base = np.asarray(entry.scale, dtype=np.float64)
        if cfg.uniform:
            factor = cfg.min + rng.random() * (cfg.max - cfg.min)
            obj.scale = base * factor
        else:
            factors = np.array([cfg.min + rng.random() * (cfg.max - cfg.min) for _ in range(3)])
            obj.scale = base * factors

    def _relight(self, obj: LightObject, entry: BaselineEntry, rng: np.random.Generator) -> None:
        cfg = self.config.lighting
        if not cfg.enabled or entry.intensity is None or entry.color is None:
            return
        lo, hi = cfg.intensity_range
        obj.intensity = entry.intensity * (lo + rng.random() * (hi - lo))
        if cfg.color_variation > 0.0:
            obj.color = tuple(
                clamp(self._jitter(c, cfg.color_variation, rng), 0.0, 1.0) for c in entry.color
            )  # type: ignore[assignment]
