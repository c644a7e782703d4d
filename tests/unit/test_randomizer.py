from __future__ import annotations

import numpy as np
import pytest

from synthlabel.config.schema import (
    LightingRandomizationConfig,
    PositionRandomizationConfig,
    RandomizationConfig,
    RotationRandomizationConfig,
    ScaleRandomizationConfig,
)
from synthlabel.core.randomizer import DomainRandomizer
from synthlabel.core.scene import CameraObject, LightObject, LightType, MeshObject, Scene
from synthlabel.core.snapshot import capture_baseline


def _scene() -> Scene:
    return Scene(
        [
            MeshObject("a", position=(0.0, 1.0, 0.0)),
            MeshObject("b", position=(3.0, 0.0, -2.0), scale=(2.0, 2.0, 2.0)),
            LightObject("point", light_type=LightType.POINT, intensity=1.0),
            LightObject("sun", light_type=LightType.DIRECTIONAL, intensity=2.0, color=(0.5, 0.5, 0.5)),
            CameraObject("cam", position=(0.0, 0.0, 8.0)),
        ]
    )


def test_same_seed_gives_same_transforms() -> None:
    s1, s2 = _scene(), _scene()
    b1, b2 = capture_baseline(s1), capture_baseline(s2)
    r = DomainRandomizer()
    r.randomize(s1, b1, np.random.default_rng(42))
    r.randomize(s2, b2, np.random.default_rng(42))
    for o1, o2 in zip(s1, s2):
        np.testing.assert_array_equal(o1.position, o2.position)
        np.testing.assert_array_equal(o1.rotation, o2.rotation)
        np.testing.assert_array_equal(o1.scale, o2.scale)
    assert s1.get("sun").intensity == s2.get("sun").intensity
    assert s1.get("sun").color == s2.get("sun").color


def test_master_switch_disabled_resets_only() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    scene.get("a").position[:] = (9.0, 9.0, 9.0)
    count = DomainRandomizer(RandomizationConfig(enabled=False)).randomize(
        scene, baseline, np.random.default_rng(0)
    )
    assert count == 0
    np.testing.assert_allclose(scene.get("a").position, [0.0, 1.0, 0.0])


def test_perturbations_stay_within_ranges_and_do_not_compound() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    cfg = RandomizationConfig()
    r = DomainRandomizer(cfg)
    rng = np.random.default_rng(7)
    rx, ry, rz = cfg.position.range
    for _ in range(50):
        r.randomize(scene, baseline, rng)
        b = scene.get("b")
        assert abs(b.position[0] - 3.0) <= rx
        assert 0.0 <= b.position[1] <= ry
        assert abs(b.position[2] + 2.0) <= rz
        assert np.all(b.scale >= 2.0 * cfg.scale.min - 1e-12)
        assert np.all(b.scale <= 2.0 * cfg.scale.max + 1e-12)
        assert np.allclose(b.scale, b.scale[0])
        spread = np.deg2rad(cfg.rotation.range_deg)
        assert np.all(np.abs(b.rotation) <= spread + 1e-12)


def test_height_never_drops_below_baseline() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    r = DomainRandomizer()
    rng = np.random.default_rng(11)
    for _ in range(50):
        r.randomize(scene, baseline, rng)
        assert scene.get("a").position[1] >= 1.0


def test_cameras_are_untouched() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    DomainRandomizer().randomize(scene, baseline, np.random.default_rng(5))
    cam = scene.get("cam")
    np.testing.assert_allclose(cam.position, [0.0, 0.0, 8.0])
    np.testing.assert_allclose(cam.rotation, [0.0, 0.0, 0.0])


def test_only_directional_lights_rotate() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    DomainRandomizer().randomize(scene, baseline, np.random.default_rng(5))
    np.testing.assert_allclose(scene.get("point").rotation, [0.0, 0.0, 0.0])
    assert not np.allclose(scene.get("sun").rotation, [0.0, 0.0, 0.0])
    np.testing.assert_allclose(scene.get("point").position, [0.0, 0.0, 0.0])


def test_lighting_intensity_and_colour_bounds() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    cfg = RandomizationConfig(
        lighting=LightingRandomizationConfig(intensity_range=(0.5, 1.5), color_variation=0.9)
    )
    r = DomainRandomizer(cfg)
    rng = np.random.default_rng(2)
    for _ in range(30):
        r.randomize(scene, baseline, rng)
        sun = scene.get("sun")
        assert 1.0 <= sun.intensity <= 3.0
        assert all(0.0 <= c <= 1.0 for c in sun.color)


def test_zero_colour_variation_keeps_colour() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    cfg = RandomizationConfig(lighting=LightingRandomizationConfig(color_variation=0.0))
    DomainRandomizer(cfg).randomize(scene, baseline, np.random.default_rng(0))
    assert scene.get("sun").color == (0.5, 0.5, 0.5)


def test_per_category_switches() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    cfg = RandomizationConfig(
        position=PositionRandomizationConfig(enabled=False),
        rotation=RotationRandomizationConfig(enabled=False),
        scale=ScaleRandomizationConfig(uniform=False, min=0.5, max=0.6),
    )
    DomainRandomizer(cfg).randomize(scene, baseline, np.random.default_rng(9))
    b = scene.get("b")
    np.testing.assert_allclose(b.position, [3.0, 0.0, -2.0])
    np.testing.assert_allclose(b.rotation, [0.0, 0.0, 0.0])
    assert np.all((b.scale >= 1.0) & (b.scale <= 1.2))


def test_objects_missing_from_baseline_are_skipped() -> None:
    scene = _scene()
    baseline = capture_baseline(scene)
    late = MeshObject("late", position=(4.0, 4.0, 4.0))
    scene.add(late)
    count = DomainRandomizer().randomize(scene, baseline, np.random.default_rng(0))
    assert count == 4
    np.testing.assert_allclose(late.position, [4.0, 4.0, 4.0])


def test_scale_config_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        ScaleRandomizationConfig(min=1.5, max=1.0)
