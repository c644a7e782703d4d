"""Configuration loading utilities for synthlabel."""

from .schema import (
    CameraConfig,
    GenerationConfig,
    RandomizationConfig,
    ScenarioConfig,
    SceneConfig,
    load_config,
)

__all__ = [
    "CameraConfig",
    "GenerationConfig",
    "RandomizationConfig",
    "ScenarioConfig",
    "SceneConfig",
    "load_config",
]
