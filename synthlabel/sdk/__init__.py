from .run import ConfigRunResult, generate_from_config

__all__ = ["ConfigRunResult", "generate_from_config"]
