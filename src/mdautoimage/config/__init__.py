"""Configuration management with YAML support and validation."""

from mdautoimage.config.loader import load_config, load_config_dict, save_config
from mdautoimage.config.schema import AutoImageConfig, JobConfig

__all__ = [
    "AutoImageConfig",
    "JobConfig",
    "load_config",
    "load_config_dict",
    "save_config",
]
