"""
YAML configuration loader and saver for autoimage jobs.

This module provides functions to load and save JobConfig objects from/to
YAML files, with support for Path objects and environment variable
expansion.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from mdautoimage.config.schema import JobConfig

PATH_KEYS = {"topology", "trajectories", "output"}


def _expand_paths(data: Dict[str, Any], base_path: Path) -> Dict[str, Any]:
    """Expand relative paths in the top-level path keys.

    Relative paths become absolute based on the config file location, and
    environment variables in path strings are expanded.

    Args:
        data: Configuration dictionary
        base_path: Directory containing the config file

    Returns:
        Configuration with expanded paths
    """

    def expand(value: Any) -> Any:
        if isinstance(value, str):
            path = Path(os.path.expandvars(value)).expanduser()
            if not path.is_absolute():
                path = base_path / path
            return str(path)
        if isinstance(value, list):
            return [expand(item) for item in value]
        return value

    return {k: expand(v) if k in PATH_KEYS else v for k, v in data.items()}


def _convert_paths_to_relative(data: Dict[str, Any], base_path: Path) -> Dict[str, Any]:
    """Convert absolute paths to relative paths for saving.

    Args:
        data: Configuration dictionary with absolute paths
        base_path: Directory where config file will be saved

    Returns:
        Configuration with relative paths
    """

    def relativize(value: Any) -> Any:
        if isinstance(value, str):
            path = Path(value)
            if path.is_absolute():
                try:
                    return str(path.relative_to(base_path))
                except ValueError:
                    # Path is not relative to base_path, keep absolute
                    return value
            return value
        if isinstance(value, list):
            return [relativize(item) for item in value]
        return value

    return {k: relativize(v) if k in PATH_KEYS else v for k, v in data.items()}


def load_config(path: Union[str, Path]) -> JobConfig:
    """Load a JobConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Validated JobConfig instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If the YAML is malformed
        pydantic.ValidationError: If the configuration is invalid

    Example:
        >>> config = load_config("autoimage.yaml")
        >>> print(config.autoimage.anchor)
        "protein"
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}")

    return load_config_dict(data, base_path=path.parent.absolute())


def save_config(config: JobConfig, path: Union[str, Path], relative_paths: bool = True) -> None:
    """Save a JobConfig to a YAML file.

    Args:
        config: Configuration to save
        path: Destination path for the YAML file
        relative_paths: Whether to convert paths to relative (default: True)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")

    if relative_paths:
        data = _convert_paths_to_relative(data, path.parent.absolute())

    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, width=100)


def load_config_dict(data: Dict[str, Any], base_path: Optional[Path] = None) -> JobConfig:
    """Create a JobConfig from a dictionary.

    Args:
        data: Configuration dictionary
        base_path: Base path for resolving relative paths (default: current
            working directory)

    Returns:
        Validated JobConfig instance

    Example:
        >>> config = load_config_dict({
        ...     "topology": "system.prmtop",
        ...     "trajectories": ["md1.nc", "md2.nc"],
        ...     "output": "imaged.nc",
        ...     "autoimage": {"anchor": ":1-250"},
        ... })
    """
    if base_path is None:
        base_path = Path.cwd()
    expanded = _expand_paths(data, base_path)
    return JobConfig.model_validate(expanded)
