"""
Configuration loading for rookmove.

``configs/rookmove.yaml`` is read with PyYAML and validated against
:class:`~rookmove.utils.config_schema.ConfigModel`.  Callers get a plain dict
with every default filled in; :func:`default_config` gives the same dict
without reading a file, which is what the CLI uses when ``--config`` is
omitted.
"""

import os

import yaml
from pydantic import ValidationError

from .config_schema import ConfigModel

DEFAULT_CONFIG_PATH = "configs/rookmove.yaml"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Read and validate *config_path*.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If a section or key is unknown or a value has the wrong type.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found at: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f) or {}

    try:
        return ConfigModel(**raw).model_dump()
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e


def default_config() -> dict:
    return ConfigModel().model_dump()
