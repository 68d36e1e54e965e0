"""Layered TOML configuration.

``default.toml`` is the base layer and ``{USERSERVICE_ENV}.toml`` is merged
over it. Environment variables are applied later, by Settings.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "USERSERVICE_CONFIG_DIR"
ENVIRONMENT_ENV = "USERSERVICE_ENV"
DEFAULT_ENVIRONMENT = "development"


def find_config_dir(start: Path | None = None) -> Path | None:
    """Locate the directory holding default.toml.

    USERSERVICE_CONFIG_DIR wins when set. Otherwise the first ``config/``
    with a default.toml in ``start`` (the working directory) or one of its
    parents is used. Returns None when there is none.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)

    start = start or Path.cwd()
    for directory in (start, *start.parents):
        candidate = directory / "config"
        if (candidate / "default.toml").is_file():
            return candidate
    return None


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base, recursing into nested tables."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Read and merge the TOML layers.

    Returns an empty dict when no config directory can be found.

    Raises:
        FileNotFoundError: If an explicit config directory has no default.toml
        tomllib.TOMLDecodeError: If a layer is not valid TOML
    """
    config_dir = config_dir or find_config_dir()
    if config_dir is None:
        return {}

    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(f"{default_path} not found (set {CONFIG_DIR_ENV})")

    config = tomllib.loads(default_path.read_text())

    environment = environment or os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)
    env_path = config_dir / f"{environment}.toml"
    if env_path.is_file():
        config = deep_merge(config, tomllib.loads(env_path.read_text()))

    return config
